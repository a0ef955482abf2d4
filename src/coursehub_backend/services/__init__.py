"""
Business services.

Every entry point gathers the facts the authorization engine needs,
checks permission, validates its input against the stores and only then
writes.
"""

from .content_hierarchy import ContentHierarchyManager
from .reconciler import RelationshipReconciler
from .courses import CourseService
from .users import UserService

__all__ = [
    "ContentHierarchyManager",
    "RelationshipReconciler",
    "CourseService",
    "UserService",
]
