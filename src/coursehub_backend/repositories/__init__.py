"""
Repository pattern implementation for direct database access.

This package provides the stores the services read and write through.
"""

from .base import (
    BaseRepository,
    RepositoryError,
    DuplicateError
)
from .user import UserRepository
from .course import CourseRepository, CohortRepository, CourseContentRepository
from .relationships import CourseTutorRepository, EnrollmentRepository

__all__ = [
    "BaseRepository",
    "RepositoryError", 
    "DuplicateError",
    "UserRepository",
    "CourseRepository",
    "CohortRepository",
    "CourseContentRepository",
    "CourseTutorRepository",
    "EnrollmentRepository",
]
