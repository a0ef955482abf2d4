"""
Content hierarchy management.

Course content forms a forest per course: nodes reference their parent by
id, roots have no parent. This module keeps the forest well formed on every
write and serves it one level at a time.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.exceptions import BadRequestException, InternalServerException, NotFoundException
from ..interface.course_contents import (
    CourseContentCreate,
    CourseContentGet,
    CourseContentTree,
    CourseContentUpdate,
)
from ..model.course import CourseContent
from ..permissions import Principal, check_permission
from ..repositories import (
    CourseContentRepository,
    CourseRepository,
    CourseTutorRepository,
)
from ..repositories.base import utcnow
from .validation import course_facts, require_course

logger = logging.getLogger(__name__)

# Columns a patch may not set to null
_REQUIRED_FIELDS = ("topic", "content_type", "sequence_order")


class ContentHierarchyManager:
    """Create, reparent, archive and list course content nodes."""

    def __init__(self, db: Session):
        self.db = db
        self.contents = CourseContentRepository(db)
        self.courses = CourseRepository(db)
        self.course_tutors = CourseTutorRepository(db)

    def create_node(self, principal: Principal, course_id: str, payload: CourseContentCreate) -> CourseContent:
        """
        Append a node to the forest of a course.

        Raises:
            ForbiddenException: The actor may not manage content of the course
            NotFoundException: The course or the parent does not exist
            BadRequestException: The parent belongs to another course
        """
        check_permission(principal, "course_content", "create",
                         course_facts(self.course_tutors, principal, course_id))

        require_course(self.courses, course_id)
        if payload.parent_id is not None:
            self._require_parent_in_course(payload.parent_id, course_id)

        node = CourseContent(
            course_id=course_id,
            parent_id=payload.parent_id,
            topic=payload.topic,
            content_type=payload.content_type,
            sequence_order=payload.sequence_order,
            insertion_index=self.contents.next_insertion_index(course_id),
        )
        node = self.contents.create(node)
        logger.info(f"Created course content {node.id} in course {course_id} (parent {node.parent_id})")
        return node

    def update_node(self, principal: Principal, course_id: str, node_id: str, patch: CourseContentUpdate) -> CourseContent:
        """
        Apply a partial update to a node.

        Only fields present in ``patch`` are written. A parent change is
        checked for course membership and must not make the node its own
        ancestor.
        """
        node = self._require_node(course_id, node_id)
        check_permission(principal, "course_content", "update",
                         course_facts(self.course_tutors, principal, node.course_id, node.id))

        updates = patch.model_dump(exclude_unset=True)
        for field in _REQUIRED_FIELDS:
            if field in updates and updates[field] is None:
                raise BadRequestException(f"{field} cannot be null")

        if "parent_id" in updates and updates["parent_id"] is not None:
            new_parent_id = str(updates["parent_id"])
            if new_parent_id != str(node.parent_id):
                self._require_parent_in_course(new_parent_id, node.course_id)
                self._reject_cycle(node.id, new_parent_id)

        node = self.contents.update(node, updates)
        logger.info(f"Updated course content {node.id}: {sorted(updates)}")
        return node

    def delete_node(self, principal: Principal, course_id: str, node_id: str) -> CourseContent:
        """
        Archive a node.

        In one transaction the node is archived, its direct children become
        roots and every enrollment pointing at it loses that pointer.
        """
        node = self._require_node(course_id, node_id)
        check_permission(principal, "course_content", "delete",
                         course_facts(self.course_tutors, principal, node.course_id, node.id))

        try:
            node.archived_at = utcnow()
            detached = self.contents.detach_children(node.id)
            cleared = self.contents.clear_enrollment_pointers(node.id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to archive course content {node.id}: {e}")
            raise InternalServerException(detail=e.args)

        logger.info(f"Archived course content {node.id}: {detached} children re-rooted, {cleared} enrollment pointers cleared")
        return node

    def list_tree(self, principal: Principal, course_id: str, parent_id: Optional[str] = None) -> List[CourseContentTree]:
        """
        One level of the forest with its direct children.

        Without ``parent_id`` the roots of the course are returned, otherwise
        the children of that node. Siblings are ordered by ``sequence_order``
        and then by creation order.
        """
        check_permission(principal, "course_content", "list",
                         course_facts(self.course_tutors, principal, course_id))

        require_course(self.courses, course_id)
        if parent_id is not None:
            self._require_parent_in_course(parent_id, course_id)

        level = self.contents.children_of(course_id, parent_id)
        children: Dict[str, List[CourseContentGet]] = {str(node.id): [] for node in level}
        for child in self.contents.children_of_many(course_id, list(children)):
            children[str(child.parent_id)].append(CourseContentGet.model_validate(child))

        return [
            CourseContentTree(
                **CourseContentGet.model_validate(node).model_dump(),
                children=children[str(node.id)],
            )
            for node in level
        ]

    def _require_node(self, course_id: str, node_id: str) -> CourseContent:
        require_course(self.courses, course_id)
        node = self.contents.get_by_id_optional(node_id)
        if node is None or str(node.course_id) != str(course_id):
            raise NotFoundException("Course content not found")
        return node

    def _require_parent_in_course(self, parent_id: str, course_id: str) -> CourseContent:
        parent = self.contents.get_by_id_optional(parent_id)
        if parent is None:
            raise NotFoundException("Parent content not found")
        if str(parent.course_id) != str(course_id):
            raise BadRequestException("Parent content belongs to a different course")
        return parent

    def _reject_cycle(self, node_id: str, new_parent_id: str) -> None:
        """Walk up from the new parent; reaching the node itself means a cycle."""
        visited = set()
        current: Optional[str] = new_parent_id
        while current is not None:
            if str(current) == str(node_id):
                raise BadRequestException("Content cannot be moved below itself or one of its descendants")
            if current in visited:
                break
            visited.add(current)
            ancestor = self.contents.get_by_id_optional(current, include_archived=True)
            current = ancestor.parent_id if ancestor is not None else None
