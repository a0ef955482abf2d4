"""
Course hierarchy store: courses, cohorts and the course content forest.
"""

from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..model.course import Cohort, Course, CourseContent, CourseLevel, Enrollment


class CourseRepository(BaseRepository[Course]):
    """Repository for Course entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, Course)

    def search(
        self,
        title: Optional[str] = None,
        difficulty_level: Optional[CourseLevel] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[Course], int]:
        """
        Paginated course search, newest first.

        Args:
            title: Case-insensitive substring of the title
            difficulty_level: Exact difficulty level
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Tuple of (courses, total count before pagination)
        """
        query = self.query()
        if title:
            query = query.filter(Course.title.ilike(f"%{title}%"))
        if difficulty_level is not None:
            query = query.filter(Course.difficulty_level == difficulty_level)

        total = query.order_by(None).count()

        query = query.order_by(Course.created_at.desc(), Course.id)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all(), total


class CohortRepository(BaseRepository[Cohort]):
    """Repository for Cohort entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, Cohort)

    def list_for_course(self, course_id: str, cohort_id: Optional[str] = None) -> List[Cohort]:
        query = self.query().filter(Cohort.course_id == course_id)
        if cohort_id is not None:
            query = query.filter(Cohort.id == cohort_id)
        return query.order_by(Cohort.start_date, Cohort.name).all()


class CourseContentRepository(BaseRepository[CourseContent]):
    """
    Repository for the course content forest.

    Nodes reference their parent by id only; subtrees are rebuilt from
    indexed ``(course_id, parent_id)`` lookups.
    """

    def __init__(self, db: Session):
        super().__init__(db, CourseContent)

    def ordered(self, query):
        return query.order_by(
            CourseContent.sequence_order,
            CourseContent.insertion_index,
            CourseContent.created_at,
            CourseContent.id,
        )

    def children_of(self, course_id: str, parent_id: Optional[str]) -> List[CourseContent]:
        """
        Direct children of ``parent_id`` (roots when ``parent_id`` is None).

        Args:
            course_id: Owning course
            parent_id: Parent node, or None for root nodes

        Returns:
            Ordered list of nodes
        """
        query = self.query().filter(CourseContent.course_id == course_id)
        if parent_id is None:
            query = query.filter(CourseContent.parent_id.is_(None))
        else:
            query = query.filter(CourseContent.parent_id == parent_id)
        return self.ordered(query).all()

    def children_of_many(self, course_id: str, parent_ids: List[str]) -> List[CourseContent]:
        if not parent_ids:
            return []
        query = self.query().filter(
            CourseContent.course_id == course_id,
            CourseContent.parent_id.in_(parent_ids),
        )
        return self.ordered(query).all()

    def next_insertion_index(self, course_id: str) -> int:
        current = (
            self.db.query(func.max(CourseContent.insertion_index))
            .filter(CourseContent.course_id == course_id)
            .scalar()
        )
        return (current or 0) + 1

    def detach_children(self, parent_id: str) -> int:
        """
        Re-root the direct children of a node.

        Args:
            parent_id: The node whose children are detached

        Returns:
            Number of re-rooted nodes (flushed, not committed)
        """
        count = (
            self.db.query(CourseContent)
            .filter(CourseContent.parent_id == parent_id)
            .update({CourseContent.parent_id: None}, synchronize_session="fetch")
        )
        self.db.flush()
        return count

    def clear_enrollment_pointers(self, content_id: str) -> int:
        """
        Null ``last_accessed_content_id`` everywhere it points at ``content_id``.

        Archived enrollments are included, so no pointer is left dangling.

        Returns:
            Number of enrollments touched (flushed, not committed)
        """
        count = (
            self.db.query(Enrollment)
            .filter(Enrollment.last_accessed_content_id == content_id)
            .update({Enrollment.last_accessed_content_id: None}, synchronize_session="fetch")
        )
        self.db.flush()
        return count
