"""
Relationship store: tutor-course assignments and learner-cohort enrollments.

Uniqueness of a pair is enforced by partial unique indexes that ignore
archived rows, so an archived pair never blocks a new one.
"""

from typing import Iterable, List, Optional, Set
from sqlalchemy.orm import Session, joinedload

from .base import BaseRepository
from ..model.auth import User
from ..model.course import CourseTutor, Enrollment, EnrollmentStatus


class CourseTutorRepository(BaseRepository[CourseTutor]):
    """Repository for CourseTutor relationship rows."""

    def __init__(self, db: Session):
        super().__init__(db, CourseTutor)

    def find_pair(self, course_id: str, tutor_id: str) -> Optional[CourseTutor]:
        return self.find_one_by(course_id=course_id, tutor_id=tutor_id)

    def assigned_ids(self, course_id: str, tutor_ids: Iterable[str]) -> Set[str]:
        """
        Batched lookup of existing assignments.

        Args:
            course_id: Course identifier
            tutor_ids: Candidate tutor identifiers

        Returns:
            The subset of ``tutor_ids`` already assigned to the course
        """
        ids = list(tutor_ids)
        if not ids:
            return set()
        rows = (
            self.query()
            .with_entities(CourseTutor.tutor_id)
            .filter(CourseTutor.course_id == course_id, CourseTutor.tutor_id.in_(ids))
            .all()
        )
        return {row[0] for row in rows}

    def is_assigned(self, course_id: str, tutor_id: str) -> bool:
        return self.find_pair(course_id, tutor_id) is not None

    def tutors_of(self, course_id: str) -> List[User]:
        rows = (
            self.query()
            .options(joinedload(CourseTutor.tutor))
            .join(User, User.id == CourseTutor.tutor_id)
            .filter(CourseTutor.course_id == course_id, User.archived_at.is_(None))
            .order_by(User.family_name, User.given_name, User.email)
            .all()
        )
        return [row.tutor for row in rows]


class EnrollmentRepository(BaseRepository[Enrollment]):
    """Repository for Enrollment relationship rows."""

    def __init__(self, db: Session):
        super().__init__(db, Enrollment)

    def find_pair(self, user_id: str, cohort_id: str) -> Optional[Enrollment]:
        return self.find_one_by(user_id=user_id, cohort_id=cohort_id)

    def enrolled_ids(self, cohort_id: str, user_ids: Iterable[str]) -> Set[str]:
        """
        Batched lookup of existing enrollments.

        Args:
            cohort_id: Cohort identifier
            user_ids: Candidate learner identifiers

        Returns:
            The subset of ``user_ids`` already enrolled in the cohort
        """
        ids = list(user_ids)
        if not ids:
            return set()
        rows = (
            self.query()
            .with_entities(Enrollment.user_id)
            .filter(Enrollment.cohort_id == cohort_id, Enrollment.user_id.in_(ids))
            .all()
        )
        return {row[0] for row in rows}

    def active_learners_of(self, cohort_id: str) -> List[User]:
        rows = (
            self.query()
            .options(joinedload(Enrollment.learner))
            .join(User, User.id == Enrollment.user_id)
            .filter(
                Enrollment.cohort_id == cohort_id,
                Enrollment.status == EnrollmentStatus.active,
                User.archived_at.is_(None),
            )
            .order_by(User.family_name, User.given_name, User.email)
            .all()
        )
        return [row.learner for row in rows]
