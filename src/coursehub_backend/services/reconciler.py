"""
Relationship reconciliation.

Tutor assignments (tutor <-> course) and enrollments (learner <-> cohort)
are created singly or in bulk. Single operations report an existing pair
as a conflict; bulk operations are idempotent and report what was created
and what was already present.

A bulk call validates every candidate before writing anything, then
inserts the missing pairs in one batch. Two bulk calls racing on the same
pairs are resolved by the partial unique indexes of the relationship
tables: the losing batch is rolled back and reconciled again, so its
duplicates end up counted as skipped.
"""

import logging
from typing import Callable, List, Optional, Set

from sqlalchemy.orm import Session

from ..api.exceptions import BadRequestException, ConflictException, NotFoundException
from ..interface.course_members import CohortLearners, ReconcileResult
from ..interface.users import UserList
from ..model.auth import User, UserRole
from ..model.course import CourseTutor, Enrollment, EnrollmentStatus
from ..permissions import Principal, ResourceFacts, check_permission
from ..repositories import (
    BaseRepository,
    CohortRepository,
    CourseRepository,
    CourseTutorRepository,
    DuplicateError,
    EnrollmentRepository,
    UserRepository,
)
from ..settings import settings
from .validation import (
    course_facts,
    partition_by_role,
    require_cohort_in_course,
    require_course,
    require_user_with_role,
    unique_ids,
)

logger = logging.getLogger(__name__)


class RelationshipReconciler:
    """Assign tutors to courses and enroll learners into cohorts."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.courses = CourseRepository(db)
        self.cohorts = CohortRepository(db)
        self.course_tutors = CourseTutorRepository(db)
        self.enrollments = EnrollmentRepository(db)

    # Tutors

    def assign_tutor(self, principal: Principal, course_id: str, tutor_id: str) -> CourseTutor:
        """
        Assign a single tutor to a course.

        Raises:
            NotFoundException: The course or the user does not exist
            BadRequestException: The user is not a tutor
            ConflictException: The tutor is already assigned
        """
        check_permission(principal, "course_tutor", "create", ResourceFacts(resource_id=course_id))

        require_course(self.courses, course_id)
        require_user_with_role(self.users, tutor_id, UserRole.tutor)

        if self.course_tutors.find_pair(course_id, tutor_id) is not None:
            raise ConflictException("Tutor is already assigned to this course")

        try:
            assignment = self.course_tutors.create(CourseTutor(course_id=course_id, tutor_id=tutor_id))
        except DuplicateError:
            raise ConflictException("Tutor is already assigned to this course")

        logger.info(f"Assigned tutor {tutor_id} to course {course_id}")
        return assignment

    def bulk_assign_tutors(self, principal: Principal, course_id: str, tutor_ids: List[str]) -> ReconcileResult:
        """
        Assign every tutor in ``tutor_ids`` that is not yet assigned.

        If any id is not a visible tutor the whole batch is rejected and
        nothing is written.
        """
        check_permission(principal, "course_tutor", "create", ResourceFacts(resource_id=course_id))

        require_course(self.courses, course_id)
        requested = self._require_ids(tutor_ids, "tutor")

        result = self._reconcile(
            requested,
            role=UserRole.tutor,
            existing=lambda ids: self.course_tutors.assigned_ids(course_id, ids),
            build=lambda user_id: CourseTutor(course_id=course_id, tutor_id=user_id),
            repository=self.course_tutors,
            target=f"course {course_id}",
        )
        logger.info(f"Bulk tutor assignment on course {course_id}: {result.created_count} created, {result.skipped_count} skipped")
        return result

    def remove_tutor(self, principal: Principal, course_id: str, tutor_id: str) -> CourseTutor:
        check_permission(principal, "course_tutor", "delete", ResourceFacts(resource_id=course_id))

        require_course(self.courses, course_id)
        assignment = self.course_tutors.find_pair(course_id, tutor_id)
        if assignment is None:
            raise NotFoundException("Tutor is not assigned to this course")

        self.course_tutors.archive(assignment)
        logger.info(f"Removed tutor {tutor_id} from course {course_id}")
        return assignment

    def list_tutors(self, principal: Principal, course_id: str) -> List[User]:
        check_permission(principal, "course_tutor", "list", ResourceFacts(resource_id=course_id))
        require_course(self.courses, course_id)
        return self.course_tutors.tutors_of(course_id)

    # Learners

    def enroll_learner(self, principal: Principal, course_id: str, cohort_id: str, learner_id: str) -> Enrollment:
        """
        Enroll a single learner into a cohort of the course.

        Raises:
            NotFoundException: The course, cohort or user does not exist
            BadRequestException: The cohort belongs to another course or the user is not a learner
            ConflictException: The learner is already enrolled in the cohort
        """
        check_permission(principal, "enrollment", "create", ResourceFacts(resource_id=cohort_id))

        require_course(self.courses, course_id)
        require_cohort_in_course(self.cohorts, course_id, cohort_id)
        require_user_with_role(self.users, learner_id, UserRole.learner)

        if self.enrollments.find_pair(learner_id, cohort_id) is not None:
            raise ConflictException("Learner is already enrolled in this cohort")

        try:
            enrollment = self.enrollments.create(
                Enrollment(user_id=learner_id, cohort_id=cohort_id, status=EnrollmentStatus.active)
            )
        except DuplicateError:
            raise ConflictException("Learner is already enrolled in this cohort")

        logger.info(f"Enrolled learner {learner_id} into cohort {cohort_id}")
        return enrollment

    def bulk_enroll_learners(self, principal: Principal, course_id: str, cohort_id: str, learner_ids: List[str]) -> ReconcileResult:
        check_permission(principal, "enrollment", "create", ResourceFacts(resource_id=cohort_id))

        require_course(self.courses, course_id)
        require_cohort_in_course(self.cohorts, course_id, cohort_id)
        requested = self._require_ids(learner_ids, "learner")

        result = self._reconcile(
            requested,
            role=UserRole.learner,
            existing=lambda ids: self.enrollments.enrolled_ids(cohort_id, ids),
            build=lambda user_id: Enrollment(user_id=user_id, cohort_id=cohort_id, status=EnrollmentStatus.active),
            repository=self.enrollments,
            target=f"cohort {cohort_id}",
        )
        logger.info(f"Bulk enrollment into cohort {cohort_id}: {result.created_count} created, {result.skipped_count} skipped")
        return result

    def remove_learner(self, principal: Principal, course_id: str, cohort_id: str, learner_id: str) -> Enrollment:
        """
        Drop a learner from a cohort.

        The enrollment first becomes ``dropped`` and is then archived, so a
        later enrollment of the same learner starts a fresh row.
        """
        check_permission(principal, "enrollment", "delete", ResourceFacts(resource_id=cohort_id))

        require_course(self.courses, course_id)
        require_cohort_in_course(self.cohorts, course_id, cohort_id)
        enrollment = self.enrollments.find_pair(learner_id, cohort_id)
        if enrollment is None:
            raise NotFoundException("Learner is not enrolled in this cohort")

        self.enrollments.update(enrollment, {"status": EnrollmentStatus.dropped})
        self.enrollments.archive(enrollment)
        logger.info(f"Removed learner {learner_id} from cohort {cohort_id}")
        return enrollment

    def list_learners(self, principal: Principal, course_id: str, cohort_id: Optional[str] = None) -> List[CohortLearners]:
        """Active learners of every cohort of the course, or of ``cohort_id`` only."""
        check_permission(principal, "enrollment", "list",
                         course_facts(self.course_tutors, principal, course_id))

        require_course(self.courses, course_id)
        if cohort_id is not None:
            require_cohort_in_course(self.cohorts, course_id, cohort_id)

        return [
            CohortLearners(
                cohort_id=cohort.id,
                cohort_name=cohort.name,
                learners=[UserList.model_validate(user) for user in self.enrollments.active_learners_of(cohort.id)],
            )
            for cohort in self.cohorts.list_for_course(course_id, cohort_id)
        ]

    # Reconciliation

    def _require_ids(self, ids: List[str], kind: str) -> List[str]:
        requested = unique_ids(ids or [])
        if not requested:
            raise BadRequestException(f"At least one {kind} id is required")
        return requested

    def _reconcile(
        self,
        requested: List[str],
        role: UserRole,
        existing: Callable[[List[str]], Set[str]],
        build: Callable[[str], object],
        repository: BaseRepository,
        target: str,
    ) -> ReconcileResult:
        """
        Validate, diff and insert, retrying when a concurrent writer wins.

        Every attempt re-reads role membership and existing pairs, so a
        retry sees the rows committed by the competing call.
        """
        attempts = max(settings.RECONCILE_MAX_RETRIES, 0) + 1
        for attempt in range(1, attempts + 1):
            _, invalid = partition_by_role(self.users, requested, role)
            if invalid:
                raise BadRequestException(
                    f"The following IDs are not valid {role.value}s: {', '.join(invalid)}"
                )

            already = existing(requested)
            to_insert = [user_id for user_id in requested if user_id not in already]
            if to_insert:
                try:
                    repository.create_many([build(user_id) for user_id in to_insert])
                except DuplicateError:
                    logger.warning(f"Concurrent write on {target}, reconciling again (attempt {attempt}/{attempts})")
                    continue

            return ReconcileResult(created_count=len(to_insert), skipped_count=len(already))

        raise ConflictException(f"Could not reconcile {target} after {attempts} attempts")
