import logging
from typing import List, Tuple

from sqlalchemy.orm import Session

from ..api.exceptions import BadRequestException
from ..interface.courses import CohortCreate, CohortGet, CourseCreate, CourseDetail, CourseGet, CourseQuery, CourseUpdate
from ..interface.users import UserList
from ..model.course import Cohort, Course
from ..permissions import Principal, ResourceFacts, check_permission
from ..repositories import CohortRepository, CourseRepository, CourseTutorRepository
from .validation import require_course

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("title", "difficulty_level")


def _course_facts(course: Course) -> ResourceFacts:
    return ResourceFacts(resource_id=course.id, owner_id=course.created_by)


class CourseService:
    """Courses and their cohorts."""

    def __init__(self, db: Session):
        self.db = db
        self.courses = CourseRepository(db)
        self.cohorts = CohortRepository(db)
        self.course_tutors = CourseTutorRepository(db)

    def create_course(self, principal: Principal, payload: CourseCreate) -> Course:
        check_permission(principal, "course", "create")

        course = self.courses.create(Course(
            title=payload.title,
            description=payload.description,
            difficulty_level=payload.difficulty_level,
            created_by=principal.get_user_id_or_throw(),
        ))
        logger.info(f"Created course {course.id} by {principal.user_id}")
        return course

    def get_course(self, principal: Principal, course_id: str) -> CourseDetail:
        """The course with its creator, assigned tutors and cohorts."""
        check_permission(principal, "course", "get", ResourceFacts(resource_id=course_id))
        course = require_course(self.courses, course_id)

        creator = course.creator
        if creator is not None and creator.archived_at is not None:
            creator = None

        return CourseDetail(
            **CourseGet.model_validate(course).model_dump(),
            creator=UserList.model_validate(creator) if creator else None,
            tutors=[UserList.model_validate(user) for user in self.course_tutors.tutors_of(course.id)],
            cohorts=[CohortGet.model_validate(cohort) for cohort in self.cohorts.list_for_course(course.id)],
        )

    def list_courses(self, principal: Principal, params: CourseQuery) -> Tuple[List[Course], int]:
        check_permission(principal, "course", "list")
        return self.courses.search(
            title=params.search,
            difficulty_level=params.difficulty_level,
            limit=params.limit,
            offset=params.skip,
        )

    def update_course(self, principal: Principal, course_id: str, payload: CourseUpdate) -> Course:
        """Update a course; its creator may do so regardless of role."""
        course = require_course(self.courses, course_id)
        check_permission(principal, "course", "update", _course_facts(course))

        updates = payload.model_dump(exclude_unset=True)
        for field in _REQUIRED_FIELDS:
            if field in updates and updates[field] is None:
                raise BadRequestException(f"{field} cannot be null")

        course = self.courses.update(course, updates)
        logger.info(f"Updated course {course.id}: {sorted(updates)}")
        return course

    def delete_course(self, principal: Principal, course_id: str) -> Course:
        course = require_course(self.courses, course_id)
        check_permission(principal, "course", "delete", _course_facts(course))

        self.courses.archive(course)
        logger.info(f"Archived course {course.id}")
        return course

    def create_cohort(self, principal: Principal, course_id: str, payload: CohortCreate) -> Cohort:
        check_permission(principal, "cohort", "create", ResourceFacts(resource_id=course_id))
        require_course(self.courses, course_id)

        cohort = self.cohorts.create(Cohort(
            course_id=course_id,
            name=payload.name,
            start_date=payload.start_date,
            end_date=payload.end_date,
        ))
        logger.info(f"Created cohort {cohort.id} in course {course_id}")
        return cohort

    def list_cohorts(self, principal: Principal, course_id: str) -> List[Cohort]:
        check_permission(principal, "cohort", "list", ResourceFacts(resource_id=course_id))
        require_course(self.courses, course_id)
        return self.cohorts.list_for_course(course_id)
