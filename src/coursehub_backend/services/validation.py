"""
Lookups shared by the services.

Each helper resolves an id against a store and raises the HTTP-facing
exception a missing or mismatched entity maps to.
"""

from typing import Iterable, List, Optional, Set, Tuple

from ..api.exceptions import BadRequestException, NotFoundException
from ..model.auth import User, UserRole
from ..model.course import Cohort, Course
from ..permissions.handlers import ResourceFacts
from ..permissions.principal import Principal
from ..repositories import CohortRepository, CourseRepository, CourseTutorRepository, UserRepository


def unique_ids(ids: Iterable[str]) -> List[str]:
    """De-duplicate ids, keeping the order of first occurrence."""
    seen: Set[str] = set()
    result = []
    for entity_id in ids:
        key = str(entity_id)
        if key not in seen:
            seen.add(key)
            result.append(key)
    return result


def require_course(courses: CourseRepository, course_id: str) -> Course:
    course = courses.get_by_id_optional(course_id)
    if course is None:
        raise NotFoundException("Course not found")
    return course


def require_cohort_in_course(cohorts: CohortRepository, course_id: str, cohort_id: str) -> Cohort:
    cohort = cohorts.get_by_id_optional(cohort_id)
    if cohort is None:
        raise NotFoundException("Cohort not found")
    if str(cohort.course_id) != str(course_id):
        raise BadRequestException("Cohort does not belong to this course")
    return cohort


def require_user_with_role(users: UserRepository, user_id: str, role: UserRole) -> User:
    """
    Resolve a visible user and verify its role.

    Raises:
        NotFoundException: The user does not exist or is archived
        BadRequestException: The user exists with another role
    """
    user = users.get_by_id_optional(user_id)
    if user is None:
        raise NotFoundException("User not found")
    if user.role != role:
        raise BadRequestException(f"User is not a {role.value}")
    return user


def partition_by_role(users: UserRepository, user_ids: List[str], role: UserRole) -> Tuple[List[str], List[str]]:
    """
    Split ``user_ids`` into those that are visible users with ``role`` and the rest.

    One batched lookup; both lists keep the input order.
    """
    matching = users.ids_with_role(user_ids, role)
    valid = [user_id for user_id in user_ids if user_id in matching]
    invalid = [user_id for user_id in user_ids if user_id not in matching]
    return valid, invalid


def course_facts(course_tutors: CourseTutorRepository, principal: Principal, course_id: str, resource_id: Optional[str] = None) -> ResourceFacts:
    """
    Facts for rules that grant access to tutors assigned to a course.

    The assignment lookup only runs for tutors, no other role depends on it.
    """
    assigned = False
    if principal.role == UserRole.tutor and principal.user_id is not None:
        assigned = course_tutors.is_assigned(course_id, principal.user_id)
    return ResourceFacts(resource_id=resource_id or course_id, tutor_assigned=assigned)
