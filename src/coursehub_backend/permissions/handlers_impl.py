from coursehub_backend.model.auth import UserRole
from coursehub_backend.permissions.handlers import PermissionHandler, Rule
from coursehub_backend.permissions.principal import ADMIN_ROLES

SUPER_ADMIN_ONLY = frozenset({UserRole.super_admin})
ALL_ROLES = frozenset(UserRole)


class UserPermissionHandler(PermissionHandler):
    """Permission table for user records"""

    resource_name = "user"

    RULES = {
        # SuperAdmins are only created through the bootstrap path
        "create_super_admin": Rule(),
        "create_admin": Rule(roles=SUPER_ADMIN_ONLY),
        "create": Rule(roles=ADMIN_ROLES),
        "list": Rule(roles=ADMIN_ROLES),
        "get": Rule(roles=ADMIN_ROLES, allow_self=True, protect_super_admin=True),
        "update": Rule(roles=ADMIN_ROLES, allow_self=True, protect_super_admin=True),
        "delete": Rule(roles=ADMIN_ROLES, allow_self=True, protect_super_admin=True),
        "change_role": Rule(roles=ADMIN_ROLES),
        "promote_admin": Rule(roles=SUPER_ADMIN_ONLY),
        "promote_super_admin": Rule(roles=SUPER_ADMIN_ONLY),
    }


class CoursePermissionHandler(PermissionHandler):
    """Permission table for courses; ownership suffices for update and delete"""

    resource_name = "course"

    RULES = {
        "create": Rule(roles=ADMIN_ROLES),
        "get": Rule(roles=ALL_ROLES),
        "list": Rule(roles=ALL_ROLES),
        "update": Rule(roles=ADMIN_ROLES, allow_owner=True),
        "delete": Rule(roles=ADMIN_ROLES, allow_owner=True),
    }


class CohortPermissionHandler(PermissionHandler):

    resource_name = "cohort"

    RULES = {
        "create": Rule(roles=ADMIN_ROLES),
        "list": Rule(roles=ALL_ROLES),
    }


class CourseContentPermissionHandler(PermissionHandler):
    """Content of a course is managed by admins or tutors assigned to that course"""

    resource_name = "course_content"

    RULES = {
        "create": Rule(roles=ADMIN_ROLES, allow_assigned_tutor=True),
        "update": Rule(roles=ADMIN_ROLES, allow_assigned_tutor=True),
        "delete": Rule(roles=ADMIN_ROLES, allow_assigned_tutor=True),
        "list": Rule(roles=ALL_ROLES),
    }


class CourseTutorPermissionHandler(PermissionHandler):

    resource_name = "course_tutor"

    RULES = {
        "create": Rule(roles=ADMIN_ROLES),
        "delete": Rule(roles=ADMIN_ROLES),
        "list": Rule(roles=ADMIN_ROLES),
    }


class EnrollmentPermissionHandler(PermissionHandler):

    resource_name = "enrollment"

    RULES = {
        "create": Rule(roles=ADMIN_ROLES),
        "delete": Rule(roles=ADMIN_ROLES),
        "list": Rule(roles=ADMIN_ROLES, allow_assigned_tutor=True),
    }
