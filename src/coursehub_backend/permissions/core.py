"""
Authorization engine.

A pure decision procedure over (actor, resource, action, facts). Every
resource declares its permission table in ``handlers_impl``; this module
registers them and exposes the entry points consulted before each mutation.
"""

import logging
from typing import List, Optional

from coursehub_backend.api.exceptions import ForbiddenException
from coursehub_backend.model.auth import UserRole
from coursehub_backend.permissions.handlers import Decision, ResourceFacts, permission_registry
from coursehub_backend.permissions.handlers_impl import (
    UserPermissionHandler,
    CoursePermissionHandler,
    CohortPermissionHandler,
    CourseContentPermissionHandler,
    CourseTutorPermissionHandler,
    EnrollmentPermissionHandler,
)
from coursehub_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


def initialize_permission_handlers():
    """Initialize and register all permission handlers"""
    permission_registry.register(UserPermissionHandler())
    permission_registry.register(CoursePermissionHandler())
    permission_registry.register(CohortPermissionHandler())
    permission_registry.register(CourseContentPermissionHandler())
    permission_registry.register(CourseTutorPermissionHandler())
    permission_registry.register(EnrollmentPermissionHandler())


def authorize(principal: Principal, resource: str, action: str, facts: Optional[ResourceFacts] = None) -> Decision:
    """Decide whether ``principal`` may perform ``action`` on ``resource``."""
    handler = permission_registry.get_handler(resource)
    if handler is None:
        return Decision.deny(f"unknown resource '{resource}'")
    return handler.can_perform_action(principal, action, facts)


def can_act(principal: Principal, resource: str, action: str, facts: Optional[ResourceFacts] = None) -> bool:
    return authorize(principal, resource, action, facts).allowed


def check_permission(principal: Principal, resource: str, action: str, facts: Optional[ResourceFacts] = None) -> None:
    """
    Raise ``ForbiddenException`` unless the action is allowed.

    The exception detail names the attempted action and the targeted resource.
    """
    decision = authorize(principal, resource, action, facts)
    if decision.allowed:
        return

    resource_id = facts.resource_id if facts is not None else None
    logger.warning(
        "Denied %s:%s on %s for user %s (%s)",
        resource, action, resource_id, principal.user_id, decision.reason
    )
    raise ForbiddenException(detail={
        "action": action,
        "resource": resource,
        "resource_id": resource_id,
        "reason": decision.reason,
    })


def user_create_action(role: UserRole) -> str:
    """Map the role of a user about to be created to the action that gates it"""
    if role == UserRole.super_admin:
        return "create_super_admin"
    if role == UserRole.admin:
        return "create_admin"
    return "create"


def user_role_change_actions(current_role: UserRole, requested_role: Optional[UserRole]) -> List[str]:
    """Actions that gate changing a user's role from ``current_role`` to ``requested_role``"""
    if requested_role is None or requested_role == current_role:
        return []
    actions = ["change_role"]
    if requested_role == UserRole.admin:
        actions.append("promote_admin")
    elif requested_role == UserRole.super_admin:
        actions.append("promote_super_admin")
    return actions


def visible_user_roles(principal: Principal) -> Optional[List[UserRole]]:
    """
    Role filter applied when listing users.

    Returns:
        None when every user is visible, otherwise the visible roles

    Raises:
        ForbiddenException: If the principal may not list users at all
    """
    check_permission(principal, "user", "list")
    if principal.is_super_admin:
        return None
    return [role for role in UserRole if role != UserRole.super_admin]


# Initialize handlers on module import
initialize_permission_handlers()
