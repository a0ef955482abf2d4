"""
Permission system for the coursehub backend.

Main components:
- principal: the authenticated actor
- handlers: rule/decision types, base handler and registry
- handlers_impl: the permission table of each resource
- core: registration and the authorize/can_act/check_permission entry points
"""

from .principal import Principal, ADMIN_ROLES

from .handlers import (
    Decision,
    ResourceFacts,
    Rule,
    PermissionHandler,
    permission_registry,
)

from .core import (
    authorize,
    can_act,
    check_permission,
    user_create_action,
    user_role_change_actions,
    visible_user_roles,
    initialize_permission_handlers,
)
