from abc import ABC
from typing import ClassVar, Dict, FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, Field

from coursehub_backend.model.auth import UserRole
from coursehub_backend.permissions.principal import Principal


class ResourceFacts(BaseModel):
    """Facts about the targeted resource, gathered by the caller.

    The engine never reads the stores itself; every ownership or assignment
    lookup a rule depends on is supplied here.
    """
    resource_id: Optional[str] = None
    owner_id: Optional[str] = None
    target_role: Optional[UserRole] = None
    requested_role: Optional[UserRole] = None
    tutor_assigned: bool = False


class Decision(BaseModel):
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


class Rule(BaseModel):
    """One row of a permission table.

    roles: roles that are granted the action outright
    allow_self: the actor acting on its own user record
    allow_owner: the actor owns the resource (``facts.owner_id``)
    allow_assigned_tutor: a tutor currently assigned to the resource's course
    protect_super_admin: only a SuperAdmin (or the record itself) may target a SuperAdmin
    """
    roles: FrozenSet[UserRole] = Field(default_factory=frozenset)
    allow_self: bool = False
    allow_owner: bool = False
    allow_assigned_tutor: bool = False
    protect_super_admin: bool = False

    model_config = ConfigDict(frozen=True)

    def evaluate(self, principal: Principal, facts: ResourceFacts) -> Decision:
        acting_on_self = self.allow_self and principal.is_self(facts.resource_id)

        if (
            self.protect_super_admin
            and facts.target_role == UserRole.super_admin
            and not principal.is_super_admin
            and not acting_on_self
        ):
            return Decision.deny("only a super admin may target a super admin")

        if principal.role in self.roles:
            return Decision.allow()
        if acting_on_self:
            return Decision.allow()
        if self.allow_owner and principal.is_self(facts.owner_id):
            return Decision.allow()
        if self.allow_assigned_tutor and principal.role == UserRole.tutor and facts.tutor_assigned:
            return Decision.allow()

        return Decision.deny(f"role '{principal.role.value}' is not permitted")


class PermissionHandler(ABC):
    """Base class for resource-specific permission handlers.

    Subclasses declare their permission table in ``RULES``; actions missing
    from the table are denied.
    """

    resource_name: ClassVar[str]
    RULES: ClassVar[Dict[str, Rule]] = {}

    def can_perform_action(self, principal: Principal, action: str, facts: Optional[ResourceFacts] = None) -> Decision:
        rule = self.RULES.get(action)
        if rule is None:
            return Decision.deny(f"unknown action '{action}' on '{self.resource_name}'")
        return rule.evaluate(principal, facts or ResourceFacts())


class PermissionRegistry:
    """Registry for managing resource permission handlers"""

    _instance = None
    _handlers: Dict[str, PermissionHandler] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def register(self, handler: PermissionHandler):
        """Register a permission handler for its resource"""
        self._handlers[handler.resource_name] = handler

    def get_handler(self, resource: str) -> Optional[PermissionHandler]:
        """Get the permission handler for a resource"""
        return self._handlers.get(resource)


# Global registry instance
permission_registry = PermissionRegistry()
