"""
User management.

Role restrictions are enforced through the ``user`` permission table:
SuperAdmins only come from the bootstrap path, Admins are created by
SuperAdmins, and an Admin never reaches a SuperAdmin record.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..api.exceptions import BadRequestException, NotFoundException
from ..interface.users import UserCreate, UserQuery, UserUpdate
from ..model.auth import User, UserRole, UserStatus
from ..permissions import (
    Principal,
    ResourceFacts,
    check_permission,
    user_create_action,
    user_role_change_actions,
    visible_user_roles,
)
from ..repositories import DuplicateError, UserRepository

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("email", "role", "status")


def _user_facts(user: User, requested_role: Optional[UserRole] = None) -> ResourceFacts:
    return ResourceFacts(resource_id=user.id, target_role=user.role, requested_role=requested_role)


class UserService:

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)

    def create_user(self, principal: Principal, payload: UserCreate) -> User:
        check_permission(principal, "user", user_create_action(payload.role),
                         ResourceFacts(requested_role=payload.role))
        return self._create(payload)

    def bootstrap_super_admin(self, payload: UserCreate) -> User:
        """
        Create a SuperAdmin outside the permission table.

        Only the operator CLI calls this; the API has no route to it.
        """
        payload = payload.model_copy(update={"role": UserRole.super_admin, "status": UserStatus.active})
        user = self._create(payload)
        logger.warning(f"Bootstrapped super admin {user.id} ({user.email})")
        return user

    def list_users(self, principal: Principal, params: UserQuery) -> List[User]:
        roles = visible_user_roles(principal)
        return self.users.list_visible(roles=roles, limit=params.limit, offset=params.skip)

    def get_user(self, principal: Principal, user_id: str) -> User:
        user = self._require_user(user_id)
        check_permission(principal, "user", "get", _user_facts(user))
        return user

    def update_user(self, principal: Principal, user_id: str, payload: UserUpdate) -> User:
        user = self._require_user(user_id)
        updates = payload.model_dump(exclude_unset=True)
        requested_role = updates.get("role")

        check_permission(principal, "user", "update", _user_facts(user, requested_role))
        for action in user_role_change_actions(user.role, requested_role):
            check_permission(principal, "user", action, _user_facts(user, requested_role))

        for field in _REQUIRED_FIELDS:
            if field in updates and updates[field] is None:
                raise BadRequestException(f"{field} cannot be null")

        email = updates.get("email")
        if email is not None and email != user.email:
            self._require_free_email(email)

        try:
            user = self.users.update(user, updates)
        except DuplicateError:
            raise BadRequestException("Email is already in use")

        logger.info(f"Updated user {user.id}: {sorted(updates)}")
        return user

    def delete_user(self, principal: Principal, user_id: str) -> User:
        """Suspend the account, then archive it."""
        user = self._require_user(user_id)
        check_permission(principal, "user", "delete", _user_facts(user))

        self.users.update(user, {"status": UserStatus.suspended})
        self.users.archive(user)
        logger.info(f"Archived user {user.id}")
        return user

    def _create(self, payload: UserCreate) -> User:
        self._require_free_email(payload.email)
        try:
            user = self.users.create(User(
                given_name=payload.given_name,
                family_name=payload.family_name,
                email=payload.email,
                role=payload.role,
                status=payload.status,
            ))
        except DuplicateError:
            raise BadRequestException("Email is already in use")

        logger.info(f"Created {user.role.value} {user.id}")
        return user

    def _require_user(self, user_id: str) -> User:
        user = self.users.get_by_id_optional(user_id)
        if user is None:
            raise NotFoundException("User not found")
        return user

    def _require_free_email(self, email: str) -> None:
        if self.users.find_by_email(email) is not None:
            raise BadRequestException("Email is already in use")
