"""
User repository: the identity store consulted by the authorization and
reconciliation logic.
"""

from typing import Iterable, List, Optional, Set
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..model.auth import User, UserRole


class UserRepository(BaseRepository[User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def find_by_email(self, email: str, include_archived: bool = True) -> Optional[User]:
        """
        Find a user by email address.

        Archived users still own their address, so they are included by default.

        Args:
            email: Email address

        Returns:
            User if found, None otherwise
        """
        return self.query(include_archived).filter(User.email == email).first()

    def ids_with_role(self, user_ids: Iterable[str], role: UserRole) -> Set[str]:
        """
        Batched role-membership lookup.

        Args:
            user_ids: Candidate user identifiers
            role: Required role

        Returns:
            The subset of ``user_ids`` that are visible users with ``role``
        """
        ids = list(user_ids)
        if not ids:
            return set()
        rows = (
            self.query()
            .with_entities(User.id)
            .filter(User.id.in_(ids), User.role == role)
            .all()
        )
        return {row[0] for row in rows}

    def list_visible(self, roles: Optional[List[UserRole]] = None, limit: Optional[int] = None, offset: Optional[int] = None) -> List[User]:
        """
        List users, optionally restricted to a set of roles.

        Args:
            roles: Roles to include, ``None`` for all
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Users ordered by family and given name
        """
        query = self.query()
        if roles is not None:
            query = query.filter(User.role.in_(roles))
        query = query.order_by(User.family_name, User.given_name, User.email)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def exists_with_role(self, role: UserRole) -> bool:
        return self.query().filter(User.role == role).count() > 0
