from typing import Optional
from pydantic import BaseModel, ConfigDict

from coursehub_backend.api.exceptions import NotFoundException
from coursehub_backend.model.auth import UserRole


ADMIN_ROLES = frozenset({UserRole.super_admin, UserRole.admin})


class Principal(BaseModel):
    """The authenticated actor performing an operation"""

    user_id: Optional[str] = None
    role: UserRole

    model_config = ConfigDict(frozen=True)

    @property
    def is_admin(self) -> bool:
        """Admin or SuperAdmin"""
        return self.role in ADMIN_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.super_admin

    def is_self(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.user_id is not None and str(user_id) == str(self.user_id)

    def get_user_id_or_throw(self) -> str:
        """Get user ID or raise exception"""
        if self.user_id is None:
            raise NotFoundException("User ID not found")
        return self.user_id
