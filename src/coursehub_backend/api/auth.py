"""
Actor resolution.

Credentials are verified upstream (gateway or identity provider), which
forwards the id of the authenticated user in ``settings.ACTOR_HEADER``.
This module turns that id into a ``Principal``.
"""

import logging
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from coursehub_backend.api.exceptions import ForbiddenException, UnauthorizedException
from coursehub_backend.database import get_db
from coursehub_backend.model.auth import UserStatus
from coursehub_backend.permissions.principal import Principal
from coursehub_backend.repositories import UserRepository
from coursehub_backend.settings import settings

logger = logging.getLogger(__name__)


def get_current_permissions(request: Request, db: Session = Depends(get_db)) -> Principal:

    user_id = request.headers.get(settings.ACTOR_HEADER)

    if not user_id:
        raise UnauthorizedException("Missing actor")

    user = UserRepository(db).get_by_id_optional(user_id)

    if user is None:
        logger.warning(f"Unknown or archived actor {user_id}")
        raise UnauthorizedException("Unknown actor")

    if user.status != UserStatus.active:
        raise ForbiddenException(f"User account is {user.status.value}")

    return Principal(user_id=user.id, role=user.role)
