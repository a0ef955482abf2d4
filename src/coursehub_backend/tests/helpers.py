from coursehub_backend.model import User
from coursehub_backend.permissions.principal import Principal
from coursehub_backend.settings import settings


def as_principal(user: User) -> Principal:
    return Principal(user_id=user.id, role=user.role)


def actor(user: User) -> dict:
    """Request headers identifying ``user`` as the actor."""
    return {settings.ACTOR_HEADER: user.id}
