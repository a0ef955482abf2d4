from typing import Annotated, List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursehub_backend.api.auth import get_current_permissions
from coursehub_backend.database import get_db
from coursehub_backend.interface.users import UserCreate, UserGet, UserList, UserQuery, UserUpdate
from coursehub_backend.permissions.principal import Principal
from coursehub_backend.services.users import UserService

user_router = APIRouter()

@user_router.post("", response_model=UserGet, status_code=201)
def create_user(permissions: Annotated[Principal, Depends(get_current_permissions)], payload: UserCreate, db: Session = Depends(get_db)):
    return UserService(db).create_user(permissions, payload)

@user_router.get("", response_model=List[UserList])
def list_users(permissions: Annotated[Principal, Depends(get_current_permissions)], params: UserQuery = Depends(), db: Session = Depends(get_db)):
    return UserService(db).list_users(permissions, params)

@user_router.get("/{user_id}", response_model=UserGet)
def get_user(permissions: Annotated[Principal, Depends(get_current_permissions)], user_id: str, db: Session = Depends(get_db)):
    return UserService(db).get_user(permissions, user_id)

@user_router.patch("/{user_id}", response_model=UserGet)
def update_user(permissions: Annotated[Principal, Depends(get_current_permissions)], user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    return UserService(db).update_user(permissions, user_id, payload)

@user_router.delete("/{user_id}", status_code=204)
def delete_user(permissions: Annotated[Principal, Depends(get_current_permissions)], user_id: str, db: Session = Depends(get_db)):
    UserService(db).delete_user(permissions, user_id)
