from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from coursehub_backend.interface.base import BaseEntityGet, ListQuery
from coursehub_backend.model.auth import UserRole, UserStatus

class UserCreate(BaseModel):
    given_name: Optional[str] = Field(None, min_length=1, max_length=255, description="User's given name")
    family_name: Optional[str] = Field(None, min_length=1, max_length=255, description="User's family name")
    email: EmailStr = Field(..., description="User's email address")
    role: UserRole = Field(UserRole.learner, description="Role of the new user")
    status: UserStatus = Field(UserStatus.active, description="Account status")

    @field_validator('given_name', 'family_name')
    @classmethod
    def validate_names(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Name cannot be empty or only whitespace')
        return v.strip() if v else v

class UserGet(BaseEntityGet):
    id: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    email: str
    role: UserRole
    status: UserStatus

    model_config = ConfigDict(from_attributes=True)

class UserList(BaseModel):
    id: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    email: str
    role: UserRole
    status: UserStatus

    model_config = ConfigDict(from_attributes=True)

class UserUpdate(BaseModel):
    given_name: Optional[str] = Field(None, min_length=1, max_length=255)
    family_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None

class UserQuery(ListQuery):
    pass
