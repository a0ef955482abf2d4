from enum import Enum
from sqlalchemy import Column, DateTime, Enum as SAEnum, Index, String, func
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid


class UserRole(str, Enum):
    super_admin = "super_admin"
    admin = "admin"
    tutor = "tutor"
    learner = "learner"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = 'user'
    __table_args__ = (
        Index('user_role_idx', 'role'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    archived_at = Column(DateTime(True))
    given_name = Column(String(255))
    family_name = Column(String(255))
    email = Column(String(320), unique=True, nullable=False)
    role = Column(SAEnum(UserRole, name='user_role', values_callable=_enum_values), nullable=False, default=UserRole.learner)
    status = Column(SAEnum(UserStatus, name='user_status', values_callable=_enum_values), nullable=False, default=UserStatus.active)

    # Relationships
    created_courses = relationship("Course", foreign_keys="Course.created_by", back_populates="creator", uselist=True, lazy="select")
    tutor_assignments = relationship("CourseTutor", back_populates="tutor", uselist=True, lazy="select")
    enrollments = relationship("Enrollment", back_populates="learner", uselist=True, lazy="select")
