from enum import Enum
from sqlalchemy import (
    BigInteger, Column, DateTime, Enum as SAEnum, ForeignKey,
    Index, Integer, String, Text, func, text
)
from sqlalchemy.orm import relationship

from .auth import _enum_values
from .base import Base, generate_uuid


class CourseLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class ContentType(str, Enum):
    section = "section"
    lesson = "lesson"
    assessment = "assessment"


class EnrollmentStatus(str, Enum):
    active = "active"
    completed = "completed"
    dropped = "dropped"


# Uniqueness of relationship pairs only applies to rows that are not archived
_NOT_ARCHIVED = text("archived_at IS NULL")


class Course(Base):
    __tablename__ = 'course'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'))
    archived_at = Column(DateTime(True))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    difficulty_level = Column(SAEnum(CourseLevel, name='course_level', values_callable=_enum_values), nullable=False)

    # Relationships
    creator = relationship('User', foreign_keys=[created_by], back_populates='created_courses')
    course_contents = relationship("CourseContent", back_populates="course", uselist=True, lazy="select")
    course_tutors = relationship("CourseTutor", back_populates="course", uselist=True, lazy="select")
    cohorts = relationship("Cohort", back_populates="course", uselist=True, lazy="select")


class Cohort(Base):
    __tablename__ = 'cohort'
    __table_args__ = (
        Index('cohort_course_id_idx', 'course_id'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    archived_at = Column(DateTime(True))
    name = Column(String(100), nullable=False)
    start_date = Column(DateTime(True), nullable=False)
    end_date = Column(DateTime(True), nullable=False)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)

    # Relationships
    course = relationship('Course', back_populates='cohorts')
    enrollments = relationship('Enrollment', back_populates='cohort', uselist=True, lazy="select")


class CourseContent(Base):
    __tablename__ = 'course_content'
    __table_args__ = (
        Index('course_content_course_parent_idx', 'course_id', 'parent_id'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    archived_at = Column(DateTime(True))
    topic = Column(String(255), nullable=False)
    content_type = Column(SAEnum(ContentType, name='content_type', values_callable=_enum_values), nullable=False)
    sequence_order = Column(Integer, nullable=False, default=0)
    # Creation order within the course, breaks sequence_order ties
    insertion_index = Column(BigInteger, nullable=False, default=0)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    parent_id = Column(ForeignKey('course_content.id', ondelete='SET NULL'), nullable=True)

    # Relationships
    course = relationship('Course', back_populates='course_contents')


class CourseTutor(Base):
    __tablename__ = 'course_tutor'
    __table_args__ = (
        Index('course_tutor_active_key', 'course_id', 'tutor_id', unique=True,
              postgresql_where=_NOT_ARCHIVED, sqlite_where=_NOT_ARCHIVED),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    archived_at = Column(DateTime(True))
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    tutor_id = Column(ForeignKey('user.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)

    # Relationships
    course = relationship('Course', back_populates='course_tutors')
    tutor = relationship('User', back_populates='tutor_assignments')


class Enrollment(Base):
    __tablename__ = 'enrollment'
    __table_args__ = (
        Index('enrollment_active_key', 'user_id', 'cohort_id', unique=True,
              postgresql_where=_NOT_ARCHIVED, sqlite_where=_NOT_ARCHIVED),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    archived_at = Column(DateTime(True))
    status = Column(SAEnum(EnrollmentStatus, name='enrollment_status', values_callable=_enum_values), nullable=False, default=EnrollmentStatus.active)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    cohort_id = Column(ForeignKey('cohort.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    # Weak pointer to where the learner stopped
    last_accessed_content_id = Column(ForeignKey('course_content.id', ondelete='SET NULL'), nullable=True)

    # Relationships
    learner = relationship('User', back_populates='enrollments')
    cohort = relationship('Cohort', back_populates='enrollments')
    last_accessed_content = relationship('CourseContent', foreign_keys=[last_accessed_content_id])
