from .base import Base, metadata
from .auth import User, UserRole, UserStatus
from .course import (
    ContentType,
    CourseLevel,
    EnrollmentStatus,
    Course,
    Cohort,
    CourseContent,
    CourseTutor,
    Enrollment,
)

# Import all models to ensure relationships are properly set up
from . import auth, course

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    'UserRole',
    'UserStatus',
    # Course models
    'ContentType',
    'CourseLevel',
    'EnrollmentStatus',
    'Course',
    'Cohort',
    'CourseContent',
    'CourseTutor',
    'Enrollment',
]
