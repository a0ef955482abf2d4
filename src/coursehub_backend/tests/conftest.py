"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure coursehub_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from coursehub_backend.database import get_db
from coursehub_backend.model import Base, Cohort, Course, CourseLevel, CourseTutor, User, UserRole


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(test_db):
    """Factory persisting a user with the given role."""

    def _make_user(role: UserRole = UserRole.learner, **kwargs) -> User:
        suffix = uuid4().hex[:8]
        user = User(
            given_name=kwargs.pop("given_name", "Test"),
            family_name=kwargs.pop("family_name", f"User {suffix}"),
            email=kwargs.pop("email", f"{role.value}.{suffix}@example.com"),
            role=role,
            **kwargs,
        )
        test_db.add(user)
        test_db.commit()
        test_db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def super_admin(make_user) -> User:
    return make_user(UserRole.super_admin, given_name="Sue")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.admin, given_name="Ada")


@pytest.fixture
def tutor(make_user) -> User:
    return make_user(UserRole.tutor, given_name="Tom")


@pytest.fixture
def learner(make_user) -> User:
    return make_user(UserRole.learner, given_name="Lea")


@pytest.fixture
def make_course(test_db):

    def _make_course(creator: User, title: str = "Algorithms", **kwargs) -> Course:
        course = Course(
            title=title,
            difficulty_level=kwargs.pop("difficulty_level", CourseLevel.beginner),
            created_by=creator.id,
            **kwargs,
        )
        test_db.add(course)
        test_db.commit()
        test_db.refresh(course)
        return course

    return _make_course


@pytest.fixture
def course(make_course, admin) -> Course:
    return make_course(admin)


@pytest.fixture
def make_cohort(test_db):

    def _make_cohort(course: Course, name: str = "Spring") -> Cohort:
        start = datetime(2026, 3, 1, tzinfo=timezone.utc)
        cohort = Cohort(course_id=course.id, name=name, start_date=start, end_date=start + timedelta(weeks=12))
        test_db.add(cohort)
        test_db.commit()
        test_db.refresh(cohort)
        return cohort

    return _make_cohort


@pytest.fixture
def cohort(make_cohort, course) -> Cohort:
    return make_cohort(course)


@pytest.fixture
def assign(test_db):
    """Assign a tutor to a course directly in the store."""

    def _assign(course: Course, tutor: User) -> CourseTutor:
        row = CourseTutor(course_id=course.id, tutor_id=tutor.id)
        test_db.add(row)
        test_db.commit()
        return row

    return _assign


@pytest.fixture
def client(test_db):
    """Test client bound to the test database; the actor is sent in the actor header."""
    from fastapi.testclient import TestClient
    from coursehub_backend.server import app

    app.dependency_overrides[get_db] = lambda: test_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

