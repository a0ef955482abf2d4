"""
Fake data seeder.

Fills a development database with Faker-generated users, courses, cohorts,
content, tutor assignments and enrollments.
"""

import random
from datetime import datetime, timedelta, timezone

import click
from faker import Faker

from coursehub_backend.database import get_db
from coursehub_backend.model.auth import User, UserRole
from coursehub_backend.model.course import (
    Cohort,
    ContentType,
    Course,
    CourseContent,
    CourseLevel,
    CourseTutor,
    Enrollment,
)

fake = Faker()


def create_users(session, role: UserRole, count: int):
    users = []
    for _ in range(count):
        user = User(
            given_name=fake.first_name(),
            family_name=fake.last_name(),
            email=fake.unique.email(),
            role=role,
        )
        session.add(user)
        users.append(user)
    session.flush()
    return users


def create_course_contents(session, course):
    insertion_index = 0
    for section_order in range(random.randint(2, 4)):
        insertion_index += 1
        section = CourseContent(
            course_id=course.id,
            topic=fake.catch_phrase(),
            content_type=ContentType.section,
            sequence_order=section_order,
            insertion_index=insertion_index,
        )
        session.add(section)
        session.flush()

        for lesson_order in range(random.randint(1, 4)):
            insertion_index += 1
            session.add(CourseContent(
                course_id=course.id,
                parent_id=section.id,
                topic=fake.sentence(nb_words=4).rstrip("."),
                content_type=random.choice([ContentType.lesson, ContentType.lesson, ContentType.assessment]),
                sequence_order=lesson_order,
                insertion_index=insertion_index,
            ))


def create_courses(session, admins, tutors, learners, count: int):
    for _ in range(count):
        course = Course(
            title=fake.bs().title(),
            description=fake.paragraph(),
            difficulty_level=random.choice(list(CourseLevel)),
            created_by=random.choice(admins).id,
        )
        session.add(course)
        session.flush()

        create_course_contents(session, course)

        for tutor in random.sample(tutors, k=min(2, len(tutors))):
            session.add(CourseTutor(course_id=course.id, tutor_id=tutor.id))

        start = datetime.now(timezone.utc) + timedelta(days=random.randint(-60, 60))
        for idx in range(random.randint(1, 2)):
            cohort = Cohort(
                course_id=course.id,
                name=f"{start.year} #{idx + 1}",
                start_date=start,
                end_date=start + timedelta(weeks=random.randint(6, 14)),
            )
            session.add(cohort)
            session.flush()

            for learner in random.sample(learners, k=min(random.randint(3, 10), len(learners))):
                session.add(Enrollment(user_id=learner.id, cohort_id=cohort.id))


@click.command()
@click.option("--courses", "course_count", default=5, type=int)
@click.option("--learners", "learner_count", default=30, type=int)
@click.option("--tutors", "tutor_count", default=6, type=int)
@click.option("--seed", "random_seed", default=None, type=int, help="Seed for reproducible data")
def seed(course_count, learner_count, tutor_count, random_seed):
    """Generate demo data."""

    if random_seed is not None:
        random.seed(random_seed)
        Faker.seed(random_seed)

    with next(get_db()) as db:
        admins = create_users(db, UserRole.admin, 2)
        tutors = create_users(db, UserRole.tutor, tutor_count)
        learners = create_users(db, UserRole.learner, learner_count)
        create_courses(db, admins, tutors, learners, course_count)
        db.commit()

    click.echo(click.style(
        f"Seeded {len(admins) + len(tutors) + len(learners)} users and {course_count} courses",
        fg="green"
    ))
