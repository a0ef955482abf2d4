"""
Relationship reconciler tests against an in-memory SQLite store.
"""

import pytest

from coursehub_backend.api.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from coursehub_backend.interface.course_contents import CourseContentCreate
from coursehub_backend.model import ContentType, CourseTutor, Enrollment, EnrollmentStatus, UserRole
from coursehub_backend.services.content_hierarchy import ContentHierarchyManager
from coursehub_backend.services.reconciler import RelationshipReconciler
from coursehub_backend.settings import settings
from coursehub_backend.tests.helpers import as_principal


@pytest.fixture
def reconciler(test_db):
    return RelationshipReconciler(test_db)


@pytest.fixture
def admin_actor(admin):
    return as_principal(admin)


def tutor_rows(db, course_id, include_archived=False):
    query = db.query(CourseTutor).filter(CourseTutor.course_id == course_id)
    if not include_archived:
        query = query.filter(CourseTutor.archived_at.is_(None))
    return query.all()


def enrollment_rows(db, cohort_id, include_archived=False):
    query = db.query(Enrollment).filter(Enrollment.cohort_id == cohort_id)
    if not include_archived:
        query = query.filter(Enrollment.archived_at.is_(None))
    return query.all()


class TestAssignTutor:
    def test_assigns(self, test_db, reconciler, admin_actor, course, tutor):
        row = reconciler.assign_tutor(admin_actor, course.id, tutor.id)

        assert row.tutor_id == tutor.id
        assert [t.id for t in reconciler.list_tutors(admin_actor, course.id)] == [tutor.id]

    def test_second_assignment_conflicts(self, test_db, reconciler, admin_actor, course, tutor):
        reconciler.assign_tutor(admin_actor, course.id, tutor.id)

        with pytest.raises(ConflictException):
            reconciler.assign_tutor(admin_actor, course.id, tutor.id)

        assert len(tutor_rows(test_db, course.id)) == 1

    def test_learner_is_not_a_tutor(self, reconciler, admin_actor, course, learner):
        with pytest.raises(BadRequestException) as exc_info:
            reconciler.assign_tutor(admin_actor, course.id, learner.id)
        assert exc_info.value.detail == "User is not a tutor"

    def test_missing_course_and_user(self, reconciler, admin_actor, course, tutor):
        with pytest.raises(NotFoundException):
            reconciler.assign_tutor(admin_actor, "missing", tutor.id)
        with pytest.raises(NotFoundException):
            reconciler.assign_tutor(admin_actor, course.id, "missing")

    def test_tutor_cannot_assign(self, reconciler, course, tutor):
        with pytest.raises(ForbiddenException):
            reconciler.assign_tutor(as_principal(tutor), course.id, tutor.id)


class TestBulkAssignTutors:
    def test_creates_and_skips(self, test_db, reconciler, admin_actor, course, make_user):
        t1, t2, t3 = (make_user(UserRole.tutor) for _ in range(3))
        reconciler.assign_tutor(admin_actor, course.id, t1.id)

        result = reconciler.bulk_assign_tutors(admin_actor, course.id, [t1.id, t2.id, t3.id])

        assert result.created_count == 2
        assert result.skipped_count == 1
        assert {row.tutor_id for row in tutor_rows(test_db, course.id)} == {t1.id, t2.id, t3.id}

    def test_is_idempotent(self, test_db, reconciler, admin_actor, course, make_user):
        ids = [make_user(UserRole.tutor).id for _ in range(3)]

        first = reconciler.bulk_assign_tutors(admin_actor, course.id, ids)
        second = reconciler.bulk_assign_tutors(admin_actor, course.id, ids)

        assert (first.created_count, first.skipped_count) == (3, 0)
        assert (second.created_count, second.skipped_count) == (0, 3)
        assert len(tutor_rows(test_db, course.id)) == 3

    def test_one_invalid_id_rejects_whole_batch(self, test_db, reconciler, admin_actor, course, make_user, learner):
        tutors = [make_user(UserRole.tutor).id for _ in range(3)]

        with pytest.raises(BadRequestException) as exc_info:
            reconciler.bulk_assign_tutors(admin_actor, course.id, tutors + [learner.id, "ghost"])

        assert learner.id in exc_info.value.detail
        assert "ghost" in exc_info.value.detail
        assert tutor_rows(test_db, course.id) == []

    def test_tutor_bulk_assigned_with_learner_leaves_course_without_tutors(self, test_db, reconciler, admin, make_course, tutor, learner):
        created = make_course(admin, title="Compilers")

        with pytest.raises(BadRequestException):
            reconciler.bulk_assign_tutors(as_principal(admin), created.id, [tutor.id, learner.id])

        assert reconciler.list_tutors(as_principal(admin), created.id) == []

    def test_duplicate_ids_are_collapsed(self, test_db, reconciler, admin_actor, course, tutor):
        result = reconciler.bulk_assign_tutors(admin_actor, course.id, [tutor.id, tutor.id])

        assert (result.created_count, result.skipped_count) == (1, 0)
        assert len(tutor_rows(test_db, course.id)) == 1

    def test_empty_list_is_rejected(self, reconciler, admin_actor, course):
        with pytest.raises(BadRequestException):
            reconciler.bulk_assign_tutors(admin_actor, course.id, [])

    def test_missing_course_wins_over_empty_list(self, reconciler, admin_actor):
        with pytest.raises(NotFoundException):
            reconciler.bulk_assign_tutors(admin_actor, "missing", [])

    def test_archived_tutor_is_invalid(self, test_db, reconciler, admin_actor, course, tutor):
        reconciler.users.archive(tutor)

        with pytest.raises(BadRequestException):
            reconciler.bulk_assign_tutors(admin_actor, course.id, [tutor.id])


class TestConcurrentBulkAssignment:
    """A competing call that inserts between the diff and the insert."""

    def test_racing_duplicate_is_counted_as_skipped(self, test_db, reconciler, admin_actor, course, make_user, assign):
        raced, fresh = make_user(UserRole.tutor), make_user(UserRole.tutor)
        assign(course, raced)

        real_lookup = reconciler.course_tutors.assigned_ids
        calls = []

        def stale_first_read(course_id, ids):
            calls.append(list(ids))
            if len(calls) == 1:
                return set()
            return real_lookup(course_id, ids)

        reconciler.course_tutors.assigned_ids = stale_first_read

        result = reconciler.bulk_assign_tutors(admin_actor, course.id, [raced.id, fresh.id])

        assert len(calls) == 2
        assert (result.created_count, result.skipped_count) == (1, 1)
        assert {row.tutor_id for row in tutor_rows(test_db, course.id)} == {raced.id, fresh.id}

    def test_gives_up_after_retries(self, test_db, reconciler, admin_actor, course, tutor, assign, monkeypatch):
        assign(course, tutor)
        monkeypatch.setattr(settings, "RECONCILE_MAX_RETRIES", 1)
        reconciler.course_tutors.assigned_ids = lambda course_id, ids: set()

        with pytest.raises(ConflictException):
            reconciler.bulk_assign_tutors(admin_actor, course.id, [tutor.id])

        assert len(tutor_rows(test_db, course.id)) == 1


class TestRemoveTutor:
    def test_remove_archives_assignment(self, test_db, reconciler, admin_actor, course, tutor):
        reconciler.assign_tutor(admin_actor, course.id, tutor.id)

        reconciler.remove_tutor(admin_actor, course.id, tutor.id)

        assert tutor_rows(test_db, course.id) == []
        assert len(tutor_rows(test_db, course.id, include_archived=True)) == 1

    def test_second_removal_is_not_found(self, reconciler, admin_actor, course, tutor):
        reconciler.assign_tutor(admin_actor, course.id, tutor.id)
        reconciler.remove_tutor(admin_actor, course.id, tutor.id)

        with pytest.raises(NotFoundException):
            reconciler.remove_tutor(admin_actor, course.id, tutor.id)

    def test_reassignment_after_removal_creates_new_row(self, test_db, reconciler, admin_actor, course, tutor):
        first = reconciler.assign_tutor(admin_actor, course.id, tutor.id)
        reconciler.remove_tutor(admin_actor, course.id, tutor.id)

        second = reconciler.assign_tutor(admin_actor, course.id, tutor.id)

        assert second.id != first.id
        assert len(tutor_rows(test_db, course.id, include_archived=True)) == 2

    def test_unassigned_tutor_loses_content_access(self, reconciler, admin_actor, course, tutor):
        content = ContentHierarchyManager(reconciler.db)
        payload = CourseContentCreate(topic="Week 1", content_type=ContentType.section)
        reconciler.assign_tutor(admin_actor, course.id, tutor.id)

        content.create_node(as_principal(tutor), course.id, payload)
        reconciler.remove_tutor(admin_actor, course.id, tutor.id)

        with pytest.raises(ForbiddenException):
            content.create_node(as_principal(tutor), course.id, payload)


class TestEnrollLearner:
    def test_enrolls_active(self, reconciler, admin_actor, course, cohort, learner):
        enrollment = reconciler.enroll_learner(admin_actor, course.id, cohort.id, learner.id)

        assert enrollment.status == EnrollmentStatus.active

    def test_second_enrollment_conflicts(self, reconciler, admin_actor, course, cohort, learner):
        reconciler.enroll_learner(admin_actor, course.id, cohort.id, learner.id)

        with pytest.raises(ConflictException):
            reconciler.enroll_learner(admin_actor, course.id, cohort.id, learner.id)

    def test_tutor_is_not_a_learner(self, reconciler, admin_actor, course, cohort, tutor):
        with pytest.raises(BadRequestException):
            reconciler.enroll_learner(admin_actor, course.id, cohort.id, tutor.id)

    def test_cohort_of_other_course(self, reconciler, admin_actor, admin, course, make_course, make_cohort, learner):
        other_cohort = make_cohort(make_course(admin, title="Other"))

        with pytest.raises(BadRequestException) as exc_info:
            reconciler.enroll_learner(admin_actor, course.id, other_cohort.id, learner.id)
        assert exc_info.value.detail == "Cohort does not belong to this course"

    def test_missing_cohort(self, reconciler, admin_actor, course, learner):
        with pytest.raises(NotFoundException):
            reconciler.enroll_learner(admin_actor, course.id, "missing", learner.id)


class TestBulkEnrollLearners:
    def test_second_call_skips_everything(self, test_db, reconciler, admin_actor, course, cohort, make_user):
        ids = [make_user(UserRole.learner).id for _ in range(4)]

        first = reconciler.bulk_enroll_learners(admin_actor, course.id, cohort.id, ids)
        second = reconciler.bulk_enroll_learners(admin_actor, course.id, cohort.id, ids)

        assert (first.created_count, first.skipped_count) == (4, 0)
        assert (second.created_count, second.skipped_count) == (0, len(ids))
        assert len(enrollment_rows(test_db, cohort.id)) == 4

    def test_invalid_learner_rejects_batch(self, test_db, reconciler, admin_actor, course, cohort, learner, tutor):
        with pytest.raises(BadRequestException) as exc_info:
            reconciler.bulk_enroll_learners(admin_actor, course.id, cohort.id, [learner.id, tutor.id])

        assert "valid learners" in exc_info.value.detail
        assert enrollment_rows(test_db, cohort.id) == []

    def test_missing_course_or_cohort_wins_over_empty_list(self, reconciler, admin_actor, course, cohort):
        with pytest.raises(NotFoundException):
            reconciler.bulk_enroll_learners(admin_actor, "missing", cohort.id, [])
        with pytest.raises(NotFoundException):
            reconciler.bulk_enroll_learners(admin_actor, course.id, "missing", [])
        with pytest.raises(BadRequestException):
            reconciler.bulk_enroll_learners(admin_actor, course.id, cohort.id, [])

    def test_racing_enrollment_is_counted_as_skipped(self, test_db, reconciler, admin_actor, course, cohort, learner):
        test_db.add(Enrollment(user_id=learner.id, cohort_id=cohort.id))
        test_db.commit()

        real_lookup = reconciler.enrollments.enrolled_ids
        calls = []

        def stale_first_read(cohort_id, ids):
            calls.append(cohort_id)
            return set() if len(calls) == 1 else real_lookup(cohort_id, ids)

        reconciler.enrollments.enrolled_ids = stale_first_read

        result = reconciler.bulk_enroll_learners(admin_actor, course.id, cohort.id, [learner.id])

        assert (result.created_count, result.skipped_count) == (0, 1)
        assert len(enrollment_rows(test_db, cohort.id)) == 1


class TestRemoveLearner:
    def test_drop_then_archive(self, test_db, reconciler, admin_actor, course, cohort, learner):
        reconciler.enroll_learner(admin_actor, course.id, cohort.id, learner.id)

        removed = reconciler.remove_learner(admin_actor, course.id, cohort.id, learner.id)

        assert removed.status == EnrollmentStatus.dropped
        assert removed.archived_at is not None
        assert enrollment_rows(test_db, cohort.id) == []

    def test_reenrollment_is_a_fresh_row(self, test_db, reconciler, admin_actor, course, cohort, learner):
        first = reconciler.enroll_learner(admin_actor, course.id, cohort.id, learner.id)
        reconciler.remove_learner(admin_actor, course.id, cohort.id, learner.id)

        second = reconciler.enroll_learner(admin_actor, course.id, cohort.id, learner.id)

        assert second.id != first.id
        assert second.status == EnrollmentStatus.active
        test_db.refresh(first)
        assert first.status == EnrollmentStatus.dropped
        assert len(enrollment_rows(test_db, cohort.id, include_archived=True)) == 2

    def test_second_removal_is_not_found(self, reconciler, admin_actor, course, cohort, learner):
        reconciler.enroll_learner(admin_actor, course.id, cohort.id, learner.id)
        reconciler.remove_learner(admin_actor, course.id, cohort.id, learner.id)

        with pytest.raises(NotFoundException):
            reconciler.remove_learner(admin_actor, course.id, cohort.id, learner.id)


class TestListLearners:
    def test_groups_active_learners_by_cohort(self, reconciler, admin_actor, course, make_cohort, make_user):
        spring, autumn = make_cohort(course, "Spring"), make_cohort(course, "Autumn")
        a, b = make_user(UserRole.learner), make_user(UserRole.learner)
        reconciler.enroll_learner(admin_actor, course.id, spring.id, a.id)
        reconciler.enroll_learner(admin_actor, course.id, autumn.id, b.id)
        reconciler.enroll_learner(admin_actor, course.id, autumn.id, a.id)
        reconciler.remove_learner(admin_actor, course.id, autumn.id, a.id)

        groups = {group.cohort_id: group for group in reconciler.list_learners(admin_actor, course.id)}

        assert [u.id for u in groups[spring.id].learners] == [a.id]
        assert [u.id for u in groups[autumn.id].learners] == [b.id]
        assert groups[autumn.id].cohort_name == "Autumn"

    def test_filter_by_cohort(self, reconciler, admin_actor, course, make_cohort):
        spring, _ = make_cohort(course, "Spring"), make_cohort(course, "Autumn")

        groups = reconciler.list_learners(admin_actor, course.id, spring.id)

        assert [group.cohort_id for group in groups] == [spring.id]

    def test_assigned_tutor_may_list(self, reconciler, course, cohort, tutor, assign):
        assign(course, tutor)
        assert len(reconciler.list_learners(as_principal(tutor), course.id)) == 1

    def test_unassigned_tutor_may_not_list(self, reconciler, course, cohort, tutor):
        with pytest.raises(ForbiddenException):
            reconciler.list_learners(as_principal(tutor), course.id)
