"""
Tutor assignment and learner enrollment endpoints, mounted below ``/courses``.
"""

from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursehub_backend.api.auth import get_current_permissions
from coursehub_backend.database import get_db
from coursehub_backend.interface.course_members import (
    CohortLearners,
    CourseTutorGet,
    EnrollmentGet,
    LearnerBulkEnroll,
    LearnerEnroll,
    ReconcileResult,
    TutorAssign,
    TutorBulkAssign,
)
from coursehub_backend.interface.users import UserList
from coursehub_backend.permissions.principal import Principal
from coursehub_backend.services.reconciler import RelationshipReconciler

course_member_router = APIRouter()

@course_member_router.get("/{course_id}/tutors", response_model=List[UserList])
def list_tutors(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, db: Session = Depends(get_db)):
    return RelationshipReconciler(db).list_tutors(permissions, course_id)

@course_member_router.post("/{course_id}/tutors", response_model=CourseTutorGet, status_code=201)
def assign_tutor(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, payload: TutorAssign, db: Session = Depends(get_db)):
    return RelationshipReconciler(db).assign_tutor(permissions, course_id, payload.tutor_id)

@course_member_router.post("/{course_id}/tutors/bulk", response_model=ReconcileResult)
def bulk_assign_tutors(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, payload: TutorBulkAssign, db: Session = Depends(get_db)):
    return RelationshipReconciler(db).bulk_assign_tutors(permissions, course_id, payload.tutor_ids)

@course_member_router.delete("/{course_id}/tutors/{tutor_id}", status_code=204)
def remove_tutor(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, tutor_id: str, db: Session = Depends(get_db)):
    RelationshipReconciler(db).remove_tutor(permissions, course_id, tutor_id)

@course_member_router.get("/{course_id}/learners", response_model=List[CohortLearners])
def list_learners(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, cohort_id: Optional[str] = None, db: Session = Depends(get_db)):
    return RelationshipReconciler(db).list_learners(permissions, course_id, cohort_id)

@course_member_router.post("/{course_id}/learners", response_model=EnrollmentGet, status_code=201)
def enroll_learner(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, payload: LearnerEnroll, db: Session = Depends(get_db)):
    return RelationshipReconciler(db).enroll_learner(permissions, course_id, payload.cohort_id, payload.learner_id)

@course_member_router.post("/{course_id}/learners/bulk", response_model=ReconcileResult)
def bulk_enroll_learners(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, payload: LearnerBulkEnroll, db: Session = Depends(get_db)):
    return RelationshipReconciler(db).bulk_enroll_learners(permissions, course_id, payload.cohort_id, payload.learner_ids)

@course_member_router.delete("/{course_id}/learners/{cohort_id}/{learner_id}", status_code=204)
def remove_learner(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, cohort_id: str, learner_id: str, db: Session = Depends(get_db)):
    RelationshipReconciler(db).remove_learner(permissions, course_id, cohort_id, learner_id)
