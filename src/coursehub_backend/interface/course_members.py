from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from coursehub_backend.interface.users import UserList
from coursehub_backend.model.course import EnrollmentStatus

class TutorAssign(BaseModel):
    tutor_id: str

class TutorBulkAssign(BaseModel):
    tutor_ids: List[str] = Field(..., min_length=1)

class LearnerEnroll(BaseModel):
    learner_id: str
    cohort_id: str

class LearnerBulkEnroll(BaseModel):
    learner_ids: List[str] = Field(..., min_length=1)
    cohort_id: str

class ReconcileResult(BaseModel):
    """Outcome of a bulk reconciliation."""
    created_count: int = 0
    skipped_count: int = 0

class CohortLearners(BaseModel):
    cohort_id: str
    cohort_name: str
    learners: List[UserList] = Field(default_factory=list)

class CourseTutorGet(BaseModel):
    id: str
    course_id: str
    tutor_id: str

    model_config = ConfigDict(from_attributes=True)

class EnrollmentGet(BaseModel):
    id: str
    user_id: str
    cohort_id: str
    status: EnrollmentStatus
    last_accessed_content_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
