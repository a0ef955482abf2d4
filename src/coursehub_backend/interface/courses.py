from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from coursehub_backend.interface.base import BaseEntityGet, ListQuery
from coursehub_backend.interface.users import UserList
from coursehub_backend.model.course import CourseLevel

class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    difficulty_level: CourseLevel

class CourseGet(BaseEntityGet):
    id: str
    title: str
    description: Optional[str] = None
    difficulty_level: CourseLevel
    created_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class CourseList(BaseModel):
    id: str
    title: str
    difficulty_level: CourseLevel
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    difficulty_level: Optional[CourseLevel] = None

class CourseQuery(ListQuery):
    search: Optional[str] = None
    difficulty_level: Optional[CourseLevel] = None

class CohortCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime

    @model_validator(mode='after')
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must not precede start_date')
        return self

class CohortGet(BaseEntityGet):
    id: str
    course_id: str
    name: str
    start_date: datetime
    end_date: datetime

    model_config = ConfigDict(from_attributes=True)

class CourseDetail(CourseGet):
    """A course with its creator, assigned tutors and cohorts."""
    creator: Optional[UserList] = None
    tutors: List[UserList] = Field(default_factory=list)
    cohorts: List[CohortGet] = Field(default_factory=list)
