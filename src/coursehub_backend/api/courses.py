from typing import Annotated, List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from coursehub_backend.api.auth import get_current_permissions
from coursehub_backend.database import get_db
from coursehub_backend.interface.courses import (
    CohortCreate,
    CohortGet,
    CourseCreate,
    CourseDetail,
    CourseGet,
    CourseList,
    CourseQuery,
    CourseUpdate,
)
from coursehub_backend.permissions.principal import Principal
from coursehub_backend.services.courses import CourseService

course_router = APIRouter()

@course_router.post("", response_model=CourseGet, status_code=201)
def create_course(permissions: Annotated[Principal, Depends(get_current_permissions)], payload: CourseCreate, db: Session = Depends(get_db)):
    return CourseService(db).create_course(permissions, payload)

@course_router.get("", response_model=List[CourseList])
def list_courses(permissions: Annotated[Principal, Depends(get_current_permissions)], response: Response, params: CourseQuery = Depends(), db: Session = Depends(get_db)):

    courses, total = CourseService(db).list_courses(permissions, params)
    response.headers["X-Total-Count"] = str(total)

    return courses

@course_router.get("/{course_id}", response_model=CourseDetail)
def get_course(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, db: Session = Depends(get_db)):
    return CourseService(db).get_course(permissions, course_id)

@course_router.patch("/{course_id}", response_model=CourseGet)
def update_course(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, payload: CourseUpdate, db: Session = Depends(get_db)):
    return CourseService(db).update_course(permissions, course_id, payload)

@course_router.delete("/{course_id}", status_code=204)
def delete_course(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, db: Session = Depends(get_db)):
    CourseService(db).delete_course(permissions, course_id)

@course_router.post("/{course_id}/cohorts", response_model=CohortGet, status_code=201)
def create_cohort(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, payload: CohortCreate, db: Session = Depends(get_db)):
    return CourseService(db).create_cohort(permissions, course_id, payload)

@course_router.get("/{course_id}/cohorts", response_model=List[CohortGet])
def list_cohorts(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, db: Session = Depends(get_db)):
    return CourseService(db).list_cohorts(permissions, course_id)
