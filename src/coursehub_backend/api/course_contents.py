from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursehub_backend.api.auth import get_current_permissions
from coursehub_backend.database import get_db
from coursehub_backend.interface.course_contents import (
    CourseContentCreate,
    CourseContentGet,
    CourseContentTree,
    CourseContentUpdate,
)
from coursehub_backend.permissions.principal import Principal
from coursehub_backend.services.content_hierarchy import ContentHierarchyManager

course_content_router = APIRouter()

@course_content_router.post("/{course_id}/contents", response_model=CourseContentGet, status_code=201)
def create_course_content(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, payload: CourseContentCreate, db: Session = Depends(get_db)):
    return ContentHierarchyManager(db).create_node(permissions, course_id, payload)

@course_content_router.get("/{course_id}/contents", response_model=List[CourseContentTree])
def list_course_contents(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, parent_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Roots of the course, or the children of ``parent_id``, each with its direct children."""
    return ContentHierarchyManager(db).list_tree(permissions, course_id, parent_id)

@course_content_router.patch("/{course_id}/contents/{content_id}", response_model=CourseContentGet)
def update_course_content(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, content_id: str, payload: CourseContentUpdate, db: Session = Depends(get_db)):
    return ContentHierarchyManager(db).update_node(permissions, course_id, content_id, payload)

@course_content_router.delete("/{course_id}/contents/{content_id}", status_code=204)
def delete_course_content(permissions: Annotated[Principal, Depends(get_current_permissions)], course_id: str, content_id: str, db: Session = Depends(get_db)):
    ContentHierarchyManager(db).delete_node(permissions, course_id, content_id)
