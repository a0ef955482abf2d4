from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from coursehub_backend.interface.base import BaseEntityGet
from coursehub_backend.model.course import ContentType

class CourseContentCreate(BaseModel):
    """DTO for creating a content node under a course."""
    topic: str = Field(..., min_length=1, max_length=255)
    content_type: ContentType
    parent_id: Optional[str] = None
    sequence_order: int = 0

class CourseContentUpdate(BaseModel):
    """DTO for patching a content node.

    Only fields that are explicitly set are applied; an explicit
    ``parent_id: null`` turns the node into a root.
    """
    topic: Optional[str] = Field(None, min_length=1, max_length=255)
    content_type: Optional[ContentType] = None
    parent_id: Optional[str] = None
    sequence_order: Optional[int] = None

class CourseContentGet(BaseEntityGet):
    id: str
    course_id: str
    parent_id: Optional[str] = None
    topic: str
    content_type: ContentType
    sequence_order: int

    model_config = ConfigDict(from_attributes=True)

class CourseContentTree(CourseContentGet):
    """A node with its direct children; deeper levels are fetched on demand."""
    children: List[CourseContentGet] = Field(default_factory=list)
