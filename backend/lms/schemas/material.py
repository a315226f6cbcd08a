"""Material request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lms.models.material import MaterialType


class MaterialResponse(BaseModel):
    id: str
    course_id: str
    title: str
    type: MaterialType
    file_path: str
    original_name: Optional[str] = None
    content_type: Optional[str] = None
    file_size: int
    uploaded_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MaterialUpdate(BaseModel):
    title: Optional[str] = None
    type: Optional[str] = None


class MaterialEnvelope(BaseModel):
    material: MaterialResponse


class MaterialMutationResponse(BaseModel):
    message: str
    material: MaterialResponse


class MaterialListResponse(BaseModel):
    materials: list[MaterialResponse]
    total: int
