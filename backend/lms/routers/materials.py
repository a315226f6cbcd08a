"""Materials router — upload, edit, delete and download course files."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.permissions import AuthContext
from lms.schemas.auth import MessageResponse
from lms.schemas.material import (
    MaterialEnvelope,
    MaterialListResponse,
    MaterialMutationResponse,
    MaterialResponse,
    MaterialUpdate,
)
from lms.services import material_service
from lms.services.storage import iter_file

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get("/course/{course_id}", response_model=MaterialListResponse)
def list_course_materials(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    materials = material_service.list_for_course(db, current_user, course_id)
    return MaterialListResponse(
        materials=[MaterialResponse.model_validate(m) for m in materials],
        total=len(materials),
    )


@router.get("/{material_id}", response_model=MaterialEnvelope)
def get_material(
    material_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    material = material_service.get_material(db, current_user, material_id)
    return MaterialEnvelope(material=MaterialResponse.model_validate(material))


@router.post("/upload", response_model=MaterialMutationResponse, status_code=201)
async def upload_material(
    course_id: str = Form(...),
    title: str = Form(...),
    type: str = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Upload a study material or recorded lecture file to a course."""
    content = await file.read()
    material = material_service.upload_material(
        db,
        current_user,
        course_id,
        title,
        type,
        content,
        file.filename,
        file.content_type,
    )
    return MaterialMutationResponse(
        message="Material uploaded successfully",
        material=MaterialResponse.model_validate(material),
    )


@router.put("/{material_id}", response_model=MaterialMutationResponse)
def update_material(
    material_id: str,
    req: MaterialUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    material = material_service.update_material(db, current_user, material_id, title=req.title, material_type=req.type)
    return MaterialMutationResponse(
        message="Material updated successfully",
        material=MaterialResponse.model_validate(material),
    )


@router.delete("/{material_id}", response_model=MessageResponse)
def delete_material(
    material_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    material_service.delete_material(db, current_user, material_id)
    return MessageResponse(message="Material deleted successfully")


@router.get("/{material_id}/download")
def download_material(
    material_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    material, handle = material_service.open_material(db, current_user, material_id)
    filename = material.original_name or material.file_path
    return StreamingResponse(
        iter_file(handle),
        media_type=material.content_type or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )
