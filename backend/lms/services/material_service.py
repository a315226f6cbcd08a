"""Material service — upload, edit, delete and download course files."""

from typing import BinaryIO, Optional

from sqlalchemy.orm import Session

from lms.errors import NotFound, ValidationError
from lms.models.material import Material, MaterialType
from lms.permissions import AuthContext, Capability, authorize
from lms.services import activity_service
from lms.services.activity_service import ActivityAction, ActivityEntity
from lms.services.course_service import find_course
from lms.services.storage import get_storage, material_policy, validate_upload


def _parse_type(value: str) -> MaterialType:
    try:
        return MaterialType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in MaterialType)
        raise ValidationError(f"Invalid material type '{value}'. Allowed: {allowed}")


def find_material(db: Session, material_id: str) -> Material:
    material = db.query(Material).filter(Material.id == material_id).first()
    if not material:
        raise NotFound("Material not found")
    return material


def list_for_course(db: Session, actor: AuthContext, course_id: str) -> list[Material]:
    authorize(actor, Capability.MATERIAL_VIEW)
    return (
        db.query(Material)
        .filter(Material.course_id == course_id)
        .order_by(Material.created_at.desc())
        .all()
    )


def get_material(db: Session, actor: AuthContext, material_id: str) -> Material:
    authorize(actor, Capability.MATERIAL_VIEW)
    return find_material(db, material_id)


def upload_material(
    db: Session,
    actor: AuthContext,
    course_id: str,
    title: str,
    material_type: str,
    data: bytes,
    filename: Optional[str],
    content_type: Optional[str],
) -> Material:
    """Validate, store, and register an uploaded file.

    Nothing is written to storage until every check has passed.
    """
    authorize(actor, Capability.MATERIAL_UPLOAD)
    if not course_id or not (title or "").strip() or not material_type:
        raise ValidationError("Course ID, title, and type are required")
    parsed_type = _parse_type(material_type)
    find_course(db, course_id)
    validate_upload(data, content_type, material_policy())

    storage = get_storage()
    reference = storage.store(data, filename)

    material = Material(
        course_id=course_id,
        title=title.strip(),
        type=parsed_type.value,
        file_path=reference,
        original_name=filename,
        content_type=content_type,
        file_size=len(data),
        uploaded_by=actor.id,
    )
    db.add(material)
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.remove(reference).discard()
        raise
    db.refresh(material)

    activity_service.record(
        db, actor.id, ActivityAction.MATERIAL_UPLOADED, ActivityEntity.MATERIAL, material.id
    ).discard()
    return material


def update_material(
    db: Session,
    actor: AuthContext,
    material_id: str,
    title: Optional[str] = None,
    material_type: Optional[str] = None,
) -> Material:
    authorize(actor, Capability.MATERIAL_MANAGE)
    material = find_material(db, material_id)

    if title:
        material.title = title.strip()
    if material_type:
        material.type = _parse_type(material_type).value

    db.commit()
    db.refresh(material)

    activity_service.record(
        db, actor.id, ActivityAction.MATERIAL_UPDATED, ActivityEntity.MATERIAL, material.id
    ).discard()
    return material


def delete_material(db: Session, actor: AuthContext, material_id: str) -> None:
    authorize(actor, Capability.MATERIAL_MANAGE)
    material = find_material(db, material_id)
    reference = material.file_path

    db.delete(material)
    db.commit()
    get_storage().remove(reference).discard()

    activity_service.record(
        db, actor.id, ActivityAction.MATERIAL_DELETED, ActivityEntity.MATERIAL, material_id
    ).discard()


def open_material(db: Session, actor: AuthContext, material_id: str) -> tuple[Material, BinaryIO]:
    """Return the material row and an open handle on its stored bytes."""
    material = get_material(db, actor, material_id)
    return material, get_storage().resolve(material.file_path)
