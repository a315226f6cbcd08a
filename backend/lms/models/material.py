"""Material model — an uploaded study file or recorded lecture."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from lms.database import Base


class MaterialType(str, Enum):
    STUDY_MATERIAL = "STUDY_MATERIAL"
    RECORDED_LECTURE = "RECORDED_LECTURE"


class Material(Base):
    __tablename__ = "materials"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(30), nullable=False, default=MaterialType.STUDY_MATERIAL.value)
    file_path = Column(String(255), nullable=False)  # storage reference, not a filesystem path
    original_name = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    course = relationship("Course", back_populates="materials")
