"""User model."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from lms.database import Base
from lms.models.course import course_teachers


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="STUDENT")  # ADMIN | TEACHER | HEAD | MANAGEMENT | STUDENT
    reset_token = Column(String(64), nullable=True, index=True)
    reset_token_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    taught_courses = relationship("Course", secondary=course_teachers, back_populates="teachers")
    enrollments = relationship("Enrollment", back_populates="student", cascade="all, delete-orphan")
