"""
Modèles SQLAlchemy pour les enseignants et leur affectation aux sections.
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    phone = Column(String(20), unique=True, nullable=False)  # Format E.164 : +91XXXXXXXXXX
    created_at = Column(DateTime, server_default=func.now())


class SectionTeacher(Base):
    """Association section ↔ enseignants (plusieurs enseignants par section)."""
    __tablename__ = "section_teachers"
    __table_args__ = (
        UniqueConstraint("teacher_id", "section_id", name="uq_section_teachers_pair"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    section_id = Column(UUID(as_uuid=True), ForeignKey("class_sections.id", ondelete="CASCADE"), nullable=False)
    is_primary = Column(Boolean, default=False)
    assigned_at = Column(DateTime, server_default=func.now())
