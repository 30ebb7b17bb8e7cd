"""
Modèles SQLAlchemy pour les classes, leurs sections et l'allocation des enfants.
Une classe couvre une tranche d'âge ; chaque section a sa propre capacité.
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class VbsClass(Base):
    __tablename__ = "classes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)  # Ex: "BEGINNERS"
    min_age = Column(Integer, nullable=False)
    max_age = Column(Integer, nullable=False)
    max_capacity = Column(Integer, nullable=False)


class ClassSection(Base):
    """Subdivision d'une classe, bornée en capacité."""
    __tablename__ = "class_sections"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    section_code = Column(String(10), nullable=False)               # Ex: "A"
    display_name = Column(String(50), unique=True, nullable=False)  # Ex: "BEGINNERS-A"
    max_capacity = Column(Integer, nullable=False)


class ClassAllocation(Base):
    """Liaison enfant ↔ classe ↔ section. Une seule allocation par enfant."""
    __tablename__ = "class_allocations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    child_id = Column(
        UUID(as_uuid=True), ForeignKey("registrations.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    section_id = Column(UUID(as_uuid=True), ForeignKey("class_sections.id", ondelete="CASCADE"), nullable=False)
    allocated_at = Column(DateTime, server_default=func.now())
