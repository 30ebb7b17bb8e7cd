"""
Modèle SQLAlchemy pour les inscriptions de l'année en cours.
"""

import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Registration(Base):
    """Une inscription = un enfant, identifié auprès des parents par son acknowledgement_id."""
    __tablename__ = "registrations"
    __table_args__ = (
        # Un même enfant (prénom + date de naissance) ne peut être inscrit qu'une fois
        UniqueConstraint("first_name", "date_of_birth", name="uq_registrations_child"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    parent_name = Column(String(200), nullable=False)
    phone_number = Column(String(20), nullable=False)
    acknowledgement_id = Column(String(30), unique=True, nullable=False)  # Ex: "VBS25-0042"
    payment_method = Column(String(10), nullable=False)                   # cash, upi
    payment_status = Column(String(20), default="completed")
    age = Column(Integer, nullable=True)
    returning_child_id = Column(
        UUID(as_uuid=True), ForeignKey("prior_year_roster.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, server_default=func.now())
