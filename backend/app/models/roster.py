"""
Modèle SQLAlchemy pour le registre de l'année précédente.
Lecture seule : sert à retrouver les familles déjà inscrites (pré-remplissage).
"""

import uuid
from sqlalchemy import Column, Date, String, Text
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class PriorYearChild(Base):
    __tablename__ = "prior_year_roster"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=False)
    parent_name = Column(String(200), nullable=True)
    phone_number = Column(String(20), nullable=True)
    allergies = Column(Text, nullable=True)
    medical_notes = Column(Text, nullable=True)
