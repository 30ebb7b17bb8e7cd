"""
Schémas Pydantic pour l'affectation des enseignants aux sections.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

AssignmentSortField = Literal["teacher_name", "class_section", "student_count"]


class TeacherAssignmentRow(BaseModel):
    """Affectation existante avec le nombre d'enfants de la section."""
    teacher_name: str
    class_section: str
    student_count: int
    class_name: str  # Préfixe du libellé de section (ex: "BEGINNERS" pour "BEGINNERS-A")


class TeacherAssignmentList(BaseModel):
    assignments: List[TeacherAssignmentRow]
    total_students: int                 # Somme sur toutes les lignes listées
    teacher_totals: Dict[str, int]      # Somme par enseignant


class SectionTeacherCreate(BaseModel):
    """Corps de requête pour affecter un enseignant à une section."""
    teacher_id: uuid.UUID
    section_id: uuid.UUID
    is_primary: bool = False


class SectionTeacherResponse(BaseModel):
    id: uuid.UUID
    teacher_id: uuid.UUID
    section_id: uuid.UUID
    is_primary: bool
    assigned_at: Optional[datetime]

    model_config = {"from_attributes": True}


class TeacherOption(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class SectionLabel(BaseModel):
    id: uuid.UUID
    display_name: str

    model_config = {"from_attributes": True}
