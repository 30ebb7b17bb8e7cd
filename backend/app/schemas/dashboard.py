"""
Schémas Pydantic pour le tableau de bord enseignant (lecture seule).
"""

import uuid
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, computed_field


class DashboardStudent(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    date_of_birth: date
    parent_name: str
    phone_number: str
    section_name: Optional[str] = None
    allergies: Optional[str] = None
    medical_notes: Optional[str] = None


class DashboardClass(BaseModel):
    id: uuid.UUID
    name: str
    min_age: int
    max_age: int
    max_capacity: int
    enrolled: int
    students: List[DashboardStudent]

    @computed_field
    @property
    def capacity_label(self) -> str:
        return f"{self.enrolled}/{self.max_capacity}"


class TeacherDashboard(BaseModel):
    teacher_name: str
    classes: List[DashboardClass]
