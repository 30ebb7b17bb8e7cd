"""
Schémas Pydantic pour le tableau de bord administrateur.
Les champs suivent les colonnes retournées par les procédures stockées.
"""

import uuid
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, computed_field

ChildSortField = Literal["full_name", "parent_name", "class_section", "teacher_name", "age"]
SortDirection = Literal["asc", "desc"]


class SectionCount(BaseModel):
    section_id: uuid.UUID
    section_code: str
    display_name: str
    current_count: int


class ClassCount(BaseModel):
    """Effectif d'une classe avec le détail par section."""
    class_id: uuid.UUID
    class_name: str
    total_count: int
    sections: List[SectionCount] = []


class ChildDetails(BaseModel):
    """Ligne de liste d'enfants (roster de section ou résultat de recherche)."""
    child_id: uuid.UUID
    full_name: str
    parent_name: Optional[str] = None
    class_section: Optional[str] = None
    teacher_name: Optional[str] = None
    age: Optional[int] = None


class SectionOption(BaseModel):
    """Section proposée lors d'un changement de section."""
    section_id: uuid.UUID
    display_name: str
    current_count: int
    max_capacity: int

    @computed_field
    @property
    def is_full(self) -> bool:
        return self.current_count >= self.max_capacity


class SectionChange(BaseModel):
    new_section_id: uuid.UUID


class SectionChangeResult(BaseModel):
    success: bool
    error: Optional[str] = None


class DailyRegistrationCount(BaseModel):
    registration_date: date
    count: int
