"""
Service du tableau de bord administrateur.
Les effectifs, rosters, recherches et changements de section passent par les
procédures stockées du backend ; ce module ne fait que les enchaîner et les trier.

SortState et DrilldownState sont des aides programmatiques pour un client
(interface ou script) qui conserve l'état du tableau de bord ; les routes HTTP
reçoivent directement le champ et le sens de tri.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from app.database import rpc, rpc_scalar
from app.schemas.admin import (
    ChildDetails,
    ChildSortField,
    ClassCount,
    DailyRegistrationCount,
    SectionChangeResult,
    SectionCount,
    SectionOption,
    SortDirection,
)

logger = logging.getLogger(__name__)

# Libellé de section : CLASSE-CODE (ex: "BEGINNERS-A")
SECTION_LABEL_REGEX = re.compile(r"^[A-Za-z]+-[A-Za-z0-9]+$")

NUMERIC_SORT_FIELDS = {"age", "student_count"}


class SectionChangeError(ValueError):
    """Changement de section refusé (section pleine, enfant introuvable...)."""


def get_class_counts(db: Session) -> List[ClassCount]:
    """Effectifs par classe, puis par section (un appel par classe, l'un après l'autre sur la même session)."""
    classes = rpc(db, "get_class_counts")
    result = []
    for cls in classes:
        sections = rpc(db, "get_section_counts", p_class_id=cls["class_id"])
        result.append(ClassCount(**{**cls, "sections": [SectionCount(**s) for s in sections]}))
    return result


def get_section_children(db: Session, section_id: uuid.UUID) -> List[ChildDetails]:
    rows = rpc(db, "get_section_children", p_section_id=section_id)
    return [ChildDetails(**row) for row in rows]


def search_children(db: Session, term: str) -> List[ChildDetails]:
    """
    Recherche libre par nom ou par libellé de section.
    Un terme de la forme CLASSE-CODE ne retient que les enfants de cette section.
    """
    term = term.strip()
    if not term:
        raise ValueError("Le terme de recherche ne peut pas être vide.")

    children = [ChildDetails(**row) for row in rpc(db, "search_children", p_search_term=term)]

    if SECTION_LABEL_REGEX.match(term):
        label = term.casefold()
        children = [c for c in children if (c.class_section or "").casefold() == label]
    return children


def get_available_sections(db: Session, child_id: uuid.UUID) -> List[SectionOption]:
    rows = rpc(db, "get_available_sections", p_child_id=child_id)
    return [SectionOption(**row) for row in rows]


def update_child_section(db: Session, child_id: uuid.UUID, new_section_id: uuid.UUID) -> SectionChangeResult:
    """
    Change la section d'un enfant.

    Validations :
    1. La section cible figure parmi les sections proposées pour cet enfant
    2. Elle n'a pas atteint sa capacité (indication locale, la procédure fait foi)
    3. La procédure répond success=true ; sinon son message d'erreur est remonté
    """
    options = {o.section_id: o for o in get_available_sections(db, child_id)}
    option = options.get(new_section_id)
    if option is None:
        raise SectionChangeError("Cette section n'est pas disponible pour cet enfant.")
    if option.is_full:
        raise SectionChangeError(f"La section {option.display_name} est complète.")

    payload = rpc_scalar(
        db,
        "update_child_section",
        p_child_id=child_id,
        p_new_section_id=new_section_id,
    )
    db.commit()

    result = SectionChangeResult(**(payload or {"success": False}))
    if not result.success:
        raise SectionChangeError(result.error or "Échec du changement de section.")

    logger.info("Enfant %s déplacé vers %s", child_id, option.display_name)
    return result


def get_daily_registration_counts(db: Session) -> List[DailyRegistrationCount]:
    return [DailyRegistrationCount(**row) for row in rpc(db, "get_daily_registration_counts")]


def sort_rows(rows: Sequence, field: str, direction: SortDirection = "asc") -> list:
    """
    Tri stable sur un champ : numérique pour les effectifs/âges, sinon
    insensible à la casse. Les valeurs absentes sont placées en fin de tri ascendant.
    """
    def key(row):
        value = getattr(row, field)
        if value is None:
            return (1, 0 if field in NUMERIC_SORT_FIELDS else "")
        if field in NUMERIC_SORT_FIELDS:
            return (0, value)
        return (0, str(value).casefold())

    # sorted(reverse=True) conserve l'ordre relatif des égalités
    return sorted(rows, key=key, reverse=(direction == "desc"))


@dataclass
class SortState:
    """Tri d'un tableau : re-cliquer sur la même colonne inverse le sens."""
    field: str = "full_name"
    direction: SortDirection = "asc"

    def toggle(self, field: str) -> "SortState":
        if field == self.field:
            self.direction = "desc" if self.direction == "asc" else "asc"
        else:
            self.field = field
            self.direction = "asc"
        return self

    def apply(self, rows: Sequence) -> list:
        return sort_rows(rows, self.field, self.direction)


@dataclass
class DrilldownState:
    """Classe et section ouvertes dans le tableau de bord (une seule de chaque)."""
    class_id: Optional[uuid.UUID] = None
    section_id: Optional[uuid.UUID] = None

    def select_class(self, class_id: uuid.UUID) -> None:
        self.class_id = None if self.class_id == class_id else class_id
        self.section_id = None

    def select_section(self, section_id: uuid.UUID) -> bool:
        """Ouvre la section, ou la referme si elle l'était. Retourne True si le roster doit être chargé."""
        if self.section_id == section_id:
            self.section_id = None
            return False
        self.section_id = section_id
        return True


def sort_children(
    children: Sequence[ChildDetails],
    field: ChildSortField = "full_name",
    direction: SortDirection = "asc",
) -> List[ChildDetails]:
    return sort_rows(children, field, direction)
