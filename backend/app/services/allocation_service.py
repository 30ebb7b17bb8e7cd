"""
Service d'allocation des enfants dans une classe et une section.

Utilisé par la stratégie d'inscription « client » (REGISTRATION_STRATEGY=client),
quand le backend ne fournit pas de procédure d'inscription atomique.

Flux :
  1. Calculer l'âge à partir de la date de naissance
  2. Trouver la classe dont la tranche [min_age, max_age] contient cet âge
  3. Compter les allocations de chaque section de cette classe (une requête par section)
  4. Choisir la section la moins remplie (à égalité : la première dans l'ordre des sections)
  5. Insérer l'allocation et retrouver l'enseignant de la section
"""

import logging
from datetime import date
from typing import Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.registration import Registration
from app.models.teacher import SectionTeacher, Teacher
from app.models.vbs_class import ClassAllocation, ClassSection, VbsClass
from app.schemas.registration import AllocationResult

logger = logging.getLogger(__name__)


class AllocationError(ValueError):
    """Aucune classe ou section ne peut accueillir l'enfant."""


def compute_age(date_of_birth: date, today: Optional[date] = None) -> int:
    """
    Âge en années révolues : différence des années, moins un si
    l'anniversaire (mois/jour) n'est pas encore passé cette année.
    """
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def find_eligible_class(db: Session, age: int) -> VbsClass:
    """
    Retourne la classe dont la tranche d'âge contient `age`.
    Lève AllocationError si aucune classe ne correspond ; si plusieurs
    correspondent (tranches qui se chevauchent), la plus jeune est retenue.
    """
    classes = db.execute(
        select(VbsClass)
        .where(VbsClass.min_age <= age, VbsClass.max_age >= age)
        .order_by(VbsClass.min_age, VbsClass.name)
    ).scalars().all()

    if not classes:
        raise AllocationError(f"Aucune classe ne correspond à l'âge {age} ans.")
    if len(classes) > 1:
        logger.warning(
            "Âge %d : %d classes éligibles (%s), choix de %s",
            age, len(classes), ", ".join(c.name for c in classes), classes[0].name,
        )
    return classes[0]


def pick_least_populated(section_counts: Sequence[Tuple[ClassSection, int]]) -> ClassSection:
    """Section avec le moins d'allocations ; à égalité, la première rencontrée."""
    if not section_counts:
        raise AllocationError("Aucune section disponible pour cette classe.")
    section, _ = min(section_counts, key=lambda pair: pair[1])
    return section


def count_section_allocations(db: Session, section_id) -> int:
    return db.execute(
        select(func.count())
        .select_from(ClassAllocation)
        .where(ClassAllocation.section_id == section_id)
    ).scalar() or 0


def get_section_teacher_name(db: Session, section_id) -> Optional[str]:
    """Nom de l'enseignant de la section (l'enseignant principal en priorité)."""
    return db.execute(
        select(Teacher.name)
        .join(SectionTeacher, SectionTeacher.teacher_id == Teacher.id)
        .where(SectionTeacher.section_id == section_id)
        .order_by(SectionTeacher.is_primary.desc(), Teacher.name)
        .limit(1)
    ).scalar()


def allocate_child(db: Session, registration: Registration) -> AllocationResult:
    """
    Alloue un enfant inscrit à la section la moins remplie de sa classe.

    La lecture des effectifs puis l'insertion ne sont pas atomiques : deux
    inscriptions simultanées peuvent choisir la même section et dépasser sa capacité.
    """
    age = registration.age
    if age is None:
        age = compute_age(registration.date_of_birth)

    eligible = find_eligible_class(db, age)

    sections = db.execute(
        select(ClassSection)
        .where(ClassSection.class_id == eligible.id)
        .order_by(ClassSection.section_code)
    ).scalars().all()

    section_counts = [(s, count_section_allocations(db, s.id)) for s in sections]
    section = pick_least_populated(section_counts)

    allocation = ClassAllocation(
        child_id=registration.id,
        class_id=eligible.id,
        section_id=section.id,
    )
    db.add(allocation)
    db.commit()

    teacher_name = get_section_teacher_name(db, section.id)

    logger.info(
        "Enfant %s (%s) alloué à %s (%d ans)",
        registration.id, registration.acknowledgement_id, section.display_name, age,
    )
    return AllocationResult(
        class_name=eligible.name,
        section_id=section.id,
        section_name=section.display_name,
        teacher_name=teacher_name,
    )
