"""
Service métier pour l'affectation des enseignants aux sections.
"""

import logging
import uuid
from collections import defaultdict
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import rpc
from app.models.teacher import SectionTeacher, Teacher
from app.models.vbs_class import ClassSection
from app.schemas.admin import SortDirection
from app.schemas.teacher import (
    AssignmentSortField,
    SectionLabel,
    SectionTeacherCreate,
    SectionTeacherResponse,
    TeacherAssignmentList,
    TeacherAssignmentRow,
    TeacherOption,
)
from app.services.admin_service import sort_rows

logger = logging.getLogger(__name__)


def list_assignments(
    db: Session,
    sort_field: AssignmentSortField = "teacher_name",
    direction: SortDirection = "asc",
) -> TeacherAssignmentList:
    """
    Retourne les affectations triées avec l'effectif de chaque section,
    le total général et le total par enseignant.
    """
    rows = [
        TeacherAssignmentRow(**{**row, "class_name": row["class_section"].split("-")[0]})
        for row in rpc(db, "get_teacher_assignments")
    ]
    rows = sort_rows(rows, sort_field, direction)

    teacher_totals = defaultdict(int)
    for row in rows:
        teacher_totals[row.teacher_name] += row.student_count

    return TeacherAssignmentList(
        assignments=rows,
        total_students=sum(row.student_count for row in rows),
        teacher_totals=dict(teacher_totals),
    )


def list_teachers(db: Session) -> List[TeacherOption]:
    teachers = db.execute(select(Teacher).order_by(Teacher.name)).scalars().all()
    return [TeacherOption.model_validate(t) for t in teachers]


def list_sections(db: Session) -> List[SectionLabel]:
    sections = db.execute(select(ClassSection).order_by(ClassSection.display_name)).scalars().all()
    return [SectionLabel.model_validate(s) for s in sections]


def assignment_exists(db: Session, teacher_id: uuid.UUID, section_id: uuid.UUID) -> bool:
    return db.execute(
        select(SectionTeacher.id)
        .where(
            SectionTeacher.teacher_id == teacher_id,
            SectionTeacher.section_id == section_id,
        )
        .limit(1)
    ).scalar() is not None


def assign_teacher(db: Session, data: SectionTeacherCreate) -> SectionTeacherResponse:
    """
    Affecte un enseignant à une section.

    Validations :
    1. L'enseignant et la section existent
    2. L'enseignant n'est pas déjà affecté à cette section
    La contrainte unique (teacher_id, section_id) couvre les soumissions simultanées.
    """
    if db.get(Teacher, data.teacher_id) is None:
        raise LookupError("Enseignant introuvable.")
    if db.get(ClassSection, data.section_id) is None:
        raise LookupError("Section introuvable.")

    if assignment_exists(db, data.teacher_id, data.section_id):
        raise ValueError("Cet enseignant est déjà affecté à cette section.")

    link = SectionTeacher(
        teacher_id=data.teacher_id,
        section_id=data.section_id,
        is_primary=data.is_primary,
    )
    db.add(link)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Cet enseignant est déjà affecté à cette section.")
    db.refresh(link)

    logger.info("Enseignant %s affecté à la section %s", data.teacher_id, data.section_id)
    return SectionTeacherResponse.model_validate(link)
