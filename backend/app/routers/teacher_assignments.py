"""
Router pour l'affectation des enseignants aux sections (rôle admin requis).
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.admin import SortDirection
from app.schemas.teacher import (
    AssignmentSortField,
    SectionLabel,
    SectionTeacherCreate,
    SectionTeacherResponse,
    TeacherAssignmentList,
    TeacherOption,
)
from app.security import require_admin
from app.services import teacher_assignment_service

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Affectation enseignants"],
    dependencies=[Depends(require_admin)],
)


@router.get("/teacher-assignments", response_model=TeacherAssignmentList,
            summary="Lister les affectations")
def list_assignments(
    sort: AssignmentSortField = "teacher_name",
    direction: SortDirection = "asc",
    db: Session = Depends(get_db),
):
    """Affectations avec l'effectif de chaque section, total général et total par enseignant."""
    return teacher_assignment_service.list_assignments(db, sort, direction)


@router.post("/teacher-assignments", response_model=SectionTeacherResponse, status_code=201,
             summary="Affecter un enseignant à une section")
def create_assignment(data: SectionTeacherCreate, db: Session = Depends(get_db)):
    """
    Contraintes :
    - L'enseignant et la section doivent exister (404)
    - Une même paire enseignant/section n'est affectée qu'une fois (409)
    """
    try:
        return teacher_assignment_service.assign_teacher(db, data)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/teachers", response_model=List[TeacherOption], summary="Lister les enseignants")
def list_teachers(db: Session = Depends(get_db)):
    return teacher_assignment_service.list_teachers(db)


@router.get("/sections", response_model=List[SectionLabel], summary="Lister les sections")
def list_sections(db: Session = Depends(get_db)):
    return teacher_assignment_service.list_sections(db)
