"""
Router du tableau de bord administrateur (rôle admin requis).
Effectifs, rosters de section, recherche, changement de section, export Excel.
"""

import uuid
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.admin import (
    ChildDetails,
    ChildSortField,
    ClassCount,
    DailyRegistrationCount,
    SectionChange,
    SectionChangeResult,
    SectionOption,
    SortDirection,
)
from app.security import require_admin
from app.services import admin_service, export_service

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Administration"],
    dependencies=[Depends(require_admin)],
)


@router.get("/classes", response_model=List[ClassCount], summary="Effectifs par classe et section")
def list_class_counts(db: Session = Depends(get_db)):
    return admin_service.get_class_counts(db)


@router.get("/sections/{section_id}/children", response_model=List[ChildDetails],
            summary="Enfants d'une section")
def list_section_children(
    section_id: uuid.UUID,
    sort: ChildSortField = "full_name",
    direction: SortDirection = "asc",
    db: Session = Depends(get_db),
):
    children = admin_service.get_section_children(db, section_id)
    return admin_service.sort_children(children, sort, direction)


@router.get("/children/search", response_model=List[ChildDetails], summary="Rechercher un enfant")
def search_children(
    q: str = Query(..., description="Nom ou libellé de section (ex: BEGINNERS-A)"),
    sort: ChildSortField = "full_name",
    direction: SortDirection = "asc",
    db: Session = Depends(get_db),
):
    try:
        children = admin_service.search_children(db, q)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return admin_service.sort_children(children, sort, direction)


@router.get("/children/{child_id}/available-sections", response_model=List[SectionOption],
            summary="Sections proposées pour un changement")
def list_available_sections(child_id: uuid.UUID, db: Session = Depends(get_db)):
    """Sections de la classe de l'enfant ; is_full=true pour celles à capacité atteinte."""
    return admin_service.get_available_sections(db, child_id)


@router.put("/children/{child_id}/section", response_model=SectionChangeResult,
            summary="Changer la section d'un enfant")
def change_section(child_id: uuid.UUID, data: SectionChange, db: Session = Depends(get_db)):
    try:
        return admin_service.update_child_section(db, child_id, data.new_section_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/registrations/daily-counts", response_model=List[DailyRegistrationCount],
            summary="Nombre d'inscriptions par jour")
def daily_counts(db: Session = Depends(get_db)):
    return admin_service.get_daily_registration_counts(db)


@router.get("/registrations/export", summary="Exporter les inscriptions d'une journée (xlsx)")
def export_registrations(report_date: date = Query(..., alias="date"), db: Session = Depends(get_db)):
    """Une ligne par inscription du jour choisi. Fichier : VBS_Registrations_<date>.xlsx."""
    filename, content = export_service.export_registrations(db, report_date)
    return Response(
        content=content,
        media_type=export_service.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
