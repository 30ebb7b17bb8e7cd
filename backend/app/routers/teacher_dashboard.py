"""
Router du tableau de bord enseignant (session enseignant requise).
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.dashboard import TeacherDashboard
from app.security import Principal, require_teacher
from app.services import dashboard_service
from app.services.auth_service import TeacherNotFoundError

router = APIRouter(prefix="/api/v1/teacher", tags=["Tableau de bord enseignant"])


@router.get("/dashboard", response_model=TeacherDashboard, summary="Mes classes et leurs enfants")
def get_dashboard(
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    """Classes de l'enseignant connecté, effectif/capacité et enfants alloués."""
    try:
        return dashboard_service.get_teacher_dashboard(db, principal.phone)
    except TeacherNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
