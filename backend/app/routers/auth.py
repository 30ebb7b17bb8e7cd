"""
Router pour la connexion des enseignants (téléphone + code OTP).
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.auth import OtpSent, OtpVerify, PhoneLogin, SessionResponse
from app.services import auth_service
from app.services.auth_client import AuthClient, AuthError, get_auth_client
from app.services.auth_service import TeacherNotFoundError

router = APIRouter(prefix="/api/v1/auth/teacher", tags=["Authentification enseignants"])


@router.post("/otp", response_model=OtpSent, summary="Demander un code de connexion")
def request_otp(
    data: PhoneLogin,
    db: Session = Depends(get_db),
    auth: AuthClient = Depends(get_auth_client),
):
    """Envoie un code par SMS si le numéro appartient à un enseignant enregistré."""
    try:
        phone = auth_service.request_teacher_otp(db, auth, data.phone)
    except TeacherNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OtpSent(phone=phone)


@router.post("/verify", response_model=SessionResponse, summary="Vérifier le code reçu")
def verify_otp(data: OtpVerify, auth: AuthClient = Depends(get_auth_client)):
    """Échange le code contre une session ; le message du service est remonté en cas d'échec."""
    try:
        return auth_service.verify_teacher_otp(auth, data.phone, data.otp)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
