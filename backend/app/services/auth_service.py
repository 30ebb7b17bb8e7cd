"""
Connexion des enseignants en deux étapes : numéro de téléphone, puis code OTP.
Un code n'est envoyé qu'aux numéros présents dans la table teachers.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.teacher import Teacher
from app.schemas.auth import SessionResponse
from app.services.auth_client import AuthClient, AuthError

logger = logging.getLogger(__name__)


class TeacherNotFoundError(LookupError):
    """Numéro absent de la liste des enseignants."""


def format_phone(phone: str) -> str:
    """Normalise un numéro local à 10 chiffres au format +91XXXXXXXXXX."""
    phone = phone.strip()
    if phone.startswith("+"):
        return phone
    return f"{settings.PHONE_COUNTRY_CODE}{phone}"


def find_teacher_by_phone(db: Session, phone: str):
    return db.execute(
        select(Teacher).where(Teacher.phone == format_phone(phone))
    ).scalar_one_or_none()


def request_teacher_otp(db: Session, auth: AuthClient, phone: str) -> str:
    """
    Étape 1 : vérifie que le numéro appartient à un enseignant puis demande l'envoi du code.
    Retourne le numéro normalisé, à réutiliser pour la vérification.
    """
    formatted = format_phone(phone)
    teacher = find_teacher_by_phone(db, formatted)
    if teacher is None:
        raise TeacherNotFoundError(
            "Ce numéro n'est pas enregistré comme enseignant. Veuillez contacter l'administrateur."
        )

    auth.send_otp(formatted, {"role": "teacher", "name": teacher.name})
    return formatted


def verify_teacher_otp(auth: AuthClient, phone: str, otp: str) -> SessionResponse:
    """Étape 2 : échange le code contre une session. Une seule tentative, sans nouvel essai."""
    data = auth.verify_otp(format_phone(phone), otp)
    if not data.get("access_token"):
        raise AuthError("Échec de la vérification du code. Veuillez réessayer.")

    logger.info("Connexion enseignant réussie (%s)", data.get("user", {}).get("id"))
    return SessionResponse(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        token_type=data.get("token_type", "bearer"),
        expires_in=data.get("expires_in"),
    )
