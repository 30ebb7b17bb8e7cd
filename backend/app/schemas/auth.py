"""
Schémas Pydantic pour la connexion des enseignants par OTP.
"""

import re
from typing import Optional

from pydantic import BaseModel, field_validator

from app.schemas.registration import PHONE_REGEX

OTP_REGEX = re.compile(r"^\d{6}$")


class PhoneLogin(BaseModel):
    phone: str

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v: str) -> str:
        if not PHONE_REGEX.match(v.strip()):
            raise ValueError("Veuillez saisir un numéro de mobile valide à 10 chiffres.")
        return v.strip()


class OtpSent(BaseModel):
    phone: str  # Numéro normalisé (+91...) à renvoyer lors de la vérification
    step: str = "otp"


class OtpVerify(BaseModel):
    phone: str
    otp: str

    @field_validator("otp")
    @classmethod
    def valid_otp(cls, v: str) -> str:
        if not OTP_REGEX.match(v.strip()):
            raise ValueError("Le code doit comporter 6 chiffres.")
        return v.strip()


class SessionResponse(BaseModel):
    """Session retournée par le service d'authentification après vérification."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
