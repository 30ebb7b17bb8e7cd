"""
Contrôle d'accès par jeton Bearer émis par le service d'authentification.

Le rôle est lu une fois dans le jeton puis transmis aux routes :
- admin   : app_metadata.role == "admin" (attribué côté serveur uniquement)
- teacher : rôle "teacher" et numéro de téléphone présent dans le jeton
"""

import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from app.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Principal(BaseModel):
    """Utilisateur authentifié, tel que décrit par son jeton."""
    user_id: str
    phone: Optional[str] = None
    role: Optional[str] = None
    is_admin: bool = False


def decode_access_token(token: str) -> Principal:
    """Vérifie la signature et l'expiration du jeton. Lève jwt.InvalidTokenError sinon."""
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
        audience=settings.JWT_AUDIENCE,
    )
    app_role = (payload.get("app_metadata") or {}).get("role")
    user_role = (payload.get("user_metadata") or {}).get("role")

    phone = payload.get("phone") or None
    if phone and not phone.startswith("+"):
        phone = f"+{phone}"  # le service stocke les numéros sans le +

    return Principal(
        user_id=payload["sub"],
        phone=phone,
        role=app_role or user_role,
        is_admin=app_role == "admin",
    )


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentification requise.")
    try:
        return decode_access_token(credentials.credentials)
    except (jwt.InvalidTokenError, KeyError) as e:
        logger.warning("Jeton refusé : %s", e)
        raise HTTPException(status_code=401, detail="Session invalide ou expirée.")


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Accès réservé aux administrateurs.")
    return principal


def require_teacher(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != "teacher" or not principal.phone:
        raise HTTPException(status_code=403, detail="Accès réservé aux enseignants.")
    return principal
