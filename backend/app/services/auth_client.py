"""
Client du service d'authentification du backend hébergé (API GoTrue).
Seuls l'envoi et la vérification d'un code OTP par SMS sont utilisés.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class AuthError(ValueError):
    """Refus du service d'authentification (code invalide, numéro refusé...)."""


class AuthClient:
    """
    Client HTTP minimal :
    - POST /auth/v1/otp    : envoie un code à usage unique par SMS
    - POST /auth/v1/verify : échange le code contre une session
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0) -> None:
        self._base = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        with httpx.Client(timeout=self._timeout) as client:
            r = client.post(f"{self._base}{path}", headers=self._headers(), json=payload)
        if r.status_code >= 400:
            raise AuthError(_error_message(r))
        return r.json() if r.content else {}

    def send_otp(self, phone: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._post("/auth/v1/otp", {"phone": phone, "data": data or {}, "create_user": True})
        logger.info("Code OTP envoyé à %s", _mask(phone))

    def verify_otp(self, phone: str, token: str) -> Dict[str, Any]:
        return self._post("/auth/v1/verify", {"phone": phone, "token": token, "type": "sms"})


def _error_message(response: httpx.Response) -> str:
    """Extrait le message d'erreur du service (les clés varient selon la version)."""
    try:
        body = response.json()
    except ValueError:
        return f"Erreur du service d'authentification ({response.status_code})."
    for key in ("msg", "error_description", "message", "error"):
        if isinstance(body, dict) and body.get(key):
            return str(body[key])
    return f"Erreur du service d'authentification ({response.status_code})."


def _mask(phone: str) -> str:
    """Numéro masqué pour les logs : seuls les 4 derniers chiffres restent visibles."""
    return "*" * max(len(phone) - 4, 0) + phone[-4:]


def get_auth_client() -> AuthClient:
    """Dépendance FastAPI : client configuré depuis les settings (substituable en test)."""
    return AuthClient(settings.BACKEND_URL, settings.BACKEND_ANON_KEY, settings.AUTH_TIMEOUT_SECONDS)
