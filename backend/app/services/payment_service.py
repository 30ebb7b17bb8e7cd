"""
QR code de paiement UPI affiché à la fin d'une inscription payée par UPI.
Le QR encode un lien upi://pay dont la note est l'acknowledgement_id.
"""

import io
import logging
from typing import Optional
from urllib.parse import urlencode

import qrcode
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.registration import Registration

logger = logging.getLogger(__name__)


def build_upi_uri(acknowledgement_id: str, amount: Optional[str] = None) -> str:
    """Lien de paiement UPI (pa = bénéficiaire, pn = nom, tn = note de transaction)."""
    params = {
        "pa": settings.UPI_PAYEE_VPA,
        "pn": settings.UPI_PAYEE_NAME,
        "tn": acknowledgement_id,
        "cu": "INR",
    }
    amount = amount if amount is not None else settings.REGISTRATION_FEE
    if amount:
        params["am"] = amount
    return "upi://pay?" + urlencode(params)


def generate_qr_image(data: str) -> bytes:
    """Génère une image PNG du QR code encodant `data`."""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def get_payment_qr(db: Session, acknowledgement_id: str) -> Optional[bytes]:
    """QR code UPI d'une inscription existante, ou None si l'identifiant est inconnu."""
    registration = db.execute(
        select(Registration).where(Registration.acknowledgement_id == acknowledgement_id)
    ).scalar_one_or_none()
    if registration is None:
        return None

    logger.info("QR code UPI généré pour %s", acknowledgement_id)
    return generate_qr_image(build_upi_uri(acknowledgement_id))
