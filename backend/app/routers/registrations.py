"""
Router pour les inscriptions des parents.
Étape formulaire : POST /check (doublon), étape paiement : POST "" (enregistrement)
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.registration import (
    RegistrationCheckResponse,
    RegistrationComplete,
    RegistrationForm,
    RegistrationSubmit,
    ReturningSearch,
    ReturningSearchResult,
)
from app.services import payment_service, registration_service
from app.services.registration_service import DuplicateRegistrationError

router = APIRouter(prefix="/api/v1/registrations", tags=["Inscriptions"])


@router.post("/returning-search", response_model=ReturningSearchResult,
             summary="Retrouver un enfant inscrit l'an passé")
def search_returning(data: ReturningSearch, db: Session = Depends(get_db)):
    """
    Recherche par prénom dans le registre de l'année précédente :
    - not_found : aucun résultat (message à afficher)
    - found     : un résultat, à utiliser pour pré-remplir le formulaire
    - multiple  : liste de choix
    """
    return registration_service.search_returning_children(db, data.name)


@router.post("/check", response_model=RegistrationCheckResponse,
             summary="Valider le formulaire et vérifier les doublons")
def check_registration(data: RegistrationForm, db: Session = Depends(get_db)):
    """
    Vérifie qu'aucun enfant avec le même prénom et la même date de naissance n'est
    déjà inscrit. En cas de doublon → 409 avec l'Acknowledgement ID existant.
    Aucune écriture en base à cette étape.
    """
    try:
        return registration_service.validate_new_registration(db, data)
    except DuplicateRegistrationError as e:
        raise HTTPException(
            status_code=409,
            detail={"message": str(e), "acknowledgement_id": e.acknowledgement_id},
        )


@router.post("", response_model=RegistrationComplete, status_code=201,
             summary="Choisir le paiement et enregistrer l'inscription")
def register(data: RegistrationSubmit, db: Session = Depends(get_db)):
    """
    Le choix du moyen de paiement (cash ou upi) déclenche l'enregistrement.
    Retourne l'Acknowledgement ID et les instructions de paiement.
    """
    try:
        existing = registration_service.check_duplicate_registration(db, data.first_name, data.date_of_birth)
        if existing:
            raise DuplicateRegistrationError(existing)
        return registration_service.register_child(db, data)
    except DuplicateRegistrationError as e:
        raise HTTPException(
            status_code=409,
            detail={"message": str(e), "acknowledgement_id": e.acknowledgement_id},
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/{acknowledgement_id}/payment-qr", summary="QR code de paiement UPI",
            response_class=Response)
def payment_qr(acknowledgement_id: str, db: Session = Depends(get_db)):
    """Image PNG du QR code UPI dont la note de transaction est l'Acknowledgement ID."""
    image = payment_service.get_payment_qr(db, acknowledgement_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Inscription introuvable.")
    return Response(content=image, media_type="image/png")
