"""
Service métier pour les inscriptions.

Parcours en trois étapes :
  form     → saisie (nouvel enfant ou famille retrouvée dans le registre de l'an passé)
  payment  → choix du moyen de paiement (espèces ou UPI) ; ce choix déclenche l'enregistrement
  complete → affichage de l'acknowledgement_id

Rien n'est écrit en base avant le choix du moyen de paiement.

Les routes HTTP sont sans état (POST /check puis POST ""). RegistrationWorkflow
est une aide programmatique qui enchaîne les mêmes étapes pour un client
(interface ou script) conservant la session.
"""

import logging
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import rpc_scalar
from app.models.registration import Registration
from app.models.roster import PriorYearChild
from app.schemas.registration import (
    PaymentMethod,
    RegistrationCheckResponse,
    RegistrationComplete,
    RegistrationForm,
    RegistrationSubmit,
    ReturningChild,
    ReturningSearchResult,
)
from app.services.allocation_service import AllocationError, allocate_child, compute_age

logger = logging.getLogger(__name__)

PAYMENT_STATUS_COMPLETED = "completed"

PAYMENT_INSTRUCTIONS = {
    "cash": "Veuillez régler en espèces auprès de l'équipe VBS. Conservez votre Acknowledgement ID.",
    "upi": "Veuillez scanner le QR code de paiement de l'équipe VBS pour finaliser le paiement.",
}


class DuplicateRegistrationError(ValueError):
    """L'enfant (prénom + date de naissance) est déjà inscrit."""

    def __init__(self, acknowledgement_id: str):
        self.acknowledgement_id = acknowledgement_id
        super().__init__(
            f"Cet enfant est déjà inscrit avec l'Acknowledgement ID : {acknowledgement_id}"
        )


class RegistrationError(ValueError):
    """Refus métier renvoyé par la procédure d'inscription."""


def search_returning_children(db: Session, name: str) -> ReturningSearchResult:
    """Recherche approximative (sous-chaîne, insensible à la casse) sur le prénom."""
    term = name.strip()
    if not term:
        return ReturningSearchResult(status="not_found", results=[])

    children = db.execute(
        select(PriorYearChild)
        .where(PriorYearChild.first_name.icontains(term, autoescape=True))
        .order_by(PriorYearChild.first_name, PriorYearChild.last_name)
    ).scalars().all()

    if not children:
        return ReturningSearchResult(
            status="not_found",
            message=(
                "Aucun enfant trouvé avec ce nom. Réessayez ou "
                "inscrivez-le comme nouveau participant."
            ),
        )
    if len(children) == 1:
        return ReturningSearchResult(status="found", child=ReturningChild.model_validate(children[0]))
    return ReturningSearchResult(
        status="multiple",
        results=[ReturningChild.model_validate(c) for c in children],
    )


def check_duplicate_registration(db: Session, first_name: str, date_of_birth: date) -> Optional[str]:
    """Retourne l'acknowledgement_id existant pour ce prénom + date de naissance, sinon None."""
    return db.execute(
        select(Registration.acknowledgement_id)
        .where(
            Registration.first_name == first_name,
            Registration.date_of_birth == date_of_birth,
        )
        .limit(1)
    ).scalar()


def generate_acknowledgement_id(db: Session) -> str:
    """Demande au backend le prochain identifiant séquentiel."""
    return rpc_scalar(db, "generate_next_acknowledgement_id")


def validate_new_registration(db: Session, form: RegistrationForm) -> RegistrationCheckResponse:
    """
    Étape « formulaire » : vérifie l'absence de doublon avant de passer au paiement.
    Lève DuplicateRegistrationError avec l'identifiant existant ; aucune écriture.
    """
    existing = check_duplicate_registration(db, form.first_name, form.date_of_birth)
    if existing:
        logger.info("Inscription en double refusée : %s (%s)", form.first_name, existing)
        raise DuplicateRegistrationError(existing)
    return RegistrationCheckResponse(registration=form)


def register_child(
    db: Session,
    data: RegistrationSubmit,
    strategy: Optional[str] = None,
) -> RegistrationComplete:
    """
    Étape « paiement » : enregistre l'inscription avec le moyen de paiement choisi.

    - procedure : une seule procédure (validation + insertion + identifiant), atomique
    - client    : identifiant, âge, insertion puis allocation de section côté API
    """
    strategy = strategy or settings.REGISTRATION_STRATEGY
    if strategy == "client":
        return _register_client_side(db, data)
    return _register_via_procedure(db, data)


def payment_instructions(method: PaymentMethod) -> str:
    return PAYMENT_INSTRUCTIONS[method]


def _register_via_procedure(db: Session, data: RegistrationSubmit) -> RegistrationComplete:
    result = rpc_scalar(
        db,
        "api_register_child",
        p_first_name=data.first_name,
        p_last_name=data.last_name,
        p_surname=data.surname,
        p_date_of_birth=data.date_of_birth,
        p_parent_name=data.parent_name,
        p_phone_number=data.phone_number,
        p_payment_method=data.payment_method,
        p_payment_status=PAYMENT_STATUS_COMPLETED,
        p_returning_child_id=data.returning_child_id,
    )
    db.commit()

    if not result or result.get("error"):
        error = (result or {}).get("error") or "Réponse vide de la procédure d'inscription."
        logger.warning("Inscription refusée par le backend : %s", error)
        raise RegistrationError(error)

    logger.info("Inscription %s enregistrée (%s)", result["acknowledgement_id"], data.payment_method)
    return RegistrationComplete(
        acknowledgement_id=result["acknowledgement_id"],
        payment_method=data.payment_method,
        payment_instructions=payment_instructions(data.payment_method),
    )


def _register_client_side(db: Session, data: RegistrationSubmit) -> RegistrationComplete:
    acknowledgement_id = generate_acknowledgement_id(db)

    registration = Registration(
        first_name=data.first_name,
        last_name=data.last_name,
        surname=data.surname,
        date_of_birth=data.date_of_birth,
        parent_name=data.parent_name,
        phone_number=data.phone_number,
        acknowledgement_id=acknowledgement_id,
        payment_method=data.payment_method,
        payment_status=PAYMENT_STATUS_COMPLETED,
        age=compute_age(data.date_of_birth),
        returning_child_id=data.returning_child_id,
    )
    db.add(registration)
    try:
        db.commit()
    except IntegrityError:
        # Inscription concurrente du même enfant entre la vérification et l'insertion
        db.rollback()
        existing = check_duplicate_registration(db, data.first_name, data.date_of_birth)
        if existing:
            raise DuplicateRegistrationError(existing)
        raise
    db.refresh(registration)

    try:
        allocation = allocate_child(db, registration)
    except AllocationError as e:
        # L'inscription est conservée : l'administrateur choisira la section
        logger.error("Allocation impossible pour %s : %s", acknowledgement_id, e)
        allocation = None

    return RegistrationComplete(
        acknowledgement_id=acknowledgement_id,
        payment_method=data.payment_method,
        payment_instructions=payment_instructions(data.payment_method),
        allocation=allocation,
    )


class RegistrationWorkflow:
    """
    Machine à états d'une session d'inscription (form → payment → complete).
    Un échec à une étape laisse la machine dans l'étape courante.
    """

    def __init__(self, db: Session, strategy: Optional[str] = None):
        self.db = db
        self.strategy = strategy
        self.step = "form"
        self.is_returning = False
        self.found_child: Optional[ReturningChild] = None
        self.search_results: List[ReturningChild] = []
        self.pending: Optional[RegistrationForm] = None
        self.completed: Optional[RegistrationComplete] = None

    def start_new(self) -> None:
        self._reset_form(returning=False)

    def start_returning(self) -> None:
        self._reset_form(returning=True)

    def search(self, name: str) -> ReturningSearchResult:
        result = search_returning_children(self.db, name)
        self.found_child = result.child
        self.search_results = result.results
        return result

    def select_child(self, child_id: uuid.UUID) -> ReturningChild:
        """Choisit un enfant dans la liste de résultats (cas « plusieurs résultats »)."""
        for child in self.search_results:
            if child.id == child_id:
                self.found_child = child
                self.search_results = []
                return child
        raise ValueError("Enfant absent des résultats de recherche.")

    def prefill(self) -> dict:
        """Valeurs initiales du formulaire à partir de l'enfant retrouvé."""
        if self.found_child is None:
            return {}
        child = self.found_child
        return {
            "first_name": child.first_name,
            "last_name": child.last_name,
            "surname": child.surname or "",
            "date_of_birth": child.date_of_birth,
            "parent_name": child.parent_name or "",
            "phone_number": child.phone_number or "",
            "returning_child_id": child.id,
        }

    def submit(self, form: RegistrationForm) -> RegistrationCheckResponse:
        self._require_step("form")
        response = validate_new_registration(self.db, form)
        self.pending = form
        self.step = "payment"
        return response

    def back_to_form(self) -> None:
        self._require_step("payment")
        self.step = "form"

    def choose_payment(self, method: PaymentMethod) -> RegistrationComplete:
        self._require_step("payment")
        data = RegistrationSubmit(**self.pending.model_dump(), payment_method=method)
        self.completed = register_child(self.db, data, strategy=self.strategy)
        self.step = "complete"
        return self.completed

    def _reset_form(self, returning: bool) -> None:
        self.step = "form"
        self.is_returning = returning
        self.found_child = None
        self.search_results = []
        self.pending = None

    def _require_step(self, step: str) -> None:
        if self.step != step:
            raise ValueError(f"Action impossible à l'étape « {self.step} ».")
