"""
Schémas Pydantic pour le parcours d'inscription (formulaire → paiement → confirmation).
"""

import re
import uuid
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator

PHONE_REGEX = re.compile(r"^\d{10}$")

PaymentMethod = Literal["cash", "upi"]
WorkflowStep = Literal["form", "payment", "complete"]


class RegistrationForm(BaseModel):
    """Données saisies par le parent à l'étape « formulaire »."""
    first_name: str
    last_name: str
    surname: str
    date_of_birth: date
    parent_name: str
    phone_number: str
    returning_child_id: Optional[uuid.UUID] = None  # Renseigné si pré-rempli depuis l'an passé

    @field_validator("first_name", "last_name", "surname", "parent_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Champ obligatoire.")
        return v.strip()

    @field_validator("phone_number")
    @classmethod
    def valid_phone(cls, v: str) -> str:
        if not PHONE_REGEX.match(v.strip()):
            raise ValueError("Veuillez saisir un numéro de mobile valide à 10 chiffres.")
        return v.strip()


class RegistrationSubmit(RegistrationForm):
    """Formulaire + moyen de paiement : le choix du paiement déclenche l'enregistrement."""
    payment_method: PaymentMethod


class ReturningSearch(BaseModel):
    name: str


class ReturningChild(BaseModel):
    """Enfant retrouvé dans le registre de l'année précédente."""
    id: uuid.UUID
    first_name: str
    last_name: str
    surname: Optional[str]
    date_of_birth: date
    parent_name: Optional[str]
    phone_number: Optional[str]

    model_config = {"from_attributes": True}


class ReturningSearchResult(BaseModel):
    """
    Résultat de la recherche « famille déjà inscrite » :
    - not_found : aucun enfant, message à afficher
    - found     : un seul enfant, à utiliser pour pré-remplir le formulaire
    - multiple  : plusieurs enfants, liste de choix
    """
    status: Literal["not_found", "found", "multiple"]
    child: Optional[ReturningChild] = None
    results: List[ReturningChild] = []
    message: Optional[str] = None


class RegistrationCheckResponse(BaseModel):
    """Formulaire accepté (pas de doublon) : passage à l'étape paiement."""
    step: WorkflowStep = "payment"
    registration: RegistrationForm


class AllocationResult(BaseModel):
    """Classe et section attribuées à l'enfant lors de l'allocation côté client."""
    class_name: str
    section_id: uuid.UUID
    section_name: str
    teacher_name: Optional[str] = None


class RegistrationComplete(BaseModel):
    """Confirmation d'inscription remise au parent."""
    step: WorkflowStep = "complete"
    acknowledgement_id: str
    payment_method: PaymentMethod
    payment_instructions: str
    allocation: Optional[AllocationResult] = None
