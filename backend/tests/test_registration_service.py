"""
Tests unitaires pour le service d'inscription (doublons, enregistrement, parcours en étapes).
"""

import uuid
from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.schemas.registration import AllocationResult, RegistrationForm, RegistrationSubmit
from app.services.allocation_service import AllocationError
from app.services.registration_service import (
    DuplicateRegistrationError,
    RegistrationError,
    RegistrationWorkflow,
    register_child,
    search_returning_children,
    validate_new_registration,
)


# --- Helpers ---

FORM = {
    "first_name": "Asha",
    "last_name": "Kumar",
    "surname": "K",
    "date_of_birth": "2018-05-04",
    "parent_name": "Ravi Kumar",
    "phone_number": "9876543210",
}


def make_form(**kwargs) -> RegistrationForm:
    return RegistrationForm(**{**FORM, **kwargs})


def make_submit(payment_method="cash", **kwargs) -> RegistrationSubmit:
    return RegistrationSubmit(**{**FORM, **kwargs}, payment_method=payment_method)


def make_prior_child(first_name="Asha", last_name="Kumar"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        first_name=first_name,
        last_name=last_name,
        surname="K",
        date_of_birth=date(2018, 5, 4),
        parent_name="Ravi Kumar",
        phone_number="9876543210",
    )


def make_db_mock(scalar_value=None, children=None):
    db = MagicMock()
    db.execute.return_value.scalar.return_value = scalar_value
    db.execute.return_value.scalars.return_value.all.return_value = children or []
    return db


# --- Validation des schémas ---

def test_form_telephone_9_chiffres_rejete():
    with pytest.raises(ValidationError):
        make_form(phone_number="987654321")


def test_form_telephone_avec_lettres_rejete():
    with pytest.raises(ValidationError):
        make_form(phone_number="98765abcde")


def test_form_champ_vide_rejete():
    with pytest.raises(ValidationError):
        make_form(parent_name="   ")


def test_form_valeurs_nettoyees():
    form = make_form(first_name="  Asha ")
    assert form.first_name == "Asha"


def test_submit_moyen_paiement_inconnu_rejete():
    with pytest.raises(ValidationError):
        make_submit(payment_method="card")


# --- search_returning_children ---

def test_search_aucun_resultat():
    result = search_returning_children(make_db_mock(), "Zed")
    assert result.status == "not_found"
    assert "nouveau participant" in result.message


def test_search_un_resultat():
    child = make_prior_child()
    result = search_returning_children(make_db_mock(children=[child]), "ash")
    assert result.status == "found"
    assert result.child.id == child.id


def test_search_plusieurs_resultats():
    children = [make_prior_child("Asha"), make_prior_child("Ashwin")]
    result = search_returning_children(make_db_mock(children=children), "Ash")
    assert result.status == "multiple"
    assert len(result.results) == 2
    assert result.child is None


def test_search_terme_vide_sans_requete():
    db = make_db_mock()
    result = search_returning_children(db, "   ")
    assert result.status == "not_found"
    db.execute.assert_not_called()


# --- validate_new_registration ---

def test_validate_doublon_rejete_avec_identifiant_existant():
    db = make_db_mock(scalar_value="VBS-0042")
    with pytest.raises(DuplicateRegistrationError) as exc:
        validate_new_registration(db, make_form())
    assert exc.value.acknowledgement_id == "VBS-0042"
    assert "VBS-0042" in str(exc.value)
    db.add.assert_not_called()
    db.commit.assert_not_called()


def test_validate_sans_doublon_passe_au_paiement():
    db = make_db_mock(scalar_value=None)
    response = validate_new_registration(db, make_form())
    assert response.step == "payment"
    assert response.registration.first_name == "Asha"
    db.add.assert_not_called()


# --- register_child : stratégie procédure ---

def test_register_procedure_succes():
    db = MagicMock()
    with patch("app.services.registration_service.rpc_scalar") as mock_rpc:
        mock_rpc.return_value = {"acknowledgement_id": "VBS-0007"}
        result = register_child(db, make_submit("upi"), strategy="procedure")

    assert result.acknowledgement_id == "VBS-0007"
    assert result.payment_method == "upi"
    assert result.step == "complete"
    assert "QR" in result.payment_instructions
    assert mock_rpc.call_args[0][1] == "api_register_child"
    assert mock_rpc.call_args.kwargs["p_payment_status"] == "completed"
    db.commit.assert_called_once()


def test_register_procedure_transmet_l_enfant_de_l_an_passe():
    """Le lien vers le registre de l'an passé est conservé (allergies visibles au tableau de bord)."""
    db = MagicMock()
    returning_id = uuid.uuid4()
    with patch("app.services.registration_service.rpc_scalar") as mock_rpc:
        mock_rpc.return_value = {"acknowledgement_id": "VBS-0008"}
        register_child(db, make_submit(returning_child_id=returning_id), strategy="procedure")

    assert mock_rpc.call_args.kwargs["p_returning_child_id"] == returning_id


def test_register_procedure_nouvel_enfant_sans_lien():
    db = MagicMock()
    with patch("app.services.registration_service.rpc_scalar") as mock_rpc:
        mock_rpc.return_value = {"acknowledgement_id": "VBS-0009"}
        register_child(db, make_submit(), strategy="procedure")

    assert mock_rpc.call_args.kwargs["p_returning_child_id"] is None


def test_register_procedure_erreur_remontee():
    db = MagicMock()
    with patch("app.services.registration_service.rpc_scalar") as mock_rpc:
        mock_rpc.return_value = {"error": "Child already registered"}
        with pytest.raises(RegistrationError, match="already registered"):
            register_child(db, make_submit(), strategy="procedure")


def test_register_procedure_reponse_vide():
    db = MagicMock()
    with patch("app.services.registration_service.rpc_scalar", return_value=None):
        with pytest.raises(RegistrationError):
            register_child(db, make_submit(), strategy="procedure")


# --- register_child : stratégie client ---

def test_register_client_succes_avec_allocation():
    db = MagicMock()
    allocation = AllocationResult(class_name="PRIMARY", section_id=uuid.uuid4(), section_name="PRIMARY-A")
    with patch("app.services.registration_service.generate_acknowledgement_id", return_value="VBS-0010"), \
         patch("app.services.registration_service.allocate_child", return_value=allocation):
        result = register_child(db, make_submit("cash"), strategy="client")

    db.add.assert_called_once()
    registration = db.add.call_args[0][0]
    assert registration.acknowledgement_id == "VBS-0010"
    assert registration.payment_status == "completed"
    assert registration.age is not None
    assert result.allocation.section_name == "PRIMARY-A"


def test_register_client_allocation_impossible_inscription_conservee():
    db = MagicMock()
    with patch("app.services.registration_service.generate_acknowledgement_id", return_value="VBS-0011"), \
         patch("app.services.registration_service.allocate_child", side_effect=AllocationError("aucune classe")):
        result = register_child(db, make_submit(), strategy="client")

    db.commit.assert_called_once()
    assert result.acknowledgement_id == "VBS-0011"
    assert result.allocation is None


def test_register_client_insertion_concurrente_doublon():
    """Contrainte unique violée entre la vérification et l'insertion → DuplicateRegistrationError."""
    db = MagicMock()
    db.commit.side_effect = IntegrityError("INSERT", {}, Exception("uq_registrations_child"))
    db.execute.return_value.scalar.return_value = "VBS-0003"
    with patch("app.services.registration_service.generate_acknowledgement_id", return_value="VBS-0012"):
        with pytest.raises(DuplicateRegistrationError) as exc:
            register_child(db, make_submit(), strategy="client")

    db.rollback.assert_called_once()
    assert exc.value.acknowledgement_id == "VBS-0003"


# --- RegistrationWorkflow ---

def test_workflow_parcours_complet():
    db = make_db_mock(scalar_value=None)
    workflow = RegistrationWorkflow(db)
    workflow.start_new()
    assert workflow.step == "form"

    workflow.submit(make_form())
    assert workflow.step == "payment"

    with patch("app.services.registration_service.register_child") as mock_register:
        mock_register.return_value = MagicMock(acknowledgement_id="VBS-0020")
        completed = workflow.choose_payment("cash")

    assert workflow.step == "complete"
    assert completed.acknowledgement_id == "VBS-0020"
    submitted = mock_register.call_args[0][1]
    assert submitted.payment_method == "cash"
    assert submitted.first_name == "Asha"


def test_workflow_doublon_reste_au_formulaire():
    workflow = RegistrationWorkflow(make_db_mock(scalar_value="VBS-0001"))
    with pytest.raises(DuplicateRegistrationError):
        workflow.submit(make_form())
    assert workflow.step == "form"
    assert workflow.pending is None


def test_workflow_retour_au_formulaire():
    workflow = RegistrationWorkflow(make_db_mock())
    workflow.submit(make_form())
    workflow.back_to_form()
    assert workflow.step == "form"


def test_workflow_paiement_impossible_depuis_formulaire():
    workflow = RegistrationWorkflow(make_db_mock())
    with pytest.raises(ValueError):
        workflow.choose_payment("cash")


def test_workflow_echec_enregistrement_reste_au_paiement():
    workflow = RegistrationWorkflow(make_db_mock())
    workflow.submit(make_form())
    with patch("app.services.registration_service.register_child", side_effect=RegistrationError("refus")):
        with pytest.raises(RegistrationError):
            workflow.choose_payment("upi")
    assert workflow.step == "payment"


def test_workflow_famille_retrouvee_preremplit_le_formulaire():
    children = [make_prior_child("Asha"), make_prior_child("Ashwin")]
    workflow = RegistrationWorkflow(make_db_mock(children=children))
    workflow.start_returning()
    assert workflow.is_returning

    result = workflow.search("Ash")
    assert result.status == "multiple"
    assert workflow.prefill() == {}

    workflow.select_child(children[1].id)
    values = workflow.prefill()
    assert values["first_name"] == "Ashwin"
    assert values["returning_child_id"] == children[1].id


def test_workflow_selection_enfant_inconnu():
    workflow = RegistrationWorkflow(make_db_mock(children=[make_prior_child(), make_prior_child()]))
    workflow.search("Asha")
    with pytest.raises(ValueError):
        workflow.select_child(uuid.uuid4())
