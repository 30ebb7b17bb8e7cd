"""
Tests unitaires pour l'affectation des enseignants aux sections.
"""

import uuid
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from app.schemas.teacher import SectionTeacherCreate
from app.services.teacher_assignment_service import assign_teacher, list_assignments


# --- Helpers ---

def make_db_mock(teacher=True, section=True, existing_id=None):
    db = MagicMock()
    db.get.side_effect = [MagicMock() if teacher else None, MagicMock() if section else None]
    db.execute.return_value.scalar.return_value = existing_id
    return db


def make_payload() -> SectionTeacherCreate:
    return SectionTeacherCreate(teacher_id=uuid.uuid4(), section_id=uuid.uuid4())


def refresh_link(link):
    link.id = uuid.uuid4()
    link.assigned_at = datetime.now()
    link.is_primary = bool(link.is_primary)


# --- list_assignments ---

ROWS = [
    {"teacher_name": "Mary", "class_section": "BEGINNERS-A", "student_count": 10},
    {"teacher_name": "John", "class_section": "PRIMARY-B", "student_count": 5},
    {"teacher_name": "Mary", "class_section": "PRIMARY-A", "student_count": 3},
]


def test_list_assignments_totaux():
    with patch("app.services.teacher_assignment_service.rpc", return_value=ROWS):
        result = list_assignments(MagicMock())

    assert result.total_students == 18
    assert result.teacher_totals == {"Mary": 13, "John": 5}
    assert [r.teacher_name for r in result.assignments] == ["John", "Mary", "Mary"]


def test_list_assignments_nom_de_classe_depuis_le_libelle():
    with patch("app.services.teacher_assignment_service.rpc", return_value=ROWS):
        result = list_assignments(MagicMock(), "class_section")
    assert [r.class_name for r in result.assignments] == ["BEGINNERS", "PRIMARY", "PRIMARY"]


def test_list_assignments_tri_effectif_descendant():
    with patch("app.services.teacher_assignment_service.rpc", return_value=ROWS):
        result = list_assignments(MagicMock(), "student_count", "desc")
    assert [r.student_count for r in result.assignments] == [10, 5, 3]


# --- assign_teacher ---

def test_assign_teacher_succes():
    db = make_db_mock()
    db.refresh.side_effect = refresh_link
    payload = make_payload()
    result = assign_teacher(db, payload)

    db.add.assert_called_once()
    db.commit.assert_called_once()
    assert result.teacher_id == payload.teacher_id
    assert result.section_id == payload.section_id


def test_assign_teacher_deja_affecte_aucune_ecriture():
    db = make_db_mock(existing_id=uuid.uuid4())
    with pytest.raises(ValueError, match="déjà affecté"):
        assign_teacher(db, make_payload())
    db.add.assert_not_called()
    db.commit.assert_not_called()


def test_assign_teacher_enseignant_introuvable():
    db = make_db_mock(teacher=False)
    with pytest.raises(LookupError, match="Enseignant"):
        assign_teacher(db, make_payload())
    db.add.assert_not_called()


def test_assign_teacher_section_introuvable():
    db = make_db_mock(section=False)
    with pytest.raises(LookupError, match="Section"):
        assign_teacher(db, make_payload())


def test_assign_teacher_soumission_concurrente():
    db = make_db_mock()
    db.commit.side_effect = IntegrityError("INSERT", {}, Exception("uq_section_teacher"))
    with pytest.raises(ValueError):
        assign_teacher(db, make_payload())
    db.rollback.assert_called_once()
