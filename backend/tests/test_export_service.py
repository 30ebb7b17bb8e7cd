"""
Tests unitaires pour l'export Excel des inscriptions journalières.
"""

import io
from datetime import date
from unittest.mock import MagicMock, patch

from openpyxl import load_workbook

from app.services.export_service import (
    REPORT_COLUMNS,
    build_report_workbook,
    export_registrations,
    report_filename,
)


def make_row(**kwargs) -> dict:
    row = {
        "child_name": "Asha Kumar",
        "age": 6,
        "parent_name": "Ravi Kumar",
        "phone_number": "9876543210",
        "class_section": "PRIMARY-A",
        "registration_date": date(2025, 5, 3),
    }
    row.update(kwargs)
    return row


def load(content: bytes):
    return load_workbook(io.BytesIO(content)).active


def test_report_filename():
    assert report_filename(date(2025, 5, 3)) == "VBS_Registrations_2025-05-03.xlsx"


def test_workbook_entetes_et_largeurs():
    ws = load(build_report_workbook([]))
    assert [c.value for c in ws[1]] == [header for header, _, _ in REPORT_COLUMNS]
    assert ws[1][0].font.bold
    assert ws.column_dimensions["A"].width == 30
    assert ws.column_dimensions["B"].width == 6
    assert ws.column_dimensions["F"].width == 18
    assert ws.max_row == 1


def test_workbook_une_ligne_par_inscription():
    ws = load(build_report_workbook([make_row(), make_row(child_name="Ravi Junior", age=8)]))
    assert ws.max_row == 3
    assert ws["A2"].value == "Asha Kumar"
    assert ws["B3"].value == 8
    assert ws["F2"].value == "03/05/2025"


def test_workbook_section_non_attribuee():
    ws = load(build_report_workbook([make_row(class_section=None)]))
    assert ws["E2"].value == "Non attribuée"


def test_workbook_date_iso_texte():
    ws = load(build_report_workbook([make_row(registration_date="2025-05-03T10:15:00")]))
    assert ws["F2"].value == "03/05/2025"


def test_workbook_date_iso_suffixe_z():
    ws = load(build_report_workbook([make_row(registration_date="2025-05-03T10:15:00Z")]))
    assert ws["F2"].value == "03/05/2025"


def test_export_registrations_appelle_la_procedure_du_jour():
    with patch("app.services.export_service.rpc", return_value=[make_row()]) as mock_rpc:
        filename, content = export_registrations(MagicMock(), date(2025, 5, 3))

    assert filename == "VBS_Registrations_2025-05-03.xlsx"
    assert mock_rpc.call_args[0][1] == "get_registrations_by_date"
    assert mock_rpc.call_args.kwargs == {"p_date": date(2025, 5, 3)}
    assert load(content).max_row == 2
