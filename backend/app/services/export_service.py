"""
Export Excel des inscriptions d'une journée.
Les lignes viennent de la procédure get_registrations_by_date ; ce module
ne fait que les remettre en forme dans un classeur à colonnes fixes.
"""

import io
import logging
from datetime import date, datetime
from typing import Any, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy.orm import Session

from app.database import rpc

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (en-tête, clé de la ligne retournée par la procédure, largeur de colonne)
REPORT_COLUMNS: List[Tuple[str, str, int]] = [
    ("Child Name", "child_name", 30),
    ("Age", "age", 6),
    ("Parent Name", "parent_name", 30),
    ("Phone Number", "phone_number", 15),
    ("Class-Section", "class_section", 18),
    ("Registration Date", "registration_date", 18),
]


def report_filename(report_date: date) -> str:
    return f"VBS_Registrations_{report_date.isoformat()}.xlsx"


def _format_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, str) and value:
        # fromisoformat n'accepte le suffixe Z qu'à partir de Python 3.11
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value).strftime("%d/%m/%Y")
    return ""


def get_report_rows(db: Session, report_date: date) -> List[dict]:
    return rpc(db, "get_registrations_by_date", p_date=report_date)


def build_report_workbook(rows: List[dict]) -> bytes:
    """Construit le classeur : une ligne par inscription, largeurs de colonnes fixes."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Registrations"

    ws.append([header for header, _, _ in REPORT_COLUMNS])
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row in rows:
        ws.append([
            row.get("child_name") or "",
            row.get("age"),
            row.get("parent_name") or "",
            row.get("phone_number") or "",
            row.get("class_section") or "Non attribuée",
            _format_date(row.get("registration_date")),
        ])

    for index, (_, _, width) in enumerate(REPORT_COLUMNS):
        ws.column_dimensions[chr(ord("A") + index)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_registrations(db: Session, report_date: date) -> Tuple[str, bytes]:
    """Retourne (nom de fichier, contenu xlsx) pour les inscriptions du jour donné."""
    rows = get_report_rows(db, report_date)
    logger.info("Export des inscriptions du %s : %d ligne(s)", report_date, len(rows))
    return report_filename(report_date), build_report_workbook(rows)
