"""
Planificateur APScheduler pour l'export automatique du rapport journalier des inscriptions.

Le job s'exécute chaque jour à REPORT_EXPORT_HOUR et écrit le classeur Excel des
inscriptions du jour dans REPORT_EXPORT_DIR. Désactivé si REPORT_EXPORT_DIR est vide.
"""

import logging
from datetime import date
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import settings
from app.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _export_daily_report() -> None:
    """
    Tâche planifiée : exporte les inscriptions du jour sur disque.
    Import local pour éviter les imports circulaires.
    """
    from app.services.export_service import export_registrations

    db = SessionLocal()
    try:
        filename, content = export_registrations(db, date.today())
        target = Path(settings.REPORT_EXPORT_DIR) / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info("Rapport journalier écrit : %s", target)
    except Exception as exc:
        logger.error("Erreur lors de l'export automatique du rapport : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.REPORT_EXPORT_DIR:
        logger.info("Export automatique désactivé (REPORT_EXPORT_DIR vide).")
        return
    scheduler.add_job(
        _export_daily_report,
        trigger="cron",
        hour=settings.REPORT_EXPORT_HOUR,
        id="daily_registration_report",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler démarré : export du rapport chaque jour à %dh.", settings.REPORT_EXPORT_HOUR)


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
