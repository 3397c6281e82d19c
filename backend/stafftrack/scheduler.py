"""
Planificateur APScheduler pour la purge mensuelle des présences anciennes.

Le job s'exécute le 1er de chaque mois à 02:00 (fuseau settings.TIMEZONE)
et supprime les présences plus anciennes que RETENTION_MONTHS mois.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from stafftrack.config import settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone=settings.TIMEZONE)

RETENTION_JOB_ID = "attendance_retention_sweep"


def _cleanup_scheduled() -> None:
    """Import local pour éviter les imports circulaires."""
    from stafftrack.services.cleanup_service import cleanup_scheduled

    cleanup_scheduled()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.CLEANUP_SCHEDULER_ENABLED:
        logger.info("Scheduler désactivé (CLEANUP_SCHEDULER_ENABLED=false).")
        return
    scheduler.add_job(
        _cleanup_scheduled,
        trigger="cron",
        day=1,
        hour=2,
        minute=0,
        id=RETENTION_JOB_ID,
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler démarré, purge des présences le 1er de chaque mois à 02:00.")


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
