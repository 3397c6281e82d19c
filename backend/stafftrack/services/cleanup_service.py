"""
Purge des présences anciennes (rétention RETENTION_MONTHS mois calendaires).

Une présence est supprimée quand sa création ET sa date d'entrée (ou, à défaut,
de création) sont antérieures à la limite. Les rapports sont conservés.
"""

import logging
from datetime import datetime

from sqlalchemy import and_, delete, or_
from sqlalchemy.orm import Session

from stafftrack import clock
from stafftrack.config import settings
from stafftrack.database import SessionLocal
from stafftrack.models.attendance import AttendanceRecord

logger = logging.getLogger(__name__)


def retention_cutoff() -> datetime:
    """Minuit local, RETENTION_MONTHS mois calendaires avant maintenant."""
    return clock.months_before(clock.now(), settings.RETENTION_MONTHS)


def delete_old_attendances(db: Session) -> int:
    cutoff = retention_cutoff()
    result = db.execute(
        delete(AttendanceRecord).where(
            and_(
                AttendanceRecord.created_at < cutoff,
                or_(AttendanceRecord.entry_time.is_(None), AttendanceRecord.entry_time < cutoff),
            )
        )
    )
    db.commit()
    deleted = result.rowcount or 0
    logger.info("Purge : %d présences supprimées (antérieures au %s)", deleted, cutoff.strftime("%d/%m/%Y"))
    return deleted


def cleanup_manually(db: Session) -> dict:
    """Purge déclenchée depuis l'API. Les erreurs remontent à l'appelant."""
    logger.info("Purge manuelle des présences anciennes")
    deleted = delete_old_attendances(db)
    if deleted == 0:
        message = "Aucune présence ancienne à supprimer."
    else:
        message = f"{deleted} présence(s) supprimée(s)."
    return {"deleted": deleted, "message": message}


def cleanup_scheduled() -> None:
    """
    Tâche planifiée (1er du mois, 02:00) : ouvre sa propre session.
    Ne lève jamais, une erreur est seulement journalisée.
    """
    db = SessionLocal()
    try:
        delete_old_attendances(db)
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors de la purge planifiée des présences : %s", exc)
    finally:
        db.close()
