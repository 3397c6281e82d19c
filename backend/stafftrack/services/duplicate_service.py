"""
Dédoublonnage des présences : une seule ligne par (personne, jour).

Les lignes multiples apparaissent lors de courses entre scan, marquage manuel et
génération en masse. La ligne conservée est celle de plus forte priorité
(record_state.precedence) ; son rapport est rematérialisé.
"""

import logging
from collections import defaultdict

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from stafftrack.config import settings
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.schemas.attendance import DuplicateRemovalResult
from stafftrack.services import record_state, report_service

logger = logging.getLogger(__name__)


def remove_duplicates(db: Session) -> DuplicateRemovalResult:
    records = db.execute(select(AttendanceRecord)).scalars().all()

    groups: dict[tuple, list[AttendanceRecord]] = defaultdict(list)
    for record in records:
        day = record_state.record_day(record)
        if day is not None:
            groups[(record.person_id, day)].append(record)

    to_delete: list[int] = []
    winners: list[AttendanceRecord] = []
    for group in groups.values():
        if len(group) < 2:
            continue
        ranked = sorted(group, key=record_state.precedence, reverse=True)
        winners.append(ranked[0])
        to_delete.extend(r.id for r in ranked[1:])

    removed = 0
    errors: list[str] = []
    for start in range(0, len(to_delete), settings.BATCH_SIZE):
        batch = to_delete[start:start + settings.BATCH_SIZE]
        try:
            db.execute(delete(AttendanceRecord).where(AttendanceRecord.id.in_(batch)))
            db.commit()
            removed += len(batch)
        except Exception as exc:
            db.rollback()
            logger.error("Échec de suppression d'un lot de doublons : %s", exc)
            errors.append(f"Lot {batch[0]}-{batch[-1]} : {exc}")

    for winner in winners:
        report_service.save_report(db, winner)

    logger.info("Dédoublonnage : %d supprimées, %d présences uniques conservées", removed, len(groups))
    return DuplicateRemovalResult(removed=removed, kept=len(groups), errors=errors)
