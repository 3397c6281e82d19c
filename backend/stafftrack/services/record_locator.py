"""
Localisation de la présence d'une personne pour un jour donné.

Plusieurs lignes peuvent correspondre au même jour. Chaque candidate est classée
par le premier test satisfait, dans l'ordre entrée → sortie → création :

  1. feuille "Sistema" avec entrée à 00:00:0x          (placeholder)
  2. entrée ou sortie du jour avec une heure réelle     (observation réelle)
  3. ni entrée ni sortie, créée ce jour-là              (justification / absence)
  4. autre correspondance (ex. marquage à 00:00 non système)

À rang égal, la plus récemment créée l'emporte. Toujours relu en base :
aucun résultat n'est mis en cache entre deux écritures.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from stafftrack import clock
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.services import record_state

PLACEHOLDER_TIER = 1
REAL_OBSERVATION_TIER = 2
CREATION_TIER = 3
OTHER_TIER = 4


def records_for_day(db: Session, person_id: int, day: date) -> List[AttendanceRecord]:
    """Toutes les lignes rattachables au jour (entrée, sortie, ou création sans horodatage)."""
    start, end = clock.day_bounds(day)
    return list(
        db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.person_id == person_id,
                or_(
                    AttendanceRecord.entry_time.between(start, end),
                    AttendanceRecord.exit_time.between(start, end),
                    and_(
                        AttendanceRecord.entry_time.is_(None),
                        AttendanceRecord.exit_time.is_(None),
                        AttendanceRecord.created_at.between(start, end),
                    ),
                ),
            )
            .order_by(AttendanceRecord.created_at.desc(), AttendanceRecord.id.desc())
        ).scalars().all()
    )


def match_tier(record: AttendanceRecord, day: date) -> Optional[int]:
    """Rang de correspondance d'une ligne pour le jour, ou None si elle ne s'y rattache pas."""
    entry, exit_ = record.entry_time, record.exit_time

    if entry is not None and entry.date() == day:
        if record_state.is_placeholder(record):
            return PLACEHOLDER_TIER
        if record_state.is_real_time(entry):
            return REAL_OBSERVATION_TIER
        if exit_ is not None and exit_.date() == day and record_state.is_real_time(exit_):
            return REAL_OBSERVATION_TIER
        return OTHER_TIER

    if exit_ is not None and exit_.date() == day:
        return REAL_OBSERVATION_TIER if record_state.is_real_time(exit_) else OTHER_TIER

    if entry is None and exit_ is None and record.created_at is not None and record.created_at.date() == day:
        return CREATION_TIER

    return None


def _sort_key(record: AttendanceRecord, tier: int):
    created = record.created_at.timestamp() if record.created_at else 0.0
    return tier, -created, -(record.id or 0)


def best_match(records: List[AttendanceRecord], day: date) -> Optional[AttendanceRecord]:
    ranked = []
    for record in records:
        tier = match_tier(record, day)
        if tier is not None:
            ranked.append((_sort_key(record, tier), record))
    if not ranked:
        return None
    ranked.sort(key=lambda item: item[0])
    return ranked[0][1]


def locate_for_day(db: Session, person_id: int, day: date) -> Optional[AttendanceRecord]:
    """Retourne la ligne de référence du jour, ou None si la personne n'a rien ce jour-là."""
    return best_match(records_for_day(db, person_id, day), day)
