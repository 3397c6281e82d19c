"""
Service métier pour les horaires.
CRUD + résolution du retard à l'entrée (seule utilisation des horaires par le pointage).
"""

import logging
import re
from datetime import datetime, time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from stafftrack.errors import InvalidRequestError, NotFoundError
from stafftrack.models.person import Person
from stafftrack.models.schedule import Schedule
from stafftrack.schemas.schedule import ScheduleCreate, ScheduleUpdate

logger = logging.getLogger(__name__)

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
MIN_TOLERANCE = 0
MAX_TOLERANCE = 120


def parse_hhmm(value: str) -> time:
    """Convertit 'HH:MM' en time ; lève InvalidRequestError si le format est invalide."""
    if not value or not HHMM_PATTERN.match(value):
        raise InvalidRequestError(f"Format d'heure invalide : '{value}' (attendu HH:MM).")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def _validate(db: Session, entry_time: str, exit_time: str, tolerance: int, exclude_id: Optional[int] = None) -> None:
    entry = parse_hhmm(entry_time)
    exit_ = parse_hhmm(exit_time)
    if entry >= exit_:
        raise InvalidRequestError("L'heure d'entrée doit être antérieure à l'heure de sortie.")
    if not MIN_TOLERANCE <= tolerance <= MAX_TOLERANCE:
        raise InvalidRequestError(
            f"La tolérance doit être comprise entre {MIN_TOLERANCE} et {MAX_TOLERANCE} minutes."
        )

    query = select(Schedule).where(Schedule.entry_time == entry_time, Schedule.exit_time == exit_time)
    if exclude_id is not None:
        query = query.where(Schedule.id != exclude_id)
    if db.execute(query).scalars().first() is not None:
        raise InvalidRequestError(f"Un horaire {entry_time}-{exit_time} existe déjà.")


def create_schedule(db: Session, data: ScheduleCreate) -> Schedule:
    _validate(db, data.entry_time, data.exit_time, data.entry_tolerance)
    schedule = Schedule(
        entry_time=data.entry_time,
        exit_time=data.exit_time,
        entry_tolerance=data.entry_tolerance,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info("Horaire créé : %s-%s (tolérance %d min)", schedule.entry_time, schedule.exit_time, schedule.entry_tolerance)
    return schedule


def get_schedules(db: Session) -> list[Schedule]:
    return list(db.execute(select(Schedule).order_by(Schedule.entry_time)).scalars().all())


def get_schedule(db: Session, schedule_id: int) -> Optional[Schedule]:
    return db.get(Schedule, schedule_id)


def update_schedule(db: Session, schedule_id: int, data: ScheduleUpdate) -> Schedule:
    """Met à jour un horaire. Seuls les champs fournis sont modifiés, puis l'ensemble est revalidé."""
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise NotFoundError("Horaire introuvable.")

    entry_time = data.entry_time if data.entry_time is not None else schedule.entry_time
    exit_time = data.exit_time if data.exit_time is not None else schedule.exit_time
    tolerance = data.entry_tolerance if data.entry_tolerance is not None else schedule.entry_tolerance
    _validate(db, entry_time, exit_time, tolerance, exclude_id=schedule.id)

    schedule.entry_time = entry_time
    schedule.exit_time = exit_time
    schedule.entry_tolerance = tolerance
    db.commit()
    db.refresh(schedule)
    return schedule


def delete_schedule(db: Session, schedule_id: int) -> None:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise NotFoundError("Horaire introuvable.")
    db.delete(schedule)
    db.commit()
    logger.info("Horaire %s supprimé", schedule_id)


def is_late(db: Session, person: Person, entry_time: datetime) -> bool:
    """
    Retard à l'entrée : minutes écoulées depuis l'heure d'entrée de l'horaire
    (ancrée au jour du pointage) strictement supérieures à la tolérance.
    Sans horaire assigné ou horaire introuvable → jamais en retard.
    """
    if person is None or person.schedule_id is None:
        return False
    schedule = db.get(Schedule, person.schedule_id)
    if schedule is None:
        return False

    try:
        anchored = datetime.combine(entry_time.date(), parse_hhmm(schedule.entry_time))
    except InvalidRequestError:
        logger.warning("Horaire %s mal formé (%s) : retard ignoré", schedule.id, schedule.entry_time)
        return False

    minutes_late = (entry_time - anchored).total_seconds() / 60
    return minutes_late > schedule.entry_tolerance
