"""
Génération en masse des feuilles de présence mensuelles.

Une feuille est une présence « Sistema » à 00:00 pour chaque jour ouvré du mois et
chaque personne qui n'a encore rien ce jour-là. Elle sera mise à niveau en place
au premier scan d'entrée. Relancer la génération sur le même mois ne crée rien.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from stafftrack import clock
from stafftrack.config import settings
from stafftrack.errors import InvalidRequestError, NotFoundError
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.person import Person
from stafftrack.schemas.attendance import SheetGenerationResult
from stafftrack.services import credential_service
from stafftrack.services.record_state import AUTO_SHEET_JUSTIFICATION, SYSTEM_MARKER

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100


def sheet_justification(day: date) -> str:
    return (
        f"{AUTO_SHEET_JUSTIFICATION} para {day.strftime('%d/%m/%Y')}. "
        "Se actualizará cuando el profesor marque su entrada."
    )


def business_days(year: int, month: int) -> list[date]:
    """Jours du lundi au vendredi du mois."""
    first, last = clock.month_bounds(year, month)
    days = []
    current = first
    while current <= last:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


def _covered_days(db: Session, person_id: int, first: date, last: date) -> set[date]:
    """Jours du mois où la personne a déjà une présence (entrée ou sortie ce jour-là)."""
    lower, _ = clock.day_bounds(first)
    _, upper = clock.day_bounds(last)
    rows = db.execute(
        select(AttendanceRecord.entry_time, AttendanceRecord.exit_time)
        .where(
            AttendanceRecord.person_id == person_id,
            or_(
                AttendanceRecord.entry_time.between(lower, upper),
                AttendanceRecord.exit_time.between(lower, upper),
            ),
        )
    ).all()
    covered = set()
    for entry, exit_ in rows:
        if entry is not None:
            covered.add(entry.date())
        elif exit_ is not None:
            covered.add(exit_.date())
    return covered


def _resolve_persons(db: Session, person_ids: Optional[list[int]]) -> list[Person]:
    if person_ids:
        persons = db.execute(select(Person).where(Person.id.in_(person_ids))).scalars().all()
        missing = set(person_ids) - {p.id for p in persons}
        if missing:
            raise NotFoundError(f"Personnes introuvables : {sorted(missing)}")
        return list(persons)

    persons = db.execute(select(Person).order_by(Person.id)).scalars().all()
    if not persons:
        raise NotFoundError("Aucune personne enregistrée.")
    return list(persons)


def create_monthly_sheets(
    db: Session, year: int, month: int, person_ids: Optional[list[int]] = None
) -> SheetGenerationResult:
    """
    Crée les feuilles du mois pour les personnes données (ou tout le personnel).

    Étapes :
    1. Valider le mois et l'année, résoudre les personnes
    2. Pour chaque personne, ignorer les jours déjà couverts
    3. Persister par lots de BATCH_SIZE ; un lot en échec est rejoué ligne par ligne
    """
    if month < 1 or month > 12:
        raise InvalidRequestError("Mois invalide : doit être compris entre 1 et 12.")
    if year < MIN_YEAR or year > MAX_YEAR:
        raise InvalidRequestError(f"Année invalide : doit être comprise entre {MIN_YEAR} et {MAX_YEAR}.")

    persons = _resolve_persons(db, person_ids)
    manual_mark = credential_service.get_or_create_manual_mark(db)
    db.commit()
    manual_mark_id = manual_mark.id

    first, last = clock.month_bounds(year, month)
    days = business_days(year, month)
    now = clock.now()

    pending: list[dict] = []
    skipped = 0
    for person in persons:
        covered = _covered_days(db, person.id, first, last)
        for day in days:
            if day in covered:
                skipped += 1
                continue
            day_start, _ = clock.day_bounds(day)
            pending.append({
                "person_id": person.id,
                "credential_id": manual_mark_id,
                "entry_time": day_start,
                "exit_time": None,
                "is_manual": True,
                "marked_by": SYSTEM_MARKER,
                "justification": sheet_justification(day),
                "is_late": False,
                "created_at": now,
            })

    created = 0
    errors: list[str] = []
    for start in range(0, len(pending), settings.BATCH_SIZE):
        batch = pending[start:start + settings.BATCH_SIZE]
        try:
            db.add_all([AttendanceRecord(**values) for values in batch])
            db.commit()
            created += len(batch)
        except Exception as exc:
            db.rollback()
            logger.warning("Lot de feuilles en échec, reprise ligne par ligne : %s", exc)
            for values in batch:
                try:
                    db.add(AttendanceRecord(**values))
                    db.commit()
                    created += 1
                except Exception as row_exc:
                    db.rollback()
                    errors.append(
                        f"Personne {values['person_id']} le {values['entry_time'].date().isoformat()} : {row_exc}"
                    )

    logger.info(
        "Feuilles %02d/%d : %d créées, %d ignorées, %d erreurs",
        month, year, created, skipped, len(errors),
    )
    return SheetGenerationResult(created=created, skipped=skipped, errors=errors)
