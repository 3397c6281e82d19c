"""
Statistiques mensuelles de présence et jours non justifiés.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from stafftrack import clock
from stafftrack.config import settings
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.person import Person
from stafftrack.models.schedule import Schedule
from stafftrack.schemas.attendance import MonthlyStats, PersonMonthlyStats, UnjustifiedDay
from stafftrack.services import attendance_service, person_service, record_state
from stafftrack.services.schedule_service import parse_hhmm

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 30


def _late_limits(db: Session) -> dict[int, int]:
    """Minute du jour au-delà de laquelle une entrée est en retard, par horaire."""
    limits = {}
    for schedule in db.execute(select(Schedule)).scalars().all():
        try:
            expected = parse_hhmm(schedule.entry_time)
        except ValueError:
            logger.warning("Horaire %s mal formé (%s) ignoré", schedule.id, schedule.entry_time)
            continue
        tolerance = schedule.entry_tolerance if schedule.entry_tolerance is not None else DEFAULT_TOLERANCE
        limits[schedule.id] = expected.hour * 60 + expected.minute + tolerance
    return limits


def _is_late(record: AttendanceRecord, person: Person, limits: dict[int, int]) -> bool:
    if record.is_late:
        return True
    limit = limits.get(person.schedule_id) if person.schedule_id is not None else None
    if limit is None or record.entry_time is None:
        return False
    return record.entry_time.hour * 60 + record.entry_time.minute > limit


def get_monthly_stats(db: Session, year: int, month: int) -> MonthlyStats:
    """
    Agrège les présences du mois.

    Seules les présences avec une heure réelle comptent comme jours de présence :
    les feuilles générées et les absences justifiées à 00:00 n'en sont pas.
    ausencias = jours du mois - jours de présence, par personne.
    """
    records = attendance_service.get_by_month_year(db, year, month)
    persons = person_service.get_persons(db)
    limits = _late_limits(db)
    _, last = clock.month_bounds(year, month)
    days_in_month = last.day

    per_person = {
        p.id: {"person": p, "asistencias": 0, "retrasos": 0, "dias": set()}
        for p in persons
    }

    completas = incompletas = retrasos = justificados = 0
    for record in records:
        if record_state.has_valid_justification(record):
            justificados += 1

        stats = per_person.get(record.person_id)
        if stats is None or not record_state.has_real_time(record):
            continue

        stats["asistencias"] += 1
        stats["dias"].add(record_state.record_day(record))
        if record.exit_time is not None:
            completas += 1
        else:
            incompletas += 1
        if _is_late(record, stats["person"], limits):
            stats["retrasos"] += 1
            retrasos += 1

    por_profesor = []
    for person_id, stats in per_person.items():
        por_profesor.append(PersonMonthlyStats(
            person_id=person_id,
            nombre=stats["person"].full_name,
            total_dias=days_in_month,
            asistencias=stats["asistencias"],
            ausencias=max(days_in_month - len(stats["dias"]), 0),
            retrasos=stats["retrasos"],
        ))

    return MonthlyStats(
        year=year,
        month=month,
        total_asistencias=len(records),
        total_profesores=len(persons),
        asistencias_completas=completas,
        asistencias_incompletas=incompletas,
        ausencias=sum(p.ausencias for p in por_profesor),
        justificados=justificados,
        retrasos=retrasos,
        salidas_tempranas=0,
        tardanzas=retrasos,
        por_profesor=por_profesor,
    )


def get_unjustified_days(db: Session, person_id: int) -> list[UnjustifiedDay]:
    """
    Jours de la fenêtre glissante (aujourd'hui inclus, UNJUSTIFIED_WINDOW_DAYS jours en arrière)
    sans présence enregistrée ou sans justification réelle.
    """
    person_service.require_person(db, person_id)
    today = clock.today()
    first = today - timedelta(days=settings.UNJUSTIFIED_WINDOW_DAYS)

    records = db.execute(
        select(AttendanceRecord).where(AttendanceRecord.person_id == person_id)
    ).scalars().all()

    attended: dict[date, bool] = defaultdict(bool)
    justified: dict[date, bool] = defaultdict(bool)
    for record in records:
        day = record_state.record_day(record)
        if day is None or day < first or day > today:
            continue
        if record_state.has_real_time(record) or record_state.origin_of(record).kind is not record_state.OriginKind.SYSTEM:
            attended[day] = True
        if record_state.has_valid_justification(record):
            justified[day] = True

    days = []
    current = first
    while current <= today:
        if not justified[current]:
            days.append(UnjustifiedDay(
                fecha=current,
                has_attendance=attended[current],
                has_justification=False,
            ))
        current += timedelta(days=1)
    return days
