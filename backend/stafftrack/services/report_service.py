"""
Service de matérialisation des rapports de présence.

attendance_reports est une projection dénormalisée d'attendances, une ligne par
(personne, jour). Elle est :
- mise à jour après chaque écriture du moteur de réconciliation (save_report, best-effort)
- recalculée à la lecture depuis attendances (compute_reports), puis réparée en base
  (persist_reports) sauf si l'appelant passe persist=False
- reconstructible entièrement via sync_all_attendances
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from stafftrack import clock
from stafftrack.config import settings
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.report import AttendanceReport
from stafftrack.errors import InvalidRequestError
from stafftrack.services import record_state
from stafftrack.services.sheet_service import MAX_YEAR, MIN_YEAR

logger = logging.getLogger(__name__)

# Champs recopiés tels quels de la présence vers le rapport
COPIED_FIELDS = (
    "entry_time",
    "exit_time",
    "activity",
    "is_manual",
    "marked_by",
    "justification",
)


def _chunks(items: list, size: int) -> Iterable[list]:
    for index in range(0, len(items), size):
        yield items[index:index + size]


def derive_report_date(record: AttendanceRecord) -> date:
    """
    Jour du rapport : entrée, sinon sortie, sinon création.

    Cas particulier : absence justifiée par une personne (entrée à 00:00, texte non automatique)
    dont la création est à moins de 24 h de l'entrée → le jour de création fait foi.
    Les feuilles "Sistema" gardent toujours le jour de leur entrée.
    """
    reference = record.entry_time or record.exit_time or record.created_at or clock.now()
    report_date = reference.date()

    if (
        record_state.has_valid_justification(record)
        and record.is_manual
        and record_state.origin_of(record).kind is not record_state.OriginKind.SYSTEM
        and record_state.is_midnight(record.entry_time)
        and record.created_at is not None
    ):
        if abs(record.created_at - record.entry_time) < timedelta(hours=24):
            report_date = record.created_at.date()

    return report_date


def _apply(report: AttendanceReport, record: AttendanceRecord, fecha: date) -> AttendanceReport:
    for field in COPIED_FIELDS:
        setattr(report, field, getattr(record, field))
    report.is_late = bool(record.is_late)
    report.person_id = record.person_id
    report.attendance_id = record.id
    report.fecha = fecha
    report.year = fecha.year
    report.month = fecha.month
    return report


def _upsert_report(db: Session, record: AttendanceRecord) -> AttendanceReport:
    """Crée ou met à jour le rapport (personne, jour) de la présence. Ne commit pas."""
    fecha = derive_report_date(record)
    report = db.execute(
        select(AttendanceReport).where(
            AttendanceReport.person_id == record.person_id,
            AttendanceReport.fecha == fecha,
        )
    ).scalars().first()

    if report is None:
        report = AttendanceReport()
        db.add(report)
    _apply(report, record, fecha)
    db.flush()
    return report


def save_report(db: Session, record: AttendanceRecord) -> Optional[AttendanceReport]:
    """
    Matérialise le rapport d'une présence qui vient d'être écrite.
    Ne lève jamais : une erreur est journalisée, annulée, et None est retourné.
    """
    try:
        if record.person_id is None:
            logger.error("Présence %s sans personne associée : rapport ignoré", record.id)
            return None
        report = _upsert_report(db, record)
        db.commit()
        db.refresh(report)
        return report
    except Exception as exc:
        logger.error("Erreur lors de l'enregistrement du rapport (présence %s) : %s", record.id, exc)
        db.rollback()
        return None


# --- Lecture avec réparation --------------------------------------------------

def _candidate_records(db: Session, start: date, end: date, person_id: Optional[int]) -> list[AttendanceRecord]:
    """
    Présences susceptibles de tomber dans [start, end], avec un jour de marge de chaque côté.
    Le jour dérivé est toujours celui de l'entrée, de la sortie ou de la création :
    la fenêtre élargie suffit, y compris pour les absences justifiées.
    """
    lower, upper = clock.widened_bounds(start, end)
    query = (
        select(AttendanceRecord)
        .where(
            or_(
                AttendanceRecord.entry_time.between(lower, upper),
                AttendanceRecord.exit_time.between(lower, upper),
                AttendanceRecord.created_at.between(lower, upper),
            )
        )
        .order_by(
            func.coalesce(AttendanceRecord.entry_time, AttendanceRecord.exit_time, AttendanceRecord.created_at),
            AttendanceRecord.id,
        )
    )
    if person_id is not None:
        query = query.where(AttendanceRecord.person_id == person_id)
    return list(db.execute(query).scalars().all())


def compute_reports(
    db: Session, start: date, end: date, person_id: Optional[int] = None
) -> list[AttendanceReport]:
    """
    Recalcule les rapports de [start, end] depuis attendances, sans rien écrire.
    Une seule ligne par (personne, jour) : la présence de plus forte priorité l'emporte.
    Les objets retournés sont transitoires (hors session).
    """
    winners: dict[tuple[int, date], AttendanceRecord] = {}
    for record in _candidate_records(db, start, end, person_id):
        fecha = derive_report_date(record)
        if fecha < start or fecha > end:
            continue
        key = (record.person_id, fecha)
        current = winners.get(key)
        if current is None or record_state.precedence(record) > record_state.precedence(current):
            winners[key] = record

    reports = [_apply(AttendanceReport(), record, fecha) for (_, fecha), record in winners.items()]
    reports.sort(key=lambda r: (r.fecha, r.person_id))
    return reports


def persist_reports(db: Session, reports: list[AttendanceReport]) -> list[AttendanceReport]:
    """
    Écrit les rapports calculés : recherche par attendance_id, sinon par (personne, jour).
    Best-effort : en cas d'erreur la transaction est annulée et les rapports calculés sont retournés.
    """
    persisted = []
    try:
        for computed in reports:
            existing = None
            if computed.attendance_id is not None:
                existing = db.execute(
                    select(AttendanceReport).where(AttendanceReport.attendance_id == computed.attendance_id)
                ).scalars().first()
            if existing is None:
                existing = db.execute(
                    select(AttendanceReport).where(
                        AttendanceReport.person_id == computed.person_id,
                        AttendanceReport.fecha == computed.fecha,
                    )
                ).scalars().first()
            if existing is None:
                existing = AttendanceReport()
                db.add(existing)

            for field in COPIED_FIELDS + ("is_late", "person_id", "attendance_id", "fecha", "year", "month"):
                setattr(existing, field, getattr(computed, field))
            db.flush()
            persisted.append(existing)
        db.commit()
    except Exception as exc:
        logger.error("Erreur lors de la synchronisation des rapports (poursuite sans écriture) : %s", exc)
        db.rollback()
        return reports

    logger.debug("%d rapports synchronisés", len(persisted))
    return persisted


def get_by_date_range(
    db: Session, start: date, end: date, person_id: Optional[int] = None, persist: bool = True
) -> list[AttendanceReport]:
    """Rapports de [start, end] recalculés depuis attendances (toujours à jour)."""
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    reports = compute_reports(db, start, end, person_id)
    if persist and reports:
        return persist_reports(db, reports)
    return reports


def _check_period(year: int, month: Optional[int] = None) -> None:
    if year < MIN_YEAR or year > MAX_YEAR:
        raise InvalidRequestError(f"Année invalide : doit être comprise entre {MIN_YEAR} et {MAX_YEAR}.")
    if month is not None and (month < 1 or month > 12):
        raise InvalidRequestError("Mois invalide : doit être compris entre 1 et 12.")


def get_by_year_month(db: Session, year: int, month: int, person_id: Optional[int] = None, persist: bool = True):
    _check_period(year, month)
    first, last = clock.month_bounds(year, month)
    return get_by_date_range(db, first, last, person_id, persist)


def get_by_year(db: Session, year: int, person_id: Optional[int] = None, persist: bool = True):
    _check_period(year)
    return get_by_date_range(db, date(year, 1, 1), date(year, 12, 31), person_id, persist)


def get_by_person(
    db: Session, person_id: int, year: Optional[int] = None, month: Optional[int] = None
) -> list[AttendanceReport]:
    """Rapports d'une personne, du plus récent au plus ancien (10 dernières années par défaut)."""
    if year is not None or month is not None:
        _check_period(year if year is not None else clock.today().year, month)
    if year is not None and month is not None:
        reports = get_by_year_month(db, year, month, person_id)
    elif year is not None:
        reports = get_by_year(db, year, person_id)
    else:
        today = clock.today()
        reports = get_by_date_range(db, today.replace(year=today.year - 10, day=1), today, person_id)
    return sorted(reports, key=lambda r: r.fecha, reverse=True)


def get_stats_by_year_month(db: Session, year: int, month: int) -> dict:
    reports = get_by_year_month(db, year, month)

    justified = sum(
        1 for r in reports
        if not record_state.is_auto_justification(r.justification)
        and not record_state.is_real_time(r.entry_time)
        and not record_state.is_real_time(r.exit_time)
    )
    absences = sum(
        1 for r in reports
        if r.entry_time is None and r.exit_time is None and not (r.justification or "").strip()
    )

    return {
        "year": year,
        "month": month,
        "total_reports": len(reports),
        "with_entry": sum(1 for r in reports if r.entry_time is not None),
        "with_exit": sum(1 for r in reports if r.exit_time is not None),
        "justified": justified,
        "absences": absences,
        "manual": sum(1 for r in reports if r.is_manual),
        "tardanzas": sum(1 for r in reports if r.is_late),
        "reports": reports,
    }


# --- Maintenance ------------------------------------------------------------

def sync_all_attendances(db: Session) -> dict:
    """
    Reconstruit les rapports de toutes les présences, dans l'ordre de création.
    Commit par lots de BATCH_SIZE ; un lot en échec est rejoué ligne par ligne.
    """
    records = list(
        db.execute(
            select(AttendanceRecord).order_by(AttendanceRecord.created_at, AttendanceRecord.id)
        ).scalars().all()
    )
    synced = errors = skipped = 0
    logger.info("Début de la synchronisation de %d présences vers les rapports", len(records))

    for batch in _chunks(records, settings.BATCH_SIZE):
        eligible = [r for r in batch if r.person_id is not None]
        skipped += len(batch) - len(eligible)
        try:
            for record in eligible:
                _upsert_report(db, record)
            db.commit()
            synced += len(eligible)
        except Exception as exc:
            db.rollback()
            logger.warning("Lot de synchronisation en échec, reprise ligne par ligne : %s", exc)
            for record in eligible:
                try:
                    _upsert_report(db, record)
                    db.commit()
                    synced += 1
                except Exception as row_exc:
                    db.rollback()
                    errors += 1
                    logger.error("Erreur de synchronisation de la présence %s : %s", record.id, row_exc)

    logger.info("Synchronisation terminée : %d synchronisées, %d erreurs, %d ignorées", synced, errors, skipped)
    return {"synced": synced, "errors": errors, "skipped": skipped}


def get_sync_status(db: Session) -> dict:
    total_attendances = db.execute(select(func.count(AttendanceRecord.id))).scalar() or 0
    total_reports = db.execute(select(func.count(AttendanceReport.id))).scalar() or 0
    percentage = "%.2f" % (total_reports / total_attendances * 100) if total_attendances else "0.00"
    return {
        "total_attendances": total_attendances,
        "total_reports": total_reports,
        "pending": total_attendances - total_reports,
        "percentage": percentage,
    }


def fix_incorrect_months(db: Session) -> dict:
    """Réaligne year/month sur fecha pour les rapports incohérents."""
    fixed = errors = 0
    for report in db.execute(select(AttendanceReport)).scalars().all():
        try:
            if report.year != report.fecha.year or report.month != report.fecha.month:
                logger.info(
                    "Correction du rapport %s : %s/%s → %s/%s",
                    report.id, report.month, report.year, report.fecha.month, report.fecha.year,
                )
                report.year = report.fecha.year
                report.month = report.fecha.month
                db.commit()
                fixed += 1
        except Exception as exc:
            db.rollback()
            errors += 1
            logger.error("Erreur lors de la correction du rapport %s : %s", report.id, exc)

    logger.info("Correction des mois terminée : %d corrigés, %d erreurs", fixed, errors)
    return {"fixed": fixed, "errors": errors}
