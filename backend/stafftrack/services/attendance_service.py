"""
Moteur de réconciliation des présences.

Trois sources d'événements convergent vers une présence canonique par (personne, jour) :
- scan QR (mark_entry / mark_exit)
- correction manuelle d'un administrateur (mark_manual)
- justification d'absence, de retard ou de départ anticipé (justify_attendance)

Priorité : une présence QR vérifiée (heure réelle) n'est jamais écrasée par une
correction manuelle ou une justification. Les feuilles générées ("Sistema", 00:00)
sont mises à niveau en place plutôt que dupliquées.

Chaque écriture réussie : commit → rapport (best-effort) → diffusion temps réel →
notification des administrateurs pour les nouvelles présences par scan.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from stafftrack import clock, realtime
from stafftrack.config import settings
from stafftrack.errors import ConflictError, InvalidRequestError
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.credential import QrCredential
from stafftrack.models.person import Person
from stafftrack.schemas.attendance import AttendanceResponse
from stafftrack.services import (
    credential_service,
    notification_service,
    person_service,
    record_locator,
    record_state,
    report_service,
    schedule_service,
)
from stafftrack.services.record_state import (
    DEFAULT_MANUAL_JUSTIFICATION,
    QR_MARKER,
    OriginKind,
)

logger = logging.getLogger(__name__)

JUSTIFICATION_KINDS = ("absence", "delay", "early_exit")


# --- Fan-out après écriture ---------------------------------------------------

def _serialize(record: AttendanceRecord) -> dict:
    return AttendanceResponse.model_validate(record).model_dump(mode="json")


def _notify_new_scan(person: Person, record: AttendanceRecord) -> None:
    entry = record.entry_time.strftime("%H:%M") if record.entry_time else "non enregistrée"
    body = (
        f"{person.full_name} a enregistré sa présence.\n"
        f"Heure d'entrée : {entry}\n"
        f"Méthode : scan QR"
    )
    notification_service.notify_admins("Nouvelle présence enregistrée", body)


def _save_with_events(
    db: Session,
    record: AttendanceRecord,
    event: Optional[str],
    person: Optional[Person] = None,
) -> AttendanceRecord:
    """
    Commit de la présence puis effets secondaires best-effort.
    event=None : seule la liste est rafraîchie côté client (marquage manuel créé).
    person fourni : les administrateurs sont notifiés.
    """
    db.commit()
    db.refresh(record)

    report_service.save_report(db, record)

    if event is not None:
        realtime.publisher.publish(event, _serialize(record))
    realtime.publisher.publish(realtime.ATTENDANCES_LIST_UPDATED, {"person_id": record.person_id})

    if person is not None:
        _notify_new_scan(person, record)
    return record


def _resolve_credential(db: Session, token: str) -> QrCredential:
    credential = credential_service.find_active_by_token(db, token)
    if credential is None:
        raise InvalidRequestError("QR code invalide, inactif ou expiré.")
    return credential


# --- Scan QR ----------------------------------------------------------------

def mark_entry(db: Session, person_id: int, token: str) -> AttendanceRecord:
    """
    Enregistre l'entrée par scan QR.

    Étapes :
    1. Vérifier la personne et le QR (actif, non expiré)
    2. Refuser une deuxième entrée réelle le même jour
    3. Mettre à niveau la feuille générée du jour si elle existe
    4. Sinon créer une présence "QR" et notifier les administrateurs
    """
    person = person_service.require_person(db, person_id)
    credential = _resolve_credential(db, token)

    now = clock.now()
    today = now.date()
    records = record_locator.records_for_day(db, person_id, today)

    for record in records:
        if (
            record_state.origin_of(record).kind is not OriginKind.SYSTEM
            and record_state.is_real_time(record.entry_time)
            and record.entry_time.date() == today
        ):
            raise InvalidRequestError("Entrée déjà enregistrée aujourd'hui.")

    late = schedule_service.is_late(db, person, now)
    placeholders = [r for r in records if record_state.is_placeholder(r) and r.entry_time.date() == today]
    sheet = record_locator.best_match(placeholders, today)

    if sheet is not None:
        sheet.entry_time = now
        sheet.credential_id = credential.id
        sheet.is_manual = False
        sheet.marked_by = QR_MARKER
        sheet.justification = None
        sheet.is_late = late
        logger.info("Feuille %s mise à niveau par scan pour %s (retard : %s)", sheet.id, person.full_name, late)
        return _save_with_events(db, sheet, realtime.ATTENDANCE_UPDATED)

    record = AttendanceRecord(
        person_id=person.id,
        credential_id=credential.id,
        entry_time=now,
        is_manual=False,
        marked_by=QR_MARKER,
        is_late=late,
        created_at=now,
    )
    db.add(record)
    logger.info("Entrée QR de %s à %s (retard : %s)", person.full_name, now.strftime("%H:%M"), late)
    return _save_with_events(db, record, realtime.ATTENDANCE_CREATED, person=person)


def mark_exit(db: Session, person_id: int, token: str, activity: Optional[str] = None) -> AttendanceRecord:
    """Enregistre la sortie par scan QR sur la présence ouverte du jour."""
    person = person_service.require_person(db, person_id)
    credential = _resolve_credential(db, token)

    now = clock.now()
    today = now.date()
    records = record_locator.records_for_day(db, person_id, today)
    with_entry_today = [r for r in records if r.entry_time is not None and r.entry_time.date() == today]

    open_records = [r for r in with_entry_today if r.exit_time is None]
    genuine = [r for r in open_records if not record_state.is_placeholder(r)]

    if not genuine:
        if any(not record_state.is_placeholder(r) and r.exit_time is not None for r in with_entry_today):
            raise InvalidRequestError("Sortie déjà enregistrée aujourd'hui.")
        if open_records:
            raise InvalidRequestError("Vous devez d'abord marquer votre entrée avant de marquer la sortie.")
        raise InvalidRequestError("Aucune entrée trouvée aujourd'hui pour enregistrer la sortie.")

    record = record_locator.best_match(genuine, today)
    record.exit_time = now
    if activity is not None:
        record.activity = activity
    record.credential_id = credential.id
    if record_state.origin_of(record).kind is OriginKind.SYSTEM or not record.marked_by:
        record.marked_by = QR_MARKER

    logger.info("Sortie QR de %s à %s", person.full_name, now.strftime("%H:%M"))
    return _save_with_events(db, record, realtime.ATTENDANCE_UPDATED)


# --- Marquage manuel --------------------------------------------------------

def mark_manual(
    db: Session,
    person_id: int,
    direction: str,
    when: datetime,
    marked_by: str,
    justification: Optional[str] = None,
    dni: Optional[str] = None,
    activity: Optional[str] = None,
) -> AttendanceRecord:
    """
    Correction manuelle d'une entrée ou d'une sortie par un administrateur.

    Refusée si la personne a déjà une présence QR vérifiée ce jour-là, ou si le jour
    porte une justification valide sans présence réelle. La création d'une présence
    manuelle n'est jamais diffusée comme « nouvelle présence ».
    """
    if direction not in ("entry", "exit"):
        raise InvalidRequestError("Direction invalide : 'entry' ou 'exit' attendu.")

    person = person_service.require_person(db, person_id)
    if dni is not None and (person.dni or "").strip().upper() != dni.strip().upper():
        raise InvalidRequestError("Le DNI ne correspond pas à la personne.")

    when = clock.to_local(when)
    day = when.date()
    actor = marked_by
    reason = justification.strip() if justification and justification.strip() else DEFAULT_MANUAL_JUSTIFICATION
    records = record_locator.records_for_day(db, person_id, day)

    if any(record_state.has_valid_justification(r) for r in records) and not any(
        record_state.has_real_time(r) for r in records
    ):
        raise ConflictError("Ce jour porte déjà une justification : marquage manuel impossible.")

    if direction == "entry":
        return _manual_entry(db, person, records, day, when, actor, reason, activity)
    return _manual_exit(db, person, records, day, when, actor, reason, activity)


def _is_scan(record: AttendanceRecord) -> bool:
    return record_state.origin_of(record).kind is OriginKind.SCAN


def _manual_entry(db, person, records, day, when, actor, reason, activity) -> AttendanceRecord:
    for record in records:
        if _is_scan(record) and record_state.is_real_time(record.entry_time) and record.entry_time.date() == day:
            raise ConflictError("Une entrée QR vérifiée existe déjà ce jour-là.")

    late = schedule_service.is_late(db, person, when)
    record = record_locator.best_match(records, day)

    if record is not None:
        record.entry_time = when
        record.is_late = late
        if activity is not None:
            record.activity = activity
        record.is_manual = True
        record.marked_by = actor
        record.justification = reason
        record.credential_id = None
        logger.info("Entrée manuelle de %s corrigée par %s (présence %s)", person.full_name, actor, record.id)
        return _save_with_events(db, record, realtime.ATTENDANCE_UPDATED)

    record = AttendanceRecord(
        person_id=person.id,
        entry_time=when,
        activity=activity,
        is_manual=True,
        marked_by=actor,
        justification=reason,
        is_late=late,
        created_at=clock.now(),
    )
    db.add(record)
    logger.info("Entrée manuelle de %s créée par %s", person.full_name, actor)
    return _save_with_events(db, record, None)


def _manual_exit(db, person, records, day, when, actor, reason, activity) -> AttendanceRecord:
    for record in records:
        if _is_scan(record) and record_state.has_real_time(record):
            raise ConflictError("Une présence QR vérifiée existe déjà ce jour-là.")
    for record in records:
        if (
            record_state.origin_of(record).kind is not OriginKind.SYSTEM
            and record_state.is_real_time(record.exit_time)
        ):
            raise InvalidRequestError("Sortie déjà enregistrée ce jour-là.")

    open_records = [r for r in records if r.entry_time is not None and r.exit_time is None]
    record = record_locator.best_match(open_records, day)

    if record is not None:
        if when < record.entry_time:
            raise InvalidRequestError("La sortie doit être postérieure à l'entrée.")
        record.exit_time = when
        if activity is not None:
            record.activity = activity
        if record.marked_by != QR_MARKER:
            record.is_manual = True
            record.marked_by = actor
            record.justification = reason
        logger.info("Sortie manuelle de %s enregistrée par %s (présence %s)", person.full_name, actor, record.id)
        return _save_with_events(db, record, realtime.ATTENDANCE_UPDATED)

    # Pas d'entrée ouverte : paire entrée + sortie au même instant
    record = AttendanceRecord(
        person_id=person.id,
        entry_time=when,
        exit_time=when,
        activity=activity,
        is_manual=True,
        marked_by=actor,
        justification=reason,
        is_late=schedule_service.is_late(db, person, when),
        created_at=clock.now(),
    )
    db.add(record)
    logger.info("Sortie manuelle de %s créée par %s sans entrée ouverte", person.full_name, actor)
    return _save_with_events(db, record, None)


# --- Justification ----------------------------------------------------------

def justify_attendance(
    db: Session,
    person_id: int,
    day: date,
    kind: str,
    text: str,
    marked_by: Optional[str] = None,
) -> AttendanceRecord:
    """
    Applique une justification (absence, retard, départ anticipé) sur la présence du jour.

    Refusée pour une date future, un texte trop court, ou un jour avec présence QR vérifiée.
    Absence : entrée ramenée à 00:00, sortie, activité et QR effacés.
    Retard : entrée à 00:00 si absente ou déjà à minuit.
    Départ anticipé : sortie à 23:59:59 si absente ou à minuit.
    """
    if isinstance(day, datetime):
        day = day.date()
    if kind not in JUSTIFICATION_KINDS:
        raise InvalidRequestError(f"Type de justification invalide : {kind}.")

    person = person_service.require_person(db, person_id)
    if day > clock.today():
        raise InvalidRequestError("Impossible de justifier une date future.")
    text = (text or "").strip()
    if len(text) < settings.MIN_JUSTIFICATION_LENGTH:
        raise InvalidRequestError(
            f"La justification doit contenir au moins {settings.MIN_JUSTIFICATION_LENGTH} caractères."
        )
    if has_qr_attendance(db, person_id, day):
        raise ConflictError("Présence QR vérifiée ce jour-là : justification impossible.")

    actor = marked_by or person.name
    day_start, day_end = clock.day_bounds(day)
    record = record_locator.locate_for_day(db, person_id, day)

    if record is not None:
        record.justification = text
        record.is_manual = True
        record.marked_by = actor
        if kind == "absence":
            record.entry_time = day_start
            record.exit_time = None
            record.activity = None
            record.credential_id = None
        elif kind == "delay":
            if record.entry_time is None or record_state.is_midnight(record.entry_time):
                record.entry_time = day_start
        elif kind == "early_exit":
            if record.exit_time is None or record_state.is_midnight(record.exit_time):
                record.exit_time = day_end
        logger.info("Justification (%s) appliquée à la présence %s de %s par %s", kind, record.id, person.full_name, actor)
        return _save_with_events(db, record, realtime.ATTENDANCE_UPDATED)

    record = AttendanceRecord(
        person_id=person.id,
        entry_time=day_start,
        exit_time=day_end if kind == "early_exit" else None,
        is_manual=True,
        marked_by=actor,
        justification=text,
        created_at=clock.now(),
    )
    db.add(record)
    logger.info("Justification (%s) créée pour %s le %s par %s", kind, person.full_name, day, actor)
    return _save_with_events(db, record, realtime.ATTENDANCE_CREATED)


# --- Vérifications ----------------------------------------------------------

def has_qr_attendance(db: Session, person_id: int, day: date) -> bool:
    """Vrai si la personne a une présence QR avec heure réelle ce jour-là."""
    return any(
        record_state.is_qr_verified(r) for r in record_locator.records_for_day(db, person_id, day)
    )


def has_real_attendance(db: Session, person_id: int, day: date) -> bool:
    """Présence réelle du jour, au sens de la vérification par scan."""
    return has_qr_attendance(db, person_id, day)


# --- Lectures ---------------------------------------------------------------

def list_by_person(db: Session, person_id: int) -> list[AttendanceRecord]:
    person_service.require_person(db, person_id)
    return list(
        db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.person_id == person_id)
            .order_by(AttendanceRecord.entry_time.desc(), AttendanceRecord.id.desc())
        ).scalars().all()
    )


def _is_visible(record: AttendanceRecord, today: date) -> bool:
    """Les feuilles générées n'apparaissent qu'une fois leur jour arrivé."""
    if record_state.origin_of(record).kind is not OriginKind.SYSTEM:
        return True
    if record_state.has_real_time(record):
        return True
    day = record_state.record_day(record)
    return day is not None and day <= today


def list_visible(db: Session) -> list[AttendanceRecord]:
    """Toutes les présences, hors feuilles générées pour des jours futurs."""
    today = clock.today()
    records = db.execute(
        select(AttendanceRecord).order_by(
            AttendanceRecord.created_at.desc(), AttendanceRecord.entry_time.desc()
        )
    ).scalars().all()
    return [r for r in records if _is_visible(r, today)]


def get_by_date_range(
    db: Session, start: date, end: date, person_id: Optional[int] = None
) -> list[AttendanceRecord]:
    """Présences dont l'entrée ou la sortie tombe dans [start, end], triées par entrée."""
    lower, _ = clock.day_bounds(start)
    _, upper = clock.day_bounds(end)
    query = select(AttendanceRecord).where(
        or_(
            and_(AttendanceRecord.entry_time >= lower, AttendanceRecord.entry_time <= upper),
            and_(AttendanceRecord.exit_time >= lower, AttendanceRecord.exit_time <= upper),
        )
    )
    if person_id is not None:
        query = query.where(AttendanceRecord.person_id == person_id)
    query = query.order_by(AttendanceRecord.entry_time, AttendanceRecord.id)
    return list(db.execute(query).scalars().all())


def get_by_month_year(db: Session, year: int, month: int) -> list[AttendanceRecord]:
    if month < 1 or month > 12:
        raise InvalidRequestError("Mois invalide : doit être compris entre 1 et 12.")
    first, last = clock.month_bounds(year, month)
    return get_by_date_range(db, first, last)
