"""
Router pour les présences du personnel.
Pointage par scan QR, corrections manuelles, justifications, feuilles mensuelles,
dédoublonnage, statistiques et purge.
"""

import datetime as dt
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stafftrack.database import get_db
from stafftrack.errors import to_http_exception
from stafftrack.schemas.attendance import (
    AttendanceEntryRequest,
    AttendanceExitRequest,
    AttendanceResponse,
    CleanupResult,
    DateRangeRequest,
    DuplicateRemovalResult,
    JustifyRequest,
    ManualMarkRequest,
    MonthlySheetsRequest,
    MonthlyStats,
    RealAttendanceCheck,
    SheetGenerationResult,
    UnjustifiedDay,
)
from stafftrack.services import (
    attendance_service,
    cleanup_service,
    duplicate_service,
    sheet_service,
    stats_service,
)

router = APIRouter(prefix="/api/v1/attendances", tags=["Présences"])


@router.post("/entry", response_model=AttendanceResponse, summary="Marquer l'entrée (scan QR)")
def mark_entry(data: AttendanceEntryRequest, db: Session = Depends(get_db)):
    """
    Enregistre l'entrée d'une personne par scan QR.
    La feuille générée du jour est mise à niveau si elle existe ;
    une deuxième entrée réelle le même jour est refusée (400).
    """
    try:
        return attendance_service.mark_entry(db, data.person_id, data.token)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/exit", response_model=AttendanceResponse, summary="Marquer la sortie (scan QR)")
def mark_exit(data: AttendanceExitRequest, db: Session = Depends(get_db)):
    """Enregistre la sortie et l'activité réalisée sur la présence ouverte du jour."""
    try:
        return attendance_service.mark_exit(db, data.person_id, data.token, data.activity)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/manual", response_model=AttendanceResponse, summary="Marquage manuel")
def mark_manual(data: ManualMarkRequest, db: Session = Depends(get_db)):
    """
    Correction manuelle d'une entrée ou d'une sortie par un administrateur.
    Refusée si une présence QR vérifiée existe déjà ce jour-là.
    """
    try:
        return attendance_service.mark_manual(
            db,
            data.person_id,
            data.direction,
            data.when,
            data.marked_by,
            justification=data.justification,
            dni=data.dni,
            activity=data.activity,
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/monthly-sheets", response_model=SheetGenerationResult, summary="Générer les feuilles du mois")
def create_monthly_sheets(data: MonthlySheetsRequest, db: Session = Depends(get_db)):
    """Crée une feuille « Sistema » par jour ouvré et par personne sans présence ce jour-là."""
    try:
        return sheet_service.create_monthly_sheets(db, data.year, data.month, data.person_ids)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/remove-duplicates", response_model=DuplicateRemovalResult, summary="Supprimer les doublons")
def remove_duplicates(db: Session = Depends(get_db)):
    """Ne conserve qu'une présence par personne et par jour."""
    return duplicate_service.remove_duplicates(db)


@router.post("/justify", response_model=AttendanceResponse, summary="Justifier une présence")
def justify_attendance(data: JustifyRequest, db: Session = Depends(get_db)):
    try:
        return attendance_service.justify_attendance(
            db, data.person_id, data.fecha, data.kind, data.text, marked_by=data.marked_by
        )
    except ValueError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[AttendanceResponse], summary="Lister les présences")
def list_attendances(db: Session = Depends(get_db)):
    """Toutes les présences, hors feuilles générées pour des jours futurs."""
    return attendance_service.list_visible(db)


@router.get("/person/{person_id}", response_model=List[AttendanceResponse], summary="Présences d'une personne")
def list_by_person(person_id: int, db: Session = Depends(get_db)):
    try:
        return attendance_service.list_by_person(db, person_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/unjustified/{person_id}", response_model=List[UnjustifiedDay], summary="Jours non justifiés")
def get_unjustified_days(person_id: int, db: Session = Depends(get_db)):
    """Jours des 30 derniers jours sans présence ou sans justification réelle."""
    try:
        return stats_service.get_unjustified_days(db, person_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/month/{year}/{month}", response_model=List[AttendanceResponse], summary="Présences d'un mois")
def get_by_month_year(year: int, month: int, db: Session = Depends(get_db)):
    try:
        return attendance_service.get_by_month_year(db, year, month)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/range", response_model=List[AttendanceResponse], summary="Présences d'une période")
def get_by_date_range(data: DateRangeRequest, db: Session = Depends(get_db)):
    return attendance_service.get_by_date_range(db, data.start, data.end, data.person_id)


@router.get("/stats/{year}/{month}", response_model=MonthlyStats, summary="Statistiques mensuelles")
def get_monthly_stats(year: int, month: int, db: Session = Depends(get_db)):
    try:
        return stats_service.get_monthly_stats(db, year, month)
    except ValueError as e:
        raise to_http_exception(e)


@router.get(
    "/check-real/{person_id}/{fecha}",
    response_model=RealAttendanceCheck,
    summary="Vérifier une présence QR réelle",
)
def check_real_attendance(person_id: int, fecha: dt.date, manual: bool = False, db: Session = Depends(get_db)):
    """
    Indique si la personne a une présence QR vérifiée ce jour-là.
    manual=true : vérification avant un marquage manuel.
    """
    if manual:
        found = attendance_service.has_real_attendance(db, person_id, fecha)
    else:
        found = attendance_service.has_qr_attendance(db, person_id, fecha)
    return RealAttendanceCheck(person_id=person_id, fecha=fecha, manual=manual, has_attendance=found)


@router.post("/cleanup", response_model=CleanupResult, summary="Purger les présences anciennes")
def cleanup_old_attendances(db: Session = Depends(get_db)):
    """Supprime les présences antérieures à la période de rétention (les rapports sont conservés)."""
    return cleanup_service.cleanup_manually(db)
