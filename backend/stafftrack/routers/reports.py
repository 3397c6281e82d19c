"""
Router pour les rapports de présence.
Les lectures recalculent les rapports depuis les présences et réparent la table.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stafftrack.database import get_db
from stafftrack.errors import to_http_exception
from stafftrack.schemas.attendance import DateRangeRequest
from stafftrack.schemas.report import FixMonthsResult, ReportResponse, ReportStats, SyncResult, SyncStatus
from stafftrack.services import report_service

router = APIRouter(prefix="/api/v1/reports", tags=["Rapports"])


@router.get("/month/{year}/{month}", response_model=List[ReportResponse], summary="Rapports d'un mois")
def get_by_year_month(year: int, month: int, person_id: Optional[int] = None, db: Session = Depends(get_db)):
    try:
        return report_service.get_by_year_month(db, year, month, person_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/year/{year}", response_model=List[ReportResponse], summary="Rapports d'une année")
def get_by_year(year: int, person_id: Optional[int] = None, db: Session = Depends(get_db)):
    try:
        return report_service.get_by_year(db, year, person_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/range", response_model=List[ReportResponse], summary="Rapports d'une période")
def get_by_date_range(data: DateRangeRequest, db: Session = Depends(get_db)):
    return report_service.get_by_date_range(db, data.start, data.end, data.person_id)


@router.get("/person/{person_id}", response_model=List[ReportResponse], summary="Rapports d'une personne")
def get_by_person(
    person_id: int,
    year: Optional[int] = None,
    month: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Rapports d'une personne, du plus récent au plus ancien."""
    try:
        return report_service.get_by_person(db, person_id, year, month)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/stats/{year}/{month}", response_model=ReportStats, summary="Statistiques des rapports")
def get_stats(year: int, month: int, db: Session = Depends(get_db)):
    try:
        return report_service.get_stats_by_year_month(db, year, month)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/sync-all", response_model=SyncResult, summary="Reconstruire tous les rapports")
def sync_all(db: Session = Depends(get_db)):
    return report_service.sync_all_attendances(db)


@router.get("/sync-status", response_model=SyncStatus, summary="État de synchronisation")
def sync_status(db: Session = Depends(get_db)):
    return report_service.get_sync_status(db)


@router.post("/fix-months", response_model=FixMonthsResult, summary="Corriger les mois incohérents")
def fix_months(db: Session = Depends(get_db)):
    return report_service.fix_incorrect_months(db)
