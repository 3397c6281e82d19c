"""
Router pour les horaires.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from stafftrack.database import get_db
from stafftrack.errors import to_http_exception
from stafftrack.schemas.schedule import ScheduleCreate, ScheduleResponse, ScheduleUpdate
from stafftrack.services import schedule_service

router = APIRouter(prefix="/api/v1/schedules", tags=["Horaires"])


@router.post("", response_model=ScheduleResponse, status_code=201, summary="Créer un horaire")
def create_schedule(data: ScheduleCreate, db: Session = Depends(get_db)):
    """
    Crée un horaire. Format HH:MM, entrée avant sortie,
    tolérance entre 0 et 120 minutes, pas de doublon entrée/sortie.
    """
    try:
        return schedule_service.create_schedule(db, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[ScheduleResponse], summary="Lister les horaires")
def list_schedules(db: Session = Depends(get_db)):
    return schedule_service.get_schedules(db)


@router.get("/{schedule_id}", response_model=ScheduleResponse, summary="Détail d'un horaire")
def get_schedule(schedule_id: int, db: Session = Depends(get_db)):
    schedule = schedule_service.get_schedule(db, schedule_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail="Horaire introuvable.")
    return schedule


@router.put("/{schedule_id}", response_model=ScheduleResponse, summary="Modifier un horaire")
def update_schedule(schedule_id: int, data: ScheduleUpdate, db: Session = Depends(get_db)):
    try:
        return schedule_service.update_schedule(db, schedule_id, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.delete("/{schedule_id}", status_code=204, summary="Supprimer un horaire")
def delete_schedule(schedule_id: int, db: Session = Depends(get_db)):
    try:
        schedule_service.delete_schedule(db, schedule_id)
    except ValueError as e:
        raise to_http_exception(e)
