"""
Router pour l'annuaire du personnel.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from stafftrack.database import get_db
from stafftrack.errors import to_http_exception
from stafftrack.schemas.person import PersonCreate, PersonResponse, PersonUpdate, ScheduleAssignment
from stafftrack.services import person_service

router = APIRouter(prefix="/api/v1/persons", tags=["Personnel"])


@router.post("", response_model=PersonResponse, status_code=201, summary="Créer une personne")
def create_person(data: PersonCreate, db: Session = Depends(get_db)):
    try:
        return person_service.create_person(db, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[PersonResponse], summary="Lister le personnel")
def list_persons(db: Session = Depends(get_db)):
    return person_service.get_persons(db)


@router.get("/{person_id}", response_model=PersonResponse, summary="Détail d'une personne")
def get_person(person_id: int, db: Session = Depends(get_db)):
    person = person_service.get_person(db, person_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Personne introuvable.")
    return person


@router.put("/{person_id}", response_model=PersonResponse, summary="Modifier une personne")
def update_person(person_id: int, data: PersonUpdate, db: Session = Depends(get_db)):
    """Seuls les champs fournis sont modifiés."""
    try:
        return person_service.update_person(db, person_id, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.put("/{person_id}/schedule", response_model=PersonResponse, summary="Assigner un horaire")
def assign_schedule(person_id: int, data: ScheduleAssignment, db: Session = Depends(get_db)):
    try:
        return person_service.assign_schedule(db, person_id, data.schedule_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.delete("/{person_id}", status_code=204, summary="Supprimer une personne")
def delete_person(person_id: int, db: Session = Depends(get_db)):
    """Supprime la personne et, en cascade, ses présences."""
    try:
        person_service.delete_person(db, person_id)
    except ValueError as e:
        raise to_http_exception(e)
