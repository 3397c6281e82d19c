"""
Service métier pour l'annuaire du personnel.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from stafftrack.errors import NotFoundError
from stafftrack.models.person import Person
from stafftrack.models.schedule import Schedule
from stafftrack.schemas.person import PersonCreate, PersonUpdate

logger = logging.getLogger(__name__)


def _check_schedule(db: Session, schedule_id: Optional[int]) -> None:
    if schedule_id is not None and db.get(Schedule, schedule_id) is None:
        raise NotFoundError("Horaire introuvable.")


def create_person(db: Session, data: PersonCreate) -> Person:
    _check_schedule(db, data.schedule_id)
    person = Person(
        name=data.name,
        last_name=data.last_name,
        dni=data.dni,
        email=data.email,
        schedule_id=data.schedule_id,
    )
    db.add(person)
    db.commit()
    db.refresh(person)
    logger.info("Personne créée : %s (%s)", person.full_name, person.id)
    return person


def get_persons(db: Session) -> list[Person]:
    """Retourne tout le personnel trié par nom."""
    return list(db.execute(select(Person).order_by(Person.name, Person.last_name)).scalars().all())


def get_person(db: Session, person_id: int) -> Optional[Person]:
    return db.get(Person, person_id)


def require_person(db: Session, person_id: int) -> Person:
    """Comme get_person, mais lève NotFoundError si la personne n'existe pas."""
    person = db.get(Person, person_id)
    if person is None:
        raise NotFoundError("Personne introuvable.")
    return person


def update_person(db: Session, person_id: int, data: PersonUpdate) -> Person:
    person = require_person(db, person_id)
    changes = data.model_dump(exclude_unset=True)
    if "schedule_id" in changes:
        _check_schedule(db, changes["schedule_id"])
    for field, value in changes.items():
        setattr(person, field, value)
    db.commit()
    db.refresh(person)
    return person


def assign_schedule(db: Session, person_id: int, schedule_id: Optional[int]) -> Person:
    """Assigne (ou retire avec None) l'horaire d'une personne."""
    person = require_person(db, person_id)
    _check_schedule(db, schedule_id)
    person.schedule_id = schedule_id
    db.commit()
    db.refresh(person)
    logger.info("Horaire %s assigné à %s", schedule_id, person.full_name)
    return person


def delete_person(db: Session, person_id: int) -> None:
    """Supprime une personne ; ses présences partent en cascade."""
    person = require_person(db, person_id)
    db.delete(person)
    db.commit()
    logger.info("Personne %s supprimée", person_id)
