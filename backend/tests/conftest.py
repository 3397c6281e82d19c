"""
Configuration partagée pour tous les tests.

- client : override la dépendance get_db par un MagicMock (tests d'API, services patchés)
- db     : vraie session SQLAlchemy sur SQLite en mémoire (tests de services)
- freeze : fige clock.now() sur un instant donné
"""

import os

# Avant tout import de stafftrack : pas de PostgreSQL ni de scheduler en test
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CLEANUP_SCHEDULER_ENABLED", "false")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stafftrack import clock
from stafftrack.database import Base, get_db
from stafftrack.main import app
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.credential import QrCredential
from stafftrack.models.person import Person
from stafftrack.models.schedule import Schedule

# Mercredi 4 juin 2025, 09:15 (juin 2025 : 21 jours ouvrés)
NOW = datetime(2025, 6, 4, 9, 15)


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    """Session sur une base SQLite en mémoire, recréée pour chaque test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def freeze(monkeypatch):
    """Fige l'horloge : freeze(datetime(...)). Par défaut sur NOW."""
    def _freeze(moment: datetime = NOW) -> datetime:
        monkeypatch.setattr(clock, "now", lambda: moment)
        return moment

    _freeze()
    return _freeze


# --- Fabriques ---

def make_schedule(db, entry_time="09:00", exit_time="17:00", entry_tolerance=10) -> Schedule:
    schedule = Schedule(entry_time=entry_time, exit_time=exit_time, entry_tolerance=entry_tolerance)
    db.add(schedule)
    db.commit()
    return schedule


def make_person(db, name="Lucía", last_name="García", dni="12345678A", schedule=None) -> Person:
    person = Person(
        name=name,
        last_name=last_name,
        dni=dni,
        email=f"{name.lower()}@example.com",
        schedule_id=schedule.id if schedule else None,
    )
    db.add(person)
    db.commit()
    return person


def make_credential(db, token="QR-TEST", active=True, expires_at=None) -> QrCredential:
    credential = QrCredential(
        token=token,
        active=active,
        created_at=NOW - timedelta(hours=1),
        expires_at=expires_at if expires_at is not None else NOW + timedelta(hours=23),
    )
    db.add(credential)
    db.commit()
    return credential


def make_record(db, person, created_at=None, **fields) -> AttendanceRecord:
    values = {"is_manual": False, "is_late": False}
    values.update(fields)
    record = AttendanceRecord(
        person_id=person.id,
        created_at=created_at or NOW - timedelta(days=10),
        **values,
    )
    db.add(record)
    db.commit()
    return record


def make_placeholder(db, person, day, created_at=None) -> AttendanceRecord:
    """Feuille générée « Sistema » à 00:00:00 du jour donné."""
    return make_record(
        db,
        person,
        created_at=created_at,
        entry_time=datetime(day.year, day.month, day.day),
        is_manual=True,
        marked_by="Sistema",
        justification=f"Hoja de asistencia creada automáticamente para {day.strftime('%d/%m/%Y')}.",
    )
