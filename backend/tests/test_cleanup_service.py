"""
Tests de la purge des présences anciennes.
"""

from datetime import date, datetime
from unittest.mock import MagicMock, patch

from sqlalchemy import select

from stafftrack import clock
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.report import AttendanceReport
from stafftrack.services import cleanup_service

from conftest import make_person, make_record


def test_limite_de_retention(freeze):
    assert cleanup_service.retention_cutoff() == datetime(2025, 5, 4)


def test_limite_bornee_a_la_fin_du_mois():
    assert clock.months_before(datetime(2025, 3, 31, 10, 0), 1) == datetime(2025, 2, 28)
    assert clock.months_before(datetime(2025, 1, 15, 10, 0), 1) == datetime(2024, 12, 15)


def test_suppression_des_presences_anciennes(db, freeze):
    person = make_person(db)
    old = make_record(db, person, created_at=datetime(2025, 4, 1), entry_time=datetime(2025, 4, 1, 8, 0))
    old_without_entry = make_record(db, person, created_at=datetime(2025, 4, 2))
    recent = make_record(db, person, created_at=datetime(2025, 6, 1), entry_time=datetime(2025, 6, 1, 8, 0))
    backdated = make_record(db, person, created_at=datetime(2025, 4, 1), entry_time=datetime(2025, 6, 2, 8, 0))
    old_ids = {old.id, old_without_entry.id}
    kept_ids = {recent.id, backdated.id}

    deleted = cleanup_service.delete_old_attendances(db)

    assert deleted == 2
    remaining = set(db.execute(select(AttendanceRecord.id)).scalars().all())
    assert remaining == kept_ids
    assert not remaining & old_ids


def test_les_rapports_survivent_a_la_purge(db, freeze):
    person = make_person(db)
    make_record(db, person, created_at=datetime(2025, 4, 1), entry_time=datetime(2025, 4, 1, 8, 0))
    db.add(AttendanceReport(person_id=person.id, fecha=date(2025, 4, 1), year=2025, month=4))
    db.commit()

    cleanup_service.delete_old_attendances(db)

    assert len(db.execute(select(AttendanceReport)).scalars().all()) == 1


def test_purge_manuelle_sans_rien_a_supprimer(db, freeze):
    assert cleanup_service.cleanup_manually(db) == {
        "deleted": 0,
        "message": "Aucune présence ancienne à supprimer.",
    }


def test_purge_manuelle(db, freeze):
    person = make_person(db)
    make_record(db, person, created_at=datetime(2025, 4, 1), entry_time=datetime(2025, 4, 1, 8, 0))

    result = cleanup_service.cleanup_manually(db)

    assert result["deleted"] == 1
    assert result["message"] == "1 présence(s) supprimée(s)."


def test_purge_planifiee_ne_leve_jamais(freeze):
    mock_db = MagicMock()
    mock_db.execute.side_effect = RuntimeError("base indisponible")

    with patch("stafftrack.services.cleanup_service.SessionLocal", return_value=mock_db):
        cleanup_service.cleanup_scheduled()

    mock_db.rollback.assert_called_once()
    mock_db.close.assert_called_once()
