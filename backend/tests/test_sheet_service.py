"""
Tests de la génération des feuilles de présence mensuelles.
Juin 2025 : 21 jours ouvrés (du lundi 2 au lundi 30).
"""

from datetime import date, datetime

import pytest
from sqlalchemy import func, select

from stafftrack.errors import InvalidRequestError, NotFoundError
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.credential import QrCredential
from stafftrack.services import record_state, sheet_service

from conftest import make_person, make_record


def test_jours_ouvres_juin_2025():
    days = sheet_service.business_days(2025, 6)
    assert len(days) == 21
    assert days[0] == date(2025, 6, 2)
    assert days[-1] == date(2025, 6, 30)
    assert all(d.weekday() < 5 for d in days)


def test_texte_de_la_feuille():
    text = sheet_service.sheet_justification(date(2025, 6, 2))
    assert text.startswith("Hoja de asistencia creada automáticamente para 02/06/2025.")
    assert record_state.is_auto_justification(text)


def test_feuilles_creees_pour_une_personne(db, freeze):
    person = make_person(db)

    result = sheet_service.create_monthly_sheets(db, 2025, 6, [person.id])

    assert result.created == 21
    assert result.skipped == 0
    assert result.errors == []

    records = db.execute(select(AttendanceRecord)).scalars().all()
    manual_mark = db.execute(select(QrCredential).where(QrCredential.token == "MANUAL_MARK")).scalars().one()
    assert all(record_state.is_placeholder(r) for r in records)
    assert all(r.credential_id == manual_mark.id for r in records)
    assert {r.entry_time.date() for r in records} == set(sheet_service.business_days(2025, 6))


def test_generation_idempotente(db, freeze):
    person = make_person(db)
    sheet_service.create_monthly_sheets(db, 2025, 6, [person.id])

    result = sheet_service.create_monthly_sheets(db, 2025, 6, [person.id])

    assert result.created == 0
    assert result.skipped == 21
    assert db.execute(select(func.count(AttendanceRecord.id))).scalar() == 21
    assert db.execute(select(func.count(QrCredential.id))).scalar() == 1


def test_jour_deja_couvert_ignore(db, freeze):
    person = make_person(db)
    make_record(db, person, entry_time=datetime(2025, 6, 3, 8, 50), marked_by="QR")

    result = sheet_service.create_monthly_sheets(db, 2025, 6, [person.id])

    assert result.created == 20
    assert result.skipped == 1


def test_tout_le_personnel_par_defaut(db, freeze):
    make_person(db)
    make_person(db, name="Mario", last_name="Ruiz", dni="87654321B")

    result = sheet_service.create_monthly_sheets(db, 2025, 6)

    assert result.created == 42


@pytest.mark.parametrize("year, month", [(2025, 0), (2025, 13), (1999, 6), (2101, 6)])
def test_mois_ou_annee_invalide(db, year, month):
    make_person(db)
    with pytest.raises(InvalidRequestError):
        sheet_service.create_monthly_sheets(db, year, month)


def test_personnes_introuvables(db, freeze):
    person = make_person(db)
    with pytest.raises(NotFoundError, match="404"):
        sheet_service.create_monthly_sheets(db, 2025, 6, [person.id, 404])


def test_annuaire_vide(db, freeze):
    with pytest.raises(NotFoundError):
        sheet_service.create_monthly_sheets(db, 2025, 6)
