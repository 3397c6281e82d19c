"""
Tests d'intégration API pour l'annuaire du personnel et les horaires.
"""

from datetime import datetime
from unittest.mock import patch

from stafftrack.errors import InvalidRequestError, NotFoundError
from stafftrack.schemas.person import PersonResponse
from stafftrack.schemas.schedule import ScheduleResponse


def make_person_response(**kwargs) -> PersonResponse:
    return PersonResponse(
        id=kwargs.get("id", 7),
        name=kwargs.get("name", "Lucía"),
        last_name=kwargs.get("last_name", "García"),
        full_name=kwargs.get("full_name", "Lucía García"),
        dni=kwargs.get("dni", "12345678A"),
        email=kwargs.get("email", "lucia@example.com"),
        schedule_id=kwargs.get("schedule_id", None),
        created_at=datetime(2025, 6, 1),
    )


def make_schedule_response(**kwargs) -> ScheduleResponse:
    return ScheduleResponse(
        id=kwargs.get("id", 1),
        entry_time=kwargs.get("entry_time", "09:00"),
        exit_time=kwargs.get("exit_time", "17:00"),
        entry_tolerance=kwargs.get("entry_tolerance", 30),
    )


# ============================================================
# /api/v1/persons
# ============================================================

def test_creer_personne(client):
    with patch("stafftrack.routers.persons.person_service.create_person") as mock:
        mock.return_value = make_person_response()
        response = client.post("/api/v1/persons", json={"name": "Lucía", "last_name": "García"})

    assert response.status_code == 201
    assert response.json()["full_name"] == "Lucía García"


def test_creer_personne_nom_vide(client):
    response = client.post("/api/v1/persons", json={"name": "  "})
    assert response.status_code == 422


def test_creer_personne_email_invalide(client):
    response = client.post("/api/v1/persons", json={"name": "Lucía", "email": "lucia.example.com"})
    assert response.status_code == 422


def test_personne_introuvable(client):
    with patch("stafftrack.routers.persons.person_service.get_person", return_value=None):
        response = client.get("/api/v1/persons/404")
    assert response.status_code == 404


def test_assigner_horaire_inconnu(client):
    with patch(
        "stafftrack.routers.persons.person_service.assign_schedule",
        side_effect=NotFoundError("Horaire introuvable."),
    ):
        response = client.put("/api/v1/persons/7/schedule", json={"schedule_id": 99})
    assert response.status_code == 404


def test_assigner_horaire(client):
    with patch("stafftrack.routers.persons.person_service.assign_schedule") as mock:
        mock.return_value = make_person_response(schedule_id=1)
        response = client.put("/api/v1/persons/7/schedule", json={"schedule_id": 1})

    assert response.status_code == 200
    assert response.json()["schedule_id"] == 1
    assert mock.call_args.args[1:] == (7, 1)


def test_supprimer_personne(client):
    with patch("stafftrack.routers.persons.person_service.delete_person") as mock:
        response = client.delete("/api/v1/persons/7")

    assert response.status_code == 204
    mock.assert_called_once()


# ============================================================
# /api/v1/schedules
# ============================================================

def test_creer_horaire(client):
    with patch("stafftrack.routers.schedules.schedule_service.create_schedule") as mock:
        mock.return_value = make_schedule_response()
        response = client.post("/api/v1/schedules", json={"entry_time": "09:00", "exit_time": "17:00"})

    assert response.status_code == 201
    assert response.json()["entry_tolerance"] == 30


def test_creer_horaire_invalide(client):
    with patch(
        "stafftrack.routers.schedules.schedule_service.create_schedule",
        side_effect=InvalidRequestError("L'heure d'entrée doit précéder l'heure de sortie."),
    ):
        response = client.post("/api/v1/schedules", json={"entry_time": "17:00", "exit_time": "09:00"})

    assert response.status_code == 400


def test_horaire_introuvable(client):
    with patch("stafftrack.routers.schedules.schedule_service.get_schedule", return_value=None):
        response = client.get("/api/v1/schedules/404")
    assert response.status_code == 404


def test_modifier_horaire(client):
    with patch("stafftrack.routers.schedules.schedule_service.update_schedule") as mock:
        mock.return_value = make_schedule_response(entry_tolerance=15)
        response = client.put("/api/v1/schedules/1", json={"entry_tolerance": 15})

    assert response.status_code == 200
    assert response.json()["entry_tolerance"] == 15
