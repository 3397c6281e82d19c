"""
Tests d'intégration API pour les demandes de justification.
"""

from datetime import date, datetime
from unittest.mock import patch

from stafftrack.errors import ConflictError, NotFoundError
from stafftrack.schemas.justification import JustificationResponse

SERVICE = "stafftrack.routers.justifications.justification_service"


def make_justification_response(**kwargs) -> JustificationResponse:
    return JustificationResponse(
        id=kwargs.get("id", 5),
        person_id=kwargs.get("person_id", 7),
        fecha=kwargs.get("fecha", date(2025, 6, 2)),
        kind=kwargs.get("kind", "illness"),
        description=kwargs.get("description", "Gripe con fiebre alta"),
        status=kwargs.get("status", "PENDING"),
        rejection_reason=kwargs.get("rejection_reason", None),
        reviewed_by=kwargs.get("reviewed_by", None),
        reviewed_at=kwargs.get("reviewed_at", None),
        created_at=datetime(2025, 6, 3, 10, 0),
    )


def test_creer_demande(client):
    with patch(f"{SERVICE}.create_request") as mock:
        mock.return_value = make_justification_response()
        response = client.post(
            "/api/v1/justifications",
            json={"person_id": 7, "fecha": "2025-06-02", "kind": "illness", "description": "Gripe con fiebre alta"},
        )

    assert response.status_code == 201
    assert response.json()["status"] == "PENDING"


def test_creer_demande_description_courte(client):
    response = client.post(
        "/api/v1/justifications",
        json={"person_id": 7, "fecha": "2025-06-02", "kind": "illness", "description": "Gripe"},
    )
    assert response.status_code == 422


def test_creer_demande_type_inconnu(client):
    response = client.post(
        "/api/v1/justifications",
        json={"person_id": 7, "fecha": "2025-06-02", "kind": "vacaciones", "description": "Gripe con fiebre alta"},
    )
    assert response.status_code == 422


def test_demandes_en_attente(client):
    with patch(f"{SERVICE}.get_pending", return_value=[make_justification_response()]):
        response = client.get("/api/v1/justifications/pending")

    assert response.status_code == 200
    assert response.json()[0]["id"] == 5


def test_demande_introuvable(client):
    with patch(f"{SERVICE}.get_request", side_effect=NotFoundError("Justification introuvable.")):
        response = client.get("/api/v1/justifications/404")
    assert response.status_code == 404


def test_approuver(client):
    with patch(f"{SERVICE}.approve") as mock:
        mock.return_value = make_justification_response(
            status="APPROVED", reviewed_by="Directora", reviewed_at=datetime(2025, 6, 4, 9, 15)
        )
        response = client.post("/api/v1/justifications/5/approve", json={"reviewed_by": "Directora"})

    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"
    assert mock.call_args.args[1:] == (5, "Directora")


def test_approuver_jour_qr(client):
    with patch(f"{SERVICE}.approve", side_effect=ConflictError("Présence QR vérifiée ce jour-là.")):
        response = client.post("/api/v1/justifications/5/approve", json={"reviewed_by": "Directora"})
    assert response.status_code == 400


def test_rejeter(client):
    with patch(f"{SERVICE}.reject") as mock:
        mock.return_value = make_justification_response(status="REJECTED", rejection_reason="Falta documentación")
        response = client.post(
            "/api/v1/justifications/5/reject",
            json={"reviewed_by": "Directora", "reason": "Falta documentación"},
        )

    assert response.status_code == 200
    assert response.json()["rejection_reason"] == "Falta documentación"


def test_rejeter_raison_courte(client):
    response = client.post("/api/v1/justifications/5/reject", json={"reviewed_by": "Directora", "reason": "no"})
    assert response.status_code == 422
