"""
Tests d'intégration API pour les rapports de présence.
"""

from datetime import date, datetime
from unittest.mock import patch

import pytest

from stafftrack.errors import InvalidRequestError
from stafftrack.schemas.report import ReportResponse

SERVICE = "stafftrack.routers.reports.report_service"


def make_report_response(**kwargs) -> ReportResponse:
    fecha = kwargs.get("fecha", date(2025, 6, 3))
    return ReportResponse(
        id=kwargs.get("id", 1),
        person_id=kwargs.get("person_id", 7),
        fecha=fecha,
        year=fecha.year,
        month=fecha.month,
        entry_time=kwargs.get("entry_time", datetime(2025, 6, 3, 8, 50)),
        exit_time=kwargs.get("exit_time", None),
        is_manual=kwargs.get("is_manual", False),
        marked_by=kwargs.get("marked_by", "QR"),
        justification=kwargs.get("justification", None),
        is_late=kwargs.get("is_late", False),
        attendance_id=kwargs.get("attendance_id", 11),
    )


def test_rapports_du_mois(client):
    with patch(f"{SERVICE}.get_by_year_month") as mock:
        mock.return_value = [make_report_response()]
        response = client.get("/api/v1/reports/month/2025/6?person_id=7")

    assert response.status_code == 200
    assert response.json()[0]["fecha"] == "2025-06-03"
    assert mock.call_args.args[1:] == (2025, 6, 7)


@pytest.mark.parametrize("url", [
    "/api/v1/reports/month/2025/13",
    "/api/v1/reports/month/0/6",
    "/api/v1/reports/year/0",
    "/api/v1/reports/year/99999",
    "/api/v1/reports/stats/2025/0",
    "/api/v1/reports/person/7?year=0",
    "/api/v1/reports/person/7?year=2025&month=13",
])
def test_periode_invalide(client, url):
    response = client.get(url)
    assert response.status_code == 400


def test_erreur_du_service_traduite(client):
    with patch(f"{SERVICE}.get_by_year", side_effect=InvalidRequestError("Année invalide.")):
        response = client.get("/api/v1/reports/year/2025")
    assert response.status_code == 400
    assert response.json()["detail"] == "Année invalide."


def test_rapport_non_persiste(client):
    """Un rapport calculé mais non écrit (id None) reste sérialisable."""
    with patch(f"{SERVICE}.get_by_year") as mock:
        mock.return_value = [make_report_response(id=None)]
        response = client.get("/api/v1/reports/year/2025")

    assert response.status_code == 200
    assert response.json()[0]["id"] is None


def test_rapports_d_une_periode(client):
    with patch(f"{SERVICE}.get_by_date_range") as mock:
        mock.return_value = []
        response = client.post("/api/v1/reports/range", json={"start": "2025-06-01", "end": "2025-06-30"})

    assert response.status_code == 200
    assert mock.call_args.args[1:] == (date(2025, 6, 1), date(2025, 6, 30), None)


def test_rapports_d_une_personne(client):
    with patch(f"{SERVICE}.get_by_person") as mock:
        mock.return_value = [make_report_response()]
        response = client.get("/api/v1/reports/person/7?year=2025&month=6")

    assert response.status_code == 200
    assert mock.call_args.args[1:] == (7, 2025, 6)


def test_statistiques(client):
    with patch(f"{SERVICE}.get_stats_by_year_month") as mock:
        mock.return_value = {
            "year": 2025, "month": 6, "total_reports": 1, "with_entry": 1, "with_exit": 0,
            "justified": 0, "absences": 0, "manual": 0, "tardanzas": 0,
            "reports": [make_report_response()],
        }
        response = client.get("/api/v1/reports/stats/2025/6")

    assert response.status_code == 200
    assert response.json()["total_reports"] == 1


def test_synchronisation_complete(client):
    with patch(f"{SERVICE}.sync_all_attendances", return_value={"synced": 10, "errors": 0, "skipped": 1}):
        response = client.post("/api/v1/reports/sync-all")

    assert response.status_code == 200
    assert response.json() == {"synced": 10, "errors": 0, "skipped": 1}


def test_etat_de_synchronisation(client):
    status = {"total_attendances": 4, "total_reports": 3, "pending": 1, "percentage": "75.00"}
    with patch(f"{SERVICE}.get_sync_status", return_value=status):
        response = client.get("/api/v1/reports/sync-status")

    assert response.json()["percentage"] == "75.00"


def test_correction_des_mois(client):
    with patch(f"{SERVICE}.fix_incorrect_months", return_value={"fixed": 2, "errors": 0}):
        response = client.post("/api/v1/reports/fix-months")

    assert response.status_code == 200
    assert response.json()["fixed"] == 2
