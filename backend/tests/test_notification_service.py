"""
Tests des notifications SMTP aux administrateurs.
Aucune connexion réseau : smtplib.SMTP est mocké.
"""

from unittest.mock import patch

import pytest

from stafftrack.config import settings
from stafftrack.services import notification_service


@pytest.fixture
def enabled(monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", True)
    monkeypatch.setattr(settings, "ADMIN_NOTIFICATION_EMAILS", ["direccion@example.com", "jefatura@example.com"])
    monkeypatch.setattr(settings, "SMTP_USERNAME", "stafftrack")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "secret")


def test_notifications_desactivees():
    with patch("stafftrack.services.notification_service.smtplib.SMTP") as mock_smtp:
        assert notification_service.notify_admins("Titre", "Corps") is False
    mock_smtp.assert_not_called()


def test_sans_destinataire(monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", True)
    monkeypatch.setattr(settings, "ADMIN_NOTIFICATION_EMAILS", [])
    with patch("stafftrack.services.notification_service.smtplib.SMTP") as mock_smtp:
        assert notification_service.notify_admins("Titre", "Corps") is False
    mock_smtp.assert_not_called()


def test_envoi(enabled):
    with patch("stafftrack.services.notification_service.smtplib.SMTP") as mock_smtp:
        server = mock_smtp.return_value.__enter__.return_value

        assert notification_service.notify_admins("Nouvelle présence enregistrée", "Lucía García") is True

    mock_smtp.assert_called_once_with(settings.SMTP_HOST, settings.SMTP_PORT)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("stafftrack", "secret")
    msg = server.send_message.call_args.args[0]
    assert msg["To"] == "direccion@example.com, jefatura@example.com"
    assert "Nouvelle présence enregistrée" in msg["Subject"]


def test_echec_smtp_non_bloquant(enabled):
    with patch("stafftrack.services.notification_service.smtplib.SMTP", side_effect=OSError("refusé")):
        assert notification_service.notify_admins("Titre", "Corps") is False
