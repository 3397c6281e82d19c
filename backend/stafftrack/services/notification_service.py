"""
Service de notification des administrateurs par email SMTP.
Best-effort : un échec d'envoi est journalisé et n'interrompt jamais le pointage.
"""

import logging
import smtplib
from email.mime.text import MIMEText

from stafftrack.config import settings

logger = logging.getLogger(__name__)


def notify_admins(title: str, body: str) -> bool:
    """
    Envoie une notification texte à ADMIN_NOTIFICATION_EMAILS.
    Retourne True si l'email est parti, False sinon (désactivé, aucun destinataire ou erreur SMTP).
    """
    recipients = [email for email in settings.ADMIN_NOTIFICATION_EMAILS if email]
    if not settings.NOTIFICATIONS_ENABLED or not recipients:
        logger.debug("Notification ignorée (désactivée ou sans destinataire) : %s", title)
        return False

    msg = MIMEText(body, "plain", "utf-8")
    msg["From"] = settings.SMTP_FROM
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = f"StaffTrack : {title}"

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USERNAME:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except Exception as exc:
        logger.warning("Échec de la notification '%s' : %s", title, exc)
        return False

    logger.info("Notification '%s' envoyée à %d administrateur(s)", title, len(recipients))
    return True
