"""
Service métier pour les QR codes de pointage.

Un QR code actif et non expiré autorise l'entrée et la sortie par scan.
Le token MANUAL_MARK est réservé aux feuilles générées : il n'apparaît jamais dans les listes.
"""

import io
import logging
import uuid
from datetime import timedelta
from typing import Optional

import qrcode
from sqlalchemy import select
from sqlalchemy.orm import Session

from stafftrack import clock
from stafftrack.config import settings
from stafftrack.errors import InvalidRequestError, NotFoundError
from stafftrack.models.attendance import AttendanceRecord
from stafftrack.models.credential import QrCredential
from stafftrack.services.record_state import MANUAL_MARK_TOKEN

logger = logging.getLogger(__name__)


def _generate_token() -> str:
    """Génère un token unique (format : QR-XXXXXXXXXXXX)."""
    return "QR-" + uuid.uuid4().hex[:12].upper()


def render_png(token: str) -> bytes:
    """Génère une image PNG du QR code encodant le token donné."""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(token)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def create_credential(db: Session, name: Optional[str] = None, deactivate_old_id: Optional[int] = None) -> QrCredential:
    """
    Crée un QR code valable QR_EXPIRATION_HOURS heures.
    Si deactivate_old_id est fourni, l'ancien QR est désactivé dans la même transaction (rotation).
    """
    if deactivate_old_id is not None:
        old = db.get(QrCredential, deactivate_old_id)
        if old is None:
            raise NotFoundError("QR code introuvable.")
        old.active = False

    now = clock.now()
    token = name.strip() if name and name.strip() else _generate_token()
    if token == MANUAL_MARK_TOKEN:
        raise InvalidRequestError(f"Le token {MANUAL_MARK_TOKEN} est réservé.")
    if db.execute(select(QrCredential).where(QrCredential.token == token)).scalars().first():
        raise InvalidRequestError(f"Le token '{token}' existe déjà.")

    credential = QrCredential(
        token=token,
        created_at=now,
        expires_at=now + timedelta(hours=settings.QR_EXPIRATION_HOURS),
        active=True,
    )
    db.add(credential)
    db.commit()
    db.refresh(credential)
    logger.info("QR code créé : %s (expire le %s)", credential.token, credential.expires_at)
    return credential


def get_credentials(db: Session) -> list[QrCredential]:
    """Liste les QR codes, du plus récent au plus ancien, hors MANUAL_MARK."""
    return list(
        db.execute(
            select(QrCredential)
            .where(QrCredential.token != MANUAL_MARK_TOKEN)
            .order_by(QrCredential.created_at.desc(), QrCredential.id.desc())
        ).scalars().all()
    )


def get_credential(db: Session, credential_id: int) -> Optional[QrCredential]:
    return db.get(QrCredential, credential_id)


def get_by_token(db: Session, token: str) -> Optional[QrCredential]:
    return db.execute(select(QrCredential).where(QrCredential.token == token)).scalars().first()


def find_active_by_token(db: Session, token: str) -> Optional[QrCredential]:
    """Retourne le QR code s'il est actif et non expiré, sinon None."""
    credential = get_by_token(db, token)
    if credential is None or not credential.active or credential.token == MANUAL_MARK_TOKEN:
        return None
    if credential.expires_at is not None and credential.expires_at < clock.now():
        return None
    return credential


def get_or_create_manual_mark(db: Session) -> QrCredential:
    """Retourne le QR réservé MANUAL_MARK, créé à la demande (sans expiration)."""
    credential = get_by_token(db, MANUAL_MARK_TOKEN)
    if credential is None:
        credential = QrCredential(token=MANUAL_MARK_TOKEN, active=True, expires_at=None)
        db.add(credential)
        db.flush()
        logger.info("QR réservé %s créé", MANUAL_MARK_TOKEN)
    return credential


def deactivate(db: Session, credential_id: int) -> QrCredential:
    credential = db.get(QrCredential, credential_id)
    if credential is None:
        raise NotFoundError("QR code introuvable.")
    credential.active = False
    db.commit()
    db.refresh(credential)
    return credential


def delete_credential(db: Session, credential_id: int) -> None:
    """Supprime un QR code inactif et jamais utilisé par une présence."""
    credential = db.get(QrCredential, credential_id)
    if credential is None:
        raise NotFoundError("QR code introuvable.")
    if credential.active:
        raise InvalidRequestError("Impossible de supprimer un QR code actif. Désactivez-le d'abord.")
    used = db.execute(
        select(AttendanceRecord.id).where(AttendanceRecord.credential_id == credential_id).limit(1)
    ).first()
    if used is not None:
        raise InvalidRequestError("Impossible de supprimer un QR code déjà utilisé pour des présences.")
    db.delete(credential)
    db.commit()
    logger.info("QR code %s supprimé", credential_id)
