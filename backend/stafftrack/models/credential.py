"""
Modèle SQLAlchemy pour les QR codes de pointage.
Le token MANUAL_MARK est réservé : il désigne l'absence de QR réel.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from stafftrack import clock
from stafftrack.database import Base


class QrCredential(Base):
    __tablename__ = "qr_credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: clock.now())
    expires_at = Column(DateTime, nullable=True)         # NULL = pas d'expiration
    active = Column(Boolean, default=True, nullable=False)
