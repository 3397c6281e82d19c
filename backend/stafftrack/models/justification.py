"""
Modèle SQLAlchemy pour les demandes de justification (absence, maladie, permis...).
Une demande approuvée est appliquée sur la présence du jour par le moteur de réconciliation.
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from stafftrack import clock
from stafftrack.database import Base


class JustificationRequest(Base):
    __tablename__ = "justification_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    person_id = Column(Integer, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False)
    fecha = Column(Date, nullable=False)
    kind = Column(String(20), nullable=False, default="other")     # illness, emergency, permit, holiday, other
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")  # PENDING, APPROVED, REJECTED
    rejection_reason = Column(Text, nullable=True)
    reviewed_by = Column(String(255), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: clock.now())
