"""
Modèle SQLAlchemy pour les présences du personnel.

Une ligne = une observation candidate pour (personne, jour). Plusieurs lignes peuvent
coexister temporairement pour le même jour (courses, génération en masse) :
le service de dédoublonnage rétablit l'unicité.

marked_by porte l'origine : "Sistema" (feuille générée), "QR" (scan vérifié)
ou le nom de l'administrateur / de la personne (marquage manuel, justification).
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text

from stafftrack import clock
from stafftrack.database import Base


class AttendanceRecord(Base):
    __tablename__ = "attendances"
    __table_args__ = (
        Index("ix_attendances_entry_time", "entry_time"),
        Index("ix_attendances_exit_time", "exit_time"),
        Index("ix_attendances_person_id", "person_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    person_id = Column(Integer, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False)
    credential_id = Column(Integer, ForeignKey("qr_credentials.id"), nullable=True)

    entry_time = Column(DateTime, nullable=True)
    exit_time = Column(DateTime, nullable=True)
    activity = Column(Text, nullable=True)               # Activité déclarée à la sortie

    is_manual = Column(Boolean, default=False, nullable=False)
    marked_by = Column(String(255), nullable=True)
    justification = Column(Text, nullable=True)
    is_late = Column(Boolean, default=False, nullable=False)  # Calculé à l'entrée, jamais recalculé

    created_at = Column(DateTime, nullable=False, default=lambda: clock.now())
