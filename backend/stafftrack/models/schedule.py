"""
Modèle SQLAlchemy pour les horaires (définition de poste).
Utilisé uniquement pour calculer les retards à l'entrée.
"""

from sqlalchemy import Column, DateTime, Integer, String

from stafftrack import clock
from stafftrack.database import Base


class Schedule(Base):
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_time = Column(String(5), nullable=False)              # Format HH:MM
    exit_time = Column(String(5), nullable=False)               # Format HH:MM
    entry_tolerance = Column(Integer, nullable=False, default=30)  # Minutes avant retard
    created_at = Column(DateTime, default=lambda: clock.now())
    updated_at = Column(DateTime, default=lambda: clock.now(), onupdate=lambda: clock.now())
