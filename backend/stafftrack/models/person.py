"""
Modèle SQLAlchemy pour le personnel pointé.
Version minimale : l'annuaire complet (départements, comptes) est hors périmètre.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from stafftrack import clock
from stafftrack.database import Base


class Person(Base):
    __tablename__ = "persons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    dni = Column(String(20), nullable=True)              # Document d'identité (vérifié au marquage manuel)
    email = Column(String(255), nullable=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=lambda: clock.now())

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}" if self.last_name else self.name
