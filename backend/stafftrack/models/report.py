"""
Modèle SQLAlchemy pour les rapports de présence (projection dénormalisée).
Reconstructible à tout moment depuis attendances : jamais la source de vérité.
"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text

from stafftrack import clock
from stafftrack.database import Base


class AttendanceReport(Base):
    __tablename__ = "attendance_reports"
    __table_args__ = (
        Index("ix_attendance_reports_year_month", "year", "month"),
        Index("ix_attendance_reports_person_id", "person_id"),
        Index("ix_attendance_reports_fecha", "fecha"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    person_id = Column(Integer, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False)
    fecha = Column(Date, nullable=False)                 # Jour de la présence
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)              # 1-12

    entry_time = Column(DateTime, nullable=True)
    exit_time = Column(DateTime, nullable=True)
    activity = Column(Text, nullable=True)
    is_manual = Column(Boolean, default=False, nullable=False)
    marked_by = Column(String(255), nullable=True)
    justification = Column(Text, nullable=True)
    is_late = Column(Boolean, default=False, nullable=False)

    attendance_id = Column(Integer, nullable=True)       # Présence source (sans FK : survit à la purge)
    created_at = Column(DateTime, default=lambda: clock.now())
