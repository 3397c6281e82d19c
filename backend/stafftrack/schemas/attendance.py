"""
Schémas Pydantic pour les présences du personnel.

Note : on importe datetime en tant que module (dt) pour éviter le conflit de nommage
entre le champ `fecha` / `date` et le type `datetime.date` dans Pydantic v2.
"""

import datetime as dt
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

JustificationKind = Literal["absence", "delay", "early_exit"]
Direction = Literal["entry", "exit"]


class AttendanceEntryRequest(BaseModel):
    """Scan QR à l'entrée."""
    person_id: int
    token: str

    @field_validator("token")
    @classmethod
    def token_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le token QR ne peut pas être vide.")
        return v.strip()


class AttendanceExitRequest(AttendanceEntryRequest):
    """Scan QR à la sortie, avec l'activité réalisée."""
    activity: Optional[str] = None


class ManualMarkRequest(BaseModel):
    person_id: int
    direction: Direction
    when: datetime
    marked_by: str
    justification: Optional[str] = None
    dni: Optional[str] = None
    activity: Optional[str] = None

    @field_validator("marked_by")
    @classmethod
    def marked_by_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("L'auteur du marquage manuel est obligatoire.")
        return v.strip()


class MonthlySheetsRequest(BaseModel):
    year: int
    month: int
    person_ids: Optional[List[int]] = None  # None = tout le personnel


class SheetGenerationResult(BaseModel):
    created: int
    skipped: int
    errors: List[str] = []


class JustifyRequest(BaseModel):
    person_id: int
    fecha: dt.date
    kind: JustificationKind = "absence"
    text: str
    marked_by: Optional[str] = None


class DateRangeRequest(BaseModel):
    start: dt.date
    end: dt.date
    person_id: Optional[int] = None

    @model_validator(mode="after")
    def end_after_start(self) -> "DateRangeRequest":
        if self.end < self.start:
            raise ValueError("La date de fin doit être postérieure ou égale à la date de début.")
        return self


class AttendanceResponse(BaseModel):
    id: int
    person_id: int
    credential_id: Optional[int] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    activity: Optional[str] = None
    is_manual: bool
    marked_by: Optional[str] = None
    justification: Optional[str] = None
    is_late: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DuplicateRemovalResult(BaseModel):
    removed: int
    kept: int
    errors: List[str] = []


class CleanupResult(BaseModel):
    deleted: int
    message: str


class RealAttendanceCheck(BaseModel):
    person_id: int
    fecha: dt.date
    manual: bool
    has_attendance: bool


class PersonMonthlyStats(BaseModel):
    person_id: int
    nombre: str
    total_dias: int
    asistencias: int
    ausencias: int
    retrasos: int


class MonthlyStats(BaseModel):
    year: int
    month: int
    total_asistencias: int
    total_profesores: int
    asistencias_completas: int
    asistencias_incompletas: int
    ausencias: int
    justificados: int
    retrasos: int
    salidas_tempranas: int
    tardanzas: int
    por_profesor: List[PersonMonthlyStats]


class UnjustifiedDay(BaseModel):
    fecha: dt.date
    has_attendance: bool
    has_justification: bool
