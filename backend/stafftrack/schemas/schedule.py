"""
Schémas Pydantic pour les horaires.
Le format HH:MM et la cohérence entrée/sortie sont revérifiés par le service
(un horaire partiellement mis à jour doit rester cohérent).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class ScheduleCreate(BaseModel):
    entry_time: str
    exit_time: str
    entry_tolerance: int = 30

    @field_validator("entry_time", "exit_time")
    @classmethod
    def strip_time(cls, v: str) -> str:
        return v.strip()


class ScheduleUpdate(BaseModel):
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    entry_tolerance: Optional[int] = None


class ScheduleResponse(BaseModel):
    id: int
    entry_time: str
    exit_time: str
    entry_tolerance: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
