"""
Schémas Pydantic pour les demandes de justification.
"""

import datetime as dt
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from stafftrack.config import settings

JustificationRequestKind = Literal["illness", "emergency", "permit", "holiday", "other"]


class JustificationCreate(BaseModel):
    person_id: int
    fecha: dt.date
    kind: JustificationRequestKind = "other"
    description: str

    @field_validator("description")
    @classmethod
    def description_long_enough(cls, v: str) -> str:
        if len(v.strip()) < settings.MIN_JUSTIFICATION_LENGTH:
            raise ValueError(
                f"La description doit contenir au moins {settings.MIN_JUSTIFICATION_LENGTH} caractères."
            )
        return v.strip()


class JustificationApprove(BaseModel):
    reviewed_by: str


class JustificationReject(BaseModel):
    reviewed_by: str
    reason: str

    @field_validator("reason")
    @classmethod
    def reason_long_enough(cls, v: str) -> str:
        if len(v.strip()) < 5:
            raise ValueError("La raison du rejet doit contenir au moins 5 caractères.")
        return v.strip()


class JustificationResponse(BaseModel):
    id: int
    person_id: int
    fecha: dt.date
    kind: str
    description: str
    status: str
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
