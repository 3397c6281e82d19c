"""
Schémas Pydantic pour le personnel.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class PersonCreate(BaseModel):
    name: str
    last_name: Optional[str] = None
    dni: Optional[str] = None
    email: Optional[str] = None
    schedule_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_format(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.strip() and "@" not in v:
            raise ValueError("Adresse email invalide.")
        return v.strip() if v else v


class PersonUpdate(BaseModel):
    name: Optional[str] = None
    last_name: Optional[str] = None
    dni: Optional[str] = None
    email: Optional[str] = None
    schedule_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip() if v else v


class ScheduleAssignment(BaseModel):
    schedule_id: Optional[int] = None


class PersonResponse(BaseModel):
    id: int
    name: str
    last_name: Optional[str] = None
    full_name: str
    dni: Optional[str] = None
    email: Optional[str] = None
    schedule_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
