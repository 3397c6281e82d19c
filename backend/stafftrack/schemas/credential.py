"""
Schémas Pydantic pour les QR codes de pointage.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CredentialCreate(BaseModel):
    name: Optional[str] = None                 # Token personnalisé, sinon généré
    deactivate_old_id: Optional[int] = None    # Rotation : désactive l'ancien QR


class CredentialResponse(BaseModel):
    id: int
    token: str
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    active: bool

    model_config = {"from_attributes": True}
