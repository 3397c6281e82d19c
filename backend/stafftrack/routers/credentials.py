"""
Router pour les QR codes de pointage.
Création (avec rotation), liste, désactivation, suppression et image PNG.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from stafftrack.database import get_db
from stafftrack.errors import to_http_exception
from stafftrack.schemas.credential import CredentialCreate, CredentialResponse
from stafftrack.services import credential_service

router = APIRouter(prefix="/api/v1/credentials", tags=["QR codes"])


@router.post("", response_model=CredentialResponse, status_code=201, summary="Créer un QR code")
def create_credential(data: CredentialCreate, db: Session = Depends(get_db)):
    """Crée un QR code valable 24 h. deactivate_old_id désactive l'ancien dans la foulée."""
    try:
        return credential_service.create_credential(db, data.name, data.deactivate_old_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[CredentialResponse], summary="Lister les QR codes")
def list_credentials(db: Session = Depends(get_db)):
    return credential_service.get_credentials(db)


@router.get("/{credential_id}/image", summary="Image PNG d'un QR code")
def get_credential_image(credential_id: int, db: Session = Depends(get_db)):
    credential = credential_service.get_credential(db, credential_id)
    if credential is None:
        raise HTTPException(status_code=404, detail="QR code introuvable.")
    return Response(content=credential_service.render_png(credential.token), media_type="image/png")


@router.post("/{credential_id}/deactivate", response_model=CredentialResponse, summary="Désactiver un QR code")
def deactivate_credential(credential_id: int, db: Session = Depends(get_db)):
    try:
        return credential_service.deactivate(db, credential_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.delete("/{credential_id}", status_code=204, summary="Supprimer un QR code")
def delete_credential(credential_id: int, db: Session = Depends(get_db)):
    """Seul un QR code inactif et jamais utilisé peut être supprimé."""
    try:
        credential_service.delete_credential(db, credential_id)
    except ValueError as e:
        raise to_http_exception(e)
