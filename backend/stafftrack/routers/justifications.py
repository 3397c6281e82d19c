"""
Router pour les demandes de justification.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stafftrack.database import get_db
from stafftrack.errors import to_http_exception
from stafftrack.schemas.justification import (
    JustificationApprove,
    JustificationCreate,
    JustificationReject,
    JustificationResponse,
)
from stafftrack.services import justification_service

router = APIRouter(prefix="/api/v1/justifications", tags=["Justifications"])


@router.post("", response_model=JustificationResponse, status_code=201, summary="Créer une demande")
def create_request(data: JustificationCreate, db: Session = Depends(get_db)):
    try:
        return justification_service.create_request(db, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[JustificationResponse], summary="Lister les demandes")
def list_requests(person_id: Optional[int] = None, db: Session = Depends(get_db)):
    return justification_service.get_requests(db, person_id)


@router.get("/pending", response_model=List[JustificationResponse], summary="Demandes en attente")
def list_pending(db: Session = Depends(get_db)):
    return justification_service.get_pending(db)


@router.get("/{request_id}", response_model=JustificationResponse, summary="Détail d'une demande")
def get_request(request_id: int, db: Session = Depends(get_db)):
    try:
        return justification_service.get_request(db, request_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/{request_id}/approve", response_model=JustificationResponse, summary="Approuver une demande")
def approve_request(request_id: int, data: JustificationApprove, db: Session = Depends(get_db)):
    """Applique la justification d'absence sur la présence du jour puis marque la demande APPROVED."""
    try:
        return justification_service.approve(db, request_id, data.reviewed_by)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/{request_id}/reject", response_model=JustificationResponse, summary="Rejeter une demande")
def reject_request(request_id: int, data: JustificationReject, db: Session = Depends(get_db)):
    try:
        return justification_service.reject(db, request_id, data.reviewed_by, data.reason)
    except ValueError as e:
        raise to_http_exception(e)
