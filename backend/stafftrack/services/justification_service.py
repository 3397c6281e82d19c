"""
Workflow des demandes de justification (maladie, urgence, permis, jour férié, autre).

Une demande est créée PENDING par la personne, puis approuvée ou rejetée par un
administrateur. L'approbation applique d'abord la justification sur la présence du
jour via le moteur de réconciliation : si celui-ci refuse (présence QR vérifiée,
date future...), la demande reste PENDING.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from stafftrack import clock
from stafftrack.errors import InvalidRequestError, NotFoundError
from stafftrack.models.justification import JustificationRequest
from stafftrack.schemas.justification import JustificationCreate
from stafftrack.services import attendance_service, person_service

logger = logging.getLogger(__name__)

KIND_LABELS = {
    "illness": "Enfermedad",
    "emergency": "Emergencia Personal",
    "permit": "Permiso Administrativo",
    "holiday": "Día Festivo",
    "other": "Otro",
}


def create_request(db: Session, data: JustificationCreate) -> JustificationRequest:
    """Crée une demande PENDING. Une seule demande PENDING ou APPROVED par personne et par date."""
    person_service.require_person(db, data.person_id)
    if data.kind not in KIND_LABELS:
        raise InvalidRequestError("Type de justification invalide.")

    existing = db.execute(
        select(JustificationRequest).where(
            JustificationRequest.person_id == data.person_id,
            JustificationRequest.fecha == data.fecha,
            JustificationRequest.status.in_(["PENDING", "APPROVED"]),
        )
    ).scalars().first()
    if existing is not None:
        if existing.status == "APPROVED":
            raise InvalidRequestError("Une justification approuvée existe déjà pour cette date.")
        raise InvalidRequestError("Une justification en attente existe déjà pour cette date.")

    request = JustificationRequest(
        person_id=data.person_id,
        fecha=data.fecha,
        kind=data.kind,
        description=data.description,
        status="PENDING",
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info("Demande de justification %s créée (personne %s, %s)", request.id, request.person_id, request.fecha)
    return request


def get_requests(db: Session, person_id: Optional[int] = None) -> list[JustificationRequest]:
    query = select(JustificationRequest).order_by(JustificationRequest.created_at.desc())
    if person_id is not None:
        query = query.where(JustificationRequest.person_id == person_id)
    return list(db.execute(query).scalars().all())


def get_pending(db: Session) -> list[JustificationRequest]:
    return list(
        db.execute(
            select(JustificationRequest)
            .where(JustificationRequest.status == "PENDING")
            .order_by(JustificationRequest.created_at)
        ).scalars().all()
    )


def get_request(db: Session, request_id: int) -> JustificationRequest:
    request = db.get(JustificationRequest, request_id)
    if request is None:
        raise NotFoundError("Justification introuvable.")
    return request


def approve(db: Session, request_id: int, reviewed_by: str) -> JustificationRequest:
    """Approuve une demande PENDING et applique la justification d'absence sur la présence du jour."""
    request = get_request(db, request_id)
    if request.status != "PENDING":
        raise InvalidRequestError("Seules les justifications en attente peuvent être approuvées.")

    text = f"[{KIND_LABELS.get(request.kind, request.kind)}] {request.description}"
    attendance_service.justify_attendance(
        db,
        request.person_id,
        request.fecha,
        "absence",
        text,
        marked_by=reviewed_by,
    )

    # justify_attendance a commité : la demande est relue avant mise à jour
    request = get_request(db, request_id)
    request.status = "APPROVED"
    request.reviewed_by = reviewed_by
    request.reviewed_at = clock.now()
    db.commit()
    db.refresh(request)
    logger.info("Justification %s approuvée par %s", request.id, reviewed_by)
    return request


def reject(db: Session, request_id: int, reviewed_by: str, reason: str) -> JustificationRequest:
    request = get_request(db, request_id)
    if request.status != "PENDING":
        raise InvalidRequestError("Seules les justifications en attente peuvent être rejetées.")
    if not reason or len(reason.strip()) < 5:
        raise InvalidRequestError("La raison du rejet doit contenir au moins 5 caractères.")

    request.status = "REJECTED"
    request.rejection_reason = reason.strip()
    request.reviewed_by = reviewed_by
    request.reviewed_at = clock.now()
    db.commit()
    db.refresh(request)
    logger.info("Justification %s rejetée par %s", request.id, reviewed_by)
    return request
