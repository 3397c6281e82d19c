"""
Exceptions métier levées par les services.

Elles héritent de ValueError : les routers les convertissent en HTTPException
(404 pour NotFoundError, 400 pour le reste).
"""

from fastapi import HTTPException


class NotFoundError(ValueError):
    """Personne, QR code, horaire ou justification introuvable."""


class InvalidRequestError(ValueError):
    """Entrée invalide ou règle métier violée (doublon d'entrée, date future, etc.)."""


class ConflictError(InvalidRequestError):
    """Le jour porte déjà un enregistrement de priorité supérieure (ex. présence QR vérifiée)."""


def to_http_exception(exc: ValueError) -> HTTPException:
    """Traduit une erreur métier en réponse HTTP."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
