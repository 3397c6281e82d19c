"""
Diffusion temps réel des changements de présence (WebSocket /ws/attendances).

Les services tournent dans le pool de threads de FastAPI (routes synchrones) ou dans
le scheduler : publish() reprogramme l'envoi sur la boucle asyncio capturée à la
première connexion. Sans client connecté, publish() ne fait rien.
"""

import asyncio
import logging
from typing import Any, Optional, Set

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)

ATTENDANCE_CREATED = "attendance:created"
ATTENDANCE_UPDATED = "attendance:updated"
ATTENDANCES_LIST_UPDATED = "attendances:list-updated"


class ConnectionManager:
    """Connexions WebSocket des tableaux de bord administrateur."""

    def __init__(self) -> None:
        self.active_connections: Set[WebSocket] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self.active_connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)

    async def broadcast(self, message: dict) -> None:
        to_remove: list[WebSocket] = []
        for ws in list(self.active_connections):
            try:
                await ws.send_json(message)
            except WebSocketDisconnect:
                to_remove.append(ws)
            except Exception:
                to_remove.append(ws)

        for ws in to_remove:
            self.disconnect(ws)

    def publish(self, event: str, payload: Any = None) -> None:
        """Diffuse un événement depuis du code synchrone. Best-effort, ne lève jamais."""
        if not self.active_connections or self._loop is None or self._loop.is_closed():
            logger.debug("Événement %s non diffusé : aucun client connecté", event)
            return
        try:
            asyncio.run_coroutine_threadsafe(self.broadcast({"event": event, "data": payload}), self._loop)
        except Exception as exc:
            logger.warning("Diffusion temps réel impossible (%s) : %s", event, exc)


publisher = ConnectionManager()
