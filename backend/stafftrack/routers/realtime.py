"""
Canal WebSocket des tableaux de bord : diffusion des créations et mises à jour de présences.
"""

from fastapi import APIRouter, WebSocket
from fastapi.websockets import WebSocketDisconnect

from stafftrack.realtime import publisher

router = APIRouter(tags=["Temps réel"])


@router.websocket("/ws/attendances")
async def attendances_websocket(websocket: WebSocket):
    await publisher.connect(websocket)
    try:
        while True:
            # Les messages entrants servent uniquement de keep-alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        publisher.disconnect(websocket)
