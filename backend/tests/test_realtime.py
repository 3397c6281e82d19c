"""
Tests de la diffusion temps réel des changements de présence.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.websockets import WebSocketDisconnect

from stafftrack.realtime import ConnectionManager


def test_publication_sans_client():
    manager = ConnectionManager()
    with patch("stafftrack.realtime.asyncio.run_coroutine_threadsafe") as mock_schedule:
        manager.publish("attendance:created", {"id": 1})
    mock_schedule.assert_not_called()


def test_diffusion_a_tous_les_clients():
    manager = ConnectionManager()
    first, second = AsyncMock(), AsyncMock()
    manager.active_connections = {first, second}

    asyncio.run(manager.broadcast({"event": "attendance:updated", "data": {"id": 1}}))

    first.send_json.assert_awaited_once_with({"event": "attendance:updated", "data": {"id": 1}})
    second.send_json.assert_awaited_once()


def test_client_deconnecte_retire():
    manager = ConnectionManager()
    alive, gone = AsyncMock(), AsyncMock()
    gone.send_json.side_effect = WebSocketDisconnect()
    manager.active_connections = {alive, gone}

    asyncio.run(manager.broadcast({"event": "attendances:list-updated", "data": None}))

    assert manager.active_connections == {alive}


def test_publication_depuis_un_thread():
    manager = ConnectionManager()
    manager.active_connections = {AsyncMock()}
    manager._loop = MagicMock()
    manager._loop.is_closed.return_value = False

    with patch("stafftrack.realtime.asyncio.run_coroutine_threadsafe") as mock_schedule:
        manager.publish("attendance:created", {"id": 1})

    coroutine, loop = mock_schedule.call_args.args
    assert loop is manager._loop
    coroutine.close()
