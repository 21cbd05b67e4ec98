"""WebSocket handlers for streaming console state."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Union
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from fm_radio_console.console import RadioConsole
from fm_radio_console.controller import CommandFailure
from fm_radio_console.protocol import failure_to_wire, snapshot_to_wire
from fm_radio_console.state import RadioSnapshot


logger = logging.getLogger(__name__)

router = APIRouter()

StreamItem = Union[RadioSnapshot, CommandFailure]


@dataclass
class _ClientSession:
    websocket: WebSocket
    queue: asyncio.Queue[StreamItem]
    session_id: uuid.UUID
    seq: int = 0
    dropped: int = 0

    def next_seq(self) -> int:
        self.seq += 1
        return self.seq


class _StreamHub:
    """Fan out state snapshots and failures to multiple WebSocket clients."""

    def __init__(self, console: RadioConsole) -> None:
        self._console = console
        self._clients: list[_ClientSession] = []
        # Subscribe once so every change is broadcast to all clients.
        self._console.subscribe(self.publish, self.publish)

    def register(self, session: _ClientSession) -> None:
        self._clients.append(session)

    def unregister(self, session: _ClientSession) -> None:
        if session in self._clients:
            self._clients.remove(session)

    def publish(self, item: StreamItem) -> None:
        # Store callbacks already run on the event loop, so enqueue directly.
        for session in list(self._clients):
            try:
                session.queue.put_nowait(item)
            except asyncio.QueueFull:
                # Drop items for slow clients rather than stalling the store.
                session.dropped += 1
                continue


def _get_hub(websocket: WebSocket) -> _StreamHub:
    app = websocket.app
    hub = getattr(app.state, "ws_hub", None)
    if hub is None:
        hub = _StreamHub(app.state.console)
        app.state.ws_hub = hub
    return hub


async def _send_item(session: _ClientSession, item: StreamItem) -> None:
    if isinstance(item, RadioSnapshot):
        payload = snapshot_to_wire(item, seq=session.next_seq(), session_id=session.session_id)
    else:
        payload = failure_to_wire(item, seq=session.next_seq(), session_id=session.session_id)
    await session.websocket.send_json(payload)


@router.websocket("/ws/state")
async def stream(websocket: WebSocket) -> None:
    await websocket.accept()
    session = _ClientSession(
        websocket=websocket,
        queue=asyncio.Queue(maxsize=64),
        session_id=uuid.uuid4(),
    )
    console: RadioConsole = websocket.app.state.console

    # Join the broadcast stream before sending the current state so no change is missed.
    hub = _get_hub(websocket)
    hub.register(session)

    try:
        await _send_item(session, console.snapshot())
        while True:
            item = await session.queue.get()
            await _send_item(session, item)
    except WebSocketDisconnect:
        # Client disconnected; cleanup happens in finally.
        pass
    finally:
        hub.unregister(session)
        if session.dropped:
            logger.info("WebSocket session %s dropped %d frames", session.session_id, session.dropped)
