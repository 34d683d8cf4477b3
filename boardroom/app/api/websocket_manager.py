"""
WebSocket Manager - transport for the gateway

Each connection gets a Session whose `send` puts frames on an asyncio.Queue;
a writer task drains the queue onto the socket. Rooms can therefore send
synchronously while the network write happens asynchronously, and frames to
one connection keep their order.
"""

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from boardroom.app.services.gateway import Gateway, Session

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def _writer(self, websocket: WebSocket, queue: asyncio.Queue):
        while True:
            message = await queue.get()
            try:
                await websocket.send_json(message)
            except Exception:
                # Socket already gone; the reader loop handles cleanup
                logger.debug("Dropping frame for closed connection: %s", message.get("event"))
                return

    async def handle_session(self, websocket: WebSocket):
        await websocket.accept()

        queue: asyncio.Queue = asyncio.Queue()
        session = Session(sink=queue.put_nowait)
        writer = asyncio.create_task(self._writer(websocket, queue))
        self.gateway.connect(session)

        try:
            while True:
                data = await websocket.receive_text()
                self.gateway.handle_raw(session, data)
        except WebSocketDisconnect:
            pass
        finally:
            self.gateway.disconnect(session)
            writer.cancel()
