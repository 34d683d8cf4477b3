import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

class RoomEvents:
    """Listeners notified when a room reaches a terminal result (win or draw)."""

    def __init__(self):
        self._on_complete_listeners: List[Callable] = []

    def subscribe_complete(self, callback: Callable):
        self._on_complete_listeners.append(callback)

    def notify_complete(self, room, winner: Optional[int]):
        # winner is the winning slot, None for a draw
        for listener in self._on_complete_listeners:
            try:
                listener(room, winner)
            except Exception:
                logger.exception("Room completion listener failed for room %s", room.room_id)
