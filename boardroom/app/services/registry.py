"""
Room Registry - the process-wide map of live rooms.

Owned by the application (not a module singleton) so every test can build
its own. Also derives the lobby listing and sweeps rooms nobody plays in.
"""

import logging
import random
import string
from typing import Callable, Dict, List, Optional

from boardroom.app.core.errors import RoomNotFound
from boardroom.app.core.events import RoomEvents
from boardroom.app.models.enums import GameType, LobbyStatus
from boardroom.app.services.room import Room, now_ms

logger = logging.getLogger(__name__)

ROOM_ID_LENGTH = 6
ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits

LOBBY_ORDER = {
    LobbyStatus.WAITING: 0,
    LobbyStatus.PLAYING: 1,
    LobbyStatus.FINISHED: 2,
}


class RoomRegistry:
    def __init__(self, events: Optional[RoomEvents] = None,
                 clock: Callable[[], int] = now_ms, rng: Optional[random.Random] = None):
        self.rooms: Dict[str, Room] = {}
        self.events = events or RoomEvents()
        self.clock = clock
        self.rng = rng or random.Random()

    def _generate_id(self) -> str:
        return "".join(self.rng.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))

    def create(self, game_type: GameType = GameType.CONNECT4) -> Room:
        room_id = self._generate_id()
        while room_id in self.rooms:
            room_id = self._generate_id()

        room = Room(room_id, game_type=game_type, events=self.events, created_at=self.clock())
        self.rooms[room_id] = room
        logger.info("Game created: %s (%s)", room_id, room.game_type)
        return room

    def get(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def remove(self, room_id: str) -> Optional[Room]:
        room = self.rooms.pop(room_id, None)
        if room is not None:
            room.close()
            logger.info("Game removed: %s", room_id)
        return room

    def __len__(self) -> int:
        return len(self.rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self.rooms

    def lobby_summaries(self) -> List[dict]:
        # Newest first inside each status group; reversed() keeps insertion
        # order as the tie-break for identical timestamps.
        summaries = [room.summary() for room in reversed(list(self.rooms.values()))]
        return sorted(summaries, key=lambda s: (LOBBY_ORDER[LobbyStatus(s["status"])], -s["createdAt"]))

    def sweep(self) -> List[Room]:
        """Removes every room without players, spectators or not."""
        removed = []
        for room_id, room in list(self.rooms.items()):
            if not room.players:
                self.rooms.pop(room_id)
                room.close()
                removed.append(room)
        if removed:
            logger.info("Cleaned up %d empty game(s): %s",
                        len(removed), ", ".join(r.room_id for r in removed))
        return removed
