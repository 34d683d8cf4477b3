"""
Session Gateway - the single entry point for client requests.

It owns per-connection identity (room, slot, name, spectated room, lobby
subscription), checks that a connection may act on a room, and turns
validated client messages into Room operations. Rejected requests are
answered with an `error` event to the sender only.

Used by the websocket manager; transport-agnostic so tests can drive it
with in-memory sessions.
"""

import logging
import uuid
from typing import Any, Callable, Dict, Optional, Set

from pydantic import ValidationError

from boardroom.app.core.errors import AlreadyInRoom, GameError, InvalidName, NotInRoom, NotYourTurn
from boardroom.app.schemas import messages as msg
from boardroom.app.services.cpu_runner import CpuRunner
from boardroom.app.services.leaderboard import LeaderboardStore
from boardroom.app.services.registry import RoomRegistry
from boardroom.app.services.room import Room

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 15


class Session:
    """One client connection. Holds a seat in one room, or watches one room, never both."""

    def __init__(self, sink: Optional[Callable[[dict], None]] = None):
        self.session_id = uuid.uuid4().hex[:8]
        self.room_id: Optional[str] = None
        self.slot: Optional[int] = None
        self.name: Optional[str] = None
        self.spectating: Optional[str] = None
        self._sink = sink

    def send(self, event: str, payload: Any):
        if self._sink is not None:
            self._sink({"event": event, "data": payload})

    def close(self):
        self._sink = None

    def __repr__(self):
        return f"<Session {self.session_id} room={self.room_id} slot={self.slot}>"


def validate_name(name: str) -> str:
    name = (name or "").strip()
    if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        raise InvalidName()
    return name


def normalize_room_id(room_id: str) -> str:
    return (room_id or "").strip().upper()


class Gateway:
    def __init__(self, registry: RoomRegistry, leaderboard: LeaderboardStore,
                 cpu_runner: Optional[CpuRunner] = None, leaderboard_size: int = 10):
        self.registry = registry
        self.leaderboard = leaderboard
        self.cpu_runner = cpu_runner
        self.leaderboard_size = leaderboard_size

        self.sessions: Set[Session] = set()
        self.lobby_subscribers: Set[Session] = set()

        # Finished games change the lobby, including ones the CPU finishes
        self.registry.events.subscribe_complete(lambda room, winner: self.publish_lobby())

        self._handlers: Dict[str, Callable] = {
            "createGame": self._create_game,
            "joinGame": self._join_game,
            "makeMove": self._make_move,
            "checkersMove": self._checkers_move,
            "requestRematch": self._request_rematch,
            "sendChatMessage": self._send_chat_message,
            "typing": self._typing,
            "leaveGame": self._leave_game,
            "spectateGame": self._spectate_game,
            "lobby:subscribe": self._lobby_subscribe,
            "lobby:unsubscribe": self._lobby_unsubscribe,
            "getLeaderboard": self._get_leaderboard,
        }

    # --- connection lifecycle ---

    def connect(self, session: Session):
        self.sessions.add(session)
        logger.info("Player connected: %s", session.session_id)

    def disconnect(self, session: Session):
        logger.info("Player disconnected: %s", session.session_id)
        changed = self._leave(session)
        self.lobby_subscribers.discard(session)
        self.sessions.discard(session)
        session.close()
        if changed:
            self.publish_lobby()

    # --- dispatch ---

    def handle_raw(self, session: Session, raw: str):
        """Parses one frame and dispatches it. Never raises for bad client input."""
        try:
            message = msg.parse_client_message(raw)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            location = ".".join(str(p) for p in first.get("loc", ()))
            logger.debug("Rejected frame from %s: %s", session.session_id, e)
            session.send("error", {"message": f"Invalid message: {location} {first.get('msg', '')}".strip()})
            return
        self.handle(session, message)

    def handle(self, session: Session, message):
        handler = self._handlers[message.event]
        try:
            handler(session, message.data)
        except GameError as e:
            logger.debug("%s rejected for %s: %s", message.event, session.session_id, e.message)
            session.send("error", {"message": e.message})
        except Exception:
            logger.exception("Unexpected error handling %s for %s", message.event, session.session_id)
            session.send("error", {"message": "Internal server error"})

    # --- helpers ---

    def _seated_room(self, session: Session, game_id: str) -> Room:
        room = self.registry.get(normalize_room_id(game_id))
        if session.room_id != room.room_id or room.player_by_connection(session) is None:
            raise NotInRoom()
        return room

    def _stop_spectating(self, session: Session):
        if session.spectating is None:
            return
        room = self.registry.rooms.get(session.spectating)
        if room is not None:
            room.remove_spectator(session)
        session.spectating = None

    def _seat(self, session: Session, room: Room, name: str) -> int:
        if session.room_id is not None:
            raise AlreadyInRoom()
        slot = room.add_player(session, name)
        self._stop_spectating(session)
        session.room_id = room.room_id
        session.slot = slot
        session.name = name
        return slot

    def _leave(self, session: Session) -> bool:
        """Vacates the seat or spectator spot. Returns True when the lobby changed."""
        changed = False
        if session.room_id is not None:
            room = self.registry.rooms.get(session.room_id)
            if room is not None:
                remaining = room.remove_player(session)
                if remaining == 0:
                    self._destroy_room(room)
            session.room_id = None
            session.slot = None
            changed = True

        if session.spectating is not None:
            self._stop_spectating(session)
            changed = True
        return changed

    def _destroy_room(self, room: Room):
        if self.cpu_runner is not None:
            self.cpu_runner.cancel(room.room_id)
        self.registry.remove(room.room_id)
        self._detach_spectators(room.room_id)

    def _detach_spectators(self, room_id: str):
        for session in self.sessions:
            if session.spectating == room_id:
                session.spectating = None

    def _schedule_cpu(self, room: Room):
        if self.cpu_runner is not None and room.cpu_player is not None:
            self.cpu_runner.schedule(room)

    def publish_lobby(self):
        if not self.lobby_subscribers:
            return
        summaries = self.registry.lobby_summaries()
        for session in list(self.lobby_subscribers):
            session.send("lobby:update", summaries)

    def sweep(self) -> int:
        """Periodic cleanup of rooms without players."""
        removed = self.registry.sweep()
        for room in removed:
            if self.cpu_runner is not None:
                self.cpu_runner.cancel(room.room_id)
            self._detach_spectators(room.room_id)
        if removed:
            self.publish_lobby()
        return len(removed)

    # --- handlers ---

    def _create_game(self, session: Session, data: msg.CreateGamePayload):
        name = validate_name(data.player_name)
        if session.room_id is not None:
            raise AlreadyInRoom()

        room = self.registry.create(data.game_type)
        slot = self._seat(session, room, name)
        session.send("gameCreated", {
            "gameId": room.room_id,
            "playerNumber": slot,
            "playerName": name,
        })
        if data.cpu is not None:
            room.add_cpu(data.cpu)
        self.publish_lobby()

    def _join_game(self, session: Session, data: msg.JoinGamePayload):
        name = validate_name(data.player_name)
        room = self.registry.get(normalize_room_id(data.game_id))
        self._seat(session, room, name)
        self.publish_lobby()

    def _make_move(self, session: Session, data: msg.MakeMovePayload):
        room = self._seated_room(session, data.game_id)
        if data.player != session.slot:
            raise NotYourTurn("Invalid player")
        room.make_move(session.slot, data.col)
        self._schedule_cpu(room)

    def _checkers_move(self, session: Session, data: msg.CheckersMovePayload):
        room = self._seated_room(session, data.game_id)
        room.make_checkers_move(session.slot, data.from_square, data.to_square, connection=session)
        self._schedule_cpu(room)

    def _request_rematch(self, session: Session, data: msg.RoomPayload):
        room = self._seated_room(session, data.game_id)
        if room.request_rematch(session.slot):
            self.publish_lobby()

    def _send_chat_message(self, session: Session, data: msg.ChatPayload):
        room = self._seated_room(session, data.game_id)
        room.add_chat_message(session.slot, data.message)

    def _typing(self, session: Session, data: msg.TypingPayload):
        room = self._seated_room(session, data.game_id)
        room.set_typing(session.slot, data.is_typing)

    def _leave_game(self, session: Session, data: msg.EmptyPayload):
        changed = self._leave(session)
        session.send("gameLeft", {})
        if changed:
            self.publish_lobby()

    def _spectate_game(self, session: Session, data: msg.RoomPayload):
        if session.room_id is not None:
            raise AlreadyInRoom()
        room = self.registry.get(normalize_room_id(data.game_id))
        if session.spectating != room.room_id:
            self._stop_spectating(session)
        room.add_spectator(session)
        session.spectating = room.room_id
        self.publish_lobby()

    def _lobby_subscribe(self, session: Session, data: msg.EmptyPayload):
        self.lobby_subscribers.add(session)
        session.send("lobby:update", self.registry.lobby_summaries())

    def _lobby_unsubscribe(self, session: Session, data: msg.EmptyPayload):
        self.lobby_subscribers.discard(session)

    def _get_leaderboard(self, session: Session, data: msg.EmptyPayload):
        session.send("leaderboard", self.leaderboard.top(self.leaderboard_size))
