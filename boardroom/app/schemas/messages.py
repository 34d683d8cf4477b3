"""
Client -> server messages.

Every websocket frame is `{"event": <name>, "data": {...}}`. The set of
events is closed: frames are parsed into one of the models below through a
discriminated union on `event`, so room logic never sees raw dicts.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from boardroom.app.models.enums import Difficulty, GameType


class Payload(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class EmptyPayload(Payload):
    pass


class CreateGamePayload(Payload):
    player_name: str
    game_type: GameType = GameType.CONNECT4
    cpu: Optional[Difficulty] = None


class JoinGamePayload(Payload):
    game_id: str
    player_name: str


class RoomPayload(Payload):
    game_id: str


class MakeMovePayload(RoomPayload):
    col: int
    player: int


class CheckersMovePayload(RoomPayload):
    from_square: List[int] = Field(alias="from", min_length=2, max_length=2)
    to_square: List[int] = Field(alias="to", min_length=2, max_length=2)
    # Client-side hints; the server recomputes these
    piece: Optional[dict] = None
    captured: Optional[bool] = None
    king: Optional[bool] = None


class ChatPayload(RoomPayload):
    message: str


class TypingPayload(RoomPayload):
    is_typing: bool


class CreateGame(BaseModel):
    event: Literal["createGame"]
    data: CreateGamePayload


class JoinGame(BaseModel):
    event: Literal["joinGame"]
    data: JoinGamePayload


class MakeMove(BaseModel):
    event: Literal["makeMove"]
    data: MakeMovePayload


class CheckersMove(BaseModel):
    event: Literal["checkersMove"]
    data: CheckersMovePayload


class RequestRematch(BaseModel):
    event: Literal["requestRematch"]
    data: RoomPayload


class SendChatMessage(BaseModel):
    event: Literal["sendChatMessage"]
    data: ChatPayload


class Typing(BaseModel):
    event: Literal["typing"]
    data: TypingPayload


class LeaveGame(BaseModel):
    event: Literal["leaveGame"]
    data: EmptyPayload = Field(default_factory=EmptyPayload)


class SpectateGame(BaseModel):
    event: Literal["spectateGame"]
    data: RoomPayload


class LobbySubscribe(BaseModel):
    event: Literal["lobby:subscribe"]
    data: EmptyPayload = Field(default_factory=EmptyPayload)


class LobbyUnsubscribe(BaseModel):
    event: Literal["lobby:unsubscribe"]
    data: EmptyPayload = Field(default_factory=EmptyPayload)


class GetLeaderboard(BaseModel):
    event: Literal["getLeaderboard"]
    data: EmptyPayload = Field(default_factory=EmptyPayload)


ClientMessage = Annotated[
    Union[
        CreateGame, JoinGame, MakeMove, CheckersMove, RequestRematch,
        SendChatMessage, Typing, LeaveGame, SpectateGame,
        LobbySubscribe, LobbyUnsubscribe, GetLeaderboard,
    ],
    Field(discriminator="event"),
]

client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: str) -> ClientMessage:
    """Parses one JSON frame. Raises pydantic.ValidationError on anything unexpected."""
    return client_message_adapter.validate_json(raw)
