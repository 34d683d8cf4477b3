from enum import StrEnum

class RoomStatus(StrEnum):
    WAITING = "WAITING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"
    ABANDONED = "ABANDONED"

class LobbyStatus(StrEnum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"

class GameType(StrEnum):
    CONNECT4 = "connect4"
    CHECKERS = "checkers"

class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class Color(StrEnum):
    RED = "red"
    BLACK = "black"
    YELLOW = "yellow"
