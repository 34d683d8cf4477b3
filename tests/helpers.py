"""Shared fakes for room and gateway tests."""

from boardroom.app.services.gateway import Session


class FakeConnection:
    """Records every event a room sends to it."""

    def __init__(self, label: str = "conn"):
        self.label = label
        self.received = []

    def send(self, event, payload):
        self.received.append((event, payload))

    def events(self, name):
        return [payload for event, payload in self.received if event == name]

    def names(self):
        return [event for event, _ in self.received]

    def clear(self):
        self.received = []

    def __repr__(self):
        return f"<FakeConnection {self.label}>"


class RecordingSession(Session):
    """A gateway session that keeps its outbound frames in a list."""

    def __init__(self):
        self.frames = []
        super().__init__(sink=self.frames.append)

    def events(self, name):
        return [f["data"] for f in self.frames if f["event"] == name]

    def names(self):
        return [f["event"] for f in self.frames]

    def clear(self):
        self.frames.clear()


def fill_draw_sequence():
    """
    42 alternating (player, column) moves that fill the board without a win.

    Columns end up (bottom to top) as 1,2,1,2,1,2 for columns 0, 1, 4, 5 and
    2,1,2,1,2,1 for columns 2, 3, 6; no line of four exists anywhere.
    """
    moves = []
    for a, b in [(0, 2), (1, 3), (4, 6)]:
        for _ in range(3):
            moves += [(1, a), (2, b), (1, b), (2, a)]
    for i in range(6):
        moves.append((1 if i % 2 == 0 else 2, 5))
    return moves
