import os
import tempfile
import unittest

from fastapi.testclient import TestClient

from boardroom.app.core.config import Settings
from boardroom.app.main import create_app


def receive_until(ws, event, limit=50):
    """Reads frames until one with `event` arrives and returns its data."""
    for _ in range(limit):
        frame = ws.receive_json()
        if frame["event"] == event:
            return frame["data"]
    raise AssertionError(f"No {event} frame within {limit} frames")


class TestBoardroomAPI(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.settings = Settings(
            leaderboard_path=os.path.join(self.tmp.name, "leaderboard.json"),
            cleanup_interval=3600,
            cpu_think_delay=0,
        )
        self.client = TestClient(create_app(self.settings))
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        self.tmp.cleanup()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "rooms": 0, "connections": 0})

    def test_empty_listings(self):
        self.assertEqual(self.client.get("/lobby").json(), [])
        self.assertEqual(self.client.get("/leaderboard").json(), [])
        self.assertEqual(self.client.get("/leaderboard?limit=0").status_code, 422)

    def test_unknown_room(self):
        response = self.client.get("/rooms/NOPE00")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Game not found")

    def test_websocket_game(self):
        with self.client.websocket_connect("/ws") as alice, self.client.websocket_connect("/ws") as bob:
            alice.send_json({"event": "createGame", "data": {"playerName": "Alice"}})
            game_id = receive_until(alice, "gameCreated")["gameId"]

            snapshot = self.client.get(f"/rooms/{game_id.lower()}").json()
            self.assertEqual(snapshot["gameId"], game_id)
            self.assertEqual(snapshot["status"], "WAITING")
            self.assertEqual(len(snapshot["board"]), 6)

            bob.send_json({"event": "joinGame", "data": {"gameId": game_id, "playerName": "Bob"}})
            self.assertEqual(receive_until(bob, "gameStart")["playerNumber"], 2)
            self.assertEqual(receive_until(alice, "gameStart")["playerNumber"], 1)

            for _ in range(3):
                alice.send_json({"event": "makeMove", "data": {"gameId": game_id, "col": 3, "player": 1}})
                receive_until(bob, "turnUpdate")
                bob.send_json({"event": "makeMove", "data": {"gameId": game_id, "col": 4, "player": 2}})
                receive_until(alice, "turnUpdate")
            alice.send_json({"event": "makeMove", "data": {"gameId": game_id, "col": 3, "player": 1}})

            won = receive_until(bob, "gameWon")
            self.assertEqual(won["winnerName"], "Alice")

            bob.send_json({"event": "getLeaderboard"})
            board = receive_until(bob, "leaderboard")
            self.assertEqual(board[0]["name"], "Alice")

        leaderboard = self.client.get("/leaderboard").json()
        self.assertEqual([e["name"] for e in leaderboard], ["Alice", "Bob"])
        self.assertEqual(leaderboard[0]["winRate"], 100.0)

    def test_websocket_errors(self):
        with self.client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            self.assertTrue(receive_until(ws, "error")["message"].startswith("Invalid message"))

            ws.send_json({"event": "joinGame", "data": {"gameId": "NOPE00", "playerName": "Carol"}})
            self.assertEqual(receive_until(ws, "error"), {"message": "Game not found"})

    def test_cpu_opponent_over_websocket(self):
        with self.client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "createGame", "data": {"playerName": "Alice", "cpu": "easy"}})
            game_id = receive_until(ws, "gameCreated")["gameId"]
            receive_until(ws, "gameStart")

            ws.send_json({"event": "makeMove", "data": {"gameId": game_id, "col": 0, "player": 1}})
            self.assertEqual(receive_until(ws, "moveMade")["player"], 1)
            self.assertEqual(receive_until(ws, "moveMade")["player"], 2)

    def test_lobby_over_websocket(self):
        with self.client.websocket_connect("/ws") as watcher, self.client.websocket_connect("/ws") as alice:
            watcher.send_json({"event": "lobby:subscribe"})
            self.assertEqual(receive_until(watcher, "lobby:update"), [])

            alice.send_json({"event": "createGame", "data": {"playerName": "Alice", "gameType": "checkers"}})
            listing = receive_until(watcher, "lobby:update")
            self.assertEqual(listing[0]["hostName"], "Alice")
            self.assertEqual(listing[0]["gameType"], "checkers")
            self.assertEqual(self.client.get("/lobby").json(), listing)


if __name__ == '__main__':
    unittest.main()
