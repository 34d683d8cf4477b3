import json
import os
import tempfile
import unittest

from boardroom.app.models.enums import Difficulty
from boardroom.app.services.leaderboard import LeaderboardStore, win_rate
from boardroom.app.services.room import Room
from tests.helpers import FakeConnection


class TestLeaderboardCounters(unittest.TestCase):
    def setUp(self):
        self.store = LeaderboardStore()

    def test_wins_and_losses_add_up(self):
        for _ in range(3):
            self.store.record_result("Alice", won=True)
        for _ in range(2):
            self.store.record_result("Alice", won=False)
        self.assertEqual(self.store.get("Alice"), {"wins": 3, "losses": 2, "games": 5})
        self.assertEqual(self.store.top()[0]["winRate"], 60.0)

    def test_win_rate(self):
        self.assertEqual(win_rate(0, 0), 0)
        self.assertEqual(win_rate(1, 3), 33.3)
        self.assertEqual(win_rate(2, 3), 66.7)
        self.assertEqual(win_rate(4, 4), 100.0)

    def test_top_orders_by_wins_then_rate(self):
        results = {
            "Ann": [True, True, False],
            "Ben": [True, True],
            "Cal": [True, False, False],
            "Dee": [False],
        }
        for name, outcomes in results.items():
            for won in outcomes:
                self.store.record_result(name, won)

        self.assertEqual([e["name"] for e in self.store.top()], ["Ben", "Ann", "Cal", "Dee"])
        self.assertEqual([e["name"] for e in self.store.top(2)], ["Ben", "Ann"])
        self.assertEqual(self.store.top(1)[0], {
            "name": "Ben", "wins": 2, "losses": 0, "games": 2, "winRate": 100.0,
        })

    def test_unknown_player(self):
        self.assertIsNone(self.store.get("Nobody"))
        self.assertEqual(self.store.top(), [])


def seated_room(with_cpu=False):
    room = Room("LB0001")
    room.add_player(FakeConnection(), "Alice")
    if with_cpu:
        room.add_cpu(Difficulty.HARD)
    else:
        room.add_player(FakeConnection(), "Bob")
    return room


class TestRoomResults(unittest.TestCase):
    def setUp(self):
        self.store = LeaderboardStore()

    def test_draw_counts_as_loss_for_both(self):
        self.store.record_room_result(seated_room(), None)
        self.assertEqual(self.store.get("Alice")["losses"], 1)
        self.assertEqual(self.store.get("Bob")["losses"], 1)

    def test_winner_and_loser(self):
        self.store.record_room_result(seated_room(), 2)
        self.assertEqual(self.store.get("Alice"), {"wins": 0, "losses": 1, "games": 1})
        self.assertEqual(self.store.get("Bob"), {"wins": 1, "losses": 0, "games": 1})

    def test_cpu_is_not_ranked(self):
        self.store.record_room_result(seated_room(with_cpu=True), 2)
        self.assertEqual(self.store.get("Alice")["losses"], 1)
        self.assertEqual([e["name"] for e in self.store.top()], ["Alice"])


class TestLeaderboardPersistence(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "data", "leaderboard.json")

    def tearDown(self):
        self.tmp.cleanup()

    def test_results_survive_a_reload(self):
        store = LeaderboardStore(self.path)
        store.record_result("Alice", True)
        store.record_result("Bob", False)
        store.record_result("Alice", False)

        with open(self.path) as f:
            data = json.load(f)
        self.assertEqual(data["Alice"]["wins"], 1)
        self.assertEqual(data["Alice"]["losses"], 1)

        reloaded = LeaderboardStore(self.path)
        reloaded.load()
        self.assertEqual(reloaded.get("Alice"), {"wins": 1, "losses": 1, "games": 2})
        self.assertEqual(reloaded.get("Bob"), {"wins": 0, "losses": 1, "games": 1})
        # No temp files left behind
        self.assertEqual(os.listdir(os.path.dirname(self.path)), ["leaderboard.json"])

    def test_missing_file_starts_empty(self):
        store = LeaderboardStore(self.path)
        store.load()
        self.assertEqual(store.top(), [])

    def test_corrupt_file_starts_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w") as f:
            f.write("{not json")

        store = LeaderboardStore(self.path)
        with self.assertLogs("boardroom.app.services.leaderboard", level="WARNING"):
            store.load()
        self.assertEqual(store.records, {})

        store.record_result("Alice", True)
        reloaded = LeaderboardStore(self.path)
        reloaded.load()
        self.assertEqual(reloaded.get("Alice")["wins"], 1)

    def test_wrong_shape_starts_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w") as f:
            json.dump([], f)

        store = LeaderboardStore(self.path)
        with self.assertLogs("boardroom.app.services.leaderboard", level="WARNING"):
            store.load()
        self.assertEqual(store.records, {})

    def test_malformed_entries_are_skipped(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w") as f:
            json.dump({"bob": 3, "Eve": {"wins": "many"}, "Ann": {"wins": 2, "losses": 1}}, f)

        store = LeaderboardStore(self.path)
        with self.assertLogs("boardroom.app.services.leaderboard", level="WARNING"):
            store.load()
        self.assertIsNone(store.get("bob"))
        self.assertIsNone(store.get("Eve"))
        self.assertEqual(store.get("Ann"), {"wins": 2, "losses": 1, "games": 3})


if __name__ == '__main__':
    unittest.main()
