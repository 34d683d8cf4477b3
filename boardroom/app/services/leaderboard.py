"""
Leaderboard Store - win/loss counters keyed by display name.

The whole map lives in memory and is rewritten to a JSON file after every
update. Writes are fire-and-forget when an event loop is running: a crash
between a game ending and the flush can lose that result.
"""

import asyncio
import json
import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def win_rate(wins: int, games: int) -> float:
    return round(wins / games * 100, 1) if games > 0 else 0.0


class LeaderboardStore:
    def __init__(self, path: Optional[str] = None):
        # No path means memory only
        self.path = Path(path) if path else None
        self.records: Dict[str, Dict[str, int]] = {}
        # Single writer thread keeps flushes in order
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="leaderboard")

    def load(self):
        if self.path is None or not self.path.exists():
            return
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read leaderboard %s, starting empty: %s", self.path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Leaderboard %s is not a name -> stats map, starting empty", self.path)
            return

        for name, stats in data.items():
            try:
                wins = int(stats.get("wins", 0))
                losses = int(stats.get("losses", 0))
            except (AttributeError, TypeError, ValueError):
                logger.warning("Skipping malformed leaderboard entry %r in %s", name, self.path)
                continue
            self.records[name] = {"wins": wins, "losses": losses, "games": wins + losses}
        logger.info("Loaded %d leaderboard record(s) from %s", len(self.records), self.path)

    def get(self, name: str) -> Optional[Dict[str, int]]:
        return self.records.get(name)

    def record_result(self, name: str, won: bool):
        stats = self.records.setdefault(name, {"wins": 0, "losses": 0, "games": 0})
        stats["games"] += 1
        if won:
            stats["wins"] += 1
        else:
            stats["losses"] += 1
        self._schedule_flush()

    def record_room_result(self, room, winner: Optional[int]):
        """
        Completion listener. Every human seat gets a result; a draw is a loss
        for both sides (current scoring policy).
        """
        for player in room.human_players:
            self.record_result(player.name, won=(winner is not None and player.slot == winner))

    def top(self, n: int = 10) -> List[dict]:
        entries = [
            {
                "name": name,
                "wins": s["wins"],
                "losses": s["losses"],
                "games": s["games"],
                "winRate": win_rate(s["wins"], s["games"]),
            }
            for name, s in self.records.items()
        ]
        entries.sort(key=lambda e: (-e["wins"], -e["winRate"]))
        return entries[:n]

    # --- persistence ---

    def _schedule_flush(self):
        if self.path is None:
            return
        snapshot = json.dumps(self.records, indent=2)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(snapshot)
            return
        loop.run_in_executor(self._executor, self._write, snapshot)

    def _write(self, snapshot: str):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".leaderboard-")
            with os.fdopen(fd, "w") as f:
                f.write(snapshot)
            os.replace(tmp_path, self.path)
        except OSError:
            logger.exception("Failed to save leaderboard to %s", self.path)

    def close(self):
        """Waits for pending flushes. Called on shutdown."""
        self._executor.shutdown(wait=True)
