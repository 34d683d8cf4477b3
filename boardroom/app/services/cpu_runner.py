"""
CPU Runner - plays the CPU seat of a room.

After a human move the gateway asks the runner to schedule the CPU. The
turn runs as an asyncio task: wait the fixed thinking delay, pick a move
(minimax runs in a worker thread on a copy of the board), then apply it
on the event loop once the room is confirmed unchanged.
"""

import asyncio
import logging
import random
from typing import Callable, Dict, Optional

from boardroom.app.core.errors import GameError
from boardroom.app.engine.cpu import ConnectFourCPU, choose_checkers_move
from boardroom.app.models.enums import GameType
from boardroom.app.services.room import Room

logger = logging.getLogger(__name__)


class CpuRunner:
    def __init__(self, delay: float = 0.6, rng: Optional[random.Random] = None,
                 on_move: Optional[Callable[[Room], None]] = None):
        self.delay = delay
        self.rng = rng or random.Random()
        self.on_move = on_move
        self.running_tasks: Dict[str, asyncio.Task] = {}  # room_id -> asyncio.Task

    def _cpu_to_move(self, room: Room, slot: int) -> bool:
        cpu = room.cpu_player
        return cpu is not None and cpu.slot == slot and room.is_active and room.current_turn == slot

    def schedule(self, room: Room) -> Optional[asyncio.Task]:
        """Starts a CPU turn if the CPU is to move and isn't already thinking."""
        cpu = room.cpu_player
        if cpu is None or not self._cpu_to_move(room, cpu.slot):
            return None
        if room.room_id in self.running_tasks:
            return None

        task = asyncio.get_running_loop().create_task(self._play_turn(room, cpu.slot))
        self.running_tasks[room.room_id] = task
        return task

    async def _play_turn(self, room: Room, slot: int):
        try:
            await asyncio.sleep(self.delay)

            # A checkers capture chain keeps the turn, so keep going while it's ours
            while self._cpu_to_move(room, slot):
                if room.game_type == GameType.CONNECT4:
                    snapshot = room.engine.copy()
                    ai = ConnectFourCPU(slot, room.cpu_difficulty, rng=self.rng)
                    col = await asyncio.to_thread(ai.choose, snapshot)

                    if not self._cpu_to_move(room, slot) or room.engine.board != snapshot.board:
                        logger.info("Room %s changed while the CPU was thinking", room.room_id)
                        break
                    room.make_move(slot, col)
                else:
                    move = choose_checkers_move(room.engine, room.color_of(slot), self.rng)
                    if move is None:
                        break
                    room.make_checkers_move(slot, move.from_square, move.to_square)

                if self.on_move:
                    self.on_move(room)
                if room.game_type == GameType.CONNECT4:
                    break
                await asyncio.sleep(self.delay)

        except GameError as e:
            logger.warning("CPU move rejected in room %s: %s", room.room_id, e)
        except Exception:
            logger.exception("CPU turn failed in room %s", room.room_id)
        finally:
            if self.running_tasks.get(room.room_id) is asyncio.current_task():
                del self.running_tasks[room.room_id]

    def is_thinking(self, room_id: str) -> bool:
        return room_id in self.running_tasks

    def cancel(self, room_id: str):
        task = self.running_tasks.pop(room_id, None)
        if task is not None:
            task.cancel()
            logger.info("Stopped CPU for room %s", room_id)

    def shutdown(self):
        for room_id in list(self.running_tasks):
            self.cancel(room_id)
