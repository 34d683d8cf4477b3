import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from boardroom.app.api.stats import router as stats_router
from boardroom.app.api.websocket_manager import ConnectionManager
from boardroom.app.core.config import Settings, load_settings
from boardroom.app.core.events import RoomEvents
from boardroom.app.services.cpu_runner import CpuRunner
from boardroom.app.services.gateway import Gateway
from boardroom.app.services.leaderboard import LeaderboardStore
from boardroom.app.services.registry import RoomRegistry

logger = logging.getLogger(__name__)


async def cleanup_watcher(gateway: Gateway, interval: float):
    """Background task removing rooms nobody plays in"""
    while True:
        await asyncio.sleep(interval)
        try:
            gateway.sweep()
        except Exception:
            logger.exception("Room cleanup failed")


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    events = RoomEvents()
    leaderboard = LeaderboardStore(settings.leaderboard_path)
    events.subscribe_complete(leaderboard.record_room_result)
    registry = RoomRegistry(events=events)
    cpu_runner = CpuRunner(delay=settings.cpu_think_delay)
    gateway = Gateway(registry, leaderboard, cpu_runner, leaderboard_size=settings.leaderboard_size)
    cpu_runner.on_move = lambda room: gateway.publish_lobby()
    manager = ConnectionManager(gateway)

    # --- LIFESPAN MANAGER (load leaderboard, start cleanup) ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        leaderboard.load()
        watcher = asyncio.create_task(cleanup_watcher(gateway, settings.cleanup_interval))
        logger.info("Boardroom ready on %s:%s", settings.host, settings.port)
        yield
        watcher.cancel()
        cpu_runner.shutdown()
        leaderboard.close()

    app = FastAPI(title="Boardroom - Connect Four & Checkers", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.gateway = gateway
    app.state.manager = manager

    app.include_router(stats_router, tags=["Stats"])

    @app.get("/health")
    async def health():
        return {"status": "ok", "rooms": len(registry), "connections": len(gateway.sessions)}

    @app.websocket("/ws")
    async def game_websocket(websocket: WebSocket):
        await manager.handle_session(websocket)

    return app


app = create_app()
