import os
import yaml
from pathlib import Path
from dotenv import load_dotenv
from pydantic import BaseModel
from typing import List

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"

# Environment variable -> settings field
ENV_OVERRIDES = {
    "HOST": "host",
    "PORT": "port",
    "BOARDROOM_LEADERBOARD_PATH": "leaderboard_path",
    "BOARDROOM_LOG_LEVEL": "log_level",
    "BOARDROOM_CLEANUP_INTERVAL": "cleanup_interval",
    "BOARDROOM_CPU_THINK_DELAY": "cpu_think_delay",
}

class Settings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    leaderboard_path: str = "leaderboard.json"
    cleanup_interval: float = 60.0   # seconds between empty-room sweeps
    cpu_think_delay: float = 0.6     # seconds before the CPU plays
    leaderboard_size: int = 10
    allowed_origins: List[str] = ["*"]
    log_level: str = "INFO"

def load_settings(path: str = None) -> Settings:
    """
    Reads settings from YAML, then applies environment overrides.
    A missing file just means defaults.
    """
    config_path = Path(path or os.getenv("BOARDROOM_CONFIG") or DEFAULT_CONFIG_PATH)
    data = {}
    if config_path.exists():
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    data = dict(data.get("server", data))

    for env_key, field in ENV_OVERRIDES.items():
        value = os.getenv(env_key)
        if value:
            data[field] = value

    return Settings(**data)
