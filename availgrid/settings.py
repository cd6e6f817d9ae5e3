from __future__ import annotations
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

# Load .env if present
load_dotenv(find_dotenv(usecwd=True), override=False)

def _get_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")

@dataclass(frozen=True)
class Settings:
    host: str = os.getenv("AVGRID_HOST", "0.0.0.0")
    port: int = int(os.getenv("AVGRID_PORT", "8080"))

    # Remote schedule generator
    schedule_url: str = os.getenv("AVGRID_SCHEDULE_URL", "http://localhost:8000")
    schedule_timeout_s: float = float(os.getenv("AVGRID_SCHEDULE_TIMEOUT_S", "20"))
    default_strategy: str = os.getenv("AVGRID_DEFAULT_STRATEGY", "pomodoro")

    # Structured events
    events_file: str = os.getenv("AVGRID_EVENTS_FILE", "./metrics/events.ndjson")

    verbose_log: bool = _get_bool("AVGRID_VERBOSE_LOG", True)   # <— turn on/off console logs

    @property
    def schedule_endpoint(self) -> str:
        return self.schedule_url.rstrip("/") + "/generate-schedule"


settings = Settings()
