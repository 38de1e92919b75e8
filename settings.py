import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    database_url: Optional[str] = None
    database_name: str = "attendance"
    collection_name: str = "student"
    log_level: str = "INFO"
    api_url: str = "http://localhost:8000"


def _port(value):
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"PORT must be an integer, got {value!r}")
    if not 0 < port < 65536:
        raise ValueError(f"PORT out of range: {port}")
    return port


def get_settings(env=None) -> Settings:
    """Read settings from the environment (and a .env file when present)."""
    if env is None:
        load_dotenv(override=False)
        env = os.environ
    return Settings(
        host=env.get("HOST", "0.0.0.0"),
        port=_port(env.get("PORT", 8000)),
        database_url=env.get("DATABASE_URL") or None,
        database_name=env.get("DATABASE_NAME", "attendance"),
        collection_name=env.get("COLLECTION_NAME", "student"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        api_url=env.get("ATTENDANCE_API_URL", "http://localhost:8000").rstrip("/"),
    )


def configure_logging(level="INFO"):
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # pymongo is chatty at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)
