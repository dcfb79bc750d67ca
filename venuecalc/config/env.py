from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StorageConfig:
    path: Path


def get_storage_config() -> StorageConfig:
    raw = os.getenv("SCENARIO_STORE_PATH", "./scenario_store/scenarios.json")
    return StorageConfig(path=Path(raw).resolve())


@dataclass(frozen=True)
class ApiConfig:
    api_key: str | None = None
    rate_limit_n: int = 20
    rate_limit_window_sec: float = 1.0


def get_api_config() -> ApiConfig:
    return ApiConfig(
        api_key=os.getenv("API_KEY") or None,
        rate_limit_n=int(os.getenv("RATE_LIMIT_N", "20")),
        rate_limit_window_sec=float(os.getenv("RATE_LIMIT_WINDOW_SEC", "1.0")),
    )


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"


def get_log_config() -> LogConfig:
    return LogConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())


def configure_logging() -> None:
    """Set up root logging for entry points (server, CLI)."""
    cfg = get_log_config()
    logging.basicConfig(
        level=getattr(logging, cfg.level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
