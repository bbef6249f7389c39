"""Runtime logging configuration with bounded retention."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_PATH = "work/logs/story_spine.log"

_CONFIGURED = False


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _level_env(name: str, default: int) -> int:
    level_name = os.environ.get(name, "").strip().upper()
    if not level_name:
        return default
    level = getattr(logging, level_name, default)
    return level if isinstance(level, int) else default


@dataclass(frozen=True)
class LoggingSettings:
    """Resolved ``STORY_SPINE_LOG_*`` settings."""

    level: int
    log_path: Path
    max_bytes: int
    backup_count: int
    access_level: int
    http_client_level: int

    @classmethod
    def from_env(cls) -> LoggingSettings:
        return cls(
            level=_level_env("STORY_SPINE_LOG_LEVEL", logging.INFO),
            log_path=Path(
                os.environ.get("STORY_SPINE_LOG_PATH", "").strip() or DEFAULT_LOG_PATH
            ),
            max_bytes=_int_env(
                "STORY_SPINE_LOG_MAX_BYTES",
                5 * 1024 * 1024,
                minimum=64 * 1024,
                maximum=100 * 1024 * 1024,
            ),
            backup_count=_int_env("STORY_SPINE_LOG_BACKUP_COUNT", 10, minimum=1, maximum=120),
            access_level=_level_env("STORY_SPINE_ACCESS_LOG_LEVEL", logging.WARNING),
            http_client_level=_level_env("STORY_SPINE_HTTP_CLIENT_LOG_LEVEL", logging.WARNING),
        )


def configure_runtime_logging(*, console_level: int | None = None) -> None:
    """Configure console + rotating file logs once per process.

    Interactive commands pass a higher ``console_level`` so log lines do not
    interleave with the story prompts; the file still gets everything.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = LoggingSettings.from_env()
    settings.log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    if console_level is not None:
        stream_handler.setLevel(console_level)

    file_handler = RotatingFileHandler(
        filename=settings.log_path,
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(settings.level)
    root.handlers.clear()
    root.addHandler(stream_handler)
    root.addHandler(file_handler)

    logging.getLogger("uvicorn.access").setLevel(settings.access_level)
    # httpx logs every request at INFO, including the generator endpoint
    logging.getLogger("httpx").setLevel(settings.http_client_level)

    _CONFIGURED = True
