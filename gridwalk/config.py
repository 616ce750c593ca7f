from __future__ import annotations

import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Settings:
    # Milliseconds of silence after the last accepted move before a session closes.
    inactivity_timeout_ms: int = 10_000
    host: str = "0.0.0.0"
    port: int = 1234
    redis_url: str = "redis://localhost:6379/0"
    # Socket timeout for every Redis call, so a hung store cannot stall a writer forever.
    redis_timeout_ms: int = 5_000
    moves_stream: str = "gridwalk:moves"
    moves_stream_maxlen: int | None = None
    # How long closing a connection waits for its queued move events.
    move_flush_timeout_ms: int = 2_000
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def inactivity_timeout(self) -> float:
        return self.inactivity_timeout_ms / 1000

    @property
    def redis_timeout(self) -> float:
        return self.redis_timeout_ms / 1000

    @property
    def move_flush_timeout(self) -> float:
        return self.move_flush_timeout_ms / 1000


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return _positive_int(name, raw)


def _optional_int_from_env(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    return _positive_int(name, raw)


def settings_from_env() -> Settings:
    d = Settings()
    return Settings(
        inactivity_timeout_ms=_int_from_env("INACTIVITY_TIMEOUT", d.inactivity_timeout_ms),
        host=os.environ.get("HOST", d.host),
        port=_int_from_env("PORT", d.port),
        redis_url=os.environ.get("REDIS_URL", d.redis_url),
        redis_timeout_ms=_int_from_env("REDIS_TIMEOUT", d.redis_timeout_ms),
        moves_stream=os.environ.get("MOVES_STREAM", d.moves_stream),
        moves_stream_maxlen=_optional_int_from_env("MOVES_STREAM_MAXLEN"),
        move_flush_timeout_ms=_int_from_env("MOVE_FLUSH_TIMEOUT", d.move_flush_timeout_ms),
        log_level=os.environ.get("LOG_LEVEL", d.log_level).upper(),
        log_file=os.environ.get("LOG_FILE") or None,
    )


def configure_logging(settings: Settings) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
        errors = logging.FileHandler(f"{settings.log_file}.error", encoding="utf-8")
        errors.setLevel(logging.ERROR)
        handlers.append(errors)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )
