# ok_target/config.py
import os
from dataclasses import dataclass, fields, replace
from enum import Enum


class LogLevel(str, Enum):
    # Names uvicorn accepts for its log_level
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Listener defaults (tunable via env)
    host: str = "127.0.0.1"
    port: int = 3000
    backlog: int = 100

    # Seconds an idle keep-alive connection is held open
    keepalive_timeout: int = 5

    # Level for our logger and uvicorn's; "warning" keeps a loaded target quiet
    log_level: str = "warning"
    access_log: bool = False

    def __post_init__(self):
        if self.log_level not in {level.value for level in LogLevel}:
            choices = ", ".join(level.value for level in LogLevel)
            raise ValueError(f"log_level must be one of {choices}, got {self.log_level!r}")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("OK_TARGET_HOST", cls.host),
            port=_env_int("OK_TARGET_PORT", cls.port),
            backlog=_env_int("OK_TARGET_BACKLOG", cls.backlog),
            keepalive_timeout=_env_int("OK_TARGET_KEEPALIVE_TIMEOUT", cls.keepalive_timeout),
            log_level=os.getenv("OK_TARGET_LOG_LEVEL", cls.log_level).lower(),
            access_log=_env_flag("OK_TARGET_ACCESS_LOG"),
        )

    def with_overrides(self, **values) -> "Settings":
        """Return a copy with every non-None value in `values` applied."""
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise TypeError(f"unknown settings: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in values.items() if v is not None})


settings = Settings.from_env()
