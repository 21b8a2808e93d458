from __future__ import annotations

import os
from dataclasses import dataclass

ENV_PREFIX = "TICKWORK_"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def _split_names(raw: str) -> tuple[str, ...]:
    return tuple(name.strip() for name in raw.split(",") if name.strip())


@dataclass(slots=True)
class Settings:
    environment: str = "Production"
    interval_seconds: float = 5.0
    max_runs: int | None = None
    count_failed_cycles: bool = True
    init_timeout_seconds: float | None = 30.0
    shutdown_timeout_seconds: float | None = 30.0
    history_size: int = 64
    active_environments: tuple[str, ...] = ("Production",)

    def __post_init__(self) -> None:
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        if self.max_runs is not None and self.max_runs < 0:
            raise ValueError("max_runs must be >= 0 or None")
        for name in ("init_timeout_seconds", "shutdown_timeout_seconds"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be > 0 or None")
        if self.history_size <= 0:
            raise ValueError("history_size must be > 0")

    @property
    def is_active(self) -> bool:
        """Whether the runner should be registered in this environment."""

        return self.environment in self.active_environments

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``TICKWORK_*`` variables, falling back to defaults."""

        kwargs: dict[str, object] = {}
        if (raw := _env("ENVIRONMENT")) is not None:
            kwargs["environment"] = raw
        if (raw := _env("INTERVAL_SECONDS")) is not None:
            kwargs["interval_seconds"] = float(raw)
        if (raw := _env("MAX_RUNS")) is not None:
            kwargs["max_runs"] = int(raw)
        if (raw := _env("COUNT_FAILED_CYCLES")) is not None:
            kwargs["count_failed_cycles"] = _parse_bool("COUNT_FAILED_CYCLES", raw)
        for name in ("INIT_TIMEOUT_SECONDS", "SHUTDOWN_TIMEOUT_SECONDS"):
            if (raw := _env(name)) is not None:
                kwargs[name.lower()] = None if raw.lower() == "none" else float(raw)
        if (raw := _env("HISTORY_SIZE")) is not None:
            kwargs["history_size"] = int(raw)
        if (raw := _env("ACTIVE_ENVIRONMENTS")) is not None:
            kwargs["active_environments"] = _split_names(raw)
        return cls(**kwargs)


settings = Settings.from_env()
