"""Runtime settings, read from the environment.

Every knob has a default that matches the documented behaviour; the
consistency strategy in particular is always an explicit choice here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping

from orderflow.domain.repository.unit_of_work import ConsistencyMode

STORAGE_BACKENDS = ("json", "memory")


class ConfigurationError(Exception):
    """An environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    storage: str = "json"
    consistency: ConsistencyMode = ConsistencyMode.TRANSACTIONAL
    reservation_window: timedelta = timedelta(minutes=15)
    sweep_interval_seconds: float = 60.0
    payment_success_rate: float = 0.9
    environment: str = "development"
    log_level: str | None = None

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        storage = env.get("ORDERFLOW_STORAGE", "json").strip().lower()
        if storage not in STORAGE_BACKENDS:
            raise ConfigurationError(
                f"ORDERFLOW_STORAGE must be one of {', '.join(STORAGE_BACKENDS)}, got {storage!r}"
            )

        raw_mode = env.get("ORDERFLOW_CONSISTENCY", ConsistencyMode.TRANSACTIONAL.value)
        try:
            consistency = ConsistencyMode(raw_mode.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(m.value for m in ConsistencyMode)
            raise ConfigurationError(
                f"ORDERFLOW_CONSISTENCY must be one of {allowed}, got {raw_mode!r}"
            ) from exc

        minutes = _number(env, "ORDERFLOW_RESERVATION_MINUTES", 15.0)
        interval = _number(env, "ORDERFLOW_SWEEP_INTERVAL_SECONDS", 60.0)
        success_rate = _number(env, "ORDERFLOW_PAYMENT_SUCCESS_RATE", 0.9)
        if minutes <= 0:
            raise ConfigurationError("ORDERFLOW_RESERVATION_MINUTES must be positive")
        if interval <= 0:
            raise ConfigurationError("ORDERFLOW_SWEEP_INTERVAL_SECONDS must be positive")
        if not 0.0 <= success_rate <= 1.0:
            raise ConfigurationError("ORDERFLOW_PAYMENT_SUCCESS_RATE must be within [0, 1]")

        return Settings(
            data_dir=Path(env.get("ORDERFLOW_DATA_DIR", "data")),
            storage=storage,
            consistency=consistency,
            reservation_window=timedelta(minutes=minutes),
            sweep_interval_seconds=interval,
            payment_success_rate=success_rate,
            environment=env.get("ORDERFLOW_ENV", "development").strip().lower(),
            log_level=env.get("LOG_LEVEL") or None,
        )


def _number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
