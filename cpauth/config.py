"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import CHALLENGE_TTL, DEFAULT_GROUP, SESSION_TTL
from .errors import ConfigurationError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _positive_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got '{raw}'") from exc
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{key} must be a positive finite number")
    return value


@dataclass(frozen=True)
class Settings:
    group: str = DEFAULT_GROUP
    challenge_ttl: float = CHALLENGE_TTL
    session_ttl: float = SESSION_TTL
    store_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        log_level = environ.get("CPAUTH_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"Unknown log level '{log_level}'")
        return cls(
            group=environ.get("CPAUTH_GROUP") or DEFAULT_GROUP,
            challenge_ttl=_positive_float(environ, "CPAUTH_CHALLENGE_TTL", CHALLENGE_TTL),
            session_ttl=_positive_float(environ, "CPAUTH_SESSION_TTL", SESSION_TTL),
            store_path=environ.get("CPAUTH_STORE") or None,
            log_level=log_level,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


__all__ = ["LOG_FORMAT", "Settings", "configure_logging"]
