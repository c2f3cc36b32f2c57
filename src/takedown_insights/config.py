"""Runtime settings with environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

MIB = 1024 * 1024
DEFAULT_MAX_UPLOAD_MB = 200

ENV_PREFIX = "TDI_"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


@dataclass(frozen=True)
class Settings:
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * MIB
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_upload_bytes <= 0:
            raise ValueError("max_upload_bytes must be > 0")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level!r}. Use one of {', '.join(_LOG_LEVELS)}.")
        object.__setattr__(self, "log_level", self.log_level.upper())

    @property
    def max_upload_mb(self) -> int:
        return self.max_upload_bytes // MIB

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``TDI_*`` variables (``os.environ`` by default)."""
        if env is None:
            env = os.environ
        defaults = cls()
        return cls(
            max_upload_bytes=_env_int(env, f"{ENV_PREFIX}MAX_UPLOAD_MB", defaults.max_upload_mb) * MIB,
            host=env.get(f"{ENV_PREFIX}HOST", defaults.host).strip() or defaults.host,
            port=_env_int(env, f"{ENV_PREFIX}PORT", defaults.port),
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).strip() or defaults.log_level,
        )
