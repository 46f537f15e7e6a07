from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping, Protocol


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    return value if value is not None else default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value is not None else default


def _get_optional_float(name: str) -> float | None:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass(frozen=True)
class Settings:
    nvidia_base_url: str
    moonshot_base_url: str
    request_timeout: float
    stream_idle_timeout: float | None
    default_model: str
    log_level: str


def get_settings() -> Settings:
    return Settings(
        nvidia_base_url=_get_env(
            "NVIDIA_BASE_URL", "https://integrate.api.nvidia.com/v1"
        ),
        moonshot_base_url=_get_env("MOONSHOT_BASE_URL", "https://api.moonshot.ai/v1"),
        request_timeout=_get_float("REQUEST_TIMEOUT", 120.0),
        stream_idle_timeout=_get_optional_float("STREAM_IDLE_TIMEOUT"),
        default_model=_get_env("DEFAULT_MODEL", "deepseek-r1"),
        log_level=_get_env("LOG_LEVEL", "INFO").upper(),
    )


class SecretProvider(Protocol):
    """Source of provider credentials, consulted once per request."""

    def get(self, name: str) -> str | None: ...


class EnvSecretProvider:
    """Reads credentials from the process environment at lookup time."""

    def get(self, name: str) -> str | None:
        return os.getenv(name) or None


class StaticSecretProvider:
    def __init__(self, secrets: Mapping[str, str]) -> None:
        self._secrets = dict(secrets)

    def get(self, name: str) -> str | None:
        return self._secrets.get(name) or None
