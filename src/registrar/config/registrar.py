"""Reconciliation run settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import positive_int_env
from .errors import ConfigurationError

DEFAULT_CONCURRENCY = 10
DEFAULT_FOUNDATION_TIMEOUT_SECONDS = 300


@dataclass(frozen=True, slots=True)
class RegistrarConfig:
    """Knobs consumed by the run orchestrator."""

    concurrency: int = DEFAULT_CONCURRENCY
    foundation_timeout_seconds: int = DEFAULT_FOUNDATION_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.concurrency <= 0:
            raise ConfigurationError(f"concurrency must be positive, got {self.concurrency}")
        if self.foundation_timeout_seconds <= 0:
            raise ConfigurationError(
                "foundation timeout must be positive, "
                f"got {self.foundation_timeout_seconds}"
            )


def get_registrar_config(
    *,
    concurrency: int | None = None,
    foundation_timeout_seconds: int | None = None,
) -> RegistrarConfig:
    """Build the run settings from the environment, letting explicit values win."""

    return RegistrarConfig(
        concurrency=concurrency
        if concurrency is not None
        else positive_int_env("REGISTRAR_CONCURRENCY", DEFAULT_CONCURRENCY),
        foundation_timeout_seconds=foundation_timeout_seconds
        if foundation_timeout_seconds is not None
        else positive_int_env("REGISTRAR_FOUNDATION_TIMEOUT", DEFAULT_FOUNDATION_TIMEOUT_SECONDS),
    )
