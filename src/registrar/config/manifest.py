"""Manifest fetching configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from registrar import __version__

from .env import positive_int_env
from .http_resilience import ResilienceConfig, RetryPolicy

DEFAULT_HTTP_TIMEOUT_SECONDS = 30
USER_AGENT = f"registrar/{__version__}"


@dataclass(frozen=True, slots=True)
class ManifestConfig:
    resilience: ResilienceConfig


def get_manifest_config() -> ManifestConfig:
    timeout = positive_int_env("REGISTRAR_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_SECONDS)
    resilience = ResilienceConfig(
        name="manifest",
        timeout_seconds=float(timeout),
        retry=RetryPolicy(total=3),
        default_headers={"User-Agent": USER_AGENT},
    )
    return ManifestConfig(resilience=resilience)
