"""HTTP fetcher for foundation manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
import yaml
from pydantic import ValidationError

from registrar.adapters.http_resilience import ResilientClient
from registrar.config.manifest import ManifestConfig, get_manifest_config
from registrar.domain.errors import (
    ManifestFormatError,
    ManifestStatusError,
    ManifestUnavailableError,
)

from .schema import ManifestPayload
from .translator import translate_project

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from registrar.config.http_resilience import ResilienceConfig
    from registrar.domain.model import Project

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def parse_manifest(text: str, *, data_url: str) -> list[Project]:
    """Parse a YAML manifest document into domain projects."""

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ManifestFormatError(f"invalid YAML in data file: {exc}", data_url=data_url) from exc

    if document is None:
        return []
    if not isinstance(document, list):
        raise ManifestFormatError(
            f"data file must contain a list of projects, got {type(document).__name__}",
            data_url=data_url,
        )

    try:
        manifest = ManifestPayload.model_validate(document)
    except ValidationError as exc:
        raise ManifestFormatError(f"invalid data file: {exc}", data_url=data_url) from exc

    return [translate_project(payload) for payload in manifest.root]


@dataclass(slots=True)
class HttpManifestFetcher:
    """Fetch manifests over HTTP; satisfies the ``ManifestFetcher`` port.

    Used as an async context manager, one client (and its connection pool and
    rate limiter) is shared by every fetch until exit. Otherwise each fetch
    opens and closes its own client.
    """

    config: ManifestConfig = field(default_factory=get_manifest_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> HttpManifestFetcher:
        self._client = self.client_factory(self.config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def __call__(self, data_url: str) -> list[Project]:
        text = await self._download(data_url)
        projects = parse_manifest(text, data_url=data_url)
        log.debug("Fetched %s projects from %s", len(projects), data_url)
        return projects

    async def _download(self, data_url: str) -> str:
        if self._client is not None:
            return await _get_text(self._client, data_url)
        async with self.client_factory(self.config.resilience) as client:
            return await _get_text(client, data_url)


async def _get_text(client: ResilientClient, data_url: str) -> str:
    try:
        response = await client.get(data_url)
    except httpx.HTTPError as exc:
        raise ManifestUnavailableError(
            f"error getting data file: {exc}",
            data_url=data_url,
        ) from exc

    if response.status_code != httpx.codes.OK:
        raise ManifestStatusError(
            f"unexpected status code getting data file: {response.status_code}",
            data_url=data_url,
            status_code=response.status_code,
        )
    return response.text
