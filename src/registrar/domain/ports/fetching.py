"""Ports for fetching foundation manifests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from registrar.domain.model import Project


@runtime_checkable
class ManifestFetcher(Protocol):
    """Async callable port returning the projects listed in a manifest.

    Implementations raise :class:`registrar.domain.errors.ManifestFetchError`
    (or a subclass) when the manifest is unreachable, answers with a non-success
    status, or does not parse into the expected structure.
    """

    async def __call__(self, data_url: str) -> Sequence[Project]: ...


__all__ = ["ManifestFetcher"]
