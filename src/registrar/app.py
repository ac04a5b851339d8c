"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from registrar.adapters.manifest import HttpManifestFetcher
from registrar.adapters.sqlalchemy import SqlAlchemyProjectRegistry, is_started, startup
from registrar.config import get_registrar_config
from registrar.domain.model import Foundation
from registrar.domain.orchestrator import RunReport, run_registrar

if TYPE_CHECKING:
    from registrar.config import RegistrarConfig
    from registrar.domain.ports import ManifestFetcher, ProjectRegistry


log = getLogger(__name__)


def _default_registry() -> SqlAlchemyProjectRegistry:
    if not is_started():
        startup()
    return SqlAlchemyProjectRegistry()


def run_registration(
    *,
    fetcher: ManifestFetcher | None = None,
    registry: ProjectRegistry | None = None,
    concurrency: int | None = None,
    foundation_timeout_seconds: int | None = None,
) -> RunReport:
    """Reconcile every registered foundation using the configured adapters.

    Raises :class:`registrar.domain.errors.RegistrarRunError` when any foundation
    (or any project write) failed during the run.
    """

    config = get_registrar_config(
        concurrency=concurrency,
        foundation_timeout_seconds=foundation_timeout_seconds,
    )
    effective_registry = registry or _default_registry()
    log.info(
        "Starting registration run: concurrency=%s, foundation_timeout=%ss",
        config.concurrency,
        config.foundation_timeout_seconds,
    )

    report = asyncio.run(_run(fetcher, effective_registry, config))
    report.raise_for_failures()
    return report


async def _run(
    fetcher: ManifestFetcher | None,
    registry: ProjectRegistry,
    config: RegistrarConfig,
) -> RunReport:
    if fetcher is not None:
        return await run_registrar(
            fetcher=fetcher,
            registry=registry,
            concurrency=config.concurrency,
            foundation_timeout=config.foundation_timeout_seconds,
        )
    # One HTTP client for the whole run.
    async with HttpManifestFetcher() as http_fetcher:
        return await run_registrar(
            fetcher=http_fetcher,
            registry=registry,
            concurrency=config.concurrency,
            foundation_timeout=config.foundation_timeout_seconds,
        )


def add_foundation(
    foundation_id: str,
    data_url: str,
    *,
    display_name: str | None = None,
    registry: SqlAlchemyProjectRegistry | None = None,
) -> Foundation:
    """Register or update a foundation so subsequent runs pick it up."""

    foundation = Foundation(
        foundation_id=foundation_id,
        data_url=data_url,
        display_name=display_name,
    )
    asyncio.run((registry or _default_registry()).save_foundation(foundation))
    return foundation


def list_foundations(*, registry: ProjectRegistry | None = None) -> list[Foundation]:
    return list(asyncio.run((registry or _default_registry()).list_foundations()))
