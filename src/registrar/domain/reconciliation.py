"""Reconcile one foundation's manifest against its registered projects.

A pass fetches the manifest, digests every candidate, and then issues exactly the
register/unregister calls needed to bring the registry in line:

1) fetch the manifest (any failure aborts the pass before a single write)
2) digest candidates and index them by name (last duplicate wins)
3) read the registered name -> digest index once
4) register projects that are new or whose digest changed
5) unregister registered projects missing from a non-empty manifest

Write failures are isolated per project and reported on the returned
:class:`FoundationReport` instead of aborting the pass.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from .errors import ProjectWriteError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable, Mapping

    from .model import Foundation, Project
    from .ports import ManifestFetcher, ProjectRegistry

log = getLogger(__name__)


@dataclass(slots=True)
class FoundationReport:
    """Outcome of one reconciliation pass."""

    foundation_id: str
    registered: list[str] = field(default_factory=list)
    unregistered: list[str] = field(default_factory=list)
    unchanged: int = 0
    write_errors: list[ProjectWriteError] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.write_errors


def index_available_projects(
    foundation_id: str,
    projects: Iterable[Project],
) -> dict[str, Project]:
    """Digest ``projects`` and index them by name; later duplicates replace earlier ones."""

    available: dict[str, Project] = {}
    for project in projects:
        if project.name in available:
            log.warning(
                "Foundation %s lists project %s more than once, keeping the last entry",
                foundation_id,
                project.name,
            )
        available[project.name] = project.with_digest()
    return available


def needs_registration(project: Project, registered: Mapping[str, str | None]) -> bool:
    if project.name not in registered:
        return True
    return registered[project.name] != project.digest


async def reconcile_foundation(
    foundation: Foundation,
    *,
    fetcher: ManifestFetcher,
    registry: ProjectRegistry,
) -> FoundationReport:
    """Bring ``registry`` in line with the manifest published by ``foundation``."""

    start = time.monotonic()
    foundation_id = foundation.foundation_id
    report = FoundationReport(foundation_id=foundation_id)
    log.debug("Reconciling foundation %s from %s", foundation_id, foundation.data_url)

    candidates = await fetcher(foundation.data_url)
    available = index_available_projects(foundation_id, candidates)
    registered = await registry.list_registered_projects(foundation_id)

    for name, project in available.items():
        if not needs_registration(project, registered):
            report.unchanged += 1
            continue
        log.debug("Registering project %s/%s", foundation_id, name)
        if await _attempt(
            report,
            name,
            "register",
            registry.register_project(foundation_id, project),
        ):
            report.registered.append(name)

    # An empty manifest is never taken as "the foundation has no projects left".
    if available:
        for name in registered:
            if name in available:
                continue
            log.debug("Unregistering project %s/%s", foundation_id, name)
            if await _attempt(
                report,
                name,
                "unregister",
                registry.unregister_project(foundation_id, name),
            ):
                report.unregistered.append(name)
    elif registered:
        log.warning(
            "Foundation %s manifest lists no projects, keeping %s registered",
            foundation_id,
            len(registered),
        )

    report.elapsed_seconds = time.monotonic() - start
    log.info(
        "Reconciled foundation %s in %.2fs: registered=%s, unregistered=%s, "
        "unchanged=%s, errors=%s",
        foundation_id,
        report.elapsed_seconds,
        len(report.registered),
        len(report.unregistered),
        report.unchanged,
        len(report.write_errors),
    )
    return report


async def _attempt(
    report: FoundationReport,
    name: str,
    operation: Literal["register", "unregister"],
    call: Awaitable[None],
) -> bool:
    try:
        await call
    except Exception as exc:
        error = ProjectWriteError(
            foundation_id=report.foundation_id,
            project_name=name,
            operation=operation,
            message=str(exc) or type(exc).__name__,
        )
        log.error("Foundation %s: %s", report.foundation_id, error)  # noqa: TRY400
        report.write_errors.append(error)
        return False
    return True
