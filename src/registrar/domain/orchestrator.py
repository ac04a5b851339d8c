"""Run reconciliation over every registered foundation."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import FoundationFailure, FoundationTimeoutError, RegistrarRunError
from .reconciliation import FoundationReport, reconcile_foundation

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .model import Foundation
    from .ports import ManifestFetcher, ProjectRegistry

log = getLogger(__name__)

DEFAULT_FOUNDATION_TIMEOUT_SECONDS = 300.0


@dataclass(slots=True)
class FoundationOutcome:
    """Result of one foundation in a run: either a pass report or the error that ended it."""

    foundation_id: str
    report: FoundationReport | None = None
    error: BaseException | None = None

    def failures(self) -> list[FoundationFailure]:
        if self.error is not None:
            message = str(self.error) or type(self.error).__name__
            return [
                FoundationFailure(
                    foundation_id=self.foundation_id,
                    message=f"error processing foundation data file: {message}",
                )
            ]
        if self.report is None:
            return []
        return [
            FoundationFailure(foundation_id=self.foundation_id, message=str(write_error))
            for write_error in self.report.write_errors
        ]


@dataclass(slots=True)
class RunReport:
    """Folded outcome of a whole run."""

    outcomes: list[FoundationOutcome] = field(default_factory=list)
    failures: list[FoundationFailure] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_foundations(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(failure.foundation_id for failure in self.failures))

    def add(self, outcome: FoundationOutcome) -> RunReport:
        self.outcomes.append(outcome)
        self.failures.extend(outcome.failures())
        return self

    def raise_for_failures(self) -> None:
        if self.failures:
            raise RegistrarRunError(self.failures)


async def run_registrar(
    *,
    fetcher: ManifestFetcher,
    registry: ProjectRegistry,
    concurrency: int,
    foundation_timeout: float = DEFAULT_FOUNDATION_TIMEOUT_SECONDS,
) -> RunReport:
    """Reconcile every foundation in ``registry`` and fold the results.

    At most ``concurrency`` foundations are processed at once; each pass is
    cancelled once it exceeds ``foundation_timeout`` seconds. The run never stops
    early: every foundation is attempted before the report is returned.
    """

    if concurrency <= 0:
        raise ValueError(f"concurrency must be positive, got {concurrency}")
    if foundation_timeout <= 0:
        raise ValueError(f"foundation timeout must be positive, got {foundation_timeout}")

    start = time.monotonic()
    log.info("Registrar run started")
    foundations = await registry.list_foundations()
    semaphore = asyncio.Semaphore(concurrency)

    async def process(foundation: Foundation) -> FoundationOutcome:
        async with semaphore:
            return await _process_foundation(
                foundation,
                fetcher=fetcher,
                registry=registry,
                timeout=foundation_timeout,
            )

    outcomes = await asyncio.gather(*(process(foundation) for foundation in foundations))
    report = fold_outcomes(outcomes)
    report.elapsed_seconds = time.monotonic() - start

    log.info(
        "Registrar run finished in %.2fs: foundations=%s, failed=%s",
        report.elapsed_seconds,
        len(report.outcomes),
        len(report.failed_foundations),
    )
    return report


def fold_outcomes(outcomes: Iterable[FoundationOutcome]) -> RunReport:
    report = RunReport()
    for outcome in outcomes:
        report.add(outcome)
    return report


async def _process_foundation(
    foundation: Foundation,
    *,
    fetcher: ManifestFetcher,
    registry: ProjectRegistry,
    timeout: float,
) -> FoundationOutcome:
    foundation_id = foundation.foundation_id
    scope = asyncio.timeout(timeout)
    try:
        async with scope:
            report = await reconcile_foundation(foundation, fetcher=fetcher, registry=registry)
    except TimeoutError as exc:
        # Only our own deadline counts as a foundation timeout.
        if not scope.expired():
            return _failed(foundation_id, exc)
        error = FoundationTimeoutError(foundation_id, timeout)
        log.error("Foundation %s: %s", foundation_id, error)  # noqa: TRY400
        return FoundationOutcome(foundation_id=foundation_id, error=error)
    except Exception as exc:
        return _failed(foundation_id, exc)
    return FoundationOutcome(foundation_id=foundation_id, report=report)


def _failed(foundation_id: str, exc: Exception) -> FoundationOutcome:
    log.exception("Error processing foundation %s data file", foundation_id)
    return FoundationOutcome(foundation_id=foundation_id, error=exc)
