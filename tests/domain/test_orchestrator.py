from __future__ import annotations

import asyncio

import pytest

from registrar.domain.errors import (
    FoundationFailure,
    FoundationTimeoutError,
    ManifestFormatError,
    ManifestUnavailableError,
    RegistrarRunError,
)
from registrar.domain.orchestrator import (
    FoundationOutcome,
    fold_outcomes,
    run_registrar,
)
from registrar.domain.reconciliation import FoundationReport
from tests.helpers.projects import FakeFetcher, FakeRegistry, make_foundation, make_project


def _run(
    fetcher: FakeFetcher,
    registry: FakeRegistry,
    *,
    concurrency: int = 4,
    foundation_timeout: float = 5.0,
):
    return asyncio.run(
        run_registrar(
            fetcher=fetcher,
            registry=registry,
            concurrency=concurrency,
            foundation_timeout=foundation_timeout,
        )
    )


def test_run_processes_every_foundation() -> None:
    foundations = [make_foundation(name) for name in ("cncf", "lfai", "openssf")]
    registry = FakeRegistry(foundations=foundations)
    fetcher = FakeFetcher()
    for foundation in foundations:
        fetcher.serve(foundation, [make_project(f"{foundation.foundation_id}-project")])

    report = _run(fetcher, registry)

    assert report.ok
    assert sorted(outcome.foundation_id for outcome in report.outcomes) == [
        "cncf",
        "lfai",
        "openssf",
    ]
    assert sorted(registry.registered_calls) == [
        ("cncf", "cncf-project"),
        ("lfai", "lfai-project"),
        ("openssf", "openssf-project"),
    ]
    report.raise_for_failures()


def test_run_without_foundations_succeeds() -> None:
    report = _run(FakeFetcher(), FakeRegistry())

    assert report.ok
    assert report.outcomes == []


def test_concurrency_limit_is_respected() -> None:
    foundations = [make_foundation(f"f{index}") for index in range(6)]
    registry = FakeRegistry(foundations=foundations)
    fetcher = FakeFetcher(delay=0.02)
    for foundation in foundations:
        fetcher.serve(foundation, [make_project("alpha")])

    report = _run(fetcher, registry, concurrency=2)

    assert report.ok
    assert len(fetcher.calls) == 6
    assert fetcher.max_in_flight == 2


def test_concurrency_of_one_is_sequential() -> None:
    foundations = [make_foundation(f"f{index}") for index in range(3)]
    registry = FakeRegistry(foundations=foundations)
    fetcher = FakeFetcher(delay=0.01)
    for foundation in foundations:
        fetcher.serve(foundation, [make_project("alpha")])

    report = _run(fetcher, registry, concurrency=1)

    assert report.ok
    assert fetcher.max_in_flight == 1


def test_hanging_foundation_times_out_while_siblings_complete() -> None:
    slow = make_foundation("slow")
    fast = make_foundation("fast")
    registry = FakeRegistry(foundations=[slow, fast])
    fetcher = FakeFetcher()
    fetcher.serve(slow, None)
    fetcher.serve(fast, [make_project("alpha")])

    report = _run(fetcher, registry, foundation_timeout=0.1)

    assert report.failed_foundations == ("slow",)
    assert registry.registered_calls == [("fast", "alpha")]
    slow_outcome = next(outcome for outcome in report.outcomes if outcome.foundation_id == "slow")
    assert isinstance(slow_outcome.error, FoundationTimeoutError)
    assert "timed out" in report.failures[0].message


def test_aggregate_error_mentions_every_failed_foundation() -> None:
    x = make_foundation("x")
    y = make_foundation("y")
    z = make_foundation("z")
    registry = FakeRegistry(foundations=[x, y, z])
    fetcher = FakeFetcher()
    fetcher.serve(x, ManifestUnavailableError("connection refused", data_url=x.data_url))
    fetcher.serve(y, ManifestFormatError("invalid YAML", data_url=y.data_url))
    fetcher.serve(z, [make_project("alpha")])

    report = _run(fetcher, registry)

    with pytest.raises(RegistrarRunError) as excinfo:
        report.raise_for_failures()

    message = str(excinfo.value)
    assert "foundation x: " in message
    assert "connection refused" in message
    assert "foundation y: " in message
    assert "invalid YAML" in message
    assert "foundation z" not in message
    assert excinfo.value.foundation_ids == ("x", "y")
    assert registry.registered_calls == [("z", "alpha")]


def test_project_write_failures_surface_in_aggregate() -> None:
    foundation = make_foundation("cncf")
    registry = FakeRegistry(foundations=[foundation], fail_register={"beta"})
    fetcher = FakeFetcher()
    fetcher.serve(foundation, [make_project("alpha"), make_project("beta")])

    report = _run(fetcher, registry)

    assert not report.ok
    assert report.failures == [
        FoundationFailure(
            foundation_id="cncf",
            message="error registering project beta: cannot store beta",
        )
    ]
    assert ("cncf", "alpha") in registry.registered_calls


def test_unexpected_errors_are_collected() -> None:
    foundation = make_foundation("cncf")
    registry = FakeRegistry(foundations=[foundation])
    fetcher = FakeFetcher()
    fetcher.serve(foundation, KeyError("boom"))

    report = _run(fetcher, registry)

    assert report.failed_foundations == ("cncf",)
    assert "boom" in report.failures[0].message


@pytest.mark.parametrize(
    ("concurrency", "timeout"),
    [(0, 10.0), (-1, 10.0), (1, 0.0), (1, -5.0)],
)
def test_invalid_limits_are_rejected(concurrency: int, timeout: float) -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        _run(FakeFetcher(), FakeRegistry(), concurrency=concurrency, foundation_timeout=timeout)


def test_fold_outcomes_keeps_every_failure_in_order() -> None:
    outcomes = [
        FoundationOutcome(foundation_id="a", error=RuntimeError("first")),
        FoundationOutcome(foundation_id="b", report=FoundationReport(foundation_id="b")),
        FoundationOutcome(foundation_id="c", error=RuntimeError("second")),
    ]

    report = fold_outcomes(outcomes)

    assert [failure.foundation_id for failure in report.failures] == ["a", "c"]
    assert report.failed_foundations == ("a", "c")
    assert len(report.outcomes) == 3


def test_hanging_registry_times_out_while_siblings_complete() -> None:
    stuck = make_foundation("stuck")
    fast = make_foundation("fast")
    registry = FakeRegistry(foundations=[stuck, fast], hang_listing={"stuck"})
    fetcher = FakeFetcher()
    fetcher.serve(stuck, [make_project("alpha")])
    fetcher.serve(fast, [make_project("alpha")])

    report = _run(fetcher, registry, concurrency=2, foundation_timeout=0.1)

    assert report.failed_foundations == ("stuck",)
    stuck_outcome = next(outcome for outcome in report.outcomes if outcome.foundation_id == "stuck")
    assert isinstance(stuck_outcome.error, FoundationTimeoutError)
    assert registry.registered_calls == [("fast", "alpha")]


def test_write_failure_does_not_stop_sibling_foundations() -> None:
    f1 = make_foundation("f1")
    f2 = make_foundation("f2")
    registry = FakeRegistry(foundations=[f1, f2], fail_register={"C"})
    registry.seed_digests("f1", {"A": "d1"})
    fetcher = FakeFetcher()
    fetcher.serve(f1, [make_project("C")])
    fetcher.serve(f2, [make_project("D"), make_project("E")])

    report = _run(fetcher, registry)

    assert ("f1", "A") in registry.unregistered_calls
    assert ("f2", "D") in registry.registered_calls
    assert ("f2", "E") in registry.registered_calls
    assert set(registry.projects["f2"]) == {"D", "E"}
    with pytest.raises(RegistrarRunError) as excinfo:
        report.raise_for_failures()
    assert excinfo.value.foundation_ids == ("f1",)
    assert "error registering project C" in str(excinfo.value)


def test_timeout_raised_inside_a_pass_is_not_reported_as_deadline() -> None:
    foundation = make_foundation("cncf")
    registry = FakeRegistry(foundations=[foundation])
    fetcher = FakeFetcher()
    fetcher.serve(foundation, TimeoutError("read timed out"))

    report = _run(fetcher, registry, foundation_timeout=30.0)

    [outcome] = report.outcomes
    assert isinstance(outcome.error, TimeoutError)
    assert not isinstance(outcome.error, FoundationTimeoutError)
    assert "read timed out" in report.failures[0].message
    assert "after 30" not in report.failures[0].message
