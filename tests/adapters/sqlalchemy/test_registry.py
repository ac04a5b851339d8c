from __future__ import annotations

import asyncio
import time
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select

from registrar.adapters.sqlalchemy import (
    SqlAlchemyProjectRegistry,
    SqlAlchemyProjectRepository,
    SqlAlchemyUnitOfWork,
    create_registry_engine,
    repository_table,
    shutdown,
    startup,
)
from registrar.domain.errors import FoundationTimeoutError
from registrar.domain.model import Foundation
from registrar.domain.orchestrator import run_registrar
from registrar.domain.ports.unit_of_work import RegistryRepositories
from tests.helpers.projects import FakeFetcher, make_foundation, make_project, make_repository

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def _registry(
    factory: Callable[[], SqlAlchemyUnitOfWork],
    *foundations: Foundation,
) -> SqlAlchemyProjectRegistry:
    registry = SqlAlchemyProjectRegistry(unit_of_work_factory=factory)
    for foundation in foundations:
        asyncio.run(registry.save_foundation(foundation))
    return registry


def test_foundations_are_listed_in_id_order(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = _registry(sqlite_unit_of_work, make_foundation("lfai"), make_foundation("cncf"))

    foundations = asyncio.run(registry.list_foundations())

    assert [foundation.foundation_id for foundation in foundations] == ["cncf", "lfai"]


def test_save_foundation_updates_existing_row(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = _registry(sqlite_unit_of_work, make_foundation("cncf"))

    updated = Foundation("cncf", "https://example.org/moved.yaml", display_name="CNCF")
    asyncio.run(registry.save_foundation(updated))

    assert asyncio.run(registry.list_foundations()) == [updated]


def test_register_then_list_digests(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = _registry(sqlite_unit_of_work, make_foundation("cncf"))
    alpha = make_project("alpha").with_digest()
    beta = make_project("beta").with_digest()

    asyncio.run(registry.register_project("cncf", alpha))
    asyncio.run(registry.register_project("cncf", beta))

    digests = asyncio.run(registry.list_registered_projects("cncf"))
    assert digests == {"alpha": alpha.digest, "beta": beta.digest}
    assert asyncio.run(registry.list_registered_projects("lfai")) == {}


def test_register_existing_project_updates_in_place(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = _registry(sqlite_unit_of_work, make_foundation("cncf"))
    original = make_project(
        "alpha",
        repositories=[make_repository("core"), make_repository("docs")],
    ).with_digest()
    changed = make_project(
        "alpha",
        maturity="graduated",
        home_url="https://alpha.dev",
        repositories=[
            make_repository("cli", check_sets=["code", "community"]),
            make_repository("core", check_sets=["docs"]),
        ],
    ).with_digest()

    asyncio.run(registry.register_project("cncf", original))
    asyncio.run(registry.register_project("cncf", changed))

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.projects.get("cncf", "alpha")
        repository_count = uow.session.execute(
            select(func.count()).select_from(repository_table)
        ).scalar_one()

    assert stored == changed
    assert repository_count == 2


def test_unregister_removes_project_and_repositories(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = _registry(sqlite_unit_of_work, make_foundation("cncf"))
    asyncio.run(registry.register_project("cncf", make_project("alpha").with_digest()))
    asyncio.run(registry.register_project("cncf", make_project("beta").with_digest()))

    asyncio.run(registry.unregister_project("cncf", "alpha"))

    assert set(asyncio.run(registry.list_registered_projects("cncf"))) == {"beta"}
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.projects.get("cncf", "alpha") is None
        repository_count = uow.session.execute(
            select(func.count()).select_from(repository_table)
        ).scalar_one()
    assert repository_count == 1


def test_unregister_missing_project_is_noop(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = _registry(sqlite_unit_of_work, make_foundation("cncf"))

    asyncio.run(registry.unregister_project("cncf", "ghost"))

    assert asyncio.run(registry.list_registered_projects("cncf")) == {}


def test_same_project_name_in_two_foundations(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = _registry(sqlite_unit_of_work, make_foundation("cncf"), make_foundation("lfai"))
    cncf_alpha = make_project("alpha").with_digest()
    lfai_alpha = make_project("alpha", category="ml").with_digest()

    asyncio.run(registry.register_project("cncf", cncf_alpha))
    asyncio.run(registry.register_project("lfai", lfai_alpha))
    asyncio.run(registry.unregister_project("cncf", "alpha"))

    assert asyncio.run(registry.list_registered_projects("cncf")) == {}
    assert asyncio.run(registry.list_registered_projects("lfai")) == {"alpha": lfai_alpha.digest}


class SlowProjectRepository(SqlAlchemyProjectRepository):
    def digests_by_name(self, foundation_id: str) -> dict[str, str | None]:
        if foundation_id == "slow":
            time.sleep(1.0)
        return super().digests_by_name(foundation_id)


class SlowUnitOfWork(SqlAlchemyUnitOfWork):
    @property
    def repositories(self) -> RegistryRepositories:
        repositories = super().repositories
        return RegistryRepositories(
            foundations=repositories.foundations,
            projects=SlowProjectRepository(self.session),
        )


@pytest.fixture
def file_database(tmp_path: Path) -> Iterator[None]:
    engine = create_registry_engine(f"sqlite+pysqlite:///{tmp_path / 'registry.db'}")
    startup(engine=engine, force=True)
    try:
        yield
    finally:
        shutdown()


@pytest.mark.usefixtures("file_database")
def test_blocking_datastore_call_does_not_stall_the_run() -> None:
    slow = make_foundation("slow")
    fast = make_foundation("fast")
    registry = SqlAlchemyProjectRegistry(unit_of_work_factory=SlowUnitOfWork)
    asyncio.run(registry.save_foundation(slow))
    asyncio.run(registry.save_foundation(fast))
    fetcher = FakeFetcher()
    fetcher.serve(slow, [make_project("alpha")])
    fetcher.serve(fast, [make_project("beta")])

    report = asyncio.run(
        run_registrar(
            fetcher=fetcher,
            registry=registry,
            concurrency=2,
            foundation_timeout=0.2,
        )
    )

    assert report.failed_foundations == ("slow",)
    slow_outcome = next(outcome for outcome in report.outcomes if outcome.foundation_id == "slow")
    assert isinstance(slow_outcome.error, FoundationTimeoutError)
    assert set(asyncio.run(registry.list_registered_projects("fast"))) == {"beta"}
