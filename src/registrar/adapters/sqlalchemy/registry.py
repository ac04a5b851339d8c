"""``ProjectRegistry`` implementation over SQLAlchemy units of work."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from registrar.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork

if TYPE_CHECKING:
    from registrar.domain.model import Foundation, Project
    from registrar.domain.ports.unit_of_work import RegistryUnitOfWork

UnitOfWorkFactory = Callable[[], "RegistryUnitOfWork"]

log = getLogger(__name__)


@dataclass(slots=True)
class SqlAlchemyProjectRegistry:
    """Async registry port; every call runs in its own unit of work.

    Sessions are blocking, so each call runs on a worker thread via
    :func:`asyncio.to_thread`. Awaiting the call is the suspension point where a
    foundation timeout can cancel the caller; the thread finishes its unit of
    work on its own.
    """

    unit_of_work_factory: UnitOfWorkFactory = field(default=SqlAlchemyUnitOfWork)

    async def list_foundations(self) -> list[Foundation]:
        return await asyncio.to_thread(self._list_foundations)

    async def list_registered_projects(self, foundation_id: str) -> dict[str, str | None]:
        return await asyncio.to_thread(self._list_registered_projects, foundation_id)

    async def register_project(self, foundation_id: str, project: Project) -> None:
        await asyncio.to_thread(self._register_project, foundation_id, project)

    async def unregister_project(self, foundation_id: str, name: str) -> None:
        await asyncio.to_thread(self._unregister_project, foundation_id, name)

    async def save_foundation(self, foundation: Foundation) -> None:
        await asyncio.to_thread(self._save_foundation, foundation)

    def _list_foundations(self) -> list[Foundation]:
        with self.unit_of_work_factory() as uow:
            return list(uow.repositories.foundations.list_all())

    def _list_registered_projects(self, foundation_id: str) -> dict[str, str | None]:
        with self.unit_of_work_factory() as uow:
            return dict(uow.repositories.projects.digests_by_name(foundation_id))

    def _register_project(self, foundation_id: str, project: Project) -> None:
        with self.unit_of_work_factory() as uow:
            uow.repositories.projects.upsert(foundation_id, project)
            uow.commit()

    def _unregister_project(self, foundation_id: str, name: str) -> None:
        with self.unit_of_work_factory() as uow:
            if not uow.repositories.projects.delete(foundation_id, name):
                log.debug("Project %s/%s already absent", foundation_id, name)
            uow.commit()

    def _save_foundation(self, foundation: Foundation) -> None:
        with self.unit_of_work_factory() as uow:
            uow.repositories.foundations.save(foundation)
            uow.commit()
