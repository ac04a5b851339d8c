"""Ports for persisting foundations and their registered projects."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from registrar.domain.model import Foundation, Project


@runtime_checkable
class FoundationRepository(Protocol):
    """Persistence contract for foundations."""

    def list_all(self) -> Sequence[Foundation]: ...

    def save(self, foundation: Foundation) -> None: ...


@runtime_checkable
class ProjectRepository(Protocol):
    """Persistence contract for the projects registered under a foundation."""

    def digests_by_name(self, foundation_id: str) -> Mapping[str, str | None]: ...

    def upsert(self, foundation_id: str, project: Project) -> None: ...

    def delete(self, foundation_id: str, name: str) -> bool: ...


@runtime_checkable
class ProjectRegistry(Protocol):
    """Async boundary the reconciliation core talks to."""

    async def list_foundations(self) -> Sequence[Foundation]: ...

    async def list_registered_projects(self, foundation_id: str) -> Mapping[str, str | None]:
        """Return registered project names mapped to their stored digest."""
        ...

    async def register_project(self, foundation_id: str, project: Project) -> None:
        """Insert or update ``project`` keyed by ``(foundation_id, project.name)``."""
        ...

    async def unregister_project(self, foundation_id: str, name: str) -> None: ...
