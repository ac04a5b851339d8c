"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import ManifestFetcher
from .persistence import FoundationRepository, ProjectRegistry, ProjectRepository
from .unit_of_work import (
    RegistryRepositories,
    RegistryUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "FoundationRepository",
    "ManifestFetcher",
    "ProjectRegistry",
    "ProjectRepository",
    "RegistryRepositories",
    "RegistryUnitOfWork",
    "RepositoryCollection",
    "UnitOfWork",
]
