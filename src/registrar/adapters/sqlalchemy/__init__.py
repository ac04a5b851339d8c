"""SQLAlchemy adapter package for the project registry."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    foundation_table,
    metadata,
    project_table,
    repository_table,
)
from .registry import SqlAlchemyProjectRegistry
from .repositories import SqlAlchemyFoundationRepository, SqlAlchemyProjectRepository
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    create_registry_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyFoundationRepository",
    "SqlAlchemyProjectRegistry",
    "SqlAlchemyProjectRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "create_registry_engine",
    "foundation_table",
    "is_started",
    "metadata",
    "project_table",
    "repository_table",
    "shutdown",
    "startup",
]
