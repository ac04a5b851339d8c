"""SQLAlchemy-backed unit of work for the project registry."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from registrar.adapters.sqlalchemy.mappings import create_all_tables
from registrar.adapters.sqlalchemy.repositories import (
    SqlAlchemyFoundationRepository,
    SqlAlchemyProjectRepository,
)
from registrar.config.storage import get_database_config
from registrar.domain.ports.unit_of_work import RegistryRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None
    _connection_lock: threading.Lock | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value
        # A single shared connection must not be used by two threads at once.
        shared = value is not None and isinstance(value.pool, StaticPool)
        self._connection_lock = threading.Lock() if shared else None

    @property
    def connection_lock(self) -> threading.Lock | None:
        return self._connection_lock

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call registrar.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def create_registry_engine(database_uri: str) -> Engine:
    """Create an engine for ``database_uri``; in-memory SQLite shares one connection.

    Registry calls run on worker threads, so SQLite connections may not be tied
    to the thread that opened them.
    """

    if not database_uri.startswith("sqlite"):
        return create_engine(database_uri)
    connect_args = {"check_same_thread": False}
    if ":memory:" in database_uri:
        return create_engine(database_uri, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(database_uri, connect_args=connect_args)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, schema, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_registry_engine(
        database_uri or get_database_config().uri
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyUnitOfWork:
    """Unit of work managing one SQLAlchemy session over the registry tables."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._lock = _STATE.connection_lock
        self._session: Session | None = None
        self._repositories: RegistryRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._lock is not None:
            self._lock.acquire()
        self.session = self.session_factory()
        self._repositories = RegistryRepositories(
            foundations=SqlAlchemyFoundationRepository(self.session),
            projects=SqlAlchemyProjectRepository(self.session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
            self.session.close()
        finally:
            self.session = None
            self._repositories = None
            if self._lock is not None:
                self._lock.release()
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> RegistryRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from registrar.domain.ports.unit_of_work import RegistryUnitOfWork

    _uow_check: RegistryUnitOfWork = SqlAlchemyUnitOfWork()
