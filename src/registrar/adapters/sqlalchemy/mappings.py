"""SQLAlchemy table metadata for the project registry."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class CheckSetsType(TypeDecorator[tuple[str, ...]]):
    """Ordered check set names stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(str(item) for item in items)


def utcnow() -> datetime:
    return datetime.now(UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

foundation_table = Table(
    "foundation",
    metadata,
    Column("foundation_id", String, primary_key=True),
    Column("display_name", String, nullable=True),
    Column("data_url", String, nullable=False),
)

project_table = Table(
    "project",
    metadata,
    Column("project_id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "foundation_id",
        String,
        ForeignKey("foundation.foundation_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String, nullable=False),
    Column("display_name", String, nullable=True),
    Column("description", Text, nullable=False),
    Column("category", String, nullable=False),
    Column("home_url", String, nullable=True),
    Column("logo_url", String, nullable=True),
    Column("logo_dark_url", String, nullable=True),
    Column("devstats_url", String, nullable=True),
    Column("accepted_at", String, nullable=True),
    Column("maturity", String, nullable=False),
    Column("digest", String(64), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime(), nullable=False, default=utcnow),
    UniqueConstraint("foundation_id", "name"),
    Index("ix_project_foundation_id", "foundation_id"),
)

repository_table = Table(
    "repository",
    metadata,
    Column("repository_id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "project_id",
        UUIDColumnType,
        ForeignKey("project.project_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String, nullable=False),
    Column("url", String, nullable=False),
    Column("check_sets", CheckSetsType(), nullable=False),
    Column("position", Integer, nullable=False, default=0),
    UniqueConstraint("project_id", "url"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the registry metadata."""

    log.info("Creating registry tables")
    metadata.create_all(engine)
