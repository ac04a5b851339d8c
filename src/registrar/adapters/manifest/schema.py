"""Foundation manifest schemas."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

log = logging.getLogger(__name__)


def _scalar_to_text(value: object) -> object:
    # YAML loads unquoted dates and numbers as native types.
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return value


class ManifestBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.info(
            "Manifest %s: ignoring unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: object) -> object:
        return _scalar_to_text(value)


class RepositoryPayload(ManifestBaseModel):
    _logged_extra_keys: ClassVar[set[str]] = set()

    name: str
    url: str
    check_sets: list[str] = Field(default_factory=list)

    @field_validator("check_sets", mode="before")
    @classmethod
    def _null_check_sets(cls, value: object) -> object:
        return [] if value is None else value


class ProjectPayload(ManifestBaseModel):
    _logged_extra_keys: ClassVar[set[str]] = set()

    name: str
    display_name: str | None = None
    description: str
    category: str
    home_url: str | None = None
    logo_url: str | None = None
    logo_dark_url: str | None = None
    devstats_url: str | None = None
    accepted_at: str | None = None
    maturity: str
    repositories: list[RepositoryPayload] = Field(default_factory=list)


class ManifestPayload(RootModel[list[ProjectPayload]]):
    """A manifest document: a YAML sequence of projects."""
