"""Domain model for foundations and the projects they publish."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .digest import compute_digest


@dataclass(frozen=True, slots=True)
class Foundation:
    """A registered manifest source."""

    foundation_id: str
    data_url: str
    display_name: str | None = None


@dataclass(frozen=True, slots=True)
class Repository:
    name: str
    url: str
    check_sets: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class Project:
    """A project candidate as described by a foundation manifest.

    ``digest`` is derived from every other field; see
    :func:`registrar.domain.digest.compute_digest`.
    """

    name: str
    description: str
    category: str
    maturity: str
    display_name: str | None = None
    home_url: str | None = None
    logo_url: str | None = None
    logo_dark_url: str | None = None
    devstats_url: str | None = None
    accepted_at: str | None = None
    repositories: tuple[Repository, ...] = field(default_factory=tuple)
    digest: str | None = None

    def with_digest(self) -> Project:
        """Return a copy of this project carrying its freshly computed digest."""

        return replace(self, digest=compute_digest(self))
