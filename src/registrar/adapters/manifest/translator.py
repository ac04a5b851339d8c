"""Translate manifest payloads into domain projects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from registrar.domain.model import Project, Repository

if TYPE_CHECKING:
    from .schema import ProjectPayload, RepositoryPayload


def translate_repository(payload: RepositoryPayload) -> Repository:
    return Repository(
        name=payload.name,
        url=payload.url,
        check_sets=tuple(payload.check_sets),
    )


def translate_project(payload: ProjectPayload) -> Project:
    return Project(
        name=payload.name,
        display_name=payload.display_name,
        description=payload.description,
        category=payload.category,
        home_url=payload.home_url,
        logo_url=payload.logo_url,
        logo_dark_url=payload.logo_dark_url,
        devstats_url=payload.devstats_url,
        accepted_at=payload.accepted_at,
        maturity=payload.maturity,
        repositories=tuple(translate_repository(repo) for repo in payload.repositories),
    )
