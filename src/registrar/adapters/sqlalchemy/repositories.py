"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import uuid
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from registrar.adapters.sqlalchemy.mappings import (
    foundation_table,
    project_table,
    repository_table,
    utcnow,
)
from registrar.domain.model import Foundation, Project, Repository

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

log = getLogger(__name__)


class SqlAlchemyFoundationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[Foundation]:
        stmt = select(
            foundation_table.c.foundation_id,
            foundation_table.c.data_url,
            foundation_table.c.display_name,
        ).order_by(foundation_table.c.foundation_id)
        return [
            Foundation(
                foundation_id=row.foundation_id,
                data_url=row.data_url,
                display_name=row.display_name,
            )
            for row in self.session.execute(stmt)
        ]

    def save(self, foundation: Foundation) -> None:
        values = {
            "data_url": foundation.data_url,
            "display_name": foundation.display_name,
        }
        result = self.session.execute(
            update(foundation_table)
            .where(foundation_table.c.foundation_id == foundation.foundation_id)
            .values(**values)
        )
        if result.rowcount == 0:
            self.session.execute(
                insert(foundation_table).values(foundation_id=foundation.foundation_id, **values)
            )


class SqlAlchemyProjectRepository:
    """Registered projects, keyed by ``(foundation_id, name)``."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def digests_by_name(self, foundation_id: str) -> dict[str, str | None]:
        stmt = select(project_table.c.name, project_table.c.digest).where(
            project_table.c.foundation_id == foundation_id
        )
        return {row.name: row.digest for row in self.session.execute(stmt)}

    def get(self, foundation_id: str, name: str) -> Project | None:
        row = self.session.execute(
            select(project_table)
            .where(project_table.c.foundation_id == foundation_id)
            .where(project_table.c.name == name)
        ).one_or_none()
        if row is None:
            return None
        repositories = self.session.execute(
            select(
                repository_table.c.name,
                repository_table.c.url,
                repository_table.c.check_sets,
            )
            .where(repository_table.c.project_id == row.project_id)
            .order_by(repository_table.c.position)
        )
        return Project(
            name=row.name,
            display_name=row.display_name,
            description=row.description,
            category=row.category,
            home_url=row.home_url,
            logo_url=row.logo_url,
            logo_dark_url=row.logo_dark_url,
            devstats_url=row.devstats_url,
            accepted_at=row.accepted_at,
            maturity=row.maturity,
            digest=row.digest,
            repositories=tuple(
                Repository(name=repo.name, url=repo.url, check_sets=repo.check_sets)
                for repo in repositories
            ),
        )

    def upsert(self, foundation_id: str, project: Project) -> None:
        values = {
            "display_name": project.display_name,
            "description": project.description,
            "category": project.category,
            "home_url": project.home_url,
            "logo_url": project.logo_url,
            "logo_dark_url": project.logo_dark_url,
            "devstats_url": project.devstats_url,
            "accepted_at": project.accepted_at,
            "maturity": project.maturity,
            "digest": project.digest,
        }
        project_id = self._project_id(foundation_id, project.name)
        if project_id is None:
            project_id = uuid.uuid4()
            self.session.execute(
                insert(project_table).values(
                    project_id=project_id,
                    foundation_id=foundation_id,
                    name=project.name,
                    **values,
                )
            )
        else:
            self.session.execute(
                update(project_table)
                .where(project_table.c.project_id == project_id)
                .values(updated_at=utcnow(), **values)
            )
        self._sync_repositories(project_id, project.repositories)

    def delete(self, foundation_id: str, name: str) -> bool:
        project_id = self._project_id(foundation_id, name)
        if project_id is None:
            return False
        self.session.execute(
            delete(repository_table).where(repository_table.c.project_id == project_id)
        )
        self.session.execute(delete(project_table).where(project_table.c.project_id == project_id))
        return True

    def _project_id(self, foundation_id: str, name: str) -> uuid.UUID | None:
        stmt = (
            select(project_table.c.project_id)
            .where(project_table.c.foundation_id == foundation_id)
            .where(project_table.c.name == name)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _sync_repositories(
        self,
        project_id: uuid.UUID,
        repositories: tuple[Repository, ...],
    ) -> None:
        wanted: dict[str, Repository] = {}
        for repository in repositories:
            if repository.url in wanted:
                log.warning(
                    "Repository %s listed more than once, keeping the last entry",
                    repository.url,
                )
            wanted[repository.url] = repository

        existing = {
            row.url: row.repository_id
            for row in self.session.execute(
                select(repository_table.c.url, repository_table.c.repository_id).where(
                    repository_table.c.project_id == project_id
                )
            )
        }

        stale = [repository_id for url, repository_id in existing.items() if url not in wanted]
        if stale:
            self.session.execute(
                delete(repository_table).where(repository_table.c.repository_id.in_(stale))
            )

        for position, (url, repository) in enumerate(wanted.items()):
            values = {
                "name": repository.name,
                "check_sets": repository.check_sets,
                "position": position,
            }
            repository_id = existing.get(url)
            if repository_id is None:
                self.session.execute(
                    insert(repository_table).values(
                        repository_id=uuid.uuid4(),
                        project_id=project_id,
                        url=url,
                        **values,
                    )
                )
            else:
                self.session.execute(
                    update(repository_table)
                    .where(repository_table.c.repository_id == repository_id)
                    .values(**values)
                )
