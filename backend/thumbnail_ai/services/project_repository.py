"""SQL Project Repository — owner-scoped persistence of projects and their Documents.

Invariants:
    - Every read and write is filtered by owner_id: another account's project is
      indistinguishable from a missing one
    - Only name, video_title, canvas_state and thumbnail_url are updatable
    - SQLAlchemy failures surface as DatabaseError (fail closed: writes are reported)
    - Each mutating call commits its own unit of work

Design Decisions:
    - Returns plain dicts (project_to_dict), not ORM rows: routes and services never
      hold live ORM state across awaits
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from thumbnail_ai.core.domain_types import AccountId
from thumbnail_ai.infrastructure.database import map_db_error
from thumbnail_ai.models.project import Project

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Untitled Project"
UPDATABLE_FIELDS = frozenset({"name", "video_title", "canvas_state", "thumbnail_url"})


def project_to_dict(project: Project) -> dict:
    return {
        "id": project.id,
        "owner_id": project.owner_id,
        "name": project.name,
        "video_title": project.video_title,
        "canvas_state": project.canvas_state,
        "thumbnail_url": project.thumbnail_url,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


class SqlProjectRepository:
    """ProjectRepository over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self, owner_id: AccountId, name: str | None = None,
        canvas_state: dict | None = None, video_title: str | None = None,
        thumbnail_url: str | None = None,
    ) -> dict:
        project = Project(
            owner_id=owner_id,
            name=name or DEFAULT_PROJECT_NAME,
            video_title=video_title,
            canvas_state=canvas_state,
            thumbnail_url=thumbnail_url,
        )
        try:
            self.db.add(project)
            await self.db.commit()
            await self.db.refresh(project)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "create_project")
        logger.info(f"Project created: {project.id}", extra={"project_id": str(project.id)})
        return project_to_dict(project)

    async def get(self, project_id: UUID, owner_id: AccountId) -> dict | None:
        project = await self._fetch(project_id, owner_id)
        return project_to_dict(project) if project else None

    async def list_for_owner(
        self, owner_id: AccountId, limit: int = 50, offset: int = 0,
    ) -> list[dict]:
        query = (
            select(Project)
            .where(Project.owner_id == owner_id)
            .order_by(Project.updated_at.desc())
            .limit(limit)
            .offset(offset)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise map_db_error(e, "list_projects")
        return [project_to_dict(p) for p in result.scalars().all()]

    async def update(
        self, project_id: UUID, owner_id: AccountId, **fields: object,
    ) -> dict | None:
        project = await self._fetch(project_id, owner_id)
        if project is None:
            return None
        for key, value in fields.items():
            if key in UPDATABLE_FIELDS:
                setattr(project, key, value)
        try:
            await self.db.commit()
            await self.db.refresh(project)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "update_project")
        return project_to_dict(project)

    async def delete(self, project_id: UUID, owner_id: AccountId) -> bool:
        project = await self._fetch(project_id, owner_id)
        if project is None:
            return False
        try:
            await self.db.delete(project)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "delete_project")
        logger.info(f"Project deleted: {project_id}", extra={"project_id": str(project_id)})
        return True

    async def duplicate(self, project_id: UUID, owner_id: AccountId) -> dict | None:
        original = await self._fetch(project_id, owner_id)
        if original is None:
            return None
        return await self.create(
            owner_id,
            name=f"{original.name} (Copy)",
            canvas_state=original.canvas_state,
            video_title=original.video_title,
            thumbnail_url=original.thumbnail_url,
        )

    async def _fetch(self, project_id: UUID, owner_id: AccountId) -> Project | None:
        try:
            result = await self.db.execute(
                select(Project).where(
                    Project.id == project_id, Project.owner_id == owner_id,
                ),
            )
        except SQLAlchemyError as e:
            raise map_db_error(e, "get_project")
        return result.scalar_one_or_none()
