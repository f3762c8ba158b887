"""Projects — owner-scoped CRUD over persisted thumbnail projects.

Invariants:
    - Every route is scoped by X-Account-Id; another owner's project is indistinguishable
      from a missing one (404)
    - canvas_state is stored as given (a Document snapshot); it is sanitized when an
      editing session loads it, not here
    - Repository failures propagate as DatabaseError (503 via the global handler)

Design Decisions:
    - get_project_or_404 exported for reuse by the editor routes (DRY over duplication)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from thumbnail_ai.api.dependencies import get_project_repository, require_account_id
from thumbnail_ai.core.domain_types import AccountId
from thumbnail_ai.core.errors import ResourceNotFoundError
from thumbnail_ai.schemas.project import (
    ProjectCreate, ProjectListResponse, ProjectResponse, ProjectUpdate,
)
from thumbnail_ai.services.project_repository import SqlProjectRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


def raise_project_not_found(project_id: UUID) -> None:
    raise HTTPException(
        status.HTTP_404_NOT_FOUND,
        detail=ResourceNotFoundError("Project", str(project_id)).to_response(),
    )


async def get_project_or_404(
    project_id: UUID, owner_id: AccountId, repo: SqlProjectRepository,
) -> dict:
    """Get an owned project or raise 404. Exported for the editor routes."""
    project = await repo.get(project_id, owner_id)
    if project is None:
        raise_project_not_found(project_id)
    return project


@router.post(
    "", response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_project(
    body: ProjectCreate,
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    return await repo.create(
        owner_id,
        name=body.name,
        canvas_state=body.canvas_state,
        video_title=body.video_title,
        thumbnail_url=body.thumbnail_url,
    )


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    """List the caller's projects, most recently updated first."""
    projects = await repo.list_for_owner(owner_id, limit=limit, offset=offset)
    return {"projects": projects, "limit": limit, "offset": offset}


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    return await get_project_or_404(project_id, owner_id, repo)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    project = await repo.update(
        project_id, owner_id, **body.model_dump(exclude_unset=True),
    )
    if project is None:
        raise_project_not_found(project_id)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    if not await repo.delete(project_id, owner_id):
        raise_project_not_found(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{project_id}/duplicate", response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_project(
    project_id: UUID,
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    project = await repo.duplicate(project_id, owner_id)
    if project is None:
        raise_project_not_found(project_id)
    return project
