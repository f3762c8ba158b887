"""Editor — live editing sessions: one EditEngine per open project, held in memory.

Invariants:
    - _edit_engines is the single source for live editor state; the database only sees
      a Document when the client calls save
    - Opening loads the stored canvas through load_state (dedupe + dense z, one history
      entry); reopening an open project replaces its engine and its history
    - An editing session answers only to the account that opened it (404 otherwise)
    - Unknown layer ids are 404 here; the engine itself treats them as no-ops

Design Decisions:
    - _edit_engines as module-level dict: deliberate exception to no-global-state rule
      (ADR: single-process uvicorn, undo history is never persisted and is lost on restart)
    - PATCH on a layer never checkpoints unless asked, so a drag or a typing burst becomes
      one history entry (client sends checkpoint=true on the last update)
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from thumbnail_ai.api.dependencies import get_project_repository, require_account_id
from thumbnail_ai.api.routes.projects import get_project_or_404, raise_project_not_found
from thumbnail_ai.config import get_settings
from thumbnail_ai.core.document import Document
from thumbnail_ai.core.document_snapshot import document_from_snapshot, document_to_snapshot
from thumbnail_ai.core.domain_types import AccountId, LayerId
from thumbnail_ai.core.edit_engine import EditEngine
from thumbnail_ai.core.errors import ErrorContext, LayerValidationError, ResourceNotFoundError
from thumbnail_ai.schemas.editor import (
    EditorStateResponse, LayerCreate, LayerCreatedResponse, LayerUpdate, MoveRequest,
    SelectRequest, TransformRequest,
)
from thumbnail_ai.services.project_repository import SqlProjectRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects", tags=["editor"])


@dataclass
class EditingSession:
    owner_id: AccountId
    engine: EditEngine


_edit_engines: dict[UUID, EditingSession] = {}


def get_engine_or_404(project_id: UUID, owner_id: AccountId) -> EditEngine:
    session = _edit_engines.get(project_id)
    if session is None or session.owner_id != owner_id:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail=ResourceNotFoundError("EditingSession", str(project_id)).to_response(),
        )
    return session.engine


def require_layer(engine: EditEngine, project_id: UUID, layer_id: str) -> None:
    if engine.document.find(layer_id) is None:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail=ResourceNotFoundError(
                "Layer", layer_id,
                context=ErrorContext(project_id=str(project_id), layer_id=layer_id),
            ).to_response(),
        )


def editor_state(project_id: UUID, engine: EditEngine) -> dict:
    return {
        "project_id": project_id,
        "document": document_to_snapshot(engine.document),
        "selected_layer_id": engine.selected_layer_id,
        "can_undo": engine.can_undo,
        "can_redo": engine.can_redo,
        "history_length": engine.history_length,
        "cursor": engine.cursor,
    }


@router.post(
    "/{project_id}/editor", response_model=EditorStateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_editor(
    project_id: UUID,
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    """Load the stored canvas into a fresh engine (history reset to one entry)."""
    project = await get_project_or_404(project_id, owner_id, repo)
    if project["canvas_state"]:
        document = document_from_snapshot(project["canvas_state"])
    else:
        settings = get_settings()
        document = Document(width=settings.canvas_width, height=settings.canvas_height)
    engine = EditEngine()
    engine.load_state(document)
    _edit_engines[project_id] = EditingSession(owner_id=owner_id, engine=engine)
    logger.info(
        f"Editor opened ({engine.document.layer_count} layers)",
        extra={"project_id": str(project_id)},
    )
    return editor_state(project_id, engine)


@router.get("/{project_id}/editor", response_model=EditorStateResponse)
async def get_editor(
    project_id: UUID, owner_id: AccountId = Depends(require_account_id),
):
    return editor_state(project_id, get_engine_or_404(project_id, owner_id))


@router.delete("/{project_id}/editor", status_code=status.HTTP_204_NO_CONTENT)
async def close_editor(
    project_id: UUID, owner_id: AccountId = Depends(require_account_id),
):
    """Discard the live engine. Unsaved changes and undo history are dropped."""
    get_engine_or_404(project_id, owner_id)
    _edit_engines.pop(project_id, None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/editor/save", response_model=EditorStateResponse)
async def save_editor(
    project_id: UUID,
    owner_id: AccountId = Depends(require_account_id),
    repo: SqlProjectRepository = Depends(get_project_repository),
):
    """Persist the live Document as the project's canvas_state."""
    engine = get_engine_or_404(project_id, owner_id)
    saved = await repo.update(
        project_id, owner_id, canvas_state=document_to_snapshot(engine.document),
    )
    if saved is None:
        _edit_engines.pop(project_id, None)
        raise_project_not_found(project_id)
    logger.info("Editor saved", extra={"project_id": str(project_id)})
    return editor_state(project_id, engine)


# --- Layer operations ---------------------------------------------------------

@router.post(
    "/{project_id}/editor/layers", response_model=LayerCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_layer(
    project_id: UUID, body: LayerCreate,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    layer_id = engine.add_layer(body.kind, body.overrides)
    return {**editor_state(project_id, engine), "layer_id": layer_id}


@router.patch(
    "/{project_id}/editor/layers/{layer_id}", response_model=EditorStateResponse,
)
async def update_layer(
    project_id: UUID, layer_id: str, body: LayerUpdate,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    require_layer(engine, project_id, layer_id)
    engine.update_layer(LayerId(layer_id), body.fields)
    if body.checkpoint:
        engine.checkpoint()
    return editor_state(project_id, engine)


@router.delete(
    "/{project_id}/editor/layers/{layer_id}", response_model=EditorStateResponse,
)
async def delete_layer(
    project_id: UUID, layer_id: str,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    require_layer(engine, project_id, layer_id)
    engine.delete_layer(LayerId(layer_id))
    return editor_state(project_id, engine)


@router.post(
    "/{project_id}/editor/layers/{layer_id}/transform",
    response_model=EditorStateResponse,
)
async def transform_layer(
    project_id: UUID, layer_id: str, body: TransformRequest,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    require_layer(engine, project_id, layer_id)
    if engine.document.find(layer_id).locked:
        raise LayerValidationError(
            "Layer is locked", field="locked",
            context=ErrorContext(project_id=str(project_id), layer_id=layer_id),
        )
    engine.transform_layer(LayerId(layer_id), **body.geometry())
    if body.checkpoint:
        engine.checkpoint()
    return editor_state(project_id, engine)


@router.post(
    "/{project_id}/editor/layers/{layer_id}/move", response_model=EditorStateResponse,
)
async def move_layer(
    project_id: UUID, layer_id: str, body: MoveRequest,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    require_layer(engine, project_id, layer_id)
    engine.move_layer(LayerId(layer_id), body.direction)
    return editor_state(project_id, engine)


@router.post(
    "/{project_id}/editor/layers/{layer_id}/duplicate",
    response_model=LayerCreatedResponse, status_code=status.HTTP_201_CREATED,
)
async def duplicate_layer(
    project_id: UUID, layer_id: str,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    require_layer(engine, project_id, layer_id)
    copy_id = engine.duplicate_layer(LayerId(layer_id))
    return {**editor_state(project_id, engine), "layer_id": copy_id}


@router.post(
    "/{project_id}/editor/layers/{layer_id}/toggle-visibility",
    response_model=EditorStateResponse,
)
async def toggle_visibility(
    project_id: UUID, layer_id: str,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    require_layer(engine, project_id, layer_id)
    engine.toggle_visibility(LayerId(layer_id))
    engine.checkpoint()
    return editor_state(project_id, engine)


@router.post(
    "/{project_id}/editor/layers/{layer_id}/toggle-lock",
    response_model=EditorStateResponse,
)
async def toggle_lock(
    project_id: UUID, layer_id: str,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    require_layer(engine, project_id, layer_id)
    engine.toggle_lock(LayerId(layer_id))
    engine.checkpoint()
    return editor_state(project_id, engine)


@router.post("/{project_id}/editor/select", response_model=EditorStateResponse)
async def select_layer(
    project_id: UUID, body: SelectRequest,
    owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    if body.layer_id is not None:
        require_layer(engine, project_id, body.layer_id)
    engine.select_layer(LayerId(body.layer_id) if body.layer_id else None)
    return editor_state(project_id, engine)


# --- History --------------------------------------------------------------------

@router.post("/{project_id}/editor/checkpoint", response_model=EditorStateResponse)
async def checkpoint(
    project_id: UUID, owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    engine.checkpoint()
    return editor_state(project_id, engine)


@router.post("/{project_id}/editor/undo", response_model=EditorStateResponse)
async def undo(
    project_id: UUID, owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    engine.undo()
    return editor_state(project_id, engine)


@router.post("/{project_id}/editor/redo", response_model=EditorStateResponse)
async def redo(
    project_id: UUID, owner_id: AccountId = Depends(require_account_id),
):
    engine = get_engine_or_404(project_id, owner_id)
    engine.redo()
    return editor_state(project_id, engine)
