"""Trial Authority — HTTP face of the authoritative trial record (guest_sessions).

Invariants:
    - These endpoints are the server side of HttpTrialAuthority; response fields match
      what that client parses
    - PUT never lowers the stored count; POST generations counts at most once per key
    - Transfer requires X-Account-Id; an unknown session answers remote_record_found=false
      rather than 404, so a client can tell "nothing to transfer" from a failure

Design Decisions:
    - Always backed by SqlTrialAuthority: this process IS the authority, whatever
      trial_authority_url the generation routes are configured with
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from thumbnail_ai.api.dependencies import require_account_id
from thumbnail_ai.core.domain_types import AccountId, TrialSessionId
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.infrastructure.database import get_db
from thumbnail_ai.schemas.trial import (
    SESSION_ID_PATTERN, TransferRequest, TransferResponse, TrialCountResponse,
    TrialGenerationRequest, TrialSyncRequest, TrialValidationResponse,
)
from thumbnail_ai.services.trial_authority import SqlTrialAuthority

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/trial/sessions", tags=["trial"])

SessionId = Annotated[str, Path(pattern=SESSION_ID_PATTERN)]


@router.post("/{session_id}/validate", response_model=TrialValidationResponse)
async def validate_session(
    session_id: SessionId, db: AsyncSession = Depends(get_db),
):
    validation = await SqlTrialAuthority(db).validate(TrialSessionId(session_id))
    return validation.to_dict()


@router.put("/{session_id}", response_model=TrialCountResponse)
async def sync_session(
    body: TrialSyncRequest,
    session_id: SessionId,
    db: AsyncSession = Depends(get_db),
):
    used = await SqlTrialAuthority(db).sync(
        TrialSessionId(session_id), body.generations_used, body.asset_ref,
    )
    return {"generations_used": used}


@router.post("/{session_id}/generations", response_model=TrialCountResponse)
async def record_generation(
    body: TrialGenerationRequest,
    session_id: SessionId,
    db: AsyncSession = Depends(get_db),
):
    suggestions = (
        TextSuggestions(**body.text_suggestions.model_dump())
        if body.text_suggestions else None
    )
    used = await SqlTrialAuthority(db).record_generation(
        TrialSessionId(session_id), body.generation_key, body.asset_ref, suggestions,
    )
    return {"generations_used": used}


@router.post("/{session_id}/transfer", response_model=TransferResponse)
async def transfer_session(
    body: TransferRequest,
    session_id: SessionId,
    account_id: AccountId = Depends(require_account_id),
    db: AsyncSession = Depends(get_db),
):
    result = await SqlTrialAuthority(db).convert(
        TrialSessionId(session_id), account_id, body.document_snapshot,
    )
    return {
        "transferred": result.transferred,
        "project_id": result.project_id,
        "already_converted": result.already_converted,
        "converted_to": result.converted_to,
        "remote_record_found": result.remote_record_found,
    }
