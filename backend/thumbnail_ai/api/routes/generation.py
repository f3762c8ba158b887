"""Generation — AI thumbnail and text-suggestion endpoints.

Invariants:
    - A request without X-Account-Id is a trial request and goes through the TrialGate;
      an authenticated request is never gated
    - The caller's local trial record arrives in the body and the updated record is
      returned, so the server never keeps per-visitor local state
    - Failures surface as the Outcome's ThumbnailError (402 quota, 502 provider, ...)

Design Decisions:
    - The local record is wrapped in an InMemoryStorage for the duration of the request:
      the same TrialSessionStore code path serves browser-held and file-held records
"""

import logging

from fastapi import APIRouter, Depends

from thumbnail_ai.api.dependencies import (
    get_generation_service, get_trial_authority, optional_account_id,
)
from thumbnail_ai.core.domain_types import AccountId
from thumbnail_ai.core.generation_types import ThumbnailRequest
from thumbnail_ai.core.repository_protocols import TrialAuthority
from thumbnail_ai.infrastructure.local_storage import InMemoryStorage
from thumbnail_ai.schemas.generation import (
    TextGenerateRequest, TextSuggestionsPayload, ThumbnailGenerateRequest,
    ThumbnailGenerateResponse,
)
from thumbnail_ai.services.thumbnail_generation import ThumbnailGenerationService
from thumbnail_ai.services.trial_gate import TrialGate
from thumbnail_ai.services.trial_store import GUEST_SESSION_KEY, TrialSessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/generations", tags=["generation"])


@router.post("/thumbnail", response_model=ThumbnailGenerateResponse)
async def generate_thumbnail(
    body: ThumbnailGenerateRequest,
    account_id: AccountId | None = Depends(optional_account_id),
    service: ThumbnailGenerationService = Depends(get_generation_service),
    authority: TrialAuthority = Depends(get_trial_authority),
):
    request = ThumbnailRequest(
        prompt=body.prompt,
        image_style=body.image_style,
        emotion=body.emotion,
        aspect_ratio=body.aspect_ratio,
    )
    storage = None
    gate = None
    if account_id is None:
        initial = {GUEST_SESSION_KEY: body.trial_record} if body.trial_record else None
        storage = InMemoryStorage(initial)
        gate = TrialGate(TrialSessionStore(storage), authority)

    outcome = await service.generate_thumbnail(request, gate)
    if not outcome.ok:
        raise outcome.error
    result = outcome.value
    return {
        "background_url": result.background_url,
        "text_suggestions": result.text_suggestions.to_dict(),
        "color_scheme": list(result.color_scheme),
        "cached": result.cached,
        "trial_record": storage.get_item(GUEST_SESSION_KEY) if storage else None,
    }


@router.post("/text", response_model=TextSuggestionsPayload)
async def generate_text(
    body: TextGenerateRequest,
    service: ThumbnailGenerationService = Depends(get_generation_service),
):
    """Headline/subheadline suggestions for a video description. Not trial-gated."""
    outcome = await service.suggest_text(body.prompt)
    if not outcome.ok:
        raise outcome.error
    return outcome.value.to_dict()
