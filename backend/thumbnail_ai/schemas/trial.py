"""Trial Schemas — request/response models for the remote trial authority endpoints.

Invariants:
    - Session ids are opaque client tokens: 1-64 chars of [A-Za-z0-9_-]
    - generations_used is never negative on the wire
    - Response field names are what HttpTrialAuthority parses
"""

from pydantic import BaseModel, Field

from thumbnail_ai.schemas.generation import TextSuggestionsPayload

SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class TrialSyncRequest(BaseModel):
    generations_used: int = Field(ge=0)
    asset_ref: str | None = Field(None, max_length=2048)


class TrialGenerationRequest(BaseModel):
    """One counted generation. generation_key makes the increment idempotent."""
    generation_key: str = Field(min_length=1, max_length=64)
    asset_ref: str | None = Field(None, max_length=2048)
    text_suggestions: TextSuggestionsPayload | None = None


class TrialCountResponse(BaseModel):
    generations_used: int


class TrialValidationResponse(BaseModel):
    valid: bool
    generations_remaining: int
    converted_to: str | None = None
    reason: str | None = None


class TransferRequest(BaseModel):
    document_snapshot: dict | None = None


class TransferResponse(BaseModel):
    transferred: bool
    project_id: str | None = None
    already_converted: bool = False
    converted_to: str | None = None
    remote_record_found: bool = True
