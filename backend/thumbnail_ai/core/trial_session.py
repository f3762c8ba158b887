"""Trial Session: the anonymous visitor's generation allowance and its lifecycle rules.

Invariants:
    - State machine: NONE -> ACTIVE(0) -> ACTIVE(1) -> {EXPIRED | CONVERTED}
    - A local session expires TRIAL_SESSION_TTL_HOURS after created_at
    - generations_used <= MAX_FREE_GENERATIONS is the steady state; larger values are
      tolerated (remaining is clamped at 0), never raised
    - Converted is terminal: validation of a converted record is always invalid
    - trial_session_from_record returns None for any malformed record (absence, not error)

Design Decisions:
    - local_hint (advisory, client-side record) and validate_remote_record (authoritative,
      server-side row) are separate pure functions; nothing merges them
    - The local record keeps the camelCase keys of the browser storage format
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from thumbnail_ai.core.cache_key import ensure_utc
from thumbnail_ai.core.domain_types import (
    MAX_FREE_GENERATIONS, TRIAL_SESSION_TTL_HOURS, TrialSessionId, TrialStatus,
)
from thumbnail_ai.core.generation_types import TextSuggestions, text_suggestions_from_dict


@dataclass
class TrialSession:
    """Local (client-held) trial record. Advisory only."""
    session_id: TrialSessionId
    created_at: datetime
    generations_used: int = 0
    asset_ref: str | None = None
    text_suggestions: TextSuggestions | None = None
    document_snapshot: dict | None = None
    last_generation_key: str | None = None

    @property
    def expires_at(self) -> datetime:
        return ensure_utc(self.created_at) + timedelta(hours=TRIAL_SESSION_TTL_HOURS)


@dataclass(frozen=True)
class TrialHint:
    """Optimistic, local-only answer to "may this identity generate?"."""
    allowed: bool
    generations_remaining: int
    status: TrialStatus


@dataclass(frozen=True)
class TrialValidation:
    """Authoritative answer from the remote trial authority."""
    valid: bool
    generations_remaining: int
    converted_to: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "generations_remaining": self.generations_remaining,
            "converted_to": self.converted_to,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TransferResult:
    """Outcome of moving a trial's artifact into an account."""
    transferred: bool
    project_id: str | None = None
    already_converted: bool = False
    converted_to: str | None = None
    remote_record_found: bool = True


def new_trial_session_id() -> TrialSessionId:
    return TrialSessionId(f"session_{uuid4()}")


def create_trial_session(
    now: datetime, session_id: TrialSessionId | None = None,
) -> TrialSession:
    return TrialSession(
        session_id=session_id or new_trial_session_id(),
        created_at=ensure_utc(now),
    )


def remaining_generations(generations_used: int) -> int:
    return max(0, MAX_FREE_GENERATIONS - generations_used)


def is_expired(session: TrialSession, now: datetime) -> bool:
    return ensure_utc(now) >= session.expires_at


def local_hint(session: TrialSession | None, now: datetime) -> TrialHint:
    """Local check: no record means a fresh visitor with the full allowance."""
    if session is None:
        return TrialHint(True, MAX_FREE_GENERATIONS, TrialStatus.NONE)
    if is_expired(session, now):
        return TrialHint(False, 0, TrialStatus.EXPIRED)
    remaining = remaining_generations(session.generations_used)
    return TrialHint(remaining > 0, remaining, TrialStatus.ACTIVE)


def validate_remote_record(
    generations_used: int,
    expires_at: datetime,
    converted_to: str | None,
    now: datetime,
) -> TrialValidation:
    """Authoritative rules applied to the remote row. Converted wins over expiry."""
    if converted_to:
        return TrialValidation(False, 0, converted_to, "Session already used")
    if ensure_utc(expires_at) < ensure_utc(now):
        return TrialValidation(False, 0, None, "Session expired")
    remaining = remaining_generations(generations_used)
    return TrialValidation(
        remaining > 0, remaining, None,
        None if remaining > 0 else "Free generation already used",
    )


def trial_session_to_record(session: TrialSession) -> dict:
    """Serialize to the JSON-safe local storage record."""
    return {
        "sessionId": session.session_id,
        "generationsUsed": session.generations_used,
        "createdAt": ensure_utc(session.created_at).isoformat(),
        "assetRef": session.asset_ref,
        "textSuggestions": (
            session.text_suggestions.to_dict() if session.text_suggestions else None
        ),
        "canvasState": session.document_snapshot,
        "lastGenerationKey": session.last_generation_key,
    }


def trial_session_from_record(data: Any) -> TrialSession | None:
    """Parse a local storage record; malformed or partial records read as absent."""
    if not isinstance(data, dict):
        return None
    session_id = data.get("sessionId")
    used = data.get("generationsUsed")
    created_raw = data.get("createdAt")
    if not isinstance(session_id, str) or not session_id:
        return None
    if not isinstance(used, int) or isinstance(used, bool) or used < 0:
        return None
    if not isinstance(created_raw, str):
        return None
    try:
        created_at = ensure_utc(datetime.fromisoformat(created_raw))
    except ValueError:
        return None

    asset_ref = data.get("assetRef")
    snapshot = data.get("canvasState")
    key = data.get("lastGenerationKey")
    return TrialSession(
        session_id=TrialSessionId(session_id),
        created_at=created_at,
        generations_used=used,
        asset_ref=asset_ref if isinstance(asset_ref, str) else None,
        text_suggestions=text_suggestions_from_dict(data.get("textSuggestions")),
        document_snapshot=snapshot if isinstance(snapshot, dict) else None,
        last_generation_key=key if isinstance(key, str) else None,
    )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
