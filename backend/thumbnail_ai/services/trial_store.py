"""Trial Session Store — the local (client-held) trial record over a LocalStorage.

Invariants:
    - Exactly one record, under GUEST_SESSION_KEY
    - get() never raises for bad data: malformed -> None, expired -> cleared and None
    - The cached Document snapshot lives inside the record (canvasState), so clearing
      the record clears the snapshot too

Design Decisions:
    - Client-side state: the HTTP API keeps no local record of its own (a request carries
      it in the body), so store_snapshot and clear are driven by a client embedding this
      store alongside transfer_trial
    - Advisory only: nothing here is trusted for gating without the remote authority
    - Clock injectable for expiry tests
"""

import logging
from datetime import datetime
from typing import Callable

from thumbnail_ai.core.document import Document
from thumbnail_ai.core.document_snapshot import document_to_snapshot
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.repository_protocols import LocalStorage
from thumbnail_ai.core.trial_session import (
    TrialHint, TrialSession, create_trial_session, is_expired, local_hint,
    trial_session_from_record, trial_session_to_record, utc_now,
)

logger = logging.getLogger(__name__)

GUEST_SESSION_KEY = "yt_thumbnail_guest_session"


class TrialSessionStore:
    """Reads and writes the single local trial record."""

    def __init__(
        self,
        storage: LocalStorage,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.clock = clock

    def get(self) -> TrialSession | None:
        session = trial_session_from_record(self.storage.get_item(GUEST_SESSION_KEY))
        if session is None:
            return None
        if is_expired(session, self.clock()):
            logger.info(
                "Local trial session expired, clearing",
                extra={"trial_session_id": session.session_id},
            )
            self.clear()
            return None
        return session

    def get_or_create(self) -> TrialSession:
        session = self.get()
        if session is not None:
            return session
        session = create_trial_session(self.clock())
        self.save(session)
        logger.info(
            "Local trial session created", extra={"trial_session_id": session.session_id},
        )
        return session

    def save(self, session: TrialSession) -> None:
        self.storage.set_item(GUEST_SESSION_KEY, trial_session_to_record(session))

    def clear(self) -> None:
        self.storage.remove_item(GUEST_SESSION_KEY)

    def hint(self) -> TrialHint:
        """Local, optimistic allowance check (no network)."""
        return local_hint(self.get(), self.clock())

    def record_local_generation(
        self,
        generations_used: int,
        generation_key: str,
        asset_ref: str | None,
        suggestions: TextSuggestions | None,
    ) -> TrialSession:
        """Mirror a counted generation into the local record."""
        session = self.get_or_create()
        session.generations_used = generations_used
        session.last_generation_key = generation_key
        session.asset_ref = asset_ref
        session.text_suggestions = suggestions
        self.save(session)
        return session

    def store_snapshot(self, document: Document) -> TrialSession | None:
        """Cache the latest Document in the local record. No record -> nothing stored."""
        session = self.get()
        if session is None:
            return None
        session.document_snapshot = document_to_snapshot(document)
        self.save(session)
        return session
