"""Trial Gate — dual-authority decision on whether an anonymous visitor may generate.

Invariants:
    - local_hint() never touches the network; remote_confirm() never reads local state
    - A local deny is final (no network round trip is spent on it)
    - A remote veto overrides a local allow
    - A remote failure (StorageError / DatabaseError) fails OPEN: the attempt is allowed
      and the failure is logged at WARNING
    - Usage is counted only via record_generation, after the asset exists; the server
      count is authoritative and the local record mirrors it

Design Decisions:
    - local_hint and remote_confirm stay two separate methods so the fail-open path
      (remote) and the fail-closed path (local deny) are tested independently
    - On remote failure during record_generation the local count is bumped once per
      generation_key (pure UI optimism; the next sync reconciles)
"""

import logging

from thumbnail_ai.core.domain_types import TrialStatus
from thumbnail_ai.core.errors import ErrorContext, QuotaExceededError, StorageError
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.outcome import Outcome
from thumbnail_ai.core.repository_protocols import TrialAuthority
from thumbnail_ai.core.trial_session import TrialHint, TrialSession, TrialValidation
from thumbnail_ai.services.trial_store import TrialSessionStore

logger = logging.getLogger(__name__)


class TrialGate:
    """Combines the local trial record with the remote authority."""

    def __init__(self, store: TrialSessionStore, authority: TrialAuthority):
        self.store = store
        self.authority = authority

    def local_hint(self) -> TrialHint:
        return self.store.hint()

    async def remote_confirm(self, session: TrialSession) -> TrialValidation | None:
        """Authoritative check. None means the authority was unreachable (fail open).

        DatabaseError is a StorageError subclass, so both are covered here.
        """
        try:
            return await self.authority.validate(session.session_id)
        except StorageError as e:
            logger.warning(
                f"Remote trial validation failed, allowing attempt: {e.message}",
                extra={"trial_session_id": session.session_id, "error_code": e.code},
            )
            return None

    async def authorize(self) -> Outcome[TrialSession]:
        """Local hint first, then remote confirmation. Returns the session to charge."""
        hint = self.local_hint()
        if not hint.allowed:
            reason = (
                "Session expired" if hint.status is TrialStatus.EXPIRED
                else "Free generation already used"
            )
            return Outcome.failure(QuotaExceededError(reason))

        session = self.store.get_or_create()
        validation = await self.remote_confirm(session)
        if validation is not None and not validation.valid:
            logger.info(
                f"Remote authority vetoed generation: {validation.reason}",
                extra={"trial_session_id": session.session_id},
            )
            return Outcome.failure(QuotaExceededError(
                validation.reason or "Free generation already used",
                context=ErrorContext(trial_session_id=session.session_id),
            ))
        return Outcome.success(session)

    async def record_generation(
        self,
        session: TrialSession,
        generation_key: str,
        asset_ref: str | None,
        suggestions: TextSuggestions | None = None,
    ) -> TrialSession:
        """Count a successful generation. Repeating the same key never counts twice."""
        try:
            used = await self.authority.record_generation(
                session.session_id, generation_key, asset_ref, suggestions,
            )
        except StorageError as e:
            current = self.store.get() or session
            if current.last_generation_key == generation_key:
                used = current.generations_used
            else:
                used = current.generations_used + 1
            logger.warning(
                f"Remote usage increment failed, counting locally: {e.message}",
                extra={"trial_session_id": session.session_id, "error_code": e.code},
            )
        return self.store.record_local_generation(
            used, generation_key, asset_ref, suggestions,
        )
