"""Trial Transfer — move an anonymous trial's artifact into a newly authenticated account.

Invariants:
    - No local trial record -> success with nothing transferred, no remote call
    - No remote record -> success with nothing transferred, local record kept
    - Project creation and the converted marker happen remotely in one atomic step
      (TrialAuthority.convert); running transfer again is a no-op
    - Already converted is success-with-no-op: TransferConflictError is logged, never
      returned as a failure
    - Local state is cleared last, and only after the remote step succeeded; a remote
      failure leaves the local record (and its Document snapshot) untouched

Design Decisions:
    - This is the client-side half of the transfer protocol (it owns the local record);
      the HTTP /trial/sessions/{id}/transfer route is the server-side half and calls
      TrialAuthority.convert directly
    - The Document snapshot travels from local storage to the authority at transfer
      time: it is bulky and never mirrored remotely before then
"""

import logging

from thumbnail_ai.core.domain_types import AccountId
from thumbnail_ai.core.errors import ErrorContext, StorageError, TransferConflictError
from thumbnail_ai.core.outcome import Outcome
from thumbnail_ai.core.repository_protocols import TrialAuthority
from thumbnail_ai.core.trial_session import TransferResult, trial_session_from_record
from thumbnail_ai.services.trial_store import GUEST_SESSION_KEY, TrialSessionStore

logger = logging.getLogger(__name__)


async def transfer_trial(
    store: TrialSessionStore,
    authority: TrialAuthority,
    account_id: AccountId,
) -> Outcome[TransferResult]:
    # Expired records still carry an artifact worth keeping, so read the raw record.
    session = trial_session_from_record(store.storage.get_item(GUEST_SESSION_KEY))
    if session is None:
        return Outcome.success(TransferResult(transferred=False))

    try:
        result = await authority.convert(
            session.session_id, account_id, session.document_snapshot,
        )
    except StorageError as e:
        logger.error(
            f"Trial transfer failed, keeping local state: {e.message}",
            extra={"trial_session_id": session.session_id, "error_code": e.code},
        )
        return Outcome.failure(e)

    if result.already_converted:
        conflict = TransferConflictError(
            session.session_id, result.converted_to,
            context=ErrorContext(trial_session_id=session.session_id),
        )
        logger.info(
            f"{conflict.message}; treating as no-op",
            extra={"trial_session_id": session.session_id, "error_code": conflict.code},
        )

    if not result.remote_record_found:
        logger.info(
            "No remote trial record, nothing to transfer",
            extra={"trial_session_id": session.session_id},
        )
        return Outcome.success(result)

    try:
        store.clear()
    except StorageError as e:
        # Remote side is done; a retried transfer is a no-op that clears again.
        logger.warning(
            f"Transfer succeeded but local state could not be cleared: {e.message}",
            extra={"trial_session_id": session.session_id},
        )
        return Outcome.success(result)
    logger.info(
        "Trial transfer complete, local state cleared",
        extra={"trial_session_id": session.session_id, "project_id": result.project_id},
    )
    return Outcome.success(result)
