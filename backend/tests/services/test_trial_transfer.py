"""Trial Transfer — tests for clearing rules and no-op outcomes."""

from thumbnail_ai.core.errors import StorageError
from thumbnail_ai.core.trial_session import TransferResult, create_trial_session
from thumbnail_ai.infrastructure.local_storage import InMemoryStorage
from thumbnail_ai.services.trial_store import GUEST_SESSION_KEY, TrialSessionStore
from thumbnail_ai.services.trial_transfer import transfer_trial
from tests.services.fakes import FakeTrialAuthority


def _store_with_session(clock) -> TrialSessionStore:
    store = TrialSessionStore(InMemoryStorage(), clock)
    session = create_trial_session(clock(), session_id="session_t")
    session.asset_ref = "https://img/1.png"
    session.document_snapshot = {"width": 1280, "height": 720, "layers": []}
    store.save(session)
    return store


async def test_no_local_record_is_trivial_success(clock):
    authority = FakeTrialAuthority()
    outcome = await transfer_trial(TrialSessionStore(InMemoryStorage(), clock), authority, "acct")
    assert outcome.ok
    assert outcome.value.transferred is False
    assert authority.convert_calls == []


async def test_successful_transfer_clears_local_state(clock):
    store = _store_with_session(clock)
    authority = FakeTrialAuthority()
    outcome = await transfer_trial(store, authority, "acct_owner")

    assert outcome.value.project_id == "proj-1"
    assert authority.convert_calls == [
        ("session_t", "acct_owner", {"width": 1280, "height": 720, "layers": []}),
    ]
    assert store.storage.get_item(GUEST_SESSION_KEY) is None


async def test_expired_local_record_still_transfers(clock):
    store = _store_with_session(clock)
    clock.advance(48)
    authority = FakeTrialAuthority()
    outcome = await transfer_trial(store, authority, "acct_owner")
    assert outcome.ok
    assert len(authority.convert_calls) == 1


async def test_remote_failure_keeps_local_state(clock):
    store = _store_with_session(clock)
    outcome = await transfer_trial(store, FakeTrialAuthority(down=True), "acct_owner")
    assert isinstance(outcome.error, StorageError)
    assert store.get().document_snapshot is not None


async def test_missing_remote_record_keeps_local_state(clock):
    store = _store_with_session(clock)
    authority = FakeTrialAuthority()
    authority.convert_result = TransferResult(transferred=False, remote_record_found=False)
    outcome = await transfer_trial(store, authority, "acct_owner")
    assert outcome.ok
    assert outcome.value.transferred is False
    assert store.get() is not None


async def test_already_converted_is_success_and_clears(clock):
    store = _store_with_session(clock)
    authority = FakeTrialAuthority()
    authority.convert_result = TransferResult(
        transferred=False, project_id="proj-0", already_converted=True, converted_to="acct_x",
    )
    outcome = await transfer_trial(store, authority, "acct_owner")
    assert outcome.ok
    assert outcome.value.already_converted is True
    assert store.storage.get_item(GUEST_SESSION_KEY) is None
