"""Trial Gate & Store — tests for the local hint, remote veto, fail-open and counting.

Invariants:
    - A local deny never reaches the authority
    - A remote failure allows the attempt and logs a warning
    - A generation key is counted once locally, even when the authority is down
"""

import logging

from thumbnail_ai.core.document import Document
from thumbnail_ai.core.domain_types import TrialStatus
from thumbnail_ai.core.errors import QuotaExceededError
from thumbnail_ai.core.trial_session import create_trial_session, trial_session_to_record
from thumbnail_ai.infrastructure.local_storage import InMemoryStorage
from thumbnail_ai.services.trial_gate import TrialGate
from thumbnail_ai.services.trial_store import GUEST_SESSION_KEY, TrialSessionStore
from tests.services.fakes import FakeTrialAuthority


def _store(clock, used: int | None = None) -> TrialSessionStore:
    storage = InMemoryStorage()
    if used is not None:
        session = create_trial_session(clock(), session_id="session_local")
        session.generations_used = used
        storage.set_item(GUEST_SESSION_KEY, trial_session_to_record(session))
    return TrialSessionStore(storage, clock)


# -- TrialSessionStore ----------------------------------------------------------------

def test_store_get_or_create_persists_a_record(clock):
    store = _store(clock)
    assert store.get() is None
    session = store.get_or_create()
    assert store.get() == session
    assert store.get_or_create().session_id == session.session_id


def test_store_clears_expired_record(clock):
    store = _store(clock, used=0)
    clock.advance(24)
    assert store.get() is None
    assert store.storage.get_item(GUEST_SESSION_KEY) is None


def test_store_treats_corrupt_record_as_absent(clock):
    store = TrialSessionStore(InMemoryStorage({GUEST_SESSION_KEY: "garbage"}), clock)
    assert store.get() is None
    assert store.hint().status is TrialStatus.NONE


def test_store_snapshot_requires_a_record(clock):
    store = _store(clock)
    assert store.store_snapshot(Document()) is None

    store.get_or_create()
    session = store.store_snapshot(Document())
    assert session.document_snapshot == {"width": 1280, "height": 720, "layers": []}


# -- TrialGate.authorize ---------------------------------------------------------------

async def test_fresh_visitor_is_authorized(clock):
    authority = FakeTrialAuthority()
    gate = TrialGate(_store(clock), authority)
    outcome = await gate.authorize()
    assert outcome.ok
    assert outcome.value.session_id.startswith("session_")
    assert authority.validate_calls == 1


async def test_local_deny_skips_the_authority(clock):
    authority = FakeTrialAuthority()
    gate = TrialGate(_store(clock, used=1), authority)
    outcome = await gate.authorize()
    assert isinstance(outcome.error, QuotaExceededError)
    assert outcome.error.reason == "Free generation already used"
    assert authority.validate_calls == 0


async def test_remote_veto_overrides_local_allow(clock):
    gate = TrialGate(_store(clock, used=0), FakeTrialAuthority(used=1))
    outcome = await gate.authorize()
    assert isinstance(outcome.error, QuotaExceededError)
    assert outcome.error.context.trial_session_id == "session_local"


async def test_converted_identity_is_vetoed(clock):
    gate = TrialGate(_store(clock, used=0), FakeTrialAuthority(converted_to="acct_1"))
    outcome = await gate.authorize()
    assert outcome.error.reason == "Session already used"


async def test_remote_failure_fails_open(clock, caplog):
    gate = TrialGate(_store(clock, used=0), FakeTrialAuthority(down=True))
    with caplog.at_level(logging.WARNING, logger="thumbnail_ai.services.trial_gate"):
        outcome = await gate.authorize()
    assert outcome.ok
    assert "allowing attempt" in caplog.text


async def test_expired_local_record_starts_a_new_session(clock):
    store = _store(clock, used=1)
    clock.advance(25)
    outcome = await TrialGate(store, FakeTrialAuthority()).authorize()
    assert outcome.ok
    assert outcome.value.session_id != "session_local"


# -- TrialGate.record_generation -------------------------------------------------------

async def test_record_generation_mirrors_remote_count(clock):
    store = _store(clock)
    authority = FakeTrialAuthority()
    gate = TrialGate(store, authority)
    session = (await gate.authorize()).value

    await gate.record_generation(session, "fp1", "https://img/1.png")
    local = store.get()
    assert local.generations_used == 1
    assert local.asset_ref == "https://img/1.png"
    assert local.last_generation_key == "fp1"
    assert gate.local_hint().allowed is False


async def test_local_fallback_counts_each_key_once(clock):
    store = _store(clock)
    gate = TrialGate(store, FakeTrialAuthority(down=True))
    session = (await gate.authorize()).value

    await gate.record_generation(session, "fp1", "https://img/1.png")
    await gate.record_generation(session, "fp1", "https://img/1.png")
    assert store.get().generations_used == 1
