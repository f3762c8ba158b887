"""Trial Session — tests for the local hint, remote validation rules and record parsing.

Invariants:
    - A record expires exactly 24h after creation
    - Converted wins over expiry and over remaining allowance
    - Any malformed record reads as absent (None), never raises
"""

from datetime import datetime, timedelta, timezone

import pytest

from thumbnail_ai.core.domain_types import MAX_FREE_GENERATIONS, TrialStatus
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.trial_session import (
    create_trial_session, is_expired, local_hint, remaining_generations,
    trial_session_from_record, trial_session_to_record, validate_remote_record,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_new_session_id_format():
    session = create_trial_session(NOW)
    assert session.session_id.startswith("session_")
    assert session.generations_used == 0
    assert session.expires_at == NOW + timedelta(hours=24)


def test_expiry_boundary():
    session = create_trial_session(NOW)
    assert not is_expired(session, NOW + timedelta(hours=23, minutes=59))
    assert is_expired(session, NOW + timedelta(hours=24))


def test_remaining_is_clamped_at_zero():
    assert remaining_generations(0) == MAX_FREE_GENERATIONS
    assert remaining_generations(5) == 0


# -- local_hint ------------------------------------------------------------------

def test_hint_without_record_allows_full_allowance():
    hint = local_hint(None, NOW)
    assert hint.allowed is True
    assert hint.generations_remaining == MAX_FREE_GENERATIONS
    assert hint.status is TrialStatus.NONE


def test_hint_after_generation_denies():
    session = create_trial_session(NOW)
    session.generations_used = 1
    hint = local_hint(session, NOW)
    assert hint.allowed is False
    assert hint.status is TrialStatus.ACTIVE


def test_hint_for_expired_record():
    hint = local_hint(create_trial_session(NOW), NOW + timedelta(days=2))
    assert hint.allowed is False
    assert hint.status is TrialStatus.EXPIRED


# -- validate_remote_record ------------------------------------------------------

def test_remote_unused_record_is_valid():
    result = validate_remote_record(0, NOW + timedelta(hours=1), None, NOW)
    assert result.valid is True
    assert result.generations_remaining == 1
    assert result.reason is None


def test_remote_used_record_is_invalid():
    result = validate_remote_record(1, NOW + timedelta(hours=1), None, NOW)
    assert result.valid is False
    assert result.reason == "Free generation already used"


def test_remote_expired_record_is_invalid():
    result = validate_remote_record(0, NOW - timedelta(seconds=1), None, NOW)
    assert result.valid is False
    assert result.reason == "Session expired"


def test_remote_converted_wins_over_everything():
    result = validate_remote_record(0, NOW - timedelta(days=9), "acct_1", NOW)
    assert result.valid is False
    assert result.converted_to == "acct_1"
    assert result.reason == "Session already used"


# -- Record (de)serialisation -------------------------------------------------------

def test_record_round_trip():
    session = create_trial_session(NOW, session_id="session_x")
    session.generations_used = 1
    session.asset_ref = "https://img/1.png"
    session.text_suggestions = TextSuggestions("BIG NEWS", "today")
    session.document_snapshot = {"width": 1280, "height": 720, "layers": []}
    session.last_generation_key = "abc"

    record = trial_session_to_record(session)
    assert record["sessionId"] == "session_x"
    assert record["generationsUsed"] == 1
    assert record["canvasState"] == session.document_snapshot
    assert trial_session_from_record(record) == session


@pytest.mark.parametrize("record", [
    None,
    "session_x",
    {},
    {"sessionId": "", "generationsUsed": 0, "createdAt": NOW.isoformat()},
    {"sessionId": "s", "generationsUsed": -1, "createdAt": NOW.isoformat()},
    {"sessionId": "s", "generationsUsed": True, "createdAt": NOW.isoformat()},
    {"sessionId": "s", "generationsUsed": "1", "createdAt": NOW.isoformat()},
    {"sessionId": "s", "generationsUsed": 0, "createdAt": "yesterday"},
    {"sessionId": "s", "generationsUsed": 0},
])
def test_malformed_records_read_as_absent(record):
    assert trial_session_from_record(record) is None


def test_optional_fields_of_wrong_type_are_dropped():
    session = trial_session_from_record({
        "sessionId": "s", "generationsUsed": 0, "createdAt": NOW.isoformat(),
        "assetRef": 5, "textSuggestions": "BIG", "canvasState": [],
    })
    assert session.asset_ref is None
    assert session.text_suggestions is None
    assert session.document_snapshot is None
