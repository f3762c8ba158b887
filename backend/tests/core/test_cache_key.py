"""Cache Key — tests for fingerprint determinism and the strict expiry rule."""

from datetime import datetime, timedelta, timezone

from thumbnail_ai.core.cache_key import (
    canonicalize_params, compute_fingerprint, ensure_utc, expiry_for, is_live,
)
from thumbnail_ai.core.domain_types import AspectRatio, GenerationKind

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_fingerprint_ignores_insertion_order():
    assert compute_fingerprint("image", {"a": 1, "b": 2}) == compute_fingerprint("image", {"b": 2, "a": 1})


def test_fingerprint_changes_with_any_value():
    assert compute_fingerprint("image", {"a": 1, "b": 2}) != compute_fingerprint("image", {"a": 1, "b": 3})


def test_fingerprint_changes_with_kind():
    params = {"prompt": "cats"}
    assert compute_fingerprint(GenerationKind.TEXT, params) != compute_fingerprint(GenerationKind.IMAGE, params)


def test_enum_kind_equals_its_value():
    params = {"prompt": "cats"}
    assert compute_fingerprint(GenerationKind.TEXT, params) == compute_fingerprint("text", params)


def test_fingerprint_is_sha256_hex():
    fingerprint = compute_fingerprint("text", {})
    assert len(fingerprint) == 64
    int(fingerprint, 16)


def test_canonical_form():
    assert canonicalize_params({"b": None, "a": 1, "c": AspectRatio.WIDE}) == "a:1|b:null|c:16:9"


def test_ensure_utc_only_touches_naive_values():
    naive = datetime(2026, 1, 1)
    assert ensure_utc(naive).tzinfo is timezone.utc
    assert ensure_utc(NOW) is NOW


def test_entry_is_dead_at_exact_expiry():
    expires_at = expiry_for(NOW, 24)
    assert expires_at == NOW + timedelta(hours=24)
    assert is_live(expires_at, NOW + timedelta(hours=23, minutes=59))
    assert not is_live(expires_at, expires_at)


def test_is_live_compares_naive_rows_as_utc():
    naive_expiry = datetime(2026, 1, 2, 12, 0)
    assert is_live(naive_expiry, NOW)
