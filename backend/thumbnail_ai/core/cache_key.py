"""Cache Key: deterministic fingerprint of a generation request, plus expiry rules.

Invariants:
    - compute_fingerprint is independent of params insertion order
    - Any change to kind, a key, or a value yields a different fingerprint
    - An entry is live only while now < expires_at (strict): expired is a logical miss

Design Decisions:
    - Canonical form "k1:v1|k2:v2" sorted by key, None rendered as "null", then
      SHA-256 over "<kind>:<canonical>"
"""

import hashlib
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from thumbnail_ai.core.domain_types import Fingerprint, GenerationKind

PARAM_SEPARATOR = "|"


def canonicalize_params(params: dict[str, Any]) -> str:
    """Sort keys lexicographically and join key:value pairs."""
    return PARAM_SEPARATOR.join(
        f"{key}:{_render(params[key])}" for key in sorted(params)
    )


def compute_fingerprint(kind: GenerationKind | str, params: dict[str, Any]) -> Fingerprint:
    """SHA-256 hex digest of the kind plus the canonical params string."""
    kind_value = kind.value if isinstance(kind, Enum) else str(kind)
    payload = f"{kind_value}:{canonicalize_params(params)}"
    return Fingerprint(hashlib.sha256(payload.encode("utf-8")).hexdigest())


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def expiry_for(now: datetime, ttl_hours: float) -> datetime:
    return ensure_utc(now) + timedelta(hours=ttl_hours)


def is_live(expires_at: datetime, now: datetime) -> bool:
    return ensure_utc(now) < ensure_utc(expires_at)


def _render(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
