"""HTTP Trial Authority Client — TrialAuthority over the /trial/sessions API.

Invariants:
    - Transport failures, timeouts and non-2xx responses raise StorageError
      (the gate fails open on them for validation, transfer reports them)
    - All calls are idempotent on the server, so a caller may retry any of them

Design Decisions:
    - Lets a browser-facing deployment use a separate authority service while the
      services layer stays unaware of which TrialAuthority it has
"""

import logging
from typing import Any

import httpx

from thumbnail_ai.core.domain_types import AccountId, TrialSessionId
from thumbnail_ai.core.errors import StorageError
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.trial_session import TransferResult, TrialValidation

logger = logging.getLogger(__name__)


class HttpTrialAuthority:
    """TrialAuthority implementation calling a remote ThumbnailAI API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def validate(self, session_id: TrialSessionId) -> TrialValidation:
        data = await self._request("POST", f"/trial/sessions/{session_id}/validate", "validate")
        return TrialValidation(
            valid=bool(data.get("valid")),
            generations_remaining=int(data.get("generations_remaining", 0)),
            converted_to=data.get("converted_to"),
            reason=data.get("reason"),
        )

    async def sync(
        self, session_id: TrialSessionId, generations_used: int,
        asset_ref: str | None = None,
    ) -> int:
        data = await self._request(
            "PUT", f"/trial/sessions/{session_id}", "sync",
            json={"generations_used": generations_used, "asset_ref": asset_ref},
        )
        return _generations_used(data, "sync")

    async def record_generation(
        self, session_id: TrialSessionId, generation_key: str,
        asset_ref: str | None = None,
        text_suggestions: TextSuggestions | None = None,
    ) -> int:
        data = await self._request(
            "POST", f"/trial/sessions/{session_id}/generations", "record_generation",
            json={
                "generation_key": generation_key,
                "asset_ref": asset_ref,
                "text_suggestions": text_suggestions.to_dict() if text_suggestions else None,
            },
        )
        return _generations_used(data, "record_generation")

    async def convert(
        self, session_id: TrialSessionId, account_id: AccountId,
        document_snapshot: dict | None = None,
    ) -> TransferResult:
        data = await self._request(
            "POST", f"/trial/sessions/{session_id}/transfer", "convert",
            json={"document_snapshot": document_snapshot},
            headers={"X-Account-Id": account_id},
        )
        return TransferResult(
            transferred=bool(data.get("transferred")),
            project_id=data.get("project_id"),
            already_converted=bool(data.get("already_converted")),
            converted_to=data.get("converted_to"),
            remote_record_found=bool(data.get("remote_record_found", True)),
        )

    async def _request(
        self, method: str, path: str, operation: str, **kwargs: Any,
    ) -> dict:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Trial authority unreachable during {operation}: {e}")
            raise StorageError(f"Trial authority unreachable: {e}", operation)

        if response.status_code >= 400:
            raise StorageError(
                f"Trial authority returned HTTP {response.status_code}", operation,
            )
        try:
            data = response.json()
        except ValueError:
            raise StorageError("Trial authority returned invalid JSON", operation)
        if not isinstance(data, dict):
            raise StorageError("Trial authority returned unexpected payload", operation)
        return data


def _generations_used(data: dict, operation: str) -> int:
    value = data.get("generations_used")
    if not isinstance(value, int) or isinstance(value, bool):
        raise StorageError("Trial authority response missing generations_used", operation)
    return value
