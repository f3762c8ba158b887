"""API Dependencies — request-scoped collaborators shared by the route modules.

Invariants:
    - The account id is trusted as verified by the upstream identity provider
    - A missing X-Account-Id on an owner-scoped route is 401, never a silent anonymous call
    - Anthropic client is a process-wide singleton; everything holding a db session is
      built per request

Design Decisions:
    - trial_authority_url empty → the in-process SqlTrialAuthority over the same database;
      set → HttpTrialAuthority against a separate authority deployment
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from thumbnail_ai.config import get_settings
from thumbnail_ai.core.domain_types import AccountId
from thumbnail_ai.core.repository_protocols import TrialAuthority
from thumbnail_ai.infrastructure.anthropic_client import ResilientAnthropicClient
from thumbnail_ai.infrastructure.database import get_db
from thumbnail_ai.infrastructure.image_client import HttpImageGenerator
from thumbnail_ai.infrastructure.text_suggestions import AnthropicTextSuggestionGenerator
from thumbnail_ai.infrastructure.trial_authority_client import HttpTrialAuthority
from thumbnail_ai.services.generation_cache import GenerationCache, SqlCacheRepository
from thumbnail_ai.services.project_repository import SqlProjectRepository
from thumbnail_ai.services.thumbnail_generation import ThumbnailGenerationService
from thumbnail_ai.services.trial_authority import SqlTrialAuthority

_anthropic_client: ResilientAnthropicClient | None = None


def require_account_id(
    x_account_id: str | None = Header(None, max_length=128),
) -> AccountId:
    if not x_account_id or not x_account_id.strip():
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            detail={"error": {
                "code": "AUTHENTICATION_REQUIRED",
                "message": "X-Account-Id header is required",
                "category": "validation",
                "severity": "warning",
            }},
        )
    return AccountId(x_account_id.strip())


def optional_account_id(
    x_account_id: str | None = Header(None, max_length=128),
) -> AccountId | None:
    if not x_account_id or not x_account_id.strip():
        return None
    return AccountId(x_account_id.strip())


def get_project_repository(db: AsyncSession = Depends(get_db)) -> SqlProjectRepository:
    return SqlProjectRepository(db)


def get_trial_authority(db: AsyncSession = Depends(get_db)) -> TrialAuthority:
    settings = get_settings()
    if settings.trial_authority_url:
        return HttpTrialAuthority(
            settings.trial_authority_url,
            timeout=settings.trial_authority_timeout_seconds,
        )
    return SqlTrialAuthority(db)


def _get_anthropic_client() -> ResilientAnthropicClient:
    """Singleton Anthropic client, reused across requests."""
    global _anthropic_client
    if _anthropic_client is None:
        settings = get_settings()
        _anthropic_client = ResilientAnthropicClient(
            api_key=settings.anthropic_api_key,
            max_retries=settings.anthropic_max_retries,
            base_delay_ms=settings.anthropic_base_delay_ms,
            max_delay_ms=settings.anthropic_max_delay_ms,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )
    return _anthropic_client


def get_generation_service(
    db: AsyncSession = Depends(get_db),
) -> ThumbnailGenerationService:
    settings = get_settings()
    return ThumbnailGenerationService(
        image_generator=HttpImageGenerator(
            settings.image_service_url,
            api_key=settings.image_service_api_key,
            timeout=settings.image_service_timeout_seconds,
        ),
        text_generator=AnthropicTextSuggestionGenerator(
            _get_anthropic_client(),
            model=settings.text_model,
            max_tokens=settings.text_max_tokens,
            temperature=settings.text_temperature,
        ),
        cache=GenerationCache(SqlCacheRepository(db)),
        image_ttl_hours=settings.image_cache_ttl_hours,
        text_ttl_hours=settings.text_cache_ttl_hours,
    )
