"""Thumbnail Generation — the AI request path: gate, fingerprint, cache, generate, count.

Invariants:
    - Order: trial gate -> fingerprint -> cache lookup -> external call -> cache put ->
      usage increment; nothing is written before the external call resolves
    - An ExternalGenerationError writes no cache entry and increments no usage
    - A cache hit is still a successful generation (it is counted for trial users)
    - Usage is keyed by the image fingerprint, so a retried identical request after a
      success is not counted twice
    - Cache failures degrade to a miss / a skipped write; they never fail a generation

Design Decisions:
    - Text suggestion failure falls back to a keyword headline from the prompt rather
      than failing the whole thumbnail (the image is the expensive part)
    - Identical concurrent misses are not coalesced: both call the generator and the
      second put overwrites the first
"""

import logging
from typing import Any

from thumbnail_ai.core.cache_key import compute_fingerprint
from thumbnail_ai.core.domain_types import (
    CacheType, DEFAULT_COLOR_SCHEME, Fingerprint, GenerationKind,
)
from thumbnail_ai.core.errors import (
    ExternalGenerationError, LayerValidationError, StorageError,
)
from thumbnail_ai.core.generation_types import (
    ImageAsset, TextSuggestions, ThumbnailRequest, ThumbnailResult,
    text_suggestions_from_dict,
)
from thumbnail_ai.core.outcome import Outcome
from thumbnail_ai.core.prompt_builder import (
    build_thumbnail_prompt, fallback_headline, sanitize_prompt,
)
from thumbnail_ai.core.repository_protocols import ImageGenerator, TextSuggestionGenerator
from thumbnail_ai.services.generation_cache import GenerationCache
from thumbnail_ai.services.trial_gate import TrialGate

logger = logging.getLogger(__name__)


class ThumbnailGenerationService:
    """Orchestrates cached image + text generation for one request."""

    def __init__(
        self,
        image_generator: ImageGenerator,
        text_generator: TextSuggestionGenerator,
        cache: GenerationCache,
        image_ttl_hours: float = 168,
        text_ttl_hours: float = 24,
    ):
        self.image_generator = image_generator
        self.text_generator = text_generator
        self.cache = cache
        self.image_ttl_hours = image_ttl_hours
        self.text_ttl_hours = text_ttl_hours

    async def generate_image(self, request: ThumbnailRequest) -> Outcome[ImageAsset]:
        prompt = sanitize_prompt(request.prompt)
        if not prompt:
            return Outcome.failure(
                LayerValidationError("Prompt must not be empty", field="prompt"),
            )
        fingerprint = compute_fingerprint(GenerationKind.IMAGE, request.cache_params(prompt))

        cached = await self._cache_get(fingerprint)
        if isinstance(cached, dict) and isinstance(cached.get("imageUrl"), str):
            return Outcome.success(
                ImageAsset(cached["imageUrl"], fingerprint=fingerprint, cached=True),
            )

        try:
            url = await self.image_generator.generate(
                build_thumbnail_prompt(prompt, request.image_style, request.emotion),
                request.aspect_ratio,
            )
        except ExternalGenerationError as e:
            logger.error(
                f"Image generation failed: {e.message}",
                extra={"fingerprint": fingerprint, "error_code": e.code},
            )
            return Outcome.failure(e)

        await self._cache_put(
            fingerprint, CacheType.IMAGE_GENERATION, {"imageUrl": url}, self.image_ttl_hours,
        )
        return Outcome.success(ImageAsset(url, fingerprint=fingerprint))

    async def suggest_text(self, prompt: str) -> Outcome[TextSuggestions]:
        sanitized = sanitize_prompt(prompt)
        if not sanitized:
            return Outcome.failure(
                LayerValidationError("Prompt must not be empty", field="prompt"),
            )
        fingerprint = compute_fingerprint(GenerationKind.TEXT, {"prompt": sanitized})

        cached = text_suggestions_from_dict(await self._cache_get(fingerprint))
        if cached is not None:
            return Outcome.success(cached)

        try:
            suggestions = await self.text_generator.suggest(sanitized)
        except ExternalGenerationError as e:
            logger.warning(
                f"Text suggestion failed: {e.message}",
                extra={"fingerprint": fingerprint, "error_code": e.code},
            )
            return Outcome.failure(e)

        await self._cache_put(
            fingerprint, CacheType.LLM_RESPONSE, suggestions.to_dict(), self.text_ttl_hours,
        )
        return Outcome.success(suggestions)

    async def generate_thumbnail(
        self,
        request: ThumbnailRequest,
        gate: TrialGate | None = None,
    ) -> Outcome[ThumbnailResult]:
        """Full flow. Pass a gate for anonymous (trial) callers."""
        session = None
        if gate is not None:
            authorized = await gate.authorize()
            if not authorized.ok:
                return Outcome.failure(authorized.error)
            session = authorized.value

        image = await self.generate_image(request)
        if not image.ok:
            return Outcome.failure(image.error)
        asset = image.value

        text = await self.suggest_text(request.prompt)
        suggestions = text.value if text.ok else TextSuggestions(
            headline=fallback_headline(sanitize_prompt(request.prompt)),
        )

        if gate is not None and session is not None:
            try:
                await gate.record_generation(
                    session, asset.fingerprint, asset.url, suggestions,
                )
            except StorageError as e:
                logger.warning(
                    f"Could not persist local trial usage: {e.message}",
                    extra={"trial_session_id": session.session_id},
                )

        return Outcome.success(ThumbnailResult(
            background_url=asset.url,
            text_suggestions=suggestions,
            color_scheme=DEFAULT_COLOR_SCHEME,
            cached=asset.cached,
        ))

    async def _cache_get(self, fingerprint: Fingerprint) -> Any | None:
        try:
            return await self.cache.get(fingerprint)
        except StorageError as e:
            logger.warning(
                f"Cache read failed, treating as miss: {e.message}",
                extra={"fingerprint": fingerprint, "error_code": e.code},
            )
            return None

    async def _cache_put(
        self, fingerprint: Fingerprint, cache_type: CacheType, payload: Any,
        ttl_hours: float,
    ) -> None:
        try:
            await self.cache.put(fingerprint, cache_type, payload, ttl_hours)
        except StorageError as e:
            logger.warning(
                f"Cache write failed, result not cached: {e.message}",
                extra={"fingerprint": fingerprint, "error_code": e.code},
            )
