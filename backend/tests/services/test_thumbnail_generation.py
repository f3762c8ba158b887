"""Thumbnail Generation — tests for the gate → cache → generate → count pipeline.

Invariants:
    - A cache hit skips the generator and is still counted for trial users
    - A provider failure writes no cache entry and counts nothing
    - Cache outages never fail a generation
"""

import logging

from thumbnail_ai.core.cache_key import compute_fingerprint
from thumbnail_ai.core.domain_types import (
    AspectRatio, DEFAULT_COLOR_SCHEME, Emotion, GenerationKind, ImageStyle,
)
from thumbnail_ai.core.errors import (
    ExternalGenerationError, LayerValidationError, QuotaExceededError,
)
from thumbnail_ai.core.generation_types import TextSuggestions, ThumbnailRequest
from thumbnail_ai.infrastructure.local_storage import InMemoryStorage
from thumbnail_ai.services.generation_cache import GenerationCache
from thumbnail_ai.services.thumbnail_generation import ThumbnailGenerationService
from thumbnail_ai.services.trial_gate import TrialGate
from thumbnail_ai.services.trial_store import TrialSessionStore
from tests.services.fakes import (
    DictCacheRepository, FailingCacheRepository, FakeImageGenerator,
    FakeTextGenerator, FakeTrialAuthority, provider_error,
)

REQUEST = ThumbnailRequest(
    prompt="  how to   bake sourdough  ",
    image_style=ImageStyle.ANIME,
    emotion=Emotion.HAPPY,
    aspect_ratio=AspectRatio.SQUARE,
)


def _service(clock, repository=None, image=None, text=None):
    image = image or FakeImageGenerator()
    text = text or FakeTextGenerator()
    repository = repository or DictCacheRepository()
    service = ThumbnailGenerationService(
        image, text, GenerationCache(repository, clock),
    )
    return service, image, text, repository


async def test_image_miss_generates_and_caches(clock):
    service, image, _, repository = _service(clock)
    outcome = await service.generate_image(REQUEST)

    asset = outcome.value
    assert asset.url == "https://img.test/1.png"
    assert asset.cached is False
    assert asset.fingerprint == compute_fingerprint(GenerationKind.IMAGE, {
        "prompt": "how to bake sourdough", "aspectRatio": "1:1",
        "imageStyle": "anime", "emotion": "happy",
    })
    prompt, aspect_ratio = image.calls[0]
    assert '"how to bake sourdough"' in prompt
    assert aspect_ratio is AspectRatio.SQUARE
    assert repository.types[asset.fingerprint] == "image_generation"


async def test_identical_request_is_served_from_cache(clock):
    service, image, _, _ = _service(clock)
    await service.generate_image(REQUEST)
    again = await service.generate_image(
        ThumbnailRequest("how to bake sourdough", ImageStyle.ANIME, Emotion.HAPPY, AspectRatio.SQUARE),
    )
    assert again.value.cached is True
    assert len(image.calls) == 1


async def test_image_cache_expires_after_a_week(clock):
    service, image, _, _ = _service(clock)
    await service.generate_image(REQUEST)
    clock.advance(168)
    outcome = await service.generate_image(REQUEST)
    assert outcome.value.cached is False
    assert len(image.calls) == 2


async def test_provider_failure_is_not_cached(clock):
    service, _, _, repository = _service(clock, image=FakeImageGenerator(error=provider_error()))
    outcome = await service.generate_image(REQUEST)
    assert isinstance(outcome.error, ExternalGenerationError)
    assert repository.rows == {}


async def test_blank_prompt_is_rejected(clock):
    service, image, _, _ = _service(clock)
    outcome = await service.generate_image(ThumbnailRequest("   "))
    assert isinstance(outcome.error, LayerValidationError)
    assert outcome.error.field == "prompt"
    assert image.calls == []


async def test_text_suggestions_are_cached(clock):
    service, _, text, repository = _service(clock)
    first = await service.suggest_text("my vlog")
    second = await service.suggest_text("  my   vlog ")
    assert first.value == second.value == TextSuggestions("LEARN FAST", "in one hour")
    assert text.calls == ["my vlog"]
    assert list(repository.types.values()) == ["llm_response"]


async def test_cache_outage_degrades_to_generation(clock, caplog):
    service, image, _, _ = _service(clock, repository=FailingCacheRepository())
    with caplog.at_level(logging.WARNING):
        outcome = await service.generate_thumbnail(REQUEST)
    assert outcome.ok
    assert len(image.calls) == 1
    assert "treating as miss" in caplog.text


async def test_thumbnail_uses_fallback_headline_when_text_fails(clock):
    service, _, _, _ = _service(clock, text=FakeTextGenerator(error=provider_error("parse_error")))
    outcome = await service.generate_thumbnail(REQUEST)
    result = outcome.value
    assert result.text_suggestions == TextSuggestions("HOW BAKE SOURDOUGH")
    assert result.color_scheme == DEFAULT_COLOR_SCHEME


# -- Trial-gated flow --------------------------------------------------------------------

async def test_trial_generation_is_counted_once(clock):
    service, _, _, _ = _service(clock)
    store = TrialSessionStore(InMemoryStorage(), clock)
    authority = FakeTrialAuthority()
    gate = TrialGate(store, authority)

    outcome = await service.generate_thumbnail(REQUEST, gate)
    assert outcome.ok
    assert authority.used == 1
    assert store.get().asset_ref == "https://img.test/1.png"
    assert store.get().text_suggestions == TextSuggestions("LEARN FAST", "in one hour")

    second = await service.generate_thumbnail(REQUEST, gate)
    assert isinstance(second.error, QuotaExceededError)
    assert authority.used == 1


async def test_cache_hit_still_counts_for_trial(clock):
    service, image, _, _ = _service(clock)
    await service.generate_image(REQUEST)

    authority = FakeTrialAuthority()
    gate = TrialGate(TrialSessionStore(InMemoryStorage(), clock), authority)
    outcome = await service.generate_thumbnail(REQUEST, gate)
    assert outcome.value.cached is True
    assert authority.used == 1
    assert len(image.calls) == 1


async def test_failed_trial_generation_counts_nothing(clock):
    service, _, _, _ = _service(clock, image=FakeImageGenerator(error=provider_error()))
    store = TrialSessionStore(InMemoryStorage(), clock)
    authority = FakeTrialAuthority()
    outcome = await service.generate_thumbnail(REQUEST, TrialGate(store, authority))

    assert isinstance(outcome.error, ExternalGenerationError)
    assert authority.record_calls == []
    assert store.get().generations_used == 0
