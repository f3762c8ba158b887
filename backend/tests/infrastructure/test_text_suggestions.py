"""Text Suggestions — tests for response parsing and the Anthropic-backed generator."""

from types import SimpleNamespace

import pytest

from thumbnail_ai.core.errors import ExternalGenerationError
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.infrastructure.text_suggestions import (
    AnthropicTextSuggestionGenerator, parse_suggestions,
)


def test_parse_plain_json():
    assert parse_suggestions('{"headline": " BIG ", "subheadline": "deal"}') == (
        TextSuggestions("BIG", "deal")
    )


def test_parse_json_wrapped_in_prose():
    content = 'Sure!\n```json\n{"headline": "WOW"}\n```'
    assert parse_suggestions(content) == TextSuggestions("WOW", "")


@pytest.mark.parametrize("content", [
    "", "no json here", "{not: json}", '{"subheadline": "only"}', '{"headline": "  "}',
])
def test_unusable_content_is_parse_error(content):
    with pytest.raises(ExternalGenerationError) as exc_info:
        parse_suggestions(content)
    assert exc_info.value.provider_error_type == "parse_error"


class _FakeClient:
    def __init__(self, text):
        self.text = text
        self.calls = []

    async def create_message(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(content=[
            SimpleNamespace(type="text", text=self.text),
        ])


async def test_generator_sends_prompt_and_parses():
    client = _FakeClient('{"headline": "COOK LIKE A PRO", "subheadline": "in 10 min"}')
    generator = AnthropicTextSuggestionGenerator(client, model="claude-test", max_tokens=50)

    suggestions = await generator.suggest("quick pasta recipe")
    assert suggestions == TextSuggestions("COOK LIKE A PRO", "in 10 min")
    call = client.calls[0]
    assert call["model"] == "claude-test"
    assert call["max_tokens"] == 50
    assert call["messages"][0]["content"] == (
        'Generate thumbnail text for this video: "quick pasta recipe"'
    )
