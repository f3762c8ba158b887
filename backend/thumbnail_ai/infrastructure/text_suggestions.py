"""Anthropic Text Suggestions — headline/subheadline generation via ResilientAnthropicClient.

Invariants:
    - suggest() returns TextSuggestions with a non-empty headline or raises
      ExternalGenerationError (empty, non-JSON, or wrong-shape responses)
    - Provider failures arrive already mapped by ResilientAnthropicClient

Design Decisions:
    - JSON is extracted from the first {...} span: models sometimes wrap it in prose
      or a code fence
"""

import json
import logging
import re

from thumbnail_ai.core.errors import ExternalGenerationError
from thumbnail_ai.core.generation_types import TextSuggestions, text_suggestions_from_dict
from thumbnail_ai.core.prompt_builder import (
    TEXT_SUGGESTION_SYSTEM_PROMPT, build_text_suggestion_prompt,
)
from thumbnail_ai.infrastructure.anthropic_client import ResilientAnthropicClient

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def parse_suggestions(content: str) -> TextSuggestions:
    """Parse the model's JSON answer. Raises ExternalGenerationError on bad output."""
    match = _JSON_OBJECT.search(content or "")
    if match is None:
        raise ExternalGenerationError("No JSON object in response", "parse_error")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExternalGenerationError(f"Invalid JSON: {e.msg}", "parse_error")
    suggestions = text_suggestions_from_dict(data)
    if suggestions is None or not suggestions.headline.strip():
        raise ExternalGenerationError("Response has no headline", "parse_error")
    return TextSuggestions(
        headline=suggestions.headline.strip(),
        subheadline=suggestions.subheadline.strip(),
    )


class AnthropicTextSuggestionGenerator:
    """TextSuggestionGenerator backed by the Anthropic Messages API."""

    def __init__(
        self,
        client: ResilientAnthropicClient,
        model: str,
        max_tokens: int = 100,
        temperature: float = 0.8,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def suggest(self, prompt: str) -> TextSuggestions:
        response = await self.client.create_message(
            model=self.model,
            max_tokens=self.max_tokens,
            system=TEXT_SUGGESTION_SYSTEM_PROMPT,
            messages=[{
                "role": "user",
                "content": build_text_suggestion_prompt(prompt),
            }],
            temperature=self.temperature,
        )
        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
        return parse_suggestions(text)
