"""Prompt Builder: user prompt sanitising and thumbnail image prompt assembly.

Invariants:
    - sanitize_prompt output has no leading/trailing whitespace, no whitespace runs,
      and at most MAX_PROMPT_LENGTH characters before collapsing
    - Every ImageStyle and Emotion has an instruction entry
    - fallback_headline never raises: empty prompt -> empty headline

Design Decisions:
    - Instruction tables keyed by Enum; unknown values fall back to AUTO / EXCITED
"""

import re

from thumbnail_ai.core.domain_types import Emotion, ImageStyle

MAX_PROMPT_LENGTH = 500
FALLBACK_HEADLINE_WORDS = 4

STYLE_VISUAL_INSTRUCTIONS: dict[ImageStyle, str] = {
    ImageStyle.CINEMATIC: (
        "PHOTOREALISTIC cinematic film photography, professional DSLR camera quality, "
        "dramatic natural lighting, movie-quality composition, ultra-detailed, 8K quality"
    ),
    ImageStyle.SCENE_3D: (
        "High-end 3D rendered scene, Unreal Engine 5 quality, photorealistic 3D rendering "
        "with ray-traced lighting, professional 3D visualization"
    ),
    ImageStyle.ANIME: (
        "Professional anime illustration style, studio-quality anime art, vibrant bold "
        "colors, clean linework with dynamic shading"
    ),
    ImageStyle.ARTISTIC: (
        "Fine art painting style, museum-quality artwork, masterful brushwork, rich "
        "harmonious colors"
    ),
    ImageStyle.DIGITAL_ART: (
        "Modern digital illustration, trending ArtStation quality, clean polished digital "
        "aesthetic, bold colors with smooth gradients"
    ),
    ImageStyle.EDUCATIONAL: (
        "Clean professional educational content style, modern minimalist approach, high "
        "contrast for readability, organized structured composition"
    ),
    ImageStyle.FANTASY_WORLD: (
        "Epic fantasy/sci-fi scene, concept art quality, otherworldly imaginative "
        "settings, dramatic atmospheric lighting"
    ),
    ImageStyle.PROTOTYPING: (
        "Clean modern UI/UX mockup style, professional product design, contemporary tech "
        "mockup aesthetic"
    ),
    ImageStyle.AUTO: (
        "Professional high-quality visuals, cinematic composition, dramatic yet balanced "
        "lighting"
    ),
}

EMOTION_ATMOSPHERE_INSTRUCTIONS: dict[Emotion, str] = {
    Emotion.EXCITED: (
        "Energetic vibrant atmosphere, bright uplifting colors, dynamic composition, "
        "sense of movement and energy"
    ),
    Emotion.SHOCKED: (
        "Dramatic intense atmosphere, high contrast lighting, bold striking colors, "
        "tension and impact"
    ),
    Emotion.CURIOUS: (
        "Mysterious intriguing atmosphere, subtle layered lighting, thought-provoking depth"
    ),
    Emotion.HAPPY: (
        "Bright cheerful atmosphere, warm inviting colors, welcoming positive composition"
    ),
    Emotion.SERIOUS: (
        "Professional focused atmosphere, clean structured lighting, authoritative "
        "confident composition"
    ),
}

BASE_THUMBNAIL_PROMPT = """Create a professional YouTube thumbnail background image.

USER'S VIDEO DESCRIPTION:
"{user_prompt}"

CRITICAL INTERPRETATION RULES:
- Interpret the topic THEMATICALLY and CONCEPTUALLY, never literally
- "Crash course" means tutorial/lesson, NOT a car crash
- "Killing it" means success, NOT violence
- Focus on what would visually represent this video's content to viewers
- Create imagery viewers would associate with this type of content

VISUAL STYLE:
{style_instructions}

MOOD & ATMOSPHERE:
{emotion_instructions}

COMPOSITION REQUIREMENTS:
- Professional YouTube thumbnail aesthetic (16:9 mindset)
- Clear focal point with visual hierarchy
- Leave space for text overlay (top or bottom third)
- Eye-catching but not cluttered
- High visual impact at small preview sizes

RESTRICTIONS:
- NO text, letters, words, numbers, or typography in the image
- NO watermarks or logos
- Focus purely on visual imagery and atmosphere

Create a stunning thumbnail background that captures the essence of the video topic."""

TEXT_SUGGESTION_SYSTEM_PROMPT = """You are a YouTube thumbnail text expert. Generate short, impactful text for thumbnails.

RULES:
- HEADLINE: 2-8 words max, punchy and attention-grabbing, ALL CAPS works great
- SUBHEADLINE: Optional, 2-6 words, adds context or intrigue
- Use power words that create curiosity, urgency, or emotion
- Text must be complete and make sense on its own
- Match the energy and topic of the video description
- For tutorials: emphasize the skill or outcome
- For entertainment: emphasize drama, humor, or shock value
- For educational: emphasize the key insight or benefit

Respond ONLY with valid JSON: {"headline": "YOUR TEXT", "subheadline": "OPTIONAL TEXT"}"""

_WHITESPACE = re.compile(r"\s+")


def sanitize_prompt(prompt: str) -> str:
    """Trim, truncate to MAX_PROMPT_LENGTH, collapse whitespace runs to one space."""
    sanitized = prompt.strip()[:MAX_PROMPT_LENGTH]
    return _WHITESPACE.sub(" ", sanitized).strip()


def build_thumbnail_prompt(
    user_prompt: str,
    image_style: ImageStyle = ImageStyle.CINEMATIC,
    emotion: Emotion = Emotion.EXCITED,
) -> str:
    return BASE_THUMBNAIL_PROMPT.format(
        user_prompt=user_prompt,
        style_instructions=STYLE_VISUAL_INSTRUCTIONS.get(
            image_style, STYLE_VISUAL_INSTRUCTIONS[ImageStyle.AUTO],
        ),
        emotion_instructions=EMOTION_ATMOSPHERE_INSTRUCTIONS.get(
            emotion, EMOTION_ATMOSPHERE_INSTRUCTIONS[Emotion.EXCITED],
        ),
    )


def build_text_suggestion_prompt(user_prompt: str) -> str:
    return f'Generate thumbnail text for this video: "{user_prompt}"'


def fallback_headline(prompt: str) -> str:
    """Keyword headline used when text generation fails: first words longer than 2 chars."""
    words = [w for w in prompt.split(" ") if len(w) > 2][:FALLBACK_HEADLINE_WORDS]
    return " ".join(words).upper()

