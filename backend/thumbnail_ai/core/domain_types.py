"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - LayerId, TrialSessionId, AccountId, Fingerprint wrap str; ProjectId wraps UUID
    - Every valid state is encoded as an Enum (no raw string matching in domain logic)
    - MAX_FREE_GENERATIONS is the single source of truth for the trial allowance

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (canvas snapshots are JSON)
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

LayerId = NewType("LayerId", str)              # "layer_<uuid4>"
TrialSessionId = NewType("TrialSessionId", str)  # "session_<uuid4>"
AccountId = NewType("AccountId", str)          # issued by the identity provider
ProjectId = NewType("ProjectId", UUID)
Fingerprint = NewType("Fingerprint", str)      # sha256 hex


# ─── Limits & Defaults ───────────────────────────────────────────

MAX_FREE_GENERATIONS = 1
TRIAL_SESSION_TTL_HOURS = 24

CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720

TEXT_FILL = "#FFFFFF"
TEXT_STROKE = "#000000"
SHAPE_FILL = "#8B5CF6"
DEFAULT_COLOR_SCHEME = ("#8B5CF6", "#D946EF", "#FFFFFF", "#000000")


# ─── Enums ───────────────────────────────────────────────────────

class LayerType(str, Enum):
    """Layer variant discriminator, the `type` key of a layer snapshot."""
    TEXT = "text"
    IMAGE = "image"
    SHAPE = "shape"


class ShapeType(str, Enum):
    """Shape kinds. add_layer accepts these names directly as a kind."""
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    STAR = "star"
    ARROW = "arrow"
    LINE = "line"


class Direction(str, Enum):
    """Stacking move direction. UP = towards the viewer (higher z_index)."""
    UP = "up"
    DOWN = "down"


class TrialStatus(str, Enum):
    """Trial lifecycle: NONE -> ACTIVE -> {EXPIRED | CONVERTED}."""
    NONE = "none"
    ACTIVE = "active"
    EXPIRED = "expired"
    CONVERTED = "converted"


class CacheType(str, Enum):
    """Cache entry discriminator, maps to `cache_entries.cache_type`."""
    LLM_RESPONSE = "llm_response"
    IMAGE_GENERATION = "image_generation"


class GenerationKind(str, Enum):
    """Fingerprint namespace for cacheable requests."""
    TEXT = "text"
    IMAGE = "image"


class ImageStyle(str, Enum):
    AUTO = "auto"
    CINEMATIC = "cinematic"
    SCENE_3D = "3d_scene"
    ANIME = "anime"
    ARTISTIC = "artistic"
    DIGITAL_ART = "digital_art"
    EDUCATIONAL = "educational"
    FANTASY_WORLD = "fantasy_world"
    PROTOTYPING = "prototyping"


class Emotion(str, Enum):
    EXCITED = "excited"
    SHOCKED = "shocked"
    CURIOUS = "curious"
    HAPPY = "happy"
    SERIOUS = "serious"


class AspectRatio(str, Enum):
    WIDE = "16:9"
    SQUARE = "1:1"
    STANDARD = "4:3"
    PORTRAIT = "3:4"
    TALL = "9:16"
