"""Scene-to-scene transition models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from src.common.models.base import FrozenModel
from src.common.models.frame import LightingType
from src.common.models.scene import SceneType


class TransitionType(str, Enum):
    """Type of transition between scenes."""

    CUT = "cut"
    FADE = "fade"
    DISSOLVE = "dissolve"
    WIPE = "wipe"
    ZOOM = "zoom"
    SLIDE = "slide"
    LIGHT_LEAK = "light_leak"
    WHIP_PAN = "whip_pan"
    FILM_BURN = "film_burn"


class Easing(str, Enum):
    """Easing curve for a transition."""

    LINEAR = "linear"
    EASE_IN = "ease-in"
    EASE_OUT = "ease-out"
    EASE_IN_OUT = "ease-in-out"


class SceneSummary(FrozenModel):
    """What the planner needs to know about one scene."""

    scene_index: int
    scene_type: SceneType
    duration_seconds: float = Field(gt=0)
    dominant_colors: tuple[str, ...] = ()
    lighting: LightingType | None = None


class TransitionPlan(FrozenModel):
    """Transition between two adjacent scenes."""

    from_scene: int
    to_scene: int
    type: TransitionType = TransitionType.CUT
    duration_seconds: float = Field(ge=0, default=0.0)
    easing: Easing = Easing.LINEAR
    audio_crossfade: bool = False
    audio_crossfade_seconds: float = Field(ge=0, default=0.0)
    mood_flow: str = ""
    confidence: float = Field(ge=0, le=1, default=0.5)
    reason: str = ""
