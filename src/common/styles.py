"""Visual style profiles.

A style profile biases provider selection toward providers that suit the
look and supplies the fallback transition when the mood table has no entry
for a pair of scenes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.common.models.transition import Easing, TransitionType


@dataclass(frozen=True)
class StyleProfile:
    """Static style reference data."""

    id: str
    preferred_providers: tuple[str, ...] = ()
    default_transition: TransitionType = TransitionType.DISSOLVE
    default_duration_seconds: float = 0.8
    default_easing: Easing = Easing.EASE_IN_OUT
    audio_crossfade_seconds: float = 0.5
    tags: tuple[str, ...] = field(default_factory=tuple)


STYLE_PROFILES: dict[str, StyleProfile] = {
    "professional": StyleProfile(
        id="professional",
        preferred_providers=("runway", "kling", "veo"),
        default_transition=TransitionType.DISSOLVE,
        default_duration_seconds=1.0,
    ),
    "cinematic": StyleProfile(
        id="cinematic",
        preferred_providers=("veo", "runway", "kling"),
        default_transition=TransitionType.LIGHT_LEAK,
        default_duration_seconds=1.2,
        audio_crossfade_seconds=1.0,
    ),
    "lifestyle": StyleProfile(
        id="lifestyle",
        preferred_providers=("kling", "hailuo"),
        default_transition=TransitionType.DISSOLVE,
        default_duration_seconds=1.0,
    ),
    "product": StyleProfile(
        id="product",
        preferred_providers=("luma", "runway"),
        default_transition=TransitionType.FADE,
        default_duration_seconds=0.5,
        default_easing=Easing.EASE_OUT,
    ),
    "educational": StyleProfile(
        id="educational",
        preferred_providers=("hailuo", "hunyuan"),
        default_transition=TransitionType.DISSOLVE,
        default_duration_seconds=0.8,
    ),
    "energetic": StyleProfile(
        id="energetic",
        preferred_providers=("kling", "luma"),
        default_transition=TransitionType.WHIP_PAN,
        default_duration_seconds=0.6,
        default_easing=Easing.EASE_IN,
        audio_crossfade_seconds=0.2,
    ),
    "documentary": StyleProfile(
        id="documentary",
        preferred_providers=("veo", "hailuo"),
        default_transition=TransitionType.FILM_BURN,
        default_duration_seconds=1.0,
    ),
}


def get_style_profile(style_id: str) -> StyleProfile:
    """Look up a style profile, falling back to ``professional``."""
    return STYLE_PROFILES.get(style_id.lower(), STYLE_PROFILES["professional"])
