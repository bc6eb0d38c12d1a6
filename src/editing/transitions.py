"""Scene-to-scene transition planning.

Every scene type carries a mood. Each ordered pair of moods maps to a
default transition; pairs with no entry fall back to the style profile's
default. Color and lighting continuity then adjust the choice, and the
final duration is capped relative to the shorter of the two scenes.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.common.logging import get_logger
from src.common.models import (
    Easing,
    SceneSummary,
    SceneType,
    TransitionPlan,
    TransitionType,
)
from src.common.styles import get_style_profile

logger = get_logger(__name__)

WILDCARD = "*"

SCENE_MOODS = {
    SceneType.HOOK: "attention",
    SceneType.PROBLEM: "tension",
    SceneType.AGITATION: "tension",
    SceneType.SOLUTION: "relief",
    SceneType.BENEFIT: "uplift",
    SceneType.PRODUCT: "showcase",
    SceneType.TESTIMONIAL: "trust",
    SceneType.EXPLANATION: "informative",
    SceneType.BROLL: "informative",
    SceneType.CTA: "action",
}


@dataclass(frozen=True)
class MoodTransition:
    """Default transition for a mood pair."""

    type: TransitionType
    duration_seconds: float
    easing: Easing
    audio_crossfade_seconds: float
    mood_flow: str
    reason: str


MOOD_TRANSITIONS: dict[tuple[str, str], MoodTransition] = {
    ("attention", WILDCARD): MoodTransition(
        TransitionType.FADE, 0.5, Easing.EASE_OUT, 0.3,
        "attention → focus", "Hook to content, quick engagement",
    ),
    ("tension", "relief"): MoodTransition(
        TransitionType.DISSOLVE, 1.0, Easing.EASE_IN_OUT, 1.0,
        "struggle → hope", "Problem to solution, transformation moment",
    ),
    ("tension", "uplift"): MoodTransition(
        TransitionType.DISSOLVE, 1.0, Easing.EASE_IN_OUT, 1.0,
        "struggle → hope", "Problem to benefit, transformation moment",
    ),
    ("tension", "tension"): MoodTransition(
        TransitionType.CUT, 0.0, Easing.LINEAR, 0.0,
        "building tension", "Escalating problem, hard cut keeps pressure",
    ),
    ("relief", "showcase"): MoodTransition(
        TransitionType.ZOOM, 0.6, Easing.EASE_IN_OUT, 0.4,
        "hope → reveal", "Solution to product reveal",
    ),
    ("uplift", "uplift"): MoodTransition(
        TransitionType.DISSOLVE, 0.6, Easing.EASE_IN_OUT, 0.4,
        "positive → positive", "Multiple benefits, flowing connection",
    ),
    ("informative", "informative"): MoodTransition(
        TransitionType.CUT, 0.0, Easing.LINEAR, 0.0,
        "continuous learning", "Sequential information, clean cut",
    ),
    ("trust", WILDCARD): MoodTransition(
        TransitionType.DISSOLVE, 0.8, Easing.EASE_IN_OUT, 0.6,
        "trust → momentum", "Let the testimonial land",
    ),
    (WILDCARD, "action"): MoodTransition(
        TransitionType.FADE, 0.8, Easing.EASE_IN, 0.5,
        "content → action", "Building to call-to-action",
    ),
}

# Confidence by how the transition was found
EXACT_CONFIDENCE = 0.9
WILDCARD_CONFIDENCE = 0.75
FALLBACK_CONFIDENCE = 0.5

MIN_DISSOLVE_SECONDS = 0.5


@dataclass
class TransitionConfig:
    """Adjustment limits for transition planning."""

    min_lighting_change_seconds: float = 0.8
    max_scene_fraction: float = 0.3

    @classmethod
    def from_settings(cls) -> "TransitionConfig":
        from src.common.config import get_settings

        settings = get_settings()
        return cls(
            min_lighting_change_seconds=settings.transition_min_lighting_change_seconds,
            max_scene_fraction=settings.transition_max_scene_fraction,
        )


class TransitionPlanner:
    """Plan one transition per adjacent scene pair."""

    def __init__(self, config: TransitionConfig | None = None):
        self.config = config or TransitionConfig()

    def plan(self, scenes: list[SceneSummary], style_profile: str = "professional") -> list[TransitionPlan]:
        """Plan transitions for scenes in playback order."""
        plans = [
            self.plan_pair(current, following, style_profile)
            for current, following in zip(scenes, scenes[1:])
        ]

        summary = summarize(plans)
        logger.info(
            "transitions_planned",
            count=len(plans),
            style=style_profile,
            **{k: v for k, v in summary.items() if v},
        )
        return plans

    def plan_pair(
        self,
        current: SceneSummary,
        following: SceneSummary,
        style_profile: str = "professional",
    ) -> TransitionPlan:
        from_mood = SCENE_MOODS[current.scene_type]
        to_mood = SCENE_MOODS[following.scene_type]

        rule, confidence = self._lookup(from_mood, to_mood)
        if rule is None:
            style = get_style_profile(style_profile)
            rule = MoodTransition(
                style.default_transition,
                style.default_duration_seconds,
                style.default_easing,
                style.audio_crossfade_seconds,
                f"{from_mood} → {to_mood}",
                f"{style.id.capitalize()} style default",
            )
            confidence = FALLBACK_CONFIDENCE

        transition_type = rule.type
        duration = rule.duration_seconds
        audio = rule.audio_crossfade_seconds
        reasons = [rule.reason]

        if transition_type == TransitionType.CUT and _shares_colors(current, following):
            transition_type = TransitionType.DISSOLVE
            duration = max(duration, MIN_DISSOLVE_SECONDS)
            reasons.append("shared colors, dissolve for continuity")

        if (
            current.lighting is not None
            and following.lighting is not None
            and current.lighting != following.lighting
        ):
            if transition_type == TransitionType.CUT:
                transition_type = TransitionType.DISSOLVE
            duration = max(duration, self.config.min_lighting_change_seconds)
            reasons.append(
                f"lighting changes {current.lighting.value} → {following.lighting.value}"
            )

        cap = self.config.max_scene_fraction * min(current.duration_seconds, following.duration_seconds)
        if duration > cap:
            duration = cap
            reasons.append(f"capped at {cap:.2f}s")
        audio = min(audio, cap)

        return TransitionPlan(
            from_scene=current.scene_index,
            to_scene=following.scene_index,
            type=transition_type,
            duration_seconds=round(duration, 3),
            easing=rule.easing,
            audio_crossfade=audio > 0,
            audio_crossfade_seconds=round(audio, 3),
            mood_flow=rule.mood_flow,
            confidence=confidence,
            reason="; ".join(reasons),
        )

    @staticmethod
    def _lookup(from_mood: str, to_mood: str) -> tuple[MoodTransition | None, float]:
        """Exact pair first, then from-wildcard, then to-wildcard."""
        if (from_mood, to_mood) in MOOD_TRANSITIONS:
            return MOOD_TRANSITIONS[(from_mood, to_mood)], EXACT_CONFIDENCE
        if (from_mood, WILDCARD) in MOOD_TRANSITIONS:
            return MOOD_TRANSITIONS[(from_mood, WILDCARD)], WILDCARD_CONFIDENCE
        if (WILDCARD, to_mood) in MOOD_TRANSITIONS:
            return MOOD_TRANSITIONS[(WILDCARD, to_mood)], WILDCARD_CONFIDENCE
        return None, FALLBACK_CONFIDENCE


def _shares_colors(a: SceneSummary, b: SceneSummary) -> bool:
    return bool(
        {c.lower() for c in a.dominant_colors} & {c.lower() for c in b.dominant_colors}
    )


def summarize(plans: list[TransitionPlan]) -> dict[str, int]:
    """Count planned transitions by type."""
    counts = {t.value: 0 for t in TransitionType}
    for plan in plans:
        counts[plan.type.value] += 1
    return counts
