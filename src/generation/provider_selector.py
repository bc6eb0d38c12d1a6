"""Provider selection for scene generation.

Ranks every provider in the catalogue for a scene request. The result is a
full preference order, not a single winner, so a regeneration can advance
down the list without recomputing anything.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.common.logging import get_logger
from src.common.models import (
    ComplexityAssessment,
    ComplexityCategory,
    MotionQuality,
    ProviderProfile,
    ProviderRanking,
    RankedProvider,
    SceneRequest,
    TemporalConsistency,
)
from src.common.styles import get_style_profile
from src.generation.providers import DEFAULT_PROVIDER_PROFILES

logger = get_logger(__name__)


MOTION_TIER_BONUS = {
    MotionQuality.BASIC: 0,
    MotionQuality.GOOD: 5,
    MotionQuality.EXCELLENT: 12,
    MotionQuality.CINEMATIC: 20,
}

CONSISTENCY_TIER_BONUS = {
    TemporalConsistency.LOW: 0,
    TemporalConsistency.MEDIUM: 4,
    TemporalConsistency.HIGH: 8,
}


@dataclass(frozen=True)
class SelectionWeights:
    """Score adjustments applied by the selector."""

    base: float = 50.0
    strength_match: float = 30.0
    weakness_match: float = -20.0
    style_preference: tuple[float, ...] = (15.0, 10.0, 5.0)
    impossible_tier_multiplier: float = 1.5
    over_duration: float = -1000.0
    recommended: float = 40.0
    avoided: float = -60.0


class ProviderSelector:
    """Rank generation providers for a scene.

    Deterministic: the same request, assessment and catalogue always yield
    the same ordered ranking. Ties are broken by lower cost per second, then
    by provider id.
    """

    def __init__(
        self,
        profiles: tuple[ProviderProfile, ...] | list[ProviderProfile] | None = None,
        weights: SelectionWeights | None = None,
    ):
        self.profiles = tuple(profiles) if profiles is not None else DEFAULT_PROVIDER_PROFILES
        self.weights = weights or SelectionWeights()

    def get_profile(self, provider_id: str) -> ProviderProfile | None:
        for profile in self.profiles:
            if profile.id == provider_id:
                return profile
        return None

    def rank(self, request: SceneRequest, assessment: ComplexityAssessment) -> ProviderRanking:
        """Score every provider and return them best first."""
        entries = [self._score(profile, request, assessment) for profile in self.profiles]

        costs = {p.id: p.cost_per_second for p in self.profiles}
        entries.sort(key=lambda e: (-e.score, costs[e.provider_id], e.provider_id))

        warnings: list[str] = []
        if assessment.warning:
            warnings.append(assessment.warning)
        if not any(e.eligible for e in entries):
            warnings.append(
                f"No provider supports {request.duration_seconds}s clips; "
                "shorten the scene or split it"
            )

        ranking = ProviderRanking(
            scene_index=request.scene_index,
            request_id=request.id,
            entries=tuple(entries),
            warnings=tuple(warnings),
        )

        top = ranking.top
        logger.debug(
            "providers_ranked",
            scene_index=request.scene_index,
            top=top.provider_id if top else None,
            order=ranking.provider_ids,
            category=assessment.category.value,
        )
        return ranking

    def _score(
        self,
        profile: ProviderProfile,
        request: SceneRequest,
        assessment: ComplexityAssessment,
    ) -> RankedProvider:
        w = self.weights
        score = w.base
        reasons: list[str] = []
        eligible = True

        # Strengths
        if request.content_type.value in profile.strengths:
            score += w.strength_match
            reasons.append(f"Strong at {request.content_type.value} content")
        if request.scene_type.value in profile.strengths:
            score += w.strength_match
            reasons.append(f"Strong at {request.scene_type.value} scenes")

        # Weaknesses, including hard complexity factors
        weak_tags = {request.content_type.value, request.scene_type.value}
        weak_tags.update(kind.value for kind in assessment.hard_factor_kinds())
        for tag in profile.weaknesses:
            if tag in weak_tags:
                score += w.weakness_match
                reasons.append(f"Weak at {tag}")

        # Style profile preference
        style = get_style_profile(request.style_profile)
        if profile.id in style.preferred_providers:
            position = style.preferred_providers.index(profile.id)
            if position < len(w.style_preference):
                score += w.style_preference[position]
                reasons.append(f"Preferred for {style.id} style")

        # Harder prompts go to higher-fidelity providers
        if assessment.category in (ComplexityCategory.COMPLEX, ComplexityCategory.IMPOSSIBLE):
            caps = profile.capabilities
            bonus = MOTION_TIER_BONUS[caps.motion_quality] + CONSISTENCY_TIER_BONUS[caps.temporal_consistency]
            if assessment.category == ComplexityCategory.IMPOSSIBLE:
                bonus *= w.impossible_tier_multiplier
            if bonus:
                score += bonus
                reasons.append(f"{caps.motion_quality.value} motion for {assessment.category.value} prompt")

        # Duration limit
        if request.duration_seconds > profile.capabilities.max_duration_seconds:
            score += w.over_duration
            eligible = False
            reasons.append(
                f"Max duration {profile.capabilities.max_duration_seconds}s "
                f"< {request.duration_seconds}s"
            )

        # Explicit signals from the complexity assessment
        if profile.id in assessment.recommended_providers:
            score += w.recommended
            reasons.append("Recommended for this prompt")
        if profile.id in assessment.avoided_providers:
            score += w.avoided
            reasons.append("Avoided for this prompt")

        return RankedProvider(
            provider_id=profile.id,
            score=round(score, 2),
            reasons=tuple(reasons),
            eligible=eligible,
        )

    def select_for_project(
        self,
        requests: list[SceneRequest],
        assessments: dict[int, ComplexityAssessment],
    ) -> dict[int, ProviderRanking]:
        """Rank providers for every scene of a project.

        Args:
            requests: Scene requests in scene order
            assessments: Complexity assessment per scene index

        Returns:
            Ranking per scene index
        """
        rankings = {
            request.scene_index: self.rank(request, assessments[request.scene_index])
            for request in requests
        }

        usage: dict[str, int] = {}
        for ranking in rankings.values():
            top = ranking.top
            if top:
                usage[top.provider_id] = usage.get(top.provider_id, 0) + 1

        logger.info(
            "project_providers_selected",
            scenes=len(rankings),
            provider_usage=usage,
            warnings=sum(len(r.warnings) for r in rankings.values()),
        )
        return rankings

    def estimate_cost(
        self,
        requests: list[SceneRequest],
        rankings: dict[int, ProviderRanking],
    ) -> float:
        """Estimated cost of generating every scene with its top provider."""
        total = 0.0
        for request in requests:
            top = rankings[request.scene_index].top
            profile = self.get_profile(top.provider_id) if top else None
            if profile is None:
                continue
            total += profile.cost_for(request.duration_seconds)
        return round(total, 4)
