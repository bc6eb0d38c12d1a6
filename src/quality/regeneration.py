"""Regeneration strategy for rejected and needs-review scenes.

Decision order, first applicable wins:

1. regeneration budget exhausted: terminal failure
2. impossible prompt with an untried alternative approach: use it
   (reference image, stock asset or motion graphic)
3. next eligible provider in the ranking not yet tried
4. simplified prompt on the top-ranked provider, once
5. otherwise terminal failure
"""

from __future__ import annotations

from src.common.logging import get_logger
from src.common.models import (
    ComplexityAssessment,
    ComplexityCategory,
    GenerationApproach,
    ProviderProfile,
    ProviderRanking,
    RegenerationDecision,
    SceneQualityStatus,
    SceneRequest,
    StrategyKind,
)
from src.generation.complexity import simplify_prompt
from src.generation.providers import get_provider_profiles
from src.quality.registry import AssetRegistry

logger = get_logger(__name__)

STOCK_PROVIDER_ID = "stock"

APPROACH_STRATEGIES = {
    GenerationApproach.REFERENCE_IMAGE: StrategyKind.REFERENCE_IMAGE,
    GenerationApproach.STOCK_ASSET: StrategyKind.STOCK_ASSET,
    GenerationApproach.MOTION_GRAPHIC: StrategyKind.MOTION_GRAPHIC,
}


class RegenerationStrategist:
    """Chooses the next attempt for a scene.

    The strategist reads the scene's history from the project registry but
    never writes to it; recording attempts is the caller's job.
    """

    def __init__(
        self,
        registry: AssetRegistry,
        max_regenerations: int = 3,
        profiles: dict[str, ProviderProfile] | None = None,
    ):
        self.registry = registry
        self.max_regenerations = max_regenerations
        self.profiles = profiles if profiles is not None else get_provider_profiles()

    def decide(
        self,
        request: SceneRequest,
        status: SceneQualityStatus,
        ranking: ProviderRanking,
        assessment: ComplexityAssessment,
    ) -> RegenerationDecision:
        """Pick the next strategy for a scene.

        Args:
            request: The scene's most recent request
            status: Current gate status of the scene
            ranking: Provider ranking computed for the scene
            assessment: Complexity assessment of the scene prompt

        Returns:
            The decision; terminal when no attempt should be made
        """
        scene = request.scene_index
        attempt = status.regeneration_count + 1

        if status.regeneration_count >= self.max_regenerations:
            decision = self._terminal(
                scene,
                attempt,
                f"Regeneration limit reached ({self.max_regenerations})",
            )
            self._log(decision)
            return decision

        tried_strategies = self.registry.tried_strategies(scene)
        tried_providers = self.registry.tried_providers(scene)

        decision = None
        if (
            assessment.category == ComplexityCategory.IMPOSSIBLE
            and assessment.alternative_approach is not None
            and APPROACH_STRATEGIES[assessment.alternative_approach] not in tried_strategies
        ):
            decision = self._alternative(request, attempt, ranking, assessment)

        if decision is None:
            candidate = ranking.next_untried(tried_providers)
            if candidate is not None:
                decision = RegenerationDecision(
                    scene_index=scene,
                    strategy=StrategyKind.NEXT_PROVIDER,
                    attempt_number=attempt,
                    provider_id=candidate.provider_id,
                    request=request.derive(
                        approach=GenerationApproach.TEXT_TO_VIDEO,
                        reference_asset=None,
                    ),
                    reason=f"Trying {candidate.provider_id} for a different interpretation",
                )

        if decision is None and StrategyKind.SIMPLIFIED_PROMPT not in tried_strategies:
            top = ranking.top
            if top is not None and top.eligible:
                simplified = assessment.simplified_prompt or simplify_prompt(request.prompt)
                decision = RegenerationDecision(
                    scene_index=scene,
                    strategy=StrategyKind.SIMPLIFIED_PROMPT,
                    attempt_number=attempt,
                    provider_id=top.provider_id,
                    request=request.derive(
                        prompt=simplified,
                        approach=GenerationApproach.TEXT_TO_VIDEO,
                        reference_asset=None,
                    ),
                    reason="All providers tried; simplifying the prompt for the top provider",
                )

        if decision is None:
            decision = self._terminal(scene, attempt, "All regeneration strategies tried")

        self._log(decision)
        return decision

    def _alternative(
        self,
        request: SceneRequest,
        attempt: int,
        ranking: ProviderRanking,
        assessment: ComplexityAssessment,
    ) -> RegenerationDecision | None:
        """Decision for the suggested alternative approach, if it is possible."""
        approach = assessment.alternative_approach
        scene = request.scene_index

        if approach == GenerationApproach.REFERENCE_IMAGE:
            provider = self._first_image_input(ranking)
            reference = self.registry.best_asset(scene) or self.registry.current(scene)
            if provider is None or reference is None:
                return None
            return RegenerationDecision(
                scene_index=scene,
                strategy=StrategyKind.REFERENCE_IMAGE,
                attempt_number=attempt,
                provider_id=provider,
                request=request.derive(
                    approach=GenerationApproach.REFERENCE_IMAGE,
                    reference_asset=reference.locator,
                ),
                reason="Prompt is beyond text-to-video; animating the best prior result",
            )

        if approach == GenerationApproach.STOCK_ASSET:
            return RegenerationDecision(
                scene_index=scene,
                strategy=StrategyKind.STOCK_ASSET,
                attempt_number=attempt,
                provider_id=STOCK_PROVIDER_ID,
                request=request.derive(
                    approach=GenerationApproach.STOCK_ASSET,
                    reference_asset=None,
                ),
                reason="Prompt is beyond current generation models; using stock footage",
            )

        top = ranking.top
        if top is None or not top.eligible:
            return None
        simplified = assessment.simplified_prompt or simplify_prompt(request.prompt)
        return RegenerationDecision(
            scene_index=scene,
            strategy=StrategyKind.MOTION_GRAPHIC,
            attempt_number=attempt,
            provider_id=top.provider_id,
            request=request.derive(
                prompt=f"Clean motion graphic: {simplified}",
                approach=GenerationApproach.MOTION_GRAPHIC,
                reference_asset=None,
            ),
            reason="Precise motion is unreliable; switching to a motion graphic",
        )

    def _first_image_input(self, ranking: ProviderRanking) -> str | None:
        for entry in ranking.entries:
            profile = self.profiles.get(entry.provider_id)
            if entry.eligible and profile is not None and profile.capabilities.image_input:
                return entry.provider_id
        return None

    def _terminal(self, scene_index: int, attempt: int, reason: str) -> RegenerationDecision:
        best = self.registry.best_asset(scene_index)
        if best is not None:
            recommendation = (
                f"Simplify the prompt manually, or accept the best available "
                f"alternative ({best.id}, score {best.score:g})"
            )
        else:
            recommendation = "Simplify the prompt manually or replace the scene with stock footage"

        return RegenerationDecision(
            scene_index=scene_index,
            strategy=StrategyKind.TERMINAL_FAILURE,
            attempt_number=attempt,
            reason=reason,
            recommendation=recommendation,
        )

    @staticmethod
    def _log(decision: RegenerationDecision) -> None:
        logger.info(
            "regeneration_decided",
            scene_index=decision.scene_index,
            strategy=decision.strategy.value,
            provider=decision.provider_id,
            attempt=decision.attempt_number,
            reason=decision.reason,
        )
