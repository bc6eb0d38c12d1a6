"""Unit tests for the regeneration strategist."""

import pytest

from src.common.models import (
    AttemptOutcome,
    ComplexityAssessment,
    ComplexityCategory,
    GeneratedAsset,
    GenerationApproach,
    ProviderRanking,
    RankedProvider,
    RegenerationHistoryEntry,
    SceneQualityStatus,
    SceneStatus,
    StrategyKind,
)
from src.generation import ComplexityAssessor, ProviderSelector
from src.quality import STOCK_PROVIDER_ID, RegenerationStrategist


def _status(scene_index, regeneration_count=0):
    return SceneQualityStatus(
        scene_index=scene_index,
        status=SceneStatus.REJECTED,
        score=55,
        regeneration_count=regeneration_count,
    )


def _record(registry, scene_index, strategy, provider_id, attempt=0):
    registry.append(RegenerationHistoryEntry(
        scene_index=scene_index,
        attempt_number=attempt,
        strategy=strategy,
        provider_id=provider_id,
        outcome=AttemptOutcome.REJECTED,
    ))


def _ranking(scene_index, *provider_ids):
    return ProviderRanking(
        scene_index=scene_index,
        request_id="req_1",
        entries=tuple(
            RankedProvider(provider_id=p, score=100 - i) for i, p in enumerate(provider_ids)
        ),
    )


@pytest.fixture
def strategist(registry):
    return RegenerationStrategist(registry, max_regenerations=3)


class TestRegenerationStrategist:
    """Tests for RegenerationStrategist.decide."""

    def test_next_provider(self, strategist, registry, simple_request):
        """Test that a rejected scene moves to the next untried provider."""
        assessment = ComplexityAssessor().assess(simple_request.prompt)
        ranking = _ranking(0, "kling", "runway", "veo")
        _record(registry, 0, StrategyKind.INITIAL, "kling")

        decision = strategist.decide(simple_request, _status(0), ranking, assessment)

        assert decision.strategy == StrategyKind.NEXT_PROVIDER
        assert decision.provider_id == "runway"
        assert decision.attempt_number == 1
        assert decision.request.parent_request_id == simple_request.id

    def test_impossible_prompt_goes_to_stock(self, strategist, registry, impossible_request):
        """Test that an impossible prompt switches approach instead of provider."""
        assessor = ComplexityAssessor()
        assessment = assessor.assess(impossible_request.prompt)
        ranking = ProviderSelector().rank(impossible_request, assessment)
        _record(registry, 1, StrategyKind.INITIAL, ranking.top.provider_id)

        decision = strategist.decide(impossible_request, _status(1), ranking, assessment)

        assert decision.strategy == StrategyKind.STOCK_ASSET
        assert decision.provider_id == STOCK_PROVIDER_ID
        assert decision.request.approach == GenerationApproach.STOCK_ASSET

    def test_alternative_tried_once(self, strategist, registry, impossible_request):
        """Test that the alternative approach is not repeated."""
        assessment = ComplexityAssessor().assess(impossible_request.prompt)
        ranking = ProviderSelector().rank(impossible_request, assessment)
        _record(registry, 1, StrategyKind.INITIAL, "runway")
        _record(registry, 1, StrategyKind.STOCK_ASSET, STOCK_PROVIDER_ID, attempt=1)

        decision = strategist.decide(impossible_request, _status(1, 1), ranking, assessment)

        assert decision.strategy == StrategyKind.NEXT_PROVIDER
        assert decision.provider_id == "luma"
        assert decision.request.approach == GenerationApproach.TEXT_TO_VIDEO

    def test_reference_image_uses_best_asset(self, strategist, registry, simple_request):
        assessment = ComplexityAssessment(
            score=0.9,
            category=ComplexityCategory.IMPOSSIBLE,
            alternative_approach=GenerationApproach.REFERENCE_IMAGE,
        )
        ranking = _ranking(0, "hailuo", "kling")
        asset = registry.add_asset(GeneratedAsset(
            scene_index=0,
            provider_id="hailuo",
            request_id=simple_request.id,
            locator="mem://first",
        ))
        registry.record_score(asset.id, 61)

        decision = strategist.decide(simple_request, _status(0), ranking, assessment)

        # hailuo has no image input, so the first image-capable provider is used
        assert decision.strategy == StrategyKind.REFERENCE_IMAGE
        assert decision.provider_id == "kling"
        assert decision.request.reference_asset == "mem://first"

    def test_reference_image_without_asset_falls_through(self, strategist, simple_request):
        assessment = ComplexityAssessment(
            score=0.9,
            category=ComplexityCategory.IMPOSSIBLE,
            alternative_approach=GenerationApproach.REFERENCE_IMAGE,
        )

        decision = strategist.decide(simple_request, _status(0), _ranking(0, "kling"), assessment)

        assert decision.strategy == StrategyKind.NEXT_PROVIDER

    def test_motion_graphic(self, strategist, simple_request):
        assessment = ComplexityAssessment(
            score=0.85,
            category=ComplexityCategory.IMPOSSIBLE,
            alternative_approach=GenerationApproach.MOTION_GRAPHIC,
            simplified_prompt="Logo on a table",
        )

        decision = strategist.decide(simple_request, _status(0), _ranking(0, "veo", "kling"), assessment)

        assert decision.strategy == StrategyKind.MOTION_GRAPHIC
        assert decision.provider_id == "veo"
        assert decision.request.prompt == "Clean motion graphic: Logo on a table"

    def test_simplified_prompt_after_all_providers(self, strategist, registry, simple_request):
        assessment = ComplexityAssessor().assess(simple_request.prompt)
        ranking = _ranking(0, "kling", "runway")
        _record(registry, 0, StrategyKind.INITIAL, "kling")
        _record(registry, 0, StrategyKind.NEXT_PROVIDER, "runway", attempt=1)

        decision = strategist.decide(simple_request, _status(0, 1), ranking, assessment)

        assert decision.strategy == StrategyKind.SIMPLIFIED_PROMPT
        assert decision.provider_id == "kling"

    def test_everything_tried_is_terminal(self, strategist, registry, simple_request):
        assessment = ComplexityAssessor().assess(simple_request.prompt)
        ranking = _ranking(0, "kling")
        _record(registry, 0, StrategyKind.INITIAL, "kling")
        _record(registry, 0, StrategyKind.SIMPLIFIED_PROMPT, "kling", attempt=1)

        decision = strategist.decide(simple_request, _status(0, 1), ranking, assessment)

        assert decision.is_terminal
        assert decision.reason == "All regeneration strategies tried"
        assert decision.recommendation

    def test_budget_exhausted_is_terminal(self, strategist, registry, simple_request):
        """Test that the budget check comes before any strategy."""
        assessment = ComplexityAssessor().assess(simple_request.prompt)
        asset = registry.add_asset(GeneratedAsset(
            scene_index=0,
            provider_id="kling",
            request_id=simple_request.id,
            locator="mem://best",
        ))
        registry.record_score(asset.id, 68)

        decision = strategist.decide(
            simple_request,
            _status(0, 3),
            _ranking(0, "kling", "runway"),
            assessment,
        )

        assert decision.is_terminal
        assert "limit" in decision.reason
        assert asset.id in decision.recommendation
        assert decision.provider_id is None
