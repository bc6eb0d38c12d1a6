"""Unit tests for provider selection and request shaping."""

import pytest

from src.common.models import (
    ComplexityCategory,
    ContentType,
    SceneRequest,
    SceneType,
)
from src.generation import (
    ComplexityAssessor,
    DEFAULT_PROVIDER_PROFILES,
    ProviderSelector,
    get_provider_profiles,
    shape_request,
)
from src.generation.provider_selector import MOTION_TIER_BONUS


@pytest.fixture
def selector():
    return ProviderSelector()


@pytest.fixture
def assessor():
    return ComplexityAssessor()


class TestProviderSelector:
    """Tests for ProviderSelector.rank."""

    def test_ranks_every_provider(self, selector, assessor, simple_request):
        ranking = selector.rank(simple_request, assessor.assess(simple_request.prompt))

        assert sorted(ranking.provider_ids) == sorted(p.id for p in DEFAULT_PROVIDER_PROFILES)
        assert ranking.scene_index == simple_request.scene_index
        assert ranking.request_id == simple_request.id

    def test_strength_match_wins(self, selector, assessor, simple_request):
        """Test that a provider strong at both content and scene type ranks first."""
        ranking = selector.rank(simple_request, assessor.assess(simple_request.prompt))

        assert ranking.top.provider_id == "kling"
        assert ranking.entries[0].score == 120

    def test_ties_broken_by_cost(self, selector, assessor, simple_request):
        """Test that equal scores fall back to the cheaper provider."""
        ranking = selector.rank(simple_request, assessor.assess(simple_request.prompt))

        tail = [e.provider_id for e in ranking.entries if e.score == 50]
        assert tail == ["hailuo", "hunyuan", "luma"]

    def test_deterministic(self, selector, assessor, impossible_request):
        assessment = assessor.assess(impossible_request.prompt)

        first = selector.rank(impossible_request, assessment)
        second = selector.rank(impossible_request, assessment)

        assert first.provider_ids == second.provider_ids

    def test_impossible_prompt_prefers_high_tier(self, selector, assessor, impossible_request):
        """Test that an impossible prompt never goes to a basic-motion provider first."""
        assessment = assessor.assess(impossible_request.prompt)
        assert assessment.category == ComplexityCategory.IMPOSSIBLE

        ranking = selector.rank(impossible_request, assessment)
        profiles = get_provider_profiles()

        top = profiles[ranking.top.provider_id]
        assert MOTION_TIER_BONUS[top.capabilities.motion_quality] > 0
        assert ranking.top.provider_id == "runway"
        assert ranking.provider_ids[-2:] == ["hunyuan", "hailuo"]
        assert any("impossible" in w for w in ranking.warnings)

    def test_avoided_provider_penalized(self, selector, assessor, impossible_request):
        ranking = selector.rank(impossible_request, assessor.assess(impossible_request.prompt))

        hunyuan = next(e for e in ranking.entries if e.provider_id == "hunyuan")
        assert "Avoided for this prompt" in hunyuan.reasons

    def test_weakness_on_hard_factor(self, selector, assessor, impossible_request):
        """Test that a provider weak at a detected hard factor is penalized."""
        ranking = selector.rank(impossible_request, assessor.assess(impossible_request.prompt))

        hailuo = next(e for e in ranking.entries if e.provider_id == "hailuo")
        assert "Weak at specific-action" in hailuo.reasons
        assert "Weak at material-property" in hailuo.reasons

    def test_over_duration_ineligible(self, selector, assessor):
        """Test that providers that cannot produce the clip length are ineligible."""
        request = SceneRequest(
            scene_index=0,
            scene_type=SceneType.BROLL,
            content_type=ContentType.NATURE,
            prompt="Forest canopy at dawn",
            duration_seconds=8,
        )

        ranking = selector.rank(request, assessor.assess(request.prompt))
        ineligible = {e.provider_id for e in ranking.entries if not e.eligible}

        assert ineligible == {"luma", "hailuo", "hunyuan"}
        assert ranking.top.eligible
        assert all(e.eligible for e in ranking.entries[:3])

    def test_no_eligible_provider_warns(self, selector, assessor):
        request = SceneRequest(
            scene_index=0,
            scene_type=SceneType.BROLL,
            content_type=ContentType.NATURE,
            prompt="Forest canopy at dawn",
            duration_seconds=30,
        )

        ranking = selector.rank(request, assessor.assess(request.prompt))

        assert not any(e.eligible for e in ranking.entries)
        assert ranking.next_untried(set()) is None
        assert any("No provider supports" in w for w in ranking.warnings)

    def test_style_preference(self, assessor):
        """Test that the style profile shifts the order."""
        selector = ProviderSelector()
        base = SceneRequest(
            scene_index=0,
            scene_type=SceneType.BROLL,
            content_type=ContentType.ABSTRACT,
            prompt="Soft gradient shapes",
            duration_seconds=5,
        )
        educational = base.derive(style_profile="educational")

        a = selector.rank(base, assessor.assess(base.prompt))
        b = selector.rank(educational, assessor.assess(educational.prompt))

        assert a.provider_ids != b.provider_ids

    def test_select_for_project(self, selector, assessor, ad_requests):
        assessments = {r.scene_index: assessor.assess(r.prompt) for r in ad_requests}

        rankings = selector.select_for_project(ad_requests, assessments)

        assert set(rankings) == {0, 1, 2, 3}
        assert selector.estimate_cost(ad_requests, rankings) > 0


class TestShapeRequest:
    """Tests for provider payload shaping."""

    @pytest.fixture
    def profiles(self):
        return get_provider_profiles()

    def test_every_provider_has_payload(self, profiles, simple_request):
        for profile in profiles.values():
            payload = shape_request(profile, simple_request)
            assert payload["scene_index"] == simple_request.scene_index
            assert payload["request_id"] == simple_request.id

    def test_runway_snaps_duration(self, profiles, simple_request):
        payload = shape_request(profiles["runway"], simple_request.derive(duration_seconds=8))

        assert payload["duration"] == 10
        assert payload["promptText"] == simple_request.prompt

    def test_duration_clamped_to_provider_max(self, profiles, simple_request):
        payload = shape_request(profiles["luma"], simple_request.derive(duration_seconds=8))

        assert payload["input"]["duration"] == 5

    def test_reference_image_only_for_image_input(self, profiles, simple_request):
        request = simple_request.derive(reference_asset="mem://ref.png")

        kling = shape_request(profiles["kling"], request)
        hailuo = shape_request(profiles["hailuo"], request)

        assert kling["input"]["image"] == "mem://ref.png"
        assert "image" not in hailuo["input"]
