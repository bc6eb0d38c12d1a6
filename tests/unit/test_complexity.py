"""Unit tests for prompt complexity assessment."""

import pytest

from src.common.models import (
    ComplexityCategory,
    Difficulty,
    FactorKind,
    GenerationApproach,
)
from src.generation import ComplexityAssessor, assess_prompt, simplify_prompt


class TestComplexityAssessor:
    """Tests for ComplexityAssessor."""

    @pytest.fixture
    def assessor(self):
        return ComplexityAssessor()

    def test_simple_prompt(self, assessor):
        """Test that a plain prompt has no factors."""
        result = assessor.assess("A family enjoying breakfast at a sunny kitchen table")

        assert result.category == ComplexityCategory.SIMPLE
        assert result.score == 0.0
        assert result.factors == ()
        assert result.simplified_prompt is None
        assert result.alternative_approach is None
        assert result.warning is None

    def test_impossible_prompt(self, assessor):
        """Test the canonical hand/material/motion prompt."""
        result = assessor.assess("Hands stretching translucent dough outward")

        assert result.category == ComplexityCategory.IMPOSSIBLE
        assert result.score == pytest.approx(1.0)

        action = result.factor(FactorKind.SPECIFIC_ACTION)
        material = result.factor(FactorKind.MATERIAL_PROPERTY)
        motion = result.factor(FactorKind.PRECISE_MOTION)
        assert action.difficulty == Difficulty.VERY_HARD
        assert material.difficulty == Difficulty.VERY_HARD
        assert motion.difficulty == Difficulty.HARD
        assert "translucent" in material.matched

        # Action and material tie; the action dimension wins
        assert result.alternative_approach == GenerationApproach.STOCK_ASSET
        assert "impossible" in result.warning

    def test_impossible_prompt_routing(self, assessor):
        """Test that hand and food subjects steer provider choice."""
        result = assessor.assess("Hands stretching translucent dough outward")

        assert "kling" in result.recommended_providers
        assert "runway" in result.recommended_providers
        assert "hunyuan" in result.avoided_providers
        assert "hailuo" in result.avoided_providers
        assert not set(result.recommended_providers) & set(result.avoided_providers)

    def test_simplified_prompt_strips_material_and_motion(self, assessor):
        result = assessor.assess("Hands stretching translucent dough outward")

        assert result.simplified_prompt == "Hands stretching dough"

    def test_complex_prompt_warning(self, assessor):
        """Test that complex prompts name their very hard factors."""
        result = assessor.assess("Glass of liquid on a table")

        # Very hard material alone is 0.4: moderate
        assert result.category == ComplexityCategory.MODERATE

        result = assessor.assess("Pouring viscous honey")
        assert result.category == ComplexityCategory.COMPLEX
        assert "material properties" in result.warning
        assert result.alternative_approach == GenerationApproach.REFERENCE_IMAGE

    def test_motion_keywords(self, assessor):
        """Test that counter-clockwise is not also counted as clockwise."""
        result = assessor.assess("Logo spinning slowly counter-clockwise then upward")

        motion = result.factor(FactorKind.PRECISE_MOTION)
        assert motion.difficulty == Difficulty.VERY_HARD
        assert "clockwise" not in motion.matched
        assert result.factor(FactorKind.TEMPORAL_SEQUENCE) is not None
        assert result.category == ComplexityCategory.MODERATE

    def test_motion_dominant_alternative(self, assessor):
        """Test that precise motion suggests a motion graphic."""
        result = assessor.assess("Rolling smooth ball slowly upward")

        assert result.category == ComplexityCategory.COMPLEX
        assert result.alternative_approach == GenerationApproach.MOTION_GRAPHIC

    @pytest.mark.parametrize("prompt", [
        "After kneading, the baker shapes the loaf",
        "Dough rises, then goes into the oven",
        "Baker dusts flour and finally slices the bread",
    ])
    def test_temporal_sequence_detected(self, assessor, prompt):
        result = assessor.assess(prompt)

        assert result.factor(FactorKind.TEMPORAL_SEQUENCE) is not None

    @pytest.mark.parametrize("prompt", [
        "Customer smiling while holding a coffee",
        "Croissants next to the window",
        "Bakery storefront after sunset",
        "Busy counter during the morning rush",
    ])
    def test_lone_time_word_is_not_a_sequence(self, assessor, prompt):
        """Test that a single time word without two ordered actions adds nothing."""
        result = assessor.assess(prompt)

        assert result.factor(FactorKind.TEMPORAL_SEQUENCE) is None

    def test_element_penalty_is_capped(self, assessor):
        """Test that many named objects add at most the cap."""
        result = assessor.assess(
            "flour, sugar, salt, herbs, spices, whisk and spatula on a counter"
        )

        elements = result.factor(FactorKind.ELEMENT_COUNT)
        assert elements is not None
        assert elements.weight == pytest.approx(0.2)

    def test_single_element_not_penalized(self, assessor):
        result = assessor.assess("A bag of flour on a shelf")

        assert result.factor(FactorKind.ELEMENT_COUNT) is None

    def test_whole_word_matching(self, assessor):
        """Test that keywords inside longer words do not match."""
        result = assessor.assess("Softball team at the park")

        assert result.factor(FactorKind.MATERIAL_PROPERTY) is None

    def test_deterministic(self, assessor):
        prompt = "Chef slicing wet herbs quickly then plating"
        assert assessor.assess(prompt) == assessor.assess(prompt)

    def test_assess_prompt_wrapper(self):
        assert assess_prompt("Hands stretching translucent dough outward").category == (
            ComplexityCategory.IMPOSSIBLE
        )


class TestSimplifyPrompt:
    """Tests for simplify_prompt."""

    def test_removes_keywords(self):
        assert simplify_prompt("Glossy bottle turning slowly") == "bottle turning"

    def test_multi_word_phrases_first(self):
        assert simplify_prompt("Camera pans from left to right") == "Camera pans"

    def test_cleans_commas(self):
        assert simplify_prompt("Dough, translucent, on a board") == "Dough, on a board"

    def test_never_returns_empty(self):
        assert simplify_prompt("translucent") == "translucent"
