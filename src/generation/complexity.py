"""Prompt complexity assessment.

Scores how hard a scene prompt is for current generation models,
independent of which provider will attempt it. The assessment is a pure
function of the prompt text: keyword matching across three dimensions
(specific physical actions, material properties, precise motion), plus a
penalty per extra named object and a flat bonus for required temporal
sequences.
"""

from __future__ import annotations

import re

from src.common.logging import get_logger
from src.common.models import (
    ComplexityAssessment,
    ComplexityCategory,
    Difficulty,
    DifficultyFactor,
    FactorKind,
    GenerationApproach,
)

logger = get_logger(__name__)


SPECIFIC_ACTION_KEYWORDS = (
    "stretching", "pulling", "kneading", "folding", "twisting",
    "pouring", "dripping", "splashing", "melting", "freezing",
    "cracking", "breaking", "tearing", "cutting", "slicing",
    "threading", "weaving", "sewing", "typing", "writing",
    "peeling", "rolling", "flipping", "tossing", "catching",
    "stirring", "mixing", "whisking", "grinding", "chopping",
)

MATERIAL_PROPERTY_KEYWORDS = (
    "translucent", "transparent", "opaque", "glossy", "matte",
    "liquid", "viscous", "stretchy", "elastic", "rigid",
    "soft", "fluffy", "crispy", "crunchy", "smooth",
    "wet", "dry", "steaming", "bubbling", "fizzing",
    "shiny", "reflective", "glowing", "sparkling", "shimmering",
)

# Properties current models consistently get wrong
VERY_HARD_MATERIALS = frozenset({
    "translucent", "transparent", "liquid", "viscous", "reflective", "glowing",
})

PRECISE_MOTION_KEYWORDS = (
    "counter-clockwise", "clockwise", "outward", "inward",
    "slowly", "quickly", "precisely", "carefully",
    "from left to right", "from top to bottom",
    "in circular motion", "back and forth",
    "upward", "downward", "sideways", "diagonal",
)

NAMED_ELEMENTS = (
    "pizza dough", "bread dough", "pasta", "rolling pin",
    "wooden spoon", "chef knife", "cutting board",
    "mortar and pestle", "whisk", "spatula", "ladle",
    "herbs", "spices", "flour", "sugar", "salt",
)

# Connectors that order two actions on their own
SEQUENCE_CONNECTORS = ("then", "finally", "as soon as", "followed by")

# Markers that order actions only when they open a clause ("after X, Y")
ORDERING_MARKERS = ("after", "before", "until", "once")

HAND_KEYWORDS = ("hand", "hands", "finger", "fingers")

# Dimension weights by difficulty
ACTION_WEIGHTS = {Difficulty.EASY: 0.2, Difficulty.HARD: 0.3, Difficulty.VERY_HARD: 0.4}
MATERIAL_WEIGHTS = {Difficulty.EASY: 0.2, Difficulty.HARD: 0.3, Difficulty.VERY_HARD: 0.4}
MOTION_WEIGHTS = {Difficulty.EASY: 0.1, Difficulty.HARD: 0.2, Difficulty.VERY_HARD: 0.3}

EXTRA_ELEMENT_PENALTY = 0.05
MAX_ELEMENT_PENALTY = 0.2
TEMPORAL_SEQUENCE_BONUS = 0.1

# Category lower bounds, checked from the top
CATEGORY_THRESHOLDS = (
    (0.8, ComplexityCategory.IMPOSSIBLE),
    (0.5, ComplexityCategory.COMPLEX),
    (0.3, ComplexityCategory.MODERATE),
)

# Which alternative to suggest when a dimension dominates
DIMENSION_ALTERNATIVES = {
    FactorKind.SPECIFIC_ACTION: GenerationApproach.STOCK_ASSET,
    FactorKind.MATERIAL_PROPERTY: GenerationApproach.REFERENCE_IMAGE,
    FactorKind.PRECISE_MOTION: GenerationApproach.MOTION_GRAPHIC,
}

# Subject keywords -> (recommended providers, avoided providers)
SUBJECT_ROUTING: tuple[tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]], ...] = (
    (HAND_KEYWORDS, ("kling", "runway"), ("hailuo", "hunyuan")),
    (("food", "dough", "cooking", "baking"), ("kling", "luma"), ("hunyuan",)),
    (("product", "bottle", "package"), ("luma", "runway", "veo"), ()),
    (("nature", "forest", "landscape"), ("veo", "hailuo"), ()),
    (("person", "face", "people"), ("kling", "runway"), ("hailuo",)),
    (("cinematic", "dramatic", "epic"), ("veo", "runway"), ()),
)


def _contains(text: str, phrase: str) -> bool:
    """Whole-word (or whole-phrase) match."""
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def _matches(text: str, keywords: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(k for k in keywords if _contains(text, k))


def simplify_prompt(prompt: str, keywords: tuple[str, ...] | None = None) -> str:
    """Strip difficulty keywords from a prompt.

    With no explicit keyword list, every material and motion keyword is
    removed. Returns the original prompt if nothing would be left.
    """
    if keywords is None:
        keywords = MATERIAL_PROPERTY_KEYWORDS + PRECISE_MOTION_KEYWORDS

    simplified = prompt
    # Longest first so multi-word phrases go before their parts
    for keyword in sorted(keywords, key=len, reverse=True):
        simplified = re.sub(rf"\b{re.escape(keyword)}\b", "", simplified, flags=re.IGNORECASE)

    simplified = re.sub(r"\s+", " ", simplified)
    simplified = re.sub(r"\s+,", ",", simplified)
    simplified = re.sub(r",\s*,", ",", simplified)
    simplified = simplified.strip().strip(",").strip()

    return simplified or prompt


class ComplexityAssessor:
    """Assess scene prompts for intrinsic generation difficulty."""

    def assess(self, prompt: str) -> ComplexityAssessment:
        """Return a fresh assessment for the prompt. Deterministic."""
        text = prompt.lower()

        factors = [
            f for f in (
                self._action_factor(text),
                self._material_factor(text),
                self._motion_factor(text),
                self._element_factor(text),
                self._temporal_factor(text),
            )
            if f is not None
        ]

        score = min(1.0, round(sum(f.weight for f in factors), 4))
        category = self._categorize(score)

        simplified = None
        alternative = None
        if category in (ComplexityCategory.COMPLEX, ComplexityCategory.IMPOSSIBLE):
            stripped = tuple(
                keyword
                for f in factors
                if f.kind in (FactorKind.MATERIAL_PROPERTY, FactorKind.PRECISE_MOTION)
                for keyword in f.matched
            )
            simplified = simplify_prompt(prompt, stripped)
            alternative = self._alternative_for(factors)

        recommended, avoided = self._route_subjects(text)

        assessment = ComplexityAssessment(
            score=score,
            category=category,
            factors=tuple(factors),
            simplified_prompt=simplified,
            alternative_approach=alternative,
            recommended_providers=recommended,
            avoided_providers=avoided,
            warning=self._warning(category, factors),
        )

        logger.debug(
            "complexity_assessed",
            score=score,
            category=category.value,
            factors=[f.kind.value for f in factors],
            prompt=prompt[:60],
        )
        return assessment

    def _action_factor(self, text: str) -> DifficultyFactor | None:
        found = _matches(text, SPECIFIC_ACTION_KEYWORDS)
        if not found:
            return None

        if _matches(text, HAND_KEYWORDS):
            difficulty = Difficulty.VERY_HARD
        elif len(found) > 1:
            difficulty = Difficulty.HARD
        else:
            difficulty = Difficulty.EASY

        return DifficultyFactor(
            kind=FactorKind.SPECIFIC_ACTION,
            difficulty=difficulty,
            matched=found,
            weight=ACTION_WEIGHTS[difficulty],
        )

    def _material_factor(self, text: str) -> DifficultyFactor | None:
        found = _matches(text, MATERIAL_PROPERTY_KEYWORDS)
        if not found:
            return None

        if any(k in VERY_HARD_MATERIALS for k in found):
            difficulty = Difficulty.VERY_HARD
        elif len(found) > 1:
            difficulty = Difficulty.HARD
        else:
            difficulty = Difficulty.EASY

        return DifficultyFactor(
            kind=FactorKind.MATERIAL_PROPERTY,
            difficulty=difficulty,
            matched=found,
            weight=MATERIAL_WEIGHTS[difficulty],
        )

    def _motion_factor(self, text: str) -> DifficultyFactor | None:
        found = _matches(text, PRECISE_MOTION_KEYWORDS)
        # "counter-clockwise" also contains "clockwise"
        if "counter-clockwise" in found:
            found = tuple(k for k in found if k != "clockwise")
        if not found:
            return None

        difficulty = Difficulty.VERY_HARD if len(found) > 1 else Difficulty.HARD
        return DifficultyFactor(
            kind=FactorKind.PRECISE_MOTION,
            difficulty=difficulty,
            matched=found,
            weight=MOTION_WEIGHTS[difficulty],
        )

    def _element_factor(self, text: str) -> DifficultyFactor | None:
        found = _matches(text, NAMED_ELEMENTS)
        extra = max(0, len(found) - 1)
        if extra == 0:
            return None

        return DifficultyFactor(
            kind=FactorKind.ELEMENT_COUNT,
            difficulty=Difficulty.HARD if extra > 2 else Difficulty.EASY,
            matched=found,
            weight=min(extra * EXTRA_ELEMENT_PENALTY, MAX_ELEMENT_PENALTY),
        )

    def _temporal_factor(self, text: str) -> DifficultyFactor | None:
        """A required order of two actions, e.g. "after X, then Y"."""
        found = _matches(text, SEQUENCE_CONNECTORS) + tuple(
            marker for marker in ORDERING_MARKERS
            if re.search(rf"\b{marker}\b[^,.;]+,\s*\w", text)
        )
        if not found:
            return None

        return DifficultyFactor(
            kind=FactorKind.TEMPORAL_SEQUENCE,
            difficulty=Difficulty.HARD,
            matched=found,
            weight=TEMPORAL_SEQUENCE_BONUS,
        )

    @staticmethod
    def _categorize(score: float) -> ComplexityCategory:
        for lower_bound, category in CATEGORY_THRESHOLDS:
            if score >= lower_bound:
                return category
        return ComplexityCategory.SIMPLE

    @staticmethod
    def _alternative_for(factors: list[DifficultyFactor]) -> GenerationApproach | None:
        """Pick the alternative for the heaviest dimension.

        Ties go to the earlier dimension (action, then material, then motion).
        """
        best: DifficultyFactor | None = None
        for factor in factors:
            if factor.kind not in DIMENSION_ALTERNATIVES:
                continue
            if best is None or factor.weight > best.weight:
                best = factor
        return DIMENSION_ALTERNATIVES[best.kind] if best else None

    @staticmethod
    def _route_subjects(text: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
        recommended: list[str] = []
        avoided: list[str] = []
        for keywords, best, avoid in SUBJECT_ROUTING:
            if not _matches(text, keywords):
                continue
            recommended.extend(p for p in best if p not in recommended)
            avoided.extend(p for p in avoid if p not in avoided)

        # An avoid signal outranks a recommendation for the same provider
        recommended = [p for p in recommended if p not in avoided]
        return tuple(recommended), tuple(avoided)

    @staticmethod
    def _warning(category: ComplexityCategory, factors: list[DifficultyFactor]) -> str | None:
        if category == ComplexityCategory.IMPOSSIBLE:
            return (
                "This visual direction is extremely specific and may be impossible "
                "for current AI video models. Consider stock footage or a simpler prompt."
            )

        if category == ComplexityCategory.COMPLEX:
            labels = {
                FactorKind.SPECIFIC_ACTION: "specific hand/body actions",
                FactorKind.MATERIAL_PROPERTY: "material properties (translucent, liquid, etc.)",
                FactorKind.PRECISE_MOTION: "precise motion direction",
            }
            issues = [
                labels[f.kind]
                for f in factors
                if f.kind in labels and f.difficulty == Difficulty.VERY_HARD
            ]
            if issues:
                return (
                    f"This prompt has complex requirements ({', '.join(issues)}) that AI "
                    "video models struggle with. Consider simplifying or using a reference image."
                )

        return None


def assess_prompt(prompt: str) -> ComplexityAssessment:
    """Convenience wrapper around :class:`ComplexityAssessor`."""
    return ComplexityAssessor().assess(prompt)
