"""Prompt complexity models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from src.common.models.base import FrozenModel
from src.common.models.scene import GenerationApproach


class ComplexityCategory(str, Enum):
    """Bucketed difficulty of a generation prompt."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    IMPOSSIBLE = "impossible"


class FactorKind(str, Enum):
    """Dimension along which a prompt is hard to generate."""

    SPECIFIC_ACTION = "specific-action"
    MATERIAL_PROPERTY = "material-property"
    PRECISE_MOTION = "precise-motion"
    ELEMENT_COUNT = "element-count"
    TEMPORAL_SEQUENCE = "temporal-sequence"


class Difficulty(str, Enum):
    """Weight class of a detected factor."""

    EASY = "easy"
    HARD = "hard"
    VERY_HARD = "very-hard"


class DifficultyFactor(FrozenModel):
    """One detected difficulty factor with the keywords that triggered it."""

    kind: FactorKind
    difficulty: Difficulty = Difficulty.EASY
    matched: tuple[str, ...] = ()
    weight: float = Field(ge=0, default=0.0)


class ComplexityAssessment(FrozenModel):
    """Intrinsic difficulty of a scene prompt, independent of any provider."""

    score: float = Field(ge=0, le=1)
    category: ComplexityCategory
    factors: tuple[DifficultyFactor, ...] = ()

    simplified_prompt: str | None = None
    alternative_approach: GenerationApproach | None = None

    recommended_providers: tuple[str, ...] = ()
    avoided_providers: tuple[str, ...] = ()
    warning: str | None = None

    @property
    def is_hard(self) -> bool:
        """True for complex and impossible prompts."""
        return self.category in (ComplexityCategory.COMPLEX, ComplexityCategory.IMPOSSIBLE)

    def factor(self, kind: FactorKind) -> DifficultyFactor | None:
        """Return the detected factor of the given kind, if any."""
        for factor in self.factors:
            if factor.kind == kind:
                return factor
        return None

    def hard_factor_kinds(self) -> set[FactorKind]:
        """Kinds detected at hard or very-hard difficulty."""
        return {
            f.kind for f in self.factors
            if f.difficulty in (Difficulty.HARD, Difficulty.VERY_HARD)
        }
