"""Regeneration decision and history models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from src.common.models.base import FrozenModel, generate_id, utc_now
from src.common.models.scene import SceneRequest


class StrategyKind(str, Enum):
    """Kind of attempt made for a scene."""

    INITIAL = "initial"
    NEXT_PROVIDER = "next_provider"
    SIMPLIFIED_PROMPT = "simplified_prompt"
    REFERENCE_IMAGE = "reference_image"
    STOCK_ASSET = "stock_asset"
    MOTION_GRAPHIC = "motion_graphic"
    TERMINAL_FAILURE = "terminal_failure"


class AttemptOutcome(str, Enum):
    """Result of one attempt as recorded in the history log."""

    APPROVED = "approved"
    NEEDS_REVIEW = "needs_review"
    REJECTED = "rejected"
    TRANSIENT_FAILURE = "transient_failure"
    PERMANENT_FAILURE = "permanent_failure"
    NO_ASSET = "no_asset"
    ANALYSIS_FAILED = "analysis_failed"


class RegenerationDecision(FrozenModel):
    """What the strategist wants the loop to do next for a scene."""

    scene_index: int
    strategy: StrategyKind
    attempt_number: int = Field(ge=0)
    provider_id: str | None = None
    request: SceneRequest | None = None
    reason: str = ""
    recommendation: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.strategy == StrategyKind.TERMINAL_FAILURE


class RegenerationHistoryEntry(FrozenModel):
    """Immutable record of one attempt. The history log only grows."""

    id: str = Field(default_factory=lambda: generate_id("regen"))
    timestamp: datetime = Field(default_factory=utc_now)

    scene_index: int
    attempt_number: int = Field(ge=0)
    strategy: StrategyKind
    provider_id: str | None = None
    request_id: str | None = None

    previous_locator: str | None = None
    new_locator: str | None = None
    outcome: AttemptOutcome
    score: float | None = None
    detail: str = ""
