"""Generation provider models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from src.common.models.base import FrozenModel


class MotionQuality(str, Enum):
    """Motion fidelity tier of a provider."""

    BASIC = "basic"
    GOOD = "good"
    EXCELLENT = "excellent"
    CINEMATIC = "cinematic"


class TemporalConsistency(str, Enum):
    """Frame-to-frame consistency tier of a provider."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Resolution(str, Enum):
    """Maximum output resolution."""

    HD = "720p"
    FULL_HD = "1080p"
    UHD = "4k"


class ProviderCapabilities(FrozenModel):
    """Static capability flags of a provider."""

    text_input: bool = True
    image_input: bool = False
    max_duration_seconds: float = Field(gt=0, default=5.0)
    max_resolution: Resolution = Resolution.FULL_HD
    motion_quality: MotionQuality = MotionQuality.GOOD
    temporal_consistency: TemporalConsistency = TemporalConsistency.MEDIUM


class ProviderProfile(FrozenModel):
    """Read-only reference data for one generation provider."""

    id: str
    name: str
    capabilities: ProviderCapabilities = Field(default_factory=ProviderCapabilities)
    strengths: tuple[str, ...] = ()
    weaknesses: tuple[str, ...] = ()
    cost_per_second: float = Field(ge=0, default=0.0)

    def cost_for(self, duration_seconds: float) -> float:
        """Estimated cost of generating the given duration."""
        return round(duration_seconds * self.cost_per_second, 4)


class RankedProvider(FrozenModel):
    """One entry of a provider ranking."""

    provider_id: str
    score: float
    reasons: tuple[str, ...] = ()
    eligible: bool = True

    @property
    def reason(self) -> str:
        """Human-readable reason string."""
        return "; ".join(self.reasons) or "Default selection"


class ProviderRanking(FrozenModel):
    """Preference-ordered providers for one scene request."""

    scene_index: int
    request_id: str
    entries: tuple[RankedProvider, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def provider_ids(self) -> list[str]:
        return [e.provider_id for e in self.entries]

    @property
    def top(self) -> RankedProvider | None:
        """Best eligible provider, or the best overall if none is eligible."""
        for entry in self.entries:
            if entry.eligible:
                return entry
        return self.entries[0] if self.entries else None

    def next_untried(self, tried: set[str]) -> RankedProvider | None:
        """First eligible provider not in ``tried``, in ranking order."""
        for entry in self.entries:
            if entry.eligible and entry.provider_id not in tried:
                return entry
        return None
