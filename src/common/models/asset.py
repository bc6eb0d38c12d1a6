"""Generated asset models."""

from datetime import datetime

from pydantic import Field

from src.common.models.base import FrozenModel, generate_id, utc_now
from src.common.models.frame import FrameAnalysis
from src.common.models.quality import QualityIssue
from src.common.models.scene import GenerationApproach


class GeneratedAsset(FrozenModel):
    """A visual asset produced for a scene.

    Assets are never deleted. When a regeneration supersedes an asset it is
    kept in the project registry as an alternative the user can revert to.
    """

    id: str = Field(default_factory=lambda: generate_id("asset"))
    created_at: datetime = Field(default_factory=utc_now)

    scene_index: int = Field(ge=0)
    provider_id: str
    request_id: str
    approach: GenerationApproach = GenerationApproach.TEXT_TO_VIDEO

    # Storage
    locator: str

    # Generation
    duration_seconds: float = Field(ge=0, default=0.0)
    cost: float = Field(ge=0, default=0.0)

    # Quality evidence from this asset's own analysis
    score: float | None = None
    issues: tuple[QualityIssue, ...] = ()
    frame: FrameAnalysis | None = None

    def summary(self) -> dict:
        """Return summary for logging."""
        return {
            "id": self.id,
            "scene_index": self.scene_index,
            "provider": self.provider_id,
            "locator": self.locator,
            "score": self.score,
            "cost": self.cost,
        }
