"""Quality evaluation and gate models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from src.common.models.base import FrozenModel, generate_id, utc_now
from src.common.models.frame import FrameAnalysis


class IssueSeverity(str, Enum):
    """Severity of an identified issue."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class AnalysisRecommendation(str, Enum):
    """Recommendation tag attached by the vision analysis."""

    APPROVE = "approve"
    REVIEW = "review"
    REGENERATE = "regenerate"
    CRITICAL_FAIL = "critical_fail"


class SceneStatus(str, Enum):
    """Lifecycle state of a scene in the quality gate."""

    PENDING = "pending"
    APPROVED = "approved"
    NEEDS_REVIEW = "needs_review"
    REJECTED = "rejected"


class QualityIssue(FrozenModel):
    """A specific issue identified in a scene."""

    id: str = Field(default_factory=lambda: generate_id("issue"))
    severity: IssueSeverity = IssueSeverity.MINOR
    description: str


class QualityAnalysis(FrozenModel):
    """Opaque evidence returned by the vision-analysis collaborator."""

    scene_index: int = Field(ge=0)
    asset_locator: str = ""
    overall_score: float = Field(ge=0, le=100)
    sub_scores: dict[str, float] = Field(default_factory=dict)
    issues: tuple[QualityIssue, ...] = ()
    content_match: dict[str, bool] = Field(default_factory=dict)
    recommendation: AnalysisRecommendation = AnalysisRecommendation.REVIEW
    frame: FrameAnalysis | None = None
    analyzed_at: datetime = Field(default_factory=utc_now)

    def count(self, severity: IssueSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def has_critical_issue(self) -> bool:
        return self.count(IssueSeverity.CRITICAL) > 0


class QualityThresholds(FrozenModel):
    """Policy knobs for scene and project decisions."""

    auto_approve_score: float = 85.0
    minimum_scene_score: float = 70.0
    minimum_project_score: float = 75.0
    maximum_critical_issues: int = 0
    maximum_major_issues: int = 3
    require_user_approval: bool = True
    max_regenerations: int = Field(ge=0, default=3)

    @classmethod
    def from_settings(cls) -> "QualityThresholds":
        """Build thresholds from application settings."""
        from src.common.config import get_settings

        settings = get_settings()
        return cls(
            auto_approve_score=settings.auto_approve_score,
            minimum_scene_score=settings.minimum_scene_score,
            minimum_project_score=settings.minimum_project_score,
            maximum_critical_issues=settings.maximum_critical_issues,
            maximum_major_issues=settings.maximum_major_issues,
            require_user_approval=settings.require_user_approval,
            max_regenerations=settings.max_regenerations,
        )


class SceneQualityStatus(FrozenModel):
    """Current quality state of one scene."""

    scene_index: int = Field(ge=0)
    score: float | None = None
    status: SceneStatus = SceneStatus.PENDING
    issues: tuple[QualityIssue, ...] = ()
    user_approved: bool = False
    auto_approved: bool = False
    regeneration_count: int = Field(ge=0, default=0)

    terminal_failure: bool = False
    failure_reason: str | None = None
    updated_at: datetime = Field(default_factory=utc_now)

    def count(self, severity: IssueSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)


class ProjectQualityReport(FrozenModel):
    """Project-level aggregate, always rebuilt from all scene statuses."""

    project_id: str
    overall_score: float = 0.0
    scene_statuses: tuple[SceneQualityStatus, ...] = ()

    approved_count: int = 0
    needs_review_count: int = 0
    rejected_count: int = 0
    pending_count: int = 0

    critical_issue_count: int = 0
    major_issue_count: int = 0
    minor_issue_count: int = 0

    passes_threshold: bool = False
    can_render: bool = False
    blocking_reasons: tuple[str, ...] = ()

    generated_at: datetime = Field(default_factory=utc_now)
    last_approved_at: datetime | None = None

    def status_of(self, scene_index: int) -> SceneQualityStatus | None:
        for status in self.scene_statuses:
            if status.scene_index == scene_index:
                return status
        return None
