"""Data models for the scene decision layer."""

from src.common.models.base import FrozenModel, generate_id, utc_now
from src.common.models.scene import (
    SceneRequest,
    SceneType,
    ContentType,
    GenerationApproach,
)
from src.common.models.complexity import (
    ComplexityAssessment,
    ComplexityCategory,
    DifficultyFactor,
    Difficulty,
    FactorKind,
)
from src.common.models.provider import (
    ProviderProfile,
    ProviderCapabilities,
    ProviderRanking,
    RankedProvider,
    MotionQuality,
    TemporalConsistency,
    Resolution,
)
from src.common.models.asset import GeneratedAsset
from src.common.models.frame import (
    FrameAnalysis,
    LightingType,
    Region,
)
from src.common.models.quality import (
    QualityAnalysis,
    QualityIssue,
    IssueSeverity,
    AnalysisRecommendation,
    QualityThresholds,
    SceneQualityStatus,
    SceneStatus,
    ProjectQualityReport,
)
from src.common.models.regeneration import (
    RegenerationDecision,
    RegenerationHistoryEntry,
    StrategyKind,
    AttemptOutcome,
)
from src.common.models.overlay import (
    TextOverlay,
    OverlayType,
    Anchor,
    ScreenPosition,
    TimingWindow,
    TextStyle,
    OverlayAnimation,
    TextOverlayPlacement,
    SkippedOverlay,
    ScenePlacementResult,
)
from src.common.models.transition import (
    TransitionPlan,
    TransitionType,
    Easing,
    SceneSummary,
)
from src.common.models.render import (
    RenderChunk,
    RenderJob,
    ChunkStatus,
    RenderStatus,
    FrameRange,
    ComposedScene,
    CompositionSpec,
    validate_partition,
)

__all__ = [
    # Base
    "FrozenModel",
    "generate_id",
    "utc_now",
    # Scene
    "SceneRequest",
    "SceneType",
    "ContentType",
    "GenerationApproach",
    # Complexity
    "ComplexityAssessment",
    "ComplexityCategory",
    "DifficultyFactor",
    "Difficulty",
    "FactorKind",
    # Provider
    "ProviderProfile",
    "ProviderCapabilities",
    "ProviderRanking",
    "RankedProvider",
    "MotionQuality",
    "TemporalConsistency",
    "Resolution",
    # Asset
    "GeneratedAsset",
    # Frame
    "FrameAnalysis",
    "LightingType",
    "Region",
    # Quality
    "QualityAnalysis",
    "QualityIssue",
    "IssueSeverity",
    "AnalysisRecommendation",
    "QualityThresholds",
    "SceneQualityStatus",
    "SceneStatus",
    "ProjectQualityReport",
    # Regeneration
    "RegenerationDecision",
    "RegenerationHistoryEntry",
    "StrategyKind",
    "AttemptOutcome",
    # Overlay
    "TextOverlay",
    "OverlayType",
    "Anchor",
    "ScreenPosition",
    "TimingWindow",
    "TextStyle",
    "OverlayAnimation",
    "TextOverlayPlacement",
    "SkippedOverlay",
    "ScenePlacementResult",
    # Transition
    "TransitionPlan",
    "TransitionType",
    "Easing",
    "SceneSummary",
    # Render
    "RenderChunk",
    "RenderJob",
    "ChunkStatus",
    "RenderStatus",
    "FrameRange",
    "ComposedScene",
    "CompositionSpec",
    "validate_partition",
]
