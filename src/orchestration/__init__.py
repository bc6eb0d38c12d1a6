"""Feedback loop, rendering and the project-facing API."""

from src.orchestration.feedback_loop import (
    GenerationFeedbackLoop,
    GenerationMetrics,
    LoopConfig,
    ScenePlan,
)
from src.orchestration.render import (
    RenderConfig,
    RenderOrchestrator,
    partition_frames,
)
from src.orchestration.project import VideoProject

__all__ = [
    # Feedback loop
    "GenerationFeedbackLoop",
    "GenerationMetrics",
    "LoopConfig",
    "ScenePlan",
    # Rendering
    "RenderConfig",
    "RenderOrchestrator",
    "partition_frames",
    # Project
    "VideoProject",
]
