"""Overlay placement and transition planning."""

from src.editing.placement import (
    PlacementConfig,
    PlacementResolver,
    POSITIONS,
    overlay_bounds,
)
from src.editing.transitions import (
    TransitionConfig,
    TransitionPlanner,
    SCENE_MOODS,
    summarize,
)

__all__ = [
    # Placement
    "PlacementConfig",
    "PlacementResolver",
    "POSITIONS",
    "overlay_bounds",
    # Transitions
    "TransitionConfig",
    "TransitionPlanner",
    "SCENE_MOODS",
    "summarize",
]
