"""Text overlay placement models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field, model_validator

from src.common.models.base import FrozenModel, generate_id
from src.common.models.frame import Region


class OverlayType(str, Enum):
    """Kind of text overlay."""

    LOWER_THIRD = "lower_third"
    TITLE = "title"
    SUBTITLE = "subtitle"
    CAPTION = "caption"
    CTA = "cta"


class Anchor(str, Enum):
    """Which point of the overlay box sits on the position coordinates."""

    CENTER = "center"
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


# Default priority by type; higher wins spatial and temporal conflicts
DEFAULT_PRIORITY = {
    OverlayType.TITLE: 4,
    OverlayType.CTA: 4,
    OverlayType.LOWER_THIRD: 3,
    OverlayType.SUBTITLE: 2,
    OverlayType.CAPTION: 1,
}


class TextOverlay(FrozenModel):
    """An overlay requested for a scene."""

    id: str = Field(default_factory=lambda: generate_id("overlay"))
    text: str
    type: OverlayType = OverlayType.CAPTION
    priority: int | None = None

    @property
    def effective_priority(self) -> int:
        if self.priority is not None:
            return self.priority
        return DEFAULT_PRIORITY[self.type]

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.text, self.type.value)


class ScreenPosition(FrozenModel):
    """A named canonical position."""

    name: str
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    anchor: Anchor = Anchor.CENTER


class TimingWindow(FrozenModel):
    """Visibility window in seconds from the scene start."""

    start_seconds: float = Field(ge=0)
    end_seconds: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "TimingWindow":
        if self.end_seconds < self.start_seconds:
            raise ValueError("end_seconds must not precede start_seconds")
        return self

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

    def overlaps(self, other: "TimingWindow") -> bool:
        return self.start_seconds < other.end_seconds and other.start_seconds < self.end_seconds


class TextStyle(FrozenModel):
    """Visual style of an overlay."""

    font_size: int = 24
    font_weight: str = "normal"
    font_family: str = "Inter, sans-serif"
    color: str = "#FFFFFF"
    background_color: str | None = None
    padding: int = 0
    border_radius: int = 0
    shadow: bool = False


class OverlayAnimation(FrozenModel):
    """Enter/exit animation of an overlay."""

    enter: str = "fade"
    exit: str = "fade"
    duration_seconds: float = 0.3


class TextOverlayPlacement(FrozenModel):
    """Resolved position and timing for one overlay in one scene."""

    overlay_id: str
    text: str
    overlay_type: OverlayType
    priority: int
    position: ScreenPosition
    bounds: Region
    timing: TimingWindow
    style: TextStyle = Field(default_factory=TextStyle)
    animation: OverlayAnimation = Field(default_factory=OverlayAnimation)
    placement_reason: str = ""

    def conflicts_with(self, other: "TextOverlayPlacement") -> bool:
        """Overlapping on screen and on the timeline at the same time."""
        return self.bounds.intersects(other.bounds) and self.timing.overlaps(other.timing)


class SkippedOverlay(FrozenModel):
    """An overlay that was not placed, with the reason."""

    overlay_id: str
    text: str
    reason: str


class ScenePlacementResult(FrozenModel):
    """All placement decisions for one scene."""

    scene_index: int
    placements: tuple[TextOverlayPlacement, ...] = ()
    unplaced: tuple[SkippedOverlay, ...] = ()
    duplicates_dropped: tuple[SkippedOverlay, ...] = ()
