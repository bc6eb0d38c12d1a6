"""Frame analysis models supplied by the vision-analysis collaborator.

All coordinates are percentages of the frame (0-100) measured from the
top-left corner.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from src.common.models.base import FrozenModel


class LightingType(str, Enum):
    """Coarse lighting classification of a frame."""

    NATURAL = "natural"
    WARM = "warm"
    COOL = "cool"
    STUDIO = "studio"
    LOW_KEY = "low_key"
    NEUTRAL = "neutral"


class Region(FrozenModel):
    """Axis-aligned rectangle in frame percentages."""

    name: str = ""
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    width: float = Field(ge=0, le=100)
    height: float = Field(ge=0, le=100)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def intersects(self, other: "Region") -> bool:
        """True if the two rectangles share any area."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


class FrameAnalysis(FrozenModel):
    """Spatial summary of a rendered frame."""

    obstructions: tuple[Region, ...] = ()
    busy_regions: tuple[Region, ...] = ()
    safe_zones: tuple[str, ...] = ()
    dominant_colors: tuple[str, ...] = ()
    lighting: LightingType = LightingType.NEUTRAL

    @property
    def is_light_background(self) -> bool:
        """Bright frames need a backing plate behind white text."""
        light = ("white", "cream", "beige", "yellow")
        return self.lighting == LightingType.WARM or any(
            tone in color.lower() for color in self.dominant_colors for tone in light
        )
