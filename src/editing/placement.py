"""Text overlay placement.

Assigns every overlay of a scene a canonical screen position and a timing
window so that no two overlays share screen area at the same time.
Placement runs in two passes: a spatial pass that scores each canonical
position against the frame analysis, then a temporal pass that delays
lower-priority overlays whose box collides with an earlier one.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.common.logging import get_logger
from src.common.models import (
    Anchor,
    FrameAnalysis,
    OverlayAnimation,
    OverlayType,
    Region,
    ScenePlacementResult,
    ScreenPosition,
    SkippedOverlay,
    TextOverlay,
    TextOverlayPlacement,
    TextStyle,
    TimingWindow,
)

logger = get_logger(__name__)


# Canonical positions, in tie-break order
POSITIONS: tuple[ScreenPosition, ...] = (
    ScreenPosition(name="lower-third", x=50, y=85, anchor=Anchor.BOTTOM_CENTER),
    ScreenPosition(name="bottom-left", x=10, y=90, anchor=Anchor.BOTTOM_LEFT),
    ScreenPosition(name="bottom-center", x=50, y=92, anchor=Anchor.BOTTOM_CENTER),
    ScreenPosition(name="bottom-right", x=90, y=90, anchor=Anchor.BOTTOM_RIGHT),
    ScreenPosition(name="top-center", x=50, y=15, anchor=Anchor.TOP_CENTER),
    ScreenPosition(name="top-left", x=10, y=10, anchor=Anchor.TOP_LEFT),
    ScreenPosition(name="top-right", x=90, y=10, anchor=Anchor.TOP_RIGHT),
    ScreenPosition(name="center", x=50, y=50, anchor=Anchor.CENTER),
    ScreenPosition(name="middle-left", x=15, y=50, anchor=Anchor.MIDDLE_LEFT),
    ScreenPosition(name="middle-right", x=85, y=50, anchor=Anchor.MIDDLE_RIGHT),
)

# Box size (width %, height %) by overlay type
OVERLAY_SIZES = {
    OverlayType.LOWER_THIRD: (40.0, 10.0),
    OverlayType.TITLE: (60.0, 14.0),
    OverlayType.SUBTITLE: (60.0, 8.0),
    OverlayType.CAPTION: (50.0, 8.0),
    OverlayType.CTA: (40.0, 12.0),
}

PREFERRED_POSITIONS = {
    OverlayType.LOWER_THIRD: ("lower-third",),
    OverlayType.TITLE: ("center", "top-center"),
    OverlayType.SUBTITLE: ("bottom-center",),
    OverlayType.CAPTION: ("bottom-center", "lower-third"),
    OverlayType.CTA: ("center", "bottom-center"),
}

DEFAULT_STYLES = {
    OverlayType.LOWER_THIRD: TextStyle(
        font_size=32,
        font_weight="semibold",
        background_color="rgba(45, 90, 39, 0.85)",
        padding=16,
        border_radius=4,
        shadow=True,
    ),
    OverlayType.TITLE: TextStyle(font_size=48, font_weight="bold", shadow=True),
    OverlayType.SUBTITLE: TextStyle(font_size=24, shadow=True),
    OverlayType.CAPTION: TextStyle(
        font_size=20,
        background_color="rgba(0, 0, 0, 0.6)",
        padding=8,
        border_radius=4,
    ),
    OverlayType.CTA: TextStyle(
        font_size=36,
        font_weight="bold",
        background_color="#D4A574",
        padding=20,
        border_radius=8,
        shadow=True,
    ),
}

ANIMATIONS = {
    OverlayType.LOWER_THIRD: OverlayAnimation(enter="slide-up", exit="fade", duration_seconds=0.4),
    OverlayType.TITLE: OverlayAnimation(enter="fade", exit="fade", duration_seconds=0.6),
    OverlayType.SUBTITLE: OverlayAnimation(enter="fade", exit="fade", duration_seconds=0.4),
    OverlayType.CAPTION: OverlayAnimation(enter="fade", exit="fade", duration_seconds=0.3),
    OverlayType.CTA: OverlayAnimation(enter="pop", exit="fade", duration_seconds=0.5),
}


@dataclass
class PlacementConfig:
    """Scoring weights and timing rules for overlay placement."""

    base_score: float = 50.0
    preferred_bonus: float = 30.0
    safe_zone_bonus: float = 20.0
    obstruction_penalty: float = -200.0
    overlay_overlap_penalty: float = -20.0
    busy_region_penalty: float = -10.0

    time_buffer_seconds: float = 0.33
    min_visible_seconds: float = 1.0
    lower_third_seconds: float = 4.0

    @classmethod
    def from_settings(cls) -> "PlacementConfig":
        from src.common.config import get_settings

        settings = get_settings()
        return cls(
            time_buffer_seconds=settings.overlay_time_buffer_seconds,
            min_visible_seconds=settings.overlay_min_visible_seconds,
        )


def overlay_bounds(position: ScreenPosition, overlay_type: OverlayType) -> Region:
    """Box an overlay of this type occupies when anchored at the position."""
    width, height = OVERLAY_SIZES[overlay_type]
    anchor = position.anchor.value

    if anchor.endswith("left"):
        x = position.x
    elif anchor.endswith("right"):
        x = position.x - width
    else:
        x = position.x - width / 2

    if anchor.startswith("top"):
        y = position.y
    elif anchor.startswith("bottom"):
        y = position.y - height
    else:
        y = position.y - height / 2

    # Keep the box on screen
    x = min(max(x, 0.0), 100.0 - width)
    y = min(max(y, 0.0), 100.0 - height)
    return Region(name=position.name, x=x, y=y, width=width, height=height)


class PlacementResolver:
    """Resolve overlay positions and timing for one scene at a time."""

    def __init__(self, config: PlacementConfig | None = None):
        self.config = config or PlacementConfig()

    def resolve(
        self,
        scene_index: int,
        overlays: list[TextOverlay],
        duration_seconds: float,
        frame: FrameAnalysis | None = None,
    ) -> ScenePlacementResult:
        """Place a scene's overlays.

        Args:
            scene_index: Scene the overlays belong to
            overlays: Requested overlays, in authoring order
            duration_seconds: Scene length
            frame: Obstruction map and colors from vision analysis

        Returns:
            Placements, overlays that could not be placed, and dropped duplicates
        """
        frame = frame or FrameAnalysis()

        unique, duplicates = self._deduplicate(scene_index, overlays)

        # Higher priority first; authoring order breaks ties
        ordered = sorted(unique, key=lambda o: -o.effective_priority)

        placed: list[TextOverlayPlacement] = []
        unplaced: list[SkippedOverlay] = []

        for overlay in ordered:
            placement = self._place_spatially(overlay, frame, placed, duration_seconds)
            if placement is None:
                unplaced.append(SkippedOverlay(
                    overlay_id=overlay.id,
                    text=overlay.text,
                    reason="No position scored above zero (obstructed or crowded)",
                ))
                logger.warning(
                    "overlay_unplaced",
                    scene_index=scene_index,
                    text=overlay.text[:30],
                    type=overlay.type.value,
                )
                continue

            resolved = self._resolve_timing(placement, placed, duration_seconds)
            if resolved is None:
                unplaced.append(SkippedOverlay(
                    overlay_id=overlay.id,
                    text=overlay.text,
                    reason=(
                        f"Delayed past scene end; less than "
                        f"{self.config.min_visible_seconds:g}s visible"
                    ),
                ))
                logger.warning(
                    "overlay_delayed_out_of_scene",
                    scene_index=scene_index,
                    text=overlay.text[:30],
                )
                continue

            placed.append(resolved)

        logger.debug(
            "overlays_placed",
            scene_index=scene_index,
            placed=len(placed),
            unplaced=len(unplaced),
            duplicates=len(duplicates),
        )

        return ScenePlacementResult(
            scene_index=scene_index,
            placements=tuple(placed),
            unplaced=tuple(unplaced),
            duplicates_dropped=tuple(duplicates),
        )

    def _deduplicate(
        self,
        scene_index: int,
        overlays: list[TextOverlay],
    ) -> tuple[list[TextOverlay], list[SkippedOverlay]]:
        seen: set[tuple[str, str]] = set()
        unique: list[TextOverlay] = []
        dropped: list[SkippedOverlay] = []

        for overlay in overlays:
            if overlay.dedup_key in seen:
                dropped.append(SkippedOverlay(
                    overlay_id=overlay.id,
                    text=overlay.text,
                    reason=f"Duplicate {overlay.type.value} text",
                ))
                logger.info(
                    "overlay_duplicate_dropped",
                    scene_index=scene_index,
                    text=overlay.text[:30],
                    type=overlay.type.value,
                )
                continue
            seen.add(overlay.dedup_key)
            unique.append(overlay)

        return unique, dropped

    def _place_spatially(
        self,
        overlay: TextOverlay,
        frame: FrameAnalysis,
        placed: list[TextOverlayPlacement],
        duration_seconds: float,
    ) -> TextOverlayPlacement | None:
        c = self.config
        preferred = PREFERRED_POSITIONS.get(overlay.type, ("lower-third",))

        best: tuple[float, ScreenPosition, Region, list[str]] | None = None
        for position in POSITIONS:
            bounds = overlay_bounds(position, overlay.type)
            score = c.base_score
            reasons: list[str] = []

            if position.name in preferred:
                score += c.preferred_bonus
                reasons.append(f"preferred for {overlay.type.value}")
            if position.name in frame.safe_zones:
                score += c.safe_zone_bonus
                reasons.append("safe zone")
            if any(bounds.intersects(region) for region in frame.obstructions):
                score += c.obstruction_penalty
                reasons.append("blocked by subject")
            for existing in placed:
                if bounds.intersects(existing.bounds):
                    score += c.overlay_overlap_penalty
                    reasons.append("overlaps placed text")
            if any(bounds.intersects(region) for region in frame.busy_regions):
                score += c.busy_region_penalty
                reasons.append("busy area")

            # Strict comparison keeps catalogue order on ties
            if best is None or score > best[0]:
                best = (score, position, bounds, reasons)

        if best is None or best[0] <= 0:
            return None

        score, position, bounds, reasons = best
        return TextOverlayPlacement(
            overlay_id=overlay.id,
            text=overlay.text,
            overlay_type=overlay.type,
            priority=overlay.effective_priority,
            position=position,
            bounds=bounds,
            timing=self._default_timing(overlay.type, duration_seconds),
            style=self._style_for(overlay.type, frame),
            animation=ANIMATIONS[overlay.type],
            placement_reason=(", ".join(reasons) or "default position").capitalize(),
        )

    def _resolve_timing(
        self,
        placement: TextOverlayPlacement,
        placed: list[TextOverlayPlacement],
        duration_seconds: float,
    ) -> TextOverlayPlacement | None:
        """Delay a placement until it clears every earlier overlapping overlay.

        Returns None when too little of the scene is left.
        """
        c = self.config
        timing = placement.timing
        length = timing.duration
        shifted = False

        # Each shift moves the start strictly later, so this terminates
        changed = True
        while changed:
            changed = False
            for existing in placed:
                if not placement.bounds.intersects(existing.bounds):
                    continue
                if not timing.overlaps(existing.timing):
                    continue

                start = existing.timing.end_seconds + c.time_buffer_seconds
                end = min(start + length, duration_seconds)
                if end - start < c.min_visible_seconds:
                    return None

                timing = TimingWindow(start_seconds=round(start, 3), end_seconds=round(end, 3))
                shifted = True
                changed = True

        if not shifted:
            return placement

        logger.debug(
            "overlay_delayed",
            text=placement.text[:30],
            start=timing.start_seconds,
            end=timing.end_seconds,
        )
        return placement.model_copy(update={
            "timing": timing,
            "placement_reason": f"{placement.placement_reason}, delayed to avoid overlap",
        })

    def _default_timing(self, overlay_type: OverlayType, duration: float) -> TimingWindow:
        if overlay_type == OverlayType.TITLE:
            start, end = 0.3, duration - 0.3
        elif overlay_type == OverlayType.LOWER_THIRD:
            start, end = 0.8, min(0.8 + self.config.lower_third_seconds, duration - 0.3)
        elif overlay_type == OverlayType.CTA:
            start, end = duration * 0.5, duration
        else:
            start, end = 0.5, duration - 0.2

        # Very short scenes show the overlay throughout
        if end - start < self.config.min_visible_seconds:
            start, end = 0.0, duration

        return TimingWindow(start_seconds=round(start, 3), end_seconds=round(end, 3))

    @staticmethod
    def _style_for(overlay_type: OverlayType, frame: FrameAnalysis) -> TextStyle:
        style = DEFAULT_STYLES[overlay_type]
        if frame.is_light_background and style.background_color is None:
            style = style.model_copy(update={
                "shadow": True,
                "background_color": "rgba(0, 0, 0, 0.5)",
                "padding": style.padding or 12,
            })
        return style
