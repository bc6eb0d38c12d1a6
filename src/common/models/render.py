"""Chunked render models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from src.common.errors import PartitionError
from src.common.models.base import FrozenModel, generate_id, utc_now
from src.common.models.overlay import TextOverlayPlacement
from src.common.models.transition import TransitionPlan


class ChunkStatus(str, Enum):
    """Status of a render chunk."""

    PENDING = "pending"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


class RenderStatus(str, Enum):
    """Status of a whole render job."""

    PENDING = "pending"
    RENDERING = "rendering"
    STITCHING = "stitching"
    DONE = "done"
    FAILED = "failed"


class FrameRange(FrozenModel):
    """Half-open frame range ``[start, end)``."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_non_empty(self) -> "FrameRange":
        if self.end <= self.start:
            raise ValueError(f"empty frame range [{self.start}, {self.end})")
        return self

    @property
    def length(self) -> int:
        return self.end - self.start


class RenderChunk(FrozenModel):
    """One bounded slice of a render job."""

    index: int = Field(ge=0)
    frames: FrameRange
    status: ChunkStatus = ChunkStatus.PENDING
    output_locator: str | None = None
    attempts: int = Field(ge=0, default=0)
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ChunkStatus.DONE, ChunkStatus.FAILED)

    def label(self) -> str:
        return f"chunk {self.index} (frames {self.frames.start}-{self.frames.end})"


def validate_partition(chunks: list[RenderChunk] | tuple[RenderChunk, ...], total_frames: int) -> None:
    """Raise PartitionError unless chunks tile ``[0, total_frames)`` exactly."""
    if total_frames <= 0:
        raise PartitionError(f"total_frames must be positive, got {total_frames}")
    if not chunks:
        raise PartitionError("no chunks")

    expected_start = 0
    for position, chunk in enumerate(chunks):
        if chunk.index != position:
            raise PartitionError(f"chunk at position {position} has index {chunk.index}")
        if chunk.frames.start != expected_start:
            kind = "gap" if chunk.frames.start > expected_start else "overlap"
            raise PartitionError(
                f"{kind} before chunk {chunk.index}: expected start {expected_start}, "
                f"got {chunk.frames.start}"
            )
        expected_start = chunk.frames.end

    if expected_start != total_frames:
        raise PartitionError(
            f"chunks end at frame {expected_start}, expected {total_frames}"
        )


class ComposedScene(FrozenModel):
    """An accepted scene as handed to the rendering engine."""

    scene_index: int
    asset_locator: str
    duration_seconds: float = Field(gt=0)
    placements: tuple[TextOverlayPlacement, ...] = ()


class CompositionSpec(FrozenModel):
    """Scene graph handed to the rendering engine."""

    project_id: str
    fps: int = Field(gt=0, default=30)
    scenes: tuple[ComposedScene, ...] = ()
    transitions: tuple[TransitionPlan, ...] = ()

    @property
    def total_duration_seconds(self) -> float:
        return sum(scene.duration_seconds for scene in self.scenes)

    @property
    def total_frames(self) -> int:
        return round(self.total_duration_seconds * self.fps)


class RenderJob(FrozenModel):
    """A chunked render. Chunks are checked to partition the frame range."""

    id: str = Field(default_factory=lambda: generate_id("render"))
    project_id: str
    fps: int = Field(gt=0, default=30)
    total_frames: int = Field(gt=0)
    chunks: tuple[RenderChunk, ...]
    status: RenderStatus = RenderStatus.PENDING
    output_locator: str | None = None
    failure_reasons: tuple[str, ...] = ()
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def _check_partition(self) -> "RenderJob":
        validate_partition(self.chunks, self.total_frames)
        return self

    @property
    def failed_chunks(self) -> list[RenderChunk]:
        return [c for c in self.chunks if c.status == ChunkStatus.FAILED]

    @property
    def done_count(self) -> int:
        return sum(1 for c in self.chunks if c.status == ChunkStatus.DONE)
