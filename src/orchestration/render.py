"""Chunked rendering.

A long render is split into bounded frame ranges that the rendering engine
handles independently. Each chunk is retried on its own; the stitch only
starts once every chunk has reached a terminal state, and a single chunk
that runs out of retries fails the whole render.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from src.common.errors import RenderBlockedError, RenderEngineError
from src.common.logging import get_logger
from src.common.models import (
    ChunkStatus,
    CompositionSpec,
    FrameRange,
    RenderChunk,
    RenderJob,
    RenderStatus,
    utc_now,
)
from src.generation.collaborators import RenderingEngine

logger = get_logger(__name__)


@dataclass
class RenderConfig:
    """Chunking, retry and concurrency settings for rendering."""

    fps: int = 30
    chunk_seconds: float = 180.0
    max_retries: int = 2
    workers: int = 3
    chunk_timeout_seconds: float = 900.0
    retry_delay_seconds: float = 0.0

    @property
    def chunk_frames(self) -> int:
        return max(1, round(self.chunk_seconds * self.fps))

    @classmethod
    def from_settings(cls) -> "RenderConfig":
        from src.common.config import get_settings

        settings = get_settings()
        return cls(
            fps=settings.render_fps,
            chunk_seconds=settings.render_chunk_seconds,
            max_retries=settings.render_chunk_retries,
            workers=settings.render_workers,
            chunk_timeout_seconds=settings.render_chunk_timeout_seconds,
        )


def partition_frames(total_frames: int, chunk_frames: int) -> tuple[RenderChunk, ...]:
    """Split ``[0, total_frames)`` into contiguous chunks of at most ``chunk_frames``."""
    if chunk_frames <= 0:
        raise ValueError("chunk_frames must be positive")

    chunks = []
    start = 0
    while start < total_frames:
        end = min(start + chunk_frames, total_frames)
        chunks.append(RenderChunk(index=len(chunks), frames=FrameRange(start=start, end=end)))
        start = end
    return tuple(chunks)


class RenderOrchestrator:
    """Dispatch render chunks and stitch their outputs."""

    def __init__(self, engine: RenderingEngine, config: RenderConfig | None = None):
        self.engine = engine
        self.config = config or RenderConfig()
        self._jobs: dict[str, RenderJob] = {}

    def plan(self, project_id: str, total_frames: int) -> RenderJob:
        """Create a pending job. Chunk coverage is checked by the model."""
        return RenderJob(
            project_id=project_id,
            fps=self.config.fps,
            total_frames=total_frames,
            chunks=partition_frames(total_frames, self.config.chunk_frames),
        )

    def status(self, job_id: str) -> RenderJob | None:
        return self._jobs.get(job_id)

    async def render(self, composition: CompositionSpec) -> RenderJob:
        """Render a composition chunk by chunk, then stitch.

        Returns:
            The finished job, either done or failed with per-chunk reasons

        Raises:
            RenderBlockedError: If the composition has no frames
        """
        if composition.total_frames <= 0:
            raise RenderBlockedError("Composition has no frames to render")

        job = self.plan(composition.project_id, composition.total_frames)
        job = self._publish(job.model_copy(update={"status": RenderStatus.RENDERING}))

        logger.info(
            "render_started",
            job_id=job.id,
            project_id=job.project_id,
            total_frames=job.total_frames,
            chunks=len(job.chunks),
        )

        semaphore = asyncio.Semaphore(self.config.workers)

        async def run(chunk: RenderChunk) -> RenderChunk:
            async with semaphore:
                return await self._render_chunk(job.id, composition, chunk)

        # Barrier: every chunk is terminal before the stitch decision
        await asyncio.gather(*(run(chunk) for chunk in job.chunks))
        job = self._jobs[job.id]

        failed = job.failed_chunks
        if failed:
            reasons = tuple(
                f"{c.label()} failed after {c.attempts} attempts: {c.error}"
                for c in failed
            )
            job = self._publish(job.model_copy(update={
                "status": RenderStatus.FAILED,
                "failure_reasons": reasons,
                "completed_at": utc_now(),
            }))
            logger.error("render_failed", job_id=job.id, failed_chunks=[c.index for c in failed])
            return job

        job = self._publish(job.model_copy(update={"status": RenderStatus.STITCHING}))
        locators = [c.output_locator for c in sorted(job.chunks, key=lambda c: c.index)]

        try:
            output = await self.engine.stitch(locators)
        except RenderEngineError as e:
            job = self._publish(job.model_copy(update={
                "status": RenderStatus.FAILED,
                "failure_reasons": (f"Stitching failed: {e}",),
                "completed_at": utc_now(),
            }))
            logger.error("render_stitch_failed", job_id=job.id, error=str(e))
            return job
        except Exception as e:
            job = self._publish(job.model_copy(update={
                "status": RenderStatus.FAILED,
                "failure_reasons": (f"Stitching failed: {type(e).__name__}: {e}",),
                "completed_at": utc_now(),
            }))
            logger.exception("render_stitch_crashed", job_id=job.id)
            return job

        job = self._publish(job.model_copy(update={
            "status": RenderStatus.DONE,
            "output_locator": output,
            "completed_at": utc_now(),
        }))
        logger.info("render_completed", job_id=job.id, output=output, chunks=len(job.chunks))
        return job

    async def _render_chunk(
        self,
        job_id: str,
        composition: CompositionSpec,
        chunk: RenderChunk,
    ) -> RenderChunk:
        max_attempts = 1 + self.config.max_retries

        for attempt in range(1, max_attempts + 1):
            chunk = self._update_chunk(job_id, chunk.model_copy(update={
                "status": ChunkStatus.RENDERING,
                "attempts": attempt,
            }))
            try:
                locator = await asyncio.wait_for(
                    self.engine.render_chunk(composition, chunk.frames),
                    timeout=self.config.chunk_timeout_seconds,
                )
            except (RenderEngineError, asyncio.TimeoutError) as e:
                error = str(e) or f"Timed out after {self.config.chunk_timeout_seconds}s"
                logger.warning(
                    "render_chunk_failed",
                    job_id=job_id,
                    chunk=chunk.index,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=error,
                )
            except Exception as e:
                error = f"{type(e).__name__}: {e}"
                logger.exception(
                    "render_chunk_crashed",
                    job_id=job_id,
                    chunk=chunk.index,
                    attempt=attempt,
                    max_attempts=max_attempts,
                )
            else:
                logger.debug("render_chunk_done", job_id=job_id, chunk=chunk.index, attempt=attempt)
                return self._update_chunk(job_id, chunk.model_copy(update={
                    "status": ChunkStatus.DONE,
                    "output_locator": locator,
                    "error": None,
                }))

            chunk = self._update_chunk(job_id, chunk.model_copy(update={"error": error}))
            if attempt < max_attempts and self.config.retry_delay_seconds:
                await asyncio.sleep(self.config.retry_delay_seconds)

        return self._update_chunk(job_id, chunk.model_copy(update={"status": ChunkStatus.FAILED}))

    def _update_chunk(self, job_id: str, chunk: RenderChunk) -> RenderChunk:
        job = self._jobs[job_id]
        chunks = tuple(chunk if c.index == chunk.index else c for c in job.chunks)
        self._publish(job.model_copy(update={"chunks": chunks}))
        return chunk

    def _publish(self, job: RenderJob) -> RenderJob:
        self._jobs[job.id] = job
        return job
