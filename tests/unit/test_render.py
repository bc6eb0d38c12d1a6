"""Unit tests for chunked rendering."""

import pytest

from src.common.errors import RenderBlockedError, RenderEngineError
from src.common.models import (
    ChunkStatus,
    ComposedScene,
    CompositionSpec,
    RenderStatus,
)
from src.generation import StubRenderingEngine
from src.orchestration import RenderConfig, RenderOrchestrator, partition_frames


def _composition(*durations, fps=30):
    return CompositionSpec(
        project_id="proj_test",
        fps=fps,
        scenes=tuple(
            ComposedScene(scene_index=i, asset_locator=f"mem://scene_{i}", duration_seconds=d)
            for i, d in enumerate(durations)
        ),
    )


class TestPartitionFrames:
    """Tests for partition_frames."""

    def test_eight_minute_video(self):
        """Test the three-minute chunking of an eight-minute render."""
        config = RenderConfig(fps=30, chunk_seconds=180)

        chunks = partition_frames(8 * 60 * 30, config.chunk_frames)

        assert [(c.frames.start, c.frames.end) for c in chunks] == [
            (0, 5400),
            (5400, 10800),
            (10800, 14400),
        ]
        assert [c.index for c in chunks] == [0, 1, 2]

    def test_exact_multiple(self):
        chunks = partition_frames(300, 100)

        assert len(chunks) == 3
        assert chunks[-1].frames.end == 300

    def test_shorter_than_one_chunk(self):
        chunks = partition_frames(45, 5400)

        assert len(chunks) == 1
        assert chunks[0].frames.length == 45

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            partition_frames(100, 0)


class TestRenderOrchestrator:
    """Tests for RenderOrchestrator.render."""

    @pytest.mark.asyncio
    async def test_render_and_stitch(self, storage):
        engine = StubRenderingEngine(storage)
        orchestrator = RenderOrchestrator(engine, RenderConfig(fps=30, chunk_seconds=5))

        job = await orchestrator.render(_composition(5, 5, 5, 5))

        assert job.status == RenderStatus.DONE
        assert len(job.chunks) == 4
        assert all(c.status == ChunkStatus.DONE for c in job.chunks)
        assert job.output_locator is not None
        assert orchestrator.status(job.id) == job

        # Stitched in chunk order
        assert engine.stitched == [[c.output_locator for c in job.chunks]]

    @pytest.mark.asyncio
    async def test_chunk_retried(self, storage):
        """Test that a chunk that fails once is retried on its own."""
        engine = StubRenderingEngine(storage, failures={150: 1})
        orchestrator = RenderOrchestrator(engine, RenderConfig(fps=30, chunk_seconds=5, max_retries=2))

        job = await orchestrator.render(_composition(10))

        assert job.status == RenderStatus.DONE
        assert job.chunks[1].attempts == 2
        assert job.chunks[0].attempts == 1
        assert engine.rendered.count(job.chunks[0].frames) == 1

    @pytest.mark.asyncio
    async def test_chunk_out_of_retries_fails_render(self, storage):
        engine = StubRenderingEngine(storage, failures={150: 5})
        orchestrator = RenderOrchestrator(engine, RenderConfig(fps=30, chunk_seconds=5, max_retries=2))

        job = await orchestrator.render(_composition(10))

        assert job.status == RenderStatus.FAILED
        assert job.output_locator is None
        assert engine.stitched == []
        assert len(job.failure_reasons) == 1
        assert job.failure_reasons[0].startswith("chunk 1 (frames 150-300) failed after 3 attempts")
        # The other chunk still finished
        assert job.chunks[0].status == ChunkStatus.DONE

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, storage):
        engine = StubRenderingEngine(storage, delay_seconds=0.01)
        orchestrator = RenderOrchestrator(engine, RenderConfig(fps=30, chunk_seconds=1, workers=2))

        job = await orchestrator.render(_composition(6))

        assert job.status == RenderStatus.DONE
        assert len(job.chunks) == 6
        assert engine.max_concurrent <= 2

    @pytest.mark.asyncio
    async def test_chunk_timeout(self, storage):
        engine = StubRenderingEngine(storage, delay_seconds=1.0)
        orchestrator = RenderOrchestrator(
            engine,
            RenderConfig(fps=30, chunk_seconds=5, max_retries=0, chunk_timeout_seconds=0.01),
        )

        job = await orchestrator.render(_composition(5))

        assert job.status == RenderStatus.FAILED
        assert "Timed out" in job.failure_reasons[0]

    @pytest.mark.asyncio
    async def test_stitch_failure(self, storage):
        class BrokenStitch(StubRenderingEngine):
            async def stitch(self, locators):
                raise RenderEngineError("Muxer unavailable")

        orchestrator = RenderOrchestrator(BrokenStitch(storage), RenderConfig(chunk_seconds=5))

        job = await orchestrator.render(_composition(5))

        assert job.status == RenderStatus.FAILED
        assert "Muxer unavailable" in job.failure_reasons[0]

    @pytest.mark.asyncio
    async def test_empty_composition_blocked(self, storage):
        orchestrator = RenderOrchestrator(StubRenderingEngine(storage))

        with pytest.raises(RenderBlockedError):
            await orchestrator.render(CompositionSpec(project_id="proj_test"))

    @pytest.mark.asyncio
    async def test_unexpected_engine_error_fails_chunk(self, storage):
        """Test that a non-engine exception is retried and reported per chunk."""

        class DroppedConnection(StubRenderingEngine):
            async def render_chunk(self, composition, frames):
                if frames.start == 150:
                    raise ConnectionError("render node went away")
                return await super().render_chunk(composition, frames)

        engine = DroppedConnection(storage)
        orchestrator = RenderOrchestrator(engine, RenderConfig(fps=30, chunk_seconds=5, max_retries=1))

        job = await orchestrator.render(_composition(5, 5, 5))

        assert job.status == RenderStatus.FAILED
        assert [c.status for c in job.chunks] == [ChunkStatus.DONE, ChunkStatus.FAILED, ChunkStatus.DONE]
        assert job.chunks[1].attempts == 2
        assert job.failure_reasons == (
            "chunk 1 (frames 150-300) failed after 2 attempts: ConnectionError: render node went away",
        )
        assert orchestrator.status(job.id) == job
        assert engine.stitched == []

    @pytest.mark.asyncio
    async def test_unexpected_stitch_error(self, storage):
        class BrokenMuxer(StubRenderingEngine):
            async def stitch(self, locators):
                raise OSError("disk full")

        orchestrator = RenderOrchestrator(BrokenMuxer(storage), RenderConfig(chunk_seconds=5))

        job = await orchestrator.render(_composition(5))

        assert job.status == RenderStatus.FAILED
        assert job.failure_reasons == ("Stitching failed: OSError: disk full",)
