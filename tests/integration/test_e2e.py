"""End-to-end integration tests."""

import pytest

from src.common.errors import RenderBlockedError
from src.common.models import (
    ContentType,
    FrameAnalysis,
    LightingType,
    OverlayType,
    QualityThresholds,
    Region,
    RenderStatus,
    SceneRequest,
    SceneStatus,
    SceneType,
    StrategyKind,
    TextOverlay,
)
from src.editing import PlacementConfig, TransitionConfig
from src.generation import (
    StubGenerationProvider,
    StubRenderingEngine,
    StubStockAssetSource,
    StubVisionAnalyzer,
    build_analysis,
)
from src.orchestration import LoopConfig, RenderConfig, VideoProject


@pytest.fixture
def bakery_requests():
    """Four-scene bakery ad with one impossible close-up."""
    return [
        SceneRequest(
            scene_index=0,
            scene_type=SceneType.HOOK,
            content_type=ContentType.LIFESTYLE,
            prompt="Warm morning light over a small bakery storefront",
            duration_seconds=5,
        ),
        SceneRequest(
            scene_index=1,
            scene_type=SceneType.PRODUCT,
            content_type=ContentType.PRODUCT,
            prompt="Hands stretching translucent dough outward",
            duration_seconds=5,
        ),
        SceneRequest(
            scene_index=2,
            scene_type=SceneType.TESTIMONIAL,
            content_type=ContentType.PERSON,
            prompt="A regular customer smiling with a fresh loaf",
            duration_seconds=8,
        ),
        SceneRequest(
            scene_index=3,
            scene_type=SceneType.CTA,
            content_type=ContentType.PRODUCT,
            prompt="Bread basket on a rustic counter",
            duration_seconds=5,
        ),
    ]


@pytest.fixture
def frame():
    return FrameAnalysis(
        obstructions=(Region(name="face", x=35, y=20, width=30, height=40),),
        safe_zones=("lower-third",),
        dominant_colors=("warm brown",),
        lighting=LightingType.WARM,
    )


def _project(storage, analyzer, provider=None, engine=None, **thresholds):
    return VideoProject(
        provider=provider or StubGenerationProvider(storage),
        analyzer=analyzer,
        engine=engine or StubRenderingEngine(storage),
        stock_source=StubStockAssetSource(),
        project_id="proj_e2e",
        thresholds=QualityThresholds(**thresholds),
        loop_config=LoopConfig(workers=3, timeout_seconds=5),
        placement_config=PlacementConfig(),
        transition_config=TransitionConfig(),
        render_config=RenderConfig(fps=30, chunk_seconds=5, workers=2),
    )


@pytest.mark.integration
@pytest.mark.e2e
class TestEndToEndProject:
    """Scene requests through to a rendered artifact."""

    @pytest.mark.asyncio
    async def test_full_project(self, storage, bakery_requests, frame):
        """Test generation, review, overlays, transitions and render together."""
        analyzer = StubVisionAnalyzer(
            default_score=90,
            scene_script={1: [55.0], 2: [78.0]},
            frame=frame,
        )
        engine = StubRenderingEngine(storage)
        project = _project(storage, analyzer, engine=engine)

        # Generate
        report = await project.generate(bakery_requests)

        assert report.status_of(0).status == SceneStatus.APPROVED
        assert report.status_of(1).status == SceneStatus.APPROVED
        assert report.status_of(2).status == SceneStatus.NEEDS_REVIEW
        assert report.status_of(3).status == SceneStatus.APPROVED
        assert report.can_render
        assert not report.passes_threshold

        impossible = project.history(1)
        assert [e.strategy for e in impossible] == [StrategyKind.INITIAL, StrategyKind.STOCK_ASSET]
        assert impossible[0].provider_id == "runway"

        # Review
        project.approve_scene(2)
        assert project.report().passes_threshold

        # Overlays
        placements = project.plan_overlays(2, [
            TextOverlay(text="Maria, regular since 2015", type=OverlayType.LOWER_THIRD),
            TextOverlay(text="Best bread in town", type=OverlayType.LOWER_THIRD),
            TextOverlay(text="Best bread in town", type=OverlayType.LOWER_THIRD),
        ])
        assert len(placements.duplicates_dropped) == 1
        assert len(placements.placements) == 2
        for placement in placements.placements:
            assert not placement.bounds.intersects(frame.obstructions[0])

        # Transitions
        transitions = project.plan_transitions()
        assert [(t.from_scene, t.to_scene) for t in transitions] == [(0, 1), (1, 2), (2, 3)]
        assert transitions[0].type.value == "fade"

        # Render
        job = await project.render()

        assert job.status == RenderStatus.DONE
        assert job.output_locator is not None
        assert job.chunks[-1].frames.end == job.total_frames
        assert job.total_frames == (5 + 5 + 8 + 5) * 30
        assert engine.max_concurrent <= 2
        assert project.render_status() == job

    @pytest.mark.asyncio
    async def test_render_blocked_by_terminal_failure(self, storage, bakery_requests):
        analyzer = StubVisionAnalyzer(default_score=90, scene_script={0: [50.0] * 10})
        project = _project(storage, analyzer, max_regenerations=2)

        report = await project.generate(bakery_requests)

        status = report.status_of(0)
        assert status.terminal_failure
        assert status.regeneration_count == 2
        assert not report.can_render
        with pytest.raises(RenderBlockedError):
            await project.render()
        assert project.render_status() is None

    @pytest.mark.asyncio
    async def test_accept_best_alternative(self, storage, bakery_requests):
        """Test that a user can accept an earlier attempt after a terminal failure."""
        analyzer = StubVisionAnalyzer(default_score=90, scene_script={0: [68.0, 60.0, 55.0, 50.0]})
        project = _project(storage, analyzer)

        await project.generate(bakery_requests)
        assert project.report().status_of(0).terminal_failure

        alternatives = project.alternatives(0)
        assert len(alternatives) == 4
        best = alternatives[0]
        assert best.score == 68

        status = project.accept_alternative(0, best.id)

        assert status.status == SceneStatus.APPROVED
        assert status.score == 68
        assert project.registry.current(0).id == best.id
        assert project.report().can_render

    @pytest.mark.asyncio
    async def test_accepted_alternative_brings_its_own_evidence(self, storage, bakery_requests, frame):
        """Test that accepting an earlier asset drops the issues of the discarded one."""
        glare = FrameAnalysis(dominant_colors=("neon green",), lighting=LightingType.COOL)
        analyzer = StubVisionAnalyzer(
            default_score=90,
            scene_script={0: [68.0, 60.0, 55.0, build_analysis(0, 40, critical=1, frame=glare)]},
            frame=frame,
        )
        project = _project(storage, analyzer, minimum_project_score=60)

        await project.generate(bakery_requests)
        assert project.report().status_of(0).terminal_failure
        assert project.report().critical_issue_count == 1

        best = project.alternatives(0)[0]
        status = project.accept_alternative(0, best.id)

        assert status.score == 68
        assert status.issues == ()
        report = project.report()
        assert report.critical_issue_count == 0
        assert report.can_render

        # Overlays and transitions see the accepted asset's frame
        placements = project.plan_overlays(0, [TextOverlay(text="Open 7am", type=OverlayType.TITLE)])
        assert not placements.placements[0].bounds.intersects(frame.obstructions[0])
        first = project.plan_transitions()[0]
        assert first.from_scene == 0
        assert project.registry.current(0).frame == frame

        job = await project.render()
        assert job.status == RenderStatus.DONE

        assert project.report().can_render

    @pytest.mark.asyncio
    async def test_user_rejection_and_regeneration(self, storage, bakery_requests):
        analyzer = StubVisionAnalyzer(default_score=90)
        project = _project(storage, analyzer)
        await project.generate(bakery_requests)

        project.reject_scene(3, "Logo is cut off")
        assert not project.report().can_render

        decision = await project.regenerate_scene(3)

        assert decision.strategy == StrategyKind.NEXT_PROVIDER
        assert project.report().status_of(3).status == SceneStatus.APPROVED
        assert len(project.history(3)) == 2

    @pytest.mark.asyncio
    async def test_render_chunk_failure_reported(self, storage, bakery_requests):
        analyzer = StubVisionAnalyzer(default_score=90)
        engine = StubRenderingEngine(storage, failures={300: 10})
        project = _project(storage, analyzer, engine=engine)
        await project.generate(bakery_requests)

        job = await project.render()

        assert job.status == RenderStatus.FAILED
        assert job.failure_reasons[0].startswith("chunk 2 (frames 300-450)")
        assert engine.stitched == []
