"""Project-facing API.

``VideoProject`` wires one project's gate, registry, feedback loop,
placement, transitions and render orchestrator together. It is what a UI
or CLI talks to.
"""

from __future__ import annotations

from src.common.errors import RenderBlockedError, UnknownSceneError
from src.common.logging import get_logger
from src.common.models import (
    ComposedScene,
    CompositionSpec,
    FrameAnalysis,
    GeneratedAsset,
    ProjectQualityReport,
    QualityThresholds,
    RegenerationDecision,
    RegenerationHistoryEntry,
    RenderJob,
    ScenePlacementResult,
    SceneQualityStatus,
    SceneRequest,
    SceneStatus,
    SceneSummary,
    TextOverlay,
    TransitionPlan,
    generate_id,
)
from src.editing.placement import PlacementConfig, PlacementResolver
from src.editing.transitions import TransitionConfig, TransitionPlanner
from src.generation.collaborators import (
    GenerationProvider,
    RenderingEngine,
    StockAssetSource,
    VisionAnalyzer,
)
from src.orchestration.feedback_loop import GenerationFeedbackLoop, LoopConfig
from src.orchestration.render import RenderConfig, RenderOrchestrator
from src.quality.gate import QualityGate
from src.quality.registry import AssetRegistry

logger = get_logger(__name__)


class VideoProject:
    """One marketing video, from scene requests to a rendered artifact."""

    def __init__(
        self,
        provider: GenerationProvider,
        analyzer: VisionAnalyzer,
        engine: RenderingEngine,
        stock_source: StockAssetSource | None = None,
        project_id: str | None = None,
        thresholds: QualityThresholds | None = None,
        loop_config: LoopConfig | None = None,
        placement_config: PlacementConfig | None = None,
        transition_config: TransitionConfig | None = None,
        render_config: RenderConfig | None = None,
    ):
        self.id = project_id or generate_id("proj")
        self.gate = QualityGate(self.id, thresholds)
        self.registry = AssetRegistry(self.id)
        self.loop = GenerationFeedbackLoop(
            self.id,
            provider=provider,
            analyzer=analyzer,
            gate=self.gate,
            registry=self.registry,
            stock_source=stock_source,
            config=loop_config or LoopConfig.from_settings(),
        )
        self.placement = PlacementResolver(placement_config or PlacementConfig.from_settings())
        self.transitions = TransitionPlanner(transition_config or TransitionConfig.from_settings())
        self.renderer = RenderOrchestrator(engine, render_config or RenderConfig.from_settings())

        self._requests: dict[int, SceneRequest] = {}
        self._overlays: dict[int, ScenePlacementResult] = {}
        self._transition_plans: list[TransitionPlan] | None = None
        self._render_job_id: str | None = None

    # =========================================================================
    # Generation and review
    # =========================================================================

    async def generate(self, requests: list[SceneRequest]) -> ProjectQualityReport:
        """Generate every scene and return the quality report."""
        for request in requests:
            self._requests[request.scene_index] = request
        self._transition_plans = None
        return await self.loop.run_project(requests)

    async def analyze_scene(self, scene_index: int) -> SceneQualityStatus:
        return await self.loop.analyze_scene(scene_index)

    def report(self) -> ProjectQualityReport:
        return self.gate.report()

    def approve_scene(self, scene_index: int) -> SceneQualityStatus:
        return self.gate.approve_scene(scene_index)

    def reject_scene(self, scene_index: int, reason: str) -> SceneQualityStatus:
        return self.gate.reject_scene(scene_index, reason)

    def accept_alternative(self, scene_index: int, asset_id: str) -> SceneQualityStatus:
        """Make an earlier asset current and approve the scene with it."""
        asset = self.registry.revert(scene_index, asset_id)
        logger.info(
            "alternative_accepted",
            scene_index=scene_index,
            asset_id=asset_id,
            score=asset.score,
        )
        return self.gate.approve_scene(
            scene_index,
            override=True,
            score=asset.score,
            issues=asset.issues,
        )

    async def regenerate_scene(self, scene_index: int) -> RegenerationDecision:
        return await self.loop.regenerate_scene(scene_index)

    def cancel_scene(self, scene_index: int) -> bool:
        return self.loop.cancel_scene(scene_index)

    def history(self, scene_index: int | None = None) -> tuple[RegenerationHistoryEntry, ...]:
        return self.registry.history(scene_index)

    def alternatives(self, scene_index: int) -> tuple[GeneratedAsset, ...]:
        return self.registry.alternatives(scene_index)

    # =========================================================================
    # Overlays and transitions
    # =========================================================================

    def plan_overlays(self, scene_index: int, overlays: list[TextOverlay]) -> ScenePlacementResult:
        """Place a scene's overlays against the frame analysis of its current asset."""
        request = self._request(scene_index)
        result = self.placement.resolve(
            scene_index,
            overlays,
            duration_seconds=request.duration_seconds,
            frame=self._frame(scene_index),
        )
        self._overlays[scene_index] = result
        return result

    def plan_transitions(self) -> list[TransitionPlan]:
        """Plan transitions between the scenes that will be rendered."""
        summaries = [self._summary(i) for i in self._renderable_scenes()]
        style = self._style_profile()
        self._transition_plans = self.transitions.plan(summaries, style_profile=style)
        return self._transition_plans

    # =========================================================================
    # Rendering
    # =========================================================================

    async def render(self) -> RenderJob:
        """Render the project.

        Raises:
            RenderBlockedError: If the quality report does not allow rendering
        """
        allowed, reason = self.gate.can_proceed_to_render()
        if not allowed:
            logger.warning("render_blocked", project_id=self.id, reason=reason)
            raise RenderBlockedError(reason)

        scenes = []
        for scene_index in self._renderable_scenes():
            asset = self.registry.current(scene_index)
            if asset is None:
                raise RenderBlockedError(f"Scene {scene_index} has no asset")
            placements = self._overlays.get(scene_index)
            scenes.append(ComposedScene(
                scene_index=scene_index,
                asset_locator=asset.locator,
                duration_seconds=self._duration(scene_index, asset),
                placements=placements.placements if placements else (),
            ))

        transitions = self._transition_plans
        if transitions is None:
            transitions = self.plan_transitions()

        composition = CompositionSpec(
            project_id=self.id,
            fps=self.renderer.config.fps,
            scenes=tuple(scenes),
            transitions=tuple(transitions),
        )
        job = await self.renderer.render(composition)
        self._render_job_id = job.id
        return job

    def render_status(self) -> RenderJob | None:
        if self._render_job_id is None:
            return None
        return self.renderer.status(self._render_job_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _request(self, scene_index: int) -> SceneRequest:
        try:
            return self._requests[scene_index]
        except KeyError:
            raise UnknownSceneError(scene_index) from None

    def _renderable_scenes(self) -> list[int]:
        report = self.gate.report()
        return [
            s.scene_index for s in report.scene_statuses
            if s.status in (SceneStatus.APPROVED, SceneStatus.NEEDS_REVIEW)
        ]

    def _frame(self, scene_index: int) -> FrameAnalysis | None:
        asset = self.registry.current(scene_index)
        return asset.frame if asset else None

    def _duration(self, scene_index: int, asset: GeneratedAsset) -> float:
        if asset.duration_seconds > 0:
            return asset.duration_seconds
        return self._request(scene_index).duration_seconds

    def _summary(self, scene_index: int) -> SceneSummary:
        request = self._request(scene_index)
        asset = self.registry.current(scene_index)
        frame = asset.frame if asset else None
        return SceneSummary(
            scene_index=scene_index,
            scene_type=request.scene_type,
            duration_seconds=self._duration(scene_index, asset) if asset else request.duration_seconds,
            dominant_colors=frame.dominant_colors if frame else (),
            lighting=frame.lighting if frame else None,
        )

    def _style_profile(self) -> str:
        if not self._requests:
            return "professional"
        return self._requests[min(self._requests)].style_profile
