"""Generation-quality feedback loop.

For each scene: assess the prompt, rank providers, generate, analyze, and
let the quality gate decide. Rejected scenes go back through the
regeneration strategist until they pass or the budget runs out.

Scenes run concurrently. A semaphore bounds in-flight provider calls, and
a per-scene lock makes sure a scene never has two attempts at once.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from src.common.errors import InvalidTransitionError, RegenerationBudgetExceeded, UnknownSceneError
from src.common.logging import bind_scene_context, get_logger
from src.common.models import (
    AttemptOutcome,
    ComplexityAssessment,
    GeneratedAsset,
    ProviderRanking,
    RegenerationDecision,
    RegenerationHistoryEntry,
    SceneQualityStatus,
    SceneRequest,
    SceneStatus,
    StrategyKind,
    ProjectQualityReport,
)
from src.generation.collaborators import (
    GenerationProvider,
    GenerationResult,
    GenerationSuccess,
    PermanentGenerationError,
    StockAssetSource,
    TransientGenerationError,
    VisionAnalyzer,
    run_generation,
)
from src.generation.complexity import ComplexityAssessor
from src.generation.provider_selector import ProviderSelector
from src.generation.providers import shape_request
from src.quality.gate import QualityGate
from src.quality.regeneration import STOCK_PROVIDER_ID, RegenerationStrategist
from src.quality.registry import AssetRegistry

logger = get_logger(__name__)

STOCK_CLAIM_ATTEMPTS = 3


@dataclass
class GenerationMetrics:
    """Counters for provider calls made by the loop."""

    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    total_cost: float = 0.0

    def record_success(self, cost: float = 0.0) -> None:
        self.total_calls += 1
        self.successful_calls += 1
        self.total_cost += cost

    def record_failure(self) -> None:
        self.total_calls += 1
        self.failed_calls += 1

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.successful_calls / self.total_calls


@dataclass
class LoopConfig:
    """Concurrency and retry policy for the loop."""

    workers: int = 4
    timeout_seconds: float = 300.0
    regenerate_needs_review: bool = False

    @classmethod
    def from_settings(cls) -> "LoopConfig":
        from src.common.config import get_settings

        settings = get_settings()
        return cls(
            workers=settings.generation_workers,
            timeout_seconds=settings.generation_timeout_seconds,
            regenerate_needs_review=settings.regenerate_needs_review,
        )


@dataclass
class ScenePlan:
    """Working state for one scene."""

    request: SceneRequest
    assessment: ComplexityAssessment
    ranking: ProviderRanking
    original_request: SceneRequest
    decisions: list[RegenerationDecision] = field(default_factory=list)


class GenerationFeedbackLoop:
    """Drive scenes of one project from request to a quality decision."""

    def __init__(
        self,
        project_id: str,
        provider: GenerationProvider,
        analyzer: VisionAnalyzer,
        gate: QualityGate,
        registry: AssetRegistry,
        stock_source: StockAssetSource | None = None,
        selector: ProviderSelector | None = None,
        assessor: ComplexityAssessor | None = None,
        strategist: RegenerationStrategist | None = None,
        config: LoopConfig | None = None,
    ):
        self.project_id = project_id
        self.provider = provider
        self.analyzer = analyzer
        self.gate = gate
        self.registry = registry
        self.stock_source = stock_source
        self.selector = selector or ProviderSelector()
        self.assessor = assessor or ComplexityAssessor()
        self.strategist = strategist or RegenerationStrategist(
            registry,
            max_regenerations=gate.thresholds.max_regenerations,
            profiles={p.id: p for p in self.selector.profiles},
        )
        self.config = config or LoopConfig()
        self.metrics = GenerationMetrics()

        self._semaphore = asyncio.Semaphore(self.config.workers)
        self._scene_locks: dict[int, asyncio.Lock] = {}
        self._in_flight: dict[int, asyncio.Task] = {}
        self._plans: dict[int, ScenePlan] = {}

    # =========================================================================
    # Queries
    # =========================================================================

    def plan_for(self, scene_index: int) -> ScenePlan:
        try:
            return self._plans[scene_index]
        except KeyError:
            raise UnknownSceneError(scene_index) from None

    # =========================================================================
    # Entry points
    # =========================================================================

    async def run_project(self, requests: list[SceneRequest]) -> ProjectQualityReport:
        """Run every scene concurrently and return the resulting report."""
        for request in requests:
            self.gate.register_scene(request.scene_index)

        logger.info("project_generation_started", project_id=self.project_id, scenes=len(requests))

        results = await asyncio.gather(
            *(self.run_scene(request) for request in requests),
            return_exceptions=True,
        )

        for request, result in zip(requests, results):
            if not isinstance(result, BaseException):
                continue
            if isinstance(result, asyncio.CancelledError):
                reason = "Generation was cancelled"
            else:
                reason = f"Unexpected error: {type(result).__name__}: {result}"
                logger.error(
                    "scene_loop_crashed",
                    scene_index=request.scene_index,
                    error=str(result),
                    exc_info=result,
                )
            self.gate.mark_terminal_failure(request.scene_index, reason)

        report = self.gate.report()
        logger.info(
            "project_generation_finished",
            project_id=self.project_id,
            overall_score=round(report.overall_score, 2),
            approved=report.approved_count,
            needs_review=report.needs_review_count,
            rejected=report.rejected_count,
            can_render=report.can_render,
            provider_calls=self.metrics.total_calls,
            cost=round(self.metrics.total_cost, 4),
        )
        return report

    async def run_scene(self, request: SceneRequest) -> SceneQualityStatus:
        """Generate a scene and regenerate until it passes or gives up."""
        scene = request.scene_index
        async with self._lock_for(scene):
            bind_scene_context(self.project_id, scene)
            self.gate.register_scene(scene)

            plan = self._prepare(request)
            top = plan.ranking.top
            if top is not None and top.eligible:
                provider_id, reason = top.provider_id, top.reason
            elif top is not None:
                provider_id, reason = None, f"No provider supports {request.duration_seconds:g}s clips"
            else:
                provider_id, reason = None, "No provider available"
            initial = RegenerationDecision(
                scene_index=scene,
                strategy=StrategyKind.INITIAL,
                attempt_number=0,
                provider_id=provider_id,
                request=request,
                reason=reason,
            )
            await self._attempt(plan, initial)

            status = self.gate.status(scene)
            while self._should_regenerate(status):
                decision = await self._regenerate_once(plan, status)
                status = self.gate.status(scene)
                if decision.is_terminal:
                    break

            return status

    async def regenerate_scene(self, scene_index: int) -> RegenerationDecision:
        """Run a single user-triggered regeneration step.

        Raises:
            InvalidTransitionError: If the scene is not rejected or in review
        """
        async with self._lock_for(scene_index):
            bind_scene_context(self.project_id, scene_index)
            plan = self.plan_for(scene_index)
            status = self.gate.status(scene_index)
            if status.status not in (SceneStatus.REJECTED, SceneStatus.NEEDS_REVIEW):
                raise InvalidTransitionError(scene_index, status.status.value, SceneStatus.PENDING.value)
            return await self._regenerate_once(plan, status)

    async def analyze_scene(self, scene_index: int) -> SceneQualityStatus:
        """Analyze the current asset of a pending scene."""
        async with self._lock_for(scene_index):
            plan = self.plan_for(scene_index)
            asset = self.registry.current(scene_index)
            status = self.gate.status(scene_index)
            if asset is None or status.status != SceneStatus.PENDING:
                raise InvalidTransitionError(scene_index, status.status.value, "analyzed")
            await self._analyze(plan, asset)
            return self.gate.status(scene_index)

    def cancel_scene(self, scene_index: int) -> bool:
        """Cancel the in-flight provider call for a scene, if there is one.

        The cancelled call is recorded as a transient failure and the loop
        moves on to the next strategy.
        """
        task = self._in_flight.get(scene_index)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("scene_generation_cancel_requested", scene_index=scene_index)
        return True

    # =========================================================================
    # Steps
    # =========================================================================

    def _lock_for(self, scene_index: int) -> asyncio.Lock:
        if scene_index not in self._scene_locks:
            self._scene_locks[scene_index] = asyncio.Lock()
        return self._scene_locks[scene_index]

    def _prepare(self, request: SceneRequest) -> ScenePlan:
        assessment = self.assessor.assess(request.prompt)
        ranking = self.selector.rank(request, assessment)
        for warning in ranking.warnings:
            logger.warning("scene_generation_warning", scene_index=request.scene_index, warning=warning)

        plan = ScenePlan(
            request=request,
            assessment=assessment,
            ranking=ranking,
            original_request=request,
        )
        self._plans[request.scene_index] = plan
        return plan

    def _should_regenerate(self, status: SceneQualityStatus) -> bool:
        if status.terminal_failure:
            return False
        if status.status == SceneStatus.REJECTED:
            return True
        return status.status == SceneStatus.NEEDS_REVIEW and self.config.regenerate_needs_review

    async def _regenerate_once(self, plan: ScenePlan, status: SceneQualityStatus) -> RegenerationDecision:
        scene = status.scene_index
        decision = self.strategist.decide(plan.request, status, plan.ranking, plan.assessment)
        plan.decisions.append(decision)

        if decision.is_terminal:
            self.gate.mark_terminal_failure(scene, f"{decision.reason}. {decision.recommendation}")
            return decision

        try:
            self.gate.begin_regeneration(scene)
        except RegenerationBudgetExceeded as e:
            self.gate.mark_terminal_failure(scene, str(e))
            return decision.model_copy(update={"strategy": StrategyKind.TERMINAL_FAILURE, "reason": str(e)})

        plan.request = decision.request or plan.request
        await self._attempt(plan, decision)
        return decision

    async def _attempt(self, plan: ScenePlan, decision: RegenerationDecision) -> AttemptOutcome:
        """Make one attempt and record it in the gate and the history."""
        scene = decision.scene_index
        request = decision.request or plan.request
        previous = self.registry.current(scene)

        if decision.strategy == StrategyKind.STOCK_ASSET:
            result = await self._fetch_stock(plan, request)
        elif decision.provider_id is None:
            result = PermanentGenerationError(provider_id="", message=decision.reason)
        else:
            result = await self._generate(decision.provider_id, request)

        score = None
        new_locator = None
        if isinstance(result, GenerationSuccess):
            self.metrics.record_success(result.cost)
            asset = self.registry.add_asset(GeneratedAsset(
                scene_index=scene,
                provider_id=result.provider_id,
                request_id=request.id,
                approach=request.approach,
                locator=result.asset_locator,
                duration_seconds=result.duration_seconds,
                cost=result.cost,
            ))
            new_locator = asset.locator
            try:
                status = await self._analyze(plan, asset)
            except Exception as e:
                detail = f"Analysis failed: {type(e).__name__}: {e}"
                logger.exception("scene_analysis_failed", scene_index=scene, asset_id=asset.id)
                self.gate.record_generation_failure(scene, detail)
                outcome = AttemptOutcome.ANALYSIS_FAILED
            else:
                score = status.score
                outcome = {
                    SceneStatus.APPROVED: AttemptOutcome.APPROVED,
                    SceneStatus.NEEDS_REVIEW: AttemptOutcome.NEEDS_REVIEW,
                }.get(status.status, AttemptOutcome.REJECTED)
                detail = decision.reason
        elif result is None:
            self.gate.record_generation_failure(scene, "No unused stock clip available")
            outcome = AttemptOutcome.NO_ASSET
            detail = "No unused stock clip available"
        else:
            self.metrics.record_failure()
            self.gate.record_generation_failure(scene, result.message)
            outcome = (
                AttemptOutcome.TRANSIENT_FAILURE
                if isinstance(result, TransientGenerationError)
                else AttemptOutcome.PERMANENT_FAILURE
            )
            detail = result.message

        self.registry.append(RegenerationHistoryEntry(
            scene_index=scene,
            attempt_number=decision.attempt_number,
            strategy=decision.strategy,
            provider_id=decision.provider_id,
            request_id=request.id,
            previous_locator=previous.locator if previous else None,
            new_locator=new_locator,
            outcome=outcome,
            score=score,
            detail=detail,
        ))

        logger.info(
            "scene_attempt_finished",
            scene_index=scene,
            attempt=decision.attempt_number,
            strategy=decision.strategy.value,
            provider=decision.provider_id,
            outcome=outcome.value,
            score=score,
        )
        return outcome

    async def _generate(self, provider_id: str, request: SceneRequest) -> GenerationResult:
        profile = self.selector.get_profile(provider_id)
        if profile is None:
            return PermanentGenerationError(provider_id=provider_id, message=f"Unknown provider {provider_id}")

        payload = shape_request(profile, request)
        scene = request.scene_index

        def track(task: asyncio.Task) -> None:
            self._in_flight[scene] = task

        async with self._semaphore:
            try:
                return await run_generation(
                    self.provider,
                    provider_id,
                    payload,
                    timeout_seconds=self.config.timeout_seconds,
                    on_started=track,
                )
            finally:
                self._in_flight.pop(scene, None)

    async def _fetch_stock(self, plan: ScenePlan, request: SceneRequest) -> GenerationSuccess | None:
        if self.stock_source is None:
            return None

        query = plan.assessment.simplified_prompt or request.prompt
        for _ in range(STOCK_CLAIM_ATTEMPTS):
            locator = await self.stock_source.search(
                query,
                request.duration_seconds,
                exclude=self.registry.used_stock,
            )
            if locator is None:
                return None
            # Another scene may have claimed it since the search
            if self.registry.claim_stock(locator):
                return GenerationSuccess(
                    provider_id=STOCK_PROVIDER_ID,
                    asset_locator=locator,
                    duration_seconds=request.duration_seconds,
                )
        return None

    async def _analyze(self, plan: ScenePlan, asset: GeneratedAsset) -> SceneQualityStatus:
        context = {
            "project_id": self.project_id,
            "scene_index": asset.scene_index,
            "scene_type": plan.request.scene_type.value,
            "content_type": plan.request.content_type.value,
            "prompt": plan.request.prompt,
            "provider_id": asset.provider_id,
            "approach": asset.approach.value,
        }
        analysis = await self.analyzer.analyze(asset.locator, context)
        analysis = analysis.model_copy(update={
            "scene_index": asset.scene_index,
            "asset_locator": asset.locator,
        })

        self.registry.record_score(asset.id, analysis.overall_score, analysis.issues, analysis.frame)
        return self.gate.record_analysis(analysis)
