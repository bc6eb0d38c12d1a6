"""Deterministic in-process collaborators.

These let the whole decision layer run without network access: in tests,
in the demo script, and during local development. Every stub can be
scripted to fail so the regeneration and retry paths can be exercised.
"""

from __future__ import annotations

import asyncio
from typing import Any

from src.common.errors import PermanentProviderError, RenderEngineError, TransientProviderError
from src.common.logging import get_logger
from src.common.models import (
    AnalysisRecommendation,
    CompositionSpec,
    FrameAnalysis,
    FrameRange,
    IssueSeverity,
    QualityAnalysis,
    QualityIssue,
)
from src.common.models.base import generate_id
from src.generation.collaborators import (
    GenerationProvider,
    GenerationResult,
    GenerationSuccess,
    ObjectStorage,
    RenderingEngine,
    StockAssetSource,
    VisionAnalyzer,
)
from src.generation.providers import get_provider_profiles

logger = get_logger(__name__)


class InMemoryObjectStorage(ObjectStorage):
    """Blob storage backed by a dict."""

    def __init__(self):
        self._blobs: dict[str, bytes] = {}

    async def put(self, data: bytes, key_hint: str = "") -> str:
        key = f"{key_hint}/{generate_id('obj')}" if key_hint else generate_id("obj")
        locator = f"mem://{key}"
        self._blobs[locator] = data
        return locator

    async def get(self, locator: str) -> bytes:
        return self._blobs[locator]

    def __len__(self) -> int:
        return len(self._blobs)


def _payload_field(payload: dict[str, Any], *names: str) -> Any:
    """Read a field from a shaped payload regardless of provider layout."""
    nested = payload.get("input", {})
    for name in names:
        if name in payload:
            return payload[name]
        if name in nested:
            return nested[name]
    return None


class StubGenerationProvider(GenerationProvider):
    """Succeeds by default; scripted outcomes are consumed per provider.

    Script values:
        "transient": raise TransientProviderError
        "permanent": raise PermanentProviderError
        "hang": never return (for timeout and cancellation)
    """

    def __init__(
        self,
        storage: ObjectStorage,
        script: dict[str, list[str]] | None = None,
        delay_seconds: float = 0.0,
    ):
        self.storage = storage
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.delay_seconds = delay_seconds
        self.profiles = get_provider_profiles()
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def generate(self, provider_id: str, payload: dict[str, Any]) -> GenerationResult:
        self.calls.append((provider_id, payload))

        outcomes = self.script.get(provider_id)
        outcome = outcomes.pop(0) if outcomes else "success"

        if outcome == "hang":
            await asyncio.Event().wait()
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if outcome == "transient":
            raise TransientProviderError("Rate limited", provider_id=provider_id)
        if outcome == "permanent":
            raise PermanentProviderError("Prompt rejected by content filter", provider_id=provider_id)

        prompt = _payload_field(payload, "prompt", "promptText") or ""
        duration = float(_payload_field(payload, "duration") or 0.0)
        scene_index = payload.get("scene_index", 0)

        locator = await self.storage.put(
            f"{provider_id}:{prompt}".encode(),
            key_hint=f"scene_{scene_index}/{provider_id}",
        )
        profile = self.profiles.get(provider_id)
        cost = profile.cost_for(duration) if profile else 0.0

        return GenerationSuccess(
            provider_id=provider_id,
            asset_locator=locator,
            duration_seconds=duration,
            cost=cost,
        )


class StubVisionAnalyzer(VisionAnalyzer):
    """Returns scripted analyses.

    Lookup order for each call: the next scripted entry for the scene, the
    score configured for the provider, then the default score. Scripted
    entries are either a score or a complete ``QualityAnalysis``.
    """

    def __init__(
        self,
        default_score: float = 90.0,
        scene_script: dict[int, list[float | QualityAnalysis]] | None = None,
        provider_scores: dict[str, float] | None = None,
        frame: FrameAnalysis | None = None,
    ):
        self.default_score = default_score
        self.scene_script = {k: list(v) for k, v in (scene_script or {}).items()}
        self.provider_scores = provider_scores or {}
        self.frame = frame or FrameAnalysis()
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def analyze(self, asset_locator: str, context: dict[str, Any]) -> QualityAnalysis:
        self.calls.append((asset_locator, context))
        scene_index = context.get("scene_index", 0)

        scripted = self.scene_script.get(scene_index)
        entry: float | QualityAnalysis
        if scripted:
            entry = scripted.pop(0)
        else:
            entry = self.provider_scores.get(context.get("provider_id", ""), self.default_score)

        if isinstance(entry, QualityAnalysis):
            return entry.model_copy(update={"scene_index": scene_index, "asset_locator": asset_locator})

        return build_analysis(scene_index, float(entry), asset_locator=asset_locator, frame=self.frame)


def build_analysis(
    scene_index: int,
    score: float,
    asset_locator: str = "",
    critical: int = 0,
    major: int = 0,
    minor: int = 0,
    frame: FrameAnalysis | None = None,
) -> QualityAnalysis:
    """Build a plausible analysis for a score and issue counts."""
    issues = (
        [QualityIssue(severity=IssueSeverity.CRITICAL, description="Subject is distorted") for _ in range(critical)]
        + [QualityIssue(severity=IssueSeverity.MAJOR, description="Motion is unnatural") for _ in range(major)]
        + [QualityIssue(severity=IssueSeverity.MINOR, description="Slight color cast") for _ in range(minor)]
    )

    if critical:
        recommendation = AnalysisRecommendation.CRITICAL_FAIL
    elif score >= 85:
        recommendation = AnalysisRecommendation.APPROVE
    elif score >= 70:
        recommendation = AnalysisRecommendation.REVIEW
    else:
        recommendation = AnalysisRecommendation.REGENERATE

    return QualityAnalysis(
        scene_index=scene_index,
        asset_locator=asset_locator,
        overall_score=score,
        sub_scores={"composition": score, "technical": score, "content_match": score},
        issues=tuple(issues),
        content_match={"subject_present": score >= 70},
        recommendation=recommendation,
        frame=frame,
    )


class StubRenderingEngine(RenderingEngine):
    """Renders chunks into storage.

    ``failures`` maps a chunk's start frame to how many times it should
    fail before succeeding.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        failures: dict[int, int] | None = None,
        delay_seconds: float = 0.0,
    ):
        self.storage = storage
        self.failures = dict(failures or {})
        self.delay_seconds = delay_seconds
        self.rendered: list[FrameRange] = []
        self.stitched: list[list[str]] = []
        self.max_concurrent = 0
        self._active = 0

    async def render_chunk(self, composition: CompositionSpec, frames: FrameRange) -> str:
        self._active += 1
        self.max_concurrent = max(self.max_concurrent, self._active)
        try:
            if self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)

            remaining = self.failures.get(frames.start, 0)
            if remaining > 0:
                self.failures[frames.start] = remaining - 1
                raise RenderEngineError(f"Encoder crashed at frame {frames.start}")

            self.rendered.append(frames)
            return await self.storage.put(
                f"{composition.project_id}:{frames.start}-{frames.end}".encode(),
                key_hint=f"{composition.project_id}/chunks",
            )
        finally:
            self._active -= 1

    async def stitch(self, locators: list[str]) -> str:
        self.stitched.append(list(locators))
        return await self.storage.put("|".join(locators).encode(), key_hint="renders")


class StubStockAssetSource(StockAssetSource):
    """Returns clips from a fixed catalogue in order."""

    def __init__(self, catalogue: list[str] | None = None):
        self.catalogue = list(catalogue) if catalogue is not None else [
            f"stock://clip_{i:03d}.mp4" for i in range(1, 11)
        ]
        self.queries: list[str] = []

    async def search(
        self,
        query: str,
        duration_seconds: float,
        exclude: set[str] | frozenset[str],
    ) -> str | None:
        self.queries.append(query)
        for locator in self.catalogue:
            if locator not in exclude:
                return locator
        return None
