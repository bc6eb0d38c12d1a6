#!/usr/bin/env python3
"""
Scene Decision Layer Demo Script

Runs one marketing video through the whole decision layer with the
in-process stub collaborators:
1. Assess prompt complexity and rank providers per scene
2. Generate every scene concurrently
3. Score each result and apply the quality gate
4. Regenerate rejected scenes until they pass or the budget runs out
5. Place text overlays and plan transitions
6. Render in chunks and stitch

Output artifacts in outputs/<project_id>/ (with --save):
- quality_report.json
- history.json
- transitions.json
- render_job.json

Usage:
    python scripts/run_demo.py
    python scripts/run_demo.py --scenario bakery
    python scripts/run_demo.py --fail-provider runway
    python scripts/run_demo.py --save

Scenarios:
    bakery   - Artisan bakery ad with one impossible close-up
    saas     - Problem/solution software explainer
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.common.errors import RenderBlockedError
from src.common.logging import get_logger, setup_logging, setup_logging_from_settings
from src.common.models import (
    ContentType,
    FrameAnalysis,
    LightingType,
    OverlayType,
    Region,
    SceneRequest,
    SceneType,
    TextOverlay,
)
from src.generation import (
    InMemoryObjectStorage,
    StubGenerationProvider,
    StubRenderingEngine,
    StubStockAssetSource,
    StubVisionAnalyzer,
)
from src.orchestration import RenderConfig, VideoProject

logger = get_logger(__name__)


SCENARIOS: dict[str, list[SceneRequest]] = {
    "bakery": [
        SceneRequest(
            scene_index=0,
            scene_type=SceneType.HOOK,
            content_type=ContentType.LIFESTYLE,
            prompt="Warm morning light over a small bakery storefront",
            duration_seconds=5,
            style_profile="cinematic",
        ),
        SceneRequest(
            scene_index=1,
            scene_type=SceneType.PRODUCT,
            content_type=ContentType.PRODUCT,
            prompt="Hands stretching translucent dough outward",
            duration_seconds=5,
            style_profile="cinematic",
        ),
        SceneRequest(
            scene_index=2,
            scene_type=SceneType.TESTIMONIAL,
            content_type=ContentType.PERSON,
            prompt="A regular customer smiling with a fresh loaf",
            duration_seconds=8,
            style_profile="cinematic",
        ),
        SceneRequest(
            scene_index=3,
            scene_type=SceneType.CTA,
            content_type=ContentType.PRODUCT,
            prompt="Bread basket on a rustic counter, shop logo space",
            duration_seconds=5,
            style_profile="cinematic",
        ),
    ],
    "saas": [
        SceneRequest(
            scene_index=0,
            scene_type=SceneType.PROBLEM,
            content_type=ContentType.PERSON,
            prompt="Frustrated office worker buried in spreadsheets",
            duration_seconds=6,
        ),
        SceneRequest(
            scene_index=1,
            scene_type=SceneType.SOLUTION,
            content_type=ContentType.ABSTRACT,
            prompt="Clean dashboard animating into focus",
            duration_seconds=6,
        ),
        SceneRequest(
            scene_index=2,
            scene_type=SceneType.BENEFIT,
            content_type=ContentType.LIFESTYLE,
            prompt="Team celebrating a finished project",
            duration_seconds=6,
        ),
        SceneRequest(
            scene_index=3,
            scene_type=SceneType.CTA,
            content_type=ContentType.ABSTRACT,
            prompt="Logo reveal on a gradient background",
            duration_seconds=4,
        ),
    ],
}

OVERLAYS: dict[int, list[TextOverlay]] = {
    0: [TextOverlay(text="Baked Fresh Daily", type=OverlayType.TITLE)],
    2: [
        TextOverlay(text="Maria, regular since 2015", type=OverlayType.LOWER_THIRD),
        TextOverlay(text="Best bread in town", type=OverlayType.LOWER_THIRD),
        TextOverlay(text="Best bread in town", type=OverlayType.LOWER_THIRD),
    ],
    3: [TextOverlay(text="Order Online Today", type=OverlayType.CTA)],
}


def save_json(data: dict | list, path: Path, name: str) -> None:
    """Save data as JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2, default=str)
    print(f"   📄 {name}: {path.name}")


async def run_demo(scenario: str, fail_provider: str | None, save: bool) -> bool:
    """Run the demo. Returns True if a render was produced."""
    storage = InMemoryObjectStorage()
    script = {fail_provider: ["transient"]} if fail_provider else {}

    # Low scores for the hardest scene force the regeneration path
    analyzer = StubVisionAnalyzer(
        default_score=88,
        scene_script={1: [55.0, 62.0]},
        frame=FrameAnalysis(
            obstructions=(Region(name="face", x=35, y=20, width=30, height=40),),
            safe_zones=("lower-third", "top-left"),
            dominant_colors=("warm brown", "cream"),
            lighting=LightingType.WARM,
        ),
    )

    project = VideoProject(
        provider=StubGenerationProvider(storage, script=script),
        analyzer=analyzer,
        engine=StubRenderingEngine(storage),
        stock_source=StubStockAssetSource(),
        render_config=RenderConfig(chunk_seconds=10),
    )
    requests = SCENARIOS[scenario]

    print(f"\n🎬 Project {project.id} ({scenario}, {len(requests)} scenes)")

    print("\n⚙️  Generating scenes...")
    report = await project.generate(requests)
    for status in report.scene_statuses:
        score = f"{status.score:.0f}" if status.score is not None else "-"
        print(
            f"   Scene {status.scene_index}: {status.status.value:<12} "
            f"score={score:<4} regenerations={status.regeneration_count}"
        )

    for entry in project.history():
        print(
            f"   ↻ scene {entry.scene_index} attempt {entry.attempt_number}: "
            f"{entry.strategy.value} via {entry.provider_id} -> {entry.outcome.value}"
        )

    print(f"\n📊 Overall score: {report.overall_score:.1f}")
    for reason in report.blocking_reasons:
        print(f"   ⚠️  {reason}")

    # Approve anything waiting on review so the render can proceed
    for status in report.scene_statuses:
        if status.status.value == "needs_review":
            project.approve_scene(status.scene_index)
            print(f"   ✅ Approved scene {status.scene_index}")

    print("\n🔤 Placing overlays...")
    for scene_index, overlays in OVERLAYS.items():
        if scene_index >= len(requests):
            continue
        result = project.plan_overlays(scene_index, overlays)
        for placement in result.placements:
            print(
                f"   Scene {scene_index}: '{placement.text}' at {placement.position.name} "
                f"[{placement.timing.start_seconds:.2f}s-{placement.timing.end_seconds:.2f}s]"
            )
        for skipped in result.unplaced + result.duplicates_dropped:
            print(f"   Scene {scene_index}: skipped '{skipped.text}' ({skipped.reason})")

    print("\n🎞️  Planning transitions...")
    transitions = project.plan_transitions()
    for plan in transitions:
        print(
            f"   {plan.from_scene} → {plan.to_scene}: {plan.type.value} "
            f"{plan.duration_seconds:.2f}s ({plan.mood_flow})"
        )

    print("\n🖥️  Rendering...")
    try:
        job = await project.render()
    except RenderBlockedError as e:
        print(f"   ❌ Render blocked: {e}")
        return False

    print(f"   Status: {job.status.value}, chunks: {len(job.chunks)}, output: {job.output_locator}")
    for reason in job.failure_reasons:
        print(f"   ❌ {reason}")

    if save:
        output_dir = Path("outputs") / project.id
        print(f"\n💾 Saving artifacts to {output_dir}")
        save_json(project.report().model_dump(mode="json"), output_dir / "quality_report.json", "Quality report")
        save_json([e.model_dump(mode="json") for e in project.history()], output_dir / "history.json", "History")
        save_json([t.model_dump(mode="json") for t in transitions], output_dir / "transitions.json", "Transitions")
        save_json(job.model_dump(mode="json"), output_dir / "render_job.json", "Render job")

    return job.status.value == "done"


def main():
    """Main entry point."""
    import argparse
    parser = argparse.ArgumentParser(
        description="Scene Decision Layer - Stub Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_demo.py --scenario bakery
  python scripts/run_demo.py --scenario saas --fail-provider kling
  python scripts/run_demo.py --json-logs --save
""",
    )
    parser.add_argument(
        "--scenario",
        type=str,
        choices=list(SCENARIOS.keys()),
        default="bakery",
        help="Demo scenario (default: bakery)",
    )
    parser.add_argument(
        "--fail-provider",
        type=str,
        default=None,
        help="Provider whose first call fails with a transient error",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: LOG_LEVEL from settings)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Write report, history, transitions and render job to outputs/",
    )
    args = parser.parse_args()

    if args.log_level or args.json_logs:
        setup_logging(log_level=args.log_level or "INFO", json_logs=args.json_logs)
    else:
        setup_logging_from_settings()

    success = asyncio.run(run_demo(
        scenario=args.scenario,
        fail_provider=args.fail_provider,
        save=args.save,
    ))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
