"""Unit tests for the asset registry."""

import threading

import pytest

from src.common.errors import DecisionLayerError
from src.common.models import (
    AttemptOutcome,
    FrameAnalysis,
    GeneratedAsset,
    IssueSeverity,
    QualityIssue,
    RegenerationHistoryEntry,
    StrategyKind,
)
from src.quality import AssetRegistry


def _asset(scene_index=0, provider_id="kling", locator="mem://a"):
    return GeneratedAsset(
        scene_index=scene_index,
        provider_id=provider_id,
        request_id="req_1",
        locator=locator,
        duration_seconds=5,
    )


def _entry(scene_index=0, attempt=0, strategy=StrategyKind.INITIAL, provider_id="kling"):
    return RegenerationHistoryEntry(
        scene_index=scene_index,
        attempt_number=attempt,
        strategy=strategy,
        provider_id=provider_id,
        outcome=AttemptOutcome.REJECTED,
    )


class TestHistory:
    """Tests for the append-only history log."""

    def test_append_and_filter(self, registry):
        registry.append(_entry(scene_index=0))
        registry.append(_entry(scene_index=1))
        registry.append(_entry(scene_index=0, attempt=1, strategy=StrategyKind.NEXT_PROVIDER))

        assert len(registry.history()) == 3
        assert [e.attempt_number for e in registry.history(0)] == [0, 1]

    def test_history_snapshot_is_immutable(self, registry):
        """Test that callers cannot edit the log through a snapshot."""
        registry.append(_entry())

        snapshot = registry.history()
        assert isinstance(snapshot, tuple)

        registry.append(_entry(attempt=1))
        assert len(snapshot) == 1
        assert len(registry.history()) == 2

    def test_tried_providers_and_strategies(self, registry):
        registry.append(_entry(provider_id="runway"))
        registry.append(_entry(attempt=1, strategy=StrategyKind.STOCK_ASSET, provider_id="stock"))
        registry.add_asset(_asset(provider_id="luma"))

        assert registry.tried_providers(0) == {"runway", "stock", "luma"}
        assert registry.tried_strategies(0) == {StrategyKind.INITIAL, StrategyKind.STOCK_ASSET}
        assert registry.tried_providers(1) == set()

    def test_concurrent_appends(self, registry):
        def worker(scene):
            for attempt in range(20):
                registry.append(_entry(scene_index=scene, attempt=attempt))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry.history()) == 100
        assert all(len(registry.history(i)) == 20 for i in range(5))


class TestAssets:
    """Tests for current assets and alternatives."""

    def test_new_asset_becomes_current(self, registry):
        first = registry.add_asset(_asset(locator="mem://1"))
        second = registry.add_asset(_asset(locator="mem://2"))

        assert registry.current(0).id == second.id
        assert [a.id for a in registry.alternatives(0)] == [first.id, second.id]

    def test_revert(self, registry):
        first = registry.add_asset(_asset(locator="mem://1"))
        registry.add_asset(_asset(locator="mem://2"))

        reverted = registry.revert(0, first.id)

        assert reverted.id == first.id
        assert registry.current(0).id == first.id
        assert len(registry.alternatives(0)) == 2

    def test_revert_unknown_asset(self, registry):
        with pytest.raises(DecisionLayerError):
            registry.revert(0, "asset_missing")

    def test_record_score_and_best(self, registry):
        first = registry.add_asset(_asset(locator="mem://1"))
        second = registry.add_asset(_asset(locator="mem://2"))
        third = registry.add_asset(_asset(locator="mem://3"))

        registry.record_score(first.id, 72)
        registry.record_score(second.id, 64)
        registry.record_score(third.id, 72)

        # Earlier asset wins the tie
        assert registry.best_asset(0).id == first.id
        assert registry.get_asset(0, second.id).score == 64

    def test_record_score_keeps_evidence(self, registry):
        asset = registry.add_asset(_asset())
        issue = QualityIssue(severity=IssueSeverity.CRITICAL, description="Hand has six fingers")
        frame = FrameAnalysis(dominant_colors=("cream",))

        registry.record_score(asset.id, 41, issues=(issue,), frame=frame)

        stored = registry.get_asset(0, asset.id)
        assert stored.issues == (issue,)
        assert stored.frame == frame

    def test_best_asset_ignores_unscored(self, registry):
        registry.add_asset(_asset())

        assert registry.best_asset(0) is None

    def test_record_score_unknown(self, registry):
        with pytest.raises(DecisionLayerError):
            registry.record_score("asset_missing", 50)


class TestStock:
    """Tests for project-wide stock clip claims."""

    def test_claim_once(self, registry):
        assert registry.claim_stock("stock://clip_001.mp4")
        assert not registry.claim_stock("stock://clip_001.mp4")
        assert registry.used_stock == frozenset({"stock://clip_001.mp4"})
