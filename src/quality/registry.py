"""Per-project asset registry and regeneration history.

One registry per project, passed explicitly to whatever needs it. The
history log only grows; entries are frozen and are never edited. Every
asset a scene has ever had stays available as an alternative.
"""

from __future__ import annotations

import threading

from src.common.errors import DecisionLayerError
from src.common.logging import get_logger
from src.common.models import (
    FrameAnalysis,
    GeneratedAsset,
    QualityIssue,
    RegenerationHistoryEntry,
    StrategyKind,
)

logger = get_logger(__name__)


class AssetRegistry:
    """Assets, history and stock usage for one project."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        self._lock = threading.Lock()
        self._history: list[RegenerationHistoryEntry] = []
        self._assets: dict[int, list[GeneratedAsset]] = {}
        self._current: dict[int, str] = {}
        self._used_stock: set[str] = set()

    # =========================================================================
    # History
    # =========================================================================

    def append(self, entry: RegenerationHistoryEntry) -> RegenerationHistoryEntry:
        """Append an attempt to the history log."""
        with self._lock:
            self._history.append(entry)

        logger.debug(
            "history_appended",
            scene_index=entry.scene_index,
            attempt=entry.attempt_number,
            strategy=entry.strategy.value,
            outcome=entry.outcome.value,
        )
        return entry

    def history(self, scene_index: int | None = None) -> tuple[RegenerationHistoryEntry, ...]:
        """Snapshot of the log, optionally for one scene."""
        with self._lock:
            entries = tuple(self._history)
        if scene_index is None:
            return entries
        return tuple(e for e in entries if e.scene_index == scene_index)

    def tried_providers(self, scene_index: int) -> set[str]:
        """Providers already attempted for a scene."""
        tried = {e.provider_id for e in self.history(scene_index) if e.provider_id}
        with self._lock:
            tried.update(a.provider_id for a in self._assets.get(scene_index, []))
        return tried

    def tried_strategies(self, scene_index: int) -> set[StrategyKind]:
        return {e.strategy for e in self.history(scene_index)}

    # =========================================================================
    # Assets
    # =========================================================================

    def add_asset(self, asset: GeneratedAsset, make_current: bool = True) -> GeneratedAsset:
        with self._lock:
            self._assets.setdefault(asset.scene_index, []).append(asset)
            if make_current:
                self._current[asset.scene_index] = asset.id
        return asset

    def record_score(
        self,
        asset_id: str,
        score: float,
        issues: tuple[QualityIssue, ...] = (),
        frame: FrameAnalysis | None = None,
    ) -> GeneratedAsset:
        """Attach the quality evidence of an analysis to the asset it judged."""
        with self._lock:
            for assets in self._assets.values():
                for i, asset in enumerate(assets):
                    if asset.id == asset_id:
                        assets[i] = asset.model_copy(update={
                            "score": score,
                            "issues": tuple(issues),
                            "frame": frame,
                        })
                        return assets[i]
        raise DecisionLayerError(f"Unknown asset {asset_id}")

    def current(self, scene_index: int) -> GeneratedAsset | None:
        with self._lock:
            asset_id = self._current.get(scene_index)
            if asset_id is None:
                return None
            return self._find(scene_index, asset_id)

    def alternatives(self, scene_index: int) -> tuple[GeneratedAsset, ...]:
        """Every asset produced for the scene, oldest first."""
        with self._lock:
            return tuple(self._assets.get(scene_index, []))

    def get_asset(self, scene_index: int, asset_id: str) -> GeneratedAsset:
        with self._lock:
            asset = self._find(scene_index, asset_id)
        if asset is None:
            raise DecisionLayerError(f"Scene {scene_index} has no asset {asset_id}")
        return asset

    def revert(self, scene_index: int, asset_id: str) -> GeneratedAsset:
        """Make an earlier asset the scene's current asset again."""
        with self._lock:
            asset = self._find(scene_index, asset_id)
            if asset is None:
                raise DecisionLayerError(f"Scene {scene_index} has no asset {asset_id}")
            self._current[scene_index] = asset_id

        logger.info("asset_reverted", scene_index=scene_index, asset_id=asset_id)
        return asset

    def best_asset(self, scene_index: int) -> GeneratedAsset | None:
        """Highest-scoring asset for the scene. Earlier assets win ties."""
        best = None
        for asset in self.alternatives(scene_index):
            if asset.score is None:
                continue
            if best is None or asset.score > best.score:
                best = asset
        return best

    def _find(self, scene_index: int, asset_id: str) -> GeneratedAsset | None:
        for asset in self._assets.get(scene_index, []):
            if asset.id == asset_id:
                return asset
        return None

    # =========================================================================
    # Stock assets
    # =========================================================================

    def claim_stock(self, locator: str) -> bool:
        """Reserve a stock clip for this project. False if already used."""
        with self._lock:
            if locator in self._used_stock:
                return False
            self._used_stock.add(locator)
            return True

    @property
    def used_stock(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._used_stock)
