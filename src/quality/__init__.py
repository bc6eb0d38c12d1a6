"""Quality gate, asset registry and regeneration strategy."""

from src.quality.gate import QualityGate
from src.quality.registry import AssetRegistry
from src.quality.regeneration import RegenerationStrategist, STOCK_PROVIDER_ID

__all__ = [
    "QualityGate",
    "AssetRegistry",
    "RegenerationStrategist",
    "STOCK_PROVIDER_ID",
]
