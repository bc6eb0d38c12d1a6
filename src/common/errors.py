"""Exception hierarchy for the decision layer."""

from __future__ import annotations


class DecisionLayerError(Exception):
    """Base exception for decision layer errors."""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(message)
        self.recoverable = recoverable


class InvalidTransitionError(DecisionLayerError):
    """Raised when a scene status change is not allowed by the gate."""

    def __init__(self, scene_index: int, current: str, target: str):
        super().__init__(
            f"Scene {scene_index}: cannot move from {current} to {target}"
        )
        self.scene_index = scene_index
        self.current = current
        self.target = target


class UnknownSceneError(DecisionLayerError):
    """Raised when a scene index has not been registered."""

    def __init__(self, scene_index: int):
        super().__init__(f"Scene {scene_index} is not registered")
        self.scene_index = scene_index


class RegenerationBudgetExceeded(DecisionLayerError):
    """Raised when a scene has used all of its regeneration attempts."""

    def __init__(self, scene_index: int, max_regenerations: int):
        super().__init__(
            f"Scene {scene_index} reached the regeneration limit ({max_regenerations})"
        )
        self.scene_index = scene_index
        self.max_regenerations = max_regenerations


class PartitionError(DecisionLayerError):
    """Raised when render chunks do not partition the frame range."""


class RenderBlockedError(DecisionLayerError):
    """Raised when the quality report does not allow rendering."""


class ProviderError(DecisionLayerError):
    """Base exception for generation provider failures."""

    def __init__(self, message: str, provider_id: str = "", recoverable: bool = True):
        super().__init__(message, recoverable=recoverable)
        self.provider_id = provider_id


class TransientProviderError(ProviderError):
    """Timeouts, rate limits and other failures worth retrying elsewhere."""

    def __init__(self, message: str, provider_id: str = ""):
        super().__init__(message, provider_id=provider_id, recoverable=True)


class PermanentProviderError(ProviderError):
    """Failures the same provider will not recover from (rejected prompt, bad input)."""

    def __init__(self, message: str, provider_id: str = ""):
        super().__init__(message, provider_id=provider_id, recoverable=False)


class RenderEngineError(DecisionLayerError):
    """Raised by a rendering engine when a chunk or stitch fails."""

    def __init__(self, message: str):
        super().__init__(message, recoverable=True)
