"""Interfaces to the external collaborators of the decision layer.

Generation providers, vision analysis, the rendering engine, object storage
and the stock-asset library are all out-of-process services. The decision
layer only depends on the abstract classes below; ``src.generation.stubs``
has deterministic in-process implementations.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Literal, Union

from pydantic import Field

from src.common.errors import ProviderError
from src.common.logging import get_logger
from src.common.models import CompositionSpec, FrameRange, QualityAnalysis
from src.common.models.base import FrozenModel

logger = get_logger(__name__)


# =============================================================================
# Generation result sum type
# =============================================================================


class GenerationSuccess(FrozenModel):
    """The provider produced an asset."""

    status: Literal["success"] = "success"
    provider_id: str
    asset_locator: str
    duration_seconds: float = Field(ge=0, default=0.0)
    cost: float = Field(ge=0, default=0.0)


class TransientGenerationError(FrozenModel):
    """Timeout, rate limit or cancellation. Another provider may succeed."""

    status: Literal["transient"] = "transient"
    provider_id: str
    message: str


class PermanentGenerationError(FrozenModel):
    """The provider will not accept this request."""

    status: Literal["permanent"] = "permanent"
    provider_id: str
    message: str


GenerationResult = Union[GenerationSuccess, TransientGenerationError, PermanentGenerationError]


# =============================================================================
# Collaborator interfaces
# =============================================================================


class GenerationProvider(ABC):
    """Single entry point to every generation backend."""

    @abstractmethod
    async def generate(self, provider_id: str, payload: dict[str, Any]) -> GenerationResult:
        """Generate a scene asset.

        Implementations either return a result or raise ``ProviderError``;
        ``run_generation`` maps both to a ``GenerationResult``.
        """
        pass


class VisionAnalyzer(ABC):
    """Scores a generated asset. The scores are treated as opaque evidence."""

    @abstractmethod
    async def analyze(self, asset_locator: str, context: dict[str, Any]) -> QualityAnalysis:
        pass


class RenderingEngine(ABC):
    """Turns a composition into pixels, one frame range at a time."""

    @abstractmethod
    async def render_chunk(self, composition: CompositionSpec, frames: FrameRange) -> str:
        """Render a frame range and return the artifact locator.

        Raises:
            RenderEngineError: If the chunk could not be rendered
        """
        pass

    @abstractmethod
    async def stitch(self, locators: list[str]) -> str:
        """Concatenate chunk artifacts, in the given order, into one artifact."""
        pass


class ObjectStorage(ABC):
    """Opaque blob storage."""

    @abstractmethod
    async def put(self, data: bytes, key_hint: str = "") -> str:
        pass

    @abstractmethod
    async def get(self, locator: str) -> bytes:
        pass


class StockAssetSource(ABC):
    """Stock footage library used as a fallback for impossible prompts."""

    @abstractmethod
    async def search(
        self,
        query: str,
        duration_seconds: float,
        exclude: set[str] | frozenset[str],
    ) -> str | None:
        """Return the locator of a matching clip not in ``exclude``, or None."""
        pass


# =============================================================================
# Generation runner
# =============================================================================


async def run_generation(
    provider: GenerationProvider,
    provider_id: str,
    payload: dict[str, Any],
    timeout_seconds: float,
    on_started: Callable[[asyncio.Task], None] | None = None,
) -> GenerationResult:
    """Run one provider call as a cancellable, timeout-bounded task.

    Timeouts and cancellation of the generation task itself come back as
    ``TransientGenerationError``. Cancellation of the caller propagates.

    Args:
        provider: Generation backend
        provider_id: Provider to generate with
        payload: Provider-specific payload from ``shape_request``
        timeout_seconds: Upper bound on the call
        on_started: Receives the task handle so the caller can cancel it

    Returns:
        The generation result
    """
    task = asyncio.ensure_future(provider.generate(provider_id, payload))
    if on_started is not None:
        on_started(task)

    try:
        return await asyncio.wait_for(task, timeout=timeout_seconds)

    except asyncio.TimeoutError:
        logger.warning("generation_timed_out", provider=provider_id, timeout=timeout_seconds)
        return TransientGenerationError(
            provider_id=provider_id,
            message=f"Timed out after {timeout_seconds}s",
        )

    except asyncio.CancelledError:
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise
        logger.info("generation_cancelled", provider=provider_id)
        return TransientGenerationError(provider_id=provider_id, message="Cancelled")

    except ProviderError as e:
        logger.warning(
            "generation_failed",
            provider=provider_id,
            error=str(e),
            recoverable=e.recoverable,
        )
        if e.recoverable:
            return TransientGenerationError(provider_id=provider_id, message=str(e))
        return PermanentGenerationError(provider_id=provider_id, message=str(e))

    except Exception as e:
        logger.exception("generation_error", provider=provider_id, error=str(e))
        return PermanentGenerationError(
            provider_id=provider_id,
            message=f"{type(e).__name__}: {e}",
        )
