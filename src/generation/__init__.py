"""Scene generation: complexity, provider selection and collaborators."""

from src.generation.complexity import (
    ComplexityAssessor,
    assess_prompt,
    simplify_prompt,
)
from src.generation.providers import (
    DEFAULT_PROVIDER_PROFILES,
    get_provider_profiles,
    shape_request,
)
from src.generation.provider_selector import (
    ProviderSelector,
    SelectionWeights,
)
from src.generation.collaborators import (
    GenerationProvider,
    GenerationResult,
    GenerationSuccess,
    TransientGenerationError,
    PermanentGenerationError,
    VisionAnalyzer,
    RenderingEngine,
    ObjectStorage,
    StockAssetSource,
    run_generation,
)
from src.generation.stubs import (
    InMemoryObjectStorage,
    StubGenerationProvider,
    StubVisionAnalyzer,
    StubRenderingEngine,
    StubStockAssetSource,
    build_analysis,
)

__all__ = [
    # Complexity
    "ComplexityAssessor",
    "assess_prompt",
    "simplify_prompt",
    # Providers
    "DEFAULT_PROVIDER_PROFILES",
    "get_provider_profiles",
    "shape_request",
    "ProviderSelector",
    "SelectionWeights",
    # Collaborators
    "GenerationProvider",
    "GenerationResult",
    "GenerationSuccess",
    "TransientGenerationError",
    "PermanentGenerationError",
    "VisionAnalyzer",
    "RenderingEngine",
    "ObjectStorage",
    "StockAssetSource",
    "run_generation",
    # Stubs
    "InMemoryObjectStorage",
    "StubGenerationProvider",
    "StubVisionAnalyzer",
    "StubRenderingEngine",
    "StubStockAssetSource",
    "build_analysis",
]
