"""Pytest configuration and fixtures."""

import pytest

from src.common.models import (
    ContentType,
    QualityThresholds,
    SceneRequest,
    SceneType,
)
from src.generation import (
    InMemoryObjectStorage,
    StubGenerationProvider,
    StubRenderingEngine,
    StubStockAssetSource,
    StubVisionAnalyzer,
)
from src.quality import AssetRegistry, QualityGate


IMPOSSIBLE_PROMPT = "Hands stretching translucent dough outward"


@pytest.fixture
def thresholds():
    """Default gate thresholds, independent of the environment."""
    return QualityThresholds()


@pytest.fixture
def storage():
    return InMemoryObjectStorage()


@pytest.fixture
def provider(storage):
    return StubGenerationProvider(storage)


@pytest.fixture
def analyzer():
    return StubVisionAnalyzer(default_score=90)


@pytest.fixture
def engine(storage):
    return StubRenderingEngine(storage)


@pytest.fixture
def stock_source():
    return StubStockAssetSource()


@pytest.fixture
def gate(thresholds):
    return QualityGate("proj_test", thresholds)


@pytest.fixture
def registry():
    return AssetRegistry("proj_test")


@pytest.fixture
def simple_request():
    """A plain lifestyle scene every provider can handle."""
    return SceneRequest(
        scene_index=0,
        scene_type=SceneType.BENEFIT,
        content_type=ContentType.LIFESTYLE,
        prompt="A family enjoying breakfast at a sunny kitchen table",
        duration_seconds=5,
    )


@pytest.fixture
def impossible_request():
    """The canonical prompt no text-to-video model gets right."""
    return SceneRequest(
        scene_index=1,
        scene_type=SceneType.PRODUCT,
        content_type=ContentType.PRODUCT,
        prompt=IMPOSSIBLE_PROMPT,
        duration_seconds=5,
    )


@pytest.fixture
def ad_requests():
    """A four-scene problem/solution ad."""
    return [
        SceneRequest(
            scene_index=0,
            scene_type=SceneType.HOOK,
            content_type=ContentType.LIFESTYLE,
            prompt="Morning light over a small bakery storefront",
            duration_seconds=5,
        ),
        SceneRequest(
            scene_index=1,
            scene_type=SceneType.PROBLEM,
            content_type=ContentType.PERSON,
            prompt="A tired baker looking at an empty display case",
            duration_seconds=5,
        ),
        SceneRequest(
            scene_index=2,
            scene_type=SceneType.SOLUTION,
            content_type=ContentType.PRODUCT,
            prompt="Fresh loaves lined up on a wooden shelf",
            duration_seconds=5,
        ),
        SceneRequest(
            scene_index=3,
            scene_type=SceneType.CTA,
            content_type=ContentType.PRODUCT,
            prompt="Shop sign with an open sign in the window",
            duration_seconds=5,
        ),
    ]
