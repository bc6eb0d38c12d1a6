"""Scene request models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from src.common.models.base import FrozenModel, generate_id


class SceneType(str, Enum):
    """Narrative role of a scene in a marketing video."""

    HOOK = "hook"
    PROBLEM = "problem"
    AGITATION = "agitation"
    SOLUTION = "solution"
    BENEFIT = "benefit"
    PRODUCT = "product"
    TESTIMONIAL = "testimonial"
    EXPLANATION = "explanation"
    BROLL = "broll"
    CTA = "cta"


class ContentType(str, Enum):
    """Dominant subject of a scene."""

    PERSON = "person"
    PRODUCT = "product"
    NATURE = "nature"
    ABSTRACT = "abstract"
    LIFESTYLE = "lifestyle"


class GenerationApproach(str, Enum):
    """How a scene's visual asset is obtained."""

    TEXT_TO_VIDEO = "text-to-video"
    REFERENCE_IMAGE = "reference-image"
    STOCK_ASSET = "stock-asset"
    MOTION_GRAPHIC = "motion-graphic"


class SceneRequest(FrozenModel):
    """A generation request for one scene.

    Requests are immutable. A regeneration derives a new request from the
    previous one via :meth:`derive`, which links back through
    ``parent_request_id``.
    """

    id: str = Field(default_factory=lambda: generate_id("req"))
    scene_index: int = Field(ge=0)
    scene_type: SceneType
    content_type: ContentType
    prompt: str
    duration_seconds: float = Field(gt=0)
    style_profile: str = "professional"

    approach: GenerationApproach = GenerationApproach.TEXT_TO_VIDEO
    reference_asset: str | None = None
    parent_request_id: str | None = None

    def derive(self, **changes: Any) -> "SceneRequest":
        """Return a new request based on this one with the given changes."""
        data = self.model_dump()
        data.update(changes)
        data["id"] = generate_id("req")
        data["parent_request_id"] = self.id
        return SceneRequest(**data)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "scene_index": self.scene_index,
            "scene_type": self.scene_type.value,
            "content_type": self.content_type.value,
            "approach": self.approach.value,
            "duration": self.duration_seconds,
        }
