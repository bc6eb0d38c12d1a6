"""Generation provider catalogue and request shaping.

The catalogue is static reference data. Payload shaping for each provider
is a pure function registered by provider id; there is no branching on
provider ids anywhere else in the decision layer.
"""

from __future__ import annotations

from typing import Any, Callable

from src.common.models import (
    MotionQuality,
    ProviderCapabilities,
    ProviderProfile,
    Resolution,
    SceneRequest,
    TemporalConsistency,
)

DEFAULT_NEGATIVE_PROMPT = "blurry, low quality, distorted, ugly, watermark, text"
DEFAULT_ASPECT_RATIO = "16:9"


DEFAULT_PROVIDER_PROFILES: tuple[ProviderProfile, ...] = (
    ProviderProfile(
        id="runway",
        name="Runway Gen-3",
        capabilities=ProviderCapabilities(
            image_input=True,
            max_duration_seconds=10,
            max_resolution=Resolution.FULL_HD,
            motion_quality=MotionQuality.CINEMATIC,
            temporal_consistency=TemporalConsistency.HIGH,
        ),
        strengths=("hook", "cta", "cinematic", "product"),
        weaknesses=(),
        cost_per_second=0.05,
    ),
    ProviderProfile(
        id="kling",
        name="Kling 1.6",
        capabilities=ProviderCapabilities(
            image_input=True,
            max_duration_seconds=10,
            max_resolution=Resolution.FULL_HD,
            motion_quality=MotionQuality.EXCELLENT,
            temporal_consistency=TemporalConsistency.HIGH,
        ),
        strengths=("person", "lifestyle", "testimonial", "benefit", "abstract"),
        weaknesses=(),
        cost_per_second=0.03,
    ),
    ProviderProfile(
        id="luma",
        name="Luma Dream Machine",
        capabilities=ProviderCapabilities(
            image_input=True,
            max_duration_seconds=5,
            max_resolution=Resolution.FULL_HD,
            motion_quality=MotionQuality.GOOD,
            temporal_consistency=TemporalConsistency.MEDIUM,
        ),
        strengths=("product",),
        weaknesses=("person",),
        cost_per_second=0.04,
    ),
    ProviderProfile(
        id="hailuo",
        name="Hailuo MiniMax",
        capabilities=ProviderCapabilities(
            max_duration_seconds=6,
            max_resolution=Resolution.HD,
            motion_quality=MotionQuality.BASIC,
            temporal_consistency=TemporalConsistency.MEDIUM,
        ),
        strengths=("nature", "broll", "explanation"),
        weaknesses=("person", "specific-action", "material-property"),
        cost_per_second=0.02,
    ),
    ProviderProfile(
        id="hunyuan",
        name="Hunyuan Video",
        capabilities=ProviderCapabilities(
            max_duration_seconds=5,
            max_resolution=Resolution.HD,
            motion_quality=MotionQuality.BASIC,
            temporal_consistency=TemporalConsistency.LOW,
        ),
        strengths=("nature", "abstract", "broll"),
        weaknesses=("person", "precise-motion"),
        cost_per_second=0.025,
    ),
    ProviderProfile(
        id="veo",
        name="Veo 3",
        capabilities=ProviderCapabilities(
            max_duration_seconds=8,
            max_resolution=Resolution.UHD,
            motion_quality=MotionQuality.CINEMATIC,
            temporal_consistency=TemporalConsistency.HIGH,
        ),
        strengths=("hook", "cta", "nature"),
        weaknesses=(),
        cost_per_second=0.06,
    ),
)


def get_provider_profiles() -> dict[str, ProviderProfile]:
    """Catalogue keyed by provider id."""
    return {profile.id: profile for profile in DEFAULT_PROVIDER_PROFILES}


# =============================================================================
# Request shaping
# =============================================================================

RequestShaper = Callable[[ProviderProfile, SceneRequest], dict[str, Any]]


def _base_payload(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": profile.id,
        "task_type": "text_to_video",
        "input": {
            "prompt": request.prompt,
            "negative_prompt": DEFAULT_NEGATIVE_PROMPT,
            "duration": min(request.duration_seconds, profile.capabilities.max_duration_seconds),
            "aspect_ratio": DEFAULT_ASPECT_RATIO,
        },
    }
    if request.reference_asset and profile.capabilities.image_input:
        payload["task_type"] = "image_to_video"
        payload["input"]["image"] = request.reference_asset
    return payload


def _shape_runway(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    # Runway only accepts a few fixed clip lengths
    valid_durations = (5, 10)
    duration = min(valid_durations, key=lambda d: abs(d - request.duration_seconds))
    payload: dict[str, Any] = {
        "model": "gen3a_turbo",
        "promptText": request.prompt,
        "ratio": "1280:768",
        "duration": duration,
    }
    if request.reference_asset:
        payload["promptImage"] = request.reference_asset
    return payload


def _shape_kling(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    payload = _base_payload(profile, request)
    payload["task_type"] = "video_generation"
    payload["input"].update({"mode": "std", "version": "1.6"})
    return payload


def _shape_luma(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    payload = _base_payload(profile, request)
    payload["task_type"] = "video_generation"
    payload["input"]["loop"] = False
    return payload


def _shape_hailuo(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    payload = _base_payload(profile, request)
    payload["task_type"] = "video_generation"
    payload["input"]["model"] = "t2v-01"
    return payload


def _shape_hunyuan(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    payload = _base_payload(profile, request)
    payload["task_type"] = "txt2video"
    return payload


def _shape_veo(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    payload = _base_payload(profile, request)
    payload["model"] = "veo-3"
    payload["task_type"] = "video_generation"
    return payload


REQUEST_SHAPERS: dict[str, RequestShaper] = {
    "runway": _shape_runway,
    "kling": _shape_kling,
    "luma": _shape_luma,
    "hailuo": _shape_hailuo,
    "hunyuan": _shape_hunyuan,
    "veo": _shape_veo,
}


def shape_request(profile: ProviderProfile, request: SceneRequest) -> dict[str, Any]:
    """Build the provider-specific payload for a scene request.

    Unknown providers get the generic text-to-video payload.
    """
    shaper = REQUEST_SHAPERS.get(profile.id, _base_payload)
    payload = shaper(profile, request)
    payload["scene_index"] = request.scene_index
    payload["request_id"] = request.id
    return payload
