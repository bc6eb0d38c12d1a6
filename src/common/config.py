"""Configuration management."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "scene-decision-layer"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    # Quality gate
    auto_approve_score: float = 85.0
    minimum_scene_score: float = 70.0
    minimum_project_score: float = 75.0
    maximum_critical_issues: int = 0
    maximum_major_issues: int = 3
    require_user_approval: bool = True

    # Regeneration
    max_regenerations: int = 3
    regenerate_needs_review: bool = False

    # Generation
    generation_workers: int = 4
    generation_timeout_seconds: float = 300.0

    # Overlays
    overlay_time_buffer_seconds: float = 0.33
    overlay_min_visible_seconds: float = 1.0

    # Transitions
    transition_min_lighting_change_seconds: float = 0.8
    transition_max_scene_fraction: float = 0.3

    # Rendering
    render_fps: int = 30
    render_chunk_seconds: float = 180.0
    render_chunk_retries: int = 2
    render_workers: int = 3
    render_chunk_timeout_seconds: float = 900.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
