"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Zone Validation
    max_zone_area_m2: float = Field(
        default=1200.0,
        description="Largest polygon area (m²) accepted when a zone is drawn"
    )

    # Coverage Clipping
    clip_sample_count: int = Field(
        default=72,
        description="Number of points used to discretize a coverage circle"
    )
    clip_full_circle_ratio: float = Field(
        default=0.95,
        description="Share of circle samples inside the zone that counts as full coverage"
    )
    clip_dedup_epsilon_deg: float = Field(
        default=1e-8,
        description="Distance in degrees under which clipped vertices are merged"
    )

    # Sprinkler Placement
    corner_clearance_ratio: float = Field(
        default=0.9,
        description="Grid points closer than this ratio of spacing to a corner sprinkler are skipped"
    )
    default_sprinkler_type_id: str = Field(
        default="pop-up-sprinkler",
        description="Catalog sprinkler type used for manual placement when none is given"
    )

    # Pipe Routing
    row_tolerance_deg: float = Field(
        default=0.00008,
        description="Latitude difference in degrees under which sprinklers share a row"
    )
    network_node_tolerance_m: float = Field(
        default=0.5,
        description="Pipe endpoints closer than this (m) are treated as one network node"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Garden Irrigation Planner",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )


# Global settings instance
settings = Settings()
