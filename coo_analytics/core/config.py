"""
Settings and environment management module for the COO Analytics backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for local development (no variable is required)
- Singleton pattern via @lru_cache for efficient access
- Optional Mixpanel credentials for the telemetry collaborator
- Insight rule thresholds and confidence-learning bounds

Environment Variables:
- MIXPANEL_PROJECT_TOKEN: Mixpanel project token (telemetry is disabled without it)
- TELEMETRY_ENABLED: Master switch for event emission (default: true)
- LOG_LEVEL: Root log level (default: INFO)
- QUERY_DROPOFF_THRESHOLD: Onboarding drop-off threshold for query insights (0.3)
- CATALOG_DROPOFF_THRESHOLD: Onboarding drop-off threshold for data highlights (0.35)

Usage:
    from coo_analytics.core.config import get_settings

    settings = get_settings()
    threshold = settings.query_dropoff_threshold
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Token value shipped in the sample .env; treated the same as "not configured"
PLACEHOLDER_MIXPANEL_TOKEN: str = "your_mixpanel_project_token_here"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Service name reported by /health and the MCP server.
        app_version: Service version string.
        log_level: Root logging level name.
        cors_origins: Origins allowed by the CORS middleware.
        host: Bind address for uvicorn.
        port: Bind port for uvicorn.
        mixpanel_project_token: Mixpanel project token for event emission.
        telemetry_enabled: Disables all emission when False.
        telemetry_client: Value of the reserved ``client`` event property.
        query_dropoff_threshold: Drop-off rate above which a query on
            onboarding metrics yields an insight.
        catalog_dropoff_threshold: Drop-off rate above which the onboarding
            record yields a critical data highlight.
        default_confidence: Learned confidence before any implementation.
        confidence_floor: Lower clamp for learned confidence.
        confidence_ceiling: Upper clamp for learned confidence.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Service
    # =========================================================================

    app_name: str = 'coo-analytics-agent'
    app_version: str = '1.0.0'
    log_level: str = 'INFO'
    cors_origins: List[str] = Field(
        default_factory=lambda: ['http://localhost:3000', 'http://127.0.0.1:3000']
    )
    host: str = '0.0.0.0'
    port: int = 3000

    # =========================================================================
    # Mixpanel Telemetry (Optional)
    # =========================================================================

    mixpanel_project_token: Optional[str] = None
    telemetry_enabled: bool = True
    telemetry_client: str = 'api'

    # =========================================================================
    # Insight Rule Thresholds
    # Query insights and data highlights each read their own drop-off threshold
    # =========================================================================

    query_dropoff_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    catalog_dropoff_threshold: float = Field(default=0.35, ge=0.0, le=1.0)

    # =========================================================================
    # Outcome Learning
    # =========================================================================

    default_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    confidence_floor: float = Field(default=0.1, ge=0.0, le=1.0)
    confidence_ceiling: float = Field(default=0.95, ge=0.0, le=1.0)

    @property
    def mixpanel_configured(self) -> bool:
        """True when a real (non-placeholder) Mixpanel token is present."""
        token = self.mixpanel_project_token
        return bool(token) and token != PLACEHOLDER_MIXPANEL_TOKEN


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
