"""
Core infrastructure package for the COO Analytics backend.

Provides:
- Configuration management via pydantic-settings
- Telemetry sinks with an explicit open/close lifecycle (Mixpanel)
- FastAPI dependency injection utilities

Components Re-exported:
    Settings: Pydantic settings class with all configuration parameters
    get_settings: Function returning the cached Settings singleton
    TelemetrySink / NullTelemetry / RecordingTelemetry / MixpanelTelemetry
    build_telemetry: Choose a sink from settings

Usage Examples:
    # Configuration access
    from coo_analytics.core import get_settings
    settings = get_settings()
    print(settings.query_dropoff_threshold)

    # Telemetry lifecycle (in FastAPI lifespan)
    from coo_analytics.core import build_telemetry, get_settings

    telemetry = build_telemetry(get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        telemetry.open()
        yield
        telemetry.close()

Dependencies live in coo_analytics.core.dependencies and are not re-exported
here, since they import the service layer.
"""

from coo_analytics.core.config import Settings, get_settings
from coo_analytics.core.telemetry import (
    MixpanelTelemetry,
    NullTelemetry,
    RecordingTelemetry,
    TelemetrySink,
    build_telemetry,
    merge_properties,
    utc_timestamp,
)


__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Telemetry
    "TelemetrySink",
    "NullTelemetry",
    "RecordingTelemetry",
    "MixpanelTelemetry",
    "build_telemetry",
    "merge_properties",
    "utc_timestamp",
]
