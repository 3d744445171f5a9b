"""
FastAPI dependency injection module for the COO Analytics backend.

This module provides reusable FastAPI dependencies for configuration, the
telemetry sink, the analytics agent and the event tracker. Endpoint handlers
never build these themselves, which keeps them swappable in tests via
``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_telemetry: Process-wide telemetry sink (opened by the app lifespan)
- get_agent: Process-wide ProductAnalyticsAgent
- get_event_tracker: Process-wide EventTracker
- SettingsDep / AgentDep / EventTrackerDep: Annotated type aliases

Usage Examples:
    @router.post("/query")
    async def query(request: QueryRequest, agent: AgentDep) -> QueryResponse:
        result, insights = agent.query(request.question)
        ...

Testing:
    app.dependency_overrides[get_agent] = lambda: build_agent(telemetry=RecordingTelemetry())
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from coo_analytics.core.config import Settings, get_settings
from coo_analytics.core.telemetry import TelemetrySink, build_telemetry
from coo_analytics.services.agent import ProductAnalyticsAgent, build_agent
from coo_analytics.services.event_tracking import EventTracker


logger = logging.getLogger(__name__)


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Returns:
        Settings: The cached Settings instance with all configuration values.
    """
    return get_settings()


# =============================================================================
# Telemetry Dependency
# =============================================================================

@lru_cache()
def get_telemetry() -> TelemetrySink:
    """
    Process-wide telemetry sink for the REST service.

    The sink is created unopened; the application lifespan opens it on
    startup and closes (drains) it on shutdown.
    """
    return build_telemetry(get_settings())


# =============================================================================
# Agent Dependencies
# =============================================================================

@lru_cache()
def get_agent() -> ProductAnalyticsAgent:
    """
    Process-wide analytics agent sharing the REST telemetry sink.

    The agent's insight store and outcome patterns live for the lifetime of
    the process.
    """
    logger.info("Initializing analytics agent")
    return build_agent(get_settings(), telemetry=get_telemetry())


@lru_cache()
def get_event_tracker() -> EventTracker:
    """Process-wide post/upload event tracker."""
    return EventTracker(telemetry=get_telemetry())


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Type alias for Settings dependency injection
# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Type alias for the analytics agent
# Usage: async def endpoint(agent: AgentDep)
AgentDep = Annotated[ProductAnalyticsAgent, Depends(get_agent)]

# Type alias for the event tracker
# Usage: async def endpoint(tracker: EventTrackerDep)
EventTrackerDep = Annotated[EventTracker, Depends(get_event_tracker)]


__all__ = [
    "get_settings_dependency",
    "get_telemetry",
    "get_agent",
    "get_event_tracker",
    "SettingsDep",
    "AgentDep",
    "EventTrackerDep",
]
