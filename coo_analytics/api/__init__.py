"""
API package initialization.

This package contains FastAPI router modules for the COO Analytics agent:
- query: Natural-language business queries
- insights: Full behavior analysis and stored insights
- outcomes: Outcome reports for confidence learning
- metrics: Product health metrics and data highlights
- events: Post & upload event tracking
"""

from fastapi import APIRouter

# Import router modules
from coo_analytics.api.query import router as query_router
from coo_analytics.api.insights import router as insights_router
from coo_analytics.api.outcomes import router as outcomes_router
from coo_analytics.api.metrics import router as metrics_router
from coo_analytics.api.events import router as events_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers; each declares its own paths
api_router.include_router(query_router, tags=["query"])
api_router.include_router(insights_router)
api_router.include_router(outcomes_router)
api_router.include_router(metrics_router)
api_router.include_router(events_router)

# Export all routers for selective imports
__all__ = [
    "api_router",
    "query_router",
    "insights_router",
    "outcomes_router",
    "metrics_router",
    "events_router",
]
