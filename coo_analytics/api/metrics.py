"""
FastAPI router module for product health metrics.

Key Endpoints:
- GET /metrics?category=all - User, revenue and engagement overview
- GET /metrics?category=<name> - One catalog category

Each response carries the flattened record(s) and the catalog-level data
highlights (positive / warning / critical) that apply to them. An unknown
category is a client error (HTTP 400).
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from coo_analytics.core.dependencies import AgentDep
from coo_analytics.core.telemetry import utc_timestamp
from coo_analytics.models.schemas import MetricsResponse


logger = logging.getLogger(__name__)

router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    agent: AgentDep,
    category: str = Query(
        default="all",
        description="Specific metric category (user_metrics, revenue_metrics, ...) or 'all'",
    ),
) -> MetricsResponse:
    """
    Get current product health metrics and KPIs.

    Raises:
        HTTPException 400: Unknown category.
        HTTPException 500: Unexpected failure.
    """
    try:
        data, highlights = agent.get_metrics(category)
        return MetricsResponse(
            category=category,
            data=data,
            highlights=highlights,
            timestamp=utc_timestamp(),
        )

    except ValueError as e:
        logger.warning(f"GET /metrics rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving metrics for {category}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve metrics: {e}")
