"""
FastAPI router module for behavior analysis and stored insights.

This module implements endpoints for:
- Full user-behavior analysis (feature adoption, retention drivers and
  onboarding drop-off) with executive summary and health metrics
- Listing every insight produced so far, filtered by confidence and type

Key Endpoints:
- POST /analyze - Run the full behavior analysis
- GET /insights - List stored insights

Insights returned by both endpoints carry identifiers that can be passed to
POST /track/outcome. Their confidence reflects the latest outcome report.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from coo_analytics.core.dependencies import AgentDep
from coo_analytics.core.telemetry import utc_timestamp
from coo_analytics.models.enums import InsightType
from coo_analytics.models.schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    InsightListResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter(tags=["insights"])


# =============================================================================
# POST /analyze - Full Behavior Analysis
# =============================================================================


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_behavior(
    agent: AgentDep,
    request: Optional[AnalyzeRequest] = None,
) -> AnalysisResponse:
    """
    Run the three-question behavior analysis.

    The request body is optional; an empty body runs with tracking enabled.

    Returns:
        AnalysisResponse whose ``summary`` reads
        "Generated N insights with X% average confidence".

    Raises:
        HTTPException 500: If the analysis fails unexpectedly.
    """
    request = request or AnalyzeRequest()
    try:
        analysis = agent.analyze_user_behavior(include_tracking=request.include_tracking)
        summary = (
            f"Generated {len(analysis.insights)} insights with "
            f"{analysis.summary.averageConfidence} average confidence"
        )
        logger.info(f"POST /analyze: {summary}")
        return AnalysisResponse(
            data=analysis,
            summary=summary,
            timestamp=utc_timestamp(),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error running behavior analysis: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to run behavior analysis: {e}")


# =============================================================================
# GET /insights - Stored Insights
# =============================================================================


@router.get("/insights", response_model=InsightListResponse)
async def list_insights(
    agent: AgentDep,
    min_confidence: float = Query(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Minimum confidence threshold (0-1)",
    ),
    insight_type: Optional[InsightType] = Query(
        default=None,
        description="Filter by insight type (retention, adoption, onboarding, etc.)",
    ),
) -> InsightListResponse:
    """
    List stored insights with their current confidence.

    Args:
        min_confidence: Only insights at or above this confidence.
        insight_type: Only insights of this type.

    Returns:
        InsightListResponse with the echoed filters.
    """
    type_filter = insight_type.value if insight_type is not None else None
    try:
        insights = agent.get_insights(min_confidence=min_confidence, insight_type=type_filter)
        return InsightListResponse(
            insights=insights,
            total_count=len(insights),
            filters={"min_confidence": min_confidence, "insight_type": type_filter},
            timestamp=utc_timestamp(),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing insights: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list insights: {e}")
