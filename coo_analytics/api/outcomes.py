"""
FastAPI router module for insight outcome tracking.

Key Endpoints:
- POST /track/outcome - Report whether a recommendation was implemented and
  whether it improved the metric; returns the learned confidence

Learned confidence per insight id:
- 0.5 until at least one implementation is reported
- successful / implemented, clamped to [0.1, 0.95], afterwards

Unknown insight ids are accepted and start a new pattern. Field types are
strict: ``"implemented": "true"`` is rejected with HTTP 400.
"""

import logging

from fastapi import APIRouter, HTTPException

from coo_analytics.core.dependencies import AgentDep
from coo_analytics.core.telemetry import utc_timestamp
from coo_analytics.models.schemas import OutcomeRequest, OutcomeResponse


logger = logging.getLogger(__name__)

router = APIRouter(tags=["outcomes"])


@router.post("/track/outcome", response_model=OutcomeResponse)
async def track_outcome(request: OutcomeRequest, agent: AgentDep) -> OutcomeResponse:
    """
    Record an implementation outcome for pattern learning.

    Example Request:
        POST /track/outcome
        {
            "insight_id": "retention_1a2b3c4d",
            "implemented": true,
            "improved": true,
            "actual_impact": "+12% 30-day retention"
        }

    Example Response:
        {
            "success": true,
            "insight_id": "retention_1a2b3c4d",
            "new_confidence": 0.95,
            "message": "Outcome tracked. New confidence: 95.0%",
            "timestamp": "..."
        }
    """
    try:
        confidence = agent.track_outcome(
            request.insight_id,
            request.implemented,
            request.improved,
            request.actual_impact,
        )
        return OutcomeResponse(
            insight_id=request.insight_id,
            new_confidence=confidence,
            message=f"Outcome tracked. New confidence: {confidence * 100:.1f}%",
            timestamp=utc_timestamp(),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error tracking outcome for {request.insight_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to track outcome: {e}")
