"""
FastAPI router module for natural-language business queries.

Key Endpoints:
- POST /query - Classify a question against the data catalog and optionally
  synthesize insights from the matched record

Response shape:
    {
        "success": true,
        "question": "...",
        "data": {"type": "<category>", ...record fields, "search_matched"?: true},
        "insights": [...],
        "metadata": {"result_type": "<category>", "insights_count": N, "timestamp": "..."}
    }

A question that matches nothing is not an error: ``data.type`` is
``general_response`` and ``data`` carries the help message and example
questions.

Dependencies:
- coo_analytics/core/dependencies.py: AgentDep
- coo_analytics/models/schemas.py: QueryRequest, QueryResponse, QueryMetadata
"""

import logging

from fastapi import APIRouter, HTTPException

from coo_analytics.core.dependencies import AgentDep
from coo_analytics.core.telemetry import utc_timestamp
from coo_analytics.models.schemas import QueryMetadata, QueryRequest, QueryResponse


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/query", response_model=QueryResponse)
async def query_data(request: QueryRequest, agent: AgentDep) -> QueryResponse:
    """
    Answer a natural-language question about business metrics.

    Args:
        request: Question and the generate_insights flag.
        agent: Analytics agent from dependency injection.

    Returns:
        QueryResponse with the flattened record and any stored insights.

    Raises:
        HTTPException 500: If classification or synthesis fails unexpectedly.

    Example Request:
        POST /query
        {"question": "How many users do we have?", "generate_insights": true}
    """
    try:
        result, insights = agent.query(request.question, request.generate_insights)

        logger.info(
            f"POST /query: '{request.question}' -> {result.category.value} "
            f"({len(insights)} insights)"
        )
        return QueryResponse(
            question=request.question,
            data=result.to_payload(),
            insights=insights,
            metadata=QueryMetadata(
                result_type=result.category.value,
                insights_count=len(insights),
                timestamp=utc_timestamp(),
            ),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error answering query: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to answer query: {e}")
