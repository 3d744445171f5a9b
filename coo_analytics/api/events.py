"""
FastAPI router module for post & upload event tracking.

Key Endpoints:
- POST /track/post - Record a post_created event
- POST /track/upload - Record a file_uploaded event
- POST /events/analyze - Behavior analysis over tracked events
- GET /events/metrics - Event counters

Events live in process memory and are forwarded to the telemetry sink.
Reserved event properties (timestamp, session_id, user_id, post_type /
file_type) cannot be overridden through ``properties``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from coo_analytics.core.dependencies import EventTrackerDep
from coo_analytics.core.telemetry import utc_timestamp
from coo_analytics.models.schemas import (
    EventAnalysisRequest,
    EventAnalysisResponse,
    EventMetricsResponse,
    TrackEventResponse,
    TrackPostRequest,
    TrackUploadRequest,
)


logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


# =============================================================================
# Tracking Endpoints
# =============================================================================


@router.post("/track/post", response_model=TrackEventResponse)
async def track_post(request: TrackPostRequest, tracker: EventTrackerDep) -> TrackEventResponse:
    """Record a post creation."""
    try:
        event = tracker.track_post(request.userId, request.postType, request.properties)
        return TrackEventResponse(
            event=event,
            timestamp=utc_timestamp(),
            message=f"Post event tracked for user {request.userId}",
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error tracking post for {request.userId}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to track post: {e}")


@router.post("/track/upload", response_model=TrackEventResponse)
async def track_upload(request: TrackUploadRequest, tracker: EventTrackerDep) -> TrackEventResponse:
    """Record a file upload."""
    try:
        event = tracker.track_upload(request.userId, request.fileType, request.properties)
        return TrackEventResponse(
            event=event,
            timestamp=utc_timestamp(),
            message=f"Upload event tracked for user {request.userId}",
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error tracking upload for {request.userId}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to track upload: {e}")


# =============================================================================
# Analysis Endpoints
# =============================================================================


@router.post("/events/analyze", response_model=EventAnalysisResponse)
async def analyze_events(
    tracker: EventTrackerDep,
    request: Optional[EventAnalysisRequest] = None,
) -> EventAnalysisResponse:
    """
    Analyze post and upload behavior, optionally for a single user.

    With no tracked events the analysis is empty and its summary says so.
    """
    user_id = request.userId if request is not None else None
    try:
        analysis = tracker.analyze_user_behavior(user_id)
        return EventAnalysisResponse(analysis=analysis, timestamp=utc_timestamp())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error analyzing events: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to analyze events: {e}")


@router.get("/events/metrics", response_model=EventMetricsResponse)
async def event_metrics(tracker: EventTrackerDep) -> EventMetricsResponse:
    """Counters over every tracked event."""
    return EventMetricsResponse(metrics=tracker.get_metrics(), timestamp=utc_timestamp())
