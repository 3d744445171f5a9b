"""
Package initialization file for COO Analytics models.

This module exports all Pydantic schemas and enumerations from schemas.py and
enums.py, making them importable from coo_analytics.models directly.

Usage:
    from coo_analytics.models import (
        Category,
        Insight,
        QueryResult,
        AnalysisResult,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from coo_analytics.models.enums import (
    Category,
    InsightType,
    HighlightType,
    TrackedEventType,
)

# =============================================================================
# Core Engine Models
# =============================================================================

from coo_analytics.models.schemas import (
    QueryResult,
    Insight,
    DataHighlight,
    PatternCounters,
    ExecutiveSummary,
    AnalysisMetrics,
    AnalysisResult,
)

# =============================================================================
# Transport Request / Response Models
# =============================================================================

from coo_analytics.models.schemas import (
    QueryRequest,
    AnalyzeRequest,
    OutcomeRequest,
    TrackPostRequest,
    TrackUploadRequest,
    EventAnalysisRequest,
    QueryMetadata,
    QueryResponse,
    AnalysisResponse,
    InsightListResponse,
    OutcomeResponse,
    MetricsResponse,
    TrackedEvent,
    TrackEventResponse,
    EventBehaviorAnalysis,
    EventAnalysisResponse,
    EventMetrics,
    EventMetricsResponse,
    ErrorResponse,
)


__all__ = [
    # Enums
    "Category",
    "InsightType",
    "HighlightType",
    "TrackedEventType",
    # Core engine
    "QueryResult",
    "Insight",
    "DataHighlight",
    "PatternCounters",
    "ExecutiveSummary",
    "AnalysisMetrics",
    "AnalysisResult",
    # Requests
    "QueryRequest",
    "AnalyzeRequest",
    "OutcomeRequest",
    "TrackPostRequest",
    "TrackUploadRequest",
    "EventAnalysisRequest",
    # Responses
    "QueryMetadata",
    "QueryResponse",
    "AnalysisResponse",
    "InsightListResponse",
    "OutcomeResponse",
    "MetricsResponse",
    "TrackedEvent",
    "TrackEventResponse",
    "EventBehaviorAnalysis",
    "EventAnalysisResponse",
    "EventMetrics",
    "EventMetricsResponse",
    "ErrorResponse",
]
