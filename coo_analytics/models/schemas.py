"""
Pydantic models for the COO Analytics backend.

This module provides type-safe data validation and serialization for the
core engine (query results, insights, outcome patterns, analysis summaries)
and for the REST / agent-protocol contracts built on top of it.

Field names that appear on the wire in camelCase (``expectedImpact``,
``totalInsights``, ``userId`` ...) keep that spelling here so the models
serialize to the published response shapes without aliases.

All models use Pydantic v2 syntax.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from coo_analytics.models.enums import (
    Category,
    HighlightType,
    InsightType,
    TrackedEventType,
)


# =============================================================================
# Core Engine Models
# =============================================================================


class QueryResult(BaseModel):
    """
    Outcome of classifying one natural-language question.

    ``data`` holds a copy of the matched record's fields. For the
    GENERAL_RESPONSE sentinel ``data`` is empty and ``message`` /
    ``suggestions`` carry the static help payload instead.
    """
    category: Category = Field(..., description="Matched category or general_response")
    data: Dict[str, Any] = Field(default_factory=dict, description="Record fields")
    search_matched: bool = Field(
        default=False,
        description="True when the category came from the catalog-wide search",
    )
    message: Optional[str] = Field(default=None, description="Help text for unmatched queries")
    suggestions: Optional[List[str]] = Field(default=None, description="Example questions")

    def get(self, field: str, default: Any = None) -> Any:
        """Read a record field, returning ``default`` when absent."""
        return self.data.get(field, default)

    def to_payload(self) -> Dict[str, Any]:
        """
        Flatten into the wire shape ``{type, ...record fields, search_matched?}``.

        ``search_matched`` is only present when the catalog search was used;
        ``message`` and ``suggestions`` only for the sentinel.
        """
        payload: Dict[str, Any] = {'type': self.category.value}
        payload.update(self.data)
        if self.search_matched:
            payload['search_matched'] = True
        if self.message is not None:
            payload['message'] = self.message
        if self.suggestions is not None:
            payload['suggestions'] = list(self.suggestions)
        return payload


class Insight(BaseModel):
    """
    A threshold-triggered recommendation.

    ``id`` is left empty by the engine and assigned when the insight is
    stored, so that outcome reports can reference it.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "retention_1a2b3c4d",
                "type": "retention",
                "discovery": "Users who complete_profile retain 3x better",
                "confidence": 0.89,
                "recommendation": "Prompt all users to complete_profile in first session",
                "expectedImpact": "+15% 30-day retention",
            }
        }
    )

    id: Optional[str] = Field(default=None, description="Identifier assigned on storage")
    type: InsightType = Field(..., description="Insight type tag")
    discovery: str = Field(..., min_length=1, description="What was observed")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence score (0-1)")
    recommendation: str = Field(..., min_length=1, description="Suggested action")
    expectedImpact: str = Field(default='', description="Projected effect of the action")


class DataHighlight(BaseModel):
    """Catalog-level observation derived from a single record."""
    type: HighlightType
    message: str = Field(..., min_length=1)
    recommendation: str = Field(..., min_length=1)


class PatternCounters(BaseModel):
    """
    Snapshot of the outcome counters for one insight identifier.

    Invariant: successful <= implemented <= suggested.
    """
    suggested: int = Field(default=0, ge=0)
    implemented: int = Field(default=0, ge=0)
    successful: int = Field(default=0, ge=0)


class ExecutiveSummary(BaseModel):
    """Aggregate view over the insights of one full analysis."""
    totalInsights: int = Field(..., ge=0)
    averageConfidence: str = Field(..., description="Mean confidence as a percentage string")
    topRecommendation: Optional[str] = None
    criticalAction: Optional[str] = None
    message: Optional[str] = Field(default=None, description="Set when no insights were produced")


class AnalysisMetrics(BaseModel):
    """Three health metrics derived from the analysis records."""
    adoptionHealth: int = Field(..., ge=0, description="Number of top features tracked")
    retentionStrength: float = Field(..., description="Correlation strength of the retention driver")
    onboardingEfficiency: float = Field(..., description="1 - onboarding drop-off rate")


class AnalysisResult(BaseModel):
    """Output of a full behavior analysis."""
    insights: List[Insight] = Field(default_factory=list)
    summary: ExecutiveSummary
    metrics: AnalysisMetrics


# =============================================================================
# REST / Agent-Protocol Request Models
# Strict types: a string "true" for a boolean flag is a client error.
# =============================================================================


class QueryRequest(BaseModel):
    """Body of POST /query."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={"example": {"question": "How many users do we have?", "generate_insights": True}},
    )

    question: StrictStr = Field(..., min_length=1, description="Natural-language question")
    generate_insights: StrictBool = Field(default=True, description="Synthesize insights from the result")


class AnalyzeRequest(BaseModel):
    """Body of POST /analyze."""
    include_tracking: StrictBool = Field(default=True, description="Emit analysis telemetry events")


class OutcomeRequest(BaseModel):
    """Body of POST /track/outcome."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "insight_id": "retention_1a2b3c4d",
                "implemented": True,
                "improved": True,
                "actual_impact": "+12% 30-day retention",
            }
        }
    )

    insight_id: StrictStr = Field(..., min_length=1, description="Identifier of the insight")
    implemented: StrictBool = Field(..., description="Whether the recommendation was implemented")
    improved: StrictBool = Field(..., description="Whether the implementation improved the metric")
    actual_impact: str = Field(default='not_specified', description="Observed impact, free text")


class TrackPostRequest(BaseModel):
    """Body of POST /track/post."""
    userId: StrictStr = Field(..., min_length=1)
    postType: str = Field(default='text')
    properties: Dict[str, Any] = Field(default_factory=dict)


class TrackUploadRequest(BaseModel):
    """Body of POST /track/upload."""
    userId: StrictStr = Field(..., min_length=1)
    fileType: str = Field(default='unknown')
    properties: Dict[str, Any] = Field(default_factory=dict)


class EventAnalysisRequest(BaseModel):
    """Body of POST /events/analyze."""
    userId: Optional[StrictStr] = Field(default=None, description="Restrict analysis to one user")


# =============================================================================
# Response Models
# =============================================================================


class QueryMetadata(BaseModel):
    result_type: str
    insights_count: int = Field(..., ge=0)
    timestamp: str


class QueryResponse(BaseModel):
    """Response of POST /query and the coo_query_data tool."""
    success: bool = True
    question: str
    data: Dict[str, Any]
    insights: List[Insight] = Field(default_factory=list)
    metadata: QueryMetadata


class AnalysisResponse(BaseModel):
    success: bool = True
    data: AnalysisResult
    summary: str
    timestamp: str


class InsightListResponse(BaseModel):
    success: bool = True
    insights: List[Insight] = Field(default_factory=list)
    total_count: int = Field(..., ge=0)
    filters: Dict[str, Any] = Field(default_factory=dict)
    timestamp: str


class OutcomeResponse(BaseModel):
    success: bool = True
    insight_id: str
    new_confidence: float = Field(..., ge=0.0, le=1.0)
    message: str
    timestamp: str


class MetricsResponse(BaseModel):
    success: bool = True
    category: str
    data: Dict[str, Any]
    highlights: List[DataHighlight] = Field(default_factory=list)
    timestamp: str


class TrackedEvent(BaseModel):
    """A stored post/upload event."""
    event: TrackedEventType
    properties: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = None
    timestamp: int = Field(..., description="Epoch milliseconds")


class TrackEventResponse(BaseModel):
    success: bool = True
    event: TrackedEvent
    timestamp: str
    message: str


class EventBehaviorAnalysis(BaseModel):
    """Post/upload behavior analysis."""
    insights: List[Insight] = Field(default_factory=list)
    summary: Dict[str, Any] = Field(default_factory=dict)
    metrics: Dict[str, Any] = Field(default_factory=dict)
    rawAnalysis: Optional[Dict[str, Any]] = None


class EventAnalysisResponse(BaseModel):
    success: bool = True
    analysis: EventBehaviorAnalysis
    timestamp: str


class EventMetrics(BaseModel):
    totalEvents: int = Field(..., ge=0)
    posts: int = Field(..., ge=0)
    uploads: int = Field(..., ge=0)
    uniqueUsers: int = Field(..., ge=0)
    lastActivity: Optional[str] = None


class EventMetricsResponse(BaseModel):
    success: bool = True
    metrics: EventMetrics
    timestamp: str


class ErrorResponse(BaseModel):
    """Body returned for client and server errors."""
    success: bool = False
    error: str
