"""
Enumeration definitions for the COO Analytics backend.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings in Pydantic models and JSON responses.
"""

from enum import Enum


class Category(str, Enum):
    """
    Business-metric categories keying the data catalog.

    Twelve data-bearing categories plus the GENERAL_RESPONSE sentinel,
    returned when a question matches neither a keyword rule nor a
    catalog search.
    """
    USER_METRICS = "user_metrics"
    REVENUE_METRICS = "revenue_metrics"
    ENGAGEMENT_METRICS = "engagement_metrics"
    GROWTH_METRICS = "growth_metrics"
    FEATURE_ADOPTION = "feature_adoption"
    RETENTION_METRICS = "retention_metrics"
    ONBOARDING_METRICS = "onboarding_metrics"
    SUPPORT_METRICS = "support_metrics"
    CONVERSION_METRICS = "conversion_metrics"
    PERFORMANCE_METRICS = "performance_metrics"
    COMPETITIVE_METRICS = "competitive_metrics"
    PRODUCT_HEALTH = "product_health"
    GENERAL_RESPONSE = "general_response"

    @classmethod
    def data_categories(cls) -> list:
        """All categories except the GENERAL_RESPONSE sentinel, in declaration order."""
        return [c for c in cls if c is not cls.GENERAL_RESPONSE]


class InsightType(str, Enum):
    """
    Insight type tags.

    Query-path insights use GROWTH, REVENUE, RETENTION, ONBOARDING, ADOPTION,
    HEALTH and COMPETITIVE. The orchestrator emits RETENTION, ADOPTION and
    ONBOARDING. Event-tracking insights use the remaining four.
    """
    GROWTH = "growth"
    REVENUE = "revenue"
    RETENTION = "retention"
    ONBOARDING = "onboarding"
    ADOPTION = "adoption"
    HEALTH = "health"
    COMPETITIVE = "competitive"
    CONTENT_BALANCE = "content_balance"
    CONTENT_PREFERENCE = "content_preference"
    UPLOAD_PREFERENCE = "upload_preference"
    TIMING = "timing"


class HighlightType(str, Enum):
    """
    Severity of a catalog-level data highlight.

    - positive: Healthy signal worth scaling
    - warning: Below an industry benchmark
    - critical: Needs immediate attention
    """
    POSITIVE = "positive"
    WARNING = "warning"
    CRITICAL = "critical"


class TrackedEventType(str, Enum):
    """Event names recorded by the event-tracking collaborator."""
    POST_CREATED = "post_created"
    FILE_UPLOADED = "file_uploaded"
