"""
COO Analytics Services Module

This module contains the business logic of the analytics agent. Pure
components (catalog, classifier, synthesizer, orchestrator) hold no mutable
state; the tracker, insight store and event tracker own in-memory state
behind locks.

Services:
- data_catalog: Read-only category records and keyword search
- query_classifier: Ordered keyword rules mapping questions to categories
- insight_synthesizer: Query, analysis and data-highlight rule sets
- outcome_tracker: Per-insight outcome counters and learned confidence
- analysis_orchestrator: Three-question behavior analysis and summary
- insight_store: Identified insights produced so far
- event_tracking: Post/upload event store and behavior analysis
- agent: Facade composing the above for the transports

All services are consumed by the transports (coo_analytics.api, mcp_server,
cli) through ProductAnalyticsAgent and EventTracker.
"""

from coo_analytics.services.data_catalog import (
    DataCatalog,
    MOCK_BUSINESS_DATA,
)

from coo_analytics.services.query_classifier import (
    QueryClassifier,
    ClassificationRule,
    KEYWORD_RULES,
    GENERAL_RESPONSE_MESSAGE,
    GENERAL_RESPONSE_SUGGESTIONS,
    general_response,
    match_keyword_rule,
)

from coo_analytics.services.insight_synthesizer import InsightSynthesizer

from coo_analytics.services.outcome_tracker import OutcomeTracker

from coo_analytics.services.analysis_orchestrator import (
    AnalysisOrchestrator,
    ANALYSIS_QUESTIONS,
    build_executive_summary,
    build_analysis_metrics,
)

from coo_analytics.services.insight_store import InsightStore

from coo_analytics.services.event_tracking import (
    EventTracker,
    NO_EVENTS_MESSAGE,
)

from coo_analytics.services.agent import (
    ProductAnalyticsAgent,
    ALL_METRICS_QUESTIONS,
    build_agent,
)


__all__ = [
    # Data catalog
    "DataCatalog",
    "MOCK_BUSINESS_DATA",
    # Classification
    "QueryClassifier",
    "ClassificationRule",
    "KEYWORD_RULES",
    "GENERAL_RESPONSE_MESSAGE",
    "GENERAL_RESPONSE_SUGGESTIONS",
    "general_response",
    "match_keyword_rule",
    # Synthesis
    "InsightSynthesizer",
    # Outcome learning
    "OutcomeTracker",
    # Orchestration
    "AnalysisOrchestrator",
    "ANALYSIS_QUESTIONS",
    "build_executive_summary",
    "build_analysis_metrics",
    # Stores
    "InsightStore",
    "EventTracker",
    "NO_EVENTS_MESSAGE",
    # Facade
    "ProductAnalyticsAgent",
    "ALL_METRICS_QUESTIONS",
    "build_agent",
]
