"""
Product Analytics Agent

Facade that composes the analytics engine for the transports (REST, MCP,
CLI). Every transport goes through this class; none of them talk to the
classifier, synthesizer or tracker directly.

Operations:
- query: classify a question and optionally synthesize insights
- analyze_user_behavior: run the three-question behavior analysis
- track_outcome: feed an outcome report into the tracker
- get_insights: filtered view of every insight produced so far
- get_metrics: raw records and data highlights for one or all categories

Produced insights are stored with identifiers in the InsightStore. When an
outcome is reported for a stored identifier, the stored insight's confidence
is replaced by the learned one.

Telemetry events emitted here (each with the sink's reserved fields):
    query_requested, insights_synthesized, query_completed,
    behavior_analysis_requested, behavior_analysis_completed,
    insights_retrieved, metrics_retrieved
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from coo_analytics.core.config import Settings, get_settings
from coo_analytics.core.telemetry import NullTelemetry, TelemetrySink
from coo_analytics.models.enums import Category
from coo_analytics.models.schemas import (
    AnalysisResult,
    DataHighlight,
    Insight,
    QueryResult,
)
from coo_analytics.services.analysis_orchestrator import AnalysisOrchestrator
from coo_analytics.services.data_catalog import DataCatalog
from coo_analytics.services.insight_store import InsightStore
from coo_analytics.services.insight_synthesizer import InsightSynthesizer
from coo_analytics.services.outcome_tracker import OutcomeTracker
from coo_analytics.services.query_classifier import QueryClassifier


logger = logging.getLogger(__name__)


# Questions answered by get_metrics("all"), keyed by the category they resolve to
ALL_METRICS_QUESTIONS: Tuple[Tuple[str, str], ...] = (
    (Category.USER_METRICS.value, "How many users do we have?"),
    (Category.REVENUE_METRICS.value, "What is our monthly revenue?"),
    (Category.ENGAGEMENT_METRICS.value, "How is user engagement?"),
)


def parse_percentage(value: str) -> float:
    """'89.3%' -> 89.3"""
    return float(value.rstrip("%") or 0)


class ProductAnalyticsAgent:
    """
    Facade over the analytics engine.

    Args:
        catalog: Source of category records.
        classifier: Question classifier bound to ``catalog``.
        synthesizer: Insight rule sets.
        tracker: Outcome tracker.
        orchestrator: Full-analysis runner.
        store: Insight store.
        telemetry: Sink for agent-level events.
    """

    def __init__(
        self,
        catalog: DataCatalog,
        classifier: QueryClassifier,
        synthesizer: InsightSynthesizer,
        tracker: OutcomeTracker,
        orchestrator: AnalysisOrchestrator,
        store: Optional[InsightStore] = None,
        telemetry: Optional[TelemetrySink] = None,
    ) -> None:
        self.catalog = catalog
        self.classifier = classifier
        self.synthesizer = synthesizer
        self.tracker = tracker
        self.orchestrator = orchestrator
        self.store = store if store is not None else InsightStore()
        self.telemetry = telemetry if telemetry is not None else NullTelemetry()

    # =========================================================================
    # Query
    # =========================================================================

    def query(
        self,
        question: str,
        generate_insights: bool = True,
    ) -> Tuple[QueryResult, List[Insight]]:
        """
        Answer one question.

        Returns:
            The classification result and the stored insights (with ids).
            ``generate_insights=False`` always yields an empty insight list.
        """
        self.telemetry.emit("query_requested", {"question": question})
        result = self.classifier.classify(question)

        insights: List[Insight] = []
        if generate_insights:
            insights = self.store.add_all(self.synthesizer.synthesize(result))
            if insights:
                self.telemetry.emit(
                    "insights_synthesized",
                    {
                        "category": result.category.value,
                        "insights_count": len(insights),
                        "insight_types": [insight.type.value for insight in insights],
                    },
                )

        self.telemetry.emit(
            "query_completed",
            {
                "question": question,
                "result_type": result.category.value,
                "insights_generated": len(insights),
            },
        )
        return result, insights

    # =========================================================================
    # Behavior Analysis
    # =========================================================================

    def analyze_user_behavior(self, include_tracking: bool = True) -> AnalysisResult:
        """Run the full analysis and store its insights."""
        if include_tracking:
            self.telemetry.emit("behavior_analysis_requested", {})

        analysis = self.orchestrator.run_full_analysis()
        stored = self.store.add_all(analysis.insights)
        analysis = analysis.model_copy(update={"insights": stored})

        if include_tracking:
            self.telemetry.emit(
                "behavior_analysis_completed",
                {
                    "insights_count": len(stored),
                    "average_confidence": parse_percentage(analysis.summary.averageConfidence),
                },
            )
        return analysis

    # =========================================================================
    # Outcomes & Insights
    # =========================================================================

    def track_outcome(
        self,
        insight_id: str,
        implemented: bool,
        improved: bool,
        actual_impact: str = "not_specified",
    ) -> float:
        """
        Report an outcome and return the learned confidence.

        Identifiers that were never produced are still tracked.
        """
        confidence = self.tracker.report_outcome(insight_id, implemented, improved)
        if self.store.update_confidence(insight_id, confidence):
            logger.info(f"Insight {insight_id} confidence now {confidence:.2f} (impact: {actual_impact})")
        else:
            logger.debug(f"Outcome reported for unknown insight {insight_id}")
        return confidence

    def get_insights(
        self,
        min_confidence: float = 0.0,
        insight_type: Optional[str] = None,
    ) -> List[Insight]:
        """Stored insights filtered by confidence floor and type."""
        insights = self.store.find(min_confidence=min_confidence, insight_type=insight_type)
        self.telemetry.emit(
            "insights_retrieved",
            {
                "total_insights": len(insights),
                "min_confidence": min_confidence,
                "insight_type": insight_type,
            },
        )
        return insights

    # =========================================================================
    # Metrics
    # =========================================================================

    def get_metrics(self, category: str = "all") -> Tuple[Dict[str, Any], List[DataHighlight]]:
        """
        Raw records plus data highlights.

        Args:
            category: "all" for the user / revenue / engagement overview, or
                one catalog category name.

        Returns:
            ``(data, highlights)``. For "all", ``data`` maps each category to
            its flattened query payload; otherwise ``data`` is the flattened
            payload of the requested category.

        Raises:
            ValueError: ``category`` is neither "all" nor a catalog category.
        """
        highlights: List[DataHighlight] = []

        if category == "all":
            data: Dict[str, Any] = {}
            for key, question in ALL_METRICS_QUESTIONS:
                result = self.classifier.classify(question)
                data[key] = result.to_payload()
                highlights.extend(
                    self.synthesizer.generate_data_insights(result.category.value, result.data)
                )
        else:
            record = self.catalog.get(category)
            if record is None:
                raise ValueError(
                    f"Unknown metric category '{category}'. "
                    f"Expected 'all' or one of: {', '.join(self.catalog.categories())}"
                )
            data = QueryResult(category=Category(category), data=record).to_payload()
            highlights = self.synthesizer.generate_data_insights(category, record)

        self.telemetry.emit(
            "metrics_retrieved",
            {"category": category, "highlights_count": len(highlights)},
        )
        return data, highlights


def build_agent(
    settings: Optional[Settings] = None,
    telemetry: Optional[TelemetrySink] = None,
    catalog: Optional[DataCatalog] = None,
) -> ProductAnalyticsAgent:
    """
    Wire a ProductAnalyticsAgent from settings.

    The same telemetry sink is shared by the classifier, the tracker and the
    agent. The sink is not opened here.
    """
    settings = settings or get_settings()
    sink = telemetry if telemetry is not None else NullTelemetry(client=settings.telemetry_client)
    if catalog is None:
        catalog = DataCatalog()

    classifier = QueryClassifier(catalog, telemetry=sink)
    synthesizer = InsightSynthesizer.from_settings(settings)
    tracker = OutcomeTracker.from_settings(settings, telemetry=sink)
    orchestrator = AnalysisOrchestrator(classifier, synthesizer)

    return ProductAnalyticsAgent(
        catalog=catalog,
        classifier=classifier,
        synthesizer=synthesizer,
        tracker=tracker,
        orchestrator=orchestrator,
        store=InsightStore(),
        telemetry=sink,
    )
