"""
Analysis Orchestrator Service

Runs the full user-behavior analysis:
1. Classify three fixed questions (feature adoption, retention drivers,
   onboarding drop-off).
2. Synthesize insights from the three results (retention -> adoption ->
   onboarding).
3. Build the executive summary and three health metrics.

Executive summary:
- averageConfidence: mean confidence formatted as "NN.N%"
- topRecommendation / criticalAction: recommendation of the highest
  confidence insight; ties go to the earlier insight
- zero insights: averageConfidence "0%", message "no insights", no
  recommendation

Health metrics:
- adoptionHealth: number of entries in topFeatures (0 if absent)
- retentionStrength: correlationStrength (0 if absent)
- onboardingEfficiency: 1 - dropOffRate (1 if absent)

The returned insight list keeps rule order; sorting is only used to pick the
top insight.
"""

import logging
from typing import Any, List, Optional, Tuple

from coo_analytics.models.schemas import (
    AnalysisMetrics,
    AnalysisResult,
    ExecutiveSummary,
    Insight,
    QueryResult,
)
from coo_analytics.services.insight_synthesizer import InsightSynthesizer
from coo_analytics.services.query_classifier import QueryClassifier


logger = logging.getLogger(__name__)


# =============================================================================
# Analysis Questions
# =============================================================================

FEATURE_ADOPTION_QUESTION: str = "Which features have the highest adoption in first week?"
RETENTION_DRIVERS_QUESTION: str = "What actions correlate with 30-day retention?"
ONBOARDING_DROPOFF_QUESTION: str = "Where do users drop off in the onboarding flow?"

ANALYSIS_QUESTIONS: Tuple[str, str, str] = (
    FEATURE_ADOPTION_QUESTION,
    RETENTION_DRIVERS_QUESTION,
    ONBOARDING_DROPOFF_QUESTION,
)

NO_INSIGHTS_MESSAGE: str = "no insights"


def mean(values: List[float]) -> float:
    """Arithmetic mean; 0.0 for an empty list."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def build_executive_summary(insights: List[Insight]) -> ExecutiveSummary:
    """Summarize a list of insights; an empty list short-circuits."""
    if not insights:
        return ExecutiveSummary(
            totalInsights=0,
            averageConfidence="0%",
            topRecommendation=None,
            criticalAction=None,
            message=NO_INSIGHTS_MESSAGE,
        )

    average = mean([insight.confidence for insight in insights])
    # sorted() is stable, so equal confidences keep rule order
    top = sorted(insights, key=lambda insight: insight.confidence, reverse=True)[0]
    return ExecutiveSummary(
        totalInsights=len(insights),
        averageConfidence=f"{average * 100:.1f}%",
        topRecommendation=top.recommendation,
        criticalAction=top.recommendation,
    )


def build_analysis_metrics(
    feature_adoption: Optional[QueryResult],
    retention_drivers: Optional[QueryResult],
    onboarding_dropoff: Optional[QueryResult],
) -> AnalysisMetrics:
    """Derive the three health metrics from the analysis records."""
    top_features = feature_adoption.get("topFeatures") if feature_adoption else None
    adoption_health = len(top_features) if isinstance(top_features, list) else 0

    correlation = retention_drivers.get("correlationStrength") if retention_drivers else None
    drop_off = onboarding_dropoff.get("dropOffRate") if onboarding_dropoff else None

    return AnalysisMetrics(
        adoptionHealth=adoption_health,
        retentionStrength=_number(correlation, 0.0),
        onboardingEfficiency=1 - _number(drop_off, 0.0),
    )


class AnalysisOrchestrator:
    """
    Composes the classifier and synthesizer into a full analysis.

    Args:
        classifier: Used for the three analysis questions.
        synthesizer: Applies the analysis rule set.
    """

    def __init__(self, classifier: QueryClassifier, synthesizer: InsightSynthesizer) -> None:
        self.classifier = classifier
        self.synthesizer = synthesizer

    def run_full_analysis(self) -> AnalysisResult:
        """
        Run the three-question analysis.

        Returns:
            AnalysisResult with insights in rule order, the executive summary
            and the health metrics. A catalog with none of the three records
            yields an empty insight list and the "no insights" summary.
        """
        feature_adoption, retention_drivers, onboarding_dropoff = (
            self.classifier.classify_many(list(ANALYSIS_QUESTIONS))
        )

        insights = self.synthesizer.synthesize_all(
            feature_adoption,
            retention_drivers,
            onboarding_dropoff,
        )
        summary = build_executive_summary(insights)
        metrics = build_analysis_metrics(feature_adoption, retention_drivers, onboarding_dropoff)

        logger.info(
            f"Full analysis complete: {summary.totalInsights} insights, "
            f"average confidence {summary.averageConfidence}"
        )
        return AnalysisResult(insights=insights, summary=summary, metrics=metrics)
