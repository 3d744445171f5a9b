"""
Insight Synthesizer Service

Turns classified query results into threshold-triggered recommendations.

Three rule sets:
1. QUERY RULES (synthesize) - one rule per category, applied to a single
   classified result. Confidence values are fixed literals per rule.
2. ANALYSIS RULES (synthesize_all) - the three-record rule set used by the
   full behavior analysis, emitted in retention -> adoption -> onboarding
   order.
3. DATA HIGHLIGHTS (generate_data_insights) - catalog-level positive /
   warning / critical observations served alongside metrics lookups.

Query rules:
    | category            | condition                         | conf | type        |
    |---------------------|-----------------------------------|------|-------------|
    | user_metrics        | growth_rate > 0.10                | 0.87 | growth      |
    | revenue_metrics     | revenue_growth > 0.10             | 0.91 | revenue     |
    | retention_metrics   | topAction non-empty               | 0.89 | retention   |
    | onboarding_metrics  | dropOffRate > query threshold     | 0.92 | onboarding  |
    | feature_adoption    | underused non-empty               | 0.85 | adoption    |
    | product_health      | nps_score < 50                    | 0.88 | health      |
    | competitive_metrics | win_loss_analysis.win_rate < 0.4  | 0.86 | competitive |

A rule whose field is missing or of the wrong type simply does not fire.
Every function here is pure: the same input always yields the same list.

The two onboarding drop-off thresholds (query rules vs data highlights) are
separate settings: QUERY_DROPOFF_THRESHOLD (0.3) and CATALOG_DROPOFF_THRESHOLD
(0.35).
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from coo_analytics.core.config import Settings, get_settings
from coo_analytics.models.enums import Category, HighlightType, InsightType
from coo_analytics.models.schemas import DataHighlight, Insight, QueryResult


logger = logging.getLogger(__name__)


# =============================================================================
# Rule Constants
# =============================================================================

GROWTH_RATE_THRESHOLD: float = 0.10
REVENUE_GROWTH_THRESHOLD: float = 0.10
NPS_THRESHOLD: float = 50
WIN_RATE_THRESHOLD: float = 0.4
DAY30_RETENTION_BENCHMARK: float = 0.30

CONFIDENCE_GROWTH: float = 0.87
CONFIDENCE_REVENUE: float = 0.91
CONFIDENCE_RETENTION: float = 0.89
CONFIDENCE_ONBOARDING: float = 0.92
CONFIDENCE_ADOPTION: float = 0.85
CONFIDENCE_HEALTH: float = 0.88
CONFIDENCE_COMPETITIVE: float = 0.86


# =============================================================================
# Field Helpers
# =============================================================================


def _number(value: Any) -> Optional[float]:
    """Numeric value of a record field, or None for anything non-numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _text(value: Any) -> Optional[str]:
    """Non-empty string value of a record field, or None."""
    if isinstance(value, str) and value:
        return value
    return None


def _display(value: float) -> str:
    """Render a number the way it reads in the dataset (3.0 -> '3', 3.2 -> '3.2')."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _nested(record: Mapping[str, Any], *path: str) -> Any:
    current: Any = record
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


# =============================================================================
# Synthesizer
# =============================================================================


class InsightSynthesizer:
    """
    Applies the query, analysis and highlight rule sets.

    Args:
        query_dropoff_threshold: Drop-off rate above which the onboarding
            query rule fires.
        catalog_dropoff_threshold: Drop-off rate above which the onboarding
            data highlight fires.
    """

    def __init__(
        self,
        query_dropoff_threshold: float = 0.3,
        catalog_dropoff_threshold: float = 0.35,
    ) -> None:
        self.query_dropoff_threshold = query_dropoff_threshold
        self.catalog_dropoff_threshold = catalog_dropoff_threshold
        self._query_rules: Dict[Category, Callable[[Mapping[str, Any]], Optional[Insight]]] = {
            Category.USER_METRICS: self._user_growth,
            Category.REVENUE_METRICS: self._revenue_growth,
            Category.RETENTION_METRICS: self._retention_driver,
            Category.ONBOARDING_METRICS: self._onboarding_dropoff,
            Category.FEATURE_ADOPTION: self._underused_feature,
            Category.PRODUCT_HEALTH: self._nps,
            Category.COMPETITIVE_METRICS: self._win_rate,
        }

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "InsightSynthesizer":
        settings = settings or get_settings()
        return cls(
            query_dropoff_threshold=settings.query_dropoff_threshold,
            catalog_dropoff_threshold=settings.catalog_dropoff_threshold,
        )

    # -------------------------------------------------------------------------
    # Query rules
    # -------------------------------------------------------------------------

    def synthesize(self, result: QueryResult) -> List[Insight]:
        """
        Insights for one classified result.

        Returns:
            Zero or one insight. Categories without a rule (and the
            GENERAL_RESPONSE sentinel) always yield an empty list.
        """
        rule = self._query_rules.get(result.category)
        if rule is None:
            return []
        insight = rule(result.data)
        if insight is None:
            return []
        logger.debug(f"Query rule fired for {result.category.value}: {insight.type.value}")
        return [insight]

    def _user_growth(self, record: Mapping[str, Any]) -> Optional[Insight]:
        rate = _number(record.get("growth_rate"))
        if rate is None or rate <= GROWTH_RATE_THRESHOLD:
            return None
        return Insight(
            type=InsightType.GROWTH,
            discovery=f"Strong user growth at {rate * 100:.1f}% indicates healthy market demand",
            confidence=CONFIDENCE_GROWTH,
            recommendation="Invest in user acquisition channels that are working",
            expectedImpact="+25% user growth acceleration",
        )

    def _revenue_growth(self, record: Mapping[str, Any]) -> Optional[Insight]:
        rate = _number(record.get("revenue_growth"))
        if rate is None or rate <= REVENUE_GROWTH_THRESHOLD:
            return None
        return Insight(
            type=InsightType.REVENUE,
            discovery=f"Revenue growing at {rate * 100:.1f}% shows strong product-market fit",
            confidence=CONFIDENCE_REVENUE,
            recommendation="Focus on upselling existing customers to premium tiers",
            expectedImpact="+20% revenue growth",
        )

    def _retention_driver(self, record: Mapping[str, Any]) -> Optional[Insight]:
        action = _text(record.get("topAction"))
        if action is None:
            return None
        lift = _number(record.get("retentionLift"))
        if lift is not None:
            discovery = f"Users who {action} retain {_display(lift)}x better"
        else:
            discovery = f"Users who {action} retain significantly better"
        return Insight(
            type=InsightType.RETENTION,
            discovery=discovery,
            confidence=CONFIDENCE_RETENTION,
            recommendation=f"Prompt all users to {action} in first session",
            expectedImpact="+15% 30-day retention",
        )

    def _onboarding_dropoff(self, record: Mapping[str, Any]) -> Optional[Insight]:
        rate = _number(record.get("dropOffRate"))
        if rate is None or rate <= self.query_dropoff_threshold:
            return None
        step = _text(record.get("biggest")) or "onboarding"
        return Insight(
            type=InsightType.ONBOARDING,
            discovery=f"{rate * 100:.0f}% drop-off at {step} is limiting activation",
            confidence=CONFIDENCE_ONBOARDING,
            recommendation=f"Simplify {step} to reduce friction",
            expectedImpact="+38% activation rate",
        )

    def _underused_feature(self, record: Mapping[str, Any]) -> Optional[Insight]:
        feature = _text(record.get("underused"))
        if feature is None:
            return None
        return Insight(
            type=InsightType.ADOPTION,
            discovery=f"{feature} feature is underutilized but drives engagement",
            confidence=CONFIDENCE_ADOPTION,
            recommendation=f"Add tutorial for {feature} in onboarding",
            expectedImpact="+23% daily active users",
        )

    def _nps(self, record: Mapping[str, Any]) -> Optional[Insight]:
        nps = _number(record.get("nps_score"))
        if nps is None or nps >= NPS_THRESHOLD:
            return None
        return Insight(
            type=InsightType.HEALTH,
            discovery=f"NPS score of {_display(nps)} indicates room for improvement in user satisfaction",
            confidence=CONFIDENCE_HEALTH,
            recommendation="Focus on addressing top user pain points and feature requests",
            expectedImpact="+15 point NPS improvement",
        )

    def _win_rate(self, record: Mapping[str, Any]) -> Optional[Insight]:
        rate = _number(_nested(record, "win_loss_analysis", "win_rate"))
        if rate is None or rate >= WIN_RATE_THRESHOLD:
            return None
        return Insight(
            type=InsightType.COMPETITIVE,
            discovery=f"Win rate of {rate * 100:.1f}% suggests competitive disadvantages",
            confidence=CONFIDENCE_COMPETITIVE,
            recommendation="Address top loss reasons and strengthen win factors",
            expectedImpact="+10% win rate improvement",
        )

    # -------------------------------------------------------------------------
    # Analysis rules
    # -------------------------------------------------------------------------

    def synthesize_all(
        self,
        feature_adoption: Optional[QueryResult],
        retention_drivers: Optional[QueryResult],
        onboarding_dropoff: Optional[QueryResult],
    ) -> List[Insight]:
        """
        Insights for the full behavior analysis.

        Each argument may be None or carry an unrelated record; a rule fires
        only when its field is present. Output order is always retention,
        adoption, onboarding.

        Note:
            The onboarding rule here fires whenever ``biggest`` is present,
            independent of the drop-off rate.
        """
        insights: List[Insight] = []

        action = _text(retention_drivers.get("topAction")) if retention_drivers else None
        if action is not None:
            insights.append(Insight(
                type=InsightType.RETENTION,
                discovery=f"Users who {action} retain 3x better",
                confidence=CONFIDENCE_RETENTION,
                recommendation=f"Prompt all users to {action} in first session",
                expectedImpact="+15% 30-day retention",
            ))

        feature = _text(feature_adoption.get("underused")) if feature_adoption else None
        if feature is not None:
            insights.append(Insight(
                type=InsightType.ADOPTION,
                discovery=f"Only 12% use {feature} but it drives highest engagement",
                confidence=CONFIDENCE_ADOPTION,
                recommendation=f"Add tutorial for {feature} in onboarding",
                expectedImpact="+23% daily active users",
            ))

        step = _text(onboarding_dropoff.get("biggest")) if onboarding_dropoff else None
        if step is not None:
            insights.append(Insight(
                type=InsightType.ONBOARDING,
                discovery=f"42% of users abandon at {step}",
                confidence=CONFIDENCE_ONBOARDING,
                recommendation=f"Simplify {step} to single tap",
                expectedImpact="+38% activation rate",
            ))

        return insights

    # -------------------------------------------------------------------------
    # Data highlights
    # -------------------------------------------------------------------------

    def generate_data_insights(
        self,
        category: str,
        record: Optional[Mapping[str, Any]],
    ) -> List[DataHighlight]:
        """
        Catalog-level highlights for one category record.

        Only user_metrics, retention_metrics and onboarding_metrics carry
        highlight rules; any other category returns an empty list.
        """
        if not record:
            return []
        key = category.value if isinstance(category, Category) else str(category)
        highlights: List[DataHighlight] = []

        if key == Category.USER_METRICS.value:
            rate = _number(record.get("growth_rate"))
            if rate is not None and rate > GROWTH_RATE_THRESHOLD:
                highlights.append(DataHighlight(
                    type=HighlightType.POSITIVE,
                    message=f"Strong user growth at {rate * 100:.1f}%",
                    recommendation="Scale successful acquisition channels",
                ))

        elif key == Category.RETENTION_METRICS.value:
            day30 = _number(record.get("day30_retention"))
            action = _text(record.get("topAction")) or "key action"
            if day30 is not None and day30 < DAY30_RETENTION_BENCHMARK:
                highlights.append(DataHighlight(
                    type=HighlightType.WARNING,
                    message=f"30-day retention at {day30 * 100:.1f}% is below industry average",
                    recommendation=f"Focus on improving {action} completion",
                ))

        elif key == Category.ONBOARDING_METRICS.value:
            rate = _number(record.get("dropOffRate"))
            step = _text(record.get("biggest")) or "onboarding"
            if rate is not None and rate > self.catalog_dropoff_threshold:
                highlights.append(DataHighlight(
                    type=HighlightType.CRITICAL,
                    message=f"High drop-off at {step} ({rate * 100:.1f}%)",
                    recommendation=f"Simplify {step} process",
                ))

        return highlights
