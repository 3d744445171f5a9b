"""
Query Classifier Service

Maps a free-text business question onto one data-catalog category.

Classification order:
1. Keyword rules (KEYWORD_RULES), evaluated in declaration order against the
   lower-cased question. The first rule that fires wins.
2. Catalog search: any whitespace-separated token that is a substring of a
   category name or of its serialized record. First category in catalog
   order wins and the result is flagged ``search_matched``. Catalog keys
   that are not known categories are skipped.
3. The GENERAL_RESPONSE sentinel with a static help message and example
   questions.

Classification is total: every string, including the empty string, yields a
QueryResult. The result depends only on the question text and the catalog
content.

Keyword matching is plain substring containment, so "stay" also fires on
"stays" and "load" on "download". Rule order therefore matters and is part
of the contract.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from coo_analytics.core.telemetry import TelemetrySink
from coo_analytics.models.enums import Category
from coo_analytics.models.schemas import QueryResult
from coo_analytics.services.data_catalog import DataCatalog


logger = logging.getLogger(__name__)


# =============================================================================
# Keyword Rules
# =============================================================================


@dataclass(frozen=True)
class ClassificationRule:
    """
    One keyword rule.

    Attributes:
        category: Category returned when the rule fires.
        keywords: Substrings to look for in the lower-cased question.
        require_all: When True every keyword must be present, otherwise any.
    """
    category: Category
    keywords: Tuple[str, ...]
    require_all: bool = False

    def matches(self, lowered: str) -> bool:
        if self.require_all:
            return all(keyword in lowered for keyword in self.keywords)
        return any(keyword in lowered for keyword in self.keywords)


KEYWORD_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(Category.USER_METRICS, ("how many users", "user count", "total users")),
    ClassificationRule(Category.REVENUE_METRICS, ("revenue", "mrr", "money", "income")),
    ClassificationRule(Category.ENGAGEMENT_METRICS, ("engagement", "active", "usage")),
    ClassificationRule(Category.GROWTH_METRICS, ("growth", "growing", "trend")),
    ClassificationRule(Category.FEATURE_ADOPTION, ("features", "adoption"), require_all=True),
    ClassificationRule(Category.RETENTION_METRICS, ("retention", "stay", "return")),
    ClassificationRule(Category.ONBOARDING_METRICS, ("drop", "abandon", "onboarding", "leave")),
    ClassificationRule(Category.SUPPORT_METRICS, ("support", "help", "tickets", "issues")),
    ClassificationRule(Category.CONVERSION_METRICS, ("convert", "upgrade", "paid", "trial")),
    ClassificationRule(Category.PERFORMANCE_METRICS, ("performance", "speed", "slow", "load")),
    ClassificationRule(Category.COMPETITIVE_METRICS, ("competitor", "market", "competitive")),
    ClassificationRule(Category.PRODUCT_HEALTH, ("health", "nps", "satisfaction")),
)


# =============================================================================
# General Response
# =============================================================================

GENERAL_RESPONSE_MESSAGE: str = (
    "I can help you analyze user behavior, revenue, engagement, growth, features, "
    "retention, onboarding, support, conversions, performance, and competitive metrics. "
    "Try asking more specific questions!"
)

GENERAL_RESPONSE_SUGGESTIONS: Tuple[str, ...] = (
    "How many users do we have?",
    "What is our monthly revenue?",
    "Which features are most popular?",
    "What drives user retention?",
    "Where do users drop off?",
    "How is our growth trending?",
    "What is our NPS score?",
    "How do we compare to competitors?",
)


def general_response() -> QueryResult:
    """Fresh GENERAL_RESPONSE sentinel result."""
    return QueryResult(
        category=Category.GENERAL_RESPONSE,
        message=GENERAL_RESPONSE_MESSAGE,
        suggestions=list(GENERAL_RESPONSE_SUGGESTIONS),
    )


def match_keyword_rule(lowered: str) -> Optional[Category]:
    """First category whose keyword rule fires on ``lowered``, if any."""
    for rule in KEYWORD_RULES:
        if rule.matches(lowered):
            return rule.category
    return None


# =============================================================================
# Classifier
# =============================================================================


class QueryClassifier:
    """
    Keyword-rule classifier over a DataCatalog.

    Args:
        catalog: Source of category records.
        telemetry: Optional sink; receives ``query_classified`` after every
            classification. Emission never changes the result.
    """

    def __init__(
        self,
        catalog: DataCatalog,
        telemetry: Optional[TelemetrySink] = None,
    ) -> None:
        self.catalog = catalog
        self.telemetry = telemetry

    def classify(self, question: str) -> QueryResult:
        """
        Classify a question into a QueryResult.

        Args:
            question: Free text. Empty and whitespace-only input is valid and
                resolves to GENERAL_RESPONSE.

        Returns:
            A new QueryResult carrying a copy of the matched record.
        """
        lowered = (question or "").lower()
        result = self._classify_lowered(lowered)

        logger.debug(
            f"Classified question ({len(lowered)} chars) as {result.category.value}"
            f"{' via search' if result.search_matched else ''}"
        )
        if self.telemetry is not None:
            self.telemetry.emit(
                "query_classified",
                {
                    "category": result.category.value,
                    "search_matched": result.search_matched,
                    "question_length": len(lowered),
                },
            )
        return result

    def _classify_lowered(self, lowered: str) -> QueryResult:
        category = match_keyword_rule(lowered)
        if category is not None:
            record = self.catalog.get(category)
            if record is not None:
                return QueryResult(category=category, data=record)
            logger.warning(f"Keyword rule matched {category.value} but catalog has no record")

        for name in self.catalog.search(lowered):
            try:
                category = Category(name)
            except ValueError:
                logger.debug(f"Skipping search match {name!r}: not a known category")
                continue
            record = self.catalog.get(category)
            if record is not None:
                return QueryResult(category=category, data=record, search_matched=True)

        return general_response()

    def classify_many(self, questions: List[str]) -> List[QueryResult]:
        """Classify several questions, preserving order."""
        return [self.classify(q) for q in questions]
