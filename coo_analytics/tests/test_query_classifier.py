"""
Query Classifier Test Module

Tests for coo_analytics/services/query_classifier.py and the catalog search
it falls back to.

Test Coverage:
- Every keyword rule resolves to its category
- Rule precedence when several rules could fire
- The feature-adoption rule requires both keywords
- Catalog search fallback and the search_matched flag
- GENERAL_RESPONSE for unmatched, empty and whitespace-only questions
- Returned records are copies of the catalog
- query_classified telemetry
"""

import pytest

from coo_analytics.models.enums import Category
from coo_analytics.services.data_catalog import DataCatalog, MOCK_BUSINESS_DATA
from coo_analytics.services.query_classifier import (
    GENERAL_RESPONSE_MESSAGE,
    GENERAL_RESPONSE_SUGGESTIONS,
    KEYWORD_RULES,
    QueryClassifier,
    match_keyword_rule,
)


# =============================================================================
# Keyword Rules
# =============================================================================


class TestKeywordRules:
    """Each rule maps its keywords onto one category."""

    def test_rule_table_covers_every_data_category(self) -> None:
        """Twelve rules, one per data category, in catalog order."""
        assert [rule.category for rule in KEYWORD_RULES] == Category.data_categories()

    def test_sample_questions_hit_rules_in_order(self, classifier, sample_questions) -> None:
        """One sample question per rule resolves to that rule's category."""
        categories = [classifier.classify(q).category for q in sample_questions]
        assert categories == Category.data_categories()

    def test_keyword_match_is_not_a_search_match(self, classifier) -> None:
        result = classifier.classify("What is our MRR?")
        assert result.category == Category.REVENUE_METRICS
        assert result.search_matched is False

    def test_matching_is_case_insensitive(self, classifier) -> None:
        assert classifier.classify("HOW MANY USERS DO WE HAVE").category == Category.USER_METRICS

    def test_revenue_precedes_growth(self, classifier) -> None:
        """'revenue growth' fires the revenue rule first."""
        assert classifier.classify("What is our revenue growth?").category == Category.REVENUE_METRICS

    def test_engagement_precedes_retention(self, classifier) -> None:
        """'active' fires before 'retention' is considered."""
        result = classifier.classify("Do active users have better retention?")
        assert result.category == Category.ENGAGEMENT_METRICS

    def test_user_count_precedes_revenue(self, classifier) -> None:
        result = classifier.classify("How many users pay us revenue?")
        assert result.category == Category.USER_METRICS
        assert result.search_matched is False

    def test_substring_keywords_fire_inside_words(self) -> None:
        """'stay' matches 'stays' and 'load' matches 'download'."""
        assert match_keyword_rule("how long a customer stays") == Category.RETENTION_METRICS
        assert match_keyword_rule("download times") == Category.PERFORMANCE_METRICS

    def test_feature_adoption_needs_both_keywords(self, classifier) -> None:
        """
        'adoption' alone does not fire the feature-adoption rule.

        Only the keyword rule is blocked: the catalog search still resolves
        the token to feature_adoption through the category name.
        """
        assert match_keyword_rule("adoption") is None
        result = classifier.classify("adoption")
        assert result.search_matched is True
        assert result.category == Category.FEATURE_ADOPTION

    def test_feature_adoption_with_both_keywords(self, classifier) -> None:
        result = classifier.classify("features adoption")
        assert result.category == Category.FEATURE_ADOPTION
        assert result.get("underused") == "integrations"


# =============================================================================
# Search Fallback
# =============================================================================


class TestSearchFallback:
    """Questions no rule matches fall through to the catalog search."""

    def test_search_matches_record_content(self, classifier) -> None:
        """'dashboard' first appears in engagement_metrics' top features."""
        result = classifier.classify("dashboard")
        assert result.search_matched is True
        assert result.category == Category.ENGAGEMENT_METRICS

    def test_search_matches_category_name(self, classifier) -> None:
        """A token contained in a category name matches that category."""
        result = classifier.classify("conversion")
        assert result.category == Category.CONVERSION_METRICS
        assert result.search_matched is True

    def test_first_category_in_catalog_order_wins(self, classifier) -> None:
        """'metrics' is in nearly every category name; the first one wins."""
        result = classifier.classify("metrics")
        assert result.category == Category.USER_METRICS
        assert result.search_matched is True

    def test_search_payload_flag(self, classifier) -> None:
        payload = classifier.classify("dashboard").to_payload()
        assert payload["type"] == "engagement_metrics"
        assert payload["search_matched"] is True

    def test_keyword_payload_has_no_search_flag(self, classifier) -> None:
        payload = classifier.classify("How many users do we have?").to_payload()
        assert "search_matched" not in payload
        assert payload["total_users"] == 45230

    def test_catalog_search_tokens_split_on_whitespace(self) -> None:
        catalog = DataCatalog()
        assert catalog.search("  ") == []
        assert catalog.search("zzz\tenterprise") == ["user_metrics", "revenue_metrics", "competitive_metrics"]

    def test_unknown_catalog_keys_are_skipped(self) -> None:
        catalog = DataCatalog(records={
            "gadget_stats": {"count": 3},
            "user_metrics": {"favourite": "gadget"},
        })
        result = QueryClassifier(catalog).classify("gadget")
        assert result.category == Category.USER_METRICS
        assert result.search_matched is True

    def test_only_unknown_keys_match(self) -> None:
        catalog = DataCatalog(records={"gadget_stats": {"count": 3}})
        result = QueryClassifier(catalog).classify("gadget")
        assert result.category == Category.GENERAL_RESPONSE


# =============================================================================
# General Response
# =============================================================================


class TestGeneralResponse:
    """Unmatched input resolves to the GENERAL_RESPONSE sentinel."""

    @pytest.mark.parametrize("question", ["", "   ", "\n\t", "xyzzy qwerty"])
    def test_unmatched_input(self, classifier, question) -> None:
        result = classifier.classify(question)
        assert result.category == Category.GENERAL_RESPONSE
        assert result.data == {}
        assert result.message == GENERAL_RESPONSE_MESSAGE

    def test_eight_suggestions(self, classifier) -> None:
        result = classifier.classify("xyzzy")
        assert result.suggestions == list(GENERAL_RESPONSE_SUGGESTIONS)
        assert len(result.suggestions) == 8

    def test_general_payload_shape(self, classifier) -> None:
        payload = classifier.classify("").to_payload()
        assert payload["type"] == "general_response"
        assert set(payload) == {"type", "message", "suggestions"}

    def test_empty_catalog_always_general(self, empty_catalog) -> None:
        """With no records, even a keyword match resolves to the sentinel."""
        result = QueryClassifier(empty_catalog).classify("How many users do we have?")
        assert result.category == Category.GENERAL_RESPONSE


# =============================================================================
# Purity & Telemetry
# =============================================================================


class TestClassifierIsolation:
    """Results are fresh copies and classification has no side effects on data."""

    def test_mutating_result_leaves_catalog_intact(self, classifier) -> None:
        first = classifier.classify("How many users do we have?")
        first.data["total_users"] = -1
        first.data["user_segments"]["premium"] = 0

        second = classifier.classify("How many users do we have?")
        assert second.data["total_users"] == 45230
        assert second.data["user_segments"]["premium"] == 8920
        assert MOCK_BUSINESS_DATA["user_metrics"]["total_users"] == 45230

    def test_same_question_same_result(self, classifier) -> None:
        assert classifier.classify("revenue") == classifier.classify("revenue")

    def test_emits_query_classified(self, classifier, recording_telemetry) -> None:
        classifier.classify("dashboard")
        events = recording_telemetry.find("query_classified")
        assert len(events) == 1
        assert events[0]["category"] == "engagement_metrics"
        assert events[0]["search_matched"] is True
        assert events[0]["question_length"] == len("dashboard")

    def test_classifier_without_telemetry(self, catalog) -> None:
        assert QueryClassifier(catalog).classify("nps").category == Category.PRODUCT_HEALTH
