"""
Outcome Tracker Test Module

Tests for coo_analytics/services/outcome_tracker.py.

Test Coverage:
- Default confidence before anything is implemented
- successful / implemented ratio with floor and ceiling clamps
- "improved" without "implemented" is not a success
- Counter invariants (successful <= implemented <= suggested)
- Concurrent reports for the same and different identifiers
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from coo_analytics.services.outcome_tracker import OutcomeTracker


class TestLearnedConfidence:
    """Confidence = clamp(successful / implemented, 0.1, 0.95)."""

    def test_unknown_identifier_defaults(self, tracker) -> None:
        assert tracker.update_confidence("retention_00000000") == 0.5
        assert tracker.get_pattern("retention_00000000").suggested == 0

    def test_not_implemented_keeps_default(self, tracker) -> None:
        assert tracker.report_outcome("onboarding_1", implemented=False, improved=False) == 0.5
        pattern = tracker.get_pattern("onboarding_1")
        assert (pattern.suggested, pattern.implemented, pattern.successful) == (1, 0, 0)

    def test_repeated_not_implemented_stays_at_default(self, tracker) -> None:
        confidences = [
            tracker.report_outcome("x", implemented=False, improved=False) for _ in range(5)
        ]
        assert confidences == [0.5] * 5
        assert tracker.get_pattern("x").suggested == 5

    def test_single_success_hits_ceiling(self, tracker) -> None:
        """1/1 = 1.0 clamps to 0.95."""
        assert tracker.report_outcome("adoption_1", implemented=True, improved=True) == 0.95

    def test_single_failure_hits_floor(self, tracker) -> None:
        """0/1 = 0.0 clamps to 0.1."""
        assert tracker.report_outcome("adoption_2", implemented=True, improved=False) == 0.1

    def test_ratio_between_bounds(self, tracker) -> None:
        tracker.report_outcome("growth_1", implemented=True, improved=True)
        tracker.report_outcome("growth_1", implemented=True, improved=False)
        tracker.report_outcome("growth_1", implemented=True, improved=True)
        confidence = tracker.report_outcome("growth_1", implemented=True, improved=False)
        assert confidence == pytest.approx(0.5)
        assert tracker.update_confidence("growth_1") == pytest.approx(0.5)

    def test_improved_without_implemented_is_ignored(self, tracker) -> None:
        tracker.report_outcome("health_1", implemented=True, improved=False)
        confidence = tracker.report_outcome("health_1", implemented=False, improved=True)
        pattern = tracker.get_pattern("health_1")
        assert pattern.successful == 0
        assert pattern.suggested == 2
        assert confidence == 0.1

    def test_identifiers_are_independent(self, tracker) -> None:
        tracker.report_outcome("a", implemented=True, improved=True)
        tracker.report_outcome("b", implemented=True, improved=False)
        assert tracker.update_confidence("a") == 0.95
        assert tracker.update_confidence("b") == 0.1
        assert set(tracker.patterns()) == {"a", "b"}

    def test_get_pattern_unknown_returns_none(self, tracker) -> None:
        assert tracker.get_pattern("never_seen") is None


class TestTrackerConfiguration:
    """Bounds come from constructor arguments or settings."""

    def test_custom_bounds(self) -> None:
        tracker = OutcomeTracker(default_confidence=0.6, confidence_floor=0.2, confidence_ceiling=0.8)
        assert tracker.update_confidence("x") == 0.6
        assert tracker.report_outcome("x", True, True) == 0.8
        assert tracker.report_outcome("y", True, False) == 0.2

    def test_floor_above_ceiling_rejected(self) -> None:
        with pytest.raises(ValueError):
            OutcomeTracker(confidence_floor=0.9, confidence_ceiling=0.5)

    def test_from_settings(self, test_settings) -> None:
        tracker = OutcomeTracker.from_settings(test_settings)
        assert tracker.default_confidence == 0.5
        assert tracker.confidence_floor == 0.1
        assert tracker.confidence_ceiling == 0.95

    def test_emits_outcome_tracked(self, tracker, recording_telemetry) -> None:
        tracker.report_outcome("retention_1", implemented=True, improved=True)
        [event] = recording_telemetry.find("outcome_tracked")
        assert event["insight_id"] == "retention_1"
        assert event["new_confidence"] == 0.95
        assert event["implemented"] is True


@pytest.mark.concurrency
class TestConcurrentReports:
    """Counters stay consistent under concurrent reports."""

    def test_same_identifier_from_many_threads(self) -> None:
        tracker = OutcomeTracker()
        reports = [(True, i % 4 != 0) for i in range(400)] + [(False, True)] * 100

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda r: tracker.report_outcome("shared", *r), reports))

        pattern = tracker.get_pattern("shared")
        assert pattern.suggested == 500
        assert pattern.implemented == 400
        assert pattern.successful == 300
        assert tracker.update_confidence("shared") == pytest.approx(0.75)

    def test_many_identifiers_from_many_threads(self) -> None:
        tracker = OutcomeTracker()
        ids = [f"insight_{i % 20}" for i in range(1000)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda insight_id: tracker.report_outcome(insight_id, True, True), ids))

        patterns = tracker.patterns()
        assert len(patterns) == 20
        for counters in patterns.values():
            assert counters.suggested == counters.implemented == counters.successful == 50
