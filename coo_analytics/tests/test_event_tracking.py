"""
Event Tracking Test Module

Tests for coo_analytics/services/event_tracking.py.

Test Coverage:
- Post and upload defaults
- Reserved fields win over caller properties
- User profiles and per-user filtering
- Behavior insights (ratio, top types, peak hour)
- Metrics counters
"""

from datetime import datetime, timedelta, timezone

from coo_analytics.models.enums import InsightType, TrackedEventType
from coo_analytics.services.event_tracking import NO_EVENTS_MESSAGE, EventTracker


class TestTracking:
    """track_post / track_upload."""

    def test_post_defaults(self, event_tracker) -> None:
        event = event_tracker.track_post("user_1")
        assert event.event == TrackedEventType.POST_CREATED
        assert event.properties["post_type"] == "text"
        assert event.properties["content_category"] == "general"
        assert event.properties["user_id"] == "user_1"
        assert event.timestamp == int(datetime(2024, 5, 1, 14, 30, tzinfo=timezone.utc).timestamp() * 1000)

    def test_post_category_from_properties(self, event_tracker) -> None:
        event = event_tracker.track_post("user_1", "image", {"category": "travel"})
        assert event.properties["content_category"] == "travel"
        assert event.properties["post_type"] == "image"

    def test_upload_defaults(self, event_tracker) -> None:
        event = event_tracker.track_upload("user_2")
        assert event.properties["file_type"] == "unknown"
        assert event.properties["file_size"] == 0
        assert event.properties["upload_method"] == "direct"

    def test_upload_size_and_method(self, event_tracker) -> None:
        event = event_tracker.track_upload("user_2", "pdf", {"size": 4096, "method": "drag_drop"})
        assert event.properties["file_size"] == 4096
        assert event.properties["upload_method"] == "drag_drop"

    def test_reserved_fields_cannot_be_overridden(self, event_tracker) -> None:
        event = event_tracker.track_post(
            "user_1",
            "video",
            {"user_id": "spoofed", "post_type": "spoofed", "timestamp": "yesterday", "mood": "happy"},
        )
        assert event.properties["user_id"] == "user_1"
        assert event.properties["post_type"] == "video"
        assert event.properties["timestamp"] == "2024-05-01T14:30:00+00:00"
        assert event.properties["mood"] == "happy"

    def test_session_id_for_known_users(self, event_tracker) -> None:
        first = event_tracker.track_post("user_1")
        second = event_tracker.track_post("user_1")
        assert first.properties["session_id"].startswith("anonymous_")
        assert second.properties["session_id"].startswith("session_user_1_")

    def test_profile_counters(self, event_tracker) -> None:
        event_tracker.track_post("user_1")
        event_tracker.track_upload("user_1", "png")
        event_tracker.track_upload("user_1", "png")
        profile = event_tracker.get_user_profile("user_1")
        assert (profile["posts"], profile["uploads"]) == (1, 2)
        assert event_tracker.get_user_profile("nobody") is None

    def test_forwarded_to_telemetry(self, event_tracker, recording_telemetry) -> None:
        event_tracker.track_upload("user_3", "csv")
        [props] = recording_telemetry.find("file_uploaded")
        assert props["file_type"] == "csv"
        assert props["client"] == "test"


class TestBehaviorAnalysis:

    def test_no_events(self, event_tracker) -> None:
        analysis = event_tracker.analyze_user_behavior()
        assert analysis.insights == []
        assert analysis.summary == {"message": NO_EVENTS_MESSAGE}
        assert analysis.metrics["totalEvents"] == 0
        assert analysis.rawAnalysis is None

    def test_post_heavy_ratio(self, event_tracker) -> None:
        for _ in range(4):
            event_tracker.track_post("user_1", "text")
        event_tracker.track_upload("user_1", "pdf")

        analysis = event_tracker.analyze_user_behavior()
        balance = [i for i in analysis.insights if i.type == InsightType.CONTENT_BALANCE]
        assert len(balance) == 1
        assert balance[0].discovery == "Users create 4.0x more posts than uploads"
        assert analysis.metrics["postToUploadRatio"] == "4.00"

    def test_upload_heavy_ratio(self, event_tracker) -> None:
        event_tracker.track_post("user_1")
        for _ in range(3):
            event_tracker.track_upload("user_1", "jpg")

        analysis = event_tracker.analyze_user_behavior()
        [balance] = [i for i in analysis.insights if i.type == InsightType.CONTENT_BALANCE]
        assert balance.discovery == "Users upload 3.0x more files than creating posts"

    def test_balanced_ratio_has_no_balance_insight(self, event_tracker) -> None:
        event_tracker.track_post("user_1")
        event_tracker.track_upload("user_1", "jpg")
        types = [i.type for i in event_tracker.analyze_user_behavior().insights]
        assert InsightType.CONTENT_BALANCE not in types

    def test_top_types_and_peak_hour(self, event_tracker) -> None:
        event_tracker.track_post("user_1", "image")
        event_tracker.track_post("user_2", "image")
        event_tracker.track_post("user_2", "text")
        event_tracker.track_upload("user_1", "pdf")

        analysis = event_tracker.analyze_user_behavior()
        by_type = {i.type: i for i in analysis.insights}
        assert by_type[InsightType.CONTENT_PREFERENCE].discovery == "image posts are most popular (66.7%)"
        assert by_type[InsightType.UPLOAD_PREFERENCE].discovery == "pdf files are most commonly uploaded (100.0%)"
        assert by_type[InsightType.TIMING].discovery == "Peak activity occurs at 14:00"
        assert analysis.summary["topPostType"] == "image"
        assert analysis.summary["totalActivity"] == "4 total events from 2 users"

    def test_filter_by_user(self, event_tracker) -> None:
        event_tracker.track_post("user_1")
        event_tracker.track_upload("user_2", "zip")

        analysis = event_tracker.analyze_user_behavior(user_id="user_2")
        assert analysis.metrics["totalEvents"] == 1
        assert analysis.metrics["postToUploadRatio"] == "0.00"
        assert analysis.summary["topPostType"] == "N/A"

    def test_peak_hour_uses_utc(self) -> None:
        # 23:15 at UTC-5 is 04:15 UTC
        moment = datetime(2024, 5, 1, 23, 15, tzinfo=timezone(timedelta(hours=-5)))
        tracker = EventTracker(clock=lambda: moment)
        tracker.track_post("user_1")
        assert tracker.analyze_user_behavior().rawAnalysis["timePatterns"]["peakHour"] == 4


class TestEventMetrics:

    def test_counters(self, event_tracker) -> None:
        event_tracker.track_post("user_1")
        event_tracker.track_upload("user_1", "pdf")
        event_tracker.track_upload("user_2", "pdf")

        metrics = event_tracker.get_metrics()
        assert metrics.totalEvents == 3
        assert metrics.posts == 1
        assert metrics.uploads == 2
        assert metrics.uniqueUsers == 2
        assert metrics.lastActivity == "2024-05-01T14:30:00+00:00"

    def test_empty(self, event_tracker) -> None:
        metrics = event_tracker.get_metrics()
        assert metrics.totalEvents == 0
        assert metrics.lastActivity is None
