"""
Event Tracking Service - Post & Upload Behavior

Records two kinds of user actions and derives behavioral-ratio insights:
1. post_created  - a user creates content
2. file_uploaded - a user uploads a file

Events are kept in process memory (there is no persistence) and forwarded
to the injected telemetry sink.

Property merge policy:
    Event defaults (content_category / file_size / upload_method) come first,
    then the caller's properties, then the reserved fields ``timestamp``,
    ``session_id``, ``user_id`` and the event's own ``post_type`` or
    ``file_type``. Reserved fields are never overwritten by the caller.

Behavior insights (analyze_user_behavior):
    | insight            | condition                        | conf |
    |--------------------|----------------------------------|------|
    | content_balance    | posts/uploads > 3 or < 0.5       | 0.85 |
    | content_preference | at least one post                | 0.90 |
    | upload_preference  | at least one upload              | 0.88 |
    | timing             | at least one event (UTC hour)    | 0.75 |
"""

import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from coo_analytics.core.telemetry import TelemetrySink, merge_properties
from coo_analytics.models.enums import InsightType, TrackedEventType
from coo_analytics.models.schemas import (
    EventBehaviorAnalysis,
    EventMetrics,
    Insight,
    TrackedEvent,
)


logger = logging.getLogger(__name__)

NO_EVENTS_MESSAGE: str = "No post or upload events tracked yet"

POST_HEAVY_RATIO: float = 3.0
UPLOAD_HEAVY_RATIO: float = 0.5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _type_breakdown(events: List[TrackedEvent], field: str) -> List[Dict[str, Any]]:
    """Count events by a property, most frequent first; ties keep first-seen order."""
    counts = Counter(str(event.properties.get(field)) for event in events)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        {
            "type": value,
            "count": count,
            "percentage": f"{count / len(events) * 100:.1f}",
        }
        for value, count in ranked
    ]


class EventTracker:
    """
    In-memory post/upload event store with behavior analysis.

    Args:
        telemetry: Optional sink; every tracked event is forwarded to it.
        clock: Returns the current time. Injected by tests to control the
            peak-hour analysis.
    """

    def __init__(
        self,
        telemetry: Optional[TelemetrySink] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.telemetry = telemetry
        self._clock = clock
        self._lock = threading.Lock()
        self._events: List[TrackedEvent] = []
        self._users: Dict[str, Dict[str, Any]] = {}

    # =========================================================================
    # Tracking
    # =========================================================================

    def _session_id(self, user_id: Optional[str], now_ms: int) -> str:
        if user_id and user_id in self._users:
            return f"session_{user_id}_{now_ms}"
        return f"anonymous_{now_ms}_{uuid4().hex[:9]}"

    def track(
        self,
        event_type: TrackedEventType,
        properties: Optional[Mapping[str, Any]] = None,
        user_id: Optional[str] = None,
        reserved: Optional[Mapping[str, Any]] = None,
    ) -> TrackedEvent:
        """Store one event, update the user profile and forward to telemetry."""
        now = self._clock()
        now_ms = int(now.timestamp() * 1000)

        with self._lock:
            fields = dict(reserved or {})
            fields.update({
                "timestamp": now.isoformat(),
                "session_id": self._session_id(user_id, now_ms),
                "user_id": user_id,
            })
            event = TrackedEvent(
                event=event_type,
                properties=merge_properties(properties, fields),
                user_id=user_id,
                timestamp=now_ms,
            )
            self._events.append(event)
            if user_id:
                self._update_profile(user_id, event_type, now_ms)

        logger.info(f"Tracked {event_type.value} for user {user_id or 'anonymous'}")
        if self.telemetry is not None:
            self.telemetry.emit(event_type.value, event.properties, distinct_id=user_id)
        return event

    def track_post(
        self,
        user_id: str,
        post_type: str = "text",
        properties: Optional[Mapping[str, Any]] = None,
    ) -> TrackedEvent:
        """Track a post_created event."""
        caller = dict(properties or {})
        merged = {"content_category": caller.get("category", "general")}
        merged.update(caller)
        return self.track(
            TrackedEventType.POST_CREATED,
            merged,
            user_id=user_id,
            reserved={"post_type": post_type},
        )

    def track_upload(
        self,
        user_id: str,
        file_type: str = "unknown",
        properties: Optional[Mapping[str, Any]] = None,
    ) -> TrackedEvent:
        """Track a file_uploaded event."""
        caller = dict(properties or {})
        merged = {
            "file_size": caller.get("size", 0),
            "upload_method": caller.get("method", "direct"),
        }
        merged.update(caller)
        return self.track(
            TrackedEventType.FILE_UPLOADED,
            merged,
            user_id=user_id,
            reserved={"file_type": file_type},
        )

    def _update_profile(self, user_id: str, event_type: TrackedEventType, now_ms: int) -> None:
        # Caller holds self._lock
        profile = self._users.setdefault(
            user_id,
            {"firstSeen": now_ms, "lastSeen": now_ms, "posts": 0, "uploads": 0},
        )
        profile["lastSeen"] = now_ms
        if event_type is TrackedEventType.POST_CREATED:
            profile["posts"] += 1
        elif event_type is TrackedEventType.FILE_UPLOADED:
            profile["uploads"] += 1

    def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            profile = self._users.get(user_id)
            return dict(profile) if profile is not None else None

    def events(self) -> List[TrackedEvent]:
        with self._lock:
            return list(self._events)

    # =========================================================================
    # Analysis
    # =========================================================================

    def analyze_user_behavior(self, user_id: Optional[str] = None) -> EventBehaviorAnalysis:
        """
        Analyze post and upload behavior, optionally for one user.

        Returns:
            EventBehaviorAnalysis. With no matching events the insight list is
            empty and the summary carries NO_EVENTS_MESSAGE.
        """
        events = self.events()
        if user_id is not None:
            events = [event for event in events if event.user_id == user_id]

        if not events:
            return EventBehaviorAnalysis(
                insights=[],
                summary={"message": NO_EVENTS_MESSAGE},
                metrics={"totalEvents": 0, "uniqueUsers": 0, "posts": 0, "uploads": 0},
            )

        posts = [e for e in events if e.event is TrackedEventType.POST_CREATED]
        uploads = [e for e in events if e.event is TrackedEventType.FILE_UPLOADED]
        unique_users = len({e.user_id for e in events if e.user_id})

        analysis: Dict[str, Any] = {
            "totalEvents": len(events),
            "uniqueUsers": unique_users,
            "posts": {
                "total": len(posts),
                "types": _type_breakdown(posts, "post_type") if posts else [],
                "categories": self._category_breakdown(posts),
            },
            "uploads": {
                "total": len(uploads),
                "fileTypes": _type_breakdown(uploads, "file_type") if uploads else [],
                "averageSize": self._average_file_size(uploads),
            },
            "userActivity": self._user_activity(events),
            "timePatterns": self._time_patterns(events),
        }

        ratio = f"{len(posts) / len(uploads):.2f}" if uploads else "N/A"
        return EventBehaviorAnalysis(
            insights=self._generate_insights(analysis),
            summary=self._generate_summary(analysis),
            metrics={
                "totalEvents": len(events),
                "uniqueUsers": unique_users,
                "posts": len(posts),
                "uploads": len(uploads),
                "postToUploadRatio": ratio,
            },
            rawAnalysis=analysis,
        )

    @staticmethod
    def _category_breakdown(posts: List[TrackedEvent]) -> List[Dict[str, Any]]:
        counts = Counter(str(post.properties.get("content_category")) for post in posts)
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [{"category": category, "count": count} for category, count in ranked]

    @staticmethod
    def _average_file_size(uploads: List[TrackedEvent]) -> int:
        if not uploads:
            return 0
        sizes = []
        for upload in uploads:
            size = upload.properties.get("file_size") or 0
            sizes.append(size if isinstance(size, (int, float)) and not isinstance(size, bool) else 0)
        return round(sum(sizes) / len(uploads))

    @staticmethod
    def _user_activity(events: List[TrackedEvent]) -> Dict[str, Any]:
        activity: Dict[str, Dict[str, int]] = {}
        for event in events:
            if not event.user_id:
                continue
            counters = activity.setdefault(event.user_id, {"posts": 0, "uploads": 0, "total": 0})
            if event.event is TrackedEventType.POST_CREATED:
                counters["posts"] += 1
            elif event.event is TrackedEventType.FILE_UPLOADED:
                counters["uploads"] += 1
            counters["total"] += 1

        if not activity:
            return {"averagePostsPerUser": 0, "averageUploadsPerUser": 0, "mostActiveUsers": []}

        users = len(activity)
        ranked = sorted(activity.items(), key=lambda item: item[1]["total"], reverse=True)
        return {
            "averagePostsPerUser": f"{sum(a['posts'] for a in activity.values()) / users:.1f}",
            "averageUploadsPerUser": f"{sum(a['uploads'] for a in activity.values()) / users:.1f}",
            "mostActiveUsers": [{"userId": uid, **counters} for uid, counters in ranked[:5]],
        }

    @staticmethod
    def _time_patterns(events: List[TrackedEvent]) -> Dict[str, Any]:
        hourly = [0] * 24
        for event in events:
            hour = datetime.fromtimestamp(event.timestamp / 1000, tz=timezone.utc).hour
            hourly[hour] += 1
        peak = hourly.index(max(hourly)) if events else -1
        return {"peakHour": peak, "hourlyDistribution": hourly}

    @staticmethod
    def _generate_insights(analysis: Dict[str, Any]) -> List[Insight]:
        insights: List[Insight] = []
        posts = analysis["posts"]
        uploads = analysis["uploads"]

        if posts["total"] > 0 and uploads["total"] > 0:
            ratio = posts["total"] / uploads["total"]
            if ratio > POST_HEAVY_RATIO:
                insights.append(Insight(
                    type=InsightType.CONTENT_BALANCE,
                    discovery=f"Users create {ratio:.1f}x more posts than uploads",
                    recommendation="Consider promoting file upload features to increase engagement",
                    confidence=0.85,
                ))
            elif ratio < UPLOAD_HEAVY_RATIO:
                insights.append(Insight(
                    type=InsightType.CONTENT_BALANCE,
                    discovery=f"Users upload {1 / ratio:.1f}x more files than creating posts",
                    recommendation="Encourage more post creation to balance content types",
                    confidence=0.85,
                ))

        if posts["types"]:
            top = posts["types"][0]
            insights.append(Insight(
                type=InsightType.CONTENT_PREFERENCE,
                discovery=f"{top['type']} posts are most popular ({top['percentage']}%)",
                recommendation=f"Optimize {top['type']} post creation experience",
                confidence=0.90,
            ))

        if uploads["fileTypes"]:
            top = uploads["fileTypes"][0]
            insights.append(Insight(
                type=InsightType.UPLOAD_PREFERENCE,
                discovery=f"{top['type']} files are most commonly uploaded ({top['percentage']}%)",
                recommendation=f"Optimize {top['type']} upload experience and storage",
                confidence=0.88,
            ))

        peak = analysis["timePatterns"]["peakHour"]
        if peak != -1:
            insights.append(Insight(
                type=InsightType.TIMING,
                discovery=f"Peak activity occurs at {peak}:00",
                recommendation=f"Schedule maintenance outside peak hours, optimize performance at {peak}:00",
                confidence=0.75,
            ))

        return insights

    @staticmethod
    def _generate_summary(analysis: Dict[str, Any]) -> Dict[str, Any]:
        posts = analysis["posts"]
        uploads = analysis["uploads"]
        return {
            "totalActivity": f"{analysis['totalEvents']} total events from {analysis['uniqueUsers']} users",
            "contentBreakdown": f"{posts['total']} posts, {uploads['total']} uploads",
            "topPostType": posts["types"][0]["type"] if posts["types"] else "N/A",
            "topFileType": uploads["fileTypes"][0]["type"] if uploads["fileTypes"] else "N/A",
            "averageFileSize": f"{round(uploads['averageSize'] / 1024)}KB",
        }

    # =========================================================================
    # Metrics
    # =========================================================================

    def get_metrics(self) -> EventMetrics:
        """Counters over every tracked event."""
        events = self.events()
        return EventMetrics(
            totalEvents=len(events),
            posts=sum(1 for e in events if e.event is TrackedEventType.POST_CREATED),
            uploads=sum(1 for e in events if e.event is TrackedEventType.FILE_UPLOADED),
            uniqueUsers=len({e.user_id for e in events if e.user_id}),
            lastActivity=events[-1].properties.get("timestamp") if events else None,
        )
