"""
Outcome Tracker Service

Learns a confidence score per insight identifier from reported outcomes.

Each identifier owns three monotonically increasing counters:
- suggested: every outcome report
- implemented: reports where the recommendation was implemented
- successful: reports where it was implemented AND improved the metric

Learned confidence:
    implemented == 0  -> default confidence (0.5)
    otherwise         -> clamp(successful / implemented, floor, ceiling)
                         with floor 0.1 and ceiling 0.95

Concurrency:
    Patterns live in a lock-sharded map. A short global guard makes
    get-or-insert atomic; after that, the read-modify-write of the counter
    triple and the confidence read for one identifier run under that
    identifier's own lock. Reports for different identifiers never contend
    beyond the guard.

Unknown identifiers are created lazily on first report; there is no
registration step and no validation against stored insights.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

from coo_analytics.core.config import Settings, get_settings
from coo_analytics.core.telemetry import TelemetrySink
from coo_analytics.models.schemas import PatternCounters


logger = logging.getLogger(__name__)


@dataclass
class _Pattern:
    suggested: int = 0
    implemented: int = 0
    successful: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def snapshot(self) -> PatternCounters:
        return PatternCounters(
            suggested=self.suggested,
            implemented=self.implemented,
            successful=self.successful,
        )


class OutcomeTracker:
    """
    Per-identifier outcome counters and learned confidence.

    Args:
        default_confidence: Returned while nothing has been implemented.
        confidence_floor: Lower clamp for learned confidence.
        confidence_ceiling: Upper clamp for learned confidence.
        telemetry: Optional sink; receives ``outcome_tracked`` per report.
    """

    def __init__(
        self,
        default_confidence: float = 0.5,
        confidence_floor: float = 0.1,
        confidence_ceiling: float = 0.95,
        telemetry: Optional[TelemetrySink] = None,
    ) -> None:
        if confidence_floor > confidence_ceiling:
            raise ValueError(
                f"confidence_floor ({confidence_floor}) exceeds confidence_ceiling ({confidence_ceiling})"
            )
        self.default_confidence = default_confidence
        self.confidence_floor = confidence_floor
        self.confidence_ceiling = confidence_ceiling
        self.telemetry = telemetry
        self._patterns: Dict[str, _Pattern] = {}
        self._guard = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        telemetry: Optional[TelemetrySink] = None,
    ) -> "OutcomeTracker":
        settings = settings or get_settings()
        return cls(
            default_confidence=settings.default_confidence,
            confidence_floor=settings.confidence_floor,
            confidence_ceiling=settings.confidence_ceiling,
            telemetry=telemetry,
        )

    def _get_or_create(self, insight_id: str) -> _Pattern:
        with self._guard:
            pattern = self._patterns.get(insight_id)
            if pattern is None:
                pattern = _Pattern()
                self._patterns[insight_id] = pattern
            return pattern

    def _confidence(self, pattern: _Pattern) -> float:
        # Caller holds pattern.lock
        if pattern.implemented == 0:
            return self.default_confidence
        ratio = pattern.successful / pattern.implemented
        return max(self.confidence_floor, min(self.confidence_ceiling, ratio))

    def report_outcome(
        self,
        insight_id: str,
        implemented: bool,
        improved: bool,
    ) -> float:
        """
        Record one outcome report and return the updated confidence.

        ``improved`` only counts when ``implemented`` is also true.
        """
        pattern = self._get_or_create(insight_id)
        with pattern.lock:
            pattern.suggested += 1
            if implemented:
                pattern.implemented += 1
                if improved:
                    pattern.successful += 1
            confidence = self._confidence(pattern)
            counters = pattern.snapshot()

        logger.info(
            f"Outcome for {insight_id}: implemented={implemented} improved={improved} "
            f"-> confidence {confidence:.2f} ({counters.successful}/{counters.implemented})"
        )
        if self.telemetry is not None:
            self.telemetry.emit(
                "outcome_tracked",
                {
                    "insight_id": insight_id,
                    "implemented": implemented,
                    "improved": improved,
                    "new_confidence": confidence,
                },
            )
        return confidence

    def update_confidence(self, insight_id: str) -> float:
        """Learned confidence for an identifier, creating it if unknown."""
        pattern = self._get_or_create(insight_id)
        with pattern.lock:
            return self._confidence(pattern)

    def get_pattern(self, insight_id: str) -> Optional[PatternCounters]:
        """Counter snapshot, or None for an identifier never reported."""
        with self._guard:
            pattern = self._patterns.get(insight_id)
        if pattern is None:
            return None
        with pattern.lock:
            return pattern.snapshot()

    def patterns(self) -> Dict[str, PatternCounters]:
        """Snapshot of every known identifier's counters."""
        with self._guard:
            items = list(self._patterns.items())
        snapshots: Dict[str, PatternCounters] = {}
        for insight_id, pattern in items:
            with pattern.lock:
                snapshots[insight_id] = pattern.snapshot()
        return snapshots
