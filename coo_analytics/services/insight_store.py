"""
Insight Store Service

Process-memory store of the insights produced by queries and analyses.

Insights are stored with an identifier of the form ``<type>_<8 hex chars>``
so that outcome reports can refer to them. The store is the only place an
insight's confidence changes after synthesis: ``update_confidence`` writes
the learned confidence from an outcome report.

All operations take a single lock; insights are returned as copies.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from coo_analytics.models.schemas import Insight


logger = logging.getLogger(__name__)


def new_insight_id(insight: Insight) -> str:
    return f"{insight.type.value}_{uuid4().hex[:8]}"


class InsightStore:
    """Thread-safe in-memory list of identified insights."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._insights: Dict[str, Insight] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._insights)

    def add_all(self, insights: Iterable[Insight]) -> List[Insight]:
        """
        Store insights, assigning an id to each one that lacks it.

        Returns:
            The stored insights, with ids, in input order.
        """
        stored: List[Insight] = []
        with self._lock:
            for insight in insights:
                identified = insight if insight.id else insight.model_copy(
                    update={"id": new_insight_id(insight)}
                )
                self._insights[identified.id] = identified
                stored.append(identified.model_copy())
        if stored:
            logger.debug(f"Stored {len(stored)} insights ({len(self._insights)} total)")
        return stored

    def get(self, insight_id: str) -> Optional[Insight]:
        with self._lock:
            insight = self._insights.get(insight_id)
            return insight.model_copy() if insight is not None else None

    def find(
        self,
        min_confidence: float = 0.0,
        insight_type: Optional[str] = None,
    ) -> List[Insight]:
        """Insights at or above ``min_confidence``, optionally of one type, in insertion order."""
        with self._lock:
            insights = list(self._insights.values())
        return [
            insight.model_copy()
            for insight in insights
            if insight.confidence >= min_confidence
            and (insight_type is None or insight.type.value == insight_type)
        ]

    def update_confidence(self, insight_id: str, confidence: float) -> bool:
        """
        Overwrite a stored insight's confidence.

        Returns:
            False when the identifier is not in the store.
        """
        with self._lock:
            insight = self._insights.get(insight_id)
            if insight is None:
                return False
            self._insights[insight_id] = insight.model_copy(update={"confidence": confidence})
        return True
