"""
Analytics telemetry collaborator.

Every classification, synthesis and outcome report is followed by a
fire-and-forget event. Sinks are injected into the components that emit,
and have an explicit lifecycle:

    telemetry = build_telemetry(settings, client="api")
    telemetry.open()
    telemetry.emit("query_classified", {"category": "user_metrics"})
    telemetry.close()

Emission never raises and never blocks the caller: the Mixpanel sink hands
events to a single background worker, and every failure is logged at
WARNING and dropped. Events are not retried.

Property merge policy:
    Caller properties are merged first, then the reserved properties
    (``timestamp``, ``session_id``, ``client``) are written on top. A caller
    can never overwrite a reserved property.

Dependencies:
    - mixpanel (Mixpanel Python client)
    - coo_analytics.core.config: Settings for the project token
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from mixpanel import Mixpanel, MixpanelException

from coo_analytics.core.config import Settings


logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC, used for every emitted event."""
    return datetime.now(timezone.utc).isoformat()


def merge_properties(
    caller: Optional[Mapping[str, Any]],
    reserved: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Merge a caller-supplied property bag with reserved fields.

    Reserved fields always win. Caller keys that collide with a reserved key
    are dropped and logged at DEBUG.

    Args:
        caller: Arbitrary string-keyed properties (may be None).
        reserved: Fields the sink or tracker owns.

    Returns:
        New dict; neither input is mutated.
    """
    merged: Dict[str, Any] = {}
    for key, value in (caller or {}).items():
        if key in reserved:
            logger.debug(f"Dropping caller property '{key}': reserved field")
            continue
        merged[str(key)] = value
    merged.update(reserved)
    return merged


class TelemetrySink(ABC):
    """
    Base telemetry sink. Subclasses override ``_send``.

    ``emit`` is safe to call before ``open`` or after ``close``: the event is
    dropped and nothing is raised.
    """

    def __init__(self, client: str = 'api') -> None:
        self.client = client
        self.session_id: Optional[str] = None
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> None:
        if self._opened:
            return
        self.session_id = f"session_{uuid4().hex[:12]}"
        self._opened = True
        logger.debug(f"Telemetry sink opened ({type(self).__name__}, session={self.session_id})")

    def close(self) -> None:
        self._opened = False

    def __enter__(self) -> 'TelemetrySink':
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def build_event(
        self,
        event_name: str,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        reserved = {
            'timestamp': utc_timestamp(),
            'session_id': self.session_id,
            'client': self.client,
        }
        return merge_properties(properties, reserved)

    def emit(
        self,
        event_name: str,
        properties: Optional[Mapping[str, Any]] = None,
        distinct_id: Optional[str] = None,
    ) -> None:
        """Emit an event. Never raises."""
        if not self._opened:
            logger.debug(f"Telemetry sink closed; dropping event '{event_name}'")
            return
        try:
            payload = self.build_event(event_name, properties)
            self._send(event_name, payload, distinct_id or self.session_id or 'anonymous')
        except Exception as e:
            logger.warning(f"Telemetry emission failed for '{event_name}': {e}")

    @abstractmethod
    def _send(self, event_name: str, properties: Dict[str, Any], distinct_id: str) -> None:
        """Deliver one fully merged event."""


class NullTelemetry(TelemetrySink):
    """Sink that accepts and discards every event."""

    def _send(self, event_name: str, properties: Dict[str, Any], distinct_id: str) -> None:
        return None


class RecordingTelemetry(TelemetrySink):
    """
    In-memory sink that keeps every emitted event.

    Used by the CLI ``--dry-run`` mode and by the test suite.
    """

    def __init__(self, client: str = 'api') -> None:
        super().__init__(client=client)
        self._lock = threading.Lock()
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def _send(self, event_name: str, properties: Dict[str, Any], distinct_id: str) -> None:
        with self._lock:
            self.events.append((event_name, properties))

    def names(self) -> List[str]:
        with self._lock:
            return [name for name, _ in self.events]

    def find(self, event_name: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [props for name, props in self.events if name == event_name]


class MixpanelTelemetry(TelemetrySink):
    """
    Sink that forwards events to Mixpanel on a background worker.

    The worker is created by ``open`` and drained by ``close``; events
    emitted while closed are dropped.
    """

    def __init__(
        self,
        project_token: str,
        client: str = 'api',
    ) -> None:
        super().__init__(client=client)
        self._mixpanel = Mixpanel(project_token)
        self._executor: Optional[ThreadPoolExecutor] = None

    def open(self) -> None:
        if self._opened:
            return
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='mixpanel')
        super().open()

    def close(self) -> None:
        super().close()
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
            logger.debug("Mixpanel telemetry worker drained")

    def _send(self, event_name: str, properties: Dict[str, Any], distinct_id: str) -> None:
        executor = self._executor
        if executor is None:
            return
        executor.submit(self._deliver, event_name, properties, distinct_id)

    def _deliver(self, event_name: str, properties: Dict[str, Any], distinct_id: str) -> None:
        try:
            self._mixpanel.track(distinct_id, event_name, properties)
        except MixpanelException as e:
            logger.warning(f"Mixpanel rejected event '{event_name}': {e}")
        except Exception as e:
            logger.warning(f"Mixpanel tracking error for '{event_name}': {e}")


def build_telemetry(settings: Settings, client: Optional[str] = None) -> TelemetrySink:
    """
    Choose a sink for the given settings.

    Returns a MixpanelTelemetry when telemetry is enabled and a real project
    token is configured, otherwise a NullTelemetry. The sink is returned
    unopened.
    """
    client_name = client or settings.telemetry_client
    if settings.telemetry_enabled and settings.mixpanel_configured:
        logger.info(f"Mixpanel telemetry enabled (client={client_name})")
        return MixpanelTelemetry(
            project_token=settings.mixpanel_project_token,
            client=client_name,
        )
    logger.info("Mixpanel token not configured; telemetry events are discarded")
    return NullTelemetry(client=client_name)
