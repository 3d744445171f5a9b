"""
Pytest Configuration and Shared Fixtures for COO Analytics Tests.

This module provides fixtures and configuration for all tests, supporting:
- Async test execution with pytest-asyncio (MCP tool listing)
- An opened in-memory RecordingTelemetry sink for asserting emitted events
- Engine components wired against the mock business catalog
- A FastAPI TestClient with the agent and event tracker overridden per test
- Small hand-built records for rule edge cases

Dependencies:
- pytest
- pytest-asyncio
- httpx (FastAPI TestClient)
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from coo_analytics.core.config import Settings
from coo_analytics.core.telemetry import RecordingTelemetry
from coo_analytics.services.agent import ProductAnalyticsAgent, build_agent
from coo_analytics.services.analysis_orchestrator import AnalysisOrchestrator
from coo_analytics.services.data_catalog import DataCatalog
from coo_analytics.services.event_tracking import EventTracker
from coo_analytics.services.insight_synthesizer import InsightSynthesizer
from coo_analytics.services.outcome_tracker import OutcomeTracker
from coo_analytics.services.query_classifier import QueryClassifier


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - slow: Marks tests as slow (deselect with -m "not slow")
    - integration: Marks tests that exercise a full transport end to end
    - concurrency: Marks tests that hammer shared state from many threads

    Usage:
        pytest -m "not slow"
        pytest -m concurrency
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'integration: marks tests exercising a full transport end to end'
    )
    config.addinivalue_line(
        'markers',
        'concurrency: marks tests that exercise shared state from many threads'
    )


# ============================================================
# SETTINGS & TELEMETRY FIXTURES
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """
    Settings isolated from the environment and any .env file.

    Telemetry is disabled so nothing can reach Mixpanel; thresholds and
    confidence bounds keep their defaults.
    """
    return Settings(
        _env_file=None,
        mixpanel_project_token=None,
        telemetry_enabled=False,
    )


@pytest.fixture
def recording_telemetry() -> Generator[RecordingTelemetry, None, None]:
    """
    Opened in-memory telemetry sink, closed after the test.

    Usage:
        def test_emits(classifier, recording_telemetry):
            classifier.classify("revenue")
            assert recording_telemetry.names() == ["query_classified"]
    """
    sink = RecordingTelemetry(client="test")
    sink.open()
    yield sink
    sink.close()


# ============================================================
# ENGINE FIXTURES
# ============================================================

@pytest.fixture
def catalog() -> DataCatalog:
    """Catalog over the mock business dataset."""
    return DataCatalog()


@pytest.fixture
def empty_catalog() -> DataCatalog:
    """Catalog with no records at all."""
    return DataCatalog(records={})


@pytest.fixture
def classifier(catalog: DataCatalog, recording_telemetry: RecordingTelemetry) -> QueryClassifier:
    return QueryClassifier(catalog, telemetry=recording_telemetry)


@pytest.fixture
def synthesizer() -> InsightSynthesizer:
    """Synthesizer with the default thresholds (query 0.3, catalog 0.35)."""
    return InsightSynthesizer(query_dropoff_threshold=0.3, catalog_dropoff_threshold=0.35)


@pytest.fixture
def tracker(recording_telemetry: RecordingTelemetry) -> OutcomeTracker:
    return OutcomeTracker(telemetry=recording_telemetry)


@pytest.fixture
def orchestrator(classifier: QueryClassifier, synthesizer: InsightSynthesizer) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(classifier, synthesizer)


@pytest.fixture
def agent(test_settings: Settings, recording_telemetry: RecordingTelemetry) -> ProductAnalyticsAgent:
    """Fully wired agent over the mock catalog with a fresh insight store."""
    return build_agent(test_settings, telemetry=recording_telemetry)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock pinned to 2024-05-01 14:30 UTC."""
    moment = datetime(2024, 5, 1, 14, 30, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def event_tracker(
    recording_telemetry: RecordingTelemetry,
    fixed_clock: Callable[[], datetime],
) -> EventTracker:
    return EventTracker(telemetry=recording_telemetry, clock=fixed_clock)


# ============================================================
# REST CLIENT FIXTURE
# ============================================================

@pytest.fixture
def client(
    agent: ProductAnalyticsAgent,
    event_tracker: EventTracker,
) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient with the agent and event tracker replaced by the
    per-test fixtures. Overrides are removed after the test.
    """
    from coo_analytics.core.dependencies import get_agent, get_event_tracker
    from coo_analytics.main import app

    app.dependency_overrides[get_agent] = lambda: agent
    app.dependency_overrides[get_event_tracker] = lambda: event_tracker
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============================================================
# SAMPLE RECORDS
# ============================================================

@pytest.fixture
def low_dropoff_onboarding() -> Dict[str, Any]:
    """Onboarding record between the query (0.3) and catalog (0.35) thresholds."""
    return {"biggest": "profile_setup", "dropOffRate": 0.32}


@pytest.fixture
def sample_questions() -> List[str]:
    """One question per keyword rule, in rule order."""
    return [
        "How many users do we have?",
        "What is our monthly revenue?",
        "How is user engagement?",
        "How is our growth trending?",
        "Which features have the best adoption?",
        "What drives retention?",
        "Where do users drop off?",
        "How many support tickets are open?",
        "How many trial users convert?",
        "Is the app slow?",
        "How do we compare to competitors?",
        "What is our NPS?",
    ]
