"""
Telemetry Test Module

Tests for coo_analytics/core/telemetry.py.

Test Coverage:
- Reserved-field merge policy
- Sink lifecycle (events dropped before open / after close)
- Emission never raises
- Mixpanel sink delivery on its worker and failure handling
- Sink selection from settings
"""

from unittest.mock import MagicMock, patch

import pytest
from mixpanel import MixpanelException

from coo_analytics.core.config import PLACEHOLDER_MIXPANEL_TOKEN
from coo_analytics.core.telemetry import (
    MixpanelTelemetry,
    NullTelemetry,
    RecordingTelemetry,
    TelemetrySink,
    build_telemetry,
    merge_properties,
)


class TestMergeProperties:

    def test_reserved_fields_win(self) -> None:
        merged = merge_properties(
            {"client": "spoofed", "category": "revenue_metrics"},
            {"client": "api", "timestamp": "now"},
        )
        assert merged == {"category": "revenue_metrics", "client": "api", "timestamp": "now"}

    def test_inputs_not_mutated(self) -> None:
        caller = {"a": 1}
        reserved = {"b": 2}
        merge_properties(caller, reserved)
        assert caller == {"a": 1}
        assert reserved == {"b": 2}

    def test_none_caller(self) -> None:
        assert merge_properties(None, {"client": "cli"}) == {"client": "cli"}


class TestSinkLifecycle:

    def test_base_sink_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            TelemetrySink()

    def test_closed_sink_drops_events(self) -> None:
        sink = RecordingTelemetry()
        sink.emit("before_open")
        sink.open()
        sink.emit("while_open")
        sink.close()
        sink.emit("after_close")
        assert sink.names() == ["while_open"]

    def test_reserved_fields_attached(self) -> None:
        with RecordingTelemetry(client="cli") as sink:
            sink.emit("query_classified", {"client": "spoofed", "session_id": "x"})
            [props] = sink.find("query_classified")
        assert props["client"] == "cli"
        assert props["session_id"] == sink.session_id
        assert props["session_id"].startswith("session_")
        assert "timestamp" in props

    def test_emit_never_raises(self) -> None:
        sink = RecordingTelemetry()
        sink.open()
        with patch.object(sink, "_send", side_effect=RuntimeError("boom")):
            sink.emit("query_classified", {"category": "user_metrics"})

    def test_open_is_idempotent(self) -> None:
        sink = NullTelemetry()
        sink.open()
        session = sink.session_id
        sink.open()
        assert sink.session_id == session


class TestMixpanelTelemetry:
    """Delivery goes through the Mixpanel client on a background worker."""

    @patch("coo_analytics.core.telemetry.Mixpanel")
    def test_delivers_on_close(self, mixpanel_cls: MagicMock) -> None:
        sink = MixpanelTelemetry(project_token="token", client="api")
        sink.open()
        sink.emit("query_completed", {"result_type": "user_metrics"}, distinct_id="user_1")
        sink.close()

        mixpanel_cls.assert_called_once_with("token")
        client = mixpanel_cls.return_value
        client.track.assert_called_once()
        distinct_id, event_name, props = client.track.call_args.args
        assert (distinct_id, event_name) == ("user_1", "query_completed")
        assert props["result_type"] == "user_metrics"
        assert props["client"] == "api"

    @patch("coo_analytics.core.telemetry.Mixpanel")
    def test_distinct_id_defaults_to_session(self, mixpanel_cls: MagicMock) -> None:
        sink = MixpanelTelemetry(project_token="token")
        sink.open()
        session = sink.session_id
        sink.emit("api_server_started")
        sink.close()
        assert mixpanel_cls.return_value.track.call_args.args[0] == session

    @patch("coo_analytics.core.telemetry.Mixpanel")
    def test_delivery_failure_is_swallowed(self, mixpanel_cls: MagicMock) -> None:
        mixpanel_cls.return_value.track.side_effect = MixpanelException("rejected")
        sink = MixpanelTelemetry(project_token="token")
        sink.open()
        sink.emit("query_completed")
        sink.emit("query_completed")
        sink.close()
        assert mixpanel_cls.return_value.track.call_count == 2

    @patch("coo_analytics.core.telemetry.Mixpanel")
    def test_closed_sink_sends_nothing(self, mixpanel_cls: MagicMock) -> None:
        sink = MixpanelTelemetry(project_token="token")
        sink.emit("query_completed")
        mixpanel_cls.return_value.track.assert_not_called()


class TestBuildTelemetry:

    def test_null_without_token(self, test_settings) -> None:
        assert isinstance(build_telemetry(test_settings), NullTelemetry)

    def test_null_with_placeholder_token(self, test_settings) -> None:
        settings = test_settings.model_copy(update={
            "telemetry_enabled": True,
            "mixpanel_project_token": PLACEHOLDER_MIXPANEL_TOKEN,
        })
        assert isinstance(build_telemetry(settings), NullTelemetry)

    def test_null_when_disabled(self, test_settings) -> None:
        settings = test_settings.model_copy(update={"mixpanel_project_token": "real-token"})
        assert isinstance(build_telemetry(settings), NullTelemetry)

    @patch("coo_analytics.core.telemetry.Mixpanel")
    def test_mixpanel_when_configured(self, mixpanel_cls: MagicMock, test_settings) -> None:
        settings = test_settings.model_copy(update={
            "telemetry_enabled": True,
            "mixpanel_project_token": "real-token",
        })
        sink = build_telemetry(settings, client="external_agent")
        assert isinstance(sink, MixpanelTelemetry)
        assert sink.client == "external_agent"
        mixpanel_cls.assert_called_once_with("real-token")

    def test_client_defaults_to_settings(self, test_settings) -> None:
        assert build_telemetry(test_settings).client == "api"
