'''
COO Analytics Test Suite

Test Modules:
-------------
- test_query_classifier.py: Keyword rules, search fallback, general response
- test_insight_synthesizer.py: Query rules, analysis rules, data highlights
- test_outcome_tracker.py: Learned confidence, clamps, concurrent reports
- test_analysis_orchestrator.py: Full analysis, executive summary, health metrics
- test_agent.py: Agent facade and insight store
- test_event_tracking.py: Post/upload tracking and behavior insights
- test_telemetry.py: Sink lifecycle, reserved fields, Mixpanel delivery
- test_api.py: REST endpoints and error contract
- test_mcp_server.py: MCP tools and error wrapping
- test_cli.py: Interactive session and one-shot entry point

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v
    pytest -m "not concurrency"

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
