"""
COO Analytics Agent Package.

Answers natural-language business questions against a catalog of product
metrics, synthesizes threshold-based insights, and learns per-insight
confidence from reported outcomes.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, telemetry, and dependencies
    - models: Pydantic schemas and enums
    - services: Classification, synthesis, tracking, and orchestration

Entry points:
    - coo_analytics.main: REST service (uvicorn)
    - coo_analytics.mcp_server: MCP agent-protocol server (stdio)
    - coo_analytics.cli: Interactive command line
"""

__version__ = "1.0.0"
