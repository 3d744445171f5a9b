"""
COO Analytics MCP Server

FastMCP server exposing the analytics agent to other AI agents over the
Model Context Protocol (stdio transport).

Tools:
- coo_analyze_behavior: Run full user behavior analysis
- coo_query_data: Ask natural language questions about business metrics
- coo_track_outcome: Track implementation outcomes for pattern learning
- coo_get_insights: Get stored insights with current confidence scores
- coo_get_metrics: Get product health metrics and KPIs

Every tool returns pretty-printed JSON text with the same shape as the
matching REST endpoint. A failure inside a tool is logged and re-raised;
FastMCP reports it to the client as a tool error (isError result) with the
message "Error executing tool <name>: <reason>".

Logging goes to stderr; stdout carries the protocol.
"""

import json
import logging
import sys
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from mcp.server.fastmcp import FastMCP

from coo_analytics.core.config import get_settings
from coo_analytics.core.telemetry import build_telemetry, utc_timestamp
from coo_analytics.services.agent import ProductAnalyticsAgent, build_agent


logger = logging.getLogger(__name__)

SERVER_NAME = "coo-analytics-agent"
TELEMETRY_CLIENT = "external_agent"

mcp = FastMCP(SERVER_NAME)


# =============================================================================
# Agent Lifecycle
# =============================================================================


@lru_cache()
def get_server_agent() -> ProductAnalyticsAgent:
    """Process-wide agent for the MCP server, with its telemetry sink opened."""
    settings = get_settings()
    telemetry = build_telemetry(settings, client=TELEMETRY_CLIENT)
    telemetry.open()
    return build_agent(settings, telemetry=telemetry)


# =============================================================================
# Tool Handlers
# Plain functions over an agent; the decorated tools below bind them to the
# server agent.
# =============================================================================


def handle_analyze_behavior(agent: ProductAnalyticsAgent, include_tracking: bool = True) -> Dict[str, Any]:
    analysis = agent.analyze_user_behavior(include_tracking=include_tracking)
    return {
        "success": True,
        "data": analysis.model_dump(mode="json"),
        "summary": (
            f"Generated {len(analysis.insights)} insights with "
            f"{analysis.summary.averageConfidence} average confidence"
        ),
        "timestamp": utc_timestamp(),
    }


def handle_query_data(
    agent: ProductAnalyticsAgent,
    question: str,
    generate_insights: bool = True,
) -> Dict[str, Any]:
    result, insights = agent.query(question, generate_insights)
    return {
        "success": True,
        "question": question,
        "data": result.to_payload(),
        "insights": [insight.model_dump(mode="json") for insight in insights],
        "metadata": {
            "result_type": result.category.value,
            "insights_count": len(insights),
            "timestamp": utc_timestamp(),
        },
    }


def handle_track_outcome(
    agent: ProductAnalyticsAgent,
    insight_id: str,
    implemented: bool,
    improved: bool,
    actual_impact: str = "not_specified",
) -> Dict[str, Any]:
    confidence = agent.track_outcome(insight_id, implemented, improved, actual_impact)
    return {
        "success": True,
        "insight_id": insight_id,
        "new_confidence": confidence,
        "message": f"Outcome tracked. New confidence: {confidence * 100:.1f}%",
        "timestamp": utc_timestamp(),
    }


def handle_get_insights(
    agent: ProductAnalyticsAgent,
    min_confidence: float = 0.0,
    insight_type: Optional[str] = None,
) -> Dict[str, Any]:
    insights = agent.get_insights(min_confidence=min_confidence, insight_type=insight_type)
    return {
        "success": True,
        "insights": [insight.model_dump(mode="json") for insight in insights],
        "total_count": len(insights),
        "filters": {"min_confidence": min_confidence, "insight_type": insight_type},
        "timestamp": utc_timestamp(),
    }


def handle_get_metrics(agent: ProductAnalyticsAgent, category: str = "all") -> Dict[str, Any]:
    data, highlights = agent.get_metrics(category)
    return {
        "success": True,
        "category": category,
        "data": data,
        "highlights": [highlight.model_dump(mode="json") for highlight in highlights],
        "timestamp": utc_timestamp(),
    }


def invoke_tool(
    name: str,
    handler: Callable[..., Dict[str, Any]],
    agent: ProductAnalyticsAgent,
    **arguments: Any,
) -> str:
    """
    Run a handler and serialize its payload.

    Failures are logged and propagate unchanged; FastMCP prefixes them with
    the tool name when it turns them into an error result.
    """
    try:
        payload = handler(agent, **arguments)
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}", exc_info=True)
        raise
    return json.dumps(payload, indent=2)


# =============================================================================
# Tools
# =============================================================================


@mcp.tool()
def coo_analyze_behavior(include_tracking: bool = True) -> str:
    """
    Run comprehensive user behavior analysis with AI insights.

    Args:
        include_tracking: Whether to track this analysis to Mixpanel
    """
    return invoke_tool(
        "coo_analyze_behavior",
        handle_analyze_behavior,
        get_server_agent(),
        include_tracking=include_tracking,
    )


@mcp.tool()
def coo_query_data(question: str, generate_insights: bool = True) -> str:
    """
    Ask natural language questions about business metrics and get instant data.

    Args:
        question: Natural language question about business metrics
            (e.g. "How many users do we have?", "What is our revenue growth?")
        generate_insights: Whether to generate AI insights from the query result
    """
    return invoke_tool(
        "coo_query_data",
        handle_query_data,
        get_server_agent(),
        question=question,
        generate_insights=generate_insights,
    )


@mcp.tool()
def coo_track_outcome(
    insight_id: str,
    implemented: bool,
    improved: bool,
    actual_impact: str = "not_specified",
) -> str:
    """
    Track implementation outcome for pattern learning and confidence updates.

    Args:
        insight_id: ID of the insight to track outcome for
        implemented: Whether the recommendation was implemented
        improved: Whether the implementation improved the metric
        actual_impact: Description of actual impact observed
    """
    return invoke_tool(
        "coo_track_outcome",
        handle_track_outcome,
        get_server_agent(),
        insight_id=insight_id,
        implemented=implemented,
        improved=improved,
        actual_impact=actual_impact,
    )


@mcp.tool()
def coo_get_insights(min_confidence: float = 0.0, insight_type: Optional[str] = None) -> str:
    """
    Get all stored insights with current confidence scores.

    Args:
        min_confidence: Minimum confidence threshold (0-1)
        insight_type: Filter by insight type (retention, adoption, onboarding, etc.)
    """
    return invoke_tool(
        "coo_get_insights",
        handle_get_insights,
        get_server_agent(),
        min_confidence=min_confidence,
        insight_type=insight_type,
    )


@mcp.tool()
def coo_get_metrics(category: str = "all") -> str:
    """
    Get current product health metrics and KPIs.

    Args:
        category: Specific metric category (user_metrics, revenue_metrics,
            engagement_metrics, etc.) or "all"
    """
    return invoke_tool(
        "coo_get_metrics",
        handle_get_metrics,
        get_server_agent(),
        category=category,
    )


def main() -> None:
    """Run the MCP server over stdio."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logger.info(f"{SERVER_NAME} MCP server running on stdio")
    agent = get_server_agent()
    try:
        mcp.run()
    finally:
        agent.telemetry.close()


if __name__ == "__main__":
    main()
