#!/usr/bin/env python3
"""
CLI entrypoint for interactive product analytics.

Usage:
    coo-analytics                          # interactive session
    coo-analytics --question "How many users do we have?"
    coo-analytics --analyze
    coo-analytics --dry-run                # record telemetry in memory, print event names on exit

Interactive commands: ``analyze``, ``help``, ``exit``. Anything else is
treated as a question.
"""

import argparse
import logging
import sys
import time
from typing import Any, Callable, List, Optional, Sequence

from coo_analytics.core.config import get_settings
from coo_analytics.core.telemetry import RecordingTelemetry, TelemetrySink, build_telemetry
from coo_analytics.models.schemas import AnalysisResult, Insight, QueryResult
from coo_analytics.services.agent import ProductAnalyticsAgent, build_agent
from coo_analytics.services.query_classifier import GENERAL_RESPONSE_SUGGESTIONS


logger = logging.getLogger(__name__)

TELEMETRY_CLIENT = "cli"

EXAMPLE_QUESTIONS: List[str] = [
    "How many users do we have?",
    "What is our monthly revenue?",
    "Which features are most popular?",
    "What drives user retention?",
    "Where do users drop off in onboarding?",
    "How is our growth trending?",
    "What are our conversion rates?",
    "How is our app performance?",
    "What support issues are we seeing?",
    "What is our NPS score?",
    "How do we compare to competitors?",
    "What is our product health score?",
]

QUESTION_TYPES = (
    ("user_metrics", ("user", "how many")),
    ("revenue", ("revenue", "money", "mrr")),
    ("features", ("feature", "adoption")),
    ("retention", ("retention", "stay")),
    ("growth", ("growth", "trend")),
    ("health", ("nps", "satisfaction", "health")),
    ("competitive", ("competitor", "market")),
    ("performance", ("performance", "speed")),
    ("support", ("support", "ticket")),
    ("conversion", ("conversion", "trial", "paid")),
)


def categorize_question(question: str) -> str:
    """Coarse question type for session telemetry; independent of classification."""
    lowered = question.lower()
    for question_type, keywords in QUESTION_TYPES:
        if any(keyword in lowered for keyword in keywords):
            return question_type
    return "general"


# =============================================================================
# Formatting
# =============================================================================


def _label(key: str) -> str:
    return key.replace("_", " ").title() if "_" in key or key.islower() else key


def _scalar(value: Any) -> str:
    if value is None:
        return "n/a"
    if isinstance(value, float):
        return f"{value:,.3f}".rstrip("0").rstrip(".")
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return str(value)


def format_record(record: Any, indent: int = 3) -> List[str]:
    """Render a record of nested mappings and lists as indented lines."""
    pad = " " * indent
    lines: List[str] = []
    if isinstance(record, dict):
        for key, value in record.items():
            if isinstance(value, (dict, list)) and value:
                lines.append(f"{pad}{_label(str(key))}:")
                lines.extend(format_record(value, indent + 2))
            else:
                lines.append(f"{pad}{_label(str(key))}: {_scalar(value)}")
    elif isinstance(record, list):
        for position, item in enumerate(record, start=1):
            if isinstance(item, dict):
                summary = ", ".join(f"{_label(str(k))}: {_scalar(v)}" for k, v in item.items())
                lines.append(f"{pad}{position}. {summary}")
            else:
                lines.append(f"{pad}{position}. {_scalar(item)}")
    else:
        lines.append(f"{pad}{_scalar(record)}")
    return lines


def format_query_result(result: QueryResult) -> List[str]:
    if result.message is not None:
        lines = [f"💡 {result.message}", "", "Try one of these:"]
        lines.extend(f"   • {s}" for s in (result.suggestions or GENERAL_RESPONSE_SUGGESTIONS))
        return lines
    title = result.category.value.replace("_", " ").upper()
    suffix = " (keyword search match)" if result.search_matched else ""
    return [f"📊 {title}{suffix}"] + format_record(result.data)


def format_insights(insights: Sequence[Insight]) -> List[str]:
    lines: List[str] = []
    for position, insight in enumerate(insights, start=1):
        lines.append(f"{position}. {insight.discovery}")
        lines.append(f"   Confidence: {insight.confidence * 100:.1f}%")
        lines.append(f"   Action: {insight.recommendation}")
        if insight.expectedImpact:
            lines.append(f"   Impact: {insight.expectedImpact}")
        if insight.id:
            lines.append(f"   Id: {insight.id}")
    return lines


def format_analysis(analysis: AnalysisResult) -> List[str]:
    summary = analysis.summary
    metrics = analysis.metrics
    lines = ["🔍 BEHAVIOR ANALYSIS", ""]
    lines.extend(format_insights(analysis.insights) or ["   No insights generated"])
    lines.extend([
        "",
        "📋 EXECUTIVE SUMMARY",
        f"   Total Insights: {summary.totalInsights}",
        f"   Average Confidence: {summary.averageConfidence}",
        f"   Critical Action: {summary.criticalAction or 'n/a'}",
        "",
        "📈 HEALTH METRICS",
        f"   Adoption Health: {metrics.adoptionHealth} features tracked",
        f"   Retention Strength: {metrics.retentionStrength * 100:.1f}%",
        f"   Onboarding Efficiency: {metrics.onboardingEfficiency * 100:.1f}%",
    ])
    return lines


# =============================================================================
# Interactive Session
# =============================================================================


class InteractiveSession:
    """
    Question/answer loop over a ProductAnalyticsAgent.

    Args:
        agent: Analytics agent.
        telemetry: Sink for session events (usually the agent's own).
        input_fn: Line reader; raises EOFError at end of input.
        write: Line writer.
    """

    def __init__(
        self,
        agent: ProductAnalyticsAgent,
        telemetry: TelemetrySink,
        input_fn: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self.agent = agent
        self.telemetry = telemetry
        self.input_fn = input_fn
        self.write = write
        self.query_count = 0
        self._started = time.monotonic()

    def _emit_lines(self, lines: Sequence[str]) -> None:
        for line in lines:
            self.write(line)

    def show_banner(self) -> None:
        self._emit_lines([
            "🧠 === INTERACTIVE PRODUCT ANALYTICS ===",
            "Ask me anything about your product analytics!",
            'Type "analyze" to run full behavior analysis, "help" to see commands, "exit" to quit.',
            "",
        ])

    def show_help(self) -> None:
        self._emit_lines([
            "💡 AVAILABLE COMMANDS:",
            "   analyze    - Run the full behavior analysis",
            "   help       - Show this help message",
            "   exit       - Quit the interactive session",
            "",
            "🧠 EXAMPLE QUESTIONS:",
        ] + [f'   "{q}"' for q in EXAMPLE_QUESTIONS] + [""])

    def track_command(self, command: str) -> None:
        self.telemetry.emit(
            "interactive_command_used",
            {
                "command": command,
                "query_number": self.query_count + 1,
                "session_time_elapsed": round(time.monotonic() - self._started, 3),
            },
        )

    def process_query(self, question: str) -> None:
        self.query_count += 1
        self.telemetry.emit(
            "interactive_query_started",
            {
                "query_number": self.query_count,
                "question_length": len(question),
                "question_type": categorize_question(question),
            },
        )
        started = time.monotonic()
        result, insights = self.agent.query(question)
        elapsed_ms = round((time.monotonic() - started) * 1000, 3)

        self._emit_lines(format_query_result(result))
        if insights:
            self._emit_lines(["", "🧠 INSIGHTS"] + format_insights(insights))
        self.write("")

        self.telemetry.emit(
            "interactive_query_completed",
            {
                "query_number": self.query_count,
                "response_type": result.category.value,
                "processing_time_ms": elapsed_ms,
                "insights_generated": len(insights),
                "had_data": result.message is None,
            },
        )

    def run_full_analysis(self) -> None:
        analysis = self.agent.analyze_user_behavior()
        self._emit_lines(format_analysis(analysis) + [""])

    def handle(self, line: str) -> bool:
        """Handle one input line. Returns False when the session should end."""
        text = line.strip()
        command = text.lower()
        if command == "exit":
            return False
        if command == "help":
            self.track_command("help")
            self.show_help()
        elif command == "analyze":
            self.track_command("analyze")
            self.run_full_analysis()
        elif not text:
            self.write("💡 Please enter a question or command.")
        else:
            self.process_query(text)
        return True

    def run(self) -> None:
        self.show_banner()
        self.telemetry.emit("interactive_session_started", {"user_interface": "cli"})
        try:
            while True:
                try:
                    line = self.input_fn("🔍 Your question: ")
                except EOFError:
                    break
                if not self.handle(line):
                    break
        finally:
            duration = time.monotonic() - self._started
            self.telemetry.emit(
                "interactive_session_ended",
                {"session_duration_seconds": round(duration, 3), "total_queries": self.query_count},
            )
            self.write("👋 Thanks for using Interactive Analytics!")


# =============================================================================
# Entry Point
# =============================================================================


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask business questions against the COO analytics agent.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--question", "-q", type=str, help="Answer one question and exit.")
    mode.add_argument("--analyze", action="store_true", help="Run the full behavior analysis and exit.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep telemetry events in memory instead of sending them; list them on exit.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.dry_run:
        telemetry: TelemetrySink = RecordingTelemetry(client=TELEMETRY_CLIENT)
    else:
        telemetry = build_telemetry(settings, client=TELEMETRY_CLIENT)

    with telemetry:
        agent = build_agent(settings, telemetry=telemetry)
        session = InteractiveSession(agent, telemetry)
        if args.question is not None:
            if not args.question.strip():
                print("💡 Please enter a question.")
                return 2
            session.process_query(args.question.strip())
        elif args.analyze:
            session.run_full_analysis()
        else:
            session.run()

    if isinstance(telemetry, RecordingTelemetry):
        print(f"📡 {len(telemetry.events)} telemetry events recorded (dry run):")
        for name in telemetry.names():
            print(f"   - {name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
