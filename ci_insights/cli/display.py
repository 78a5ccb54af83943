"""
Display Module

Terminal rendering for scorecards, impact reports, anomalies and quality
insights, plus the run-history views. Pure presentation: every function takes result objects and prints.
"""
from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ci_insights.analysis.models import ProjectImpact, ServiceScorecard, ServiceTrend
    from ci_insights.analysis.quality_insights import QualityInsights
    from ci_insights.anomaly.models import Anomaly
    from ci_insights.application.services.insights_service import InsightsReport
    from ci_insights.impact.models import ImpactReport

NO_SERVICE_DATA = "No service data available"
NO_ANOMALIES = "No Anomalies Detected"


# =============================================================================
# Terminal Colors
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: str, bold: bool = False) -> str:
    """Apply color to text."""
    style = Colors.BOLD if bold else ""
    return f"{style}{color}{text}{Colors.RESET}"


def level_color(level) -> str:
    """Color for a risk level, criticality tier or anomaly severity."""
    name = level.value if hasattr(level, "value") else str(level)
    return {
        "CRITICAL": Colors.RED,
        "HIGH": Colors.RED,
        "MEDIUM": Colors.YELLOW,
        "LOW": Colors.GREEN,
        "WARNING": Colors.YELLOW,
        "INFO": Colors.BLUE,
    }.get(name.upper(), Colors.RESET)


def score_color(score: float) -> str:
    if score >= 8:
        return Colors.GREEN
    if score >= 6:
        return Colors.YELLOW
    return Colors.RED


def print_header(title: str, char: str = "=", width: int = 78) -> None:
    """Print a formatted header."""
    print(f"\n{colored(char * width, Colors.CYAN)}")
    print(f"{colored(f' {title} '.center(width), Colors.CYAN, bold=True)}")
    print(f"{colored(char * width, Colors.CYAN)}")


def print_subheader(title: str, char: str = "-", width: int = 78) -> None:
    """Print a formatted subheader."""
    print(f"\n{colored(f' {title} ', Colors.WHITE, bold=True)}")
    print(f"{colored(char * width, Colors.GRAY)}")


# =============================================================================
# Scorecards
# =============================================================================

def display_scorecards(cards: List["ServiceScorecard"], top_suggestions: int = 3) -> None:
    print_header("Service Quality Scorecards")
    if not cards:
        print(f"\n  {colored(NO_SERVICE_DATA, Colors.GRAY)}")
        return

    for card in cards:
        print_subheader(f"{card.service} ({card.project})")
        overall = colored(f"{card.overall_score}/10", score_color(card.overall_score), bold=True)
        print(f"  {'Overall:':<20} {overall}  ({card.overall_percentage:.1f}%)")
        print(f"  {'Stability:':<20} {colored(f'{card.stability_score}/10', score_color(card.stability_score))}")
        print(f"  {'Coverage:':<20} {colored(f'{card.coverage_score}/10', score_color(card.coverage_score))}")
        print(f"  {'Risk:':<20} {colored(card.risk_level.value, level_color(card.risk_level), bold=True)}")
        print(f"  {'Tests:':<20} {card.total_tests} total, {card.recent_runs} in the last week")
        print(f"  {'Last run:':<20} {card.last_run_date}")

        if card.category_scores:
            print("\n  Categories:")
            for category, cs in card.category_scores.items():
                penalty = f" (-{cs.performance_penalty:.1f} perf)" if cs.performance_penalty else ""
                print(
                    f"    {category.value:<12} {colored(f'{cs.score:>2}/10', score_color(cs.score))}"
                    f"  {cs.success_rate:5.1f}% of {cs.total_tests:<5} avg {cs.avg_duration:.0f}ms{penalty}"
                )

        if card.suggestions:
            summary = card.suggestion_summary
            print(f"\n  Suggestions ({summary.total_suggestions}, priority {summary.priority}):")
            for s in card.top_suggestions(top_suggestions):
                print(f"    [{s.category.value}] {colored(s.title, Colors.WHITE, bold=True)}")
                print(f"      {s.description}")
            hidden = len(card.suggestions) - top_suggestions
            if hidden > 0:
                print(colored(f"    ... {hidden} more", Colors.GRAY))


# =============================================================================
# Impact
# =============================================================================

def display_impact_report(report: "ImpactReport") -> None:
    print_header("Change Impact Analysis")
    change = report.change
    if change is not None and change.title:
        print(f"  {'Change:':<20} {change.title}")
    print(f"  {'Impact score:':<20} {colored(f'{report.impact_score:.1f}/10', Colors.WHITE, bold=True)}")
    print(f"  {'Risk:':<20} {colored(report.risk_level.value, level_color(report.risk_level), bold=True)}")
    print(f"  {'Confidence:':<20} {report.confidence:.0%}")
    print(f"\n  {report.impact_description}")

    print_subheader("Blast Radius")
    if not report.blast_radius:
        print(colored("  No dependent services affected", Colors.GRAY))
    for entry in report.blast_radius:
        print(
            f"  {entry.service:<24} {entry.probability:>5.0%}  {entry.impact_type.value:<9}"
            f" {colored(entry.criticality.value, level_color(entry.criticality))}"
        )

    print_subheader("Risk Components")
    for name, value in report.risk_assessment.components.items():
        print(f"  {name:<16} {value:.2f}")

    if report.recommendations:
        print_subheader("Recommendations")
        for rec in report.recommendations:
            print(f"  [{colored(rec.priority, level_color(rec.priority))}] {rec.message}")
            print(f"      {rec.action}")
            if rec.services:
                print(colored(f"      services: {', '.join(rec.services)}", Colors.GRAY))

    print_subheader("Key Changes")
    for change_line in report.key_changes:
        print(f"  - {change_line}")


# =============================================================================
# Anomalies and quality
# =============================================================================

def display_anomalies(anomalies: List["Anomaly"], title: str = "Anomaly Detection") -> None:
    print_header(title)
    if not anomalies:
        print(f"\n  {colored(NO_ANOMALIES, Colors.GREEN)}")
        return
    for a in anomalies:
        print(f"  [{colored(a.severity.value.upper(), level_color(a.severity))}] {a.title}")
        print(f"      {a.description}")
        if a.details:
            print(colored(f"      {a.details}", Colors.GRAY))


def display_quality_insights(quality: Optional["QualityInsights"]) -> None:
    print_header("Quality Insights")
    if quality is None or quality.total_tests == 0:
        print(f"\n  {colored('No test results available', Colors.GRAY)}")
        return
    rows = [
        ("Pass rate", quality.pass_rate_score),
        ("Stability", quality.stability_score),
        ("Performance", quality.performance_score),
        ("Security", quality.security_score),
        ("Maintainability", quality.maintainability_score),
    ]
    for label, value in rows:
        print(f"  {label + ':':<20} {colored(f'{value:5.1f}%', score_color(value / 10))}")
    print(
        f"\n  {quality.total_tests} results, {quality.flaky_tests} flaky tests, "
        f"{quality.slow_tests} slow, {quality.security_tests} security"
    )


# =============================================================================
# Run history
# =============================================================================

def display_project_impacts(impacts: List["ProjectImpact"]) -> None:
    print_header("Run History Impact")
    if not impacts:
        print(f"\n  {colored(NO_SERVICE_DATA, Colors.GRAY)}")
        return
    for p in impacts:
        print(
            f"  {p.project:<24} {colored(f'{p.impact_score:>3}', Colors.WHITE, bold=True)}"
            f"  {colored(p.risk_level.value, level_color(p.risk_level)):<16}"
            f"  {p.success_rate:5.1f}% of {p.total_runs:<5} recent failures {p.recent_failure_rate:.1f}%"
        )


def display_trends(trends: List["ServiceTrend"], days: int = 7) -> None:
    print_header("Daily Trends")
    if not trends:
        print(f"\n  {colored('No test results available', Colors.GRAY)}")
        return
    for trend in trends:
        print_subheader(trend.service)
        for point in trend.points[-days:]:
            print(
                f"  {point.date}  {colored(f'{point.passed:>4} passed', Colors.GREEN)}"
                f"  {colored(f'{point.failed:>4} failed', Colors.RED)}"
                f"  {colored(f'{point.skipped:>4} skipped', Colors.YELLOW)}"
            )


def display_report(report: "InsightsReport", top_suggestions: int = 3) -> None:
    if report.degraded:
        print(colored(f"Data source unavailable: {report.error}", Colors.RED, bold=True))
    display_scorecards(report.scorecards, top_suggestions=top_suggestions)
    display_project_impacts(report.project_impacts)
    display_anomalies(report.anomalies)
    display_anomalies(report.suite_anomalies, title="Suite Anomaly Detection")
    display_quality_insights(report.quality)
    display_trends(report.service_trends)
