#!/usr/bin/env python3
"""
CI Quality Insights CLI

Quality scorecards, change impact analysis, anomaly detection and
suite-wide quality insights over exported CI records.

Commands:
    scorecards  - Per-service 1-10 scorecards with improvement suggestions
    impact      - Risk and blast radius of a proposed change
    anomalies   - Per-test-case (or suite-wide) anomalies
    quality     - Pass rate, flakiness, performance, security, naming
    history     - Run-history impact ranking and per-service daily trends
    report      - Everything above except impact, in one pass

Usage:
    python bin/insights.py scorecards --runs data/test_run.json --results data/test_result.json
    python bin/insights.py impact --services order-service --lines-added 250 --files 8
    python bin/insights.py anomalies --results data/test_result.json --suite
    python bin/insights.py quality --results data/test_result.json --json
    python bin/insights.py history --runs data/test_run.json --results data/test_result.json
    python bin/insights.py report --runs data/test_run.json --results data/test_result.json -o report.json
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import argparse
import json
import logging
from datetime import datetime, timezone

from ci_insights.application.container import Container
from ci_insights.cli import display
from ci_insights.config.settings import Settings
from ci_insights.impact.models import ChangeDescriptor


# ---------------------------------------------------------------------------
# CLI Argument Parsing
# ---------------------------------------------------------------------------

def _add_output_args(parser: argparse.ArgumentParser) -> None:
    output = parser.add_argument_group("Output")
    output.add_argument("--output", "-o", metavar="FILE", help="Export results to JSON file")
    output.add_argument("--json", action="store_true", help="Print results as JSON to stdout")
    output.add_argument("--quiet", "-q", action="store_true", help="Suppress console display")
    output.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def _add_record_args(parser: argparse.ArgumentParser, runs_required: bool) -> None:
    records = parser.add_argument_group("Records")
    records.add_argument(
        "--runs", metavar="FILE", required=runs_required,
        help="JSON export of test_run rows (or a file keyed by table name)",
    )
    records.add_argument("--results", metavar="FILE", help="JSON export of test_result rows")
    records.add_argument(
        "--months", type=int, default=None,
        help="Only consider records from the last N months (default: settings)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="insights",
        description="CI quality analytics: scorecards, impact analysis, anomalies.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s scorecards --runs runs.json --results results.json
  %(prog)s impact --services order-service user-service --lines-added 300 --files 12
  %(prog)s anomalies --results results.json --suite
  %(prog)s quality --results results.json -o quality.json
  %(prog)s history --runs runs.json --results results.json --days 14
  %(prog)s report --runs runs.json --results results.json --json
""",
    )
    parser.add_argument(
        "--registry", metavar="FILE", default=None,
        help="Service registry YAML (default: $CI_INSIGHTS_REGISTRY or config/service_registry.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scorecards = sub.add_parser("scorecards", help="Per-service quality scorecards")
    _add_record_args(scorecards, runs_required=True)
    scorecards.add_argument("--top", type=int, default=3, help="Suggestions shown per service")
    _add_output_args(scorecards)

    impact = sub.add_parser("impact", help="Analyze the impact of a change")
    change = impact.add_argument_group("Change")
    change.add_argument("--services", nargs="*", default=[], help="Registry keys of modified services")
    change.add_argument("--lines-added", type=int, default=0)
    change.add_argument("--lines-deleted", type=int, default=0)
    change.add_argument("--files", type=int, default=0, help="Number of files changed")
    change.add_argument("--api-changes", type=int, default=0, help="API endpoints changed")
    change.add_argument("--test-files", type=int, default=0, help="Test files modified")
    change.add_argument("--title", default=None)
    change.add_argument("--change-file", metavar="FILE", help="JSON change descriptor (overrides flags)")
    _add_output_args(impact)

    anomalies = sub.add_parser("anomalies", help="Detect anomalies in test results")
    _add_record_args(anomalies, runs_required=False)
    anomalies.add_argument(
        "--suite", action="store_true",
        help="Use the suite-wide detector instead of the per-test-case one",
    )
    _add_output_args(anomalies)

    quality = sub.add_parser("quality", help="Suite-wide quality insights")
    _add_record_args(quality, runs_required=False)
    _add_output_args(quality)

    history = sub.add_parser("history", help="Run-history impact ranking and daily trends")
    _add_record_args(history, runs_required=True)
    history.add_argument("--days", type=int, default=7, help="Trend days shown per service")
    _add_output_args(history)

    report = sub.add_parser("report", help="Full insights report")
    _add_record_args(report, runs_required=True)
    report.add_argument("--top", type=int, default=3, help="Suggestions shown per service")
    _add_output_args(report)

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def build_container(args: argparse.Namespace) -> Container:
    settings = Settings.from_env()
    if args.registry:
        settings.registry_path = args.registry
    if getattr(args, "months", None):
        settings.time_range_months = args.months

    runs = getattr(args, "runs", None)
    results = getattr(args, "results", None)
    return Container(
        settings=settings,
        runs_path=runs or results,
        results_path=results or runs,
    )


def run_scorecards(container: Container, args: argparse.Namespace):
    report = container.insights_service().build_report()
    if not args.json and not args.quiet:
        if report.degraded:
            print(display.colored(f"Data source unavailable: {report.error}", display.Colors.RED))
        display.display_scorecards(report.scorecards, top_suggestions=args.top)
    return {
        "generated_at": report.generated_at.isoformat(),
        "degraded": report.degraded,
        "scorecards": [c.to_dict() for c in report.scorecards],
    }


def run_impact(container: Container, args: argparse.Namespace):
    if args.change_file:
        with open(args.change_file, "r", encoding="utf-8") as f:
            change = ChangeDescriptor.from_dict(json.load(f))
    else:
        change = ChangeDescriptor(
            services_modified=list(args.services),
            lines_added=args.lines_added,
            lines_deleted=args.lines_deleted,
            files_changed=args.files,
            api_endpoints_changed=args.api_changes,
            test_files_modified=args.test_files,
            title=args.title,
        )
    report = container.impact_analyzer().analyze(change)
    if not args.json and not args.quiet:
        display.display_impact_report(report)
    return report.to_dict()


def run_anomalies(container: Container, args: argparse.Namespace):
    service = container.insights_service()
    since = container.settings.window_start()
    results = container.record_source().fetch_test_results(since=since)
    if args.suite:
        found = service.suite_detector.detect(results, now=datetime.now(timezone.utc))
        title = "Suite Anomaly Detection"
    else:
        found = service.anomaly_detector.detect(results)
        title = "Anomaly Detection"
    if not args.json and not args.quiet:
        display.display_anomalies(found, title=title)
    return {"anomalies": [a.to_dict() for a in found]}


def run_quality(container: Container, args: argparse.Namespace):
    service = container.insights_service()
    results = container.record_source().fetch_test_results(since=container.settings.window_start())
    quality = service.quality_analyzer.analyze(results)
    if not args.json and not args.quiet:
        display.display_quality_insights(quality)
    return quality.to_dict()


def run_history(container: Container, args: argparse.Namespace):
    service = container.insights_service()
    since = container.settings.window_start()
    source = container.record_source()
    impacts = service.run_ranker.rank(source.fetch_test_runs(since=since))
    trends = service.trend_aggregator.trends(source.fetch_test_results(since=since))
    if not args.json and not args.quiet:
        display.display_project_impacts(impacts)
        display.display_trends(trends, days=args.days)
    return {
        "project_impacts": [p.to_dict() for p in impacts],
        "service_trends": [t.to_dict() for t in trends],
    }


def run_report(container: Container, args: argparse.Namespace):
    report = container.insights_service().build_report()
    if not args.json and not args.quiet:
        display.display_report(report, top_suggestions=args.top)
    return report.to_dict()


COMMANDS = {
    "scorecards": run_scorecards,
    "impact": run_impact,
    "anomalies": run_anomalies,
    "quality": run_quality,
    "history": run_history,
    "report": run_report,
}


# ---------------------------------------------------------------------------
# Output Helpers
# ---------------------------------------------------------------------------

def export_json(data, path: str) -> None:
    """Write results to a JSON file, creating parent directories as needed."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)


# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = (
        logging.DEBUG if args.verbose
        else logging.WARNING if args.quiet
        else logging.INFO
    )
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        container = build_container(args)
        data = COMMANDS[args.command](container, args)

        if args.output:
            export_json(data, args.output)
            if not args.quiet:
                print(display.colored(f"\n✓ Results exported to: {args.output}", display.Colors.GREEN))

        if args.json:
            print(json.dumps(data, indent=2, default=str))

        return 0

    except Exception as exc:
        print(display.colored(f"Error: {exc}", display.Colors.RED), file=sys.stderr)
        if args.verbose:
            logging.exception("Command failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
