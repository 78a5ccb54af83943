"""
Tests for bin/insights.py and ci_insights.cli.display

Tests for:
    - Each subcommand end to end over JSON exports, including the
      combined report and the run-history view
    - JSON output and file export
    - Degraded output when the record source fails
    - Display sentinels
"""

import importlib.util
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from ci_insights.cli import display

BIN_SCRIPT = Path(__file__).parent.parent / "bin" / "insights.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("insights_cli", BIN_SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _iso(hours_ago):
    return (datetime.now(timezone.utc) - timedelta(hours=hours_ago)).isoformat()


@pytest.fixture
def export_file(tmp_path):
    """Single export keyed by table name, timestamps relative to the wall clock."""
    runs = [
        {
            "id": f"run-{i}",
            "status": "FAILED" if i < 2 else "PASSED",
            "started_at": _iso(24 + i),
            "test_suite": {"name": "OrderServiceApiTest", "project": {"name": "Shop"}},
        }
        for i in range(10)
    ]
    results = [
        {
            "id": f"res-{i}",
            "status": "FAILED",
            "duration_ms": 120,
            "created_at": _iso(i + 1),
            "test_case": {"name": "pay_invoice", "tags": []},
            "test_run": {"test_suite": {"name": "OrderServiceApiTest"}},
        }
        for i in range(5)
    ]
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"test_run": runs, "test_result": results}))
    return path


# =============================================================================
# Command Tests
# =============================================================================

class TestScorecardsCommand:

    def test_console_output(self, cli, export_file, capsys):
        assert cli.main(["scorecards", "--runs", str(export_file)]) == 0
        out = capsys.readouterr().out
        assert "Service Quality Scorecards" in out
        assert "Order Service (Shop)" in out

    def test_json_output(self, cli, export_file, capsys):
        assert cli.main(["scorecards", "--runs", str(export_file), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["degraded"] is False
        card = data["scorecards"][0]
        assert card["name"] == "Order Service"
        assert card["testTypeScores"]["api"]["successRate"] == 80

    def test_empty_export(self, cli, tmp_path, capsys):
        path = tmp_path / "empty.json"
        path.write_text("[]")
        assert cli.main(["scorecards", "--runs", str(path)]) == 0
        assert display.NO_SERVICE_DATA in capsys.readouterr().out

    def test_unreadable_source_is_degraded(self, cli, tmp_path, capsys):
        assert cli.main(["scorecards", "--runs", str(tmp_path / "missing.json")]) == 0
        out = capsys.readouterr().out
        assert "Data source unavailable" in out
        assert display.NO_SERVICE_DATA in out


class TestImpactCommand:

    def test_flags(self, cli, sample_registry_path, capsys):
        code = cli.main([
            "--registry", str(sample_registry_path),
            "impact", "--services", "gateway-service",
            "--lines-added", "150", "--lines-deleted", "50", "--files", "4", "--json",
        ])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["impact_score"] == pytest.approx(5.3)
        assert data["risk_level"] == "LOW"
        assert [b["service"] for b in data["blast_radius"]][-1] == "payment-service"
        assert data["confidence"] == 0.8

    def test_change_file_and_export(self, cli, sample_registry_path, tmp_path, capsys):
        change = tmp_path / "change.json"
        change.write_text(json.dumps({
            "title": "Add coupon support",
            "services_modified": "order-service",
            "lines_added": 80,
            "files_changed": 4,
        }))
        output = tmp_path / "out" / "impact.json"
        code = cli.main([
            "--registry", str(sample_registry_path),
            "impact", "--change-file", str(change), "-o", str(output),
        ])
        assert code == 0
        assert "Change Impact Analysis" in capsys.readouterr().out
        exported = json.loads(output.read_text())
        assert exported["change"]["title"] == "Add coupon support"

    def test_bad_registry_fails(self, cli, tmp_path, capsys):
        registry = tmp_path / "registry.yaml"
        registry.write_text("services: [broken\n")
        code = cli.main(["--registry", str(registry), "impact", "--services", "a", "-q"])
        assert code == 1
        assert "Error:" in capsys.readouterr().err


class TestAnomaliesAndQuality:

    def test_test_case_anomalies(self, cli, export_file, capsys):
        assert cli.main(["anomalies", "--results", str(export_file), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [a["type"] for a in data["anomalies"]] == ["reliability"]
        assert data["anomalies"][0]["subject"] == "pay_invoice"

    def test_suite_anomalies(self, cli, export_file, capsys):
        assert cli.main(["anomalies", "--results", str(export_file), "--suite"]) == 0
        out = capsys.readouterr().out
        assert "Suite Anomaly Detection" in out
        assert "High Failure Rate Detected" in out

    def test_quality_export(self, cli, export_file, tmp_path):
        output = tmp_path / "quality.json"
        assert cli.main(["quality", "--results", str(export_file), "-q", "-o", str(output)]) == 0
        data = json.loads(output.read_text())
        assert data["total_tests"] == 5
        assert data["pass_rate_score"] == 0.0



class TestReportAndHistory:

    def test_report_console(self, cli, export_file, capsys):
        assert cli.main(["report", "--runs", str(export_file)]) == 0
        out = capsys.readouterr().out
        for header in (
            "Service Quality Scorecards", "Run History Impact", "Anomaly Detection",
            "Suite Anomaly Detection", "Quality Insights", "Daily Trends",
        ):
            assert header in out

    def test_report_json(self, cli, export_file, capsys):
        assert cli.main(["report", "--runs", str(export_file), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["scorecards"][0]["name"] == "Order Service"
        assert data["project_impacts"][0]["impactScore"] == 88
        assert data["quality"]["total_tests"] == 5
        assert [a["type"] for a in data["anomalies"]] == ["reliability"]

    def test_report_degraded(self, cli, tmp_path, capsys):
        assert cli.main(["report", "--runs", str(tmp_path / "missing.json")]) == 0
        assert "Data source unavailable" in capsys.readouterr().out

    def test_history(self, cli, export_file, capsys):
        assert cli.main(["history", "--runs", str(export_file), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [(p["service"], p["riskLevel"]) for p in data["project_impacts"]] == [("Shop", "MEDIUM")]
        trend = data["service_trends"][0]
        assert trend["service"] == "Order Service"
        assert sum(p["failed"] for p in trend["trend"]) == 5

# =============================================================================
# Display Tests
# =============================================================================

class TestDisplay:

    def test_no_anomalies(self, capsys):
        display.display_anomalies([])
        assert display.NO_ANOMALIES in capsys.readouterr().out

    def test_level_color(self):
        assert display.level_color("critical") == display.Colors.RED
        assert display.level_color("unknown") == display.Colors.RESET

    def test_colored(self):
        text = display.colored("ok", display.Colors.GREEN, bold=True)
        assert text.startswith(display.Colors.BOLD)
        assert text.endswith(display.Colors.RESET)
