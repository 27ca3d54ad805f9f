"""CLI command tests."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sleep_pattern_server import __version__
from sleep_pattern_server.cli import app
from tests.fixtures.sleep_inputs import json_text, structured_text

runner = CliRunner()


@pytest.fixture
def week_file(tmp_path: Path) -> Path:
    """The regular week as a structured text file."""
    path = tmp_path / "week.txt"
    path.write_text(structured_text(), encoding="utf-8")
    return path


def test_version() -> None:
    """Test version command output."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert f"sleep-pattern-server v{__version__}" in result.output


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_prints_report(self, week_file: Path) -> None:
        """Test the report is printed as camelCase JSON."""
        result = runner.invoke(
            app,
            ["analyze", str(week_file), "--time-zone", "UTC", "--reference-date", "2024-03-14"],
        )

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["daysAnalyzed"] == 7
        assert report["averageSleepOnset"] == "00:20"
        assert report["sleepConsistencyScore"] == 97

    def test_json_input_with_wake_target(self, tmp_path: Path) -> None:
        """Test two weeks of JSON with a wake target include advanced metrics."""
        path = tmp_path / "days.json"
        path.write_text(json_text(14), encoding="utf-8")

        result = runner.invoke(app, ["analyze", str(path), "--wake-target", "06:30"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["advancedMetrics"] is not None

    def test_validation_errors_exit_1(self, tmp_path: Path) -> None:
        """Test invalid input prints every error and exits with status 1."""
        path = tmp_path / "short.txt"
        path.write_text(structured_text(count=3), encoding="utf-8")

        result = runner.invoke(app, ["analyze", str(path), "--reference-date", "2024-03-14"])

        assert result.exit_code == 1
        assert "Insufficient data: 3 days provided" in result.output

    def test_bad_reference_date(self, week_file: Path) -> None:
        """Test a malformed reference date is a usage error."""
        result = runner.invoke(app, ["analyze", str(week_file), "--reference-date", "14/03/2024"])
        assert result.exit_code == 2


class TestExportCommand:
    """Tests for the export command."""

    def test_writes_document(self, week_file: Path, tmp_path: Path) -> None:
        """Test the export is written to the requested path."""
        target = tmp_path / "features.json"

        result = runner.invoke(
            app,
            ["export", str(week_file), "--output", str(target), "--reference-date", "2024-03-14"],
        )

        assert result.exit_code == 0
        assert f"Wrote {target}" in result.output
        document = json.loads(target.read_text(encoding="utf-8"))
        assert document["metadata"]["daysAnalyzed"] == 7
        assert len(document["normalizedInputs"]) == 7
