"""Tests for the sleep analysis orchestration service."""

from datetime import UTC, datetime

import pytest

from sleep_pattern_server.core.config import Settings
from sleep_pattern_server.core.exceptions import InvariantError, ValidationError
from sleep_pattern_server.services.parser import InputFormat
from sleep_pattern_server.services.sleep_analysis import SleepAnalysisService
from sleep_pattern_server.services.templates import SUGGESTION_TEMPLATES, SuggestionRule
from tests.fixtures.sleep_inputs import (
    EXAMPLE_STRUCTURED_INPUT,
    REFERENCE_DATE,
    json_text,
    make_days,
    make_input,
    structured_text,
)


class TestSleepAnalysisService:
    """Tests for SleepAnalysisService."""

    def test_run_structured_text(self, service: SleepAnalysisService) -> None:
        """Test the full pipeline on the example week."""
        run = service.run(
            EXAMPLE_STRUCTURED_INPUT, "America/New_York", reference_date=REFERENCE_DATE
        )

        assert run.input_format == InputFormat.STRUCTURED_TEXT
        assert run.input.time_zone == "America/New_York"
        assert run.report.days_analyzed == 7
        assert run.report.night_disruption_frequency == 1.0
        assert 1 <= len(run.report.optimization_suggestions) <= 5

    def test_run_attaches_suggestions(self, service: SleepAnalysisService) -> None:
        """Test the regular-week regression gets the debt recovery suggestion."""
        run = service.run(structured_text(), "UTC", reference_date=REFERENCE_DATE)

        assert run.report.average_duration_hours == 6.7
        assert run.report.optimization_suggestions == (
            SUGGESTION_TEMPLATES[SuggestionRule.DEBT_RECOVERY],
        )

    def test_run_json(self, service: SleepAnalysisService) -> None:
        """Test JSON input goes through the same pipeline."""
        run = service.run(json_text(14), "UTC", wake_target="06:30")

        assert run.input_format == InputFormat.JSON
        assert run.input.wake_target == "06:30"
        assert run.report.advanced_metrics is not None

    def test_wake_target_ignored_below_two_weeks(self, service: SleepAnalysisService) -> None:
        """Test a wake target with fewer than 14 days yields no advanced metrics."""
        run = service.run(json_text(7), "UTC", wake_target="06:30")
        assert run.report.advanced_metrics is None

    def test_validation_error_lists_everything(self, service: SleepAnalysisService) -> None:
        """Test parser failures surface as one ValidationError with every message."""
        with pytest.raises(ValidationError) as exc_info:
            service.run(structured_text(count=6), "UTC", wake_target="7am")

        errors = exc_info.value.errors
        assert errors == [
            'Invalid wake target: "7am". Expected HH:MM (00:00-23:59).',
            "Insufficient data: 6 days provided, minimum 7 required for analysis.",
        ]
        assert str(exc_info.value).endswith("(+1 more)")

    def test_invalid_wake_target_alone(self, service: SleepAnalysisService) -> None:
        """Test a bad wake target fails even when the days are valid."""
        with pytest.raises(ValidationError) as exc_info:
            service.run(structured_text(), "UTC", wake_target="25:00")
        assert len(exc_info.value.errors) == 1

    def test_analyze_rejects_bypassed_parser(self, service: SleepAnalysisService) -> None:
        """Test direct analysis of too few days is an invariant violation."""
        with pytest.raises(InvariantError):
            service.analyze(make_input(make_days(5)))

    def test_export_and_stored_run(self, service: SleepAnalysisService) -> None:
        """Test a run feeds both transformers."""
        run = service.run(structured_text(), "UTC", reference_date=REFERENCE_DATE)
        exported_at = datetime(2024, 3, 15, tzinfo=UTC)

        export = service.export(run, exported_at=exported_at)
        stored = service.to_stored_run(run)
        model = service.from_stored_run(stored)

        assert export.metadata.days_analyzed == 7
        assert export.computed_outputs == run.report
        assert stored.days_analyzed == 7
        assert model.output.sleep_debt_hours == run.report.sleep_debt_hours

    def test_from_settings_uses_threshold(self) -> None:
        """Test the configured inactivity threshold reaches the engine."""
        service = SleepAnalysisService.from_settings(Settings(inactivity_threshold_minutes=60))
        run = service.run(structured_text(), "UTC", reference_date=REFERENCE_DATE)

        assert service.config.inactivity_threshold_minutes == 60
        assert run.report.average_sleep_onset == "00:30"
        stored = service.to_stored_run(run)
        assert stored.normalized_daily_inputs[0].bedtime == 30
