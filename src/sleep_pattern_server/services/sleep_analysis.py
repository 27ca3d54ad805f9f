"""Sleep analysis orchestration service."""

from dataclasses import dataclass
from datetime import date, datetime

import structlog

from sleep_pattern_server.core.config import Settings, settings
from sleep_pattern_server.core.exceptions import ValidationError
from sleep_pattern_server.core.time_utils import is_valid_clock_format
from sleep_pattern_server.schemas.export import MLExport
from sleep_pattern_server.schemas.sleep import AnalysisInput, AnalysisReport
from sleep_pattern_server.schemas.sleep_run import ReportModel, SleepEstimatorRun
from sleep_pattern_server.services.engine import AnalysisConfig, SleepAnalysisEngine
from sleep_pattern_server.services.parser import InputFormat, InputParser, ParseFailure
from sleep_pattern_server.services.suggestions import SuggestionGenerator
from sleep_pattern_server.transformers.ml_export import MLExportTransformer
from sleep_pattern_server.transformers.sleep_run import SleepRunTransformer

logger = structlog.get_logger()


@dataclass(frozen=True)
class AnalysisRun:
    """One completed analysis: what went in and what came out."""

    input: AnalysisInput
    report: AnalysisReport
    input_format: InputFormat


class SleepAnalysisService:
    """Service for running the full parse -> analyze -> suggest pipeline.

    Ties the parser, engine and suggestion generator together and hands
    completed runs to the export and storage transformers. Holds no state
    between calls.
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        """Initialize sleep analysis service.

        Args:
            config: Engine thresholds (defaults to the engine defaults)
        """
        self.config = config or AnalysisConfig()
        self.logger = logger.bind(service="sleep_analysis")
        self.parser = InputParser()
        self.engine = SleepAnalysisEngine(self.config)
        self.suggestion_generator = SuggestionGenerator()

    @classmethod
    def from_settings(cls, app_settings: Settings = settings) -> "SleepAnalysisService":
        """Build a service using the configured inactivity threshold."""
        return cls(
            AnalysisConfig(inactivity_threshold_minutes=app_settings.inactivity_threshold_minutes)
        )

    def run(
        self,
        raw_text: str,
        time_zone: str,
        wake_target: str | None = None,
        reference_date: date | None = None,
    ) -> AnalysisRun:
        """Parse raw text and analyze it.

        Args:
            raw_text: Structured text or JSON days
            time_zone: IANA time zone of the clock values
            wake_target: Desired wake time (HH:MM) for advanced metrics
            reference_date: Date ``Day 1`` maps to in structured text

        Returns:
            AnalysisRun with the complete report

        Raises:
            ValidationError: If the input or wake target is invalid
        """
        errors: list[str] = []
        if wake_target is not None and not is_valid_clock_format(wake_target):
            errors.append(f'Invalid wake target: "{wake_target}". Expected HH:MM (00:00-23:59).')

        result = self.parser.parse(raw_text, time_zone, reference_date=reference_date)
        if isinstance(result, ParseFailure):
            raise ValidationError([*errors, *result.errors])
        if errors:
            raise ValidationError(errors)

        analysis_input = result.input.to_analysis_input(wake_target)
        report = self.analyze(analysis_input)

        self.logger.info(
            "Sleep analysis run complete",
            input_format=result.input_format.value,
            days=report.days_analyzed,
            risk_count=len(report.risk_indicators),
            suggestion_count=len(report.optimization_suggestions),
        )
        return AnalysisRun(input=analysis_input, report=report, input_format=result.input_format)

    def analyze(self, analysis_input: AnalysisInput) -> AnalysisReport:
        """Analyze already-validated days and attach suggestions.

        Raises:
            InvariantError: If the day count is outside 7-30
        """
        report = self.engine.analyze(analysis_input)
        suggestions = self.suggestion_generator.suggest(report)
        return report.model_copy(update={"optimization_suggestions": tuple(suggestions)})

    def export(self, run: AnalysisRun, exported_at: datetime | None = None) -> MLExport:
        """Build the offline ML export for a completed run."""
        return MLExportTransformer.transform(
            run.input,
            run.report,
            exported_at=exported_at,
            inactivity_threshold_minutes=self.config.inactivity_threshold_minutes,
        )

    def to_stored_run(self, run: AnalysisRun) -> SleepEstimatorRun:
        """Map a completed run onto the external run store's shape."""
        return SleepRunTransformer.to_stored_run(
            run.input,
            run.report,
            inactivity_threshold_minutes=self.config.inactivity_threshold_minutes,
        )

    def from_stored_run(self, stored: SleepEstimatorRun) -> ReportModel:
        """Rebuild a display model from a stored run."""
        return SleepRunTransformer.to_report_model(stored)
