"""Analysis run -> offline ML export transformer.

Builds the downloadable JSON document: run metadata, the normalized days,
one feature vector per day and the full report. Nothing is aggregated
here beyond what the engine already computed.
"""

from datetime import UTC, datetime

from sleep_pattern_server.core.time_utils import circular_midpoint, minutes_of_day, wrap_minutes
from sleep_pattern_server.schemas.export import (
    EXPORT_SCHEMA_VERSION,
    ExportMetadata,
    MLExport,
    MLFeatureVector,
)
from sleep_pattern_server.schemas.sleep import AnalysisInput, AnalysisReport, DailyRecord
from sleep_pattern_server.services.engine import DEFAULT_ANALYSIS_CONFIG

EXPORT_FILENAME_PREFIX = "sleep-analysis-ml-export"


class MLExportTransformer:
    """Transform engine input + output -> MLExport."""

    @staticmethod
    def transform(
        analysis_input: AnalysisInput,
        report: AnalysisReport,
        exported_at: datetime | None = None,
        inactivity_threshold_minutes: int = DEFAULT_ANALYSIS_CONFIG.inactivity_threshold_minutes,
    ) -> MLExport:
        """Build the export document.

        Args:
            analysis_input: Days the report was computed from
            report: Completed report, suggestions included
            exported_at: Export time (defaults to now; pass it for reproducible output)
            inactivity_threshold_minutes: Onset lag used for the midpoint feature

        Returns:
            MLExport ready to serialize with ``by_alias=True``
        """
        exported_at = exported_at or datetime.now(UTC)
        timestamp = (
            exported_at.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        )

        return MLExport(
            metadata=ExportMetadata(
                export_timestamp=timestamp,
                days_analyzed=len(analysis_input.days),
                time_zone=analysis_input.time_zone,
                data_format_version=EXPORT_SCHEMA_VERSION,
            ),
            normalized_inputs=analysis_input.days,
            derived_features=tuple(
                MLExportTransformer.features(day, inactivity_threshold_minutes)
                for day in analysis_input.days
            ),
            computed_outputs=report,
        )

    @staticmethod
    def features(day: DailyRecord, inactivity_threshold_minutes: int) -> MLFeatureVector:
        """Derive the feature vector for one day."""
        last_activity = minutes_of_day(day.last_activity)
        first_activity = minutes_of_day(day.first_activity)
        onset = wrap_minutes(last_activity + inactivity_threshold_minutes)

        return MLFeatureVector(
            date=day.date,
            last_significant_interaction_minutes=last_activity,
            first_sustained_interaction_minutes=first_activity,
            night_unlock_frequency=len(day.night_checks),
            night_active_minutes=sum(c.duration_minutes or 0.0 for c in day.night_checks),
            sleep_midpoint_minutes=circular_midpoint(onset, first_activity),
            inactivity_block_duration=max(
                (b.duration_minutes for b in day.inactivity_blocks or ()), default=0.0
            ),
            total_screen_time_minutes=day.total_screen_time_minutes,
        )

    @staticmethod
    def filename(export: MLExport) -> str:
        """Download file name, stamped with the export date."""
        return f"{EXPORT_FILENAME_PREFIX}-{export.metadata.export_timestamp[:10]}.json"
