"""Pydantic schemas for the offline ML export document."""

from datetime import date as date_type

from pydantic import Field

from sleep_pattern_server.schemas.sleep import AnalysisReport, CamelModel, DailyRecord

EXPORT_SCHEMA_VERSION = "1.0.0"


class MLFeatureVector(CamelModel):
    """Per-day features derived from one DailyRecord."""

    date: date_type
    last_significant_interaction_minutes: int = Field(
        description="Last activity as minute of day"
    )
    first_sustained_interaction_minutes: int = Field(
        description="First activity as minute of day"
    )
    night_unlock_frequency: int = Field(ge=0, description="Number of night checks")
    night_active_minutes: float = Field(
        ge=0, description="Sum of known night-check durations"
    )
    sleep_midpoint_minutes: float = Field(
        description="Circular midpoint of estimated onset and first activity"
    )
    # Need corpus-wide context; always 0 in a single export
    onset_variance_contribution: float = 0.0
    wake_variance_contribution: float = 0.0
    inactivity_block_duration: float = Field(
        ge=0, description="Longest inactivity block in minutes (0 when unknown)"
    )
    total_screen_time_minutes: int = Field(ge=0)


class ExportMetadata(CamelModel):
    """Run metadata accompanying every export."""

    export_timestamp: str = Field(description="ISO-8601 UTC timestamp")
    days_analyzed: int = Field(ge=0)
    time_zone: str
    data_format_version: str = EXPORT_SCHEMA_VERSION


class MLExport(CamelModel):
    """Complete ML export document."""

    metadata: ExportMetadata
    normalized_inputs: tuple[DailyRecord, ...]
    derived_features: tuple[MLFeatureVector, ...]
    computed_outputs: AnalysisReport
