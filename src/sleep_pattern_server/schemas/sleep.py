"""Pydantic schemas for behavioral sleep input and analysis output.

Wire format is camelCase (``lastActivity``, ``sleepConsistencyScore``);
Python attributes are snake_case. Models are frozen so a record produced
by the parser cannot be altered further down the pipeline.
"""

from datetime import date as date_type
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sleep_pattern_server.core.time_utils import is_valid_clock_format, is_valid_iana_time_zone

HOURS_PER_DAY = 24


def _check_clock(value: str) -> str:
    if not is_valid_clock_format(value):
        raise ValueError(f'invalid time format "{value}", expected HH:MM')
    return value


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class CircadianStability(str, Enum):
    """Consistency of the daily sleep midpoint."""

    STABLE = "Stable"
    MODERATE = "Moderate"
    UNSTABLE = "Unstable"


class Chronotype(str, Enum):
    """Natural tendency toward earlier or later sleep timing."""

    MORNING = "Morning type"
    INTERMEDIATE = "Intermediate"
    EVENING = "Evening type"


class NightCheck(CamelModel):
    """Phone interaction during the overnight window."""

    time: str = Field(description="Clock time of the check (HH:MM)")
    duration_minutes: float | None = Field(
        default=None, ge=0, description="How long the phone was in use, if known"
    )
    kind: str | None = Field(
        default=None,
        validation_alias=AliasChoices("kind", "type"),
        description="Free-form event type reported by the device",
    )

    validate_time = field_validator("time")(_check_clock)


class InactivityBlock(CamelModel):
    """Stretch of time with no phone interaction."""

    start: str = Field(description="Block start (HH:MM)")
    end: str = Field(description="Block end (HH:MM)")
    duration_minutes: float = Field(ge=0, description="Block length in minutes")

    validate_bounds = field_validator("start", "end")(_check_clock)


class DailyRecord(CamelModel):
    """One day of behavioral phone-usage input."""

    date: date_type = Field(description="Evening the night starts on (YYYY-MM-DD)")
    last_activity: str = Field(description="Last interaction before sleep (HH:MM)")
    first_activity: str = Field(description="First interaction after waking (HH:MM)")
    night_checks: tuple[NightCheck, ...] = Field(
        default=(), description="Overnight phone checks in chronological order"
    )
    total_screen_time_minutes: int = Field(ge=0, description="Screen time for the day")

    # Optional enrichment; absence means unknown, never zero
    hourly_screen_time: tuple[float, ...] | None = Field(
        default=None, description="Screen minutes per hour of day (24 values)"
    )
    hourly_unlock_count: tuple[int, ...] | None = Field(
        default=None, description="Unlocks per hour of day (24 values)"
    )
    unlock_burst_times: tuple[str, ...] | None = Field(
        default=None, description="Clock times of unlock bursts"
    )
    inactivity_blocks: tuple[InactivityBlock, ...] | None = Field(
        default=None, description="Inactivity stretches reported by the device"
    )

    validate_activity = field_validator("last_activity", "first_activity")(_check_clock)

    @field_validator("hourly_screen_time", "hourly_unlock_count")
    @classmethod
    def validate_hourly(cls, value: tuple[float, ...] | None) -> tuple[float, ...] | None:
        if value is None:
            return value
        if len(value) != HOURS_PER_DAY:
            raise ValueError(f"expected {HOURS_PER_DAY} hourly values, got {len(value)}")
        if any(v < 0 for v in value):
            raise ValueError("hourly values must be non-negative")
        return value

    @field_validator("unlock_burst_times")
    @classmethod
    def validate_bursts(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is not None:
            for clock in value:
                _check_clock(clock)
        return value


class AnalysisInput(CamelModel):
    """Normalized days plus run parameters for one analysis.

    The day-count window is deliberately not enforced here: the engine
    re-checks it and treats a violation as a caller bug.
    """

    days: tuple[DailyRecord, ...] = Field(description="Days in chronological order")
    time_zone: str = Field(description="IANA time zone of the clock values")
    wake_target: str | None = Field(
        default=None, description="Desired wake time (HH:MM) for advanced metrics"
    )

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str) -> str:
        if not is_valid_iana_time_zone(value):
            raise ValueError(f'unknown IANA time zone "{value}"')
        return value

    @field_validator("wake_target")
    @classmethod
    def validate_wake_target(cls, value: str | None) -> str | None:
        return value if value is None else _check_clock(value)


class AdvancedMetrics(CamelModel):
    """Extra projections available with two weeks of data and a wake target."""

    rem_cycle_timing: tuple[int, ...] = Field(
        description="Minutes after onset at which each 90-minute cycle completes"
    )
    ideal_bedtime_window: str = Field(description="30-minute bedtime range (HH:MM - HH:MM)")
    recovery_projection: str = Field(description="Templated sleep-debt recovery narrative")


class AnalysisReport(CamelModel):
    """Aggregate output of one analysis run."""

    days_analyzed: int = Field(ge=0, description="Number of days in the run")
    average_sleep_onset: str = Field(description="Circular average onset (HH:MM)")
    average_wake_time: str = Field(description="Circular average wake time (HH:MM)")
    average_duration_hours: float = Field(ge=0, description="Mean sleep duration, 1 decimal")
    sleep_consistency_score: int = Field(ge=0, le=100, description="Regularity score")
    circadian_stability: CircadianStability = Field(description="Midpoint stability class")
    chronotype: Chronotype = Field(description="Chronotype estimated from average onset")
    sleep_debt_hours: float = Field(description="Shortfall vs 7.5h/night (negative = surplus)")
    night_disruption_frequency: float = Field(ge=0, description="Night checks per night")
    risk_indicators: tuple[str, ...] = Field(default=(), description="Fired risk templates")
    optimization_suggestions: tuple[str, ...] = Field(
        default=(), max_length=5, description="Ordered recommendations"
    )
    advanced_metrics: AdvancedMetrics | None = Field(default=None)


class AnalysisRequest(CamelModel):
    """Body of an analyze/export request."""

    raw_text: str = Field(description="Structured text or JSON array of daily records")
    time_zone: str | None = Field(
        default=None, description="IANA time zone (defaults to the server's configured zone)"
    )
    wake_target: str | None = Field(
        default=None, description="Desired wake time (HH:MM); used with 14+ days"
    )
    reference_date: date_type | None = Field(
        default=None, description="Date that 'Day 1' maps to in structured text"
    )
