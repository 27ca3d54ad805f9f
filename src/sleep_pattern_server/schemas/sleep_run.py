"""Pydantic schemas for the persisted sleep-estimator run.

The shape is owned by the external run store. Many of its fields describe
things the behavioral engine never measures (nutrition, ambient noise,
sleep stages); the adapter in
:mod:`sleep_pattern_server.transformers.sleep_run` fills them with fixed
placeholders.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from sleep_pattern_server.schemas.sleep import AnalysisReport, CamelModel

RUN_FORMAT_VERSION = "1.0.0"


class NormalizedSleepInput(CamelModel):
    """One night in the store's normalized input shape.

    ``bedtime`` and ``wake_time`` are minute-of-day integers; durations
    and latencies are hours.
    """

    time_zone: str
    bedtime: int = Field(ge=0, lt=1440)
    wake_time: int = Field(ge=0, lt=1440)
    sleep_duration: float
    sleep_quality_rating: int
    nap_time: int | None = None
    nap_duration: int | None = None
    physical_activity_intensity: int
    screen_time_before_bed: float = Field(description="Total daily screen time in hours")
    nutrition_score: float
    caffeine_consumption: float
    substance_use_indicator: bool = False
    stress_level: int
    cognitive_fatigue_score: int
    emotional_state_score: int
    sleep_preparation_rating: int
    sleep_consistency_score: float = Field(ge=0, le=1)
    sleep_awakening_count: int = Field(ge=0)
    brightness_in_sleeping_area: int
    noise_level_in_sleeping_area: int
    sleep_latency: float
    environmental_quality_score: float


class SleepMetrics(CamelModel):
    """Run-level summary metrics, scores on a 0-1 scale."""

    average_sleep_duration: float
    sleep_efficiency: float
    sleep_latency: float
    deep_sleep_percentage: float
    rem_sleep_percentage: float
    sleep_consistency_score: float
    restfulness_score: float
    circadian_rhythm_score: float
    sleep_trend: str = Field(description="Declining, Improving or Stable")
    overall_sleep_health_score: float


class RunRiskIndicators(CamelModel):
    """Run-level risk block."""

    sleep_disorder_risk: float
    burnout_risk: float
    mood_instability_risk: float
    cognitive_fatigue_risk: float
    potential_sleep_disruption_factors: tuple[str, ...] = ()
    optimization_suggestions: tuple[str, ...] = ()
    sleep_improvement_estimate: float
    projected_sleep_debt: float
    risk_level: int = Field(ge=0, le=10)
    insomnia_likelihood: float
    performance_impact_score: float
    intervention_recommendations: tuple[str, ...] = ()


class SleepEstimatorRun(CamelModel):
    """A stored analysis run.

    ``run_timestamp`` (nanoseconds since the epoch) is assigned by the
    store on save, so freshly adapted runs leave it unset.
    """

    run_timestamp: int | None = None
    days_analyzed: int = Field(ge=0)
    summary_metrics: SleepMetrics
    risk_indicators: RunRiskIndicators
    optimization_suggestions: tuple[str, ...] = ()
    # Sensor-derived blocks are never produced here, only passed through
    advanced_metrics: dict[str, Any] | None = None
    normalized_daily_inputs: tuple[NormalizedSleepInput, ...] = ()
    audio_analysis_metadata: dict[str, Any] | None = None
    sensor_data_used: dict[str, bool] | None = None
    data_format_version: str = RUN_FORMAT_VERSION
    notes: str | None = None


class ReportModel(CamelModel):
    """Display model reconstructed from a stored run."""

    run_timestamp: datetime | None = None
    days_analyzed: int
    output: AnalysisReport
