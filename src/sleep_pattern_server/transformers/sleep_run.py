"""Analysis run <-> stored SleepEstimatorRun transformer.

The store's schema asks for fields the behavioral engine never computes.
Those are filled with the fixed placeholders below; they are lossy
defaults, not measurements, and reading a run back cannot recover them.
"""

from datetime import UTC, datetime
from statistics import mean

from sleep_pattern_server.core.time_utils import (
    MINUTES_PER_DAY,
    clock_difference,
    minutes_of_day,
    minutes_to_clock,
    round_half_up,
)
from sleep_pattern_server.schemas.sleep import (
    AnalysisInput,
    AnalysisReport,
    CircadianStability,
    DailyRecord,
)
from sleep_pattern_server.schemas.sleep_run import (
    RUN_FORMAT_VERSION,
    NormalizedSleepInput,
    ReportModel,
    RunRiskIndicators,
    SleepEstimatorRun,
    SleepMetrics,
)
from sleep_pattern_server.services.engine import (
    DEFAULT_ANALYSIS_CONFIG,
    circular_average_minutes,
    classify_chronotype,
)

# Per-night placeholders for fields outside the behavioral model
PLACEHOLDER_QUALITY_RATING = 7
PLACEHOLDER_ACTIVITY_INTENSITY = 5
PLACEHOLDER_NUTRITION_SCORE = 7.0
PLACEHOLDER_CAFFEINE = 0.0
PLACEHOLDER_STRESS_LEVEL = 5
PLACEHOLDER_COGNITIVE_FATIGUE = 5
PLACEHOLDER_EMOTIONAL_STATE = 7
PLACEHOLDER_PREPARATION_RATING = 7
PLACEHOLDER_BRIGHTNESS = 3
PLACEHOLDER_NOISE = 3
PLACEHOLDER_ENVIRONMENT_SCORE = 7.0

# Run-level placeholders
PLACEHOLDER_DEEP_SLEEP = 0.2
PLACEHOLDER_REM_SLEEP = 0.25
PLACEHOLDER_SECONDARY_RISK = 0.3

CIRCADIAN_SCORES = {
    CircadianStability.STABLE: 0.9,
    CircadianStability.MODERATE: 0.6,
    CircadianStability.UNSTABLE: 0.3,
}

# Fallbacks for report fields a stored run does not keep
DEFAULT_AVERAGE_WAKE_TIME = "07:30"
DEFAULT_AVERAGE_ONSET = "23:30"

NANOSECONDS_PER_SECOND = 1_000_000_000


class SleepRunTransformer:
    """Transform engine input + output <-> SleepEstimatorRun."""

    @staticmethod
    def to_stored_run(
        analysis_input: AnalysisInput,
        report: AnalysisReport,
        inactivity_threshold_minutes: int = DEFAULT_ANALYSIS_CONFIG.inactivity_threshold_minutes,
    ) -> SleepEstimatorRun:
        """Map a completed run onto the store's shape.

        ``run_timestamp`` is left for the store to assign on save.
        """
        score = report.sleep_consistency_score / 100
        debt = report.sleep_debt_hours
        latency_hours = inactivity_threshold_minutes / 60
        risk_count = len(report.risk_indicators)

        summary = SleepMetrics(
            average_sleep_duration=report.average_duration_hours,
            sleep_efficiency=score,
            sleep_latency=latency_hours,
            deep_sleep_percentage=PLACEHOLDER_DEEP_SLEEP,
            rem_sleep_percentage=PLACEHOLDER_REM_SLEEP,
            sleep_consistency_score=score,
            restfulness_score=score,
            circadian_rhythm_score=CIRCADIAN_SCORES[report.circadian_stability],
            sleep_trend="Declining" if debt > 0 else "Improving" if debt < 0 else "Stable",
            overall_sleep_health_score=score,
        )

        if risk_count > 2:
            risk_level = 7
        elif risk_count > 0:
            risk_level = 4
        else:
            risk_level = 2

        risks = RunRiskIndicators(
            sleep_disorder_risk=0.6 if risk_count else 0.2,
            burnout_risk=PLACEHOLDER_SECONDARY_RISK,
            mood_instability_risk=PLACEHOLDER_SECONDARY_RISK,
            cognitive_fatigue_risk=PLACEHOLDER_SECONDARY_RISK,
            potential_sleep_disruption_factors=report.risk_indicators,
            optimization_suggestions=report.optimization_suggestions,
            sleep_improvement_estimate=abs(debt) * 0.1,
            projected_sleep_debt=debt,
            risk_level=risk_level,
            insomnia_likelihood=0.4 if risk_count else 0.1,
            performance_impact_score=abs(debt) * 0.15,
            intervention_recommendations=report.optimization_suggestions,
        )

        return SleepEstimatorRun(
            days_analyzed=report.days_analyzed,
            summary_metrics=summary,
            risk_indicators=risks,
            optimization_suggestions=report.optimization_suggestions,
            normalized_daily_inputs=tuple(
                SleepRunTransformer._normalize_day(
                    day, analysis_input.time_zone, score, inactivity_threshold_minutes
                )
                for day in analysis_input.days
            ),
            data_format_version=RUN_FORMAT_VERSION,
        )

    @staticmethod
    def _normalize_day(
        day: DailyRecord,
        time_zone: str,
        consistency: float,
        inactivity_threshold_minutes: int,
    ) -> NormalizedSleepInput:
        last_activity = minutes_of_day(day.last_activity)
        bedtime = (last_activity + inactivity_threshold_minutes) % MINUTES_PER_DAY
        wake_time = minutes_of_day(day.first_activity)

        return NormalizedSleepInput(
            time_zone=time_zone,
            bedtime=bedtime,
            wake_time=wake_time,
            sleep_duration=clock_difference(bedtime, wake_time) / 60,
            sleep_quality_rating=PLACEHOLDER_QUALITY_RATING,
            physical_activity_intensity=PLACEHOLDER_ACTIVITY_INTENSITY,
            screen_time_before_bed=day.total_screen_time_minutes / 60,
            nutrition_score=PLACEHOLDER_NUTRITION_SCORE,
            caffeine_consumption=PLACEHOLDER_CAFFEINE,
            stress_level=PLACEHOLDER_STRESS_LEVEL,
            cognitive_fatigue_score=PLACEHOLDER_COGNITIVE_FATIGUE,
            emotional_state_score=PLACEHOLDER_EMOTIONAL_STATE,
            sleep_preparation_rating=PLACEHOLDER_PREPARATION_RATING,
            sleep_consistency_score=consistency,
            sleep_awakening_count=len(day.night_checks),
            brightness_in_sleeping_area=PLACEHOLDER_BRIGHTNESS,
            noise_level_in_sleeping_area=PLACEHOLDER_NOISE,
            sleep_latency=inactivity_threshold_minutes / 60,
            environmental_quality_score=PLACEHOLDER_ENVIRONMENT_SCORE,
        )

    @staticmethod
    def to_report_model(run: SleepEstimatorRun) -> ReportModel:
        """Rebuild a display model from a stored run.

        Onset and wake averages come from the stored per-night bedtimes and
        wake times; chronotype is re-classified from that onset. Anything
        the store never kept falls back to a fixed default.
        """
        nights = run.normalized_daily_inputs
        if nights:
            average_onset = minutes_to_clock(circular_average_minutes([n.bedtime for n in nights]))
            average_wake = minutes_to_clock(circular_average_minutes([n.wake_time for n in nights]))
            disruption = round(mean(n.sleep_awakening_count for n in nights), 1)
        else:
            average_onset = DEFAULT_AVERAGE_ONSET
            average_wake = DEFAULT_AVERAGE_WAKE_TIME
            disruption = 0.0

        rhythm = run.summary_metrics.circadian_rhythm_score
        if rhythm > 0.8:
            stability = CircadianStability.STABLE
        elif rhythm > 0.5:
            stability = CircadianStability.MODERATE
        else:
            stability = CircadianStability.UNSTABLE

        output = AnalysisReport(
            days_analyzed=run.days_analyzed,
            average_sleep_onset=average_onset,
            average_wake_time=average_wake,
            average_duration_hours=max(run.summary_metrics.average_sleep_duration, 0.0),
            sleep_consistency_score=min(
                max(round_half_up(run.summary_metrics.sleep_consistency_score * 100), 0), 100
            ),
            circadian_stability=stability,
            chronotype=classify_chronotype(average_onset),
            sleep_debt_hours=run.risk_indicators.projected_sleep_debt,
            night_disruption_frequency=disruption,
            risk_indicators=run.risk_indicators.potential_sleep_disruption_factors,
            optimization_suggestions=run.optimization_suggestions[:5],
        )

        run_timestamp = None
        if run.run_timestamp is not None:
            run_timestamp = datetime.fromtimestamp(
                run.run_timestamp / NANOSECONDS_PER_SECOND, tz=UTC
            )

        return ReportModel(
            run_timestamp=run_timestamp,
            days_analyzed=run.days_analyzed,
            output=output,
        )
