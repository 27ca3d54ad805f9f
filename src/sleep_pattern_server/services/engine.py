"""Deterministic sleep-pattern estimation engine.

Turns 7-30 days of phone-usage telemetry into sleep timing estimates and
aggregate indicators using closed-form heuristics only.

Pipeline (strictly ordered, no feedback):

    1. Per-day estimates: onset, wake, duration, awakenings.
    2. Aggregates from the estimates: averages, consistency, circadian
       stability, chronotype, sleep debt, disruption frequency, risks.
    3. Advanced metrics (14+ days with a wake target).

Suggestions are composed afterwards by
:class:`~sleep_pattern_server.services.suggestions.SuggestionGenerator`.

Clock arithmetic
----------------

Clock values are minute-of-day integers. Averages use the evening fold
(times from 18:00 become negative offsets) so that 23:50 and 00:10 average
to midnight. Spreads use deviations from the circular mean, so a schedule
straddling midnight is not mistaken for a 24-hour scatter.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from statistics import mean
from zoneinfo import ZoneInfo

import structlog
from pydantic import BaseModel, ConfigDict, Field

from sleep_pattern_server.core.exceptions import InvariantError
from sleep_pattern_server.core.time_utils import (
    MINUTES_PER_DAY,
    circular_midpoint,
    clock_difference,
    fold_evening,
    is_valid_iana_time_zone,
    minutes_of_day,
    minutes_to_clock,
    round_half_up,
    wrap_minutes,
)
from sleep_pattern_server.schemas.sleep import (
    AdvancedMetrics,
    AnalysisInput,
    AnalysisReport,
    Chronotype,
    CircadianStability,
    DailyRecord,
)
from sleep_pattern_server.services.templates import (
    RECOVERY_DEFICIT_TEMPLATE,
    RECOVERY_NEUTRAL_TEMPLATE,
    RECOVERY_SURPLUS_TEMPLATE,
    RISK_TEMPLATES,
    RiskCondition,
)

logger = structlog.get_logger()

MIN_DAYS = 7
MAX_DAYS = 30
ADVANCED_METRICS_MIN_DAYS = 14

SLEEP_CYCLE_MINUTES = 90
BEDTIME_WINDOW_MINUTES = 30

# Onsets before noon belong to the night that started the previous evening
_NEXT_DAY_ONSET_BEFORE = 12 * 60

# Chronotype cut-offs on the "hours past the previous midnight" scale
_MORNING_BEFORE = 22.5 * 60
_INTERMEDIATE_UNTIL = 24.5 * 60
_CHRONOTYPE_WRAP_BEFORE = 6 * 60

# Circadian stability: standard deviation of the sleep midpoint (minutes)
_STABLE_BELOW = 30.0
_MODERATE_BELOW = 60.0

# Risk indicator thresholds
SHORT_SLEEP_HOURS = 6.0
SHORT_SLEEP_MIN_STREAK = 3
WAKE_VARIABILITY_MINUTES = 90.0
EARLY_MORNING_WINDOW = (2 * 60, 4 * 60)
EARLY_MORNING_MIN_SHARE = 0.3
LATE_ONSET_WINDOW = (2 * 60, 6 * 60)
LATE_ONSET_MIN_SHARE = 0.4


class AnalysisConfig(BaseModel):
    """Tunable heuristics for the engine.

    Passed in explicitly so that nothing in the computation depends on
    module-level state and tests can vary the thresholds.
    """

    model_config = ConfigDict(frozen=True)

    inactivity_threshold_minutes: int = Field(
        50, ge=45, le=60, description="Lag between last interaction and sleep onset"
    )
    brief_check_minutes: float = Field(
        2, ge=0, description="Night checks shorter than this are glances, not wake-ups"
    )
    awakening_minutes: float = Field(
        5, ge=0, description="Checks longer than this are subtracted from sleep"
    )
    unlock_burst_window_minutes: int = Field(
        10, ge=1, description="Two unlocks this close together mark a wake-up"
    )
    ideal_sleep_hours: float = Field(7.5, gt=0)
    ideal_range_hours: tuple[float, float] = Field((7.0, 9.0))
    recovery_hours_per_night: float = Field(0.5, gt=0)


DEFAULT_ANALYSIS_CONFIG = AnalysisConfig()


@dataclass(frozen=True)
class DailyEstimate:
    """Sleep estimate for one night. Lives only for the duration of a run."""

    date: str
    sleep_onset: datetime
    wake_time: datetime
    duration_hours: float
    night_awakenings: int
    night_check_minutes: tuple[int, ...] = ()

    @property
    def onset_minutes(self) -> int:
        return self.sleep_onset.hour * 60 + self.sleep_onset.minute

    @property
    def wake_minutes(self) -> int:
        return self.wake_time.hour * 60 + self.wake_time.minute

    @property
    def midpoint_minutes(self) -> float:
        return circular_midpoint(self.onset_minutes, self.wake_minutes)

    @property
    def night_check_count(self) -> int:
        return len(self.night_check_minutes)


# ======================================================================
# Statistics helpers
# ======================================================================


def circular_average_minutes(minutes: Sequence[float]) -> float:
    """Average clock times with the evening fold, normalized to ``[0, 1440)``."""
    return wrap_minutes(mean(fold_evening(m) for m in minutes))


def circular_stddev_minutes(minutes: Sequence[float]) -> float:
    """Population standard deviation of clock times around their circular mean."""
    angles = [2 * math.pi * m / MINUTES_PER_DAY for m in minutes]
    mean_angle = math.atan2(
        sum(math.sin(a) for a in angles), sum(math.cos(a) for a in angles)
    )
    centre = wrap_minutes(mean_angle * MINUTES_PER_DAY / (2 * math.pi))
    half_day = MINUTES_PER_DAY / 2
    deviations = [((m - centre + half_day) % MINUTES_PER_DAY) - half_day for m in minutes]
    return math.sqrt(mean(d * d for d in deviations))


def _in_window(minutes: int, window: tuple[int, int]) -> bool:
    start, end = window
    return start <= minutes < end


# ======================================================================
# Engine
# ======================================================================


class SleepAnalysisEngine:
    """Estimate sleep patterns from behavioral phone-usage data."""

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        """Initialize engine.

        Args:
            config: Heuristic thresholds (defaults to ``DEFAULT_ANALYSIS_CONFIG``)
        """
        self.config = config or DEFAULT_ANALYSIS_CONFIG
        self.logger = logger.bind(service="engine")

    def analyze(self, analysis_input: AnalysisInput) -> AnalysisReport:
        """Run the full analysis for one set of days.

        Args:
            analysis_input: Parsed days plus time zone and optional wake target

        Returns:
            AnalysisReport with empty ``optimization_suggestions``

        Raises:
            InvariantError: If the day count is outside 7-30 or the time zone is
                unknown (the parser guarantees both, so reaching here is a
                caller bug)
        """
        days = analysis_input.days
        if not MIN_DAYS <= len(days) <= MAX_DAYS:
            raise InvariantError(
                f"Analysis requires {MIN_DAYS}-{MAX_DAYS} days of data, got {len(days)}"
            )
        if not is_valid_iana_time_zone(analysis_input.time_zone):
            raise InvariantError(f'Unknown IANA time zone "{analysis_input.time_zone}"')

        zone = ZoneInfo(analysis_input.time_zone)
        estimates = [self.estimate_day(day, zone) for day in days]

        average_onset = minutes_to_clock(
            circular_average_minutes([e.onset_minutes for e in estimates])
        )
        average_wake = minutes_to_clock(
            circular_average_minutes([e.wake_minutes for e in estimates])
        )
        sleep_debt = self.compute_sleep_debt(estimates)
        risk_indicators = self.identify_risks(estimates)

        advanced_metrics = None
        if len(days) >= ADVANCED_METRICS_MIN_DAYS and analysis_input.wake_target:
            advanced_metrics = self.compute_advanced_metrics(
                estimates, analysis_input.wake_target, sleep_debt
            )

        report = AnalysisReport(
            days_analyzed=len(days),
            average_sleep_onset=average_onset,
            average_wake_time=average_wake,
            average_duration_hours=round(mean(e.duration_hours for e in estimates), 1),
            sleep_consistency_score=self.compute_consistency_score(estimates),
            circadian_stability=self.classify_circadian_stability(estimates),
            chronotype=classify_chronotype(average_onset),
            sleep_debt_hours=sleep_debt,
            night_disruption_frequency=round(
                mean(e.night_check_count for e in estimates), 1
            ),
            risk_indicators=tuple(RISK_TEMPLATES[c] for c in risk_indicators),
            advanced_metrics=advanced_metrics,
        )

        self.logger.debug(
            "Sleep analysis complete",
            days=report.days_analyzed,
            risk_count=len(risk_indicators),
            advanced=advanced_metrics is not None,
        )
        return report

    # ------------------------------------------------------------------
    # Per-day estimate
    # ------------------------------------------------------------------

    def estimate_day(self, day: DailyRecord, zone: ZoneInfo) -> DailyEstimate:
        """Estimate onset, wake, duration and awakenings for one night."""
        cfg = self.config
        last_activity = minutes_of_day(day.last_activity)
        first_activity = minutes_of_day(day.first_activity)
        night_span = clock_difference(last_activity, first_activity)

        # A sustained check after the last activity pushes the onset later
        onset_anchor = last_activity
        latest_offset = 0
        for check in day.night_checks:
            if check.duration_minutes is None or check.duration_minutes < cfg.brief_check_minutes:
                continue
            offset = clock_difference(last_activity, minutes_of_day(check.time))
            if 0 < offset < night_span and offset > latest_offset:
                latest_offset = offset
                onset_anchor = minutes_of_day(check.time)

        onset = (onset_anchor + cfg.inactivity_threshold_minutes) % MINUTES_PER_DAY
        wake = self._refine_wake(day, onset, first_activity)
        in_bed_minutes = clock_difference(onset, wake)

        duration_minutes = float(in_bed_minutes)
        awakenings = 0
        for check in day.night_checks:
            if check.duration_minutes is None:
                # Unknown length: counts as an awakening, sleep time untouched
                awakenings += 1
            elif check.duration_minutes > cfg.awakening_minutes:
                duration_minutes -= check.duration_minutes
                awakenings += 1

        onset_date = day.date if onset >= _NEXT_DAY_ONSET_BEFORE else day.date + timedelta(days=1)
        sleep_onset = datetime.combine(
            onset_date, time(onset // 60, onset % 60), tzinfo=zone
        )
        wake_time = sleep_onset + timedelta(minutes=in_bed_minutes)

        return DailyEstimate(
            date=day.date.isoformat(),
            sleep_onset=sleep_onset,
            wake_time=wake_time,
            duration_hours=max(duration_minutes, 0.0) / 60,
            night_awakenings=awakenings,
            night_check_minutes=tuple(minutes_of_day(c.time) for c in day.night_checks),
        )

    def _refine_wake(self, day: DailyRecord, onset: int, first_activity: int) -> int:
        """Pull the wake estimate earlier when an unlock burst precedes first activity."""
        bursts = day.unlock_burst_times
        if not bursts or len(bursts) < 2:
            return first_activity

        # Order bursts along the night, starting from onset
        offsets = sorted(clock_difference(onset, minutes_of_day(b)) for b in bursts)
        first_offset = clock_difference(onset, first_activity)
        window = self.config.unlock_burst_window_minutes
        for earlier, later in zip(offsets, offsets[1:], strict=False):
            if later - earlier <= window:
                if earlier < first_offset:
                    return (onset + earlier) % MINUTES_PER_DAY
                break
        return first_activity

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def compute_consistency_score(self, estimates: Sequence[DailyEstimate]) -> int:
        """Score 0-100 from onset/wake spread and distance from the ideal duration range."""
        low, high = self.config.ideal_range_hours
        onset_sd = circular_stddev_minutes([e.onset_minutes for e in estimates])
        wake_sd = circular_stddev_minutes([e.wake_minutes for e in estimates])
        range_deviation = mean(
            max(low - e.duration_hours, 0.0, e.duration_hours - high) for e in estimates
        )

        onset_penalty = min(onset_sd / 2, 30)
        wake_penalty = min(wake_sd / 2, 30)
        duration_penalty = min(range_deviation * 10, 40)

        return round_half_up(max(0.0, 100 - onset_penalty - wake_penalty - duration_penalty))

    def classify_circadian_stability(
        self, estimates: Sequence[DailyEstimate]
    ) -> CircadianStability:
        """Classify how steady the nightly sleep midpoint is."""
        spread = circular_stddev_minutes([e.midpoint_minutes for e in estimates])
        if spread < _STABLE_BELOW:
            return CircadianStability.STABLE
        if spread < _MODERATE_BELOW:
            return CircadianStability.MODERATE
        return CircadianStability.UNSTABLE

    def compute_sleep_debt(self, estimates: Sequence[DailyEstimate]) -> float:
        """Ideal minus actual total sleep in hours (positive = debt)."""
        ideal = self.config.ideal_sleep_hours * len(estimates)
        actual = sum(e.duration_hours for e in estimates)
        return round(ideal - actual, 1)

    def identify_risks(self, estimates: Sequence[DailyEstimate]) -> list[RiskCondition]:
        """Evaluate each risk rule independently, in fixed report order."""
        risks: list[RiskCondition] = []
        day_count = len(estimates)

        streak = longest = 0
        for estimate in estimates:
            streak = streak + 1 if estimate.duration_hours < SHORT_SLEEP_HOURS else 0
            longest = max(longest, streak)
        if longest >= SHORT_SLEEP_MIN_STREAK:
            risks.append(RiskCondition.SHORT_DURATION)

        wake_sd = circular_stddev_minutes([e.wake_minutes for e in estimates])
        if wake_sd > WAKE_VARIABILITY_MINUTES:
            risks.append(RiskCondition.WAKE_VARIABILITY)

        early_use_days = sum(
            1
            for e in estimates
            if any(_in_window(m, EARLY_MORNING_WINDOW) for m in e.night_check_minutes)
        )
        if early_use_days >= day_count * EARLY_MORNING_MIN_SHARE:
            risks.append(RiskCondition.EARLY_MORNING_USE)

        late_onsets = sum(1 for e in estimates if _in_window(e.onset_minutes, LATE_ONSET_WINDOW))
        if late_onsets >= day_count * LATE_ONSET_MIN_SHARE:
            risks.append(RiskCondition.LATE_ONSET)

        return risks

    def compute_advanced_metrics(
        self,
        estimates: Sequence[DailyEstimate],
        wake_target: str,
        sleep_debt: float,
    ) -> AdvancedMetrics:
        """Sleep-cycle markers, ideal bedtime window and debt recovery projection."""
        cfg = self.config
        average_duration = mean(e.duration_hours for e in estimates)
        cycles = round_half_up(average_duration * 60 / SLEEP_CYCLE_MINUTES)
        rem_cycle_timing = tuple(i * SLEEP_CYCLE_MINUTES for i in range(1, cycles + 1))

        bedtime = (
            minutes_of_day(wake_target)
            - round_half_up(cfg.ideal_sleep_hours * 60)
            - cfg.inactivity_threshold_minutes
        )
        window = (
            f"{minutes_to_clock(bedtime)} - "
            f"{minutes_to_clock(bedtime + BEDTIME_WINDOW_MINUTES)}"
        )

        if sleep_debt > 0:
            nights = math.ceil(sleep_debt / cfg.recovery_hours_per_night)
            projection = RECOVERY_DEFICIT_TEMPLATE.format(nights=nights)
        elif sleep_debt < 0:
            projection = RECOVERY_SURPLUS_TEMPLATE
        else:
            projection = RECOVERY_NEUTRAL_TEMPLATE

        return AdvancedMetrics(
            rem_cycle_timing=rem_cycle_timing,
            ideal_bedtime_window=window,
            recovery_projection=projection,
        )


def classify_chronotype(average_onset: str) -> Chronotype:
    """Classify chronotype from an average onset clock string.

    Onsets before 06:00 count as the previous night (00:30 -> 24:30).
    """
    onset = minutes_of_day(average_onset)
    if onset < _CHRONOTYPE_WRAP_BEFORE:
        onset += MINUTES_PER_DAY
    if onset < _MORNING_BEFORE:
        return Chronotype.MORNING
    if onset <= _INTERMEDIATE_UNTIL:
        return Chronotype.INTERMEDIATE
    return Chronotype.EVENING
