"""Reviewed wording for risk indicators and recommendations.

Every sentence a report can contain lives here, keyed by a condition
identifier. Nothing derived from user input is ever interpolated; the
only substitution is the computed night count in the recovery projection.
Bump ``TEMPLATES_VERSION`` whenever a sentence changes.
"""

from enum import Enum

TEMPLATES_VERSION = "1.0.0"


class RiskCondition(str, Enum):
    """Risk indicators in report order."""

    SHORT_DURATION = "short_duration"
    WAKE_VARIABILITY = "wake_variability"
    EARLY_MORNING_USE = "early_morning_use"
    LATE_ONSET = "late_onset"


class SuggestionRule(str, Enum):
    """Recommendation rules in priority order."""

    WAKE_ANCHORING = "wake_anchoring"
    DIGITAL_SUNSET = "digital_sunset"
    BEDTIME_SHIFT = "bedtime_shift"
    SLEEP_EXTENSION = "sleep_extension"
    MORNING_LIGHT = "morning_light"
    DEBT_RECOVERY = "debt_recovery"
    ENVIRONMENT = "environment"


RISK_TEMPLATES: dict[RiskCondition, str] = {
    RiskCondition.SHORT_DURATION: (
        "Pattern suggests insufficient sleep duration (< 6 hours) "
        "for multiple consecutive days"
    ),
    RiskCondition.WAKE_VARIABILITY: (
        "Data indicates high wake time variability (> 90 minutes), "
        "which may affect circadian rhythm"
    ),
    RiskCondition.EARLY_MORNING_USE: (
        "Pattern suggests frequent phone use during deep sleep window (2-4 AM)"
    ),
    RiskCondition.LATE_ONSET: "Data indicates regularly delayed sleep onset (after 2 AM)",
}

SUGGESTION_TEMPLATES: dict[SuggestionRule, str] = {
    SuggestionRule.WAKE_ANCHORING: (
        "May benefit from fixed wake time anchoring: Set a consistent wake time "
        "(including weekends) to stabilize circadian rhythm"
    ),
    SuggestionRule.DIGITAL_SUNSET: (
        "Consider implementing a 60-minute digital sunset: Place phone in another room "
        "before sleep to reduce night disruptions"
    ),
    SuggestionRule.BEDTIME_SHIFT: (
        "Pattern suggests gradual 15-minute bedtime shift: Move bedtime earlier by "
        "15 minutes each week until reaching target"
    ),
    SuggestionRule.SLEEP_EXTENSION: (
        "Data indicates need for sleep extension: Aim to increase sleep opportunity "
        "by 30-60 minutes per night"
    ),
    SuggestionRule.MORNING_LIGHT: (
        "May benefit from morning sunlight exposure within 30 minutes of waking "
        "to strengthen circadian signals"
    ),
    SuggestionRule.DEBT_RECOVERY: (
        "Consider sleep recovery protocol: Prioritize 8-9 hours sleep opportunity "
        "for 1-2 weeks to address accumulated sleep debt"
    ),
    SuggestionRule.ENVIRONMENT: (
        "Pattern suggests reducing sleep environment disruptions: Minimize phone checks "
        "and optimize bedroom conditions (dark, cool, quiet)"
    ),
}

MAINTENANCE_SUGGESTIONS: tuple[str, ...] = (
    "Current sleep pattern appears relatively stable; maintain consistent sleep-wake schedule",
    "Continue monitoring for changes in sleep quality or duration",
    "Consider blue light reduction 1-2 hours before bedtime to support natural "
    "melatonin production",
)

RECOVERY_DEFICIT_TEMPLATE = (
    "May benefit from approximately {nights} nights of adequate sleep to address "
    "estimated sleep debt (conservative estimate: ~0.5 hours recovery per night)"
)
RECOVERY_SURPLUS_TEMPLATE = "Data suggests sleep surplus; current pattern appears sustainable"
RECOVERY_NEUTRAL_TEMPLATE = "Sleep balance appears neutral"

# Risk indicator -> the suggestion it triggers
RISK_SUGGESTIONS: dict[RiskCondition, SuggestionRule] = {
    RiskCondition.WAKE_VARIABILITY: SuggestionRule.WAKE_ANCHORING,
    RiskCondition.EARLY_MORNING_USE: SuggestionRule.DIGITAL_SUNSET,
    RiskCondition.LATE_ONSET: SuggestionRule.BEDTIME_SHIFT,
    RiskCondition.SHORT_DURATION: SuggestionRule.SLEEP_EXTENSION,
}

_CONDITION_BY_TEXT = {text: condition for condition, text in RISK_TEMPLATES.items()}


def risk_condition_for(text: str) -> RiskCondition | None:
    """Map a stored risk sentence back to its condition, if it is one of ours."""
    return _CONDITION_BY_TEXT.get(text)
