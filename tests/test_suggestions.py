"""Tests for the suggestion generator."""

from typing import Any

from sleep_pattern_server.schemas.sleep import AnalysisReport, Chronotype, CircadianStability
from sleep_pattern_server.services.suggestions import MAX_SUGGESTIONS, SuggestionGenerator
from sleep_pattern_server.services.templates import (
    MAINTENANCE_SUGGESTIONS,
    RISK_SUGGESTIONS,
    RISK_TEMPLATES,
    SUGGESTION_TEMPLATES,
    RiskCondition,
    SuggestionRule,
    risk_condition_for,
)


def make_report(**overrides: Any) -> AnalysisReport:
    """Build a report with no rule firing unless overridden."""
    fields: dict[str, Any] = {
        "days_analyzed": 7,
        "average_sleep_onset": "23:30",
        "average_wake_time": "07:00",
        "average_duration_hours": 7.5,
        "sleep_consistency_score": 90,
        "circadian_stability": CircadianStability.STABLE,
        "chronotype": Chronotype.INTERMEDIATE,
        "sleep_debt_hours": 0.0,
        "night_disruption_frequency": 0.0,
    }
    fields.update(overrides)
    return AnalysisReport(**fields)


class TestSuggestionGenerator:
    """Tests for SuggestionGenerator."""

    def test_maintenance_when_nothing_fires(self) -> None:
        """Test a healthy report gets exactly the three maintenance suggestions."""
        suggestions = SuggestionGenerator().suggest(make_report())
        assert suggestions == list(MAINTENANCE_SUGGESTIONS)
        assert len(suggestions) == 3

    def test_single_risk(self) -> None:
        """Test a risk sentence maps to its recommendation."""
        report = make_report(risk_indicators=(RISK_TEMPLATES[RiskCondition.LATE_ONSET],))
        assert SuggestionGenerator().suggest(report) == [
            SUGGESTION_TEMPLATES[SuggestionRule.BEDTIME_SHIFT]
        ]

    def test_threshold_rules(self) -> None:
        """Test stability, debt and disruption rules in order."""
        report = make_report(
            circadian_stability=CircadianStability.MODERATE,
            sleep_debt_hours=3.1,
            night_disruption_frequency=1.2,
        )
        assert SuggestionGenerator().suggest(report) == [
            SUGGESTION_TEMPLATES[SuggestionRule.MORNING_LIGHT],
            SUGGESTION_TEMPLATES[SuggestionRule.DEBT_RECOVERY],
            SUGGESTION_TEMPLATES[SuggestionRule.ENVIRONMENT],
        ]

    def test_thresholds_are_strict(self) -> None:
        """Test debt of exactly 3h and one check per night do not fire."""
        report = make_report(sleep_debt_hours=3.0, night_disruption_frequency=1.0)
        assert SuggestionGenerator().suggest(report) == list(MAINTENANCE_SUGGESTIONS)

    def test_cap_keeps_highest_priority(self) -> None:
        """Test every rule firing still yields five suggestions in priority order."""
        report = make_report(
            risk_indicators=tuple(RISK_TEMPLATES[c] for c in RiskCondition),
            circadian_stability=CircadianStability.UNSTABLE,
            sleep_debt_hours=8.0,
            night_disruption_frequency=2.5,
        )
        suggestions = SuggestionGenerator().suggest(report)

        assert len(suggestions) == MAX_SUGGESTIONS
        assert suggestions == [
            SUGGESTION_TEMPLATES[rule]
            for rule in (
                SuggestionRule.WAKE_ANCHORING,
                SuggestionRule.DIGITAL_SUNSET,
                SuggestionRule.BEDTIME_SHIFT,
                SuggestionRule.SLEEP_EXTENSION,
                SuggestionRule.MORNING_LIGHT,
            )
        ]

    def test_risk_order_in_report_does_not_matter(self) -> None:
        """Test rule priority, not report order, decides suggestion order."""
        report = make_report(
            risk_indicators=(
                RISK_TEMPLATES[RiskCondition.SHORT_DURATION],
                RISK_TEMPLATES[RiskCondition.WAKE_VARIABILITY],
            )
        )
        assert SuggestionGenerator().suggest(report) == [
            SUGGESTION_TEMPLATES[SuggestionRule.WAKE_ANCHORING],
            SUGGESTION_TEMPLATES[SuggestionRule.SLEEP_EXTENSION],
        ]

    def test_unknown_risk_text_ignored(self) -> None:
        """Test free text that is not a known risk sentence fires nothing."""
        report = make_report(risk_indicators=("Something about wake time variability",))
        assert SuggestionGenerator().suggest(report) == list(MAINTENANCE_SUGGESTIONS)


class TestWordingTable:
    """Tests for the template table."""

    def test_every_risk_has_a_suggestion(self) -> None:
        """Test each risk condition maps back from its sentence and to a rule."""
        for condition, text in RISK_TEMPLATES.items():
            assert risk_condition_for(text) == condition
            assert condition in RISK_SUGGESTIONS

    def test_templates_are_probabilistic(self) -> None:
        """Test no sentence reads as a diagnosis."""
        sentences = [
            *RISK_TEMPLATES.values(),
            *SUGGESTION_TEMPLATES.values(),
            *MAINTENANCE_SUGGESTIONS,
        ]
        for sentence in sentences:
            assert "diagnos" not in sentence.lower()
