"""Behavioral recommendations for an analysis report."""

import structlog

from sleep_pattern_server.schemas.sleep import AnalysisReport, CircadianStability
from sleep_pattern_server.services.templates import (
    MAINTENANCE_SUGGESTIONS,
    RISK_SUGGESTIONS,
    SUGGESTION_TEMPLATES,
    SuggestionRule,
    risk_condition_for,
)

logger = structlog.get_logger()

MAX_SUGGESTIONS = 5
SLEEP_DEBT_THRESHOLD_HOURS = 3.0
DISRUPTION_THRESHOLD = 1.0

# Evaluation order; earlier rules survive truncation
RULE_ORDER: tuple[SuggestionRule, ...] = (
    SuggestionRule.WAKE_ANCHORING,
    SuggestionRule.DIGITAL_SUNSET,
    SuggestionRule.BEDTIME_SHIFT,
    SuggestionRule.SLEEP_EXTENSION,
    SuggestionRule.MORNING_LIGHT,
    SuggestionRule.DEBT_RECOVERY,
    SuggestionRule.ENVIRONMENT,
)


class SuggestionGenerator:
    """Map report indicators to fixed recommendation sentences.

    Each rule contributes at most one sentence. Risk-driven rules are
    matched through the condition behind each risk sentence, threshold
    rules through the report's numeric fields. When nothing fires the
    three maintenance sentences are returned instead.
    """

    def __init__(self) -> None:
        """Initialize suggestion generator."""
        self.logger = logger.bind(service="suggestions")

    def suggest(self, report: AnalysisReport) -> list[str]:
        """Compose up to five suggestions in rule priority order.

        Args:
            report: Engine output (its own suggestions are ignored)

        Returns:
            Ordered list of suggestion sentences
        """
        fired = self._fired_rules(report)
        if not fired:
            self.logger.debug("No suggestion rules fired, using maintenance set")
            return list(MAINTENANCE_SUGGESTIONS)

        suggestions = [SUGGESTION_TEMPLATES[rule] for rule in RULE_ORDER if rule in fired]
        self.logger.debug(
            "Suggestions composed",
            fired=len(suggestions),
            truncated=max(len(suggestions) - MAX_SUGGESTIONS, 0),
        )
        return suggestions[:MAX_SUGGESTIONS]

    def _fired_rules(self, report: AnalysisReport) -> set[SuggestionRule]:
        fired: set[SuggestionRule] = set()

        for text in report.risk_indicators:
            condition = risk_condition_for(text)
            if condition is not None:
                fired.add(RISK_SUGGESTIONS[condition])

        if report.circadian_stability != CircadianStability.STABLE:
            fired.add(SuggestionRule.MORNING_LIGHT)
        if report.sleep_debt_hours > SLEEP_DEBT_THRESHOLD_HOURS:
            fired.add(SuggestionRule.DEBT_RECOVERY)
        if report.night_disruption_frequency > DISRUPTION_THRESHOLD:
            fired.add(SuggestionRule.ENVIRONMENT)

        return fired
