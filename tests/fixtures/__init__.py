"""Test fixtures for sleep-pattern-server."""

from tests.fixtures.sleep_inputs import (
    EXAMPLE_STRUCTURED_INPUT,
    REFERENCE_DATE,
    START_DATE,
    json_records,
    json_text,
    make_day,
    make_days,
    make_input,
    structured_text,
)

__all__ = [
    "EXAMPLE_STRUCTURED_INPUT",
    "REFERENCE_DATE",
    "START_DATE",
    "json_records",
    "json_text",
    "make_day",
    "make_days",
    "make_input",
    "structured_text",
]
