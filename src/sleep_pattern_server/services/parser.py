"""Input parser for behavioral sleep data.

Accepts two textual formats and turns them into validated ``DailyRecord``
tuples:

    Structured text (tried first):

        Day 1:
        Last activity: 00:42
        First activity: 07:18
        Night checks: 2 (02:14, 04:33)
        Total screen time: 5h 32m

    JSON (fallback): an array of objects carrying ``date``,
    ``lastActivity``, ``firstActivity`` and ``totalScreenTimeMinutes``,
    plus optional ``nightChecks`` and enrichment fields.

Problems are collected rather than raised so the caller can show every
one of them at once. A day with any problem is left out of the result.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

import pydantic
import structlog

from sleep_pattern_server.core.time_utils import is_valid_clock_format, is_valid_iana_time_zone
from sleep_pattern_server.schemas.sleep import AnalysisInput, DailyRecord

logger = structlog.get_logger()

MIN_DAYS = 7
MAX_DAYS = 30

DAY_HEADER = re.compile(r"^day\s+(\d+)\s*:.*$", re.IGNORECASE)
DATE_HEADER = re.compile(r"^([\d-]+)\s*(?:\([^)]*\))?\s*(?::.*)?$")
# Lines that start like a header but match neither form above
HEADER_LIKE = re.compile(r"^(?:day\b|\d{4}-)", re.IGNORECASE)
FIELD_LINE = re.compile(
    r"^(last activity|first activity|night checks|total screen time)\s*:\s*(.*)$",
    re.IGNORECASE,
)
NIGHT_CHECKS = re.compile(r"^(\d+)\s*(?:\((.*)\))?$")
SCREEN_TIME = re.compile(
    r"^(?:(?P<hours>\d+)\s*h(?:ours?|rs?)?)?\s*"
    r"(?:(?P<minutes>\d+)\s*(?:minutes|mins|min|m)?)?$",
    re.IGNORECASE,
)

# Structured-text field label -> JSON key
_STRUCTURED_FIELDS = {
    "last activity": "lastActivity",
    "first activity": "firstActivity",
    "night checks": "nightChecks",
    "total screen time": "totalScreenTimeMinutes",
}
_REQUIRED_LABELS = {
    "lastActivity": "Last activity",
    "firstActivity": "First activity",
    "totalScreenTimeMinutes": "Total screen time",
}


class InputFormat(str, Enum):
    """Which of the two accepted formats produced the days."""

    STRUCTURED_TEXT = "structured_text"
    JSON = "json"


@dataclass(frozen=True)
class ParsedInput:
    """Validated days ready for analysis."""

    days: tuple[DailyRecord, ...]
    time_zone: str

    def to_analysis_input(self, wake_target: str | None = None) -> AnalysisInput:
        """Attach run parameters for the engine."""
        return AnalysisInput(days=self.days, time_zone=self.time_zone, wake_target=wake_target)


@dataclass(frozen=True)
class ParseSuccess:
    """Input accepted."""

    input: ParsedInput
    input_format: InputFormat

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ParseFailure:
    """Input rejected; ``errors`` lists every problem found."""

    errors: tuple[str, ...]

    @property
    def ok(self) -> bool:
        return False


ParseResult = ParseSuccess | ParseFailure


@dataclass
class _FormatAttempt:
    """Outcome of trying one input format."""

    input_format: InputFormat
    days: list[DailyRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    blocks_seen: int = 0
    recognized: bool = True


@dataclass
class _DayBlock:
    """A structured-text day being assembled."""

    index: int
    label: str
    date: date_type | None
    values: dict[str, Any] = field(default_factory=dict)
    fields_seen: set[str] = field(default_factory=set)
    invalid: set[str] = field(default_factory=set)
    errors: list[str] = field(default_factory=list)

    @property
    def prefix(self) -> str:
        return f"Day {self.index} ({self.label})"


class InputParser:
    """Parse raw user text into validated daily records."""

    def __init__(self) -> None:
        """Initialize input parser."""
        self.logger = logger.bind(service="parser")

    def parse(
        self,
        raw_text: str,
        time_zone: str,
        reference_date: date_type | None = None,
    ) -> ParseResult:
        """Parse structured text or JSON into daily records.

        Args:
            raw_text: User-supplied text in either accepted format
            time_zone: IANA time zone the clock values are in
            reference_date: Date that ``Day 1`` maps to in structured text
                (defaults to today in ``time_zone``)

        Returns:
            ParseSuccess with 7-30 validated days, or ParseFailure listing
            every problem found
        """
        if not is_valid_iana_time_zone(time_zone):
            return ParseFailure(
                (
                    f'Invalid IANA time zone: "{time_zone}". Please use a valid timezone '
                    'like "America/New_York" or "Europe/London".',
                )
            )

        if not raw_text or not raw_text.strip():
            return ParseFailure(
                ("No input provided. Paste structured text or a JSON array of daily records.",)
            )

        reference = reference_date or datetime.now(ZoneInfo(time_zone)).date()

        attempt = self._parse_structured(raw_text, reference)
        if not attempt.days:
            json_attempt = self._parse_json(raw_text)
            # Text that is not JSON but had day headers was meant as structured text
            if json_attempt.recognized or attempt.blocks_seen == 0:
                attempt = json_attempt

        errors = list(attempt.errors)
        day_count = len(attempt.days)
        if day_count < MIN_DAYS:
            errors.append(
                f"Insufficient data: {day_count} days provided, "
                f"minimum {MIN_DAYS} required for analysis."
            )
        elif day_count > MAX_DAYS:
            errors.append(
                f"Too much data: {day_count} days provided, maximum {MAX_DAYS} allowed."
            )

        if errors:
            self.logger.info(
                "Sleep input rejected",
                input_format=attempt.input_format.value,
                error_count=len(errors),
                valid_days=day_count,
            )
            return ParseFailure(tuple(errors))

        self.logger.info(
            "Sleep input parsed",
            input_format=attempt.input_format.value,
            days=day_count,
        )
        return ParseSuccess(
            input=ParsedInput(days=tuple(attempt.days), time_zone=time_zone),
            input_format=attempt.input_format,
        )

    # ------------------------------------------------------------------
    # Structured text
    # ------------------------------------------------------------------

    def _parse_structured(self, raw_text: str, reference: date_type) -> _FormatAttempt:
        attempt = _FormatAttempt(input_format=InputFormat.STRUCTURED_TEXT)
        current: _DayBlock | None = None
        seen_dates: dict[date_type, int] = {}

        for raw_line in raw_text.splitlines():
            line = raw_line.strip()
            if not line:
                continue

            header = self._match_header(line, attempt.blocks_seen + 1, reference)
            if header is not None:
                if current is not None:
                    self._finish_block(current, attempt, seen_dates)
                attempt.blocks_seen += 1
                current = header
                continue

            if current is None:
                continue

            match = FIELD_LINE.match(line)
            if match is None:
                continue

            key = _STRUCTURED_FIELDS[match.group(1).lower()]
            if key in current.fields_seen:
                current.errors.append(
                    f'{current.prefix}: Duplicate field "{match.group(1).capitalize()}".'
                )
                continue
            current.fields_seen.add(key)

            content = match.group(2).strip()
            if key == "nightChecks":
                self._parse_night_checks(current, content)
            elif key == "totalScreenTimeMinutes":
                self._parse_screen_time(current, content)
            else:
                self._parse_clock_field(current, key, content)

        if current is not None:
            self._finish_block(current, attempt, seen_dates)

        return attempt

    def _match_header(self, line: str, index: int, reference: date_type) -> _DayBlock | None:
        day_match = DAY_HEADER.match(line)
        if day_match:
            day_number = int(day_match.group(1))
            if day_number < 1:
                block = _DayBlock(index=index, label=f"Day {day_number}", date=None)
                block.errors.append(
                    f"{block.prefix}: Invalid day number {day_number}. Days are numbered from 1."
                )
                return block
            day_date = reference - timedelta(days=day_number - 1)
            return _DayBlock(index=index, label=day_date.isoformat(), date=day_date)

        date_match = DATE_HEADER.match(line)
        if date_match and "-" in date_match.group(1):
            raw_date = date_match.group(1)
            block = _DayBlock(index=index, label=raw_date, date=_parse_iso_date(raw_date))
            if block.date is None:
                block.errors.append(
                    f'{block.prefix}: Invalid date "{raw_date}". Expected YYYY-MM-DD format.'
                )
            return block

        if HEADER_LIKE.match(line):
            block = _DayBlock(index=index, label=line, date=None)
            block.errors.append(
                f'{block.prefix}: Unrecognized day header. Expected "Day N:" or "YYYY-MM-DD:".'
            )
            return block

        return None

    def _parse_clock_field(self, block: _DayBlock, key: str, content: str) -> None:
        label = _REQUIRED_LABELS[key].lower()
        if is_valid_clock_format(content):
            block.values[key] = content
            return
        block.invalid.add(key)
        example = "23:45" if key == "lastActivity" else "07:30"
        block.errors.append(
            f'{block.prefix}: Invalid time format for {label}: "{content}". '
            f'Expected HH:MM format (e.g., "{example}").'
        )

    def _parse_night_checks(self, block: _DayBlock, content: str) -> None:
        if content.lower() in ("0", "none"):
            block.values["nightChecks"] = []
            return

        match = NIGHT_CHECKS.match(content)
        if match is None or match.group(2) is None:
            block.invalid.add("nightChecks")
            block.errors.append(
                f'{block.prefix}: Invalid night checks format: "{content}". '
                'Expected "0", "none" or a count with times like "2 (02:14, 04:33)".'
            )
            return

        count = int(match.group(1))
        times = [t.strip() for t in match.group(2).split(",") if t.strip()]
        invalid = [t for t in times if not is_valid_clock_format(t)]
        for time_value in invalid:
            block.errors.append(
                f'{block.prefix}: Invalid time format for night check: "{time_value}". '
                "Expected HH:MM format."
            )
        if count != len(times):
            block.errors.append(
                f"{block.prefix}: Night check count {count} does not match "
                f"the {len(times)} time(s) listed."
            )
        if not invalid and count == len(times):
            block.values["nightChecks"] = [{"time": t} for t in times]

    def _parse_screen_time(self, block: _DayBlock, content: str) -> None:
        match = SCREEN_TIME.match(content)
        if not content or match is None or not (match.group("hours") or match.group("minutes")):
            block.invalid.add("totalScreenTimeMinutes")
            block.errors.append(
                f'{block.prefix}: Invalid screen time format: "{content}". '
                'Expected format like "5h 30m", "5h 30" or "330".'
            )
            return
        hours = int(match.group("hours") or 0)
        minutes = int(match.group("minutes") or 0)
        block.values["totalScreenTimeMinutes"] = hours * 60 + minutes

    def _finish_block(
        self,
        block: _DayBlock,
        attempt: _FormatAttempt,
        seen_dates: dict[date_type, int],
    ) -> None:
        for key, label in _REQUIRED_LABELS.items():
            if key not in block.values and key not in block.invalid:
                block.errors.append(f'{block.prefix}: Missing required field "{label}".')

        if block.date is not None and block.date in seen_dates:
            block.errors.append(
                f"{block.prefix}: Duplicate date, already provided by day "
                f"{seen_dates[block.date]}."
            )

        if block.errors:
            attempt.errors.extend(block.errors)
            return

        if block.date is None:
            return
        seen_dates[block.date] = block.index
        record = _build_record(
            {"date": block.date.isoformat(), **block.values}, block.prefix, attempt.errors
        )
        if record is not None:
            attempt.days.append(record)

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def _parse_json(self, raw_text: str) -> _FormatAttempt:
        attempt = _FormatAttempt(input_format=InputFormat.JSON)
        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError as e:
            attempt.recognized = False
            attempt.errors.append(
                f"Invalid JSON format: {e.msg} (line {e.lineno}, column {e.colno})."
            )
            return attempt

        if not isinstance(data, list):
            attempt.errors.append("JSON input must be an array of daily sleep records.")
            return attempt

        seen_dates: dict[date_type, int] = {}
        for index, item in enumerate(data, start=1):
            attempt.blocks_seen += 1
            if not isinstance(item, dict):
                attempt.errors.append(
                    f"Day {index}: Expected an object with date, lastActivity, "
                    "firstActivity and totalScreenTimeMinutes."
                )
                continue
            record = self._parse_json_day(item, index, seen_dates, attempt.errors)
            if record is not None:
                attempt.days.append(record)

        return attempt

    def _parse_json_day(
        self,
        item: dict[str, Any],
        index: int,
        seen_dates: dict[date_type, int],
        errors: list[str],
    ) -> DailyRecord | None:
        day_errors: list[str] = []

        raw_date = item.get("date")
        day_date = _parse_iso_date(raw_date) if isinstance(raw_date, str) else None
        if _is_missing(raw_date):
            prefix = f"Day {index}"
            day_errors.append(f'{prefix}: Missing required field "date".')
        else:
            prefix = f"Day {index} ({raw_date})"
            if day_date is None:
                day_errors.append(
                    f'{prefix}: Invalid date "{raw_date}". Expected YYYY-MM-DD format.'
                )
            elif day_date in seen_dates:
                day_errors.append(
                    f"{prefix}: Duplicate date, already provided by day {seen_dates[day_date]}."
                )

        for key in ("lastActivity", "firstActivity"):
            value = item.get(key)
            if _is_missing(value):
                day_errors.append(f'{prefix}: Missing required field "{key}".')
            elif not is_valid_clock_format(value):
                day_errors.append(
                    f'{prefix}: Invalid time format for {key}: "{value}". Expected HH:MM format.'
                )

        screen_time = item.get("totalScreenTimeMinutes")
        if screen_time is None:
            day_errors.append(f'{prefix}: Missing required field "totalScreenTimeMinutes".')
        elif not _is_whole_minutes(screen_time):
            day_errors.append(
                f"{prefix}: Invalid value for totalScreenTimeMinutes: {json.dumps(screen_time)}. "
                "Expected a non-negative whole number of minutes."
            )

        night_checks = item.get("nightChecks")
        if night_checks is not None:
            if not isinstance(night_checks, list):
                day_errors.append(f"{prefix}: nightChecks must be an array of objects.")
            else:
                for position, check in enumerate(night_checks, start=1):
                    check_time = check.get("time") if isinstance(check, dict) else None
                    if not is_valid_clock_format(check_time):
                        day_errors.append(
                            f"{prefix}: Invalid time format for night check {position}: "
                            f"{json.dumps(check_time)}. Expected HH:MM format."
                        )

        if day_errors:
            errors.extend(day_errors)
            return None

        if day_date is None:
            return None
        seen_dates[day_date] = index
        payload = dict(item)
        payload["nightChecks"] = night_checks or []
        return _build_record(payload, prefix, errors)


def _build_record(payload: dict[str, Any], prefix: str, errors: list[str]) -> DailyRecord | None:
    """Validate a payload into a DailyRecord, turning model errors into messages."""
    try:
        return DailyRecord.model_validate(payload)
    except pydantic.ValidationError as e:
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "record"
            errors.append(f'{prefix}: Invalid field "{location}": {error["msg"]}.')
        return None


def _parse_iso_date(value: str) -> date_type | None:
    try:
        return date_type.fromisoformat(value)
    except ValueError:
        return None


def _is_missing(value: object) -> bool:
    return value is None or value == ""


def _is_whole_minutes(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, float) and value.is_integer() and value >= 0
