"""Natural-language date query resolution.

Turns phrases such as "last month", "November 5" or "from jan to march" into
concrete ``YYYY-MM-DD`` dates. Every relative phrase is resolved against an
explicit anchor date supplied by the caller, so results are reproducible.

Rules are tried in a fixed order and the first match wins:

1. ``today`` / ``yesterday`` / ``tomorrow``
2. ``last N days``
3. ``this week`` / ``last week`` (Monday to Sunday)
4. ``this month`` / ``last month``
5. ``this year`` / ``last year``
6. month name with a day, optional year ("Nov 5 2024", "5 november")
7. month name alone, optional year ("october", "all of nov 2023")
8. ranges: ``[from] <left> to <right>``, each side resolved recursively
9. ISO dates (``YYYY-M-D``)

Anything else resolves to the anchor date only, never to an error.
"""

import calendar
import re
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# Full names precede abbreviations so "march" wins over "mar".
MONTHS: dict[str, int] = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

_LAST_N_DAYS = re.compile(r"last\s+(\d+)\s+days?")
_RANGE = re.compile(r"(?:from\s+)?(.+?)\s+to\s+(.+)")
_RANGE_CONNECTOR = re.compile(r"\s+to\s+")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_NUMERIC_DATE = re.compile(r"^(\d{1,2})[-/](\d{1,2})(?:[-/](\d{2,4}))?$")

_MONTH_DAY_PATTERNS: list[tuple[int, re.Pattern[str], re.Pattern[str]]] = [
    (
        number,
        re.compile(rf"\b{name}\s+(\d{{1,2}})(?:\s+(\d{{4}}))?\b"),
        re.compile(rf"\b(\d{{1,2}})\s+{name}(?:\s+(\d{{4}}))?\b"),
    )
    for name, number in MONTHS.items()
]

_MONTH_ONLY_PATTERNS: list[tuple[int, re.Pattern[str]]] = [
    (number, re.compile(rf"(?:all\s+of\s+)?\b{name}\b(?:\s+(\d{{4}}))?"))
    for name, number in MONTHS.items()
]


@dataclass(frozen=True)
class DateQueryResult:
    """Outcome of resolving a date phrase.

    ``start_date`` and ``end_date`` are either both set or both absent. A
    single day has ``start_date == end_date``.
    """

    success: bool
    current_date: str | None = None
    current_year: int | None = None
    description: str = ""
    start_date: str | None = None
    end_date: str | None = None
    error: str | None = None

    @property
    def has_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def to_dict(self) -> dict[str, Any]:
        """Return the result as a dict, dropping keys that are not set."""
        return {key: value for key, value in asdict(self).items() if value is not None}


def format_date(year: int, month: int, day: int) -> str:
    """Format date parts as zero-padded ``YYYY-MM-DD`` without validating them."""
    return f"{year:04d}-{month:02d}-{day:02d}"


def week_bounds(anchor: date) -> tuple[date, date]:
    """Return the Monday and Sunday of the week containing ``anchor``."""
    start = anchor - timedelta(days=anchor.weekday())
    return start, start + timedelta(days=6)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def resolve_date_query(text: str, anchor: date) -> DateQueryResult:
    """Resolve a free-text date phrase relative to ``anchor``.

    Unrecognised phrases are not errors: they resolve to a successful result
    carrying only the anchor date. ``success`` is False only when resolution
    itself blows up.
    """
    try:
        return _resolve(text.lower().strip(), anchor, original=text)
    except Exception as e:
        logger.exception("date_query_failed", query=text)
        return DateQueryResult(success=False, error=str(e) or "Failed to parse date query")


def _span(anchor: date, start: str, end: str, description: str) -> DateQueryResult:
    return DateQueryResult(
        success=True,
        current_date=anchor.isoformat(),
        current_year=anchor.year,
        description=description,
        start_date=start,
        end_date=end,
    )


def _anchor_only(anchor: date, description: str) -> DateQueryResult:
    return DateQueryResult(
        success=True,
        current_date=anchor.isoformat(),
        current_year=anchor.year,
        description=description,
    )


def _resolve(query: str, anchor: date, original: str) -> DateQueryResult:
    today = anchor.isoformat()

    if not query:
        return _anchor_only(anchor, "No date query provided. Returning current date info.")

    if query == "today":
        return _span(anchor, today, today, f"Today is {today}")

    if query == "yesterday":
        day = (anchor - timedelta(days=1)).isoformat()
        return _span(anchor, day, day, f"Yesterday was {day}")

    if query == "tomorrow":
        day = (anchor + timedelta(days=1)).isoformat()
        return _span(anchor, day, day, f"Tomorrow is {day}")

    match = _LAST_N_DAYS.search(query)
    if match:
        days = int(match.group(1))
        start = (anchor - timedelta(days=days)).isoformat()
        return _span(anchor, start, today, f"Last {days} days: {start} to {today}")

    if "this week" in query:
        start, end = week_bounds(anchor)
        return _span(
            anchor, start.isoformat(), end.isoformat(),
            f"This week: {start.isoformat()} to {end.isoformat()}",
        )

    if "last week" in query:
        start, end = week_bounds(anchor - timedelta(days=7))
        return _span(
            anchor, start.isoformat(), end.isoformat(),
            f"Last week: {start.isoformat()} to {end.isoformat()}",
        )

    if "this month" in query:
        start, end = month_bounds(anchor.year, anchor.month)
        return _span(
            anchor, start.isoformat(), end.isoformat(),
            f"This month: {start.isoformat()} to {end.isoformat()}",
        )

    if "last month" in query:
        if anchor.month == 1:
            start, end = month_bounds(anchor.year - 1, 12)
        else:
            start, end = month_bounds(anchor.year, anchor.month - 1)
        return _span(
            anchor, start.isoformat(), end.isoformat(),
            f"Last month: {start.isoformat()} to {end.isoformat()}",
        )

    if "this year" in query:
        start, end = format_date(anchor.year, 1, 1), format_date(anchor.year, 12, 31)
        return _span(anchor, start, end, f"This year: {start} to {end}")

    if "last year" in query:
        start, end = format_date(anchor.year - 1, 1, 1), format_date(anchor.year - 1, 12, 31)
        return _span(anchor, start, end, f"Last year: {start} to {end}")

    # Month names inside a range phrase belong to its sides, so the range is
    # tried first; the month-name rules still apply when it does not resolve.
    if _RANGE_CONNECTOR.search(query):
        result = _resolve_range(query, anchor)
        if result is not None:
            return result

    result = _resolve_month_name(query, anchor)
    if result is not None:
        return result

    match = _ISO_DATE.match(query)
    if match:
        day = format_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        return _span(anchor, day, day, f"ISO format date: {day}")

    logger.debug("date_query_unparsed", query=original)
    return _anchor_only(anchor, f'Could not parse "{original}". Returning current date.')


def _resolve_range(query: str, anchor: date) -> DateQueryResult | None:
    match = _RANGE.search(query)
    if not match:
        return None
    left = _resolve(match.group(1).strip(), anchor, original=match.group(1))
    right = _resolve(match.group(2).strip(), anchor, original=match.group(2))
    if not (left.start_date and right.end_date):
        return None
    return _span(
        anchor, left.start_date, right.end_date,
        f"Date range: {left.start_date} to {right.end_date}",
    )


def _resolve_month_name(query: str, anchor: date) -> DateQueryResult | None:
    for month, month_day, day_month in _MONTH_DAY_PATTERNS:
        match = month_day.search(query) or day_month.search(query)
        if not match:
            continue
        day = int(match.group(1))
        if not 1 <= day <= 31:
            continue
        year = int(match.group(2)) if match.group(2) else anchor.year
        parsed = format_date(year, month, day)
        return _span(anchor, parsed, parsed, f"Parsed date: {parsed}")

    for month, pattern in _MONTH_ONLY_PATTERNS:
        match = pattern.search(query)
        if not match:
            continue
        year = int(match.group(1)) if match.group(1) else anchor.year
        start, end = month_bounds(year, month)
        return _span(
            anchor, start.isoformat(), end.isoformat(),
            f"Month range: {start.isoformat()} to {end.isoformat()}",
        )

    return None


def parse_relative_date(text: str, anchor: date) -> str | None:
    """Parse a single-date field value such as "yesterday" or "11-04".

    Numeric dates are read month first. When the second number is above 12
    and the first is not, the two are swapped before validation. Returns
    None when the value is not recognised.
    """
    value = text.strip()
    lowered = value.lower()

    if lowered == "today":
        return anchor.isoformat()
    if lowered == "yesterday":
        return (anchor - timedelta(days=1)).isoformat()
    if lowered == "tomorrow":
        return (anchor + timedelta(days=1)).isoformat()

    match = _NUMERIC_DATE.match(value)
    if match:
        month = int(match.group(1))
        day = int(match.group(2))
        raw_year = match.group(3)
        if raw_year is None:
            year = anchor.year
        elif len(raw_year) == 2:
            year = 2000 + int(raw_year)
        else:
            year = int(raw_year)

        # TODO: ask for the user's preferred day/month order instead of guessing
        if day > 12 and month <= 12:
            month, day = day, month

        if 1 <= month <= 12 and 1 <= day <= 31:
            return format_date(year, month, day)

    match = _ISO_DATE.match(value)
    if match:
        return format_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    return None
