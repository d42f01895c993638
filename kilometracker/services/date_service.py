"""Calendar-date helpers: day-granularity strings that never shift across zones.

A calendar date is a ``YYYY-MM-DD`` string with no time or zone component.
Once derived from an ISO timestamp it must keep its day number for every
caller, so extraction is plain string slicing and arithmetic happens on UTC
midnights. Nothing here raises on bad input; callers get a sentinel instead.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pendulum

CALENDAR_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

DISPLAY_LOCALE = "es"
DISPLAY_FORMAT = "D MMM YYYY"
NO_DATE_LABEL = "Sin fecha"
INVALID_DATE_LABEL = "Fecha inválida"

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class DateRangeCheck:
    """Outcome of ``validate_range``."""

    valid: bool
    message: str | None = None


def today_string(tz: str | None = None) -> str:
    """Return today's calendar date in ``tz`` (the local zone when omitted).

    Meant for form defaults only; comparisons go through ``days_until``.
    """
    return pendulum.now(tz).to_date_string()


def is_valid_calendar_date(value: str | None) -> bool:
    """Shape check only: ``2025-04-31`` passes even though April has 30 days."""
    if not value:
        return False
    return CALENDAR_DATE_RE.fullmatch(value) is not None


def date_only(raw: str | None) -> str:
    """Return the ``YYYY-MM-DD`` part of a date or ISO timestamp, or ``""``."""
    if not raw:
        return ""
    candidate = raw.split("T", maxsplit=1)[0]
    if not is_valid_calendar_date(candidate):
        return ""
    return candidate


def _utc_midnight(value: str) -> datetime | None:
    """UTC midnight of a shaped date; day overflow rolls into the next month."""
    year, month, day = (int(part) for part in value.split("-"))
    try:
        first_of_month = datetime(year, month, 1, tzinfo=timezone.utc)
        return first_of_month + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        return None


def display_date(raw: str | None) -> str:
    """Format a date for people, pinned to UTC so the day never drifts.

    ``"2025-11-26T23:59:59.000Z"`` and ``"2025-11-26"`` render identically,
    day 26 of November in the ``es`` locale's abbreviated form.
    """
    if not raw:
        return NO_DATE_LABEL
    value = date_only(raw)
    if not value:
        return INVALID_DATE_LABEL
    year, month, day = (int(part) for part in value.split("-"))
    try:
        moment = pendulum.datetime(year, month, day, tz="UTC")
    except ValueError:
        return INVALID_DATE_LABEL
    # pendulum abbreviates months with a trailing dot ("nov."); render without it.
    return moment.format(DISPLAY_FORMAT, locale=DISPLAY_LOCALE).replace(".", "")


def validate_range(start: str | None, end: str | None) -> DateRangeCheck:
    """Check a ``start``/``end`` filter pair; empty bounds are not validated.

    Zero-padded dates sort lexicographically in chronological order, so the
    ordering check compares the strings directly.
    """
    if start and not is_valid_calendar_date(start):
        return DateRangeCheck(valid=False, message="Fecha inicio inválida")
    if end and not is_valid_calendar_date(end):
        return DateRangeCheck(valid=False, message="Fecha fin inválida")
    if start and end and start > end:
        return DateRangeCheck(
            valid=False, message="Fecha inicio no puede ser mayor a fecha fin"
        )
    return DateRangeCheck(valid=True)


def days_until(target: str | None, today: str | None = None) -> int:
    """Whole days from ``today`` to ``target``; negative for past dates.

    Both operands are taken as UTC midnights and the difference is rounded
    up. A missing or malformed target yields 0.
    """
    target_value = date_only(target)
    today_value = date_only(today) if today is not None else today_string()
    if not target_value or not today_value:
        return 0

    target_midnight = _utc_midnight(target_value)
    today_midnight = _utc_midnight(today_value)
    if target_midnight is None or today_midnight is None:
        return 0

    diff_seconds = (target_midnight - today_midnight).total_seconds()
    return math.ceil(diff_seconds / _SECONDS_PER_DAY)
