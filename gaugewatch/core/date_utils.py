# gaugewatch/core/date_utils.py
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from typing import Optional, Pattern, Tuple, Type

from .constants import DAY_ABBREVIATIONS
from .errors import (GaugeWatchError, InvalidLocalTimeError,
                     InvalidReferenceError, InvalidTimeFormatError,
                     UnknownWeekdayError)

log = logging.getLogger(__name__)

# --- Regular Expressions for Time Parsing ---
# Bulletin clock time: "03:24 PM" (header) or "03.10PM" (table rows)
BULLETIN_TIME = re.compile(r"(\d{1,2})[:.](\d{2})\s*([AP]M)", re.IGNORECASE)
# Observation local time: "10:22 am", "3:45 pm"
LOCAL_TIME = re.compile(r"(\d{1,2}):(\d{2})\s*(am|pm)", re.IGNORECASE)
# Canonical reference instant: "2025-12-18T17:30:00+11:00" or "...Z"
REFERENCE_INSTANT = re.compile(r"(\d{4}-\d{2}-\d{2})T\d{2}:\d{2}:\d{2}(?:([+-]\d{2}):?(\d{2})|Z)")


@dataclass(frozen=True)
class CalendarDate:
    """A plain calendar date with no timezone attached."""
    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, value: date) -> "CalendarDate":
        return cls(year=value.year, month=value.month, day=value.day)

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


# --- Clock Time Composition ---

@lru_cache(maxsize=256) # Bulletins repeat the same few row times
def to_24_hour(
    time_str: str,
    pattern: Pattern[str] = BULLETIN_TIME,
    error_cls: Type[GaugeWatchError] = InvalidTimeFormatError,
    label: str = "time format",
) -> Tuple[int, int]:
    """
    Converts a 12-hour clock string into (hour, minute) on the 24-hour clock.

    12 AM becomes hour 0, 12 PM stays 12, any other PM hour gets 12 added.

    Args:
        time_str: The clock time text, e.g. "03.10PM" or "10:22 am".
        pattern: Regex with hour, minute and meridiem groups that must match the whole string.
        error_cls: Exception raised when the text does not match or is out of range.
        label: What the text is called in the error message.

    Returns:
        A (hour, minute) tuple.
    """
    match = pattern.fullmatch((time_str or "").strip())
    if not match:
        raise error_cls(f"Invalid {label}: {time_str}", source_text=time_str)

    hours, minutes, meridiem = match.groups()
    hour = int(hours)
    minute = int(minutes)
    if hour > 12 or minute > 59:
        raise error_cls(f"Invalid {label}: {time_str}", source_text=time_str)

    meridiem = meridiem.upper()
    if meridiem == "PM" and hour < 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        hour = 0
    return hour, minute


def compose_instant(
    calendar_date: CalendarDate,
    time_str: str,
    offset: str,
    pattern: Pattern[str] = BULLETIN_TIME,
    error_cls: Type[GaugeWatchError] = InvalidTimeFormatError,
    label: str = "time format",
) -> str:
    """
    Builds a canonical instant string from a date, a 12-hour clock time and an offset.

    The offset is carried through as-is; the clock value is never shifted.
    Seconds are always "00".

    Returns:
        A string shaped like "YYYY-MM-DDTHH:MM:00+HH:MM".
    """
    hour, minute = to_24_hour(time_str, pattern, error_cls, label)
    return f"{calendar_date.isoformat()}T{hour:02d}:{minute:02d}:00{offset}"


def format_iso_date(year: int, month: int, day: int, time_str: str, offset: str) -> str:
    """
    Formats bulletin date parts and a clock time into an ISO 8601 string with offset.

    Args:
        year: Calendar year.
        month: Calendar month (1-12).
        day: Day of month.
        time_str: Time in "HH:MM AM/PM" or "HH.MMAM/PM" form.
        offset: UTC offset, e.g. "+09:30".

    Returns:
        The ISO 8601 string, e.g. "2026-01-20T15:24:00+09:30".

    Raises:
        InvalidTimeFormatError: If time_str matches neither accepted form.
    """
    return compose_instant(CalendarDate(year, month, day), time_str, offset)


# --- Row Date Resolution ---

def weekday_ordinal(day_abbr: str) -> int:
    """Maps a three-letter weekday ("Tue", "tue") to 0=Sunday..6=Saturday."""
    key = (day_abbr or "").strip().lower()
    ordinal = DAY_ABBREVIATIONS.get(key)
    if ordinal is None:
        raise UnknownWeekdayError(f"Unknown day abbreviation: {day_abbr}", source_text=day_abbr)
    return ordinal


def resolve_row_date(base_date, day_abbr: str) -> CalendarDate:
    """
    Finds the most recent date on or before base_date that falls on day_abbr.

    Bulletin rows only carry a weekday, so the date is found by walking back from
    the "Issued at" date. Works on calendar fields only, so month and year
    rollovers come out right (1 January 2026 + "Wed" -> 31 December 2025).

    Args:
        base_date: Anything with year, month and day attributes (AnchorTimestamp, CalendarDate).
        day_abbr: The row's weekday abbreviation, e.g. "Tue".

    Returns:
        The resolved CalendarDate, at most 6 days before base_date.

    Raises:
        UnknownWeekdayError: If day_abbr is not a known abbreviation.
    """
    target = weekday_ordinal(day_abbr)
    anchor = date(base_date.year, base_date.month, base_date.day)
    # date.weekday() is Monday=0; shift to Sunday=0
    current = (anchor.weekday() + 1) % 7
    diff = (current - target + 7) % 7
    resolved = CalendarDate.from_date(anchor - timedelta(days=diff))
    log.debug(f"Resolved '{day_abbr}' against {anchor.isoformat()} to {resolved.isoformat()} ({diff} days back)")
    return resolved


# --- Local Time Resolution ---

def resolve_local_time(local_time: Optional[str], reference_iso: Optional[str]) -> Optional[str]:
    """
    Resolves a bare local time (e.g. "10:22 am") to an instant, using the date and
    offset of a reference instant (e.g. "2025-12-18T17:30:00+11:00").

    The local time is assumed to fall on the reference's calendar date; a day
    boundary between the two is not detected.

    Args:
        local_time: "H:MM am/pm" text, or None.
        reference_iso: Canonical instant with a "+HH:MM" offset or "Z", or None.

    Returns:
        "YYYY-MM-DDTHH:MM:00+HH:MM", or None if either input is missing.

    Raises:
        InvalidReferenceError: If reference_iso is not in canonical form.
        InvalidLocalTimeError: If local_time is not "H:MM am/pm".
    """
    if not local_time or not reference_iso:
        return None
    # Values arrive straight from JSON, so numbers can show up here
    if not isinstance(reference_iso, str):
        raise InvalidReferenceError(f"Invalid reference ISO string: {reference_iso!r}", source_text=str(reference_iso))
    if not isinstance(local_time, str):
        raise InvalidLocalTimeError(f"Invalid local time format: {local_time!r}", source_text=str(local_time))

    match = REFERENCE_INSTANT.fullmatch(reference_iso.strip())
    if not match:
        raise InvalidReferenceError(f"Invalid reference ISO string: {reference_iso}", source_text=reference_iso)

    date_part, offset_hours, offset_minutes = match.groups()
    # Zulu references carry no offset groups
    offset = f"{offset_hours}:{offset_minutes}" if offset_hours else "+00:00"

    year, month, day = (int(part) for part in date_part.split("-"))
    return compose_instant(
        CalendarDate(year, month, day),
        local_time,
        offset,
        pattern=LOCAL_TIME,
        error_cls=InvalidLocalTimeError,
        label="local time format",
    )
