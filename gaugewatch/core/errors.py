# gaugewatch/core/errors.py
from typing import Optional


class GaugeWatchError(Exception):
    """Base exception for bulletin and timestamp reconstruction errors."""
    def __init__(self, message: str, source_text: Optional[str] = None):
        super().__init__(message)
        # Keep the offending input around for debugging
        self.source_text = source_text


# --- Document-level ---

class FormatError(GaugeWatchError, ValueError):
    """The "Issued at" phrase is missing or its date part does not parse."""


class UnknownTimezoneError(GaugeWatchError, ValueError):
    """A timezone abbreviation is not in the registry."""


class ExtractionError(GaugeWatchError, ValueError):
    """A data row has no usable station identifier link."""


# --- Row / call-level ---

class UnknownWeekdayError(GaugeWatchError, ValueError):
    """A row weekday abbreviation is not recognised."""


class InvalidTimeFormatError(GaugeWatchError, ValueError):
    """A bulletin clock time is not "HH:MM AM/PM" or "HH.MMAM/PM"."""


class InvalidLocalTimeError(GaugeWatchError, ValueError):
    """A local time is not "H:MM am/pm"."""


class InvalidReferenceError(GaugeWatchError, ValueError):
    """A reference instant is not in canonical offset form."""
