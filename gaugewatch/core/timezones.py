# gaugewatch/core/timezones.py
import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .constants import TIMEZONE_TABLE
from .errors import UnknownTimezoneError

log = logging.getLogger(__name__)


class DstPolicy(str, Enum):
    """
    How an offset is chosen for a timezone entry that observes daylight saving.

    The registry has no calendar rules, so it cannot tell whether daylight saving
    is actually in effect on a given date. The caller picks:

    - ALWAYS: return the DST offset for every DST-observing entry (suits runs
      made during the daylight saving season).
    - NEVER: always return the standard offset.
    """
    ALWAYS = "always"
    NEVER = "never"

    @classmethod
    def from_value(cls, value: Optional[str], default: Optional["DstPolicy"] = None) -> "DstPolicy":
        """
        Converts a config string (case-insensitive) into a policy.

        Args:
            value: Raw value, e.g. from an environment variable.
            default: Policy used when value is empty or unrecognised. Defaults to ALWAYS.

        Returns:
            The matching DstPolicy.
        """
        fallback = default or cls.ALWAYS
        if not value or not value.strip():
            return fallback
        try:
            return cls(value.strip().lower())
        except ValueError:
            log.warning(f"Unknown DST policy '{value}', falling back to '{fallback.value}'.")
            return fallback


@dataclass(frozen=True)
class TimezoneEntry:
    abbreviation: str
    long_name: str
    standard_offset: str
    dst_offset: Optional[str] = None
    dst_observed: bool = False
    territories: Tuple[str, ...] = ()

    def offset_for(self, policy: DstPolicy = DstPolicy.ALWAYS) -> str:
        """Returns the UTC offset string this entry resolves to under the given policy."""
        if self.dst_observed and self.dst_offset and policy is DstPolicy.ALWAYS:
            return self.dst_offset
        return self.standard_offset


def _build_registry(table: Mapping[str, Mapping[str, Any]]) -> Mapping[str, TimezoneEntry]:
    entries = {
        abbr: TimezoneEntry(
            abbreviation=abbr,
            long_name=raw["long_name"],
            standard_offset=raw["standard_offset"],
            dst_offset=raw.get("dst_offset"),
            dst_observed=bool(raw.get("dst_observed", False)),
            territories=tuple(raw.get("territories", ())),
        )
        for abbr, raw in table.items()
    }
    return MappingProxyType(entries)


# Read-only, built once at import time
TIMEZONE_REGISTRY: Mapping[str, TimezoneEntry] = _build_registry(TIMEZONE_TABLE)


def resolve_offset(
    abbreviation: str,
    policy: DstPolicy = DstPolicy.ALWAYS,
    registry: Mapping[str, TimezoneEntry] = TIMEZONE_REGISTRY,
) -> str:
    """
    Maps a timezone abbreviation (e.g. "ACST") to its UTC offset (e.g. "+09:30").

    Args:
        abbreviation: The abbreviation as printed in the bulletin. Case-insensitive.
        policy: Offset choice for entries that observe daylight saving.
        registry: Lookup table, the module-level registry unless overridden.

    Returns:
        The offset string in "+HH:MM" form.

    Raises:
        UnknownTimezoneError: If the abbreviation is not in the registry.
    """
    key = (abbreviation or "").strip().upper()
    entry = registry.get(key)
    if entry is None:
        raise UnknownTimezoneError(f"Unknown timezone abbreviation: {abbreviation}", source_text=abbreviation)
    return entry.offset_for(policy)


def describe_timezones(policy: DstPolicy = DstPolicy.ALWAYS) -> List[Dict[str, Any]]:
    """Lists the registry entries together with the offset each resolves to under the policy."""
    return [
        {
            "abbreviation": entry.abbreviation,
            "longName": entry.long_name,
            "standardOffset": entry.standard_offset,
            "dstOffset": entry.dst_offset,
            "dstObserved": entry.dst_observed,
            "territories": list(entry.territories),
            "resolvedOffset": entry.offset_for(policy),
        }
        for entry in TIMEZONE_REGISTRY.values()
    ]
