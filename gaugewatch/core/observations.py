# gaugewatch/core/observations.py
import logging
from typing import Any, Dict, Mapping

from .constants import OBSERVATION_LOCAL_TIME_FIELDS, OBSERVATION_REFERENCE_FIELD
from .date_utils import resolve_local_time

log = logging.getLogger(__name__)


def resolve_observation_times(values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Adds resolved instants for the local-time fields of a weather observation.

    The observation feed reports the times of the daily maximum and minimum
    temperature as bare local times ("10:22 am"). Each is resolved against the
    observation's endTime and stored next to it, e.g. maximumTempLocalTime ->
    maximumTempLocalTimeUTC. A field whose inputs are missing resolves to None.

    Args:
        values: One observation's values as returned by the weather API.

    Returns:
        A new dict with the original values plus the resolved fields.

    Raises:
        InvalidReferenceError: If endTime is present but not a canonical instant.
        InvalidLocalTimeError: If a local-time field is present but malformed.
    """
    enriched = dict(values)
    reference = values.get(OBSERVATION_REFERENCE_FIELD)
    for source_field, target_field in OBSERVATION_LOCAL_TIME_FIELDS.items():
        enriched[target_field] = resolve_local_time(values.get(source_field), reference)
        log.debug(f"Resolved {source_field}={values.get(source_field)!r} against {reference!r} -> {enriched[target_field]!r}")
    return enriched
