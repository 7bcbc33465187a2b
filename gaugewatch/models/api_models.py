from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from .models import DocumentOutcome


class BatchParseRequest(BaseModel):
    """
    Request body for parsing several bulletins at once.
    """
    documents: Dict[str, str] = Field(..., description="Bulletin HTML keyed by a caller-chosen name (e.g. the file name).")


class BatchParseResponse(BaseModel):
    """
    Per-document outcomes of a batch parse, in request order.
    """
    documents: List[DocumentOutcome] = Field(..., description="One outcome per submitted document.")
    record_count: int = Field(..., alias="recordCount", description="Total records across successful documents.")
    failed_count: int = Field(..., alias="failedCount", description="Number of documents that failed to parse.")

    class Config:
        populate_by_name = True


class ObservationTimesRequest(BaseModel):
    """
    An observation record whose local-time fields should be resolved against its endTime.
    """
    values: Dict[str, Any] = Field(..., description="Observation values, e.g. maximumTempLocalTime, minimumTempLocalTime, endTime.")


class ObservationTimesResponse(BaseModel):
    values: Dict[str, Any] = Field(..., description="The observation values with the resolved *UTC fields added.")


class TimezoneInfo(BaseModel):
    abbreviation: str
    long_name: str = Field(..., alias="longName")
    standard_offset: str = Field(..., alias="standardOffset")
    dst_offset: Optional[str] = Field(None, alias="dstOffset")
    dst_observed: bool = Field(..., alias="dstObserved")
    territories: List[str] = Field(default_factory=list)
    resolved_offset: str = Field(..., alias="resolvedOffset")

    class Config:
        populate_by_name = True
