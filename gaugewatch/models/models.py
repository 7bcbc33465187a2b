# gaugewatch/models/models.py
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator, validator

# "YYYY-MM-DDTHH:MM:SS+HH:MM", always with a signed colon offset
CANONICAL_INSTANT = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}$")


def _check_instant(v: str) -> str:
    if not CANONICAL_INSTANT.match(v):
        raise ValueError("Instant must be in YYYY-MM-DDTHH:MM:SS+HH:MM format")
    return v


class AnchorTimestamp(BaseModel):
    """The bulletin's "Issued at" moment, split into the parts rows are resolved against."""
    year: int
    month: int
    day: int
    time: str
    offset: str
    iso: str

    @validator("iso")
    def validate_iso(cls, v):
        return _check_instant(v)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "year": 2026,
                "month": 1,
                "day": 20,
                "time": "03:24 PM",
                "offset": "+09:30",
                "iso": "2026-01-20T15:24:00+09:30",
            }
        }


class SensorRecord(BaseModel):
    id: str
    station_name: str = Field(..., alias="stationName")
    station_type: str = Field(..., alias="stationType")
    time_day: str = Field(..., alias="timeDay")
    timestamp: str
    issued_at: str = Field(..., alias="issuedAt")
    height_m: Optional[float] = Field(None, alias="heightM")
    gauge_datum: str = Field("", alias="gaugeDatum")
    tendency: str = ""
    crossing_m: str = Field("", alias="crossingM")
    flood_classification: str = Field("", alias="floodClassification")
    recent_data: str = Field("", alias="recentData")

    @validator("timestamp", "issued_at")
    def validate_instant(cls, v):
        return _check_instant(v)

    @model_validator(mode="after")
    def check_same_offset(self):
        # Rows never cross a timezone boundary within one bulletin
        if self.timestamp[-6:] != self.issued_at[-6:]:
            raise ValueError("Record timestamp offset must match issuedAt offset")
        return self

    class Config:
        populate_by_name = True
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "515008",
                "stationName": "Todd River at Bond Springs",
                "stationType": "Automatic",
                "timeDay": "03.10PM Tue",
                "timestamp": "2026-01-20T15:10:00+09:30",
                "issuedAt": "2026-01-20T15:24:00+09:30",
                "heightM": 1.0,
                "gaugeDatum": "LGH",
                "tendency": "steady",
                "crossingM": "",
                "floodClassification": "",
                "recentData": "Plot | Table",
            }
        }


class RiverBulletin(BaseModel):
    """Everything extracted from one river height bulletin."""
    issued_at: str = Field(..., alias="issuedAt")
    records: List[SensorRecord] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class DocumentOutcome(BaseModel):
    """Result of parsing one named document in a batch."""
    name: str
    status: Literal["Success", "ParseFailed"]
    issued_at: Optional[str] = Field(None, alias="issuedAt")
    records: List[SensorRecord] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    error_type: Optional[str] = Field(None, alias="errorType")
    error_message: Optional[str] = Field(None, alias="errorMessage")

    class Config:
        populate_by_name = True
