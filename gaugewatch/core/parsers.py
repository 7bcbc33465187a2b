# gaugewatch/core/parsers.py
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from .constants import (COL_CROSSING, COL_FLOOD_CLASSIFICATION,
                        COL_GAUGE_DATUM, COL_HEIGHT, COL_RECENT_DATA,
                        COL_STATION_NAME, COL_STATION_TYPE, COL_TENDENCY,
                        COL_TIME_DAY, EXPECTED_CELL_COUNT,
                        ISSUED_AT_DATE_FORMAT, ISSUED_AT_MARKER,
                        PLOT_LINK_SELECTOR, RIVER_TABLE_SELECTOR)
from .date_utils import compose_instant, format_iso_date, resolve_row_date
from .errors import (ExtractionError, FormatError, InvalidTimeFormatError,
                     UnknownWeekdayError)
from .timezones import DstPolicy, resolve_offset
from ..models.models import AnchorTimestamp, RiverBulletin, SensorRecord

# Basic logging setup
logging.basicConfig(level=logging.INFO, format='[%(asctime)s] %(levelname)s - %(name)s - %(message)s')
log = logging.getLogger(__name__)

# --- Regular Expressions ---
# "Issued at 03:24 PM ACST Tuesday 20 January 2026" -> time, timezone, date part
_RE_ISSUED_AT = re.compile(r"Issued at\s+(.+?)\s+([A-Z]{3,5})\s+(.+)$", re.IGNORECASE)
# Row time/day cell, e.g. "03.10PM Tue"
_RE_TIME_DAY = re.compile(r"(\d{1,2}[:.]\d{2}\s*[AP]M)\s+(\w+)", re.IGNORECASE)
# Station number inside a plot link, e.g. "IDN60233.515008.plt.shtml"
_RE_STATION_ID = re.compile(r"\.(\d+)\.plt\.shtml")
# Leading decimal of a measurement cell, e.g. "1.00", "-0.25"
_RE_LEADING_NUMBER = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")
_RE_WHITESPACE = re.compile(r"\s+")


@dataclass
class RowOutcome:
    """Result of turning one table row into a record."""
    status: Literal["Parsed", "Skipped"]
    record: Optional[SensorRecord] = None
    reason: Optional[str] = None


# --- Text Helpers ---

def normalize_cell_text(text: Optional[str]) -> str:
    """Turns non-breaking spaces into plain spaces, collapses whitespace runs and trims."""
    if not text:
        return ""
    return _RE_WHITESPACE.sub(" ", text.replace("\u00a0", " ")).strip()


def parse_measurement(text: Optional[str]) -> Optional[float]:
    """
    Reads the leading number of a measurement cell.

    Returns None for a blank cell, or for text with no leading number (e.g. "--").
    """
    cleaned = normalize_cell_text(text)
    if not cleaned:
        return None
    match = _RE_LEADING_NUMBER.match(cleaned)
    if not match:
        log.debug(f"Measurement cell '{cleaned}' has no leading number, treating as missing.")
        return None
    return float(match.group(0))


def split_time_day(time_day: str) -> Optional[Tuple[str, str]]:
    """Splits a row time/day cell ("03.10PM Tue") into ("03.10PM", "Tue"), or None."""
    match = _RE_TIME_DAY.search(normalize_cell_text(time_day))
    return match.groups() if match else None


def station_id_from_href(href: Optional[str]) -> Optional[str]:
    """Pulls the numeric station id out of a "<product>.<id>.plt.shtml" link target."""
    if not href:
        return None
    match = _RE_STATION_ID.search(href)
    return match.group(1) if match else None


def extract_station_id(cell: Tag, station_name: str = "") -> str:
    """
    Finds the plot link in a cell and returns the station id it encodes.

    Raises:
        ExtractionError: If the cell has no plot link, or the link carries no id.
    """
    plot_link = cell.select_one(PLOT_LINK_SELECTOR)
    if not plot_link:
        raise ExtractionError(f"Could not find plot link for station: {station_name}", source_text=str(cell))
    href = plot_link.get("href")
    station_id = station_id_from_href(href)
    if not station_id:
        raise ExtractionError(f"Could not extract ID from link: {href}", source_text=href)
    return station_id


# --- "Issued at" Parser ---

def find_issued_at_text(soup: BeautifulSoup) -> str:
    """
    Returns the text of the first paragraph mentioning "Issued at".

    Raises:
        FormatError: If no such paragraph exists.
    """
    for paragraph in soup.find_all("p"):
        text = paragraph.get_text(" ")
        if ISSUED_AT_MARKER in text:
            return text.strip()
    raise FormatError(f"Could not find '{ISSUED_AT_MARKER}' element")


def parse_issued_at(text: str, dst_policy: DstPolicy = DstPolicy.ALWAYS) -> AnchorTimestamp:
    """
    Parses the bulletin "Issued at" phrase into an anchor timestamp.

    Args:
        text: Text containing e.g. "Issued at 03:24 PM ACST Tuesday 20 January 2026".
        dst_policy: Offset choice for timezones that observe daylight saving.

    Returns:
        An AnchorTimestamp with the date parts, raw time, offset and ISO string.

    Raises:
        FormatError: If the phrase, its date part or its time is malformed.
        UnknownTimezoneError: If the timezone abbreviation is not in the registry.
    """
    normalized = normalize_cell_text(text)
    match = _RE_ISSUED_AT.search(normalized)
    if not match:
        raise FormatError(f'Could not parse "Issued at" string: {text}', source_text=text)

    time_str, tz_abbr, date_str = match.groups()
    offset = resolve_offset(tz_abbr, dst_policy)

    # date_str example: "Tuesday 20 January 2026"
    try:
        base_date = datetime.strptime(date_str, ISSUED_AT_DATE_FORMAT)
    except ValueError as e:
        raise FormatError(f'Could not parse date part of "Issued at": {date_str}', source_text=text) from e

    try:
        iso = format_iso_date(base_date.year, base_date.month, base_date.day, time_str, offset)
    except InvalidTimeFormatError as e:
        raise FormatError(f'Could not parse time part of "Issued at": {time_str}', source_text=text) from e

    log.debug(f"Parsed 'Issued at' anchor: {iso} (timezone {tz_abbr.upper()})")
    return AnchorTimestamp(
        year=base_date.year,
        month=base_date.month,
        day=base_date.day,
        time=time_str,
        offset=offset,
        iso=iso,
    )


# --- River Height Table ---

def extract_table_rows(table: Tag) -> List[List[Tag]]:
    """
    Returns the cells of every data row in the river height table.

    Rows with a rowspan cell are subheadings, not data, and rows without exactly
    EXPECTED_CELL_COUNT cells are layout rows; both are dropped.
    """
    body_rows = table.select("tbody tr") or table.find_all("tr")
    data_rows: List[List[Tag]] = []
    for row_index, row in enumerate(body_rows):
        if any(cell.has_attr("rowspan") for cell in row.find_all(["td", "th"], recursive=False)):
            log.debug(f"Row {row_index}: skipping subheading row (rowspan).")
            continue
        cells = row.find_all("td", recursive=False)
        if len(cells) != EXPECTED_CELL_COUNT:
            log.debug(f"Row {row_index}: skipping row with {len(cells)} cells (expected {EXPECTED_CELL_COUNT}).")
            continue
        data_rows.append(cells)
    return data_rows


def build_record(cells: Sequence[Tag], anchor: AnchorTimestamp, time_day: str, timestamp: str) -> SensorRecord:
    """
    Builds the record for a data row whose timestamp is already resolved.

    Raises:
        ExtractionError: If the row has no usable plot link.
    """
    text = [normalize_cell_text(cell.get_text()) for cell in cells]
    station_name = text[COL_STATION_NAME]
    station_id = extract_station_id(cells[COL_RECENT_DATA], station_name)

    return SensorRecord(
        id=station_id,
        station_name=station_name,
        station_type=text[COL_STATION_TYPE],
        time_day=time_day,
        timestamp=timestamp,
        issued_at=anchor.iso,
        height_m=parse_measurement(text[COL_HEIGHT]),
        gauge_datum=text[COL_GAUGE_DATUM],
        tendency=text[COL_TENDENCY],
        crossing_m=text[COL_CROSSING],
        flood_classification=text[COL_FLOOD_CLASSIFICATION],
        recent_data=text[COL_RECENT_DATA],
    )


def resolve_row(row_index: int, cells: Sequence[Tag], anchor: AnchorTimestamp) -> RowOutcome:
    """
    Turns one data row into a record, or a skip with the reason.

    Only a missing station link raises; every other row problem becomes a skip so
    the rest of the bulletin is still read.
    """
    time_day = normalize_cell_text(cells[COL_TIME_DAY].get_text())
    if not time_day:
        return RowOutcome(status="Skipped", reason=f"Row {row_index}: empty time/day cell")

    parts = split_time_day(time_day)
    if not parts:
        return RowOutcome(status="Skipped", reason=f'Row {row_index}: failed to parse row time/day: "{time_day}"')

    row_time, day_abbr = parts
    try:
        row_date = resolve_row_date(anchor, day_abbr)
        timestamp = compose_instant(row_date, row_time, anchor.offset)
    except (UnknownWeekdayError, InvalidTimeFormatError) as e:
        return RowOutcome(status="Skipped", reason=f"Row {row_index}: {e}")

    return RowOutcome(status="Parsed", record=build_record(cells, anchor, time_day, timestamp))


def parse_river_heights(html_content: str, dst_policy: DstPolicy = DstPolicy.ALWAYS) -> RiverBulletin:
    """
    Parses a river height bulletin page into its "Issued at" instant and station records.

    Args:
        html_content: The bulletin HTML.
        dst_policy: Offset choice for timezones that observe daylight saving.

    Returns:
        A RiverBulletin. Records are empty when the page has no river table;
        skipped rows are listed in warnings.

    Raises:
        FormatError: If the HTML is empty or the "Issued at" phrase is missing or malformed.
        UnknownTimezoneError: If the "Issued at" timezone is not in the registry.
        ExtractionError: If a data row has no station plot link.
    """
    if not html_content or not html_content.strip():
        log.warning("parse_river_heights received None or empty HTML content.")
        raise FormatError("Input HTML content is empty or invalid", source_text=html_content)

    soup = BeautifulSoup(html_content, "lxml")
    anchor = parse_issued_at(find_issued_at_text(soup), dst_policy)

    table = soup.select_one(RIVER_TABLE_SELECTOR)
    if not table:
        log.info(f"No river table ({RIVER_TABLE_SELECTOR}) in bulletin issued {anchor.iso}; returning no records.")
        return RiverBulletin(issued_at=anchor.iso)

    records: List[SensorRecord] = []
    warnings: List[str] = []
    for row_index, cells in enumerate(extract_table_rows(table)):
        outcome = resolve_row(row_index, cells, anchor)
        if outcome.status == "Parsed":
            records.append(outcome.record)
        else:
            log.warning(outcome.reason)
            warnings.append(outcome.reason)

    log.info(f"Parsed {len(records)} records from bulletin issued {anchor.iso} ({len(warnings)} rows skipped).")
    return RiverBulletin(issued_at=anchor.iso, records=records, warnings=warnings)

