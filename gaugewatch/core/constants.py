# gaugewatch/core/constants.py

# --- Timezone Table ---
# Australian timezone abbreviations seen in bulletin "Issued at" lines.
# Entries that observe daylight saving carry both offsets; see timezones.DstPolicy.
TIMEZONE_TABLE = {
    "AWST": {
        "long_name": "Australian Western Standard Time",
        "standard_offset": "+08:00",
        "dst_offset": None,
        "dst_observed": False,
        "territories": ("WA",),
    },
    "ACWST": {
        "long_name": "Australian Central Western Standard Time",
        "standard_offset": "+08:45",
        "dst_offset": None,
        "dst_observed": False,
        "territories": ("South-eastern WA", "Border Village, SA"),
    },
    "ACST": {
        "long_name": "Australian Central Standard Time",
        "standard_offset": "+09:30",
        "dst_offset": None,
        "dst_observed": False,
        "territories": ("NT",),
    },
    "ACDT": {
        "long_name": "Australian Central Daylight Time",
        "standard_offset": "+09:30",
        "dst_offset": "+10:30",
        "dst_observed": True,
        "territories": ("SA", "Broken Hill"),
    },
    "AEST": {
        "long_name": "Australian Eastern Standard Time",
        "standard_offset": "+10:00",
        "dst_offset": None,
        "dst_observed": False,
        "territories": ("QLD",),
    },
    "AEDT": {
        "long_name": "Australian Eastern Daylight Time",
        "standard_offset": "+10:00",
        "dst_offset": "+11:00",
        "dst_observed": True,
        "territories": ("NSW", "TAS", "VIC", "ACT"),
    },
}

# --- Weekdays ---
# Three-letter row weekday (lowercased) -> ordinal, 0=Sunday..6=Saturday
DAY_ABBREVIATIONS = {
    "sun": 0,
    "mon": 1,
    "tue": 2,
    "wed": 3,
    "thu": 4,
    "fri": 5,
    "sat": 6,
}

# --- Bulletin Markup ---
ISSUED_AT_MARKER = "Issued at"
# Layout of the "Issued at" date part, e.g. "Tuesday 20 January 2026"
ISSUED_AT_DATE_FORMAT = "%A %d %B %Y"
RIVER_TABLE_SELECTOR = "table.rhb"
EXPECTED_CELL_COUNT = 9
PLOT_LINK_SELECTOR = 'a[href*=".plt.shtml"]'

# Column positions within a river height row
COL_STATION_NAME = 0
COL_STATION_TYPE = 1
COL_TIME_DAY = 2
COL_HEIGHT = 3
COL_GAUGE_DATUM = 4
COL_TENDENCY = 5
COL_CROSSING = 6
COL_FLOOD_CLASSIFICATION = 7
COL_RECENT_DATA = 8

# --- Observation Enrichment ---
# Observation field holding a bare local time -> field receiving the resolved instant
OBSERVATION_LOCAL_TIME_FIELDS = {
    "maximumTempLocalTime": "maximumTempLocalTimeUTC",
    "minimumTempLocalTime": "minimumTempLocalTimeUTC",
}
OBSERVATION_REFERENCE_FIELD = "endTime"

# --- Batch Processing ---
DEFAULT_BATCH_CONCURRENCY = 4
BULLETIN_FILE_SUFFIX = ".html"
