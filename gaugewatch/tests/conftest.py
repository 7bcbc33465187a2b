import sys
import os

# Add project root to sys.path to allow imports like 'from gaugewatch...'
# This assumes pytest is run from the project root directory
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import httpx
import pytest
import pytest_asyncio
from typing import AsyncGenerator

from gaugewatch.main import app

# --- Shared Bulletin Markup ---

ISSUED_AT_PARAGRAPH = "<p>Issued at 03:24 PM ACST Tuesday 20 January 2026</p>"

TABLE_HEADER = """
<thead>
<tr><th>Station Name</th><th>Type</th><th>Time/Day</th><th>Height (m)</th><th>Gauge Datum</th>
<th>Tendency</th><th>Crossing (m)</th><th>Flood Classification</th><th>Recent Data</th></tr>
</thead>
"""


def make_row(name, time_day, height="1.00", station_id="515008", station_type="Automatic",
             datum="LGH", tendency="steady", crossing="&nbsp;", flood="&nbsp;", link=True):
    """Builds one nine-cell river height row."""
    if link:
        recent = (
            f'<a href="/fwo/IDD60022/IDD60022.{station_id}.plt.shtml">Plot</a> | '
            f'<a href="/fwo/IDD60022/IDD60022.{station_id}.tbl.shtml">Table</a>'
        )
    else:
        recent = "&nbsp;"
    return (
        f"<tr><td>{name}</td><td>{station_type}</td><td>{time_day}</td><td>{height}</td>"
        f"<td>{datum}</td><td>{tendency}</td><td>{crossing}</td><td>{flood}</td><td>{recent}</td></tr>"
    )


def make_bulletin(rows, issued_at=ISSUED_AT_PARAGRAPH, with_table=True):
    """Wraps rows in a bulletin page with an "Issued at" paragraph."""
    table = ""
    if with_table:
        table = f'<table class="rhb">{TABLE_HEADER}<tbody>{"".join(rows)}</tbody></table>'
    return (
        "<html><head><title>River Heights</title></head><body>"
        '<p class="p-id">IDD60022</p>'
        f"{issued_at}"
        f"{table}"
        "</body></html>"
    )


# A realistic bulletin: two good rows, structural noise and three malformed rows
SAMPLE_ROWS = [
    '<tr><th rowspan="2" colspan="9">Todd River</th></tr>',
    make_row("Todd River at Bond Springs", "03.10PM&nbsp;Tue", height="1.00", station_id="515008"),
    make_row("Charles&nbsp;River at Heavitree Gap", "11.45AM Mon", height="&nbsp;", station_id="515010",
             tendency="falling"),
    '<tr><td colspan="9">Finke River</td></tr>',
    make_row("Finke River at Glen Helen", "&nbsp;", station_id="513005"),
    make_row("Hugh River at Stuart Highway", "--", station_id="513012"),
    make_row("Ellery Creek at Namatjira Drive", "09.00AM Xyz", station_id="513013"),
    make_row("Palm Creek at Hermannsburg", "12.00AM Sun", height="0.25", station_id="513020"),
]


@pytest.fixture
def sample_bulletin_html() -> str:
    return make_bulletin(SAMPLE_ROWS)


@pytest.fixture
def bulletin_factory():
    """Returns make_bulletin so tests can build their own pages."""
    return make_bulletin


@pytest.fixture
def row_factory():
    """Returns make_row so tests can build their own rows."""
    return make_row


@pytest_asyncio.fixture(scope="function")
async def async_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Provides an asynchronous test client bound to the app in-process.
    """
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
