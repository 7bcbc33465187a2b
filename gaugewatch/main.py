import os
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import ORJSONResponse

# Model and Core Service imports
from .models.models import RiverBulletin
from .models.api_models import (BatchParseRequest, BatchParseResponse,
                                ObservationTimesRequest,
                                ObservationTimesResponse, TimezoneInfo)
from .core.constants import DEFAULT_BATCH_CONCURRENCY
from .core.errors import GaugeWatchError
from .core.observations import resolve_observation_times
from .core.parsers import parse_river_heights
from .core.service import (collect_records, load_bulletin_directory,
                           parse_bulletin_documents)
from .core.timezones import DstPolicy, describe_timezones


# Load environment variables from .env file located in the same directory as this script
# or any parent directory.
load_dotenv()


def _read_batch_concurrency(default: int = DEFAULT_BATCH_CONCURRENCY) -> int:
    value = os.getenv("GAUGEWATCH_BATCH_CONCURRENCY")
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


# --- Configuration ---
DST_POLICY = DstPolicy.from_value(os.getenv("GAUGEWATCH_DST_POLICY"))
BATCH_CONCURRENCY = _read_batch_concurrency()
BULLETIN_DIR = os.getenv("GAUGEWATCH_BULLETIN_DIR") or None
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='[%(asctime)s] %(levelname)s - %(name)s - %(message)s')
log = logging.getLogger(__name__) # Get logger for this module


# --- Lifespan Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Lifespan: Application startup sequence initiated.")
    try:
        logging.getLogger().setLevel(LOG_LEVEL)
    except ValueError:
        log.warning(f"Lifespan startup: Unknown LOG_LEVEL '{LOG_LEVEL}', keeping INFO.")
    log.info(
        f"Lifespan startup: DST policy '{DST_POLICY.value}', batch concurrency {BATCH_CONCURRENCY}, "
        f"bulletin directory {BULLETIN_DIR or '(not set)'}."
    )
    yield # Application runs here
    log.info("Lifespan: Application shutdown sequence complete.")


app = FastAPI(
    title="GaugeWatch API",
    description="API for turning river height bulletins into timestamped station records.",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan
)


@app.exception_handler(GaugeWatchError)
async def gaugewatch_error_handler(request: Request, exc: GaugeWatchError):
    log.warning(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc}")
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "errorType": type(exc).__name__},
    )


@app.get("/")
async def read_root():
    """
    Root endpoint for the GaugeWatch API.
    Returns a simple message indicating the API is running.
    """
    return {"message": "GaugeWatch API is running"}


@app.get(
    "/timezones",
    response_model=List[TimezoneInfo],
    summary="List known timezone abbreviations",
    tags=["Timezones"],
)
async def list_timezones(dst_policy: Optional[DstPolicy] = Query(None, alias="dstPolicy")):
    """Returns the timezone registry and the offset each entry resolves to under the DST policy."""
    return describe_timezones(dst_policy or DST_POLICY)


# --- Bulletins ---

@app.post(
    "/bulletins/parse",
    response_model=RiverBulletin,
    summary="Parse one river height bulletin",
    tags=["Bulletins"],
)
async def parse_bulletin(request: Request, dst_policy: Optional[DstPolicy] = Query(None, alias="dstPolicy")):
    """
    Parses a raw bulletin HTML body.

    - Resolves the "Issued at" instant.
    - Resolves every data row's timestamp from its time and weekday.
    - Returns the records plus warnings for rows that were skipped.
    """
    body = await request.body()
    html_content = body.decode("utf-8", errors="replace")
    log.debug(f"Parsing bulletin of {len(html_content)} characters.")
    return parse_river_heights(html_content, dst_policy or DST_POLICY)


def _batch_response(outcomes) -> BatchParseResponse:
    return BatchParseResponse(
        documents=outcomes,
        record_count=len(collect_records(outcomes)),
        failed_count=sum(1 for outcome in outcomes if outcome.status != "Success"),
    )


@app.post(
    "/bulletins/batch",
    response_model=BatchParseResponse,
    summary="Parse several bulletins",
    tags=["Bulletins"],
)
async def parse_bulletin_batch(
    batch_request: BatchParseRequest,
    dst_policy: Optional[DstPolicy] = Query(None, alias="dstPolicy"),
):
    """
    Parses each submitted bulletin independently. A document that fails is
    reported in its own outcome and does not affect the others.
    """
    outcomes = await parse_bulletin_documents(
        batch_request.documents,
        dst_policy=dst_policy or DST_POLICY,
        max_concurrency=BATCH_CONCURRENCY,
    )
    return _batch_response(outcomes)


@app.get(
    "/bulletins/local",
    response_model=BatchParseResponse,
    summary="Parse the saved bulletins in the configured directory",
    tags=["Bulletins"],
)
async def parse_local_bulletins(dst_policy: Optional[DstPolicy] = Query(None, alias="dstPolicy")):
    """Parses every .html file in GAUGEWATCH_BULLETIN_DIR."""
    if not BULLETIN_DIR:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="GAUGEWATCH_BULLETIN_DIR is not configured.")
    try:
        documents = await load_bulletin_directory(BULLETIN_DIR)
    except FileNotFoundError as e:
        log.error(f"Bulletin directory unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    outcomes = await parse_bulletin_documents(
        documents,
        dst_policy=dst_policy or DST_POLICY,
        max_concurrency=BATCH_CONCURRENCY,
    )
    return _batch_response(outcomes)


# --- Observations ---

@app.post(
    "/observations/resolve-times",
    response_model=ObservationTimesResponse,
    summary="Resolve an observation's local-time fields",
    tags=["Observations"],
)
async def resolve_times(observation_request: ObservationTimesRequest):
    """
    Adds maximumTempLocalTimeUTC and minimumTempLocalTimeUTC to an observation,
    resolving its local times against its endTime.
    """
    return ObservationTimesResponse(values=resolve_observation_times(observation_request.values))
