import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Union

import aiofiles

from .constants import BULLETIN_FILE_SUFFIX, DEFAULT_BATCH_CONCURRENCY
from .errors import GaugeWatchError
from .parsers import parse_river_heights
from .timezones import DstPolicy

# Model import
from ..models.models import DocumentOutcome, SensorRecord

# Setup module logger
log = logging.getLogger(__name__)


def parse_single_document(name: str, html_content: str, dst_policy: DstPolicy = DstPolicy.ALWAYS) -> DocumentOutcome:
    """
    Parses one bulletin and wraps the result, or its document-level error, in a DocumentOutcome.

    Args:
        name: Caller-chosen document name (usually the file name), used in logs and the outcome.
        html_content: The bulletin HTML.
        dst_policy: Offset choice for timezones that observe daylight saving.

    Returns:
        A 'Success' outcome with records and warnings, or a 'ParseFailed' outcome
        naming the error.
    """
    try:
        bulletin = parse_river_heights(html_content, dst_policy)
    except GaugeWatchError as e:
        log.error(f"Error parsing {name}: {type(e).__name__}: {e}")
        return DocumentOutcome(
            name=name,
            status="ParseFailed",
            error_type=type(e).__name__,
            error_message=str(e),
        )

    return DocumentOutcome(
        name=name,
        status="Success",
        issued_at=bulletin.issued_at,
        records=bulletin.records,
        warnings=bulletin.warnings,
    )


async def parse_bulletin_documents(
    documents: Mapping[str, str],
    dst_policy: DstPolicy = DstPolicy.ALWAYS,
    max_concurrency: int = DEFAULT_BATCH_CONCURRENCY,
) -> List[DocumentOutcome]:
    """
    Parses several bulletins concurrently, each independently of the others.

    Each document is parsed in a worker thread; at most max_concurrency run at
    once. A document that fails never affects its siblings.

    Args:
        documents: Bulletin HTML keyed by document name.
        dst_policy: Offset choice for timezones that observe daylight saving.
        max_concurrency: Upper bound on documents parsed at the same time.

    Returns:
        One DocumentOutcome per document, in the order of `documents`.
    """
    if not documents:
        log.warning("No documents given to parse_bulletin_documents.")
        return []

    names = list(documents.keys())
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _parse(name: str) -> DocumentOutcome:
        async with semaphore:
            return await asyncio.to_thread(parse_single_document, name, documents[name], dst_policy)

    log.info(f"Parsing {len(names)} bulletins (concurrency {max(1, max_concurrency)}).")
    # return_exceptions=True keeps one unexpected failure from cancelling the rest
    results = await asyncio.gather(*(_parse(name) for name in names), return_exceptions=True)

    outcomes: List[DocumentOutcome] = []
    for name, result in zip(names, results):
        if isinstance(result, Exception):
            log.error(f"Task for {name} failed with {type(result).__name__}: {result}", exc_info=result)
            outcomes.append(
                DocumentOutcome(
                    name=name,
                    status="ParseFailed",
                    error_type=type(result).__name__,
                    error_message=str(result),
                )
            )
        else:
            outcomes.append(result)

    failed = sum(1 for outcome in outcomes if outcome.status != "Success")
    log.info(f"Finished parsing {len(outcomes)} bulletins: {len(outcomes) - failed} succeeded, {failed} failed.")
    return outcomes


async def load_bulletin_directory(directory: Union[str, Path]) -> Dict[str, str]:
    """
    Reads every saved bulletin (*.html) in a directory, keyed by file name.

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    path = Path(directory)
    if not path.is_dir():
        raise FileNotFoundError(f"Bulletin directory not found: {path}")

    documents: Dict[str, str] = {}
    for file in sorted(path.iterdir()):
        if not file.is_file() or file.suffix != BULLETIN_FILE_SUFFIX:
            continue
        async with aiofiles.open(file, "r", encoding="utf-8", errors="replace") as f:
            documents[file.name] = await f.read()
    log.info(f"Loaded {len(documents)} bulletin files from {path}.")
    return documents


def collect_records(outcomes: Iterable[DocumentOutcome]) -> List[SensorRecord]:
    """Flattens the records of all successful outcomes into one list."""
    return [record for outcome in outcomes if outcome.status == "Success" for record in outcome.records]
