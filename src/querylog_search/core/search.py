"""Query-log search.

Reads a JSON-lines query log, skips records that cannot match using the raw
line, and decodes and fully matches the rest.
"""

from __future__ import annotations

import gzip
import logging
from collections import deque
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap

from .clients import ClientFinder, no_clients
from .criterion import SearchCriterion
from .decode import decode_log_entry
from .models import LogEntry
from .rawline import JsonLine

logger = logging.getLogger(__name__)

MAX_LIMIT = 5000


@dataclass(frozen=True, slots=True)
class SearchParams:
    """What to search for and which page of results to return.

    All criteria must match. Results are ordered newest first.
    """

    criteria: Sequence[SearchCriterion] = ()
    older_than: datetime | None = None
    offset: int = 0
    limit: int = 500


@dataclass(frozen=True, slots=True)
class SearchResult:
    entries: list[LogEntry]
    oldest: datetime | None  # time of the oldest returned entry
    scanned: int  # lines read
    decoded: int  # lines that passed the quick match and decoded


@dataclass(slots=True)
class _Counters:
    scanned: int = 0
    decoded: int = 0


def validate_params(params: SearchParams) -> None:
    if params.offset < 0:
        raise ValueError("offset must be >= 0")
    if params.limit < 1:
        raise ValueError("limit must be >= 1")
    if params.limit > MAX_LIMIT:
        raise ValueError(f"limit must be <= {MAX_LIMIT}")


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


def _older(entry: LogEntry, older_than: datetime | None) -> bool:
    if older_than is None:
        return True
    return entry.time is not None and entry.time < older_than


async def _iter_matches(
    path: Path,
    params: SearchParams,
    find_client: ClientFinder,
    counters: _Counters,
    *,
    encoding: str,
    decode_errors: str,
) -> AsyncIterator[LogEntry]:
    criteria = tuple(params.criteria)

    async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
        async for line in f:
            counters.scanned += 1
            line = line.rstrip("\r\n")
            if not line:
                continue

            raw = JsonLine(line)
            if not all(c.quick_match(raw, find_client) for c in criteria):
                continue

            entry = decode_log_entry(line)
            if entry is None:
                continue
            counters.decoded += 1

            client = find_client(entry.client_id, entry.ip_text)
            if client is not None:
                entry = replace(entry, client=client)

            if not _older(entry, params.older_than):
                continue
            if all(c.match(entry) for c in criteria):
                yield entry


async def iter_matches(
    log_path: str | Path,
    params: SearchParams,
    find_client: ClientFinder = no_clients,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> AsyncIterator[LogEntry]:
    """Yield every matching entry in file order (oldest first).

    Paging fields of params are ignored.
    """
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Query log not found: {path}")

    async for entry in _iter_matches(
        path,
        params,
        find_client,
        _Counters(),
        encoding=encoding,
        decode_errors=decode_errors,
    ):
        yield entry


async def search(
    log_path: str | Path,
    params: SearchParams,
    find_client: ClientFinder = no_clients,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> SearchResult:
    """Return one newest-first page of matching entries."""
    validate_params(params)

    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Query log not found: {path}")

    # Only the newest offset+limit matches can end up on the page.
    window: deque[LogEntry] = deque(maxlen=params.offset + params.limit)
    counters = _Counters()
    async for entry in _iter_matches(
        path,
        params,
        find_client,
        counters,
        encoding=encoding,
        decode_errors=decode_errors,
    ):
        window.append(entry)

    newest_first = list(reversed(window))
    page = newest_first[params.offset : params.offset + params.limit]
    oldest = page[-1].time if page else None

    logger.debug(
        "Searched %s: scanned=%d decoded=%d returned=%d",
        path,
        counters.scanned,
        counters.decoded,
        len(page),
    )
    return SearchResult(
        entries=page,
        oldest=oldest,
        scanned=counters.scanned,
        decoded=counters.decoded,
    )
