"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from querylog_search.core.clients import ClientFinder, load_clients, no_clients
from querylog_search.core.criterion import (
    FILTERING_STATUS_VALUES,
    CriterionType,
    FilteringStatus,
    SearchCriterion,
)
from querylog_search.core.decode import parse_log_time
from querylog_search.core.models import LogEntry
from querylog_search.core.search import MAX_LIMIT, SearchParams, search

DEFAULT_LIMIT = 500
CLIENTS_ENV = "QUERYLOG_SEARCH_CLIENTS"


class QuestionOut(BaseModel):
    host: str
    type: str
    class_: str = Field(alias="class")


class ClientInfoOut(BaseModel):
    name: str


class RuleOut(BaseModel):
    text: str
    filter_list_id: int


class EntryOut(BaseModel):
    time: str | None
    question: QuestionOut
    client: str
    client_id: str
    client_proto: str
    client_info: ClientInfoOut | None = None
    reason: str
    rules: list[RuleOut] = Field(default_factory=list)
    service_name: str = ""
    cached: bool = False
    answer_dnssec: bool = False
    elapsedMs: str
    upstream: str = ""


class SearchResponse(BaseModel):
    count: int = Field(description="Number of entries in this page.")
    oldest: str | None = Field(
        description="Time of the oldest returned entry; pass as older_than for the next page."
    )
    entries: list[EntryOut] = Field(default_factory=list)


def parse_search_criteria(
    search_term: str | None = None,
    response_status: str | None = None,
) -> list[SearchCriterion]:
    """Build criteria from user input.

    A term wrapped in double quotes is matched exactly; otherwise it is a
    substring search. ``response_status`` must be a known category.
    """
    criteria: list[SearchCriterion] = []

    term = (search_term or "").strip()
    if term:
        strict = len(term) >= 2 and term.startswith('"') and term.endswith('"')
        if strict:
            term = term[1:-1]
        if term:
            criteria.append(
                SearchCriterion(
                    value=term,
                    criterion_type=CriterionType.DOMAIN_OR_CLIENT,
                    strict=strict,
                )
            )

    status = (response_status or "").strip()
    if status:
        if status not in FILTERING_STATUS_VALUES:
            valid = ", ".join(FILTERING_STATUS_VALUES)
            raise ValueError(f"Unknown response_status '{status}'. Valid values: {valid}.")
        if status != FilteringStatus.ALL.value:
            criteria.append(
                SearchCriterion(value=status, criterion_type=CriterionType.FILTERING_STATUS)
            )

    return criteria


def resolve_client_finder(clients_path: str | None) -> ClientFinder:
    """Return a client finder from an explicit path, the environment, or nothing."""
    path = clients_path or os.getenv(CLIENTS_ENV)
    if not path:
        return no_clients
    return load_clients(path)


def _fmt_time(ts: datetime | None) -> str | None:
    return ts.isoformat().replace("+00:00", "Z") if ts is not None else None


def entry_to_model(entry: LogEntry) -> EntryOut:
    """Render an entry like the query-log HTTP API does."""
    res = entry.result
    return EntryOut(
        time=_fmt_time(entry.time),
        question=QuestionOut(host=entry.host, type=entry.qtype, **{"class": entry.qclass}),
        client=entry.ip_text,
        client_id=entry.client_id,
        client_proto=entry.client_proto,
        client_info=ClientInfoOut(name=entry.client.name) if entry.client is not None else None,
        reason=res.reason.name,
        rules=[RuleOut(text=r.text, filter_list_id=r.filter_list_id) for r in res.rules],
        service_name=res.service_name,
        cached=entry.cached,
        answer_dnssec=entry.answer_dnssec,
        elapsedMs=f"{entry.elapsed_ms:.3f}",
        upstream=entry.upstream,
    )


async def search_querylog_impl(
    *,
    log_path: str,
    search_term: str | None = None,
    response_status: str | None = None,
    older_than: str | None = None,
    offset: int = 0,
    limit: int | None = None,
    clients_path: str | None = None,
) -> dict[str, Any]:
    """Implementation for the `search_querylog` MCP tool."""
    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    if limit > MAX_LIMIT:
        limit = MAX_LIMIT
    if offset < 0:
        raise ValueError("offset must be >= 0")

    older_than_dt: datetime | None = None
    if older_than:
        older_than_dt = parse_log_time(older_than)
        if older_than_dt is None:
            raise ValueError(f"older_than must be an RFC 3339 time, got '{older_than}'")

    params = SearchParams(
        criteria=parse_search_criteria(search_term, response_status),
        older_than=older_than_dt,
        offset=offset,
        limit=limit,
    )
    result = await search(log_path, params, resolve_client_finder(clients_path))

    response = SearchResponse(
        count=len(result.entries),
        oldest=_fmt_time(result.oldest),
        entries=[entry_to_model(e) for e in result.entries],
    )
    return response.model_dump(by_alias=True)
