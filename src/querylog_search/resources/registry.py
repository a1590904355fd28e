"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import asyncio
import gzip
import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from querylog_search.core.criterion import FILTERING_STATUS_VALUES
from querylog_search.tools.search import SearchResponse

ALLOWED_FILE_SUFFIXES = {".json", ".jsonl", ".log"}
BASE_DIR_ENV = "QUERYLOG_SEARCH_BASE_DIR"
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "replace"

SAMPLE_LOG = (
    '{"T":"2025-12-30T08:12:01.123456789Z","QH":"example.com","QT":"A","QC":"IN",'
    '"CP":"","Upstream":"tls://dns.example:853","IP":"192.168.1.10",'
    '"Result":{},"Elapsed":1520000,"CID":""}\n'
    '{"T":"2025-12-30T08:12:03Z","QH":"ads.example.com","QT":"A","QC":"IN",'
    '"CP":"doh","IP":"192.168.1.20",'
    '"Result":{"IsFiltered":true,"Reason":3,"Rules":[{"Text":"||ads.example.com^","FilterListID":1}]},'
    '"Elapsed":310000,"CID":"tv"}\n'
)


def _base_dir() -> Path:
    """Return the resolved base directory for file resources."""
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def _safe_resolve(path: str) -> Path:
    """Resolve a path under the configured base directory."""
    base = _base_dir()
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p


def _resolve_log_path(path: str) -> Path:
    """Resolve and validate a query-log file path."""
    resolved = _safe_resolve(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    suffix = resolved.suffix.lower()
    if suffix == ".gz":
        suffix = resolved.with_suffix("").suffix.lower()
    if suffix not in ALLOWED_FILE_SUFFIXES:
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        raise ValueError(f"File type not allowed. Allowed: {allowed}.")
    return resolved


def _read_text(path: Path) -> str:
    if path.suffix.lower() == ".gz":
        with gzip.open(path, mode="rt", encoding=TEXT_ENCODING, errors=TEXT_ERRORS) as f:
            return f.read()
    return path.read_text(encoding=TEXT_ENCODING, errors=TEXT_ERRORS)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://querylog-search/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        return (
            "Resources:\n"
            "- app://querylog-search/help\n"
            "- app://querylog-search/filtering-statuses\n"
            "- app://querylog-search/schemas/search-response\n"
            "- app://querylog-search/examples/sample-log\n"
            f"- querylog://{{path}} (restricted to {BASE_DIR_ENV}; allowed: {allowed}, .gz)\n"
            f"\nBase directory: {_base_dir()}\n"
        )

    @mcp.resource("app://querylog-search/filtering-statuses")
    def filtering_statuses() -> list[str]:
        """Return the accepted response_status values."""
        return list(FILTERING_STATUS_VALUES)

    @mcp.resource("app://querylog-search/schemas/search-response")
    def search_response_schema() -> dict[str, Any]:
        """Return the JSON schema of search_querylog results."""
        return SearchResponse.model_json_schema(by_alias=True)

    @mcp.resource("app://querylog-search/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny query log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("querylog://{path}")
    async def read_querylog(path: str) -> str:
        """Return raw query-log contents from within QUERYLOG_SEARCH_BASE_DIR."""
        p = _resolve_log_path(path)
        return await asyncio.to_thread(_read_text, p)
