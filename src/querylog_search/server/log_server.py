"""MCP server entrypoint (stdio transport).

Run locally (stdio):
    python -m querylog_search.server.log_server
"""

from __future__ import annotations

import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from querylog_search.resources.registry import register_resources
from querylog_search.tools.search import search_querylog_impl

LOGGER = logging.getLogger(__name__)
LOG_LEVEL_ENV = "QUERYLOG_SEARCH_LOG_LEVEL"


def configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("querylog-search", json_response=True)

register_resources(mcp)


@mcp.tool()
async def search_querylog(
    log_path: str,
    search: str | None = None,
    response_status: str | None = None,
    older_than: str | None = None,
    offset: int = 0,
    limit: int | None = None,
    clients_path: str | None = None,
) -> dict[str, Any]:
    """Search a DNS query log, newest entries first.

    Parameters
    ----------
    log_path:
        Path to a JSON-lines query log. Supports plain text and .gz.
    search:
        Domain, client IP, ClientID or client name. Case-insensitive substring
        match; wrap in double quotes (e.g. "\\"example.com\\"") for an exact match.
    response_status:
        Filtering-status category: all, filtered, blocked, blocked_services,
        blocked_safebrowsing, blocked_parental, whitelisted, rewritten,
        safe_search, processed.
    older_than:
        RFC 3339 time; only entries strictly older are returned. Use the
        previous page's "oldest" value to page backwards.
    offset/limit:
        Page position and size (limit is hard-capped in the implementation).
    clients_path:
        JSON file of persistent clients used to resolve names. Defaults to
        QUERYLOG_SEARCH_CLIENTS.

    Returns
    -------
    dict:
        {"count": int, "oldest": str | None, "entries": list[dict]}
    """
    return await search_querylog_impl(
        log_path=log_path,
        search_term=search,
        response_status=response_status,
        older_than=older_than,
        offset=offset,
        limit=limit,
        clients_path=clients_path,
    )


def main() -> None:
    """Start the MCP server over stdio."""
    configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
