from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from querylog_search.core.criterion import FILTERING_STATUS_VALUES
from querylog_search.tools.search import DEFAULT_LIMIT, search_querylog_impl


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Search a DNS query log (quick prefilter + full match).")
    p.add_argument("log_path")
    p.add_argument(
        "--search",
        default=None,
        help='Domain, IP, ClientID or client name. Quote the term ("...") for an exact match.',
    )
    p.add_argument("--status", choices=FILTERING_STATUS_VALUES, default=None, help="Filtering status")
    p.add_argument("--clients", dest="clients_path", default=None, help="Persistent clients JSON file")
    p.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help=f"Page size (default: {DEFAULT_LIMIT})")
    p.add_argument("--offset", type=int, default=0, help="Entries to skip from the newest match")
    p.add_argument("--older-than", default=None, help="RFC 3339 time; only older entries are returned")
    p.add_argument("--json", dest="as_json", action="store_true", help="Print the raw JSON response")
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    try:
        out = asyncio.run(
            search_querylog_impl(
                log_path=args.log_path,
                search_term=args.search,
                response_status=args.status,
                older_than=args.older_than,
                offset=args.offset,
                limit=args.limit,
                clients_path=args.clients_path,
            )
        )
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    if args.as_json:
        print(json.dumps(out, indent=2))
        return

    for e in out["entries"]:
        who = e["client_info"]["name"] if e["client_info"] else (e["client_id"] or e["client"])
        print(f"{e['time'] or '-'} {who} {e['question']['host']} {e['question']['type']} [{e['reason']}]")

    print(f"\nFound {out['count']} matching entries.")


if __name__ == "__main__":
    main()
