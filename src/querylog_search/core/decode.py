"""JSON-lines query-log decoder."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from ipaddress import ip_address
from typing import Any

from .models import FilteringResult, IPAddress, LogEntry, Reason, ResultRule
from .rawline import normalize_ip

logger = logging.getLogger(__name__)


def parse_log_time(value: object) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        return None
    s = value.replace("Z", "+00:00")
    # Trim sub-microsecond precision (nanosecond timestamps are common here).
    dot = s.find(".")
    if dot != -1:
        end = dot + 1
        while end < len(s) and s[end].isdigit():
            end += 1
        s = s[: dot + 1] + s[dot + 1 : end][:6].ljust(6, "0") + s[end:]
    try:
        ts = datetime.fromisoformat(s)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def _str(obj: dict[str, Any], key: str) -> str:
    val = obj.get(key)
    return val if isinstance(val, str) else ""


def _decode_ip(value: str) -> IPAddress | None:
    text = normalize_ip(value)
    return ip_address(text) if text else None


def _decode_rules(raw: object) -> tuple[ResultRule, ...]:
    if not isinstance(raw, list):
        return ()
    rules: list[ResultRule] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        list_id = item.get("FilterListID")
        rules.append(
            ResultRule(
                text=_str(item, "Text"),
                filter_list_id=list_id if isinstance(list_id, int) else 0,
            )
        )
    return tuple(rules)


def decode_result(raw: object) -> FilteringResult:
    """Decode the nested "Result" object; missing data means "not filtered"."""
    if not isinstance(raw, dict):
        return FilteringResult()

    ip_list = raw.get("IPList")
    return FilteringResult(
        is_filtered=raw.get("IsFiltered") is True,
        reason=Reason.from_code(raw.get("Reason")),
        rules=_decode_rules(raw.get("Rules")),
        service_name=_str(raw, "ServiceName"),
        cname=_str(raw, "CanonName"),
        ip_list=tuple(str(x) for x in ip_list) if isinstance(ip_list, list) else (),
    )


def decode_log_entry(line: str) -> LogEntry | None:
    """Decode one JSON line into a LogEntry, or None if it is not a record."""
    s = line.strip()
    if not s:
        return None

    try:
        obj = json.loads(s)
    except json.JSONDecodeError as exc:
        logger.debug("Skipping undecodable log line: %s", exc)
        return None

    if not isinstance(obj, dict):
        logger.debug("Skipping log line that is not a JSON object")
        return None

    elapsed = obj.get("Elapsed")
    elapsed_ms = 0.0
    if isinstance(elapsed, (int, float)) and not isinstance(elapsed, bool):
        elapsed_ms = elapsed / 1_000_000

    return LogEntry(
        time=parse_log_time(obj.get("T")),
        host=_str(obj, "QH"),
        qtype=_str(obj, "QT"),
        qclass=_str(obj, "QC"),
        client_id=_str(obj, "CID"),
        ip=_decode_ip(_str(obj, "IP")),
        client_proto=_str(obj, "CP"),
        upstream=_str(obj, "Upstream"),
        elapsed_ms=elapsed_ms,
        cached=obj.get("Cached") is True,
        answer_dnssec=obj.get("AD") is True,
        result=decode_result(obj.get("Result")),
    )
