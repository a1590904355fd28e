"""Core data models for query-log search."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from ipaddress import IPv4Address, IPv6Address


class Reason(IntEnum):
    """Filtering reason codes as stored in the query log."""

    NOT_FILTERED_NOT_FOUND = 0
    NOT_FILTERED_ALLOW_LIST = 1
    NOT_FILTERED_ERROR = 2
    FILTERED_BLOCK_LIST = 3
    FILTERED_SAFE_BROWSING = 4
    FILTERED_PARENTAL = 5
    FILTERED_INVALID = 6
    FILTERED_SAFE_SEARCH = 7
    FILTERED_BLOCKED_SERVICE = 8
    REWRITTEN = 9
    REWRITTEN_AUTO_HOSTS = 10
    REWRITTEN_RULE = 11

    @classmethod
    def from_code(cls, code: object) -> Reason:
        """Map an on-disk code to a Reason; unknown codes mean "not filtered"."""
        if isinstance(code, bool) or not isinstance(code, int):
            return cls.NOT_FILTERED_NOT_FOUND
        try:
            return cls(code)
        except ValueError:
            return cls.NOT_FILTERED_NOT_FOUND


REWRITE_REASONS = frozenset(
    {Reason.REWRITTEN, Reason.REWRITTEN_AUTO_HOSTS, Reason.REWRITTEN_RULE}
)
BLOCK_REASONS = frozenset({Reason.FILTERED_BLOCK_LIST, Reason.FILTERED_BLOCKED_SERVICE})


@dataclass(frozen=True, slots=True)
class ResultRule:
    """A filtering rule that contributed to a result."""

    text: str
    filter_list_id: int = 0


@dataclass(frozen=True, slots=True)
class FilteringResult:
    """Outcome of the filtering engine for a single query."""

    is_filtered: bool = False
    reason: Reason = Reason.NOT_FILTERED_NOT_FOUND
    rules: tuple[ResultRule, ...] = ()
    service_name: str = ""
    cname: str = ""
    ip_list: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClientInfo:
    """Persistent client known by name and a set of identifiers."""

    name: str
    ids: tuple[str, ...] = ()


IPAddress = IPv4Address | IPv6Address


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Fully decoded query-log record."""

    time: datetime | None
    host: str
    qtype: str = ""
    qclass: str = ""
    client_id: str = ""
    ip: IPAddress | None = None
    client_proto: str = ""
    upstream: str = ""
    elapsed_ms: float = 0.0
    cached: bool = False
    answer_dnssec: bool = False
    result: FilteringResult = field(default_factory=FilteringResult)
    client: ClientInfo | None = None  # resolved by the search layer, not stored on disk

    @property
    def ip_text(self) -> str:
        """Textual client IP, empty when unknown."""
        return str(self.ip) if self.ip is not None else ""

    @property
    def client_name(self) -> str:
        return self.client.name if self.client is not None else ""
