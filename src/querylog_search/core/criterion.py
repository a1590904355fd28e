"""Search criteria for query-log records.

A criterion is checked twice per record: first with :meth:`SearchCriterion.quick_match`
against the raw line, and, if that passes, with :meth:`SearchCriterion.match`
against the decoded entry. The quick match never rejects a record the full
match would accept.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .fold import contains_fold, equal_fold
from .models import BLOCK_REASONS, REWRITE_REASONS, ClientInfo, FilteringResult, LogEntry, Reason
from .rawline import JsonLine, RawRecord

QuickMatchClientFunc = Callable[[str, str], ClientInfo | None]


class CriterionType(str, Enum):
    """Which rule set a criterion applies."""

    DOMAIN_OR_CLIENT = "domain_or_client"
    FILTERING_STATUS = "filtering_status"


class FilteringStatus(str, Enum):
    """Named filtering-status categories."""

    ALL = "all"
    FILTERED = "filtered"  # all kinds of filtering
    BLOCKED = "blocked"  # blocked or blocked services
    BLOCKED_SERVICES = "blocked_services"
    BLOCKED_SAFEBROWSING = "blocked_safebrowsing"
    BLOCKED_PARENTAL = "blocked_parental"
    WHITELISTED = "whitelisted"
    REWRITTEN = "rewritten"  # all kinds of rewrites
    SAFE_SEARCH = "safe_search"
    PROCESSED = "processed"  # not blocked, not allowlisted


FILTERING_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in FilteringStatus)

_PROCESSED_EXCLUDED = BLOCK_REASONS | {Reason.NOT_FILTERED_ALLOW_LIST}


def classify_filtering_status(category: str, result: FilteringResult) -> bool:
    """Report whether result belongs to the named category.

    Unknown category names never match.
    """
    try:
        status = FilteringStatus(category)
    except ValueError:
        return False

    reason = result.reason
    if status is FilteringStatus.ALL:
        return True
    if status is FilteringStatus.FILTERED:
        return (
            result.is_filtered
            or reason == Reason.NOT_FILTERED_ALLOW_LIST
            or reason in REWRITE_REASONS
        )
    if status is FilteringStatus.BLOCKED:
        return result.is_filtered and reason in BLOCK_REASONS
    if status is FilteringStatus.BLOCKED_SERVICES:
        return result.is_filtered and reason == Reason.FILTERED_BLOCKED_SERVICE
    if status is FilteringStatus.BLOCKED_PARENTAL:
        return result.is_filtered and reason == Reason.FILTERED_PARENTAL
    if status is FilteringStatus.BLOCKED_SAFEBROWSING:
        return result.is_filtered and reason == Reason.FILTERED_SAFE_BROWSING
    if status is FilteringStatus.WHITELISTED:
        return reason == Reason.NOT_FILTERED_ALLOW_LIST
    if status is FilteringStatus.REWRITTEN:
        return reason in REWRITE_REASONS
    if status is FilteringStatus.SAFE_SEARCH:
        return result.is_filtered and reason == Reason.FILTERED_SAFE_SEARCH
    if status is FilteringStatus.PROCESSED:
        return reason not in _PROCESSED_EXCLUDED
    return False


def domain_or_client_strict(term: str, client_id: str, name: str, host: str, ip: str) -> bool:
    """Exact, case-insensitive match against any of the fields."""
    return (
        equal_fold(host, term)
        or equal_fold(client_id, term)
        or equal_fold(ip, term)
        or equal_fold(name, term)
    )


def domain_or_client_non_strict(
    term: str, client_id: str, name: str, host: str, ip: str
) -> bool:
    """Case-insensitive substring match against any of the fields."""
    return (
        contains_fold(client_id, term)
        or contains_fold(host, term)
        or contains_fold(ip, term)
        or contains_fold(name, term)
    )


@dataclass(frozen=True, slots=True)
class SearchCriterion:
    """A single search predicate.

    ``strict`` means equality rather than containment and only applies to
    domain/client criteria.
    """

    value: str
    criterion_type: CriterionType = CriterionType.DOMAIN_OR_CLIENT
    strict: bool = False

    def _domain_or_client(self, client_id: str, name: str, host: str, ip: str) -> bool:
        if self.strict:
            return domain_or_client_strict(self.value, client_id, name, host, ip)
        return domain_or_client_non_strict(self.value, client_id, name, host, ip)

    def quick_match(self, record: RawRecord | str, find_client: QuickMatchClientFunc) -> bool:
        """Cheap check against a raw record; False means the record cannot match."""
        if self.criterion_type is not CriterionType.DOMAIN_OR_CLIENT:
            # Filtering statuses are not readable from the raw line.
            return True

        if isinstance(record, str):
            record = JsonLine(record)

        host = record.host()
        ip = record.ip()
        client_id = record.client_id()

        name = ""
        cli = find_client(client_id, ip)
        if cli is not None:
            name = cli.name

        return self._domain_or_client(client_id, name, host, ip)

    def match(self, entry: LogEntry) -> bool:
        """Definitive check against a decoded entry."""
        if self.criterion_type is CriterionType.DOMAIN_OR_CLIENT:
            return self._domain_or_client(
                entry.client_id, entry.client_name, entry.host, entry.ip_text
            )
        if self.criterion_type is CriterionType.FILTERING_STATUS:
            return classify_filtering_status(self.value, entry.result)
        return False
