"""Cheap field extraction from raw query-log lines.

Used by the quick matcher to look at a handful of string fields without
decoding the whole JSON record.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from ipaddress import ip_address
from typing import Protocol

HOST_KEY = "QH"
IP_KEY = "IP"
CLIENT_ID_KEY = "CID"

class RawRecord(Protocol):
    """Raw record that can report the fields needed for a quick match."""

    def host(self) -> str:
        ...

    def ip(self) -> str:
        ...

    def client_id(self) -> str:
        ...

def normalize_ip(value: str) -> str:
    """Return the canonical text form of an IP address, or "" if invalid."""
    if not value:
        return ""
    try:
        return str(ip_address(value))
    except ValueError:
        return ""

_WHITESPACE = " \t\r\n"

def _string_end(line: str, start: int) -> int:
    """Return the index of the quote closing the string opened at start, or -1."""
    i = start + 1
    n = len(line)
    while i < n:
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c == '"':
            return i
        i += 1
    return -1

def _unescape(raw: str) -> str:
    if "\\" not in raw:
        return raw
    try:
        return json.loads(f'"{raw}"')
    except json.JSONDecodeError:
        return raw

def _skip_ws(line: str, i: int) -> int:
    while i < len(line) and line[i] in _WHITESPACE:
        i += 1
    return i

def read_json_value(line: str, key: str) -> str:
    """Return the string value stored under a top-level key of a JSON object line.

    Keys inside nested objects and arrays are ignored. When a key repeats, the
    last occurrence wins, as with ``json.loads``. Missing keys, non-string
    values and unterminated strings all read as "".
    """
    found = ""
    depth = 0
    expect_key = False
    i = 0
    n = len(line)
    while i < n:
        c = line[i]
        if c == '"':
            end = _string_end(line, i)
            if end == -1:
                return ""
            if depth != 1 or not expect_key:
                i = end + 1
                continue

            name = _unescape(line[i + 1 : end])
            expect_key = False
            i = _skip_ws(line, end + 1)
            if i >= n or line[i] != ":":
                continue
            i = _skip_ws(line, i + 1)
            if i < n and line[i] == '"':
                value_end = _string_end(line, i)
                if value_end == -1:
                    return ""
                if name == key:
                    found = _unescape(line[i + 1 : value_end])
                i = value_end + 1
            elif name == key:
                found = ""
            continue

        if c in "{[":
            depth += 1
            expect_key = c == "{" and depth == 1
        elif c in "}]":
            depth -= 1
        elif c == "," and depth == 1:
            expect_key = True
        i += 1
    return found


@dataclass(frozen=True, slots=True)
class JsonLine:
    """RawRecord over a single JSON-lines query-log record."""

    line: str

    def host(self) -> str:
        return read_json_value(self.line, HOST_KEY)

    def ip(self) -> str:
        return normalize_ip(read_json_value(self.line, IP_KEY))

    def client_id(self) -> str:
        return read_json_value(self.line, CLIENT_ID_KEY)
