from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

SAMPLE_RECORDS: list[dict[str, Any]] = [
    {
        "T": "2025-12-30T08:12:01.123456789Z",
        "QH": "example.com",
        "QT": "A",
        "QC": "IN",
        "CP": "",
        "Upstream": "tls://dns.example:853",
        "IP": "192.168.1.10",
        "Result": {},
        "Elapsed": 1520000,
    },
    {
        "T": "2025-12-30T08:12:02Z",
        "QH": "ads.example.com",
        "QT": "A",
        "QC": "IN",
        "CP": "doh",
        "IP": "192.168.1.20",
        "Result": {
            "IsFiltered": True,
            "Reason": 3,
            "Rules": [{"Text": "||ads.example.com^", "FilterListID": 1}],
        },
        "Elapsed": 310000,
        "CID": "tv",
    },
    {
        "T": "2025-12-30T08:12:03Z",
        "QH": "allowed.example.org",
        "QT": "AAAA",
        "QC": "IN",
        "IP": "2001:db8::1",
        "Result": {"Reason": 1, "Rules": [{"Text": "@@||allowed.example.org^"}]},
    },
    {
        "T": "2025-12-30T08:12:04Z",
        "QH": "youtube.com",
        "QT": "A",
        "QC": "IN",
        "IP": "10.0.0.5",
        "Result": {"IsFiltered": True, "Reason": 8, "ServiceName": "youtube"},
        "CID": "kids-tablet",
    },
    {
        "T": "2025-12-30T08:12:05Z",
        "QH": "router.lan",
        "QT": "A",
        "QC": "IN",
        "IP": "192.168.1.10",
        "Result": {"Reason": 10},
    },
]

CLIENTS_DOC: dict[str, Any] = {
    "clients": [
        {"name": "Living Room TV", "ids": ["tv"]},
        {"name": "Office Laptop", "ids": ["192.168.1.10"]},
        {"name": "Kids", "ids": ["10.0.0.0/24"]},
    ]
}


@pytest.fixture
def write_querylog() -> Callable[[Path, list[dict[str, Any]]], None]:
    def _write(path: Path, records: list[dict[str, Any]]) -> None:
        path.write_text(
            "".join(json.dumps(r, separators=(",", ":")) + "\n" for r in records),
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def sample_log(tmp_path: Path, write_querylog) -> Path:
    path = tmp_path / "querylog.json"
    write_querylog(path, SAMPLE_RECORDS)
    return path


@pytest.fixture
def clients_file(tmp_path: Path) -> Path:
    path = tmp_path / "clients.json"
    path.write_text(json.dumps(CLIENTS_DOC), encoding="utf-8")
    return path


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    return [dict(r) for r in SAMPLE_RECORDS]
