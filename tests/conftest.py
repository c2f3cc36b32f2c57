"""Shared workbook builders for the test suite."""

from __future__ import annotations

import io
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from takedown_insights.log import reset_logging

SheetSpec = Sequence[tuple[str, Sequence[Sequence[Any]]]]


def build_xlsx(sheets: SheetSpec) -> bytes:
    wb = Workbook()
    default = wb.active
    if default is not None:
        wb.remove(default)
    for name, rows in sheets:
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_xlsx() -> Callable[[SheetSpec], bytes]:
    return build_xlsx


@pytest.fixture
def write_xlsx(tmp_path: Path) -> Callable[..., Path]:
    def _write(sheets: SheetSpec, name: str = "takedowns.xlsx") -> Path:
        path = tmp_path / name
        path.write_bytes(build_xlsx(sheets))
        return path

    return _write


@pytest.fixture
def one_row_each_status() -> list[tuple[str, list[list[str]]]]:
    """One sheet per category, each with one active and one removed URL."""
    plain = ["URL", "Status", "Market", "Month", "Content Owner"]
    url_status = ["URL", "URL Status", "Market", "Month", "Content Owner"]
    return [
        ("Unauthorized Search Result", [
            plain,
            ["http://usr.example/1", "Active", "US", "Jan 2024", "Studio A"],
            ["http://usr.example/2", "Removed", "UK", "Feb 2024", "Studio B"],
        ]),
        ("Ads Tutorials- Social Media", [
            plain,
            ["http://atsm.example/1", "Live", "US", "Jan 2024", "Studio A"],
            ["http://atsm.example/2", "Taken Down", "DE", "Jan 2024", "Studio A"],
        ]),
        ("Password Sharing-Social Med.", [
            url_status,
            ["http://pssm.example/1", "Online", "FR", "Mar 2024", "Studio C"],
            ["http://pssm.example/2", "Deleted", "US", "Mar 2024", "Studio B"],
        ]),
        ("Password Sharing-Marketplace", [
            url_status,
            ["http://psmp.example/1", "Approved", "US", "Feb 2024", "Studio C"],
            ["http://psmp.example/2", "Offline", "UK", "Feb 2024", "Studio A"],
        ]),
    ]


@pytest.fixture(autouse=True)
def _reset_logging() -> Any:
    yield
    reset_logging()
