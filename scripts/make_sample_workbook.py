#!/usr/bin/env python3
"""Generate a messy takedown workbook for demos and manual testing."""

from __future__ import annotations

import argparse
import random
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

MARKETS = ["US", "UK", "DE", "FR", "BR", "IN"]
MONTHS = ["Jan 2024", "Feb 2024", "Mar 2024", "Apr 2024"]
OWNERS = ["Studio A", "Studio B", "Studio C", "Indie Label"]
ACTIVE_STATUSES = ["Active", "Live", "Online", "Approved"]
REMOVED_STATUSES = ["Removed", "Taken Down", "Deleted", "Offline", "Pending"]
OTHER_STATUSES = ["Under review", "", "null"]

# Sheet titles mirror what analysts export, not the short category codes.
SHEETS: list[tuple[str, list[str]]] = [
    ("A. Unauthorized Search Result",
     ["Market", "Month", "Content Owner", "URL", "URL Status Google", "URL Status Bing", "URL Status Yandex"]),
    ("B1 Ads Tutorials- Social Media",
     ["Market", "Month", "Content Owner", "URL", "Status"]),
    ("C1 Password Sharing-Social Med.",
     ["Market", "Month", "Content Owner", "URL", "With", "URL Status", "Status of Account"]),
    ("C2 Password Sharing-Marketplace",
     ["Market", "Month", "Content Owner", "URL", "With", "URL Status"]),
]


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _status(rng: random.Random) -> str:
    roll = rng.random()
    if roll < 0.45:
        return rng.choice(ACTIVE_STATUSES)
    if roll < 0.9:
        return rng.choice(REMOVED_STATUSES)
    return rng.choice(OTHER_STATUSES)


def _row(rng: random.Random, headers: list[str], sheet_idx: int, row_idx: int) -> list[str]:
    values: dict[str, str] = {
        "Market": rng.choice(MARKETS),
        "Month": rng.choice(MONTHS),
        "Content Owner": rng.choice(OWNERS),
        "URL": f"https://example-{sheet_idx}.test/item/{row_idx}",
        "With": rng.choice(["Telegram", "Reddit", "eBay", ""]),
        "Status": _status(rng),
        "URL Status": _status(rng),
        "Status of Account": rng.choice(["Suspended", "Active"]),
        "URL Status Google": _status(rng),
        "URL Status Bing": "",
        "URL Status Yandex": "",
    }
    # Some USR rows only carry a Bing verdict.
    if headers[4] == "URL Status Google" and rng.random() < 0.2:
        values["URL Status Bing"] = values["URL Status Google"]
        values["URL Status Google"] = ""
    return [values[h] for h in headers]


def build_sample_workbook(output: Path, *, rows_per_sheet: int = 40, seed: int = 7) -> Path:
    """Write the sample workbook to *output* and return the path.

    Every run with the same *seed* produces the same cell values. An extra
    ``Summary`` sheet and scattered blank rows exercise the parser's
    ignore rules.
    """
    if rows_per_sheet < 1:
        raise ValueError("rows_per_sheet must be >= 1")

    rng = random.Random(seed)
    wb = Workbook()
    summary = wb.active
    assert summary is not None
    summary.title = "Summary"
    summary.append(["Generated sample, ignored by the analyser"])

    for sheet_idx, (title, headers) in enumerate(SHEETS):
        ws = wb.create_sheet(title=title)
        ws.append(headers)
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row_idx in range(rows_per_sheet):
            ws.append(_row(rng, headers, sheet_idx, row_idx))
            if rng.random() < 0.05:
                ws.append([None] * len(headers))

    output.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output)
    return output


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample takedown workbook")
    parser.add_argument(
        "--output",
        type=Path,
        default=_repo_root() / "demo" / "input" / "takedowns_sample.xlsx",
        help="Output workbook path.",
    )
    parser.add_argument("--rows", type=int, default=40, help="Data rows per category sheet.")
    parser.add_argument("--seed", type=int, default=7, help="Random seed.")
    args = parser.parse_args()

    out = build_sample_workbook(args.output, rows_per_sheet=args.rows, seed=args.seed)
    print(out)


if __name__ == "__main__":
    main()
