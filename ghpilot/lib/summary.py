"""
Summary CSV reader.

Reads back the summary.csv written by simulate so publish runs can work from
the on-disk drafts without the original backlog.
"""

import csv
import io
from dataclasses import dataclass
from pathlib import Path

from ghpilot.lib.artifacts import LABEL_SEPARATOR, SUMMARY_COLUMNS
from ghpilot.lib.errors import SummaryError


@dataclass(frozen=True)
class SummaryRow:
    id: str
    title: str
    labels: tuple[str, ...]


def split_labels(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(LABEL_SEPARATOR) if part.strip())


def parse_summary_csv(text: str, source: str = "summary.csv") -> list[SummaryRow]:
    """Parse summary CSV text.

    Handles quoted fields, doubled quotes and LF or CRLF line endings.
    Whitespace-only input yields no rows.

    Raises:
        SummaryError: If the header is not exactly id,title,labels or a row
            has the wrong number of columns
    """
    if not text.strip():
        return []

    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        header = next(reader)
        if header != SUMMARY_COLUMNS:
            raise SummaryError(
                f"{source}: expected header '{','.join(SUMMARY_COLUMNS)}', got '{','.join(header)}'"
            )

        rows = []
        for record in reader:
            if not record:
                continue
            if len(record) != len(SUMMARY_COLUMNS):
                raise SummaryError(
                    f"{source}: line {reader.line_num} has {len(record)} column(s), "
                    f"expected {len(SUMMARY_COLUMNS)}"
                )
            item_id, title, labels = record
            rows.append(SummaryRow(id=item_id, title=title, labels=split_labels(labels)))
    except csv.Error as e:
        raise SummaryError(f"{source}: malformed CSV at line {reader.line_num}: {e}") from None

    return rows


def read_summary_csv(path: Path) -> list[SummaryRow]:
    """Read and parse a summary CSV file."""
    path = Path(path)
    try:
        with path.open(encoding="utf-8", newline="") as f:
            text = f.read()
    except OSError as e:
        raise SummaryError(f"Cannot read summary {path}: {e.strerror or e}") from None
    except UnicodeDecodeError as e:
        raise SummaryError(f"Cannot read summary {path}: not UTF-8 ({e.reason} at byte {e.start})") from None
    return parse_summary_csv(text, source=str(path))
