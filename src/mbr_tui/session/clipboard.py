"""Serialize result rows for the copy picker."""

import csv
import io
import json
import re
from enum import Enum
from typing import Sequence


class CopyFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    TSV = "tsv"

    @property
    def label(self) -> str:
        return self.value.upper()

    @property
    def key(self) -> str:
        """Shortcut key in the copy picker."""
        return {CopyFormat.JSON: "j", CopyFormat.CSV: "c", CopyFormat.TSV: "t"}[self]


COPY_FORMATS = list(CopyFormat)

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-_]+")


def to_snake_case(name: str) -> str:
    """``"UserId"`` -> ``"user_id"``, ``"HTTPRequest"`` -> ``"http_request"``."""
    spaced = _WORD_BOUNDARY.sub("_", name.strip())
    return _SEPARATORS.sub("_", spaced).strip("_").lower()


def _delimited(
    columns: Sequence[str],
    rows: Sequence[Sequence[str]],
    include_header: bool,
    delimiter: str,
) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")
    if include_header:
        writer.writerow(columns)
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def format_records(
    fmt: CopyFormat,
    columns: Sequence[str],
    rows: Sequence[Sequence[str]],
    include_header: bool = True,
) -> str:
    """Format rows as JSON, CSV or TSV.

    JSON always carries keys (snake_case column names) and ignores
    ``include_header``; a single row becomes an object, several an array.
    """
    if fmt is CopyFormat.JSON:
        keys = [to_snake_case(c) for c in columns]
        records = [dict(zip(keys, row)) for row in rows]
        payload = records[0] if len(records) == 1 else records
        return json.dumps(payload, indent=2, ensure_ascii=False)
    if fmt is CopyFormat.CSV:
        return _delimited(columns, rows, include_header, ",")
    return _delimited(columns, rows, include_header, "\t")
