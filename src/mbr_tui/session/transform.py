"""Search, filter and sort over a loaded result without copying rows.

Each stage produces an optional list of row positions. ``None`` means the
stage is inactive. Display positions resolve to original rows in this order:

1. ``sort_indices`` (if set) maps a display position to a position in the
   restricted domain;
2. that position goes through ``filter_indices`` if set, otherwise through
   ``search_indices`` if set, otherwise it already is the original row index.

Filtering runs inside the search results, and sorting permutes whichever
domain filter/search leaves behind.
"""

from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Optional, Sequence


class SortOrder(str, Enum):
    NONE = "none"
    ASCENDING = "asc"
    DESCENDING = "desc"

    def next(self) -> "SortOrder":
        """None -> Ascending -> Descending -> None."""
        if self is SortOrder.NONE:
            return SortOrder.ASCENDING
        if self is SortOrder.ASCENDING:
            return SortOrder.DESCENDING
        return SortOrder.NONE

    @property
    def arrow(self) -> str:
        return {SortOrder.NONE: "", SortOrder.ASCENDING: "▲", SortOrder.DESCENDING: "▼"}[self]


@dataclass
class TransformIndices:
    search_indices: Optional[list[int]] = None
    filter_indices: Optional[list[int]] = None
    sort_indices: Optional[list[int]] = None

    def domain(self) -> Optional[list[int]]:
        """Rows surviving filter/search, or None when neither is active."""
        if self.filter_indices is not None:
            return self.filter_indices
        return self.search_indices


# =============================================================================
# Stages
# =============================================================================


def _cell(rows: Sequence[Sequence[str]], row: int, column: int) -> Optional[str]:
    if row < 0 or row >= len(rows):
        return None
    cells = rows[row]
    if column < 0 or column >= len(cells):
        return None
    return cells[column]


def compute_search(rows: Sequence[Sequence[str]], text: str) -> Optional[list[int]]:
    """Positions of rows where any cell contains ``text``, case-insensitively."""
    if not text:
        return None
    needle = text.lower()
    return [i for i, row in enumerate(rows) if any(needle in cell.lower() for cell in row)]


def compute_filter(
    rows: Sequence[Sequence[str]],
    column: int,
    text: str,
    base: Optional[Sequence[int]] = None,
) -> Optional[list[int]]:
    """Positions whose ``column`` cell contains ``text``, drawn from ``base``.

    ``base`` is the search result when a search is active; otherwise every
    row is a candidate.
    """
    if not text:
        return None
    needle = text.lower()
    candidates = base if base is not None else range(len(rows))
    matched = []
    for i in candidates:
        cell = _cell(rows, i, column)
        if cell is not None and needle in cell.lower():
            matched.append(i)
    return matched


def compare_cells(a: str, b: str) -> int:
    """Numeric comparison when both sides parse as numbers, else lexicographic."""
    try:
        num_a, num_b = float(a), float(b)
    except ValueError:
        return (a > b) - (a < b)
    return (num_a > num_b) - (num_a < num_b)


def compute_sort(
    rows: Sequence[Sequence[str]],
    column: int,
    order: SortOrder,
    domain: Optional[Sequence[int]] = None,
) -> Optional[list[int]]:
    """Permutation of display positions ``0..len(domain)`` ordered by ``column``.

    Each position is compared through ``domain`` (the active filter or
    search indices) so the values compared belong to the rows displayed
    at those positions.
    """
    if order is SortOrder.NONE:
        return None
    count = len(domain) if domain is not None else len(rows)

    def value(position: int) -> str:
        row = domain[position] if domain is not None else position
        cell = _cell(rows, row, column)
        return cell if cell is not None else ""

    return sorted(
        range(count),
        key=cmp_to_key(lambda a, b: compare_cells(value(a), value(b))),
        reverse=order is SortOrder.DESCENDING,
    )


def resolve(indices: TransformIndices, display_index: int, row_count: int) -> Optional[int]:
    """Map a display position to an original row index.

    Returns None when any stage's bounds are exceeded, e.g. indices left
    over from a previous result.
    """
    if display_index < 0:
        return None
    position = display_index
    if indices.sort_indices is not None:
        if position >= len(indices.sort_indices):
            return None
        position = indices.sort_indices[position]

    domain = indices.domain()
    if domain is not None:
        if position < 0 or position >= len(domain):
            return None
        position = domain[position]

    if position < 0 or position >= row_count:
        return None
    return position


def visible_count(indices: TransformIndices, row_count: int) -> int:
    """Number of rows surviving filter/search."""
    domain = indices.domain()
    return len(domain) if domain is not None else row_count


# =============================================================================
# Pipeline
# =============================================================================


class ResultTransformPipeline:
    """Search/filter/sort state for one loaded result set."""

    def __init__(self):
        self.columns: list[str] = []
        self.rows: list[list[str]] = []
        self.indices = TransformIndices()
        self.search_text = ""
        self.filter_column: Optional[int] = None
        self.filter_text = ""
        self.sort_column: Optional[int] = None
        self.sort_order = SortOrder.NONE

    def load(self, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        """Replace the data and reset every stage."""
        self.columns = list(columns)
        self.rows = [list(r) for r in rows]
        self.reset()

    def reset(self) -> None:
        self.indices = TransformIndices()
        self.search_text = ""
        self.filter_column = None
        self.filter_text = ""
        self.sort_column = None
        self.sort_order = SortOrder.NONE

    def clear_data(self) -> None:
        self.columns = []
        self.rows = []
        self.reset()

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def visible_count(self) -> int:
        return visible_count(self.indices, len(self.rows))

    @property
    def is_filtered(self) -> bool:
        return self.indices.filter_indices is not None

    @property
    def is_searched(self) -> bool:
        return self.indices.search_indices is not None

    @property
    def is_sorted(self) -> bool:
        return self.indices.sort_indices is not None

    def resolve(self, display_index: int) -> Optional[int]:
        return resolve(self.indices, display_index, len(self.rows))

    def row(self, display_index: int) -> Optional[list[str]]:
        original = self.resolve(display_index)
        return self.rows[original] if original is not None else None

    def visible_rows(self) -> list[int]:
        """Original indices of every visible row, in display order."""
        resolved = (self.resolve(i) for i in range(self.visible_count))
        return [r for r in resolved if r is not None]

    # -------------------------------------------------------------------------
    # Stage updates
    # -------------------------------------------------------------------------

    def set_search(self, text: str) -> None:
        self.search_text = text
        self._update_search()
        self._update_filter()
        self._update_sort()

    def clear_search(self) -> None:
        self.set_search("")

    def set_filter(self, column: int, text: str) -> None:
        self.filter_column = column
        self.filter_text = text
        self._update_filter()
        self._update_sort()

    def clear_filter(self) -> None:
        self.filter_column = None
        self.filter_text = ""
        self.indices.filter_indices = None
        self._update_sort()

    def toggle_sort(self, column: int) -> SortOrder:
        """Cycle the sort order for ``column``; a new column starts ascending."""
        if self.sort_column == column:
            self.sort_order = self.sort_order.next()
        else:
            self.sort_column = column
            self.sort_order = SortOrder.ASCENDING
        if self.sort_order is SortOrder.NONE:
            self.sort_column = None
        self._update_sort()
        return self.sort_order

    def _update_search(self) -> None:
        self.indices.search_indices = compute_search(self.rows, self.search_text)

    def _update_filter(self) -> None:
        column = self.filter_column
        if column is None or column >= len(self.columns):
            self.indices.filter_indices = None
            return
        self.indices.filter_indices = compute_filter(
            self.rows, column, self.filter_text, self.indices.search_indices
        )

    def _update_sort(self) -> None:
        column = self.sort_column
        if column is None or column >= len(self.columns):
            self.indices.sort_indices = None
            return
        self.indices.sort_indices = compute_sort(
            self.rows, column, self.sort_order, self.indices.domain()
        )
