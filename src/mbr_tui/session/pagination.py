"""Paging, in-page cursor and multi-row selection over visible rows."""

from typing import Callable, Iterable, Optional


PAGE_JUMP = 10


def page_count(visible: int, page_size: int) -> int:
    """Number of pages needed for ``visible`` rows (0 when empty)."""
    if visible <= 0:
        return 0
    return (visible + page_size - 1) // page_size


class Pagination:
    """Page index, cursor row within the page, and horizontal column offset."""

    def __init__(self, page_size: int = 100):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self.page = 0
        self.cursor = 0
        self.scroll_x = 0

    def reset(self) -> None:
        self.page = 0
        self.cursor = 0
        self.scroll_x = 0

    def page_count(self, visible: int) -> int:
        return page_count(visible, self.page_size)

    def _last_page(self, visible: int) -> int:
        return max(self.page_count(visible) - 1, 0)

    def page_range(self, visible: int) -> range:
        """Display indices shown on the current page."""
        start = min(self.page * self.page_size, max(visible, 0))
        end = min(start + self.page_size, max(visible, 0))
        return range(start, end)

    def rows_on_page(self, visible: int) -> int:
        return len(self.page_range(visible))

    @property
    def cursor_index(self) -> int:
        """Display index of the cursor row."""
        return self.page * self.page_size + self.cursor

    # -------------------------------------------------------------------------
    # Page movement; every page change puts the cursor on the first row
    # -------------------------------------------------------------------------

    def next_page(self, visible: int) -> None:
        self.page = min(self.page + 1, self._last_page(visible))
        self.cursor = 0

    def prev_page(self, visible: int) -> None:
        self.page = max(min(self.page - 1, self._last_page(visible)), 0)
        self.cursor = 0

    def first_page(self) -> None:
        self.page = 0
        self.cursor = 0

    def last_page(self, visible: int) -> None:
        self.page = self._last_page(visible)
        self.cursor = 0

    def clamp(self, visible: int) -> None:
        """Pull page and cursor back inside the data after it shrank."""
        self.page = min(self.page, self._last_page(visible))
        self.cursor = min(self.cursor, max(self.rows_on_page(visible) - 1, 0))

    # -------------------------------------------------------------------------
    # Cursor and column scroll
    # -------------------------------------------------------------------------

    def move_cursor(self, delta: int, visible: int) -> None:
        """Move the cursor within the current page, clamped to its rows."""
        last = max(self.rows_on_page(visible) - 1, 0)
        self.cursor = max(0, min(self.cursor + delta, last))

    def scroll_columns(self, delta: int, total_columns: int) -> None:
        last = max(total_columns - 1, 0)
        self.scroll_x = max(0, min(self.scroll_x + delta, last))


class SelectionSet:
    """Selected original row indices plus the anchor of a range extension.

    The anchor is a display index; range extension resolves each display
    position between anchor and target to its original row.
    """

    def __init__(self):
        self.selected: set[int] = set()
        self.anchor: Optional[int] = None

    def toggle(self, original_index: int) -> None:
        if original_index in self.selected:
            self.selected.discard(original_index)
        else:
            self.selected.add(original_index)
        self.anchor = None

    def extend_to(
        self,
        target: int,
        cursor: int,
        resolve: Callable[[int], Optional[int]],
    ) -> None:
        """Select every row between the anchor and ``target`` inclusive.

        The anchor is set to ``cursor`` when no extension is in progress.
        """
        if self.anchor is None:
            self.anchor = cursor
        low, high = sorted((self.anchor, target))
        for display_index in range(low, high + 1):
            original = resolve(display_index)
            if original is not None:
                self.selected.add(original)

    def select_all(self, visible_rows: Iterable[int]) -> None:
        self.selected.update(visible_rows)
        self.anchor = None

    def clear(self) -> None:
        self.selected.clear()
        self.anchor = None

    def release_anchor(self) -> None:
        self.anchor = None

    def sorted(self) -> list[int]:
        return sorted(self.selected)

    def __contains__(self, original_index: object) -> bool:
        return original_index in self.selected

    def __len__(self) -> int:
        return len(self.selected)

    def __bool__(self) -> bool:
        return bool(self.selected)
