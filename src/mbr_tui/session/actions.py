"""Actions and the bus that carries them into the session loop.

Actions are immutable messages. Keyboard handling and background fetch jobs
both produce them; only the session loop consumes them.
"""

import queue
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from mbr_tui.api.models import TabularResult
from mbr_tui.api.service import ResourceKind
from mbr_tui.session.clipboard import CopyFormat
from mbr_tui.session.views import Tab, ViewState


class PageOp(str, Enum):
    NEXT = "next"
    PREV = "prev"
    FIRST = "first"
    LAST = "last"


class ModalKind(str, Enum):
    SORT = "sort"
    FILTER = "filter"
    SEARCH = "search"
    RECORD_DETAIL = "record_detail"
    COPY = "copy"
    QUESTION_SEARCH = "question_search"


# =============================================================================
# Session control
# =============================================================================


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class ToggleHelp:
    pass


@dataclass(frozen=True)
class SwitchTab:
    tab: Tab


@dataclass(frozen=True)
class CycleTab:
    step: int = 1


@dataclass(frozen=True)
class Navigate:
    """Push ``view`` and load whatever it displays."""

    view: ViewState


@dataclass(frozen=True)
class Back:
    """Escape: clear the innermost active state, else go up, else quit."""


@dataclass(frozen=True)
class Refresh:
    pass


# =============================================================================
# Data loading
# =============================================================================


@dataclass(frozen=True)
class LoadData:
    kind: ResourceKind


@dataclass(frozen=True)
class LoadSucceeded:
    kind: ResourceKind
    payload: Any
    scope: Any = None


@dataclass(frozen=True)
class LoadFailed:
    kind: ResourceKind
    message: str
    scope: Any = None


@dataclass(frozen=True)
class ExecuteQuestion:
    question_id: int
    question_name: str


@dataclass(frozen=True)
class QueryExecuted:
    request_id: int
    result: TabularResult


@dataclass(frozen=True)
class QueryFailed:
    request_id: int
    message: str


@dataclass(frozen=True)
class AuthValidated:
    user_name: str


@dataclass(frozen=True)
class AuthFailed:
    message: str


# =============================================================================
# Drill-down
# =============================================================================


@dataclass(frozen=True)
class OpenCollection:
    collection_id: Union[int, str]
    collection_name: str


@dataclass(frozen=True)
class OpenDatabase:
    database_id: int
    database_name: str


@dataclass(frozen=True)
class OpenSchema:
    database_id: int
    schema_name: str


@dataclass(frozen=True)
class OpenTable:
    database_id: int
    table_id: int
    table_name: str


@dataclass(frozen=True)
class DrillUp:
    pass


# =============================================================================
# Status
# =============================================================================


@dataclass(frozen=True)
class SetStatus:
    message: str


@dataclass(frozen=True)
class ShowError:
    message: str


@dataclass(frozen=True)
class ClearStatus:
    pass


# =============================================================================
# Cursor, paging and selection
# =============================================================================


@dataclass(frozen=True)
class MoveCursor:
    delta: int


@dataclass(frozen=True)
class CursorHome:
    pass


@dataclass(frozen=True)
class CursorEnd:
    pass


@dataclass(frozen=True)
class ChangePage:
    op: PageOp


@dataclass(frozen=True)
class ScrollColumns:
    delta: int


@dataclass(frozen=True)
class ToggleSelect:
    pass


@dataclass(frozen=True)
class ExtendSelect:
    delta: int


@dataclass(frozen=True)
class SelectAll:
    pass


@dataclass(frozen=True)
class ClearSelection:
    pass


@dataclass(frozen=True)
class ClearFilter:
    pass


@dataclass(frozen=True)
class ClearSearch:
    pass


# =============================================================================
# Modals
# =============================================================================


@dataclass(frozen=True)
class OpenModal:
    kind: ModalKind


@dataclass(frozen=True)
class ModalMove:
    delta: int


@dataclass(frozen=True)
class ModalInput:
    char: str


@dataclass(frozen=True)
class ModalBackspace:
    pass


@dataclass(frozen=True)
class ModalConfirm:
    pass


@dataclass(frozen=True)
class ModalCancel:
    pass


@dataclass(frozen=True)
class ToggleCopyHeader:
    pass


@dataclass(frozen=True)
class CopyAs:
    fmt: CopyFormat


@dataclass(frozen=True)
class CopyCellValue:
    pass


Action = Union[
    Quit, ToggleHelp, SwitchTab, CycleTab, Navigate, Back, Refresh,
    LoadData, LoadSucceeded, LoadFailed, ExecuteQuestion, QueryExecuted, QueryFailed,
    AuthValidated, AuthFailed,
    OpenCollection, OpenDatabase, OpenSchema, OpenTable, DrillUp,
    SetStatus, ShowError, ClearStatus,
    MoveCursor, CursorHome, CursorEnd, ChangePage, ScrollColumns,
    ToggleSelect, ExtendSelect, SelectAll, ClearSelection, ClearFilter, ClearSearch,
    OpenModal, ModalMove, ModalInput, ModalBackspace, ModalConfirm, ModalCancel,
    ToggleCopyHeader, CopyAs, CopyCellValue,
]

ACTION_TYPES = Action.__args__


class ActionBus:
    """Unbounded multi-producer, single-consumer action queue.

    ``send`` never blocks and may be called from any thread; ``drain`` is
    called by the session loop only.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[Action]" = queue.SimpleQueue()

    def send(self, action: Action) -> None:
        self._queue.put_nowait(action)

    def drain(self, limit: Optional[int] = None) -> list:
        """Remove and return queued actions in enqueue order."""
        drained = []
        while limit is None or len(drained) < limit:
            try:
                drained.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return drained

    def empty(self) -> bool:
        return self._queue.empty()

    def __len__(self) -> int:
        return self._queue.qsize()
