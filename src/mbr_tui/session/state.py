"""The session state object owned by the session loop."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from mbr_tui.api.models import TabularResult
from mbr_tui.api.service import ResourceKind
from mbr_tui.session.load_state import LoadState
from mbr_tui.session.pagination import Pagination, SelectionSet
from mbr_tui.session.transform import ResultTransformPipeline
from mbr_tui.session.views import NavigationStack, Tab, ViewState, Welcome


REQUEST_ID_MASK = (1 << 64) - 1

LIST_KINDS = (
    ResourceKind.QUESTIONS,
    ResourceKind.COLLECTIONS,
    ResourceKind.DATABASES,
    ResourceKind.COLLECTION_QUESTIONS,
    ResourceKind.SCHEMAS,
    ResourceKind.TABLES,
)


class Severity(str, Enum):
    INFO = "information"
    WARNING = "warning"
    ERROR = "error"


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    text: str = ""
    severity: Severity = Severity.INFO


@dataclass(frozen=True)
class Connection:
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    detail: str = ""

    @property
    def label(self) -> str:
        if self.status is ConnectionStatus.CONNECTED:
            return f"Connected: {self.detail}"
        if self.status is ConnectionStatus.ERROR:
            return f"Error: {self.detail}"
        return self.status.value.title()


# =============================================================================
# Modal state
# =============================================================================


@dataclass
class SortPicker:
    cursor: int = 0


@dataclass
class FilterPicker:
    """Two steps: pick a column, then type the filter text."""

    cursor: int = 0
    step: int = 0
    text: str = ""


@dataclass
class SearchInput:
    """Result search; the text itself lives on the pipeline and applies live."""


@dataclass
class QuestionSearchInput:
    text: str = ""


@dataclass
class RecordDetail:
    row: int
    cursor: int = 0


@dataclass
class CopyPicker:
    cursor: int = 0
    include_header: bool = True


Modal = Union[SortPicker, FilterPicker, SearchInput, QuestionSearchInput, RecordDetail, CopyPicker]


# =============================================================================
# Session
# =============================================================================


@dataclass
class SessionState:
    """Everything the loop mutates. Only the loop thread touches it."""

    page_size: int = 100
    tab: Tab = Tab.QUESTIONS
    nav: NavigationStack = field(default_factory=lambda: NavigationStack(Welcome()))
    resources: dict[ResourceKind, LoadState] = field(default_factory=lambda: {k: LoadState.idle() for k in ResourceKind})
    cursors: dict[ResourceKind, int] = field(default_factory=lambda: {k: 0 for k in LIST_KINDS})
    pipeline: ResultTransformPipeline = field(default_factory=ResultTransformPipeline)
    pagination: Optional[Pagination] = None
    selection: SelectionSet = field(default_factory=SelectionSet)
    request_counter: int = 0
    current_request_id: Optional[int] = None
    question_search: str = ""
    modal: Optional[Modal] = None
    show_help: bool = False
    status: StatusMessage = field(default_factory=StatusMessage)
    connection: Connection = field(default_factory=Connection)
    should_quit: bool = False
    pending_clipboard: Optional[str] = None

    def __post_init__(self):
        if self.pagination is None:
            self.pagination = Pagination(self.page_size)

    @property
    def view(self) -> ViewState:
        return self.nav.current

    def next_request_id(self) -> int:
        """Allocate a request id and make it the current one."""
        self.request_counter = (self.request_counter + 1) & REQUEST_ID_MASK
        self.current_request_id = self.request_counter
        return self.request_counter

    def items(self, kind: ResourceKind) -> list:
        state = self.resources[kind]
        return list(state.data) if state.is_loaded and state.data is not None else []

    def cursor_item(self, kind: ResourceKind) -> Any:
        items = self.items(kind)
        index = self.cursors.get(kind, 0)
        return items[index] if 0 <= index < len(items) else None

    @property
    def result(self) -> Optional[TabularResult]:
        state = self.resources[ResourceKind.QUERY_RESULT]
        return state.data if state.is_loaded else None

    @property
    def cursor_row(self) -> Optional[int]:
        """Original index of the row under the result cursor."""
        return self.pipeline.resolve(self.pagination.cursor_index)

    def set_status(self, text: str, severity: Severity = Severity.INFO) -> None:
        self.status = StatusMessage(text, severity)

    def reset_result(self) -> None:
        """Forget the loaded result and every view-local transform."""
        self.resources[ResourceKind.QUERY_RESULT] = LoadState.idle()
        self.current_request_id = None
        self.pipeline.clear_data()
        self.pagination.reset()
        self.selection.clear()
        self.modal = None
