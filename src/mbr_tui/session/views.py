"""View descriptors and the drill-down navigation stack.

Each view variant embeds the context it needs to re-fetch its data, so a
popped view can be resumed without looking anything up elsewhere.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from mbr_tui.api.service import ResourceKind


class Tab(int, Enum):
    """Top-level panels, numbered as shown in the header."""

    QUESTIONS = 0
    COLLECTIONS = 1
    DATABASES = 2

    @property
    def label(self) -> str:
        return self.name.title()

    @property
    def kind(self) -> ResourceKind:
        return _TAB_KINDS[self]

    @property
    def root_view(self) -> "ResourceList":
        return ResourceList(self.kind)

    def cycle(self, step: int) -> "Tab":
        members = list(Tab)
        return members[(members.index(self) + step) % len(members)]


_TAB_KINDS = {
    Tab.QUESTIONS: ResourceKind.QUESTIONS,
    Tab.COLLECTIONS: ResourceKind.COLLECTIONS,
    Tab.DATABASES: ResourceKind.DATABASES,
}


# =============================================================================
# View variants
# =============================================================================


@dataclass(frozen=True)
class Welcome:
    pass


@dataclass(frozen=True)
class ResourceList:
    kind: ResourceKind


@dataclass(frozen=True)
class CollectionQuestions:
    collection_id: Union[int, str]
    collection_name: str


@dataclass(frozen=True)
class DatabaseSchemas:
    database_id: int
    database_name: str


@dataclass(frozen=True)
class SchemaTables:
    database_id: int
    schema_name: str


@dataclass(frozen=True)
class TablePreview:
    database_id: int
    table_id: int
    table_name: str


@dataclass(frozen=True)
class QueryResult:
    question_id: int
    question_name: str


ViewState = Union[
    Welcome,
    ResourceList,
    CollectionQuestions,
    DatabaseSchemas,
    SchemaTables,
    TablePreview,
    QueryResult,
]

VIEW_TYPES = (
    Welcome,
    ResourceList,
    CollectionQuestions,
    DatabaseSchemas,
    SchemaTables,
    TablePreview,
    QueryResult,
)

RESULT_VIEWS = (TablePreview, QueryResult)


def resource_for(view: ViewState) -> Optional[ResourceKind]:
    """The resource a view displays, or None for the welcome screen."""
    if isinstance(view, ResourceList):
        return view.kind
    if isinstance(view, CollectionQuestions):
        return ResourceKind.COLLECTION_QUESTIONS
    if isinstance(view, DatabaseSchemas):
        return ResourceKind.SCHEMAS
    if isinstance(view, SchemaTables):
        return ResourceKind.TABLES
    if isinstance(view, RESULT_VIEWS):
        return ResourceKind.QUERY_RESULT
    return None


def scope_for(view: ViewState) -> Any:
    """The fetch scope a drill-down view was opened with."""
    if isinstance(view, CollectionQuestions):
        return view.collection_id
    if isinstance(view, DatabaseSchemas):
        return view.database_id
    if isinstance(view, SchemaTables):
        return (view.database_id, view.schema_name)
    return None


def is_result_view(view: ViewState) -> bool:
    return isinstance(view, RESULT_VIEWS)


def fallback_root(view: ViewState) -> ViewState:
    """Where back navigation lands when the stack is empty."""
    if isinstance(view, CollectionQuestions):
        return ResourceList(ResourceKind.COLLECTIONS)
    if isinstance(view, DatabaseSchemas):
        return ResourceList(ResourceKind.DATABASES)
    if isinstance(view, SchemaTables):
        return DatabaseSchemas(view.database_id, f"Database #{view.database_id}")
    if isinstance(view, TablePreview):
        return ResourceList(ResourceKind.DATABASES)
    if isinstance(view, QueryResult):
        return ResourceList(ResourceKind.QUESTIONS)
    return view


def view_title(view: ViewState) -> str:
    if isinstance(view, Welcome):
        return "Welcome"
    if isinstance(view, ResourceList):
        return view.kind.label.title()
    if isinstance(view, CollectionQuestions):
        return f"Collection: {view.collection_name}"
    if isinstance(view, DatabaseSchemas):
        return f"Database: {view.database_name}"
    if isinstance(view, SchemaTables):
        return f"Schema: {view.schema_name}"
    if isinstance(view, TablePreview):
        return f"Table: {view.table_name}"
    if isinstance(view, QueryResult):
        return f"Result: {view.question_name}"
    raise TypeError(f"Unknown view: {view!r}")


# =============================================================================
# Navigation stack
# =============================================================================


class NavigationStack:
    """Current view plus the views it was drilled down from."""

    def __init__(self, root: Optional[ViewState] = None):
        self.current: ViewState = root if root is not None else Welcome()
        self._stack: list[ViewState] = []

    def push(self, view: ViewState) -> None:
        """Save the current view and switch to ``view``."""
        self._stack.append(self.current)
        self.current = view

    def pop(self) -> Optional[ViewState]:
        """Restore the most recently saved view.

        Returns the restored view, or None when there is nothing to go back
        to; the current view is left unchanged in that case.
        """
        if not self._stack:
            return None
        self.current = self._stack.pop()
        return self.current

    def clear(self) -> None:
        self._stack.clear()

    def reset(self, view: ViewState) -> None:
        """Drop all history and make ``view`` current."""
        self._stack.clear()
        self.current = view

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def history(self) -> tuple:
        return tuple(self._stack)

    def __len__(self) -> int:
        return len(self._stack)
