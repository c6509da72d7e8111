"""State transitions: ``apply(state, action, coordinator)``.

Every action type has exactly one handler. Handlers run on the loop thread,
mutate the state in place and may ask the coordinator to start background
jobs, which never block.
"""

import logging
from typing import Callable, Optional

from mbr_tui.api.service import ResourceKind
from mbr_tui.session import actions as a
from mbr_tui.session.clipboard import COPY_FORMATS, CopyFormat, format_records
from mbr_tui.session.fetch import FetchCoordinator
from mbr_tui.session.load_state import LoadState
from mbr_tui.session.state import (
    LIST_KINDS,
    ConnectionStatus,
    Connection,
    CopyPicker,
    FilterPicker,
    QuestionSearchInput,
    RecordDetail,
    SearchInput,
    SessionState,
    Severity,
    SortPicker,
)
from mbr_tui.session.views import (
    CollectionQuestions,
    DatabaseSchemas,
    QueryResult,
    ResourceList,
    SchemaTables,
    TablePreview,
    ViewState,
    Welcome,
    fallback_root,
    is_result_view,
    resource_for,
    scope_for,
)


logger = logging.getLogger(__name__)

RETRY_HINT = "press r to retry"

Handler = Callable[[SessionState, object, FetchCoordinator], None]


def apply(state: SessionState, action: "a.Action", coordinator: FetchCoordinator) -> SessionState:
    """Apply one action to ``state`` and return it."""
    handler = HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"No handler for action {type(action).__name__}")
    handler(state, action, coordinator)
    return state


# =============================================================================
# Shared helpers
# =============================================================================


def _fetch_scope(state: SessionState, kind: ResourceKind):
    if kind is ResourceKind.QUESTIONS:
        return state.question_search or None
    view = state.view
    if resource_for(view) is kind:
        return scope_for(view)
    return state.resources[kind].scope


def _ensure_loaded(state: SessionState, view: ViewState, coordinator: FetchCoordinator) -> None:
    """Dispatch the fetch a list view needs if its resource is still Idle."""
    kind = resource_for(view)
    if kind in LIST_KINDS and state.resources[kind].is_idle:
        coordinator.fetch_resource(state, kind, _fetch_scope(state, kind))


def _reset_list(state: SessionState, kind: ResourceKind) -> None:
    state.resources[kind] = LoadState.idle()
    state.cursors[kind] = 0


def _restart_result_view(state: SessionState) -> None:
    """Results arriving for a new request start from pristine transforms."""
    state.pipeline.clear_data()
    state.pagination.reset()
    state.selection.clear()
    state.modal = None


def _to_first_page(state: SessionState) -> None:
    state.pagination.first_page()
    state.selection.release_anchor()


def _visible(state: SessionState) -> int:
    return state.pipeline.visible_count


def _drill(state: SessionState, view: ViewState, coordinator: FetchCoordinator) -> None:
    kind = resource_for(view)
    if kind in LIST_KINDS:
        _reset_list(state, kind)
    state.modal = None
    state.nav.push(view)
    _ensure_loaded(state, view, coordinator)


# =============================================================================
# Session control
# =============================================================================


def _quit(state, action, coordinator):
    state.should_quit = True


def _toggle_help(state, action, coordinator):
    state.show_help = not state.show_help


def _switch_tab(state, action, coordinator):
    tab = action.tab
    state.tab = tab
    state.reset_result()
    state.show_help = False
    state.nav.reset(tab.root_view)
    _ensure_loaded(state, state.view, coordinator)


def _cycle_tab(state, action, coordinator):
    _switch_tab(state, a.SwitchTab(state.tab.cycle(action.step)), coordinator)


def _navigate(state, action, coordinator):
    view = action.view
    if isinstance(view, QueryResult):
        _execute_question(state, a.ExecuteQuestion(view.question_id, view.question_name), coordinator)
    elif isinstance(view, TablePreview):
        _open_table(state, a.OpenTable(view.database_id, view.table_id, view.table_name), coordinator)
    else:
        _drill(state, view, coordinator)


def _back(state, action, coordinator):
    view = state.view
    if state.show_help:
        state.show_help = False
    elif state.modal is not None:
        _modal_cancel(state, a.ModalCancel(), coordinator)
    elif is_result_view(view) and state.pipeline.search_text:
        _clear_search(state, a.ClearSearch(), coordinator)
    elif is_result_view(view) and state.pipeline.is_filtered:
        _clear_filter(state, a.ClearFilter(), coordinator)
    elif is_result_view(view) and state.selection:
        _clear_selection(state, a.ClearSelection(), coordinator)
    elif state.nav.depth > 0 or fallback_root(view) != view:
        _drill_up(state, a.DrillUp(), coordinator)
    elif isinstance(view, ResourceList) and view.kind is ResourceKind.QUESTIONS and state.question_search:
        state.question_search = ""
        _reset_list(state, ResourceKind.QUESTIONS)
        _ensure_loaded(state, view, coordinator)
        state.set_status("Search cleared")
    else:
        state.should_quit = True


def _refresh(state, action, coordinator):
    view = state.view
    if isinstance(view, Welcome):
        state.connection = Connection(ConnectionStatus.CONNECTING)
        coordinator.validate_auth()
        state.set_status("Reconnecting...")
        return
    if isinstance(view, QueryResult):
        _restart_result_view(state)
        coordinator.execute_query(state, view.question_id, view.question_name)
        state.set_status(f"Re-running '{view.question_name}'...")
        return
    if isinstance(view, TablePreview):
        _restart_result_view(state)
        coordinator.preview_table(state, view.database_id, view.table_id, view.table_name)
        state.set_status(f"Reloading {view.table_name}...")
        return

    kind = resource_for(view)
    if state.resources[kind].is_loading:
        state.set_status(f"Already loading {kind.label}...")
        return
    # Reset to Idle first so the Loading guard does not swallow the reload
    state.resources[kind] = LoadState.idle()
    _ensure_loaded(state, view, coordinator)
    state.set_status(f"Refreshing {kind.label}...")


# =============================================================================
# Data loading
# =============================================================================


def _load_data(state, action, coordinator):
    kind = action.kind
    if kind not in LIST_KINDS:
        logger.debug("ignoring LoadData for %s", kind.value)
        return
    coordinator.fetch_resource(state, kind, _fetch_scope(state, kind))


def _is_current_load(state: SessionState, kind: ResourceKind, scope) -> bool:
    current = state.resources[kind]
    if not current.is_loading or current.scope != scope:
        logger.debug("dropping stale %s result (scope=%r, expected %r)", kind.value, scope, current.scope)
        return False
    return True


def _load_succeeded(state, action, coordinator):
    kind = action.kind
    if not _is_current_load(state, kind, action.scope):
        return
    items = list(action.payload)
    state.resources[kind] = LoadState.loaded(items, action.scope)
    if state.cursors.get(kind, 0) >= len(items):
        state.cursors[kind] = max(len(items) - 1, 0)
    state.set_status(f"Loaded {len(items)} {kind.label}")


def _load_failed(state, action, coordinator):
    kind = action.kind
    if not _is_current_load(state, kind, action.scope):
        return
    state.resources[kind] = LoadState.failed(action.message, action.scope)
    state.set_status(f"Failed to load {kind.label}: {action.message} ({RETRY_HINT})", Severity.ERROR)


def _execute_question(state, action, coordinator):
    view = QueryResult(action.question_id, action.question_name)
    _restart_result_view(state)
    if state.view != view:
        state.nav.push(view)
    coordinator.execute_query(state, action.question_id, action.question_name)
    state.set_status(f"Executing '{action.question_name}'...")


def _query_executed(state, action, coordinator):
    if action.request_id != state.current_request_id:
        logger.debug("dropping stale result for request %s", action.request_id)
        return
    result = action.result
    state.resources[ResourceKind.QUERY_RESULT] = LoadState.loaded(result, action.request_id)
    state.pipeline.load(result.columns, result.rows)
    state.pagination.reset()
    state.selection.clear()
    state.set_status(f"{result.name}: {result.row_count} rows")


def _query_failed(state, action, coordinator):
    if action.request_id != state.current_request_id:
        logger.debug("dropping stale failure for request %s", action.request_id)
        return
    state.resources[ResourceKind.QUERY_RESULT] = LoadState.failed(action.message, action.request_id)
    state.set_status(f"Query failed: {action.message} ({RETRY_HINT})", Severity.ERROR)


def _auth_validated(state, action, coordinator):
    state.connection = Connection(ConnectionStatus.CONNECTED, action.user_name)
    state.set_status(f"Connected as {action.user_name}")
    if isinstance(state.view, Welcome):
        _switch_tab(state, a.SwitchTab(state.tab), coordinator)


def _auth_failed(state, action, coordinator):
    state.connection = Connection(ConnectionStatus.ERROR, action.message)
    state.set_status(f"Connection failed: {action.message} ({RETRY_HINT})", Severity.ERROR)


# =============================================================================
# Drill-down
# =============================================================================


def _open_collection(state, action, coordinator):
    _drill(state, CollectionQuestions(action.collection_id, action.collection_name), coordinator)


def _open_database(state, action, coordinator):
    _drill(state, DatabaseSchemas(action.database_id, action.database_name), coordinator)


def _open_schema(state, action, coordinator):
    _drill(state, SchemaTables(action.database_id, action.schema_name), coordinator)


def _open_table(state, action, coordinator):
    view = TablePreview(action.database_id, action.table_id, action.table_name)
    _restart_result_view(state)
    if state.view != view:
        state.nav.push(view)
    coordinator.preview_table(state, action.database_id, action.table_id, action.table_name)
    state.set_status(f"Loading preview of {action.table_name}...")


def _drill_up(state, action, coordinator):
    view = state.view
    kind = resource_for(view)
    if is_result_view(view):
        state.reset_result()
    elif kind in LIST_KINDS and not isinstance(view, ResourceList):
        _reset_list(state, kind)

    if state.nav.pop() is None:
        root = fallback_root(view)
        if root == view:
            return
        state.nav.reset(root)
    state.modal = None
    _ensure_loaded(state, state.view, coordinator)


# =============================================================================
# Status
# =============================================================================


def _set_status(state, action, coordinator):
    state.set_status(action.message)


def _show_error(state, action, coordinator):
    state.set_status(action.message, Severity.ERROR)


def _clear_status(state, action, coordinator):
    state.set_status("")


# =============================================================================
# Cursor, paging and selection
# =============================================================================


def _move_cursor(state, action, coordinator):
    view = state.view
    if is_result_view(view):
        state.pagination.move_cursor(action.delta, _visible(state))
        state.selection.release_anchor()
        return
    kind = resource_for(view)
    if kind in LIST_KINDS:
        count = len(state.items(kind))
        state.cursors[kind] = max(0, min(state.cursors[kind] + action.delta, max(count - 1, 0)))


def _cursor_home(state, action, coordinator):
    if is_result_view(state.view):
        _change_page(state, a.ChangePage(a.PageOp.FIRST), coordinator)
        return
    kind = resource_for(state.view)
    if kind in LIST_KINDS:
        state.cursors[kind] = 0


def _cursor_end(state, action, coordinator):
    if is_result_view(state.view):
        _change_page(state, a.ChangePage(a.PageOp.LAST), coordinator)
        return
    kind = resource_for(state.view)
    if kind in LIST_KINDS:
        state.cursors[kind] = max(len(state.items(kind)) - 1, 0)


def _change_page(state, action, coordinator):
    if not is_result_view(state.view):
        return
    pagination = state.pagination
    visible = _visible(state)
    op = action.op
    if op is a.PageOp.NEXT:
        pagination.next_page(visible)
    elif op is a.PageOp.PREV:
        pagination.prev_page(visible)
    elif op is a.PageOp.FIRST:
        pagination.first_page()
    else:
        pagination.last_page(visible)
    state.selection.release_anchor()


def _scroll_columns(state, action, coordinator):
    if is_result_view(state.view):
        state.pagination.scroll_columns(action.delta, len(state.pipeline.columns))


def _toggle_select(state, action, coordinator):
    row = state.cursor_row
    if is_result_view(state.view) and row is not None:
        state.selection.toggle(row)


def _extend_select(state, action, coordinator):
    if not is_result_view(state.view) or state.cursor_row is None:
        return
    start = state.pagination.cursor_index
    state.pagination.move_cursor(action.delta, _visible(state))
    state.selection.extend_to(state.pagination.cursor_index, start, state.pipeline.resolve)


def _select_all(state, action, coordinator):
    if is_result_view(state.view):
        state.selection.select_all(state.pipeline.visible_rows())
        state.set_status(f"{len(state.selection)} rows selected")


def _clear_selection(state, action, coordinator):
    state.selection.clear()


def _clear_filter(state, action, coordinator):
    if not state.pipeline.is_filtered:
        return
    state.pipeline.clear_filter()
    _to_first_page(state)
    state.set_status("Filter cleared")


def _clear_search(state, action, coordinator):
    if not state.pipeline.search_text:
        return
    state.pipeline.clear_search()
    if isinstance(state.modal, SearchInput):
        state.modal = None
    _to_first_page(state)
    state.set_status("Search cleared")


# =============================================================================
# Modals
# =============================================================================


def _open_modal(state, action, coordinator):
    kind = action.kind
    view = state.view

    if kind is a.ModalKind.QUESTION_SEARCH:
        if isinstance(view, ResourceList) and view.kind is ResourceKind.QUESTIONS:
            state.modal = QuestionSearchInput(state.question_search)
        return

    if not is_result_view(view) or state.result is None:
        return
    columns = state.pipeline.columns
    if kind is a.ModalKind.SORT and columns:
        cursor = state.pipeline.sort_column if state.pipeline.sort_column is not None else 0
        state.modal = SortPicker(cursor)
    elif kind is a.ModalKind.FILTER and columns:
        column = state.pipeline.filter_column
        state.modal = FilterPicker(cursor=column if column is not None else 0)
    elif kind is a.ModalKind.SEARCH:
        state.modal = SearchInput()
    elif kind is a.ModalKind.RECORD_DETAIL and state.cursor_row is not None:
        state.modal = RecordDetail(state.cursor_row)
    elif kind is a.ModalKind.COPY and state.cursor_row is not None:
        state.modal = CopyPicker()


def _modal_move(state, action, coordinator):
    modal = state.modal
    if isinstance(modal, (SortPicker, RecordDetail)) or (
        isinstance(modal, FilterPicker) and modal.step == 0
    ):
        last = max(len(state.pipeline.columns) - 1, 0)
        modal.cursor = max(0, min(modal.cursor + action.delta, last))
    elif isinstance(modal, CopyPicker):
        modal.cursor = (modal.cursor + action.delta) % len(COPY_FORMATS)


def _edit_search(state: SessionState, text: str) -> None:
    state.pipeline.set_search(text)
    _to_first_page(state)


def _modal_input(state, action, coordinator):
    modal = state.modal
    if isinstance(modal, FilterPicker) and modal.step == 1:
        modal.text += action.char
    elif isinstance(modal, SearchInput):
        _edit_search(state, state.pipeline.search_text + action.char)
    elif isinstance(modal, QuestionSearchInput):
        modal.text += action.char


def _modal_backspace(state, action, coordinator):
    modal = state.modal
    if isinstance(modal, FilterPicker) and modal.step == 1:
        modal.text = modal.text[:-1]
    elif isinstance(modal, SearchInput):
        _edit_search(state, state.pipeline.search_text[:-1])
    elif isinstance(modal, QuestionSearchInput):
        modal.text = modal.text[:-1]


def _modal_confirm(state, action, coordinator):
    modal = state.modal
    pipeline = state.pipeline

    if isinstance(modal, SortPicker):
        order = pipeline.toggle_sort(modal.cursor)
        _to_first_page(state)
        state.modal = None
        column = pipeline.columns[modal.cursor]
        if order.arrow:
            state.set_status(f"Sorted by {column} {order.arrow}")
        else:
            state.set_status("Sort cleared")
    elif isinstance(modal, FilterPicker):
        if modal.step == 0:
            modal.step = 1
            if pipeline.filter_column == modal.cursor:
                modal.text = pipeline.filter_text
            return
        if modal.text:
            pipeline.set_filter(modal.cursor, modal.text)
            state.set_status(f"Filter: {pipeline.columns[modal.cursor]} ~ '{modal.text}' ({_visible(state)} rows)")
        else:
            pipeline.clear_filter()
        _to_first_page(state)
        state.modal = None
    elif isinstance(modal, SearchInput):
        _to_first_page(state)
        state.modal = None
    elif isinstance(modal, QuestionSearchInput):
        state.modal = None
        state.question_search = modal.text.strip()
        _reset_list(state, ResourceKind.QUESTIONS)
        _ensure_loaded(state, state.view, coordinator)
        if state.question_search:
            state.set_status(f"Searching for '{state.question_search}'...")
    elif isinstance(modal, CopyPicker):
        _copy_as(state, a.CopyAs(COPY_FORMATS[modal.cursor]), coordinator)
    elif isinstance(modal, RecordDetail):
        state.modal = None


def _modal_cancel(state, action, coordinator):
    modal = state.modal
    if isinstance(modal, FilterPicker) and modal.step == 1:
        modal.step = 0
        return
    state.modal = None


def _toggle_copy_header(state, action, coordinator):
    if isinstance(state.modal, CopyPicker):
        state.modal.include_header = not state.modal.include_header


def _copy_as(state, action, coordinator):
    modal = state.modal
    if not isinstance(modal, CopyPicker):
        return
    rows = state.selection.sorted()
    if not rows and state.cursor_row is not None:
        rows = [state.cursor_row]
    pipeline = state.pipeline
    fmt: CopyFormat = action.fmt
    state.pending_clipboard = format_records(
        fmt, pipeline.columns, [pipeline.rows[r] for r in rows], modal.include_header
    )
    state.modal = None
    noun = "row" if len(rows) == 1 else "rows"
    state.set_status(f"Copied {len(rows)} {noun} as {fmt.label}")


def _copy_cell_value(state, action, coordinator):
    modal = state.modal
    if not isinstance(modal, RecordDetail):
        return
    value = _cell(state, modal.row, modal.cursor)
    if value is not None:
        state.pending_clipboard = value
        state.set_status("Copied to clipboard")


def _cell(state: SessionState, row: int, column: int) -> Optional[str]:
    rows = state.pipeline.rows
    if 0 <= row < len(rows) and 0 <= column < len(rows[row]):
        return rows[row][column]
    return None


HANDLERS: dict[type, Handler] = {
    a.Quit: _quit,
    a.ToggleHelp: _toggle_help,
    a.SwitchTab: _switch_tab,
    a.CycleTab: _cycle_tab,
    a.Navigate: _navigate,
    a.Back: _back,
    a.Refresh: _refresh,
    a.LoadData: _load_data,
    a.LoadSucceeded: _load_succeeded,
    a.LoadFailed: _load_failed,
    a.ExecuteQuestion: _execute_question,
    a.QueryExecuted: _query_executed,
    a.QueryFailed: _query_failed,
    a.AuthValidated: _auth_validated,
    a.AuthFailed: _auth_failed,
    a.OpenCollection: _open_collection,
    a.OpenDatabase: _open_database,
    a.OpenSchema: _open_schema,
    a.OpenTable: _open_table,
    a.DrillUp: _drill_up,
    a.SetStatus: _set_status,
    a.ShowError: _show_error,
    a.ClearStatus: _clear_status,
    a.MoveCursor: _move_cursor,
    a.CursorHome: _cursor_home,
    a.CursorEnd: _cursor_end,
    a.ChangePage: _change_page,
    a.ScrollColumns: _scroll_columns,
    a.ToggleSelect: _toggle_select,
    a.ExtendSelect: _extend_select,
    a.SelectAll: _select_all,
    a.ClearSelection: _clear_selection,
    a.ClearFilter: _clear_filter,
    a.ClearSearch: _clear_search,
    a.OpenModal: _open_modal,
    a.ModalMove: _modal_move,
    a.ModalInput: _modal_input,
    a.ModalBackspace: _modal_backspace,
    a.ModalConfirm: _modal_confirm,
    a.ModalCancel: _modal_cancel,
    a.ToggleCopyHeader: _toggle_copy_header,
    a.CopyAs: _copy_as,
    a.CopyCellValue: _copy_cell_value,
}
