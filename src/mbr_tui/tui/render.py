"""Pure rendering of session state into Rich renderables.

Nothing here mutates state; the app calls these after every applied action
and on resize.
"""

from typing import Callable, Optional

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mbr_tui.api.models import EMPTY_CELL
from mbr_tui.api.service import ResourceKind
from mbr_tui.session.clipboard import COPY_FORMATS
from mbr_tui.session.load_state import LoadState
from mbr_tui.session.state import (
    ConnectionStatus,
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
    Tab,
    TablePreview,
    Welcome,
    resource_for,
    view_title,
)


MIN_COLUMN_WIDTH = 14
CURSOR = "›"
SELECTED = "●"


def _window(cursor: int, count: int, height: int) -> range:
    """Slice of ``count`` rows of at most ``height`` that keeps ``cursor`` visible."""
    height = max(height, 1)
    if count <= height:
        return range(count)
    start = max(0, min(cursor - height // 2, count - height))
    return range(start, start + height)


# =============================================================================
# Header and status bar
# =============================================================================


def render_header(state: SessionState) -> Text:
    text = Text()
    for tab in Tab:
        label = f" {tab.value + 1} {tab.label} "
        if tab is state.tab and not isinstance(state.view, Welcome):
            text.append(label, style="bold reverse")
        else:
            text.append(label, style="dim")
        text.append(" ")

    connection = state.connection
    style = {
        ConnectionStatus.CONNECTED: "green",
        ConnectionStatus.CONNECTING: "yellow",
        ConnectionStatus.ERROR: "red",
    }.get(connection.status, "dim")
    text.append("  ")
    text.append(connection.label, style=style)
    return text


def _hints(state: SessionState) -> str:
    if state.show_help:
        return "?/Esc close help"
    modal = state.modal
    if isinstance(modal, (SearchInput, QuestionSearchInput)):
        return "type to search  Enter apply  Esc close"
    if isinstance(modal, FilterPicker):
        if modal.step == 1:
            return "type filter text  Enter apply  Esc back"
        return "↑↓ column  Enter next  Esc close"
    if isinstance(modal, SortPicker):
        return "↑↓ column  Enter toggle sort  Esc close"
    if isinstance(modal, CopyPicker):
        return "j JSON  c CSV  t TSV  h header  Esc close"
    if isinstance(modal, RecordDetail):
        return "↑↓ field  c copy value  Esc close"
    if isinstance(state.view, (QueryResult, TablePreview)):
        return "n/p page  s sort  f filter  / search  Space select  c copy  Esc back"
    if isinstance(state.view, ResourceList) and state.view.kind is ResourceKind.QUESTIONS:
        return "Enter run  / search  r refresh  ? help  q quit"
    return "Enter open  Esc back  r refresh  ? help  q quit"


def render_status(state: SessionState) -> Text:
    text = Text()
    status = state.status
    if status.text:
        style = {Severity.ERROR: "bold red", Severity.WARNING: "yellow"}.get(status.severity, "")
        text.append(status.text, style=style)
        text.append("  │  ", style="dim")
    if state.selection:
        text.append(f"{len(state.selection)} selected", style="cyan")
        text.append("  │  ", style="dim")
    text.append(_hints(state), style="dim")
    return text


# =============================================================================
# Views
# =============================================================================


def _load_placeholder(load: LoadState, label: str) -> Optional[RenderableType]:
    if load.is_idle:
        return Text(f"Press r to load {label}.", style="dim")
    if load.is_loading:
        return Text(f"Loading {label}...", style="yellow")
    if load.is_error:
        return Text.assemble(
            ("Error: ", "bold red"),
            (load.error or "unknown error", "red"),
            ("\nPress r to retry.", "dim"),
        )
    return None


def _list_columns(kind: ResourceKind) -> list[str]:
    if kind in (ResourceKind.QUESTIONS, ResourceKind.COLLECTION_QUESTIONS):
        return ["ID", "Name", "Collection", "Description"]
    if kind is ResourceKind.COLLECTIONS:
        return ["ID", "Name", "Owner", "Description"]
    if kind is ResourceKind.DATABASES:
        return ["ID", "Name", "Engine", "Description"]
    if kind is ResourceKind.SCHEMAS:
        return ["Schema"]
    return ["ID", "Name", "Description"]


def _list_cells(kind: ResourceKind, item) -> list[str]:
    if kind in (ResourceKind.QUESTIONS, ResourceKind.COLLECTION_QUESTIONS):
        return [str(item.id), item.name, item.collection_name, item.description or EMPTY_CELL]
    if kind is ResourceKind.COLLECTIONS:
        return [str(item.id), item.name, item.owner_label, item.description or EMPTY_CELL]
    if kind is ResourceKind.DATABASES:
        return [str(item.id), item.name, item.engine or EMPTY_CELL, item.description or EMPTY_CELL]
    if kind is ResourceKind.SCHEMAS:
        return [str(item)]
    return [str(item.id), item.label, item.description or EMPTY_CELL]


def render_list(state: SessionState, height: int) -> RenderableType:
    view = state.view
    kind = resource_for(view)
    title = view_title(view)
    if kind is ResourceKind.QUESTIONS and state.question_search:
        title = f"{title} (search: {state.question_search})"

    load = state.resources[kind]
    placeholder = _load_placeholder(load, kind.label)
    if placeholder is not None:
        return Panel(placeholder, title=title, title_align="left")

    items = state.items(kind)
    if not items:
        return Panel(Text(f"No {kind.label} found.", style="dim"), title=title, title_align="left")

    cursor = state.cursors[kind]
    table = Table(expand=True, box=None, header_style="bold", pad_edge=False)
    table.add_column("", width=1, no_wrap=True)
    for name in _list_columns(kind):
        table.add_column(name, no_wrap=True, overflow="ellipsis")

    for index in _window(cursor, len(items), height - 3):
        marker = CURSOR if index == cursor else ""
        style = "reverse" if index == cursor else None
        table.add_row(marker, *_list_cells(kind, items[index]), style=style)

    subtitle = f"{cursor + 1}/{len(items)}"
    return Panel(table, title=title, title_align="left", subtitle=subtitle, subtitle_align="right")


def render_result(state: SessionState, height: int, width: int = 120) -> RenderableType:
    view = state.view
    title = view_title(view)
    load = state.resources[ResourceKind.QUERY_RESULT]
    placeholder = _load_placeholder(load, "results")
    if placeholder is not None:
        return Panel(placeholder, title=title, title_align="left")

    pipeline = state.pipeline
    pagination = state.pagination
    visible = pipeline.visible_count
    columns = pipeline.columns

    if not columns or visible == 0:
        message = "No rows match." if pipeline.row_count else "Query returned no rows."
        return Panel(Text(message, style="dim"), title=title, title_align="left")

    per_screen = max(1, (width - 4) // MIN_COLUMN_WIDTH)
    first_col = min(pagination.scroll_x, len(columns) - 1)
    shown_cols = range(first_col, min(first_col + per_screen, len(columns)))

    table = Table(expand=True, box=None, header_style="bold", pad_edge=False)
    table.add_column("", width=2, no_wrap=True)
    for c in shown_cols:
        header = columns[c]
        if pipeline.sort_column == c and pipeline.sort_order.arrow:
            header = f"{header} {pipeline.sort_order.arrow}"
        if pipeline.filter_column == c and pipeline.is_filtered:
            header = f"{header} ⧩"
        table.add_column(header, no_wrap=True, overflow="ellipsis", min_width=4)

    page_rows = pagination.page_range(visible)
    for offset in _window(pagination.cursor, len(page_rows), height - 4):
        display_index = page_rows[offset]
        original = pipeline.resolve(display_index)
        if original is None:
            continue
        row = pipeline.rows[original]
        is_cursor = offset == pagination.cursor
        marker = (CURSOR if is_cursor else " ") + (SELECTED if original in state.selection else " ")
        cells = [row[c] if c < len(row) else "" for c in shown_cols]
        table.add_row(marker, *cells, style="reverse" if is_cursor else None)

    pages = pagination.page_count(visible)
    parts = [f"page {pagination.page + 1}/{pages}", f"rows {page_rows.start + 1}-{page_rows.stop} of {visible}"]
    if visible != pipeline.row_count:
        parts.append(f"({pipeline.row_count} total)")
    if len(columns) > per_screen:
        left = "← " if first_col > 0 else ""
        right = " →" if shown_cols.stop < len(columns) else ""
        parts.append(f"{left}cols {first_col + 1}-{shown_cols.stop}/{len(columns)}{right}")
    if pipeline.search_text:
        parts.append(f"search '{pipeline.search_text}'")
    return Panel(table, title=title, title_align="left", subtitle="  ".join(parts), subtitle_align="right")


def render_welcome(state: SessionState, height: int) -> RenderableType:
    body = Text()
    body.append("mbr-tui\n", style="bold")
    body.append("Browse questions, collections and databases on your Metabase server.\n\n")
    body.append(state.connection.label + "\n\n", style="italic")
    body.append("Enter  start with Questions\n1 2 3  switch panels\n?      key reference\nq      quit\n", style="dim")
    return Panel(body, title="Welcome", title_align="left")


def _render_list_view(state: SessionState, height: int, width: int) -> RenderableType:
    return render_list(state, height)


def _render_welcome_view(state: SessionState, height: int, width: int) -> RenderableType:
    return render_welcome(state, height)


RENDERERS: dict[type, Callable[[SessionState, int, int], RenderableType]] = {
    Welcome: _render_welcome_view,
    ResourceList: _render_list_view,
    CollectionQuestions: _render_list_view,
    DatabaseSchemas: _render_list_view,
    SchemaTables: _render_list_view,
    TablePreview: render_result,
    QueryResult: render_result,
}


# =============================================================================
# Overlays
# =============================================================================


HELP_SECTIONS = [
    ("Global", [
        ("q / Ctrl+C", "quit"),
        ("?", "toggle this help"),
        ("1 2 3", "Questions / Collections / Databases"),
        ("Tab / Shift+Tab", "next / previous panel"),
        ("r", "refresh current view"),
        ("Esc", "back (clears search/filter first)"),
    ]),
    ("Lists", [
        ("↑↓ j k", "move"),
        ("g G Home End", "first / last"),
        ("Enter", "open or run"),
        ("/", "search questions"),
    ]),
    ("Results", [
        ("↑↓ j k", "move row"),
        ("←→ h l", "scroll columns"),
        ("n p", "next / previous page"),
        ("g G", "first / last page"),
        ("PgUp PgDn", "jump 10 rows"),
        ("s", "sort by column"),
        ("f / F", "filter / clear filter"),
        ("/ / S", "search / clear search"),
        ("Space", "toggle row selection"),
        ("Shift+↑↓ J K", "extend selection"),
        ("Ctrl+A", "select all visible rows"),
        ("Enter", "record detail"),
        ("c", "copy rows"),
    ]),
]


def render_help() -> RenderableType:
    table = Table(box=None, show_header=False, pad_edge=False)
    table.add_column(style="bold cyan", no_wrap=True)
    table.add_column()
    for section, bindings in HELP_SECTIONS:
        table.add_row(Text(section, style="bold underline"), "")
        for key, description in bindings:
            table.add_row(key, description)
        table.add_row("", "")
    return Panel(table, title="Keys", title_align="left")


def _column_picker(state: SessionState, cursor: int, title: str) -> RenderableType:
    pipeline = state.pipeline
    lines = Text()
    for index, name in enumerate(pipeline.columns):
        marker = f"{CURSOR} " if index == cursor else "  "
        suffix = ""
        if pipeline.sort_column == index and pipeline.sort_order.arrow:
            suffix = f" {pipeline.sort_order.arrow}"
        lines.append(f"{marker}{name}{suffix}\n", style="reverse" if index == cursor else "")
    return Panel(lines, title=title, title_align="left")


def render_modal(state: SessionState) -> Optional[RenderableType]:
    modal = state.modal
    pipeline = state.pipeline
    if modal is None:
        return None
    if isinstance(modal, SortPicker):
        return _column_picker(state, modal.cursor, "Sort by")
    if isinstance(modal, FilterPicker):
        if modal.step == 0:
            return _column_picker(state, modal.cursor, "Filter column")
        column = pipeline.columns[modal.cursor] if modal.cursor < len(pipeline.columns) else "?"
        return Panel(Text(f"{column} contains: {modal.text}█"), title="Filter", title_align="left")
    if isinstance(modal, SearchInput):
        matches = pipeline.visible_count
        return Panel(
            Text(f"/{pipeline.search_text}█   {matches} of {pipeline.row_count} rows"),
            title="Search results",
            title_align="left",
        )
    if isinstance(modal, QuestionSearchInput):
        return Panel(Text(f"{modal.text}█"), title="Search questions", title_align="left")
    if isinstance(modal, RecordDetail):
        table = Table(box=None, show_header=False, pad_edge=False, expand=True)
        table.add_column(style="bold", no_wrap=True)
        table.add_column(overflow="fold")
        row = pipeline.rows[modal.row] if modal.row < pipeline.row_count else []
        for index, name in enumerate(pipeline.columns):
            value = row[index] if index < len(row) else ""
            table.add_row(name, value, style="reverse" if index == modal.cursor else None)
        return Panel(table, title=f"Record #{modal.row + 1}", title_align="left")
    if isinstance(modal, CopyPicker):
        count = len(state.selection) or 1
        lines = Text()
        for index, fmt in enumerate(COPY_FORMATS):
            marker = f"{CURSOR} " if index == modal.cursor else "  "
            lines.append(f"{marker}[{fmt.key}] {fmt.label}\n", style="reverse" if index == modal.cursor else "")
        header = "on" if modal.include_header else "off"
        lines.append(f"\n[h] header row: {header}", style="dim")
        return Panel(lines, title=f"Copy {count} row(s)", title_align="left")
    raise TypeError(f"Unknown modal: {modal!r}")


def render_body(state: SessionState, height: int, width: int = 120) -> RenderableType:
    if state.show_help:
        return render_help()
    modal = render_modal(state)
    body_height = height - 8 if modal is not None else height
    body = RENDERERS[type(state.view)](state, body_height, width)
    if modal is None:
        return body
    return Group(body, modal)
