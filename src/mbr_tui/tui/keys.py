"""Translate key presses into session actions.

The router reads the current view and modal state and yields at most one
action per key. Keys are Textual key names (``"up"``, ``"enter"``,
``"shift+tab"``) or, for printable input, the character itself.
"""

from typing import Callable, Optional, Union

from mbr_tui.api.service import ResourceKind
from mbr_tui.session import actions as a
from mbr_tui.session.clipboard import CopyFormat
from mbr_tui.session.pagination import PAGE_JUMP
from mbr_tui.session.state import (
    CopyPicker,
    FilterPicker,
    QuestionSearchInput,
    RecordDetail,
    SearchInput,
    SessionState,
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
)


Binding = Union["a.Action", Callable[[SessionState], Optional["a.Action"]]]
Keymap = dict[str, Binding]


def normalize_key(key: str, character: Optional[str]) -> str:
    """Prefer the typed character for printable keys (``"G"`` over ``"shift+g"``)."""
    if character and len(character) == 1 and character.isprintable():
        return character
    return key


def _resolve(binding: Optional[Binding], state: SessionState) -> Optional["a.Action"]:
    if binding is None:
        return None
    if callable(binding):
        return binding(state)
    return binding


# =============================================================================
# List views
# =============================================================================


def _activate_list_item(state: SessionState) -> Optional["a.Action"]:
    """Enter on a list row: execute a question or drill into the item."""
    view = state.view
    kind = resource_for(view)
    item = state.cursor_item(kind)
    if item is None:
        return None
    if kind in (ResourceKind.QUESTIONS, ResourceKind.COLLECTION_QUESTIONS):
        return a.ExecuteQuestion(item.id, item.name)
    if kind is ResourceKind.COLLECTIONS:
        return a.OpenCollection(item.id, item.name)
    if kind is ResourceKind.DATABASES:
        return a.OpenDatabase(item.id, item.name)
    if kind is ResourceKind.SCHEMAS:
        return a.OpenSchema(view.database_id, item)
    if kind is ResourceKind.TABLES:
        return a.OpenTable(view.database_id, item.id, item.label)
    return None


def _open_question_search(state: SessionState) -> Optional["a.Action"]:
    view = state.view
    if isinstance(view, ResourceList) and view.kind is ResourceKind.QUESTIONS:
        return a.OpenModal(a.ModalKind.QUESTION_SEARCH)
    return None


LIST_KEYS: Keymap = {
    "up": a.MoveCursor(-1),
    "k": a.MoveCursor(-1),
    "down": a.MoveCursor(1),
    "j": a.MoveCursor(1),
    "pageup": a.MoveCursor(-PAGE_JUMP),
    "pagedown": a.MoveCursor(PAGE_JUMP),
    "home": a.CursorHome(),
    "g": a.CursorHome(),
    "end": a.CursorEnd(),
    "G": a.CursorEnd(),
    "enter": _activate_list_item,
    "/": _open_question_search,
}

WELCOME_KEYS: Keymap = {
    "enter": a.SwitchTab(Tab.QUESTIONS),
}

RESULT_KEYS: Keymap = {
    "up": a.MoveCursor(-1),
    "k": a.MoveCursor(-1),
    "down": a.MoveCursor(1),
    "j": a.MoveCursor(1),
    "pageup": a.MoveCursor(-PAGE_JUMP),
    "pagedown": a.MoveCursor(PAGE_JUMP),
    "left": a.ScrollColumns(-1),
    "h": a.ScrollColumns(-1),
    "right": a.ScrollColumns(1),
    "l": a.ScrollColumns(1),
    "n": a.ChangePage(a.PageOp.NEXT),
    "p": a.ChangePage(a.PageOp.PREV),
    "home": a.ChangePage(a.PageOp.FIRST),
    "g": a.ChangePage(a.PageOp.FIRST),
    "end": a.ChangePage(a.PageOp.LAST),
    "G": a.ChangePage(a.PageOp.LAST),
    "s": a.OpenModal(a.ModalKind.SORT),
    "f": a.OpenModal(a.ModalKind.FILTER),
    "F": a.ClearFilter(),
    "/": a.OpenModal(a.ModalKind.SEARCH),
    "S": a.ClearSearch(),
    "enter": a.OpenModal(a.ModalKind.RECORD_DETAIL),
    "c": a.OpenModal(a.ModalKind.COPY),
    " ": a.ToggleSelect(),
    "shift+up": a.ExtendSelect(-1),
    "K": a.ExtendSelect(-1),
    "shift+down": a.ExtendSelect(1),
    "J": a.ExtendSelect(1),
    "ctrl+a": a.SelectAll(),
}

VIEW_KEYMAPS: dict[type, Keymap] = {
    Welcome: WELCOME_KEYS,
    ResourceList: LIST_KEYS,
    CollectionQuestions: LIST_KEYS,
    DatabaseSchemas: LIST_KEYS,
    SchemaTables: LIST_KEYS,
    TablePreview: RESULT_KEYS,
    QueryResult: RESULT_KEYS,
}

GLOBAL_KEYS: Keymap = {
    "q": a.Quit(),
    "?": a.ToggleHelp(),
    "1": a.SwitchTab(Tab.QUESTIONS),
    "2": a.SwitchTab(Tab.COLLECTIONS),
    "3": a.SwitchTab(Tab.DATABASES),
    "tab": a.CycleTab(1),
    "shift+tab": a.CycleTab(-1),
    "r": a.Refresh(),
    "escape": a.Back(),
}


# =============================================================================
# Modals
# =============================================================================


def _text_input(state: SessionState, key: str) -> Optional["a.Action"]:
    if key == "enter":
        return a.ModalConfirm()
    if key == "escape":
        return a.ModalCancel()
    if key == "backspace":
        return a.ModalBackspace()
    if len(key) == 1:
        return a.ModalInput(key)
    return None


def _sort_picker(state: SessionState, key: str) -> Optional["a.Action"]:
    return {
        "up": a.ModalMove(-1),
        "k": a.ModalMove(-1),
        "down": a.ModalMove(1),
        "j": a.ModalMove(1),
        "enter": a.ModalConfirm(),
        "escape": a.ModalCancel(),
        "s": a.ModalCancel(),
    }.get(key)


def _filter_picker(state: SessionState, key: str) -> Optional["a.Action"]:
    modal = state.modal
    if modal.step == 1:
        return _text_input(state, key)
    return {
        "up": a.ModalMove(-1),
        "k": a.ModalMove(-1),
        "down": a.ModalMove(1),
        "j": a.ModalMove(1),
        "enter": a.ModalConfirm(),
        "escape": a.ModalCancel(),
        "f": a.ModalCancel(),
    }.get(key)


def _record_detail(state: SessionState, key: str) -> Optional["a.Action"]:
    return {
        "up": a.ModalMove(-1),
        "k": a.ModalMove(-1),
        "down": a.ModalMove(1),
        "j": a.ModalMove(1),
        "c": a.CopyCellValue(),
        "enter": a.ModalConfirm(),
        "escape": a.ModalCancel(),
    }.get(key)


def _copy_picker(state: SessionState, key: str) -> Optional["a.Action"]:
    return {
        "up": a.ModalMove(-1),
        "down": a.ModalMove(1),
        "h": a.ToggleCopyHeader(),
        CopyFormat.JSON.key: a.CopyAs(CopyFormat.JSON),
        CopyFormat.CSV.key: a.CopyAs(CopyFormat.CSV),
        CopyFormat.TSV.key: a.CopyAs(CopyFormat.TSV),
        "enter": a.ModalConfirm(),
        "escape": a.ModalCancel(),
    }.get(key)


MODAL_ROUTERS: dict[type, Callable[[SessionState, str], Optional["a.Action"]]] = {
    SortPicker: _sort_picker,
    FilterPicker: _filter_picker,
    SearchInput: _text_input,
    QuestionSearchInput: _text_input,
    RecordDetail: _record_detail,
    CopyPicker: _copy_picker,
}


def translate_key(state: SessionState, key: str) -> Optional["a.Action"]:
    """Map one key press to zero or one action.

    Priority: ctrl+c, help overlay, open modal, global keys, view keys.
    """
    if key == "ctrl+c":
        return a.Quit()

    if state.show_help:
        return a.ToggleHelp() if key in ("?", "escape") else None

    if state.modal is not None:
        return MODAL_ROUTERS[type(state.modal)](state, key)

    action = _resolve(GLOBAL_KEYS.get(key), state)
    if action is not None:
        return action

    keymap = VIEW_KEYMAPS[type(state.view)]
    return _resolve(keymap.get(key), state)
