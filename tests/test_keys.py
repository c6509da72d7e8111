"""Tests for key translation."""

import pytest

from mbr_tui.api.models import CollectionItem, Database, Question, TableInfo
from mbr_tui.api.service import ResourceKind
from mbr_tui.session import actions as a
from mbr_tui.session.clipboard import CopyFormat
from mbr_tui.session.load_state import LoadState
from mbr_tui.session.state import (
    CopyPicker,
    FilterPicker,
    Modal,
    QuestionSearchInput,
    SearchInput,
    SessionState,
    SortPicker,
)
from mbr_tui.session.views import (
    VIEW_TYPES,
    DatabaseSchemas,
    QueryResult,
    ResourceList,
    SchemaTables,
    Tab,
)
from mbr_tui.tui.keys import MODAL_ROUTERS, VIEW_KEYMAPS, normalize_key, translate_key
from mbr_tui.tui.render import RENDERERS


def _on(view, kind=None, items=None) -> SessionState:
    state = SessionState()
    state.nav.reset(view)
    if kind is not None:
        state.resources[kind] = LoadState.loaded(items or [])
    return state


class TestNormalizeKey:
    """Tests for normalize_key."""

    def test_printable_character_wins(self) -> None:
        assert normalize_key("shift+g", "G") == "G"
        assert normalize_key("space", " ") == " "
        assert normalize_key("slash", "/") == "/"

    def test_named_keys_kept(self) -> None:
        assert normalize_key("enter", "\r") == "enter"
        assert normalize_key("tab", "\t") == "tab"
        assert normalize_key("up", None) == "up"


class TestGlobalKeys:
    """Tests for keys handled in every view."""

    def test_ctrl_c_always_quits(self) -> None:
        state = SessionState()
        state.show_help = True
        state.modal = SearchInput()
        assert translate_key(state, "ctrl+c") == a.Quit()

    def test_help_overlay_swallows_keys(self) -> None:
        state = SessionState(show_help=True)
        assert translate_key(state, "q") is None
        assert translate_key(state, "?") == a.ToggleHelp()
        assert translate_key(state, "escape") == a.ToggleHelp()

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("q", a.Quit()),
            ("1", a.SwitchTab(Tab.QUESTIONS)),
            ("3", a.SwitchTab(Tab.DATABASES)),
            ("tab", a.CycleTab(1)),
            ("shift+tab", a.CycleTab(-1)),
            ("r", a.Refresh()),
            ("escape", a.Back()),
        ],
    )
    def test_global_bindings(self, key: str, expected) -> None:
        assert translate_key(SessionState(), key) == expected

    def test_welcome_enter(self) -> None:
        assert translate_key(SessionState(), "enter") == a.SwitchTab(Tab.QUESTIONS)


class TestListKeys:
    """Tests for Enter and navigation on list views."""

    def test_enter_runs_question(self) -> None:
        state = _on(ResourceList(ResourceKind.QUESTIONS), ResourceKind.QUESTIONS, [Question(id=7, name="People")])
        assert translate_key(state, "enter") == a.ExecuteQuestion(7, "People")

    def test_enter_opens_collection(self) -> None:
        state = _on(
            ResourceList(ResourceKind.COLLECTIONS),
            ResourceKind.COLLECTIONS,
            [CollectionItem(id="root", name="Our analytics")],
        )
        assert translate_key(state, "enter") == a.OpenCollection("root", "Our analytics")

    def test_enter_opens_database(self) -> None:
        state = _on(ResourceList(ResourceKind.DATABASES), ResourceKind.DATABASES, [Database(id=1, name="Sample")])
        assert translate_key(state, "enter") == a.OpenDatabase(1, "Sample")

    def test_enter_opens_schema(self) -> None:
        state = _on(DatabaseSchemas(1, "Sample"), ResourceKind.SCHEMAS, ["PUBLIC"])
        assert translate_key(state, "enter") == a.OpenSchema(1, "PUBLIC")

    def test_enter_opens_table(self) -> None:
        table = TableInfo.model_validate({"id": 12, "name": "ORDERS", "display_name": "Orders", "schema": "PUBLIC"})
        state = _on(SchemaTables(1, "PUBLIC"), ResourceKind.TABLES, [table])
        assert translate_key(state, "enter") == a.OpenTable(1, 12, "Orders")

    def test_enter_on_empty_list(self) -> None:
        state = _on(ResourceList(ResourceKind.QUESTIONS), ResourceKind.QUESTIONS, [])
        assert translate_key(state, "enter") is None

    def test_question_search_only_on_questions(self) -> None:
        assert translate_key(_on(ResourceList(ResourceKind.QUESTIONS)), "/") == a.OpenModal(
            a.ModalKind.QUESTION_SEARCH
        )
        assert translate_key(_on(ResourceList(ResourceKind.COLLECTIONS)), "/") is None

    def test_movement(self) -> None:
        state = _on(ResourceList(ResourceKind.DATABASES))
        assert translate_key(state, "j") == a.MoveCursor(1)
        assert translate_key(state, "pageup") == a.MoveCursor(-10)
        assert translate_key(state, "G") == a.CursorEnd()


class TestResultKeys:
    """Tests for keys on result views."""

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("n", a.ChangePage(a.PageOp.NEXT)),
            ("G", a.ChangePage(a.PageOp.LAST)),
            ("l", a.ScrollColumns(1)),
            ("s", a.OpenModal(a.ModalKind.SORT)),
            ("F", a.ClearFilter()),
            ("/", a.OpenModal(a.ModalKind.SEARCH)),
            ("S", a.ClearSearch()),
            ("enter", a.OpenModal(a.ModalKind.RECORD_DETAIL)),
            (" ", a.ToggleSelect()),
            ("J", a.ExtendSelect(1)),
            ("shift+up", a.ExtendSelect(-1)),
            ("ctrl+a", a.SelectAll()),
        ],
    )
    def test_result_bindings(self, key: str, expected) -> None:
        assert translate_key(_on(QueryResult(7, "People")), key) == expected


class TestModalKeys:
    """Tests for keys while a modal is open."""

    def test_text_input_captures_global_keys(self) -> None:
        state = _on(QueryResult(7, "People"))
        state.modal = SearchInput()
        assert translate_key(state, "q") == a.ModalInput("q")
        assert translate_key(state, "backspace") == a.ModalBackspace()
        assert translate_key(state, "enter") == a.ModalConfirm()
        assert translate_key(state, "escape") == a.ModalCancel()
        assert translate_key(state, "up") is None

    def test_question_search_input(self) -> None:
        state = _on(ResourceList(ResourceKind.QUESTIONS))
        state.modal = QuestionSearchInput()
        assert translate_key(state, "1") == a.ModalInput("1")

    def test_filter_picker_steps(self) -> None:
        state = _on(QueryResult(7, "People"))
        state.modal = FilterPicker()
        assert translate_key(state, "j") == a.ModalMove(1)
        state.modal.step = 1
        assert translate_key(state, "j") == a.ModalInput("j")

    def test_sort_picker(self) -> None:
        state = _on(QueryResult(7, "People"))
        state.modal = SortPicker()
        assert translate_key(state, "k") == a.ModalMove(-1)
        assert translate_key(state, "s") == a.ModalCancel()

    def test_copy_picker_shortcuts(self) -> None:
        state = _on(QueryResult(7, "People"))
        state.modal = CopyPicker()
        assert translate_key(state, "c") == a.CopyAs(CopyFormat.CSV)
        assert translate_key(state, "j") == a.CopyAs(CopyFormat.JSON)
        assert translate_key(state, "h") == a.ToggleCopyHeader()


class TestCoverage:
    """Every view and modal has a key map and a renderer."""

    def test_view_keymaps_cover_views(self) -> None:
        assert set(VIEW_KEYMAPS) == set(VIEW_TYPES)

    def test_renderers_cover_views(self) -> None:
        assert set(RENDERERS) == set(VIEW_TYPES)

    def test_modal_routers_cover_modals(self) -> None:
        assert set(MODAL_ROUTERS) == set(Modal.__args__)
