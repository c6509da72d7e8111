"""Interactive session engine: state, actions, fetch coordination, transforms."""

from mbr_tui.session.actions import ActionBus
from mbr_tui.session.fetch import FetchCoordinator
from mbr_tui.session.load_state import LoadState, LoadStatus
from mbr_tui.session.reducer import apply
from mbr_tui.session.state import SessionState
from mbr_tui.session.transform import ResultTransformPipeline, SortOrder
from mbr_tui.session.views import NavigationStack, Tab

__all__ = [
    "ActionBus",
    "FetchCoordinator",
    "LoadState",
    "LoadStatus",
    "NavigationStack",
    "ResultTransformPipeline",
    "SessionState",
    "SortOrder",
    "Tab",
    "apply",
]
