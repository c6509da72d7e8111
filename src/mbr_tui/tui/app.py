"""Textual application hosting the interactive session loop."""

import logging
from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Header, Static

from mbr_tui.api.service import ServiceClient
from mbr_tui.session import actions as a
from mbr_tui.session.actions import ActionBus
from mbr_tui.session.fetch import FetchCoordinator, Job
from mbr_tui.session.reducer import apply
from mbr_tui.session.state import Connection, ConnectionStatus, SessionState, Severity
from mbr_tui.tui.keys import normalize_key, translate_key
from mbr_tui.tui.render import render_body, render_header, render_status


logger = logging.getLogger(__name__)


class MbrApp(App):
    """Terminal client for browsing and querying a Metabase server."""

    TITLE = "mbr-tui"
    SUB_TITLE = "Metabase terminal client"

    CSS = """
    Screen {
        layout: vertical;
    }

    #tabs {
        height: 1;
        width: 100%;
        background: $primary-darken-2;
        padding: 0 1;
    }

    #body {
        height: 1fr;
        width: 100%;
        padding: 0 1;
    }

    #status {
        dock: bottom;
        height: 1;
        width: 100%;
        background: $surface;
        color: $text-muted;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit_session", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        service: ServiceClient,
        page_size: int = 100,
        tick_rate_ms: int = 250,
        theme: Optional[str] = None,
        sub_title: Optional[str] = None,
    ):
        super().__init__()
        self.service = service
        self.tick_rate_ms = tick_rate_ms
        self.bus = ActionBus()
        self.session = SessionState(page_size=page_size)
        self.coordinator = FetchCoordinator(service, self.bus, self._spawn)
        self._last_error = ""
        if theme:
            self.theme = theme
        if sub_title:
            self.sub_title = sub_title

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="tabs")
        yield Static(id="body")
        yield Static(id="status")

    def on_mount(self) -> None:
        self.set_interval(self.tick_rate_ms / 1000, self.drain_actions)
        self.session.connection = Connection(ConnectionStatus.CONNECTING)
        self.session.set_status("Connecting...")
        self.coordinator.validate_auth()
        self.refresh_view()

    def on_unmount(self) -> None:
        self.service.close()

    def on_resize(self, event: events.Resize) -> None:
        self.refresh_view()

    # =========================================================================
    # Loop
    # =========================================================================

    def _spawn(self, job: Job) -> None:
        """Run a fetch job on a worker thread, then wake the loop."""

        def run() -> None:
            job()
            if self.is_running:
                self.call_from_thread(self.drain_actions)

        self.run_worker(run, thread=True, exit_on_error=False, group="fetch")

    def drain_actions(self) -> None:
        """Apply every queued action, then redraw once."""
        pending = self.bus.drain()
        if not pending:
            return
        for action in pending:
            apply(self.session, action, self.coordinator)
        self._after_apply()

    def dispatch_action(self, action: "a.Action") -> None:
        apply(self.session, action, self.coordinator)
        self._after_apply()

    def on_key(self, event: events.Key) -> None:
        key = normalize_key(event.key, event.character)
        action = translate_key(self.session, key)
        if action is None:
            return
        logger.debug("key %s -> %s", key, type(action).__name__)
        event.stop()
        event.prevent_default()
        self.dispatch_action(action)

    def action_quit_session(self) -> None:
        self.dispatch_action(a.Quit())

    def _after_apply(self) -> None:
        state = self.session
        if state.should_quit:
            self.exit()
            return
        if state.pending_clipboard is not None:
            self.copy_to_clipboard(state.pending_clipboard)
            state.pending_clipboard = None
        if state.status.severity is Severity.ERROR and state.status.text != self._last_error:
            self._last_error = state.status.text
            self.notify(state.status.text, severity="error")
        self.refresh_view()

    # =========================================================================
    # Rendering
    # =========================================================================

    def refresh_view(self) -> None:
        try:
            body = self.query_one("#body", Static)
        except NoMatches:
            return
        height = body.size.height or self.size.height - 3
        width = body.size.width or self.size.width
        self.query_one("#tabs", Static).update(render_header(self.session))
        body.update(render_body(self.session, height, width))
        self.query_one("#status", Static).update(render_status(self.session))
