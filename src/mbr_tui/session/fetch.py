"""Dispatch of background fetches.

Jobs run off the loop thread through an injected ``spawn`` callable. They
never touch session state; they only post actions on the bus.
"""

import logging
from typing import Any, Callable

from mbr_tui.api.service import ResourceKind, ServiceClient
from mbr_tui.session.actions import (
    ActionBus,
    AuthFailed,
    AuthValidated,
    LoadFailed,
    LoadSucceeded,
    QueryExecuted,
    QueryFailed,
)
from mbr_tui.session.load_state import LoadState
from mbr_tui.session.state import SessionState


logger = logging.getLogger(__name__)

Job = Callable[[], None]
Spawner = Callable[[Job], None]


class FetchCoordinator:
    """Starts one background job per data request."""

    def __init__(self, service: ServiceClient, bus: ActionBus, spawn: Spawner):
        self.service = service
        self.bus = bus
        self.spawn = spawn

    def fetch_resource(self, state: SessionState, kind: ResourceKind, scope: Any = None) -> bool:
        """Load a list resource unless a load for it is already in flight.

        Returns True when a job was dispatched.
        """
        if state.resources[kind].is_loading:
            logger.debug("skip %s fetch: already loading", kind.value)
            return False

        state.resources[kind] = LoadState.loading(scope)
        logger.debug("dispatch %s fetch (scope=%r)", kind.value, scope)

        def job() -> None:
            try:
                payload = self.service.list(kind, scope)
            except Exception as e:
                logger.warning("%s fetch failed: %s", kind.value, e)
                self.bus.send(LoadFailed(kind, str(e), scope))
            else:
                self.bus.send(LoadSucceeded(kind, payload, scope))

        self.spawn(job)
        return True

    def execute_query(self, state: SessionState, question_id: int, name: str) -> int:
        """Run a question; the result is tagged with a fresh request id."""
        request_id = state.next_request_id()
        state.resources[ResourceKind.QUERY_RESULT] = LoadState.loading(request_id)
        logger.debug("dispatch question %s as request %s", question_id, request_id)
        self._spawn_tabular(request_id, lambda: self.service.execute(question_id, name))
        return request_id

    def preview_table(self, state: SessionState, database_id: int, table_id: int, name: str) -> int:
        """Preview a table, tagged like a query execution."""
        request_id = state.next_request_id()
        state.resources[ResourceKind.QUERY_RESULT] = LoadState.loading(request_id)
        logger.debug("dispatch table %s preview as request %s", table_id, request_id)
        self._spawn_tabular(request_id, lambda: self.service.preview(database_id, table_id, name))
        return request_id

    def _spawn_tabular(self, request_id: int, call: Callable) -> None:
        def job() -> None:
            try:
                result = call()
            except Exception as e:
                logger.warning("request %s failed: %s", request_id, e)
                self.bus.send(QueryFailed(request_id, str(e)))
            else:
                self.bus.send(QueryExecuted(request_id, result))

        self.spawn(job)

    def validate_auth(self) -> None:
        """Check the credentials in the background."""

        def job() -> None:
            try:
                user = self.service.authenticate_check()
            except Exception as e:
                logger.warning("authentication check failed: %s", e)
                self.bus.send(AuthFailed(str(e)))
            else:
                self.bus.send(AuthValidated(user.display_name))

        self.spawn(job)
