"""Shared fixtures for mbr-tui tests."""

from typing import Any, Callable, Optional

import pytest

from mbr_tui.api.models import (
    CollectionItem,
    CurrentUser,
    Database,
    Question,
    TableInfo,
    TabularResult,
)
from mbr_tui.api.service import ResourceKind
from mbr_tui.errors import ApiError
from mbr_tui.session.actions import ActionBus
from mbr_tui.session.fetch import FetchCoordinator
from mbr_tui.session.reducer import apply
from mbr_tui.session.state import SessionState


PEOPLE = TabularResult(
    source_id=7,
    name="People",
    columns=["id", "name"],
    rows=[["1", "Alice"], ["2", "Bob"], ["3", "Carl"]],
)


class FakeService:
    """In-memory stand-in for ServiceClient recording every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.failures: dict[Any, str] = {}
        self.user = CurrentUser(id=1, email="ada@example.com", first_name="Ada", last_name="Lovelace")
        self.lists: dict[ResourceKind, list] = {
            ResourceKind.QUESTIONS: [
                Question(id=7, name="People"),
                Question(id=8, name="Orders"),
            ],
            ResourceKind.COLLECTIONS: [
                CollectionItem(id="root", name="Our analytics"),
                CollectionItem(id=4, name="Finance"),
            ],
            ResourceKind.DATABASES: [Database(id=1, name="Sample Database", engine="h2")],
            ResourceKind.COLLECTION_QUESTIONS: [Question(id=9, name="Revenue")],
            ResourceKind.SCHEMAS: ["PUBLIC"],
            ResourceKind.TABLES: [
                TableInfo.model_validate({"id": 12, "name": "ORDERS", "display_name": "Orders", "schema": "PUBLIC"}),
            ],
        }
        self.results: dict[int, TabularResult] = {7: PEOPLE}

    def _check(self, key: Any) -> None:
        if key in self.failures:
            raise ApiError(self.failures[key])

    def authenticate_check(self) -> CurrentUser:
        self.calls.append(("auth",))
        self._check("auth")
        return self.user

    def list(self, kind: ResourceKind, scope: Any = None) -> list:
        self.calls.append(("list", kind, scope))
        self._check(kind)
        return list(self.lists[kind])

    def execute(self, question_id: int, name: Optional[str] = None) -> TabularResult:
        self.calls.append(("execute", question_id))
        self._check(question_id)
        return self.results.get(question_id, PEOPLE)

    def preview(self, database_id: int, table_id: int, name: Optional[str] = None) -> TabularResult:
        self.calls.append(("preview", database_id, table_id))
        self._check(("preview", table_id))
        return TabularResult(source_id=table_id, name=name or "", columns=PEOPLE.columns, rows=PEOPLE.rows)

    def close(self) -> None:
        self.calls.append(("close",))


class ManualSpawner:
    """Collects jobs so tests decide when (and in which order) they run."""

    def __init__(self):
        self.jobs: list[Callable[[], None]] = []

    def __call__(self, job: Callable[[], None]) -> None:
        self.jobs.append(job)

    def run_all(self) -> int:
        count = 0
        while self.jobs:
            self.jobs.pop(0)()
            count += 1
        return count


class Harness:
    """A session wired to a fake service, with helpers to step the loop."""

    def __init__(self, page_size: int = 100):
        self.service = FakeService()
        self.bus = ActionBus()
        self.spawner = ManualSpawner()
        self.state = SessionState(page_size=page_size)
        self.coordinator = FetchCoordinator(self.service, self.bus, self.spawner)

    def send(self, *actions) -> SessionState:
        for action in actions:
            apply(self.state, action, self.coordinator)
        return self.state

    def drain(self) -> SessionState:
        for action in self.bus.drain():
            apply(self.state, action, self.coordinator)
        return self.state

    def settle(self) -> SessionState:
        """Run jobs and apply their completions until nothing is pending."""
        while self.spawner.jobs or not self.bus.empty():
            self.spawner.run_all()
            self.drain()
        return self.state


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()


@pytest.fixture
def harness() -> Harness:
    return Harness()


@pytest.fixture
def people() -> TabularResult:
    return PEOPLE


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    """Point the config file at a temp path and clear server env vars."""
    path = tmp_path / "config.json"
    monkeypatch.setenv("MBR_TUI_CONFIG", str(path))
    monkeypatch.delenv("MBR_URL", raising=False)
    monkeypatch.delenv("MBR_API_KEY", raising=False)
    return path
