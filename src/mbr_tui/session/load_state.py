"""Per-resource fetch state."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar


T = TypeVar("T")


class LoadStatus(str, Enum):
    """Lifecycle of a single resource fetch."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class LoadState(Generic[T]):
    """Fetch state of one resource: Idle, Loading, Loaded(data) or Error(message).

    ``scope`` records what the fetch was dispatched for (a collection id, a
    database id, a search term) so a late completion for another scope can
    be recognised and dropped.
    """

    status: LoadStatus = LoadStatus.IDLE
    data: Optional[T] = None
    error: Optional[str] = None
    scope: Any = None

    @classmethod
    def idle(cls) -> "LoadState[T]":
        return cls()

    @classmethod
    def loading(cls, scope: Any = None) -> "LoadState[T]":
        return cls(status=LoadStatus.LOADING, scope=scope)

    @classmethod
    def loaded(cls, data: T, scope: Any = None) -> "LoadState[T]":
        return cls(status=LoadStatus.LOADED, data=data, scope=scope)

    @classmethod
    def failed(cls, message: str, scope: Any = None) -> "LoadState[T]":
        return cls(status=LoadStatus.ERROR, error=message, scope=scope)

    @property
    def is_idle(self) -> bool:
        return self.status is LoadStatus.IDLE

    @property
    def is_loading(self) -> bool:
        return self.status is LoadStatus.LOADING

    @property
    def is_loaded(self) -> bool:
        return self.status is LoadStatus.LOADED

    @property
    def is_error(self) -> bool:
        return self.status is LoadStatus.ERROR
