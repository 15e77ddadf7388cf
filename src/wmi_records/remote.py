"""Interfaces the mapping layer requires from a WMI connection."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class ConnectionSettings:
    """Resolved address and credentials for one entity type."""

    site: str | None = None
    namespace: str | None = None
    user: str | None = None
    password: str | None = None


class RemoteHandle(Protocol):
    """An opaque reference to one object in the store.

    ``get_property`` and ``set_property`` raise KeyError for names the
    object does not have. ``put`` commits the object and returns its
    object path.
    """

    def properties(self) -> Iterable[tuple[str, Any]]: ...

    def get_property(self, name: str) -> Any: ...

    def set_property(self, name: str, value: Any) -> None: ...

    def put(self) -> str: ...

    def delete(self) -> None: ...


class Connection(Protocol):
    """A live connection to a store namespace.

    Failures raise RemoteError; a fetch of a missing object raises
    NotFoundError.
    """

    def execute_query(self, query: str) -> Sequence[RemoteHandle]: ...

    def fetch(self, locator: str) -> RemoteHandle: ...

    def spawn(self, element_name: str) -> RemoteHandle: ...
