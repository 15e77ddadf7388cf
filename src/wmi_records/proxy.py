"""Lazily materialized field access over a remote handle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from wmi_records.aliases import FieldAliasTable
from wmi_records.errors import UnknownFieldError
from wmi_records.remote import RemoteHandle
from wmi_records.values import from_wmi_date, to_wmi_date

logger = logging.getLogger(__name__)


class AttributeProxy:
    """Field map for one entity instance, backed by a remote handle.

    The field map is built on first access by enumerating the handle's
    properties once, and is then the source for every read until
    ``reload`` or ``rebind``. Writes go to the handle first and update
    the map only when the handle accepts them. Field names match
    case-insensitively, as remote property names do.

    A proxy is not safe for concurrent mutation; callers sharing one
    across threads must synchronize.
    """

    def __init__(
        self,
        handle: RemoteHandle,
        aliases: FieldAliasTable | None = None,
        element_name: str | None = None,
        on_materialize: Callable[[], None] | None = None,
    ) -> None:
        self._handle = handle
        self._aliases = aliases if aliases is not None else FieldAliasTable()
        self._element_name = element_name
        self._on_materialize = on_materialize
        self._fields: dict[str, Any] | None = None
        self._names: dict[str, str] = {}

    @property
    def handle(self) -> RemoteHandle:
        return self._handle

    @property
    def is_materialized(self) -> bool:
        return self._fields is not None

    def materialize(self) -> dict[str, Any]:
        """Build the field map from the handle if it has not been built yet."""
        if self._fields is None:
            fields: dict[str, Any] = {}
            names: dict[str, str] = {}
            for name, value in self._handle.properties():
                fields[name] = value
                names[name.lower()] = name
            self._fields = fields
            self._names = names
            logger.debug("Materialized %d fields for %s", len(fields), self._element_name)
            if self._on_materialize is not None:
                self._on_materialize()
        return self._fields

    def _lookup(self, name: str) -> tuple[str, str | None]:
        """Return the alias-resolved name and its materialized spelling, if any."""
        resolved = self._aliases.resolve(name)
        self.materialize()
        return resolved, self._names.get(resolved.lower())

    def get(self, name: str) -> Any:
        """Read a field, decoding WMI date text into a datetime.

        Names missing from the field map are asked of the handle directly.

        Raises:
            UnknownFieldError: If neither the map nor the handle knows the name.
        """
        resolved, canonical = self._lookup(name)
        if canonical is not None:
            return from_wmi_date(self._fields[canonical])  # type: ignore[index]
        try:
            value = self._handle.get_property(resolved)
        except KeyError:
            raise UnknownFieldError(name, self._element_name) from None
        return from_wmi_date(value)

    def set(self, name: str, value: Any) -> None:
        """Write a field through the handle, encoding dates as WMI date text.

        Raises:
            UnknownFieldError: If the handle rejects the name.
        """
        resolved, canonical = self._lookup(name)
        target = canonical or resolved
        encoded = to_wmi_date(value)
        try:
            self._handle.set_property(target, encoded)
        except KeyError:
            raise UnknownFieldError(name, self._element_name) from None
        self._fields[target] = encoded  # type: ignore[index]
        self._names[target.lower()] = target

    def exists(self, name: str) -> bool:
        """Check whether a field is present.

        A trailing ``?`` or ``=`` is accepted, so predicate- and
        setter-style names answer for the field they refer to.
        """
        _, canonical = self._lookup(name)
        if canonical is not None:
            return True
        if name and name[-1] in "?=":
            return self._lookup(name[:-1])[1] is not None
        return False

    def raw_fields(self) -> dict[str, Any]:
        """Return a copy of the field map with values as the store holds them."""
        return dict(self.materialize())

    def as_dict(self) -> dict[str, Any]:
        """Return a copy of the field map with dates decoded."""
        return {name: from_wmi_date(value) for name, value in self.materialize().items()}

    def rebind(self, handle: RemoteHandle) -> None:
        """Point at a new handle; the field map is rebuilt on next access."""
        self._handle = handle
        self._fields = None
        self._names = {}

    def reload(self, handle: RemoteHandle | None = None) -> dict[str, Any]:
        """Discard the field map and rebuild it from the (optionally new) handle."""
        self.rebind(handle if handle is not None else self._handle)
        return self.materialize()

    def flush(self) -> None:
        """Write every field in the map back through the handle."""
        for name, value in self.materialize().items():
            self._handle.set_property(name, value)

    def __repr__(self) -> str:
        state = "materialized" if self.is_materialized else "unmaterialized"
        return f"AttributeProxy({self._element_name!r}, {state})"
