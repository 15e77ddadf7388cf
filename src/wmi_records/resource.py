"""Entity instances mapped onto remote objects."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from wmi_records.proxy import AttributeProxy
from wmi_records.remote import RemoteHandle

if TYPE_CHECKING:
    from wmi_records.entity import EntityType


class Resource:
    """One record of an entity type.

    Fields are reachable as attributes (``computer.user``) or through
    ``get``/``set``. Attribute names starting with an underscore, and
    names that collide with methods or properties of this class, are
    only reachable through ``get``/``set``.

    Examples:
        >>> computer = Computer.get(74939)
        >>> computer.user
        'jsmith'
        >>> computer.user = "adoe"
        >>> computer.save()
    """

    def __init__(self, entity_type: EntityType, handle: RemoteHandle) -> None:
        object.__setattr__(self, "_entity_type", entity_type)
        object.__setattr__(
            self,
            "_proxy",
            AttributeProxy(
                handle,
                entity_type.aliases,
                entity_type.element_name,
                entity_type.mark_materialized,
            ),
        )

    @property
    def entity_type(self) -> EntityType:
        return self._entity_type

    @property
    def proxy(self) -> AttributeProxy:
        return self._proxy

    @property
    def handle(self) -> RemoteHandle:
        return self._proxy.handle

    @property
    def fields(self) -> dict[str, Any]:
        """Snapshot of every materialized field, dates decoded."""
        return self._proxy.as_dict()

    def get(self, name: str) -> Any:
        return self._proxy.get(name)

    def set(self, name: str, value: Any) -> None:
        self._proxy.set(name, value)

    def has_field(self, name: str) -> bool:
        return self._proxy.exists(name)

    @property
    def key(self) -> Any:
        """The key value: a scalar, a tuple for composite keys, or None when unsaved."""
        key_fields = self._entity_type.key_fields
        if not key_fields:
            return None
        values = []
        for name in key_fields:
            value = self._proxy.get(name)
            if value is None or value == "":
                return None
            values.append(value)
        if len(values) == 1:
            return values[0]
        return tuple(values)

    @property
    def is_new(self) -> bool:
        """True until the record has a key, i.e. has not been saved."""
        return self.key is None

    def to_param(self) -> str | None:
        key = self.key
        if key is None:
            return None
        if isinstance(key, tuple):
            return ",".join(str(part) for part in key)
        return str(key)

    def save(self) -> Resource:
        """Create the record remotely if it is new, otherwise update it."""
        self._entity_type.save(self)
        return self

    def destroy(self) -> None:
        """Delete the record from the store."""
        self._entity_type.destroy(self)

    def reload(self) -> Resource:
        """Refetch the record and rebuild its field map."""
        self._entity_type.reload(self)
        return self

    def exists(self) -> bool:
        """True if the record is saved and the store still has it."""
        return not self.is_new and self._entity_type.exists(self.key)

    def clone(self) -> Resource:
        """Return an unsaved copy carrying every field except the key fields."""
        key_names = {name.lower() for name in self._entity_type.key_fields}
        values = {
            name: copy.copy(value)
            for name, value in self._proxy.raw_fields().items()
            if name.lower() not in key_names
        }
        return self._entity_type.new(values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._proxy.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            self._proxy.set(name, value)

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, Resource):
            return NotImplemented
        if other._entity_type is not self._entity_type:
            return False
        key = self.key
        return key is not None and other.key == key

    def __hash__(self) -> int:
        """Hash on the entity type and key.

        The key of a new record is assigned by ``save``, which changes the
        hash. Add records to sets or use them as dict keys only once saved.
        """
        return hash((self._entity_type.element_name, self.key))

    def __repr__(self) -> str:
        return f"<{self._entity_type.name} {self.to_param() or 'new'}>"
