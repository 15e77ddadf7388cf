"""Friendly-name to store-name mapping for entity fields."""

from __future__ import annotations

from collections.abc import Iterator, Mapping


class FieldAliasTable:
    """Maps friendly field names onto the store's field names.

    Lookups are exact on the friendly name. Registering a friendly name
    twice replaces the earlier mapping.
    """

    def __init__(self, aliases: Mapping[str, str] | None = None) -> None:
        self._aliases: dict[str, str] = {}
        if aliases:
            for friendly, underlying in aliases.items():
                self.register(friendly, underlying)

    def register(self, friendly: str, underlying: str) -> None:
        self._aliases[str(friendly)] = str(underlying)

    def resolve(self, name: str) -> str:
        """Return the store name for ``name``, or ``name`` itself if unaliased."""
        return self._aliases.get(name, name)

    def merged(self, other: FieldAliasTable) -> FieldAliasTable:
        """Return a new table with ``other``'s entries layered over this one."""
        table = FieldAliasTable(self._aliases)
        table._aliases.update(other._aliases)
        return table

    def items(self) -> list[tuple[str, str]]:
        return list(self._aliases.items())

    def __contains__(self, name: object) -> bool:
        return name in self._aliases

    def __iter__(self) -> Iterator[str]:
        return iter(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldAliasTable):
            return NotImplemented
        return self._aliases == other._aliases

    def __repr__(self) -> str:
        return f"FieldAliasTable({self._aliases!r})"
