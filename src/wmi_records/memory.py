"""An in-memory WMI namespace.

``MemoryStore`` keeps classes and committed objects in dictionaries and
serves them through ``MemoryConnection``, which understands the same
WQL and object paths the mapping layer produces. It stands in for a
live server in tests and offline tooling::

    store = MemoryStore()
    store.define_class("SMS_R_System", ["ResourceID", "Name"], key_fields="ResourceID", auto_key=True)
    computers = EntityType("Computer", element_name="SMS_R_System",
                           key_fields="ResourceID", connector=store.connect)
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from wmi_records.errors import NotFoundError, remote_error
from wmi_records.parsing.wql_lexer import INVALID_QUERY_CODE
from wmi_records.parsing.wql_parser import ObjectPath, SelectStatement, WqlParser
from wmi_records.predicates import Comparison, Conjunction, Negation, Predicate
from wmi_records.remote import ConnectionSettings
from wmi_records.values import quote_key

logger = logging.getLogger(__name__)

# WBEM_E_INVALID_PARAMETER
INVALID_PARAMETER_CODE = "80041008"
# WBEM_E_INVALID_CLASS
INVALID_CLASS_CODE = "80041010"


@dataclass
class MemoryClass:
    """A class definition: its properties and key fields."""

    name: str
    properties: tuple[str, ...]
    key_fields: tuple[str, ...]
    auto_key: bool = False

    def canonical(self, name: str) -> str | None:
        """Return the declared spelling of a property name, matched case-insensitively."""
        lowered = name.lower()
        for prop in self.properties:
            if prop.lower() == lowered:
                return prop
        return None


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _fold(value: Any) -> Any:
    # String comparisons are case-insensitive
    return value.casefold() if isinstance(value, str) else value


def _compare(actual: Any, operator: str, expected: Any) -> bool:
    if operator == "IS":
        return actual is None
    if operator == "IS NOT":
        return actual is not None
    if operator == "LIKE":
        return isinstance(actual, str) and _like_to_regex(expected).fullmatch(actual) is not None
    if expected is None or actual is None:
        if operator == "=":
            return actual is expected
        if operator in ("<>", "!="):
            return actual is not expected
        return False
    actual, expected = _fold(actual), _fold(expected)
    try:
        if operator == "=":
            return actual == expected
        if operator in ("<>", "!="):
            return actual != expected
        if operator == "<":
            return actual < expected
        if operator == "<=":
            return actual <= expected
        if operator == ">":
            return actual > expected
        if operator == ">=":
            return actual >= expected
    except TypeError:
        return False
    raise remote_error(INVALID_QUERY_CODE, f"Unsupported operator {operator}")


def evaluate(predicate: Predicate, cls: MemoryClass, values: Mapping[str, Any]) -> bool:
    """Evaluate a predicate tree against one object's property values."""
    if isinstance(predicate, Comparison):
        name = cls.canonical(predicate.field)
        if name is None:
            raise remote_error(
                INVALID_QUERY_CODE, f"{cls.name} has no property {predicate.field}"
            )
        return _compare(values.get(name), predicate.operator.upper(), predicate.value)
    if isinstance(predicate, Conjunction):
        results = (evaluate(term, cls, values) for term in predicate.terms)
        return all(results) if predicate.operator.upper() == "AND" else any(results)
    if isinstance(predicate, Negation):
        return not evaluate(predicate.term, cls, values)
    raise remote_error(INVALID_QUERY_CODE, f"Not a predicate: {predicate!r}")


class MemoryHandle:
    """A snapshot of one object. Changes stay local until ``put``."""

    def __init__(
        self,
        store: MemoryStore,
        cls: MemoryClass,
        values: dict[str, Any],
        key: tuple[Any, ...] | None = None,
    ) -> None:
        self._store = store
        self._cls = cls
        self._values = values
        self._key = key

    @property
    def class_name(self) -> str:
        return self._cls.name

    @property
    def path(self) -> str | None:
        if self._key is None:
            return None
        return self._store.path_for(self._cls, self._key)

    def properties(self) -> Iterable[tuple[str, Any]]:
        return list(self._values.items())

    def get_property(self, name: str) -> Any:
        canonical = self._cls.canonical(name)
        if canonical is None:
            raise KeyError(name)
        return self._values.get(canonical)

    def set_property(self, name: str, value: Any) -> None:
        canonical = self._cls.canonical(name)
        if canonical is None:
            raise KeyError(name)
        self._values[canonical] = value

    def put(self) -> str:
        self._key = self._store.commit(self._cls, self._values, self._key)
        return self._store.path_for(self._cls, self._key)

    def delete(self) -> None:
        if self._key is None:
            raise NotFoundError(f"{self._cls.name} instance has not been saved")
        self._store.remove(self._cls, self._key)
        self._key = None

    def __repr__(self) -> str:
        return f"MemoryHandle({self.path or self._cls.name + ' (new)'})"


class MemoryStore:
    """Classes and committed objects of one in-memory namespace."""

    def __init__(self) -> None:
        self._classes: dict[str, MemoryClass] = {}
        self._objects: dict[str, dict[tuple[Any, ...], dict[str, Any]]] = {}
        self._next_key: dict[str, int] = {}

    def define_class(
        self,
        name: str,
        properties: Sequence[str],
        key_fields: str | Sequence[str] = "id",
        auto_key: bool = False,
    ) -> MemoryClass:
        """Register a class.

        Args:
            name: Class name, matched case-insensitively.
            properties: Property names; key fields are added if missing.
            key_fields: Key property or properties.
            auto_key: Assign increasing integers to a missing single key on commit.
        """
        keys = (key_fields,) if isinstance(key_fields, str) else tuple(key_fields)
        if auto_key and len(keys) != 1:
            raise ValueError("auto_key requires a single key field")
        props = list(properties)
        lowered = {p.lower() for p in props}
        for key in keys:
            if key.lower() not in lowered:
                props.insert(0, key)
        cls = MemoryClass(name=name, properties=tuple(props), key_fields=keys, auto_key=auto_key)
        self._classes[name.lower()] = cls
        self._objects.setdefault(name.lower(), {})
        self._next_key.setdefault(name.lower(), 1)
        return cls

    def get_class(self, name: str) -> MemoryClass:
        cls = self._classes.get(name.lower())
        if cls is None:
            raise remote_error(INVALID_CLASS_CODE, f"Invalid class {name}")
        return cls

    def insert(self, class_name: str, values: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        """Commit a new object directly and return its object path."""
        cls = self.get_class(class_name)
        record: dict[str, Any] = {prop: None for prop in cls.properties}
        for name, value in {**(values or {}), **kwargs}.items():
            canonical = cls.canonical(name)
            if canonical is None:
                raise KeyError(name)
            record[canonical] = value
        key = self.commit(cls, record, None)
        return self.path_for(cls, key)

    def objects(self, class_name: str) -> list[dict[str, Any]]:
        """Return copies of every committed object of a class."""
        cls = self.get_class(class_name)
        return [dict(values) for values in self._objects[cls.name.lower()].values()]

    def path_for(self, cls: MemoryClass, key: tuple[Any, ...]) -> str:
        terms = [f"{name}={quote_key(value)}" for name, value in zip(cls.key_fields, key)]
        return f"{cls.name}.{','.join(terms)}"

    def commit(
        self, cls: MemoryClass, values: dict[str, Any], previous: tuple[Any, ...] | None
    ) -> tuple[Any, ...]:
        """Store an object's values, returning its key."""
        table = self._objects[cls.name.lower()]
        if cls.auto_key and values.get(cls.key_fields[0]) in (None, ""):
            counter = self._next_key[cls.name.lower()]
            while (counter,) in table:
                counter += 1
            values[cls.key_fields[0]] = counter
            self._next_key[cls.name.lower()] = counter + 1
        key = tuple(values.get(name) for name in cls.key_fields)
        if any(part is None or part == "" for part in key):
            raise remote_error(
                INVALID_PARAMETER_CODE, f"{cls.name} requires values for {', '.join(cls.key_fields)}"
            )
        if previous is not None and previous != key:
            table.pop(previous, None)
        table[key] = dict(values)
        return key

    def remove(self, cls: MemoryClass, key: tuple[Any, ...]) -> None:
        table = self._objects[cls.name.lower()]
        if key not in table:
            raise NotFoundError(f"{self.path_for(cls, key)} not found")
        del table[key]

    def lookup(self, path: ObjectPath) -> MemoryHandle:
        cls = self.get_class(path.class_name)
        given = {name.lower(): value for name, value in path.keys}
        if set(given) != {name.lower() for name in cls.key_fields}:
            raise remote_error(
                INVALID_PARAMETER_CODE, f"{cls.name} is keyed by {', '.join(cls.key_fields)}"
            )
        key = tuple(given[name.lower()] for name in cls.key_fields)
        values = self._objects[cls.name.lower()].get(key)
        if values is None:
            raise NotFoundError(f"{self.path_for(cls, key)} not found")
        return MemoryHandle(self, cls, dict(values), key)

    def select(self, statement: SelectStatement) -> list[MemoryHandle]:
        cls = self.get_class(statement.class_name)
        handles = []
        for key, values in self._objects[cls.name.lower()].items():
            if statement.where is None or evaluate(statement.where, cls, values):
                handles.append(MemoryHandle(self, cls, dict(values), key))
        return handles

    def spawn(self, class_name: str) -> MemoryHandle:
        cls = self.get_class(class_name)
        return MemoryHandle(self, cls, {prop: None for prop in cls.properties})

    def connect(self, settings: ConnectionSettings | None = None) -> MemoryConnection:
        return MemoryConnection(self, settings or ConnectionSettings())


class MemoryConnection:
    """Connection over a MemoryStore."""

    def __init__(self, store: MemoryStore, settings: ConnectionSettings) -> None:
        self.store = store
        self.settings = settings
        self._parser = WqlParser()

    def execute_query(self, query: str) -> list[MemoryHandle]:
        statement = self._parser.parse(query)
        if not isinstance(statement, SelectStatement):
            raise remote_error(INVALID_QUERY_CODE, f"Not a query: {query}")
        start = time.perf_counter()
        handles = self.store.select(statement)
        logger.debug("%s --> %d objects (%.4fs)", query, len(handles), time.perf_counter() - start)
        return handles

    def fetch(self, locator: str) -> MemoryHandle:
        path = self._parser.parse(locator)
        if not isinstance(path, ObjectPath):
            raise remote_error(INVALID_PARAMETER_CODE, f"Not an object path: {locator}")
        return self.store.lookup(path)

    def spawn(self, element_name: str) -> MemoryHandle:
        return self.store.spawn(element_name)
