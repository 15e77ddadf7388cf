"""Typed predicate tree for WQL where clauses.

Conditions are built as ``Comparison`` leaves joined by ``Conjunction``
and ``Negation`` nodes, then rendered by ``render``. Field names,
operators and values are all checked during rendering, so a tree that
renders cannot smuggle extra query text into the result.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from wmi_records.errors import TranslationError
from wmi_records.values import quote_value

COMPARISON_OPERATORS = frozenset({"=", "<>", "!=", "<", "<=", ">", ">=", "LIKE", "IS", "IS NOT"})
LOGICAL_OPERATORS = frozenset({"AND", "OR"})

_IDENTIFIER_RE = re.compile(r"\A[A-Za-z_][A-Za-z0-9_]*\Z")


@dataclass
class Comparison:
    """A single ``field operator value`` test."""

    field: str
    operator: str
    value: Any


@dataclass
class Conjunction:
    """Terms joined by AND or OR."""

    operator: str
    terms: list[Predicate] = field(default_factory=list)


@dataclass
class Negation:
    """NOT applied to a term."""

    term: Predicate


Predicate = Union[Comparison, Conjunction, Negation]


def equals(field_name: str, value: Any) -> Comparison:
    """Build the comparison used for a field/value pair: IS for null, = otherwise."""
    if value is None:
        return Comparison(field_name, "IS", None)
    return Comparison(field_name, "=", value)


def check_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise TranslationError(f"Invalid field name {name!r}")
    return name


def render(predicate: Predicate, resolve: Callable[[str], str] | None = None) -> str:
    """Render a predicate tree as WQL text.

    Args:
        predicate: Root of the tree.
        resolve: Optional field-name resolver (alias lookup) applied to
            every comparison's field before it is checked.
    """
    if isinstance(predicate, Comparison):
        name = resolve(predicate.field) if resolve else predicate.field
        check_identifier(name)
        operator = predicate.operator.upper()
        if operator not in COMPARISON_OPERATORS:
            raise TranslationError(f"Unsupported operator {predicate.operator!r}")
        if operator in ("IS", "IS NOT") and predicate.value is not None:
            raise TranslationError(f"{operator} only accepts NULL, got {predicate.value!r}")
        if operator == "LIKE" and not isinstance(predicate.value, str):
            raise TranslationError("LIKE requires a string pattern")
        return f"{name} {operator} {quote_value(predicate.value)}"

    if isinstance(predicate, Conjunction):
        operator = predicate.operator.upper()
        if operator not in LOGICAL_OPERATORS:
            raise TranslationError(f"Unsupported logical operator {predicate.operator!r}")
        if not predicate.terms:
            raise TranslationError(f"Empty {operator} condition")
        parts = []
        for term in predicate.terms:
            text = render(term, resolve)
            # Nested groups keep their own precedence
            if isinstance(term, Conjunction) and len(term.terms) > 1:
                text = f"({text})"
            parts.append(text)
        return f" {operator} ".join(parts)

    if isinstance(predicate, Negation):
        return f"NOT ({render(predicate.term, resolve)})"

    raise TranslationError(f"Not a predicate: {predicate!r}")
