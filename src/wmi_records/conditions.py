"""Translation of find conditions into WQL where clauses.

A condition is given in one of these forms::

    "Name = 'foo'"                          raw text, no values
    ["Name = ? AND Active = ?", "f'o", 1]   raw text, positional values
    ["Name = :name", {"name": "foo"}]       raw text, named values
    {"user": "foo", "group_id": 4}          field/value pairs
    Comparison("Name", "<>", "foo")         predicate tree

Raw forms are tokenized so only markers outside quoted literals are
substituted, and the number of markers must match the number of values.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from wmi_records.errors import TranslationError
from wmi_records.parsing.condition_lexer import ConditionLexer
from wmi_records.predicates import Comparison, Conjunction, Negation, Predicate, equals, render
from wmi_records.values import quote_value


@dataclass
class Raw:
    """A condition template with positional (``?``) or named (``:name``) markers."""

    text: str
    values: Sequence[Any] | Mapping[str, Any] = field(default_factory=tuple)


@dataclass
class Fielded:
    """Field/value pairs joined with AND, in the mapping's iteration order."""

    fields: Mapping[str, Any]


Condition = Union[Raw, Fielded, Comparison, Conjunction, Negation]

_lexer: ConditionLexer | None = None


def _get_lexer() -> ConditionLexer:
    global _lexer
    if _lexer is None:
        _lexer = ConditionLexer()
        _lexer.build()
    return _lexer


def as_condition(condition: Any) -> Condition | None:
    """Normalize the accepted condition forms into a Condition value."""
    if condition is None:
        return None
    if isinstance(condition, (Raw, Fielded, Comparison, Conjunction, Negation)):
        return condition
    if isinstance(condition, str):
        return Raw(condition)
    if isinstance(condition, Mapping):
        return Fielded(condition)
    if isinstance(condition, (list, tuple)):
        if not condition or not isinstance(condition[0], str):
            raise TranslationError("A condition sequence must start with a template string")
        text, *values = condition
        if len(values) == 1 and isinstance(values[0], Mapping):
            return Raw(text, values[0])
        return Raw(text, tuple(values))
    raise TranslationError(f"Unsupported condition type {type(condition).__name__}")


def fielded_predicate(fields: Mapping[str, Any]) -> Conjunction:
    return Conjunction("AND", [equals(name, value) for name, value in fields.items()])


def bind_values(text: str, values: Sequence[Any] | Mapping[str, Any]) -> str:
    """Substitute quoted values for the markers in a raw template.

    Raises:
        TranslationError: If the markers and values do not line up.
    """
    tokens = _get_lexer().tokenize(text)
    positional = sum(1 for tok in tokens if tok.type == "POSITIONAL")
    named = [tok.value for tok in tokens if tok.type == "NAMED"]

    if positional and named:
        raise TranslationError(f"Cannot mix ? and :name markers in: {text}")

    if values and not positional and not named and "%s" in text:
        raise TranslationError(
            f"printf-style %s templates are not supported, use ? or :name markers in: {text}"
        )

    if isinstance(values, Mapping):
        if positional:
            raise TranslationError(f"Named values given for positional markers in: {text}")
        missing = [name for name in named if name not in values]
        if missing:
            raise TranslationError(f"Missing value for :{missing[0]} in: {text}")
        unused = [name for name in values if name not in named]
        if unused:
            raise TranslationError(
                f"wrong number of bind variables ({len(values)} for {len(set(named))}), "
                f"unused :{unused[0]} in: {text}"
            )
    else:
        if named:
            raise TranslationError(f"Positional values given for named markers in: {text}")
        if positional != len(values):
            raise TranslationError(
                f"wrong number of bind variables ({len(values)} for {positional}) in: {text}"
            )

    remaining = iter(values) if not isinstance(values, Mapping) else None
    parts = []
    for tok in tokens:
        if tok.type == "POSITIONAL":
            parts.append(quote_value(next(remaining)))  # type: ignore[arg-type]
        elif tok.type == "NAMED":
            parts.append(quote_value(values[tok.value]))  # type: ignore[index]
        else:
            parts.append(tok.value)
    return "".join(parts)


def translate(condition: Any, resolve: Callable[[str], str] | None = None) -> str | None:
    """Translate a condition into WQL predicate text.

    Args:
        condition: Any accepted condition form, or None.
        resolve: Field alias resolver applied to fielded and tree conditions.

    Returns:
        The predicate text, or None when there is no condition.
    """
    normalized = as_condition(condition)
    if normalized is None:
        return None
    if isinstance(normalized, Raw):
        return bind_values(normalized.text, normalized.values)
    if isinstance(normalized, Fielded):
        if not normalized.fields:
            return None
        return render(fielded_predicate(normalized.fields), resolve)
    return render(normalized, resolve)


def build_query(element_name: str, condition: Any = None, resolve: Callable[[str], str] | None = None) -> str:
    """Build ``SELECT * FROM element [WHERE ...]`` for a class of records."""
    where = translate(condition, resolve)
    query = f"SELECT * FROM {element_name}"
    if where:
        query += f" WHERE {where}"
    return query
