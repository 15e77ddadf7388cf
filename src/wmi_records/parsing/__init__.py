"""Lexers and parsers for condition templates and WQL."""

from wmi_records.parsing.condition_lexer import ConditionLexer
from wmi_records.parsing.wql_lexer import WqlLexer
from wmi_records.parsing.wql_parser import ObjectPath, SelectStatement, WqlParser

__all__ = [
    "ConditionLexer",
    "ObjectPath",
    "SelectStatement",
    "WqlLexer",
    "WqlParser",
]
