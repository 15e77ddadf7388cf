"""Parser for WQL select statements and object paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from wmi_records.errors import remote_error
from wmi_records.parsing.wql_lexer import INVALID_QUERY_CODE, WqlLexer
from wmi_records.predicates import Comparison, Conjunction, Negation, Predicate


@dataclass
class SelectStatement:
    """``SELECT * FROM class [WHERE condition]``."""

    class_name: str
    where: Predicate | None = None


@dataclass
class ObjectPath:
    """``Class.Key=value[,Key2=value2]`` addressing a single object."""

    class_name: str
    keys: list[tuple[str, Any]] = field(default_factory=list)


Statement = SelectStatement | ObjectPath


class WqlParser:
    """Parser for WQL text."""

    tokens = WqlLexer.tokens

    # Operator precedence
    precedence = (
        ("left", "OR"),
        ("left", "AND"),
        ("right", "NOT"),
    )

    def __init__(self) -> None:
        self.lexer = WqlLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : select_statement
                     | object_path"""
        p[0] = p[1]

    def p_select_statement(self, p: yacc.YaccProduction) -> None:
        """select_statement : SELECT STAR FROM IDENTIFIER where_clause"""
        p[0] = SelectStatement(class_name=p[4], where=p[5])

    def p_where_clause_empty(self, p: yacc.YaccProduction) -> None:
        """where_clause : """
        p[0] = None

    def p_where_clause(self, p: yacc.YaccProduction) -> None:
        """where_clause : WHERE condition"""
        p[0] = p[2]

    def p_condition_comparison(self, p: yacc.YaccProduction) -> None:
        """condition : IDENTIFIER EQ value
                     | IDENTIFIER NEQ value
                     | IDENTIFIER LT value
                     | IDENTIFIER LTE value
                     | IDENTIFIER GT value
                     | IDENTIFIER GTE value"""
        p[0] = Comparison(field=p[1], operator=p[2], value=p[3])

    def p_condition_like(self, p: yacc.YaccProduction) -> None:
        """condition : IDENTIFIER LIKE STRING"""
        p[0] = Comparison(field=p[1], operator="LIKE", value=p[3])

    def p_condition_is_null(self, p: yacc.YaccProduction) -> None:
        """condition : IDENTIFIER IS NULL"""
        p[0] = Comparison(field=p[1], operator="IS", value=None)

    def p_condition_is_not_null(self, p: yacc.YaccProduction) -> None:
        """condition : IDENTIFIER IS NOT NULL"""
        p[0] = Comparison(field=p[1], operator="IS NOT", value=None)

    def p_condition_not(self, p: yacc.YaccProduction) -> None:
        """condition : NOT condition"""
        p[0] = Negation(term=p[2])

    def p_condition_logical(self, p: yacc.YaccProduction) -> None:
        """condition : condition AND condition
                     | condition OR condition"""
        operator = p[2].upper()
        left = p[1]
        # Flatten chains of the same operator into one node
        if isinstance(left, Conjunction) and left.operator == operator:
            left.terms.append(p[3])
            p[0] = left
        else:
            p[0] = Conjunction(operator=operator, terms=[left, p[3]])

    def p_condition_paren(self, p: yacc.YaccProduction) -> None:
        """condition : LPAREN condition RPAREN"""
        p[0] = p[2]

    def p_value_literal(self, p: yacc.YaccProduction) -> None:
        """value : INTEGER
                 | FLOAT
                 | STRING"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    def p_value_null(self, p: yacc.YaccProduction) -> None:
        """value : NULL"""
        p[0] = None

    def p_object_path(self, p: yacc.YaccProduction) -> None:
        """object_path : IDENTIFIER DOT key_list"""
        p[0] = ObjectPath(class_name=p[1], keys=p[3])

    def p_key_list_single(self, p: yacc.YaccProduction) -> None:
        """key_list : key_term"""
        p[0] = [p[1]]

    def p_key_list_multiple(self, p: yacc.YaccProduction) -> None:
        """key_list : key_list COMMA key_term"""
        p[0] = p[1] + [p[3]]

    def p_key_term(self, p: yacc.YaccProduction) -> None:
        """key_term : IDENTIFIER EQ value"""
        p[0] = (p[1], p[3])

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise remote_error(INVALID_QUERY_CODE, f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise remote_error(INVALID_QUERY_CODE, "Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="statement", **kwargs)

    def parse(self, data: str) -> Statement:
        """Parse a query or object path."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        return self.parser.parse(data, lexer=self.lexer.lexer)
