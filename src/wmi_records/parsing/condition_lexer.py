"""Lexer for raw WQL condition templates.

Splits a template such as ``Name = ? AND Caption <> 'what?'`` into
bind markers and literal text. Markers inside quoted literals are
plain text.
"""

import ply.lex as lex

from wmi_records.errors import TranslationError


class ConditionLexer:
    """Lexer for tokenizing condition templates."""

    tokens = [
        "STRING",
        "POSITIONAL",
        "NAMED",
        "TEXT",
    ]

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r"'(?:[^']|'')*'|\"(?:[^\"\\]|\\.)*\""
        return t

    def t_POSITIONAL(self, t: lex.LexToken) -> lex.LexToken:
        r"\?"
        return t

    def t_NAMED(self, t: lex.LexToken) -> lex.LexToken:
        r":[A-Za-z_][A-Za-z0-9_]*"
        t.value = t.value[1:]
        return t

    def t_TEXT(self, t: lex.LexToken) -> lex.LexToken:
        r"[^'\"?:]+|:"
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise TranslationError(f"Unterminated quoted literal at position {t.lexpos}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize a template and return all tokens.

        Each call reads from its own clone of the built lexer, so one
        ConditionLexer can serve concurrent callers.
        """
        if self.lexer is None:
            self.build()
        lexer = self.lexer.clone()
        lexer.input(data)
        tokens = []
        while True:
            tok = lexer.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens
