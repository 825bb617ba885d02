"""
Pine Script Lexer

Converts raw source text into located tokens for the style checks.

The lexer is total: it never rejects input. Characters it does not recognize
become single-character Punctuation tokens so later passes can still reason
about line structure on malformed scripts. Namespaced names such as
`color.rgb` or `ta.sma` come out as a single dotted Identifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List


class TokenKind(str, Enum):
    IDENTIFIER = "Identifier"
    STRING_LITERAL = "StringLiteral"
    NUMERIC_LITERAL = "NumericLiteral"
    COLOR_LITERAL = "ColorLiteral"
    OPERATOR = "Operator"
    PUNCTUATION = "Punctuation"
    COMMENT = "Comment"
    NEWLINE = "Newline"
    END_OF_INPUT = "EndOfInput"


@dataclass(frozen=True, order=True)
class SourcePosition:
    """1-based line and column."""
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: SourcePosition

    @property
    def is_code(self) -> bool:
        return self.kind not in (TokenKind.COMMENT, TokenKind.NEWLINE, TokenKind.END_OF_INPUT)

    def is_op(self, *texts: str) -> bool:
        return self.kind == TokenKind.OPERATOR and (not texts or self.text in texts)

    def is_punct(self, *texts: str) -> bool:
        return self.kind == TokenKind.PUNCTUATION and self.text in texts


# ── Operator tables ───────────────────────────────────────────────────────────

TWO_CHAR_OPERATORS = (":=", "==", "!=", "<=", ">=", "=>", "+=", "-=", "*=", "/=", "%=")
ONE_CHAR_OPERATORS = "+-*/%<>=?:"
WORD_OPERATORS = frozenset({"and", "or", "not"})

ASSIGNMENT_OPERATORS = frozenset({"=", ":=", "+=", "-=", "*=", "/=", "%="})

# Binary, logical and ternary operators: these lead a continuation line and
# must never trail the line before it.
PLACEMENT_OPERATORS = frozenset({
    "+", "-", "*", "/", "%",
    "==", "!=", "<", ">", "<=", ">=",
    "and", "or", "?", ":",
})

LEADING_CONTINUATION_OPERATORS = PLACEMENT_OPERATORS | ASSIGNMENT_OPERATORS

OPEN_BRACKETS = frozenset({"(", "["})
CLOSE_BRACKETS = frozenset({")", "]"})


def is_trailing_continuation(token: Token) -> bool:
    """True if a line ending with `token` does not terminate its statement."""
    # `=>` opens a block body on the following lines, not a continuation
    return token.kind == TokenKind.OPERATOR and token.text not in ("=>", "not")


def is_leading_continuation(token: Token) -> bool:
    return token.kind == TokenKind.OPERATOR and token.text in LEADING_CONTINUATION_OPERATORS


# ── Internal helpers ──────────────────────────────────────────────────────────

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _width(text: str, tab_width: int) -> int:
    return len(text) + (tab_width - 1) * text.count("\t")


def _scan_string(source: str, i: int) -> int:
    """Return the index just past the string literal starting at `i`."""
    quote = source[i]
    n = len(source)
    j = i + 1
    while j < n and source[j] != quote and source[j] != "\n":
        if source[j] == "\\" and j + 1 < n and source[j + 1] != "\n":
            j += 2
            continue
        j += 1
    if j < n and source[j] == quote:
        j += 1
    return j


def _scan_number(source: str, i: int) -> int:
    n = len(source)
    j = i
    while j < n and source[j].isdigit():
        j += 1
    if j < n and source[j] == "." and not (j + 1 < n and _is_ident_start(source[j + 1])):
        j += 1
        while j < n and source[j].isdigit():
            j += 1
    if j < n and source[j] in "eE":
        k = j + 1
        if k < n and source[k] in "+-":
            k += 1
        if k < n and source[k].isdigit():
            j = k
            while j < n and source[j].isdigit():
                j += 1
    return j


def _scan_identifier(source: str, i: int) -> int:
    n = len(source)
    j = i
    while True:
        while j < n and _is_ident_char(source[j]):
            j += 1
        # Qualified name: `namespace.member` with no whitespace around the dot
        if j + 1 < n and source[j] == "." and _is_ident_start(source[j + 1]):
            j += 1
            continue
        return j


def _scan_color(source: str, i: int) -> int:
    """Return the end of a `#RRGGBB[AA]` literal, or `i` if there is none."""
    n = len(source)
    j = i + 1
    while j < n and source[j] in _HEX_DIGITS:
        j += 1
    digits = j - i - 1
    if digits in (6, 8) and not (j < n and _is_ident_char(source[j])):
        return j
    return i


# ── Public API ────────────────────────────────────────────────────────────────

def tokenize(source: str, tab_width: int = 1) -> List[Token]:
    """
    Split `source` into tokens, always ending with an EndOfInput token.

    Tabs advance the column by `tab_width`. Carriage returns are treated as
    plain whitespace so CRLF files report the same positions as LF files.
    """
    tokens: List[Token] = []
    n = len(source)
    i = 0
    line = 1
    col = 1

    def emit(kind: TokenKind, end: int) -> None:
        nonlocal i, col
        text = source[i:end]
        tokens.append(Token(kind, text, SourcePosition(line, col)))
        col += _width(text, tab_width)
        i = end

    while i < n:
        ch = source[i]

        if ch == "\n":
            tokens.append(Token(TokenKind.NEWLINE, "\n", SourcePosition(line, col)))
            i += 1
            line += 1
            col = 1
            continue

        if ch == "\t":
            i += 1
            col += tab_width
            continue

        if ch.isspace():
            i += 1
            col += 1
            continue

        if source.startswith("//", i):
            end = source.find("\n", i)
            if end == -1:
                end = n
            if end > i and source[end - 1] == "\r":
                end -= 1
            emit(TokenKind.COMMENT, end)
            continue

        if ch in "\"'":
            emit(TokenKind.STRING_LITERAL, _scan_string(source, i))
            continue

        if ch == "#":
            end = _scan_color(source, i)
            if end > i:
                emit(TokenKind.COLOR_LITERAL, end)
            else:
                emit(TokenKind.PUNCTUATION, i + 1)
            continue

        if ch.isdigit() or (ch == "." and i + 1 < n and source[i + 1].isdigit()):
            emit(TokenKind.NUMERIC_LITERAL, _scan_number(source, i))
            continue

        if _is_ident_start(ch):
            end = _scan_identifier(source, i)
            word = source[i:end]
            kind = TokenKind.OPERATOR if word in WORD_OPERATORS else TokenKind.IDENTIFIER
            emit(kind, end)
            continue

        two = source[i:i + 2]
        if two in TWO_CHAR_OPERATORS:
            emit(TokenKind.OPERATOR, i + 2)
            continue

        if ch in ONE_CHAR_OPERATORS:
            emit(TokenKind.OPERATOR, i + 1)
            continue

        emit(TokenKind.PUNCTUATION, i + 1)

    tokens.append(Token(TokenKind.END_OF_INPUT, "", SourcePosition(line, col)))
    return tokens


def code_tokens(tokens: List[Token]) -> List[Token]:
    """Drop comments, newlines and the end marker."""
    return [t for t in tokens if t.is_code]
