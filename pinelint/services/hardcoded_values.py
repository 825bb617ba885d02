"""
Hardcoded-value rules

Literal strings and colors belong in UPPER_SNAKE_CASE constants declared
near the top of the script. Both rules scan the token stream directly and
use the declaration index only to locate constant right-hand sides and
call nesting.
"""

from __future__ import annotations

import logging
from typing import List, Set

from pinelint.utils.diagnostics import Category, Diagnostic, Severity
from pinelint.utils.lexer import TokenKind
from pinelint.utils.pine_ast import DeclarationIndex

logger = logging.getLogger("pinelint.hardcoded_values")

TOOLTIP_KEYWORD = "tooltip"


def _literal_body(text: str) -> str:
    """Strip the surrounding quotes of a string literal token."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text[1:]


def _inline_tooltips(index: DeclarationIndex, max_length: int) -> Set[int]:
    """Token indices of short literals passed directly as `tooltip=`."""
    allowed: Set[int] = set()
    for call in index.calls:
        span = call.keyword_args.get(TOOLTIP_KEYWORD)
        if span is None or span[1] - span[0] != 1:
            continue
        tok = index.code[span[0]]
        if tok.kind == TokenKind.STRING_LITERAL and len(_literal_body(tok.text)) < max_length:
            allowed.add(span[0])
    return allowed


def check_hardcoded_strings(ctx) -> List[Diagnostic]:
    """
    HardcodedString: flag every string literal unless it is
      (a) part of a constant declaration's right-hand side, or
      (b) the whole value of a `tooltip=` argument shorter than the limit.
    """
    index = ctx.index
    tooltips = _inline_tooltips(index, ctx.config.tooltip_max_length)
    diagnostics = []
    for k, tok in enumerate(index.code):
        if tok.kind != TokenKind.STRING_LITERAL:
            continue
        if k in tooltips or index.in_constant_rhs(k):
            continue
        diagnostics.append(Diagnostic(
            category=Category.HARDCODED_STRING,
            severity=Severity.WARNING,
            position=tok.position,
            message=f"Hardcoded string {tok.text} — move it into an UPPER_SNAKE_CASE constant",
        ))
    return diagnostics


def check_hardcoded_colors(ctx) -> List[Diagnostic]:
    """
    HardcodedColor:
      • Error for a color constructor nested directly in another one
        (`color.new(color.new(c, 10), 20)`), whatever it is assigned to.
        The whole construction reports that one error and nothing else.
      • Warning for any other color constructor outside a constant's
        right-hand side.
      • Warning for `#RRGGBB` literals outside constants and outside any
        color constructor call, when enabled.
    """
    index = ctx.index
    constructors = set(ctx.config.color_constructors)
    diagnostics = []

    # A user function that shadows a constructor name is not a color call
    color_calls = {
        i for i, call in enumerate(index.calls)
        if call.name in constructors and call.is_builtin
    }
    # Outer constructors of a nested pair are covered by the nested error
    nesting = {
        index.calls[i].parent for i in color_calls
        if index.calls[i].parent in color_calls
    }

    for i, call in enumerate(index.calls):
        if i not in color_calls:
            continue
        parent = index.calls[call.parent] if call.parent is not None else None
        if call.parent in color_calls:
            diagnostics.append(Diagnostic(
                category=Category.HARDCODED_COLOR,
                severity=Severity.ERROR,
                position=call.position,
                message=(
                    f"Nested color construction: {call.name}() inside {parent.name}() — "
                    "build the inner color as a constant first"
                ),
                tag="nested",
            ))
            continue
        if i in nesting or index.in_constant_rhs(call.index):
            continue
        diagnostics.append(Diagnostic(
            category=Category.HARDCODED_COLOR,
            severity=Severity.WARNING,
            position=call.position,
            message=f"Inline color {call.name}() — declare it as an UPPER_SNAKE_CASE color constant",
        ))

    if ctx.config.flag_color_literals:
        for k, tok in enumerate(index.code):
            if tok.kind != TokenKind.COLOR_LITERAL or index.in_constant_rhs(k):
                continue
            # Already reported through the enclosing color call
            if any(index.calls[i].contains(k) for i in color_calls):
                continue
            diagnostics.append(Diagnostic(
                category=Category.HARDCODED_COLOR,
                severity=Severity.WARNING,
                position=tok.position,
                message=f"Hardcoded color literal {tok.text} — declare it as a color constant",
            ))

    return diagnostics
