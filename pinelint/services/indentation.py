"""
indentation.py - Continuation-line checks

Works on raw source lines. Each line is tokenized on its own only to skip
strings and comments; statement structure comes from the line shape:

  • a line continues the previous statement when a bracket is still open,
    the previous code line ends with an operator, or the line itself starts
    with a continuation operator (+ - and or ? : ... or an assignment);
  • every continuation line is indented by exactly `continuation_indent`
    spaces past its statement's first line (two at top level), never tabs;
  • binary/logical/ternary operators lead the continuation line; trailing
    them on the previous line is an OperatorPlacement error.

Blank and comment-only lines are skipped and never break a continuation.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from pinelint.config import LintConfig
from pinelint.utils.diagnostics import Category, Diagnostic, Severity
from pinelint.utils.lexer import (
    CLOSE_BRACKETS,
    OPEN_BRACKETS,
    PLACEMENT_OPERATORS,
    SourcePosition,
    Token,
    TokenKind,
    code_tokens,
    is_leading_continuation,
    is_trailing_continuation,
    tokenize,
)

logger = logging.getLogger("pinelint.indentation")


# ── Internal helpers ──────────────────────────────────────────────────────────

def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def _indent_width(whitespace: str, tab_width: int) -> int:
    return len(whitespace) + (tab_width - 1) * whitespace.count("\t")


def _bracket_delta(toks: List[Token]) -> int:
    delta = 0
    for t in toks:
        if t.kind == TokenKind.PUNCTUATION and t.text in OPEN_BRACKETS:
            delta += 1
        elif t.kind == TokenKind.PUNCTUATION and t.text in CLOSE_BRACKETS:
            delta -= 1
    return delta


def _closers_only(toks: List[Token]) -> bool:
    return all(
        t.kind == TokenKind.PUNCTUATION and t.text in CLOSE_BRACKETS | {","}
        for t in toks
    ) and toks[0].text in CLOSE_BRACKETS


# ── Public API ────────────────────────────────────────────────────────────────

def check_indentation(lines: Sequence[str], config: Optional[LintConfig] = None) -> List[Diagnostic]:
    """
    Validate continuation-line indentation and operator placement.

    Returns BadIndentation diagnostics at column 1 of offending lines and
    OperatorPlacement diagnostics at the trailing operator's position.
    A source with no continuation lines always yields an empty list.
    """
    cfg = config or LintConfig()
    width = cfg.continuation_indent
    diagnostics: List[Diagnostic] = []

    depth = 0
    base_indent = 0
    prev: Optional[List[Token]] = None
    prev_lineno = 0

    for lineno, raw in enumerate(lines, start=1):
        raw = raw.rstrip("\r\n")
        toks = code_tokens(tokenize(raw, cfg.tab_width))
        if not toks:
            continue

        leading = _leading_whitespace(raw)
        trailing = prev[-1] if prev and is_trailing_continuation(prev[-1]) else None
        continuation = prev is not None and (
            depth > 0 or trailing is not None or is_leading_continuation(toks[0])
        )

        if continuation:
            expected = base_indent + width
            if "\t" in leading or len(leading) != expected:
                shown = "tab-based" if "\t" in leading else f"{len(leading)} space(s)"
                if _closers_only(toks):
                    message = (
                        f"Closing bracket on its own line must be indented by exactly "
                        f"{expected} spaces, found {shown}"
                    )
                else:
                    message = (
                        f"Continuation line must be indented by exactly {expected} spaces, "
                        f"found {shown}"
                    )
                diagnostics.append(Diagnostic(
                    category=Category.BAD_INDENTATION,
                    severity=Severity.ERROR,
                    position=SourcePosition(lineno, 1),
                    message=message,
                ))
            if trailing is not None and trailing.text in PLACEMENT_OPERATORS:
                diagnostics.append(Diagnostic(
                    category=Category.OPERATOR_PLACEMENT,
                    severity=Severity.ERROR,
                    position=SourcePosition(prev_lineno, trailing.position.column),
                    message=(
                        f"Operator '{trailing.text}' trails line {prev_lineno}; "
                        f"move it to the start of line {lineno}"
                    ),
                ))
        else:
            base_indent = _indent_width(leading, cfg.tab_width)
            depth = 0

        depth = max(0, depth + _bracket_delta(toks))
        prev = toks
        prev_lineno = lineno

    return diagnostics


def check_continuation_lines(ctx) -> List[Diagnostic]:
    """Rule-engine entry point for continuation indentation and operator placement."""
    return check_indentation(ctx.lines, ctx.config)
