"""
Pine Script AST Index for Style Rule Detection

This module builds a lightweight structural model of a Pine Script from its
token stream, in one pass per concern:

- logical statements (continuation lines folded into their statement)
- top-level declarations (constants, variables, functions)
- identifier references
- call sites with their nesting and keyword arguments
- assignments (the def-use edges used by the threshold taint analysis)

NOTE: This is not a full Pine grammar. A construct the index does not
understand yields no declarations or calls, so rules stay quiet for that
region instead of failing the whole file.
"""

from __future__ import annotations

import re
from bisect import bisect_left
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from pinelint.utils.lexer import (
    ASSIGNMENT_OPERATORS,
    CLOSE_BRACKETS,
    OPEN_BRACKETS,
    SourcePosition,
    Token,
    TokenKind,
    code_tokens,
    is_leading_continuation,
    is_trailing_continuation,
)


KEYWORDS = frozenset({
    "if", "else", "for", "to", "by", "in", "while", "switch",
    "var", "varip", "const", "simple", "series",
    "import", "export", "method", "type", "as",
    "true", "false", "break", "continue", "return",
})

# Statements opening with these never declare anything
CONTROL_KEYWORDS = frozenset({
    "if", "else", "for", "while", "switch", "import", "type",
    "return", "break", "continue",
})

DECLARATION_MODIFIERS = frozenset({"var", "varip", "const", "simple", "series"})

GENERIC_TYPES = frozenset({"array", "matrix", "map"})

BUILTIN_NAMESPACES = frozenset({
    "color", "ta", "math", "input", "str", "array", "matrix", "map",
    "request", "strategy", "syminfo", "timeframe", "barstate", "session",
    "label", "line", "box", "table", "polyline", "linefill", "chart",
    "runtime", "log", "ticker", "currency", "display", "shape", "location",
    "size", "position", "plot", "hline", "text", "font", "xloc", "yloc",
    "extend", "order", "alert", "barmerge", "dayofweek", "format", "scale",
})

BUILTIN_FUNCTIONS = frozenset({
    "indicator", "strategy", "library", "study",
    "plot", "plotshape", "plotchar", "plotarrow", "plotbar", "plotcandle",
    "bgcolor", "barcolor", "fill", "hline", "alert", "alertcondition",
    "max", "min", "abs", "avg", "nz", "na", "fixnan", "iff",
    "int", "float", "bool", "string", "color", "timestamp",
    "sma", "ema", "rsi", "crossover", "crossunder", "highest", "lowest",
    "security", "input", "rgb",
})

_UPPER_SNAKE = re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*$")


def is_upper_snake_case(name: str) -> bool:
    return bool(_UPPER_SNAKE.match(name))


class DeclarationKind(str, Enum):
    CONSTANT = "Constant"
    VARIABLE = "Variable"
    FUNCTION = "Function"


@dataclass(frozen=True)
class Declaration:
    name: str
    position: SourcePosition
    kind: DeclarationKind
    is_upper_snake_case: bool


@dataclass(frozen=True)
class Reference:
    name: str
    position: SourcePosition


@dataclass(frozen=True)
class Statement:
    """A logical statement as a half-open range over the code tokens."""
    start: int
    end: int
    indent: int


@dataclass
class CallSite:
    """A call `name(...)`; indices point into DeclarationIndex.code."""
    name: str
    position: SourcePosition
    index: int
    open_index: int
    close_index: int
    parent: Optional[int] = None
    keyword_args: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    is_builtin: bool = False

    def contains(self, idx: int) -> bool:
        return self.open_index < idx < self.close_index


@dataclass(frozen=True)
class Assignment:
    """`target <op> rhs`; a function body is recorded with operator `=>`."""
    target: str
    position: SourcePosition
    rhs_start: int
    rhs_end: int
    operator: str
    sources: Tuple[str, ...] = ()


class DeclarationIndex:
    """
    Symbol and usage model for one script.

    Built once from an immutable token stream and only read afterwards.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.code: List[Token] = code_tokens(tokens)

        self.statements: List[Statement] = []
        self.depths: List[int] = [0] * len(self.code)
        self.declarations: List[Declaration] = []
        self.by_name: Dict[str, Declaration] = {}
        self.references: List[Reference] = []
        self.calls: List[CallSite] = []
        self.assignments: List[Assignment] = []
        self.constant_rhs: List[Tuple[int, int]] = []

        self._skip: Set[int] = set()
        self._reference_indices: List[int] = []
        self._pending: List[Tuple[str, SourcePosition, int, int, str]] = []

        self._split_statements()
        self._compute_depths()
        for si in range(len(self.statements)):
            self._index_statement(si)
        self._collect_references()
        self._collect_calls()
        self._resolve_assignments()

    # ── Statements ────────────────────────────────────────────────────────────

    def _split_statements(self) -> None:
        start = 0
        count = 0
        depth = 0
        pending_break = False
        last: Optional[Token] = None

        for tok in self.tokens:
            if tok.kind == TokenKind.COMMENT:
                continue
            if tok.kind in (TokenKind.NEWLINE, TokenKind.END_OF_INPUT):
                if last is not None and count > start and depth == 0 \
                        and not is_trailing_continuation(last):
                    pending_break = True
                continue

            if pending_break:
                pending_break = False
                if not is_leading_continuation(tok):
                    self._add_statement(start, count)
                    start = count
                    depth = 0

            if tok.kind == TokenKind.PUNCTUATION and tok.text in OPEN_BRACKETS:
                depth += 1
            elif tok.kind == TokenKind.PUNCTUATION and tok.text in CLOSE_BRACKETS:
                depth = max(0, depth - 1)
            last = tok
            count += 1

        if count > start:
            self._add_statement(start, count)

    def _add_statement(self, start: int, end: int) -> None:
        self.statements.append(Statement(start, end, self.code[start].position.column))

    def _compute_depths(self) -> None:
        for stmt in self.statements:
            depth = 0
            for k in range(stmt.start, stmt.end):
                tok = self.code[k]
                if tok.kind == TokenKind.PUNCTUATION and tok.text in CLOSE_BRACKETS:
                    depth = max(0, depth - 1)
                self.depths[k] = depth
                if tok.kind == TokenKind.PUNCTUATION and tok.text in OPEN_BRACKETS:
                    depth += 1

    def _matching(self, open_idx: int, end: int) -> int:
        """Index of the bracket closing `open_idx`, or `end` if unmatched."""
        depth = self.depths[open_idx]
        for k in range(open_idx + 1, end):
            tok = self.code[k]
            if tok.kind == TokenKind.PUNCTUATION and tok.text in CLOSE_BRACKETS \
                    and self.depths[k] == depth:
                return k
        return end

    # ── Declarations & assignments ────────────────────────────────────────────

    def _is_name(self, k: int, end: int) -> bool:
        return k < end and self.code[k].kind == TokenKind.IDENTIFIER \
            and self.code[k].text not in KEYWORDS

    def _index_statement(self, si: int) -> None:
        stmt = self.statements[si]
        first = self.code[stmt.start]
        if first.kind == TokenKind.IDENTIFIER and first.text in CONTROL_KEYWORDS:
            return

        k = stmt.start
        if first.kind == TokenKind.IDENTIFIER and first.text in ("export", "method"):
            k += 1
        if self._match_function(si, k):
            return
        self._match_assignment(stmt, k)

    def _match_function(self, si: int, k: int) -> bool:
        stmt = self.statements[si]
        end = stmt.end
        if not (self._is_name(k, end) and k + 1 < end and self.code[k + 1].is_punct("(")):
            return False
        close = self._matching(k + 1, end)
        if close + 1 >= end or not self.code[close + 1].is_op("=>"):
            return False

        name_tok = self.code[k]
        self._skip.add(k)
        header_depth = self.depths[k + 1] + 1
        for j in range(k + 2, close):
            tok = self.code[j]
            if tok.kind != TokenKind.IDENTIFIER or self.depths[j] != header_depth:
                continue
            nxt = self.code[j + 1]
            prev = self.code[j - 1]
            if (nxt.is_punct(",", ")") or nxt.is_op("=")) and not prev.is_op("="):
                self._skip.add(j)
            elif nxt.kind == TokenKind.IDENTIFIER:
                # Parameter type annotation
                self._skip.add(j)

        if stmt.indent == 1:
            self._declare(name_tok, DeclarationKind.FUNCTION)

        if close + 2 < end:
            body_start, body_end = close + 2, end
        else:
            last = si
            while last + 1 < len(self.statements) and self.statements[last + 1].indent > stmt.indent:
                last += 1
            if last == si:
                return True
            body_start = self.statements[si + 1].start
            body_end = self.statements[last].end
        self._pending.append((name_tok.text, name_tok.position, body_start, body_end, "=>"))
        return True

    def _match_assignment(self, stmt: Statement, k: int) -> None:
        end = stmt.end

        if k < end and self.code[k].is_punct("["):
            close = self._matching(k, end)
            if close + 1 < end and self.code[close + 1].is_op("="):
                for j in range(k + 1, close):
                    if self._is_name(j, end):
                        tok = self.code[j]
                        self._skip.add(j)
                        if stmt.indent == 1:
                            self._declare(tok, DeclarationKind.VARIABLE)
                        self._pending.append((tok.text, tok.position, close + 2, end, "="))
            return

        j = k
        while j < end and self.code[j].kind == TokenKind.IDENTIFIER \
                and self.code[j].text in DECLARATION_MODIFIERS:
            self._skip.add(j)
            j += 1
        # Generic type annotation: array<float> name = ...
        if j + 1 < end and self.code[j].text in GENERIC_TYPES and self.code[j + 1].is_op("<"):
            m = j + 2
            while m < end and not self.code[m].is_op(">"):
                self._skip.add(m)
                m += 1
            self._skip.add(j)
            j = m + 1
        # Plain type annotation: float name = ... / MyType name = ...
        elif self._is_name(j, end) and j + 1 < end and self.code[j + 1].kind == TokenKind.IDENTIFIER:
            self._skip.add(j)
            j += 1

        if not self._is_name(j, end) or j + 2 >= end:
            return
        op = self.code[j + 1]
        if op.kind != TokenKind.OPERATOR or op.text not in ASSIGNMENT_OPERATORS:
            return

        target = self.code[j]
        self._skip.add(j)
        name = target.text.split(".", 1)[0]
        if op.text == "=" and stmt.indent == 1 and "." not in target.text:
            decl = self._declare(target, self._kind_for(name))
            if decl.kind == DeclarationKind.CONSTANT:
                self.constant_rhs.append((j + 2, end))
        self._pending.append((name, target.position, j + 2, end, op.text))

    @staticmethod
    def _kind_for(name: str) -> DeclarationKind:
        if is_upper_snake_case(name):
            return DeclarationKind.CONSTANT
        return DeclarationKind.VARIABLE

    def _declare(self, tok: Token, kind: DeclarationKind) -> Declaration:
        decl = Declaration(
            name=tok.text,
            position=tok.position,
            kind=kind,
            is_upper_snake_case=is_upper_snake_case(tok.text),
        )
        self.declarations.append(decl)
        self.by_name.setdefault(decl.name, decl)
        return decl

    # ── References & calls ────────────────────────────────────────────────────

    def _collect_references(self) -> None:
        n = len(self.code)
        for k, tok in enumerate(self.code):
            if tok.kind != TokenKind.IDENTIFIER or k in self._skip:
                continue
            head = tok.text.split(".", 1)[0]
            if head in KEYWORDS:
                continue
            # Keyword argument name inside a call: `title = ...`
            if self.depths[k] > 0 and k + 1 < n and self.code[k + 1].is_op("="):
                continue
            self.references.append(Reference(head, tok.position))
            self._reference_indices.append(k)

    def _collect_calls(self) -> None:
        user_functions = {d.name for d in self.declarations if d.kind == DeclarationKind.FUNCTION}
        for stmt in self.statements:
            stack: List[Optional[int]] = []
            for k in range(stmt.start, stmt.end):
                tok = self.code[k]
                if tok.kind != TokenKind.PUNCTUATION:
                    continue
                if tok.text in OPEN_BRACKETS:
                    call_id = None
                    if tok.text == "(" and k > stmt.start and self._is_name(k - 1, stmt.end) \
                            and k - 1 not in self._skip:
                        callee = self.code[k - 1]
                        parent = next((c for c in reversed(stack) if c is not None), None)
                        head = callee.text.split(".", 1)[0]
                        call_id = len(self.calls)
                        self.calls.append(CallSite(
                            name=callee.text,
                            position=callee.position,
                            index=k - 1,
                            open_index=k,
                            close_index=stmt.end,
                            parent=parent,
                            is_builtin=callee.text not in user_functions and (
                                head in BUILTIN_NAMESPACES or callee.text in BUILTIN_FUNCTIONS
                            ),
                        ))
                    stack.append(call_id)
                elif tok.text in CLOSE_BRACKETS and stack:
                    call_id = stack.pop()
                    if call_id is not None:
                        self.calls[call_id].close_index = k
        for call in self.calls:
            self._collect_keyword_args(call)

    def _collect_keyword_args(self, call: CallSite) -> None:
        arg_depth = self.depths[call.open_index] + 1
        k = call.open_index + 1
        arg_start = k
        while k <= call.close_index:
            at_end = k == call.close_index or k >= len(self.code)
            if at_end or (self.code[k].is_punct(",") and self.depths[k] == arg_depth):
                first = self.code[arg_start] if arg_start < len(self.code) else None
                if first is not None and arg_start + 1 < k and first.kind == TokenKind.IDENTIFIER \
                        and self.code[arg_start + 1].is_op("="):
                    call.keyword_args[first.text] = (arg_start + 2, k)
                arg_start = k + 1
                if at_end:
                    break
            k += 1

    def _resolve_assignments(self) -> None:
        for target, position, start, end, op in self._pending:
            seen: List[str] = [target] if op not in ("=", ":=", "=>") else []
            for name in self.reference_names(start, end):
                if name not in seen:
                    seen.append(name)
            self.assignments.append(Assignment(
                target=target,
                position=position,
                rhs_start=start,
                rhs_end=end,
                operator=op,
                sources=tuple(seen),
            ))

    # ── Queries ───────────────────────────────────────────────────────────────

    def reference_names(self, start: int, end: int) -> List[str]:
        """Referenced names whose tokens fall in code[start:end], in order."""
        lo = bisect_left(self._reference_indices, start)
        hi = bisect_left(self._reference_indices, end)
        return [
            self.code[self._reference_indices[i]].text.split(".", 1)[0]
            for i in range(lo, hi)
        ]

    def declaration(self, name: str) -> Optional[Declaration]:
        return self.by_name.get(name)

    def declarations_of(self, kind: DeclarationKind) -> List[Declaration]:
        return [d for d in self.declarations if d.kind == kind]

    def references_to(self, name: str) -> List[Reference]:
        return [r for r in self.references if r.name == name]

    def in_constant_rhs(self, idx: int) -> bool:
        return any(start <= idx < end for start, end in self.constant_rhs)

    def to_dict(self) -> Dict[str, object]:
        """Serialize index counts for debugging"""
        return {
            "statements": len(self.statements),
            "declarations": {d.name: d.kind.value for d in self.declarations},
            "references": len(self.references),
            "calls": len(self.calls),
            "builtin_calls": sum(1 for c in self.calls if c.is_builtin),
            "assignments": len(self.assignments),
        }
