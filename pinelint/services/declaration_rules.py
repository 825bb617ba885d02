"""
Declaration-order rules

ForwardReference: Pine does not hoist functions, so a function must be
defined lexically before its first use. Constants and variables are exempt.

UnusedConstant: a constant that nothing references below its declaration
line is usually left over from an incomplete migration to named constants.
Uses above the declaration do not count.
"""

from __future__ import annotations

from typing import List

from pinelint.utils.diagnostics import Category, Diagnostic, Severity
from pinelint.utils.pine_ast import DeclarationKind


def check_forward_references(ctx) -> List[Diagnostic]:
    index = ctx.index
    diagnostics = []
    for ref in index.references:
        decl = index.declaration(ref.name)
        if decl is None or decl.kind != DeclarationKind.FUNCTION:
            continue
        if ref.position < decl.position:
            diagnostics.append(Diagnostic(
                category=Category.FORWARD_REFERENCE,
                severity=Severity.ERROR,
                position=ref.position,
                message=(
                    f"Function '{ref.name}' is used before its definition "
                    f"at line {decl.position.line}"
                ),
            ))
    return diagnostics


def check_unused_constants(ctx) -> List[Diagnostic]:
    index = ctx.index
    used_lines = {}
    for ref in index.references:
        used_lines.setdefault(ref.name, set()).add(ref.position.line)

    diagnostics = []
    for decl in index.declarations_of(DeclarationKind.CONSTANT):
        # Only the first declaration of a name is tracked
        if index.declaration(decl.name) is not decl:
            continue
        later = [line for line in used_lines.get(decl.name, ()) if line > decl.position.line]
        if not later:
            diagnostics.append(Diagnostic(
                category=Category.UNUSED_CONSTANT,
                severity=Severity.WARNING,
                position=decl.position,
                message=f"Constant '{decl.name}' is declared but never used",
            ))
    return diagnostics
