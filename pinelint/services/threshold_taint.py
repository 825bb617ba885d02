"""
Threshold isolation via taint propagation

Each control input (an independently adjustable threshold) seeds its own
taint label. Labels flow through every assignment, reassignment and function
body until a fixpoint. An identifier that reaches a visual or alert call and
carries more than one label couples controls that were meant to be
independent, e.g. `base = max(threshold, triangleThreshold)` feeding both a
bar color and a triangle size.

Every such identifier is reported. When one of its direct sources already
carries the full label set, the message names that source as the place
where the controls were first mixed.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Set

from pinelint.utils.diagnostics import Category, Diagnostic, Severity
from pinelint.utils.lexer import TokenKind
from pinelint.utils.pine_ast import Assignment, DeclarationIndex

logger = logging.getLogger("pinelint.threshold_taint")

_EMPTY: FrozenSet[str] = frozenset()


def infer_control_inputs(index: DeclarationIndex) -> List[str]:
    """Variables assigned straight from an `input.*(...)` call."""
    names: List[str] = []
    for a in index.assignments:
        if a.operator != "=" or a.rhs_end - a.rhs_start < 2:
            continue
        callee = index.code[a.rhs_start]
        if callee.kind != TokenKind.IDENTIFIER or not index.code[a.rhs_start + 1].is_punct("("):
            continue
        if (callee.text == "input" or callee.text.startswith("input.")) and a.target not in names:
            names.append(a.target)
    return names


def propagate_labels(assignments: Iterable[Assignment], controls: Iterable[str]) -> Dict[str, FrozenSet[str]]:
    """Union each target's source labels until nothing changes."""
    assignments = list(assignments)
    labels: Dict[str, FrozenSet[str]] = {c: frozenset({c}) for c in controls}
    changed = True
    while changed:
        changed = False
        for a in assignments:
            incoming = _EMPTY.union(*(labels.get(s, _EMPTY) for s in a.sources))
            current = labels.get(a.target, _EMPTY)
            merged = current | incoming
            if merged != current:
                labels[a.target] = merged
                changed = True
    return labels


def output_affecting(index: DeclarationIndex, output_calls: Iterable[str]) -> Set[str]:
    """Names referenced by output calls, closed backwards over assignments."""
    wanted = set(output_calls)
    names: Set[str] = set()
    for call in index.calls:
        if call.name in wanted:
            names.update(index.reference_names(call.open_index + 1, call.close_index))

    changed = True
    while changed:
        changed = False
        for a in index.assignments:
            if a.target in names:
                missing = set(a.sources) - names
                if missing:
                    names |= missing
                    changed = True
    return names


def check_threshold_isolation(ctx) -> List[Diagnostic]:
    index = ctx.index
    controls = list(dict.fromkeys(ctx.config.control_inputs))
    if ctx.config.infer_control_inputs:
        for name in infer_control_inputs(index):
            if name not in controls:
                controls.append(name)
    if len(controls) < 2:
        return []

    labels = propagate_labels(index.assignments, controls)
    outputs = output_affecting(index, ctx.config.output_calls)
    order = {c: i for i, c in enumerate(controls)}

    sources_of: Dict[str, Set[str]] = {}
    first_assignment: Dict[str, Assignment] = {}
    for a in index.assignments:
        sources_of.setdefault(a.target, set()).update(s for s in a.sources if s != a.target)
        first_assignment.setdefault(a.target, a)

    diagnostics = []
    for name, a in first_assignment.items():
        mixed = labels.get(name, _EMPTY)
        if name in order or name not in outputs or len(mixed) < 2:
            continue
        inherited = sorted(s for s in sources_of[name] if labels.get(s, _EMPTY) >= mixed)
        controls_text = ", ".join(sorted(mixed, key=order.__getitem__))
        origin = f" (mixed upstream in '{inherited[0]}')" if inherited else ""
        logger.debug(f"[Taint] {name} couples {controls_text}{origin}")
        diagnostics.append(Diagnostic(
            category=Category.MIXED_THRESHOLD_USAGE,
            severity=Severity.ERROR,
            position=a.position,
            message=(
                f"'{name}' combines independent control inputs ({controls_text}){origin} "
                "and feeds a visual or alert output; keep each subsystem on its own threshold"
            ),
        ))
    return diagnostics
