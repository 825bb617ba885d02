import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from pinelint.models import DiagnosticDetail, LintReport
from pinelint.utils.diagnostics import Category, Diagnostic, Severity, parse_category
from pinelint.utils.lexer import Token, TokenKind

# `// pinelint: ignore` or `// pinelint: ignore=HardcodedString,UnusedConstant`
_SUPPRESS = re.compile(r"//.*?\bpinelint:\s*ignore(?:\s*=\s*([\w\s,]+))?", re.IGNORECASE)

# line -> suppressed categories (None: every category)
Suppressions = Dict[int, Optional[FrozenSet[Category]]]


def build_suppressions(tokens: Iterable[Token]) -> Suppressions:
    """Collect inline suppression comments, keyed by line."""
    found: Suppressions = {}
    for tok in tokens:
        if tok.kind != TokenKind.COMMENT:
            continue
        m = _SUPPRESS.match(tok.text)
        if not m:
            continue
        if m.group(1) is None:
            found[tok.position.line] = None
            continue
        categories = set()
        for name in re.split(r"[\s,]+", m.group(1)):
            if not name:
                continue
            try:
                categories.add(parse_category(name))
            except ValueError:
                continue
        found[tok.position.line] = frozenset(categories)
    return found


def _suppressed(diag: Diagnostic, suppressions: Suppressions) -> bool:
    if diag.line not in suppressions:
        return False
    categories = suppressions[diag.line]
    return categories is None or diag.category in categories


def aggregate(
    diagnostics: Iterable[Diagnostic],
    suppressions: Optional[Suppressions] = None,
    disabled: Iterable[Category] = (),
) -> List[Diagnostic]:
    """
    Deduplicate, filter and order diagnostics.

    Order is (line, column, category, severity, message), so identical input
    always yields an identical list.
    """
    suppressions = suppressions or {}
    off = set(disabled)
    unique = {
        d for d in diagnostics
        if d.category not in off and not _suppressed(d, suppressions)
    }
    return sorted(unique, key=Diagnostic.sort_key)


@dataclass
class LintResult:
    """Ordered diagnostics for one source file."""

    path: str = "<input>"
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def passed(self) -> bool:
        # Warnings never fail the gate
        return not self.has_errors

    def render(self) -> str:
        return "\n".join(d.render(self.path) for d in self.diagnostics)

    def to_report(self) -> LintReport:
        return LintReport(
            path=self.path,
            passed=self.passed,
            error_count=self.error_count,
            warning_count=self.warning_count,
            diagnostics=[DiagnosticDetail.from_diagnostic(d) for d in self.diagnostics],
        )
