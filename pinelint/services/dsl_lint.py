"""
dsl_lint.py - Deterministic Pine Script style linter

Runs every registered style rule over one source snapshot:

  source text → tokenize → DeclarationIndex → rules → aggregate → LintResult

Zero side effects, no shared state between runs: the same source always
produces the same ordered diagnostics.

Usage:
    from pinelint.services.dsl_lint import DSLLinter

    linter = DSLLinter()
    result = linter.lint(pine_source, path="chart.pine")
    # → LintResult(path, diagnostics=[Diagnostic(category, severity, position, message)])
"""

from __future__ import annotations

import logging
from typing import Optional

from pinelint.config import LintConfig
from pinelint.services.aggregator import LintResult, aggregate, build_suppressions
from pinelint.services.rule_engine import LintContext, RuleEngine, get_rule_engine
from pinelint.utils.lexer import tokenize
from pinelint.utils.pine_ast import DeclarationIndex

logger = logging.getLogger("pinelint.dsl_lint")


class DSLLinter:
    """
    Pine Script style lint runner.

    Each rule runs in isolation: a rule that fails on an unexpected construct
    is logged and contributes nothing, the others still report.
    """

    def __init__(self, config: Optional[LintConfig] = None, engine: Optional[RuleEngine] = None):
        self.config = config or LintConfig()
        self.engine = engine or get_rule_engine()

    def lint(self, source: str, path: str = "<input>") -> LintResult:
        """
        Run all enabled rules against the provided Pine Script source.

        Args:
            source: full script text
            path:   display path used when rendering diagnostics

        Returns:
            LintResult with diagnostics ordered by (line, column, category)
        """
        tokens = tokenize(source, self.config.tab_width)
        index = DeclarationIndex(tokens)
        ctx = LintContext(
            source=source,
            lines=tuple(source.split("\n")),
            tokens=tuple(tokens),
            index=index,
            config=self.config,
        )
        logger.debug(f"[DSLLint] {path}: {index.to_dict()}")

        found = []
        for rule in self.engine.active_rules(self.config.disabled_rules):
            try:
                found.extend(rule.check(ctx))
            except Exception as exc:
                logger.warning(f"[DSLLint] Rule {rule.id} raised on {path}: {exc}")

        diagnostics = aggregate(
            found,
            suppressions=build_suppressions(tokens),
            disabled=self.config.disabled_rules,
        )
        result = LintResult(path=path, diagnostics=diagnostics)

        if result.diagnostics:
            logger.info(
                f"[DSLLint] {path}: {result.error_count} error(s), "
                f"{result.warning_count} warning(s)"
            )
        else:
            logger.info(f"[DSLLint] {path}: PASSED, no diagnostics.")
        return result

    def format_report(self, result: LintResult) -> str:
        """
        One line per diagnostic plus a summary line, e.g.:
            chart.pine:5:1: error ForwardReference - Function 'f' is used before ...
            chart.pine: 1 error(s), 0 warning(s)
        """
        lines = [d.render(result.path) for d in result.diagnostics]
        lines.append(
            f"{result.path}: {result.error_count} error(s), {result.warning_count} warning(s)"
        )
        return "\n".join(lines)


def lint_file(path: str, config: Optional[LintConfig] = None) -> LintResult:
    """Read a UTF-8 source file and lint it. I/O errors propagate to the caller."""
    with open(path, encoding="utf-8-sig") as f:
        source = f.read()
    return DSLLinter(config).lint(source, path=path)


# ── Module-level singleton ────────────────────────────────────────────────────

_linter_instance: DSLLinter | None = None


def get_dsl_linter() -> DSLLinter:
    global _linter_instance
    if _linter_instance is None:
        _linter_instance = DSLLinter()
    return _linter_instance
