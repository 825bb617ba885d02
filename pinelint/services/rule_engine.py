from typing import Callable, List, Iterable, Tuple
from dataclasses import dataclass

from pinelint.config import LintConfig
from pinelint.utils.diagnostics import Category, Diagnostic
from pinelint.utils.lexer import Token
from pinelint.utils.pine_ast import DeclarationIndex


@dataclass(frozen=True)
class LintContext:
    """Shared read-only inputs handed to every rule."""
    source: str
    lines: Tuple[str, ...]
    tokens: Tuple[Token, ...]
    index: DeclarationIndex
    config: LintConfig


@dataclass(frozen=True)
class LintRule:
    id: str
    categories: Tuple[Category, ...]
    summary: str
    check: Callable[[LintContext], List[Diagnostic]]


class RuleEngine:
    """Registry of independent, stateless style rules."""

    def __init__(self):
        self.rules: List[LintRule] = []

    def register(self, rule: LintRule) -> LintRule:
        if any(r.id == rule.id for r in self.rules):
            raise ValueError(f"Rule already registered: {rule.id}")
        self.rules.append(rule)
        return rule

    def active_rules(self, disabled: Iterable[Category] = ()) -> List[LintRule]:
        """Rules with at least one category left enabled."""
        off = set(disabled)
        return [r for r in self.rules if not set(r.categories) <= off]

    def format_rule_catalog(self, rules: List[LintRule] = None) -> str:
        """Format the registered rules as a plain-text listing."""
        rules = self.rules if rules is None else rules
        if not rules:
            return ""

        lines = []
        for rule in rules:
            categories = ", ".join(c.value for c in rule.categories)
            lines.append(f"{rule.id} [{categories}]")
            lines.append(f"    {rule.summary}")
        return "\n".join(lines)


def _build_default_engine() -> RuleEngine:
    from pinelint.services.declaration_rules import check_forward_references, check_unused_constants
    from pinelint.services.hardcoded_values import check_hardcoded_colors, check_hardcoded_strings
    from pinelint.services.indentation import check_continuation_lines
    from pinelint.services.threshold_taint import check_threshold_isolation

    engine = RuleEngine()
    engine.register(LintRule(
        id="continuation-indent",
        categories=(Category.BAD_INDENTATION, Category.OPERATOR_PLACEMENT),
        summary="Continuation lines are indented by exactly two spaces and led by their operator.",
        check=check_continuation_lines,
    ))
    engine.register(LintRule(
        id="hardcoded-string",
        categories=(Category.HARDCODED_STRING,),
        summary="String literals live in UPPER_SNAKE_CASE constants; short inline tooltips are allowed.",
        check=check_hardcoded_strings,
    ))
    engine.register(LintRule(
        id="hardcoded-color",
        categories=(Category.HARDCODED_COLOR,),
        summary="Colors are built once in constants; color constructors are never nested.",
        check=check_hardcoded_colors,
    ))
    engine.register(LintRule(
        id="forward-reference",
        categories=(Category.FORWARD_REFERENCE,),
        summary="Functions are defined before their first use.",
        check=check_forward_references,
    ))
    engine.register(LintRule(
        id="unused-constant",
        categories=(Category.UNUSED_CONSTANT,),
        summary="Every declared constant is referenced somewhere else in the script.",
        check=check_unused_constants,
    ))
    engine.register(LintRule(
        id="threshold-isolation",
        categories=(Category.MIXED_THRESHOLD_USAGE,),
        summary="Values feeding plots and alerts depend on at most one control input.",
        check=check_threshold_isolation,
    ))
    return engine


_engine = None

def get_rule_engine() -> RuleEngine:
    global _engine
    if _engine is None:
        _engine = _build_default_engine()
    return _engine
