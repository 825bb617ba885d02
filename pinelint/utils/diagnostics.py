"""
Diagnostic value types shared by every pinelint pass.

A Diagnostic is a pure value: rules create them, the aggregator orders them,
callers render them. Nothing mutates one after creation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pinelint.utils.lexer import SourcePosition


class Severity(str, Enum):
    ERROR = "Error"
    WARNING = "Warning"


class Category(str, Enum):
    HARDCODED_STRING = "HardcodedString"
    HARDCODED_COLOR = "HardcodedColor"
    BAD_INDENTATION = "BadIndentation"
    OPERATOR_PLACEMENT = "OperatorPlacement"
    FORWARD_REFERENCE = "ForwardReference"
    MIXED_THRESHOLD_USAGE = "MixedThresholdUsage"
    UNUSED_CONSTANT = "UnusedConstant"


# Declaration order doubles as the display tie-breaker
CATEGORY_ORDER = {c: i for i, c in enumerate(Category)}
SEVERITY_ORDER = {Severity.ERROR: 0, Severity.WARNING: 1}


@dataclass(frozen=True)
class Diagnostic:
    category: Category
    severity: Severity
    position: SourcePosition
    message: str
    tag: Optional[str] = None

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column

    def sort_key(self) -> tuple:
        return (
            self.position.line,
            self.position.column,
            CATEGORY_ORDER[self.category],
            SEVERITY_ORDER[self.severity],
            self.message,
        )

    def render(self, path: str = "<input>") -> str:
        """`path:line:column: severity category - message`"""
        return (
            f"{path}:{self.position.line}:{self.position.column}: "
            f"{self.severity.value.lower()} {self.category.value} - {self.message}"
        )


def parse_category(name: str) -> Category:
    """Resolve a category from its display name, case-insensitively."""
    wanted = name.strip().lower()
    for category in Category:
        if category.value.lower() == wanted or category.name.lower() == wanted:
            return category
    raise ValueError(f"Unknown diagnostic category: {name!r}")
