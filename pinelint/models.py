from pydantic import BaseModel, Field
from typing import Any, Optional, Dict, List

from pinelint.utils.diagnostics import Category, Diagnostic, Severity


# ─── MCP Protocol Models ─────────────────────────────────────────────

class MCPRequest(BaseModel):
    request_id: str
    action: str
    payload: Dict[str, Any]
    context: Optional[Dict[str, Any]] = None


class MCPResponse(BaseModel):
    request_id: str
    type: str  # "success" | "error"
    data: Any
    error: Optional[Dict[str, Any]] = None


# ─── Lint Request / Report ───────────────────────────────────────────

class LintRequest(BaseModel):
    source: str
    path: str = "<input>"
    config: Dict[str, Any] = Field(default_factory=dict)


class DiagnosticDetail(BaseModel):
    category: Category
    severity: Severity
    line: int
    column: int
    message: str
    tag: Optional[str] = None

    @classmethod
    def from_diagnostic(cls, diag: Diagnostic) -> "DiagnosticDetail":
        return cls(
            category=diag.category,
            severity=diag.severity,
            line=diag.line,
            column=diag.column,
            message=diag.message,
            tag=diag.tag,
        )


class LintReport(BaseModel):
    path: str
    passed: bool
    error_count: int = 0
    warning_count: int = 0
    diagnostics: List[DiagnosticDetail] = Field(default_factory=list)


class RuleInfo(BaseModel):
    id: str
    categories: List[Category]
    summary: str
