"""
Checker Controller: serves lint requests for the router.

Handles: lint (source text → LintReport), rules (registered rule catalog)
Does NOT handle: file reads; callers send source text directly.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from pinelint.config import load_config
from pinelint.models import LintRequest, MCPRequest, RuleInfo
from pinelint.services.dsl_lint import DSLLinter, get_dsl_linter
from pinelint.services.rule_engine import get_rule_engine
from pinelint.utils.errors import ConfigError, error_response

logger = logging.getLogger("pinelint.checker")


class CheckerController:
    """Runs the linter on request payloads."""

    def __init__(self) -> None:
        self.engine = get_rule_engine()

    async def lint(self, req: MCPRequest) -> Dict[str, Any]:
        """
        Lint `payload.source` and return the report.

        Payload: {"source": str, "path"?: str, "config"?: {LintConfig fields}}
        """
        try:
            lint_req = LintRequest(**req.payload)
        except ValidationError as e:
            return error_response(req.request_id, "INVALID_PAYLOAD", str(e))

        if lint_req.config:
            try:
                linter = DSLLinter(load_config(**lint_req.config), self.engine)
            except ConfigError as e:
                return error_response(req.request_id, "INVALID_PAYLOAD", str(e))
        else:
            linter = get_dsl_linter()

        result = linter.lint(lint_req.source, path=lint_req.path)
        logger.info(
            f"Lint {req.request_id}: {lint_req.path} passed={result.passed} "
            f"({len(result.diagnostics)} diagnostics)"
        )
        return {
            "request_id": req.request_id,
            "type": "success",
            "data": result.to_report().model_dump(mode="json"),
        }

    async def list_rules(self, req: MCPRequest) -> Dict[str, Any]:
        rules = [
            RuleInfo(id=r.id, categories=list(r.categories), summary=r.summary).model_dump(mode="json")
            for r in self.engine.rules
        ]
        return {
            "request_id": req.request_id,
            "type": "success",
            "data": {"rules": rules},
        }


# ─── Router entry points ──────────────────────────────────────────────

_controller_instance: CheckerController | None = None


def _get_controller() -> CheckerController:
    global _controller_instance
    if _controller_instance is None:
        _controller_instance = CheckerController()
    return _controller_instance


async def lint_source(req: MCPRequest) -> Dict[str, Any]:
    """Entry point called by router. Delegates to CheckerController."""
    return await _get_controller().lint(req)


async def list_rules(req: MCPRequest) -> Dict[str, Any]:
    return await _get_controller().list_rules(req)
