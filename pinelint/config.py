"""
Lint configuration.

LintConfig carries every tunable the checker reads. Default builtin tables
come from knowledge_structured/builtins.yaml; a project config file (YAML)
and keyword overrides are layered on top by load_config().
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from pinelint.utils.diagnostics import Category, parse_category
from pinelint.utils.errors import ConfigError

logger = logging.getLogger("pinelint.config")

_KNOWLEDGE_DIR = Path(__file__).parent / "services" / "knowledge_structured"

# YAML file cache: path -> parsed dict
_yaml_cache: dict = {}


def _load_yaml(path: Path) -> dict:
    """Load and cache a YAML mapping. Raises ConfigError if unreadable."""
    key = str(path)
    if key in _yaml_cache:
        return _yaml_cache[key]
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"[Config] Failed to load {path}: {e}")
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    _yaml_cache[key] = data
    return data


def _builtin(key: str) -> List[str]:
    return list(_load_yaml(_KNOWLEDGE_DIR / "builtins.yaml").get(key, []))


class LintConfig(BaseModel):
    continuation_indent: int = Field(default=2, ge=1)
    tab_width: int = Field(default=1, ge=1)
    tooltip_max_length: int = Field(default=100, ge=0)
    color_constructors: List[str] = Field(default_factory=lambda: _builtin("color_constructors"))
    output_calls: List[str] = Field(default_factory=lambda: _builtin("output_calls"))
    control_inputs: List[str] = Field(default_factory=list)
    infer_control_inputs: bool = False
    flag_color_literals: bool = True
    disabled_rules: List[Category] = Field(default_factory=list)

    @field_validator("disabled_rules", mode="before")
    @classmethod
    def _parse_categories(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [parse_category(v) if isinstance(v, str) else v for v in value]
        return value


def load_config(path: Optional[str] = None, **overrides: Any) -> LintConfig:
    """
    Build a LintConfig from an optional YAML file plus keyword overrides.

    When no path is given, PINELINT_CONFIG (environment or .env) is used.
    Overrides whose value is None are ignored so CLI flags can pass through.
    """
    load_dotenv()
    path = path or os.getenv("PINELINT_CONFIG")

    data: Dict[str, Any] = {}
    if path:
        data.update(_load_yaml(Path(path)))
        logger.info(f"[Config] Loaded {path}")
    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return LintConfig(**data)
    except (ValidationError, ValueError) as e:
        raise ConfigError(f"Invalid lint configuration: {e}") from e
