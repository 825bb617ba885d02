"""CLI entry point: ``pinelint PATH...``.

Exit codes: 0 when no Error diagnostics were reported (warnings never fail
the run), 1 when at least one Error was reported, 2 when a file or config
could not be read.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pinelint.config import LintConfig, load_config
from pinelint.services.aggregator import LintResult
from pinelint.services.dsl_lint import DSLLinter
from pinelint.services.rule_engine import get_rule_engine
from pinelint.utils.errors import ConfigError

logger = logging.getLogger("pinelint.cli")

PINE_EXTENSIONS = (".pine", ".pinescript")

EXIT_CLEAN = 0
EXIT_ERRORS = 1
EXIT_USAGE = 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)

    if args.list_rules:
        print(get_rule_engine().format_rule_catalog())
        return EXIT_CLEAN

    if not args.paths:
        parser.error("at least one PATH is required")

    try:
        config = load_config(
            args.config,
            continuation_indent=args.indent,
            tooltip_max_length=args.tooltip_max,
            control_inputs=args.control_input,
            infer_control_inputs=True if args.infer_control_inputs else None,
            disabled_rules=args.disable,
        )
    except ConfigError as e:
        print(f"pinelint: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        sources = _read_sources(args.paths)
    except OSError as e:
        print(f"pinelint: cannot read {e.filename}: {e.strerror}", file=sys.stderr)
        return EXIT_USAGE

    results = lint_sources(sources, config, jobs=args.jobs)

    if args.format == "json":
        print(json.dumps([r.to_report().model_dump(mode="json") for r in results], indent=2))
    else:
        linter = DSLLinter(config)
        for result in results:
            print(linter.format_report(result))

    return EXIT_ERRORS if any(r.has_errors for r in results) else EXIT_CLEAN


def lint_sources(
    sources: List[Tuple[str, str]],
    config: LintConfig,
    jobs: int = 1,
) -> List[LintResult]:
    """Lint (path, source) pairs, fanning out over processes when jobs > 1.

    Results come back in input order whatever the worker count.
    """
    paths = [p for p, _ in sources]
    texts = [s for _, s in sources]
    logger.info(f"[CLI] Linting {len(sources)} file(s) with {jobs} job(s)")
    if jobs > 1 and len(sources) > 1:
        with ProcessPoolExecutor(max_workers=jobs) as pool:
            return list(pool.map(_lint_one, texts, paths, repeat(config)))
    return [_lint_one(text, path, config) for text, path in zip(texts, paths)]


def _lint_one(source: str, path: str, config: LintConfig) -> LintResult:
    return DSLLinter(config).lint(source, path=path)


def _expand(paths: Sequence[str]) -> List[str]:
    expanded: List[str] = []
    for raw in paths:
        p = Path(raw)
        if raw != "-" and p.is_dir():
            expanded.extend(
                str(f) for f in sorted(p.rglob("*")) if f.suffix in PINE_EXTENSIONS and f.is_file()
            )
        else:
            expanded.append(raw)
    return expanded


def _read_sources(paths: Sequence[str]) -> List[Tuple[str, str]]:
    sources = []
    for path in _expand(paths):
        if path == "-":
            sources.append(("<stdin>", sys.stdin.read()))
            continue
        with open(path, encoding="utf-8-sig") as f:
            sources.append((path, f.read()))
    return sources


def _setup_logging(level: Optional[str]) -> None:
    level = (level or os.getenv("PINELINT_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pinelint",
        description="Check Pine Script sources against the house style conventions.",
    )
    parser.add_argument("paths", nargs="*", metavar="PATH",
                        help="Pine Script files or directories ('-' reads stdin)")
    parser.add_argument("--config", help="YAML config file (default: $PINELINT_CONFIG)")
    parser.add_argument("--format", choices=("text", "json"), default="text")
    parser.add_argument("--indent", type=int, help="continuation indent width (default 2)")
    parser.add_argument("--tooltip-max", type=int,
                        help="longest inline tooltip literal allowed (default 100)")
    parser.add_argument("--control-input", action="append", metavar="NAME",
                        help="control input for threshold isolation (repeatable)")
    parser.add_argument("--infer-control-inputs", action="store_true",
                        help="treat every input.*() assignment as a control input")
    parser.add_argument("--disable", action="append", metavar="CATEGORY",
                        help="skip a diagnostic category, e.g. HardcodedString (repeatable)")
    parser.add_argument("--jobs", type=int, default=1, help="worker processes (default 1)")
    parser.add_argument("--list-rules", action="store_true", help="print the rule catalog and exit")
    parser.add_argument("--log-level", help="logging level (default: $PINELINT_LOG_LEVEL or WARNING)")
    return parser


if __name__ == "__main__":
    sys.exit(main())
