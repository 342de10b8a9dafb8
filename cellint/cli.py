#!/usr/bin/env python
"""
Command-line interface.

    cellint lint notebook.ipynb [--min-severity warning] [--engine ruff] [--combined] [--json]
    cellint rules
    cellint serve [--host 0.0.0.0] [--port 8000]

``lint`` exits with status 1 when any error-severity issue is reported.
"""

import argparse
import asyncio
import json
import logging
import sys

from ._version import __description__, __version__
from .config import ENGINES, SEVERITIES, config
from .rules import RULES_BY_ID
from .services import result_aggregator
from .services.engine_factory import create_combined_linter, create_engine
from .services.notebook_loader import NotebookLoadError, load_cells
from .services.ruff_engine import RuffEngine, RuffEngineError

logger = logging.getLogger(__name__)


def format_error(path, error) -> str:
    column = f":{error.column}" if error.column is not None else ""
    severity = result_aggregator.severity_value(error.severity)
    return (
        f"{path}:{error.line}{column}: [cell {error.cell_index}, line {error.cell_line}] "
        f"{severity} {error.rule_id or result_aggregator.UNKNOWN_RULE}: {error.message}"
    )


def run_lint(cells, engine_name=None, combined=False):
    if combined:
        return create_combined_linter(config).lint_notebook(cells)

    engine = create_engine(config, engine=engine_name)
    if isinstance(engine, RuffEngine):
        return asyncio.run(engine.lint_notebook(cells))
    return engine.lint_notebook(cells)


def cmd_lint(args) -> int:
    try:
        cells = load_cells(args.path)
    except NotebookLoadError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        errors = run_lint(cells, args.engine, args.combined)
    except RuffEngineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    errors = result_aggregator.filter_by_severity(errors, args.min_severity or config.get_min_severity())

    if args.json:
        print(json.dumps(
            {
                "path": str(args.path),
                "errors": [error.to_record() for error in errors],
                "stats": result_aggregator.get_stats(errors).model_dump(),
                "summary": result_aggregator.summarize(errors),
            },
            indent=2,
        ))
    else:
        for error in errors:
            print(format_error(args.path, error))
        print(result_aggregator.summarize(errors))

    has_errors = any(result_aggregator.severity_level(error.severity) >= result_aggregator.SEVERITY_ORDER["error"]
                     for error in errors)
    return 1 if has_errors else 0


def cmd_rules(args) -> int:
    for rule_id, rule_class in RULES_BY_ID.items():
        state = "on " if config.is_rule_enabled(rule_id) else "off"
        print(f"{state} {rule_id:<22} {rule_class.description}")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("cellint.main:app", host=args.host, port=args.port, log_level=config.get_log_level().lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cellint",
        description=__description__
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd", required=True)

    pl = sub.add_parser("lint", help="Lint a .ipynb notebook or a '# %%' script")
    pl.add_argument("path", help="Path to notebook.ipynb or script.py")
    pl.add_argument("--min-severity", choices=SEVERITIES, help="Lowest severity to report")
    pl.add_argument("--engine", choices=ENGINES, help="Lint engine (overrides configuration)")
    pl.add_argument("--combined", action="store_true", help="Analyse the notebook as one file")
    pl.add_argument("--json", action="store_true", help="Print results as JSON")
    pl.set_defaults(func=cmd_lint)

    pr = sub.add_parser("rules", help="List the built-in rules")
    pr.set_defaults(func=cmd_rules)

    ps = sub.add_parser("serve", help="Run the HTTP API")
    ps.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    ps.add_argument("--port", type=int, default=8000, help="Port to listen on")
    ps.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=config.get_log_level(), format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
