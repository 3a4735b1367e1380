from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import IGNORE_DIRS_ENV
from .linter import diagnostics_to_json
from .parsing import TreeSitterDependencyError
from .runner import LintReport, WorkflowLintRunner


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cashmere",
        description="Lint Cloudflare Workflows TypeScript/JavaScript code for unawaited and nested steps.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Directory or file to lint (defaults to current working directory).",
    )
    parser.add_argument(
        "--ignore",
        nargs="*",
        default=None,
        help=(
            "Directory names to skip during traversal. Defaults to environment variable "
            f"{IGNORE_DIRS_ENV} or the built-in list (node_modules, .git, dist, ...)."
        ),
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging output")
    return parser.parse_args(argv)


def _print_text(report: LintReport) -> None:
    for diagnostic in report.diagnostics:
        print(diagnostic.format())

    print()
    if report.has_issues:
        print(
            f"✗ Found {len(report.diagnostics)} issue(s) in {report.files_checked} file(s) checked"
        )
    else:
        print(f"✓ No issues found ({report.files_checked} files checked)")


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        report = WorkflowLintRunner(root=args.path, ignored_dirs=args.ignore).run()
    except TreeSitterDependencyError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.format == "json":
        print(diagnostics_to_json(report.diagnostics, files_checked=report.files_checked))
    else:
        _print_text(report)

    return 1 if report.has_issues else 0


def main() -> None:
    raise SystemExit(run())


__all__ = ["parse_args", "run", "main"]
