from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from .config import is_supported_path, resolve_ignored_dirs
from .linter import lint_file
from .models import Diagnostic

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LintReport:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    files_checked: int = 0

    @property
    def has_issues(self) -> bool:
        return bool(self.diagnostics)


class WorkflowLintRunner:
    """Walks a file or directory tree and lints every supported source file."""

    def __init__(self, root: Path, ignored_dirs: Optional[Iterable[str]] = None) -> None:
        self.root = Path(root)
        self.ignored_dirs = resolve_ignored_dirs(ignored_dirs)

    def run(self) -> LintReport:
        report = LintReport()
        for path in self.iter_source_files():
            try:
                diagnostics = lint_file(path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping %s: %s", path, exc)
                continue
            logger.debug("Linted %s (%d issue(s))", path, len(diagnostics))
            report.diagnostics.extend(diagnostics)
            report.files_checked += 1
        return report

    def iter_source_files(self) -> Iterator[Path]:
        if self.root.is_file():
            if is_supported_path(self.root):
                yield self.root
            return

        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in self.ignored_dirs)
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if is_supported_path(path):
                    yield path


__all__ = ["LintReport", "WorkflowLintRunner"]
