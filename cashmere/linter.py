from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Sequence

from .classifier import classify_step_symbols
from .models import Diagnostic
from .parsing import TreeSitterParser, dialect_for_path
from .semantic import SemanticModel
from .walker import StepLinter

logger = logging.getLogger(__name__)


def lint(source_text: str, file_path: str) -> List[Diagnostic]:
    """Lint one JavaScript/TypeScript source text.

    ``file_path`` only picks the grammar and is copied into each diagnostic;
    nothing is read from disk. Syntax errors never raise: the recovered tree
    is analyzed as far as it goes.
    """
    dialect = dialect_for_path(file_path)
    source = source_text.encode("utf-8", errors="replace")
    tree = TreeSitterParser(dialect).parse(source)
    root = tree.root_node
    if root.has_error:
        logger.debug("Parsed %s with syntax errors; analyzing recovered tree", file_path)

    model = SemanticModel(root, source)
    step_symbols = classify_step_symbols(root, source, model)
    if not step_symbols:
        logger.debug("No workflow step bindings found in %s", file_path)

    linter = StepLinter(source_text, source, file_path, model, step_symbols)
    return linter.lint_program(root)


def lint_file(path: Path) -> List[Diagnostic]:
    source_text = Path(path).read_text(encoding="utf-8")
    return lint(source_text, str(path))


def diagnostics_to_json(diagnostics: Sequence[Diagnostic], **extra) -> str:
    data = {"diagnostics": [diagnostic.to_dict() for diagnostic in diagnostics], **extra}
    return json.dumps(data, ensure_ascii=False, indent=2)


__all__ = ["diagnostics_to_json", "lint", "lint_file"]
