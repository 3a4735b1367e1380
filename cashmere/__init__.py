from __future__ import annotations

from .classifier import StepIdentitySet, classify_step_symbols
from .documents import DocumentStore
from .linter import diagnostics_to_json, lint, lint_file
from .models import Diagnostic, Rule
from .parsing import TreeSitterDependencyError
from .runner import LintReport, WorkflowLintRunner

__all__ = [
    "Diagnostic",
    "DocumentStore",
    "LintReport",
    "Rule",
    "StepIdentitySet",
    "TreeSitterDependencyError",
    "WorkflowLintRunner",
    "classify_step_symbols",
    "diagnostics_to_json",
    "lint",
    "lint_file",
]
