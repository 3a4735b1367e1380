"""Static configuration for the workflow linter."""

from __future__ import annotations

import os
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Set

# Import specifier and export that mark a class as a workflow entry point.
WORKFLOWS_MODULE = "cloudflare:workers"
WORKFLOW_ENTRYPOINT = "WorkflowEntrypoint"
WORKFLOW_STEP_TYPE = "WorkflowStep"

STEP_METHODS: FrozenSet[str] = frozenset({"do", "sleep", "waitForEvent", "sleepUntil"})
STEP_CALLBACK_METHOD = "do"

PROMISE_AGGREGATOR = "Promise"
PROMISE_COMBINATORS: FrozenSet[str] = frozenset({"all", "race", "allSettled", "any"})

SUPPORTED_EXTENSIONS: FrozenSet[str] = frozenset(
    {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".mts", ".cts"}
)

DEFAULT_IGNORED_DIRS: FrozenSet[str] = frozenset(
    {"node_modules", ".git", "dist", "build", "target", ".next", "coverage"}
)

IGNORE_DIRS_ENV = "CASHMERE_IGNORE_DIRS"


def resolve_ignored_dirs(explicit: Optional[Iterable[str]] = None) -> Set[str]:
    """Return the directory names to skip while walking a tree.

    Explicit values win, then ``CASHMERE_IGNORE_DIRS`` (comma separated),
    then the built-in defaults.
    """
    if explicit is not None:
        return {name for name in explicit if name}

    env_value = os.getenv(IGNORE_DIRS_ENV)
    if env_value:
        return {part.strip() for part in env_value.split(",") if part.strip()}

    return set(DEFAULT_IGNORED_DIRS)


def is_supported_path(path: str | Path) -> bool:
    return Path(str(path)).suffix.lower() in SUPPORTED_EXTENSIONS


__all__ = [
    "DEFAULT_IGNORED_DIRS",
    "IGNORE_DIRS_ENV",
    "PROMISE_AGGREGATOR",
    "PROMISE_COMBINATORS",
    "STEP_CALLBACK_METHOD",
    "STEP_METHODS",
    "SUPPORTED_EXTENSIONS",
    "WORKFLOWS_MODULE",
    "WORKFLOW_ENTRYPOINT",
    "WORKFLOW_STEP_TYPE",
    "is_supported_path",
    "resolve_ignored_dirs",
]
