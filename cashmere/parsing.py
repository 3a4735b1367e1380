from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator, List, Tuple


class TreeSitterDependencyError(RuntimeError):
    """Raised when the required Tree-sitter bindings are missing."""


class Dialect(str, Enum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    TSX = "tsx"


_DIALECT_BY_SUFFIX = {
    ".ts": Dialect.TYPESCRIPT,
    ".mts": Dialect.TYPESCRIPT,
    ".cts": Dialect.TYPESCRIPT,
    ".tsx": Dialect.TSX,
    ".js": Dialect.JAVASCRIPT,
    ".jsx": Dialect.JAVASCRIPT,
    ".mjs": Dialect.JAVASCRIPT,
    ".cjs": Dialect.JAVASCRIPT,
}


def dialect_for_path(path: str | Path) -> Dialect:
    """Pick the grammar for a file path; unknown suffixes parse as JavaScript."""
    suffix = Path(str(path)).suffix.lower()
    return _DIALECT_BY_SUFFIX.get(suffix, Dialect.JAVASCRIPT)


@lru_cache(maxsize=None)
def _load_language(dialect: Dialect):
    try:
        from tree_sitter import Language  # type: ignore
    except ImportError as exc:  # pragma: no cover - triggered only when deps missing
        raise TreeSitterDependencyError(
            "Missing dependency 'tree_sitter'. Install with 'pip install tree-sitter'."
        ) from exc

    if dialect is Dialect.JAVASCRIPT:
        try:
            import tree_sitter_javascript  # type: ignore
        except ImportError as exc:  # pragma: no cover - triggered only when deps missing
            raise TreeSitterDependencyError(
                "Missing dependency 'tree_sitter_javascript'. "
                "Install with 'pip install tree-sitter-javascript'."
            ) from exc
        return Language(tree_sitter_javascript.language())

    try:
        import tree_sitter_typescript  # type: ignore
    except ImportError as exc:  # pragma: no cover - triggered only when deps missing
        raise TreeSitterDependencyError(
            "Missing dependency 'tree_sitter_typescript'. "
            "Install with 'pip install tree-sitter-typescript'."
        ) from exc

    if dialect is Dialect.TSX:
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_typescript.language_typescript())


class TreeSitterParser:
    """Light wrapper around a Tree-sitter parser with lazy dependency checks.

    Languages are cached per process; the parser itself is owned by the
    instance, so separate instances can be used from separate threads.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self._parser = self._build_parser(dialect)

    @staticmethod
    def _build_parser(dialect: Dialect):
        language = _load_language(dialect)
        from tree_sitter import Parser  # type: ignore

        return Parser(language)

    def parse(self, source_bytes: bytes) -> Any:
        return self._parser.parse(source_bytes)


def node_text(source: bytes, node) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def named_children(node) -> List[Any]:
    """Named children of ``node`` without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def first_named_child(node):
    children = named_children(node)
    return children[0] if children else None


def iter_tree(node) -> Iterator[Any]:
    """Pre-order walk of every node below (and including) ``node``."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def string_value(source: bytes, node) -> str:
    """Text of a string literal node without its quotes."""
    raw = node_text(source, node)
    if len(raw) >= 2 and raw[0] in "'\"`" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def char_offset(source: bytes, byte_offset: int) -> int:
    return len(source[:byte_offset].decode("utf-8", errors="replace"))


def offset_to_line_col(text: str, offset: int) -> Tuple[int, int]:
    """Convert a character offset to a 1-based ``(line, column)`` pair."""
    line = 1
    column = 1
    for index, char in enumerate(text):
        if index >= offset:
            break
        if char == "\n":
            line += 1
            column = 1
        else:
            column += 1
    return line, column


__all__ = [
    "Dialect",
    "TreeSitterDependencyError",
    "TreeSitterParser",
    "char_offset",
    "dialect_for_path",
    "first_named_child",
    "iter_tree",
    "named_children",
    "node_text",
    "offset_to_line_col",
    "string_value",
]
