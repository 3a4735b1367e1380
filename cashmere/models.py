"""Value types shared across the linter."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import NamedTuple


class Rule(str, Enum):
    AWAIT_STEP = "await-step"
    NESTED_STEP = "nested-step"


class Span(NamedTuple):
    """Byte range of one call expression; unique per call in a file."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class SymbolId:
    """Identity of one declared binding, keyed by its declaring identifier."""

    name: str
    start_byte: int
    end_byte: int


@dataclass(frozen=True, slots=True)
class StepCallRecord:
    span: Span
    method_name: str


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single finding reported against a source file."""

    file: str
    line: int
    column: int
    message: str
    rule: str

    def format(self) -> str:
        return f"{self.file}:{self.line}:{self.column} - {self.message} [{self.rule}]"

    def to_dict(self) -> dict:
        return asdict(self)


__all__ = [
    "Diagnostic",
    "Rule",
    "Span",
    "StepCallRecord",
    "SymbolId",
]
