"""Per-scope step promise bookkeeping and the step callback context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from .models import Span, StepCallRecord


@dataclass(frozen=True, slots=True)
class CallbackContext:
    """Enclosing step call while walking inside its callback argument."""

    method_name: str


@dataclass
class PromiseStateTracker:
    """Step promise bookkeeping for a single function-like scope.

    Records which step calls were created, which variables hold them and which
    were awaited. ``drain`` is called once when the scope closes.
    """

    var_to_span: Dict[str, Span] = field(default_factory=dict)
    span_to_name: Dict[Span, str] = field(default_factory=dict)
    awaited_spans: Set[Span] = field(default_factory=set)
    unassigned_unawaited: List[StepCallRecord] = field(default_factory=list)

    def record_assigned(self, var_name: str, span: Span, method_name: str) -> None:
        self.var_to_span[var_name] = span
        self.span_to_name[span] = method_name

    def record_unassigned_unawaited(self, span: Span, method_name: str) -> None:
        self.unassigned_unawaited.append(StepCallRecord(span, method_name))

    def mark_awaited_by_span(self, span: Span) -> None:
        self.awaited_spans.add(span)

    def mark_awaited_by_var(self, var_name: str) -> None:
        span = self.var_to_span.get(var_name)
        if span is not None:
            self.awaited_spans.add(span)

    def drain(self) -> List[StepCallRecord]:
        """Step calls of this scope that were never awaited, each reported once."""
        pending: List[StepCallRecord] = []
        seen: Set[Span] = set()

        for var_name, span in self.var_to_span.items():
            if span in self.awaited_spans or span in seen:
                continue
            seen.add(span)
            method_name = self.span_to_name.get(span, f"step (var: {var_name})")
            pending.append(StepCallRecord(span, method_name))

        for record in self.unassigned_unawaited:
            if record.span in self.awaited_spans or record.span in seen:
                continue
            seen.add(record.span)
            pending.append(record)

        return pending


__all__ = ["CallbackContext", "PromiseStateTracker"]
