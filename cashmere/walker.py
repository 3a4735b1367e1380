"""Context-sensitive walk that turns step usage into diagnostics.

The walk threads a single ``is_awaited`` flag through expressions. It is true
only when the expression's value is the direct operand of ``await`` (through
parentheses, conditional branches and the last element of a sequence), or an
element of the array handed to an awaited ``Promise`` combinator.

Two stacks are owned by the walker. Promise trackers are pushed on entering a
function-like body and drained into ``await-step`` diagnostics when it closes.
Callback contexts are pushed only around the callback of a ``step.do`` call
and drive the ``nested-step`` rule.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

from .classifier import StepIdentitySet
from .config import (
    PROMISE_AGGREGATOR,
    PROMISE_COMBINATORS,
    STEP_CALLBACK_METHOD,
    STEP_METHODS,
)
from .models import Diagnostic, Rule, Span
from .parsing import char_offset, first_named_child, named_children, node_text, offset_to_line_col
from .semantic import CLASS_TYPES, FUNCTION_TYPES, SemanticModel
from .tracker import CallbackContext, PromiseStateTracker

logger = logging.getLogger(__name__)

AWAIT_STEP_MESSAGE = (
    "`{name}` must be awaited. Not awaiting creates a dangling Promise that can cause "
    "race conditions and swallowed errors."
)
NESTED_STEP_MESSAGE = (
    "`{inner}` is nested inside `{outer}`. Nested steps are discouraged as they can cause "
    "unexpected behavior during workflow replay."
)

STATEMENT_TYPES = frozenset(
    {
        "expression_statement",
        "variable_declaration",
        "lexical_declaration",
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "statement_block",
        "if_statement",
        "else_clause",
        "while_statement",
        "do_statement",
        "for_statement",
        "for_in_statement",
        "return_statement",
        "throw_statement",
        "try_statement",
        "switch_statement",
        "export_statement",
        "labeled_statement",
        "with_statement",
        "import_statement",
        "empty_statement",
        "break_statement",
        "continue_statement",
        "debugger_statement",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
        "ambient_declaration",
        "internal_module",
        "module",
        "function_signature",
        "import_alias",
    }
)

# Declarations without runtime expressions.
_INERT_STATEMENTS = frozenset(
    {
        "import_statement",
        "empty_statement",
        "break_statement",
        "continue_statement",
        "debugger_statement",
        "interface_declaration",
        "type_alias_declaration",
        "function_signature",
        "import_alias",
    }
)

# Wrappers whose value is the value of the wrapped expression.
_TRANSPARENT_EXPRESSIONS = frozenset(
    {
        "parenthesized_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
        "type_assertion",
    }
)

_FIELD_TYPES = frozenset({"field_definition", "public_field_definition"})


class StepCall(NamedTuple):
    name: str
    method: str


def step_method_name(source: bytes, callee) -> str:
    """Reporting name of a step call, e.g. ``step.do``."""
    prop = callee.child_by_field_name("property")
    method = node_text(source, prop) if prop is not None else STEP_CALLBACK_METHOD
    qualifier = callee.child_by_field_name("object")
    if qualifier is not None and qualifier.type == "identifier":
        return f"{node_text(source, qualifier)}.{method}"
    return f"step.{method}"


def span_of(node) -> Span:
    return Span(node.start_byte, node.end_byte)


def _sequence_elements(node) -> List:
    elements = []
    for child in named_children(node):
        if child.type == "sequence_expression":
            elements.extend(_sequence_elements(child))
        else:
            elements.append(child)
    return elements


class StepLinter:
    """Walks one file and collects ``await-step`` and ``nested-step`` findings."""

    def __init__(
        self,
        source_text: str,
        source: bytes,
        file_path: str,
        model: SemanticModel,
        step_symbols: StepIdentitySet,
    ) -> None:
        self._text = source_text
        self._source = source
        self._file_path = file_path
        self._model = model
        self._step_symbols = step_symbols
        self._trackers: List[PromiseStateTracker] = []
        self._callbacks: List[CallbackContext] = []
        self.diagnostics: List[Diagnostic] = []

    # -- reporting -----------------------------------------------------------

    def _report(self, start_byte: int, message: str, rule: Rule) -> None:
        line, column = offset_to_line_col(self._text, char_offset(self._source, start_byte))
        self.diagnostics.append(
            Diagnostic(
                file=self._file_path,
                line=line,
                column=column,
                message=message,
                rule=rule.value,
            )
        )

    def _push_tracker(self) -> None:
        self._trackers.append(PromiseStateTracker())

    def _pop_tracker_and_report(self) -> None:
        tracker = self._trackers.pop()
        pending = tracker.drain()
        if pending:
            logger.debug("Scope closed with %d unawaited step call(s)", len(pending))
        for record in pending:
            self._report(
                record.span.start,
                AWAIT_STEP_MESSAGE.format(name=record.method_name),
                Rule.AWAIT_STEP,
            )

    @property
    def _tracker(self) -> PromiseStateTracker:
        return self._trackers[-1]

    # -- statements ----------------------------------------------------------

    def lint_program(self, root) -> List[Diagnostic]:
        self._push_tracker()
        for statement in named_children(root):
            self._lint_node(statement)
        self._pop_tracker_and_report()
        return self.diagnostics

    def _lint_node(self, node) -> None:
        if node.type in STATEMENT_TYPES:
            self.lint_statement(node)
        else:
            self.lint_expression(node, False)

    def lint_statement(self, node) -> None:
        node_type = node.type

        if node_type == "expression_statement":
            for child in named_children(node):
                self.lint_expression(child, False)
        elif node_type in ("variable_declaration", "lexical_declaration"):
            self._lint_variable_declaration(node)
        elif node_type in FUNCTION_TYPES:
            self._lint_function(node)
        elif node_type in CLASS_TYPES:
            self._lint_class(node)
        elif node_type == "if_statement":
            condition = node.child_by_field_name("condition")
            if condition is not None:
                self.lint_expression(condition, False)
            consequence = node.child_by_field_name("consequence")
            if consequence is not None:
                self._lint_node(consequence)
            alternative = node.child_by_field_name("alternative")
            if alternative is not None:
                self._lint_node(alternative)
        elif node_type == "for_in_statement":
            right = node.child_by_field_name("right")
            if right is not None:
                self.lint_expression(right, False)
            body = node.child_by_field_name("body")
            if body is not None:
                self._lint_node(body)
        elif node_type == "try_statement":
            for field_name in ("body", "handler", "finalizer"):
                part = node.child_by_field_name(field_name)
                if part is None:
                    continue
                block = part if field_name == "body" else part.child_by_field_name("body")
                if block is not None:
                    self.lint_statement(block)
        elif node_type == "switch_statement":
            value = node.child_by_field_name("value")
            if value is not None:
                self.lint_expression(value, False)
            body = node.child_by_field_name("body")
            if body is not None:
                for case in named_children(body):
                    for child in named_children(case):
                        self._lint_node(child)
        elif node_type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                self._lint_node(declaration)
            value = node.child_by_field_name("value")
            if value is not None:
                self.lint_expression(value, False)
        elif node_type in _INERT_STATEMENTS:
            return
        else:
            # Blocks, loops, return/throw, labels and recovered fragments:
            # every child is linted and nothing is awaited from statement position.
            for child in named_children(node):
                self._lint_node(child)

    def _lint_variable_declaration(self, node) -> None:
        for declarator in named_children(node):
            if declarator.type != "variable_declarator":
                continue
            value = declarator.child_by_field_name("value")
            if value is None:
                continue
            name = declarator.child_by_field_name("name")
            if value.type == "call_expression" and name is not None and name.type == "identifier":
                step = self._match_step_call(value)
                if step is not None:
                    self._report_nesting(value, step)
                    self._tracker.record_assigned(node_text(self._source, name), span_of(value), step.name)
                    self._lint_step_arguments(value, step)
                    continue
            self.lint_expression(value, False)

    def _lint_function(self, node) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return
        if body.type != "statement_block":
            # Expression-bodied arrows share the enclosing scope's tracker.
            self.lint_expression(body, False)
            return
        self._lint_scoped_block(body)

    def _lint_scoped_block(self, block) -> None:
        self._push_tracker()
        for statement in named_children(block):
            self._lint_node(statement)
        self._pop_tracker_and_report()

    def _lint_class(self, node) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in named_children(body):
            if member.type == "method_definition":
                self._lint_function(member)
            elif member.type in _FIELD_TYPES:
                value = member.child_by_field_name("value")
                if value is not None:
                    self.lint_expression(value, False)
            elif member.type == "class_static_block":
                block = member.child_by_field_name("body")
                if block is not None:
                    self._lint_scoped_block(block)

    # -- expressions ---------------------------------------------------------

    def lint_expression(self, node, is_awaited: bool) -> None:
        node_type = node.type

        if node_type == "await_expression":
            argument = first_named_child(node)
            if argument is not None:
                self._handle_await(argument)
                self.lint_expression(argument, True)
        elif node_type == "call_expression":
            self._lint_call(node, is_awaited)
        elif node_type in FUNCTION_TYPES:
            self._lint_function(node)
        elif node_type in CLASS_TYPES:
            self._lint_class(node)
        elif node_type in _TRANSPARENT_EXPRESSIONS:
            children = named_children(node)
            if children:
                # `<T>expr` puts the type first; every other wrapper leads with the value.
                inner = children[-1] if node_type == "type_assertion" else children[0]
                self.lint_expression(inner, is_awaited)
        elif node_type == "ternary_expression":
            condition = node.child_by_field_name("condition")
            if condition is not None:
                self.lint_expression(condition, False)
            for field_name in ("consequence", "alternative"):
                branch = node.child_by_field_name(field_name)
                if branch is not None:
                    self.lint_expression(branch, is_awaited)
        elif node_type == "sequence_expression":
            elements = _sequence_elements(node)
            for index, element in enumerate(elements):
                self.lint_expression(element, is_awaited and index == len(elements) - 1)
        elif node_type == "object":
            for member in named_children(node):
                if member.type == "pair":
                    value = member.child_by_field_name("value")
                    if value is not None:
                        self.lint_expression(value, False)
                elif member.type == "method_definition":
                    self._lint_function(member)
                elif member.type == "spread_element":
                    self.lint_expression(member, False)
        elif node_type in ("assignment_expression", "augmented_assignment_expression"):
            right = node.child_by_field_name("right")
            if right is not None:
                self.lint_expression(right, False)
        elif node_type == "member_expression":
            obj = node.child_by_field_name("object")
            if obj is not None:
                self.lint_expression(obj, False)
        elif node_type == "new_expression":
            constructor = node.child_by_field_name("constructor")
            if constructor is not None:
                self.lint_expression(constructor, False)
            self._lint_arguments(node)
        else:
            # Arrays outside combinators, binary/logical/unary operands, subscripts,
            # templates, yield, JSX and recovered error nodes.
            for child in named_children(node):
                self._lint_node(child)

    def _handle_await(self, argument) -> None:
        if argument.type == "identifier":
            self._tracker.mark_awaited_by_var(node_text(self._source, argument))
        elif argument.type == "call_expression" and self._is_combinator_call(argument):
            arguments = self._call_arguments(argument)
            if arguments and arguments[0].type == "array":
                for element in named_children(arguments[0]):
                    if element.type == "identifier":
                        self._tracker.mark_awaited_by_var(node_text(self._source, element))

    def _lint_call(self, node, is_awaited: bool) -> None:
        step = self._match_step_call(node)
        if step is not None:
            self._report_nesting(node, step)
            if is_awaited:
                self._tracker.mark_awaited_by_span(span_of(node))
            else:
                self._tracker.record_unassigned_unawaited(span_of(node), step.name)
            self._lint_step_arguments(node, step)
            return

        callee = node.child_by_field_name("function")
        if callee is not None:
            self.lint_expression(callee, False)

        if is_awaited and self._is_combinator_call(node):
            arguments = self._call_arguments(node)
            if arguments:
                self._lint_combinator_input(arguments[0])
                for argument in arguments[1:]:
                    self.lint_expression(argument, False)
            return

        self._lint_arguments(node)

    def _lint_combinator_input(self, node) -> None:
        if node.type != "array":
            self.lint_expression(node, True)
            return
        for element in named_children(node):
            if element.type == "spread_element":
                inner = first_named_child(element)
                if inner is not None:
                    self.lint_expression(inner, True)
            else:
                self.lint_expression(element, True)

    def _lint_arguments(self, node) -> None:
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return
        if arguments.type != "arguments":
            # Tagged template: the template is the argument list.
            self.lint_expression(arguments, False)
            return
        for argument in named_children(arguments):
            self.lint_expression(argument, False)

    def _lint_step_arguments(self, node, step: StepCall) -> None:
        for index, argument in enumerate(self._call_arguments(node)):
            is_callback = (
                step.method == STEP_CALLBACK_METHOD
                and index == 1
                and argument.type != "spread_element"
            )
            if not is_callback:
                self.lint_expression(argument, False)
                continue
            self._callbacks.append(CallbackContext(step.name))
            self.lint_expression(argument, False)
            self._callbacks.pop()

    def _report_nesting(self, node, step: StepCall) -> None:
        if not self._callbacks:
            return
        outer = self._callbacks[-1]
        self._report(
            node.start_byte,
            NESTED_STEP_MESSAGE.format(inner=step.name, outer=outer.method_name),
            Rule.NESTED_STEP,
        )

    # -- call classification -------------------------------------------------

    @staticmethod
    def _call_arguments(node) -> List:
        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "arguments":
            return []
        return named_children(arguments)

    def _member_callee(self, node):
        callee = node.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            return None, None, None
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if obj is None or prop is None or prop.type != "property_identifier":
            return None, None, None
        return callee, obj, node_text(self._source, prop)

    def _is_combinator_call(self, node) -> bool:
        _callee, obj, method = self._member_callee(node)
        if obj is None or method not in PROMISE_COMBINATORS:
            return False
        return obj.type == "identifier" and node_text(self._source, obj) == PROMISE_AGGREGATOR

    def _match_step_call(self, node) -> Optional[StepCall]:
        callee, obj, method = self._member_callee(node)
        if obj is None or method not in STEP_METHODS or obj.type != "identifier":
            return None
        symbol = self._model.resolve(obj)
        if symbol is None or symbol not in self._step_symbols:
            return None
        return StepCall(step_method_name(self._source, callee), method)


__all__ = [
    "AWAIT_STEP_MESSAGE",
    "NESTED_STEP_MESSAGE",
    "StepCall",
    "StepLinter",
    "span_of",
    "step_method_name",
]
