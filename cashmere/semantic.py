"""Lexical scope and binding analysis over a Tree-sitter syntax tree.

Tree-sitter stops at syntax, so this module supplies the narrow piece of
binding analysis the linter relies on: every declared name gets a
:class:`~cashmere.models.SymbolId`, and any identifier occurrence can be
resolved back to the declaration it refers to. Resolution is purely lexical.
Hoisting is approximated by collecting every declaration before any lookup,
and the temporal dead zone is ignored.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .models import SymbolId
from .parsing import named_children, node_text, string_value

logger = logging.getLogger(__name__)

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
_DECLARED_FUNCTION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
_NAMED_FUNCTION_EXPRESSION_TYPES = frozenset({"function_expression", "function", "generator_function"})

CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})

_BLOCK_SCOPE_TYPES = frozenset({"statement_block", "for_statement", "switch_body"})
_NAME_NODE_TYPES = frozenset({"identifier", "type_identifier"})


def _scope_key(node) -> Tuple[str, int, int]:
    return node.type, node.start_byte, node.end_byte


def function_parameters(node) -> List:
    """Parameter nodes of a function-like node, in positional order."""
    single = node.child_by_field_name("parameter")
    if single is not None:
        return [single]
    parameters = node.child_by_field_name("parameters")
    if parameters is None:
        return []
    return named_children(parameters)


def import_bindings(import_node, source: bytes) -> Iterator[Tuple[object, str]]:
    """Yield ``(local identifier node, imported name)`` for an import statement."""
    for clause in import_node.named_children:
        if clause.type != "import_clause":
            continue
        for child in named_children(clause):
            if child.type == "identifier":
                yield child, "default"
            elif child.type == "namespace_import":
                for inner in named_children(child):
                    if inner.type == "identifier":
                        yield inner, "*"
            elif child.type == "named_imports":
                for specifier in named_children(child):
                    if specifier.type != "import_specifier":
                        continue
                    name = specifier.child_by_field_name("name")
                    if name is None:
                        continue
                    alias = specifier.child_by_field_name("alias")
                    local = alias if alias is not None else name
                    if local.type != "identifier":
                        continue
                    if name.type == "string":
                        imported = string_value(source, name)
                    else:
                        imported = node_text(source, name)
                    yield local, imported


class Scope:
    __slots__ = ("kind", "parent", "bindings")

    def __init__(self, kind: str, parent: Optional["Scope"]) -> None:
        self.kind = kind
        self.parent = parent
        self.bindings: Dict[str, SymbolId] = {}

    def declare(self, symbol: SymbolId) -> SymbolId:
        # Redeclaring a name keeps the original binding.
        return self.bindings.setdefault(symbol.name, symbol)

    def lookup(self, name: str) -> Optional[SymbolId]:
        scope: Optional[Scope] = self
        while scope is not None:
            symbol = scope.bindings.get(name)
            if symbol is not None:
                return symbol
            scope = scope.parent
        return None

    def hoisting_scope(self) -> "Scope":
        scope = self
        while scope.kind not in ("function", "module") and scope.parent is not None:
            scope = scope.parent
        return scope


class SemanticModel:
    """Scope tree and declaration table for one parsed file."""

    def __init__(self, root, source: bytes) -> None:
        self._source = source
        self._scopes: Dict[Tuple[str, int, int], Scope] = {}
        self._declarations: Dict[Tuple[int, int], SymbolId] = {}
        self.module_scope = self._open_scope(root, "module", None)
        for child in root.named_children:
            self._visit(child, self.module_scope)
        logger.debug(
            "Built %d scopes with %d declarations", len(self._scopes), len(self._declarations)
        )

    def declared_symbol(self, node) -> Optional[SymbolId]:
        """Identity declared by ``node`` when it is a binding identifier."""
        if node is None:
            return None
        return self._declarations.get((node.start_byte, node.end_byte))

    def resolve(self, node) -> Optional[SymbolId]:
        """Declaration an identifier occurrence refers to, if any."""
        if node is None or node.type != "identifier":
            return None
        declared = self.declared_symbol(node)
        if declared is not None:
            return declared
        return self.scope_of(node).lookup(node_text(self._source, node))

    def scope_of(self, node) -> Scope:
        current = node.parent
        while current is not None:
            scope = self._scopes.get(_scope_key(current))
            if scope is not None:
                return scope
            current = current.parent
        return self.module_scope

    def _open_scope(self, node, kind: str, parent: Optional[Scope]) -> Scope:
        scope = Scope(kind, parent)
        self._scopes[_scope_key(node)] = scope
        return scope

    def _declare(self, node, scope: Scope) -> None:
        symbol = SymbolId(node_text(self._source, node), node.start_byte, node.end_byte)
        self._declarations[(node.start_byte, node.end_byte)] = scope.declare(symbol)

    def _declare_pattern(self, node, scope: Scope) -> None:
        if node is None:
            return
        node_type = node.type
        if node_type in ("identifier", "shorthand_property_identifier_pattern"):
            self._declare(node, scope)
        elif node_type in ("required_parameter", "optional_parameter"):
            self._declare_pattern(node.child_by_field_name("pattern"), scope)
        elif node_type in ("assignment_pattern", "object_assignment_pattern"):
            self._declare_pattern(node.child_by_field_name("left"), scope)
        elif node_type == "pair_pattern":
            self._declare_pattern(node.child_by_field_name("value"), scope)
        elif node_type in ("object_pattern", "array_pattern", "rest_pattern"):
            for child in named_children(node):
                self._declare_pattern(child, scope)

    def _visit_children(self, node, scope: Scope) -> None:
        for child in node.named_children:
            self._visit(child, scope)

    def _visit(self, node, scope: Scope) -> None:
        node_type = node.type

        if node_type in FUNCTION_TYPES:
            self._visit_function(node, scope)
        elif node_type in CLASS_TYPES:
            self._visit_class(node, scope)
        elif node_type in ("variable_declaration", "lexical_declaration"):
            target = scope.hoisting_scope() if node_type == "variable_declaration" else scope
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    self._declare_pattern(declarator.child_by_field_name("name"), target)
            self._visit_children(node, scope)
        elif node_type == "import_statement":
            for local, _imported in import_bindings(node, self._source):
                self._declare(local, scope)
        elif node_type == "for_in_statement":
            loop_scope = self._open_scope(node, "block", scope)
            kind = node.child_by_field_name("kind")
            if kind is not None:
                keyword = node_text(self._source, kind)
                target = loop_scope if keyword in ("let", "const") else loop_scope.hoisting_scope()
                self._declare_pattern(node.child_by_field_name("left"), target)
            self._visit_children(node, loop_scope)
        elif node_type == "catch_clause":
            catch_scope = self._open_scope(node, "catch", scope)
            self._declare_pattern(node.child_by_field_name("parameter"), catch_scope)
            self._visit_children(node, catch_scope)
        elif node_type == "class_static_block":
            self._visit_children(node, self._open_scope(node, "function", scope))
        elif node_type in _BLOCK_SCOPE_TYPES:
            self._visit_children(node, self._open_scope(node, "block", scope))
        elif node_type in ("enum_declaration", "internal_module", "module", "function_signature"):
            name = node.child_by_field_name("name")
            if name is not None and name.type in _NAME_NODE_TYPES:
                self._declare(name, scope)
            self._visit_children(node, scope)
        else:
            self._visit_children(node, scope)

    def _visit_function(self, node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if node.type in _DECLARED_FUNCTION_TYPES and name is not None:
            self._declare(name, scope)

        function_scope = self._open_scope(node, "function", scope)
        if node.type in _NAMED_FUNCTION_EXPRESSION_TYPES and name is not None:
            self._declare(name, function_scope)

        for parameter in function_parameters(node):
            self._declare_pattern(parameter, function_scope)
        self._visit_children(node, function_scope)

    def _visit_class(self, node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if node.type == "class":
            class_scope = self._open_scope(node, "class", scope)
            if name is not None and name.type in _NAME_NODE_TYPES:
                self._declare(name, class_scope)
        else:
            if name is not None and name.type in _NAME_NODE_TYPES:
                self._declare(name, scope)
            class_scope = self._open_scope(node, "class", scope)
        self._visit_children(node, class_scope)


__all__ = [
    "CLASS_TYPES",
    "FUNCTION_TYPES",
    "Scope",
    "SemanticModel",
    "function_parameters",
    "import_bindings",
]
