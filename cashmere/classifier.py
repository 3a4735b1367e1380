"""Classify which declared bindings denote workflow step objects.

Two independent heuristics feed the result:

* annotation-based: any function parameter typed as ``WorkflowStep``. The type
  is ambient in workflow projects, so no import is required and the match is
  on the type name alone.
* structural inference: the second parameter of ``run`` in a class extending
  ``WorkflowEntrypoint`` imported from ``cloudflare:workers``. This covers
  plain JavaScript where no annotations exist.

Classification runs once per file, before the walk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from .config import WORKFLOW_ENTRYPOINT, WORKFLOW_STEP_TYPE, WORKFLOWS_MODULE
from .models import SymbolId
from .parsing import first_named_child, iter_tree, named_children, node_text, string_value
from .semantic import CLASS_TYPES, FUNCTION_TYPES, SemanticModel, function_parameters, import_bindings

logger = logging.getLogger(__name__)

_TYPED_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})


@dataclass(frozen=True)
class StepIdentitySet:
    typed: FrozenSet[SymbolId] = frozenset()
    inferred: FrozenSet[SymbolId] = frozenset()

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.typed or symbol in self.inferred

    def __len__(self) -> int:
        return len(self.typed | self.inferred)

    @property
    def symbols(self) -> FrozenSet[SymbolId]:
        return self.typed | self.inferred


@dataclass
class ImportAliasMap:
    """Local name -> exported name for the imports of a single module."""

    module: str
    local_to_imported: Dict[str, str] = field(default_factory=dict)
    symbols: Dict[str, SymbolId] = field(default_factory=dict)

    def is_alias_for(self, local_name: str, exported: str) -> bool:
        return self.local_to_imported.get(local_name) == exported

    def symbol_for(self, exported: str) -> Optional[SymbolId]:
        for local_name, imported in self.local_to_imported.items():
            if imported == exported:
                symbol = self.symbols.get(local_name)
                if symbol is not None:
                    return symbol
        return None


def collect_import_aliases(
    root, source: bytes, model: SemanticModel, module: str = WORKFLOWS_MODULE
) -> ImportAliasMap:
    aliases = ImportAliasMap(module=module)
    for statement in root.named_children:
        if statement.type != "import_statement":
            continue
        source_node = statement.child_by_field_name("source")
        if source_node is None or string_value(source, source_node) != module:
            continue
        for local, imported in import_bindings(statement, source):
            local_name = node_text(source, local)
            aliases.local_to_imported[local_name] = imported
            symbol = model.declared_symbol(local)
            if symbol is not None:
                aliases.symbols[local_name] = symbol
    return aliases


def _is_step_type(source: bytes, annotation) -> bool:
    type_node = first_named_child(annotation)
    if type_node is None:
        return False
    if type_node.type == "generic_type":
        type_node = type_node.child_by_field_name("name")
        if type_node is None:
            return False
    return type_node.type == "type_identifier" and node_text(source, type_node) == WORKFLOW_STEP_TYPE


def find_typed_step_symbols(root, source: bytes, model: SemanticModel) -> FrozenSet[SymbolId]:
    symbols = set()
    for node in iter_tree(root):
        if node.type not in FUNCTION_TYPES:
            continue
        for parameter in function_parameters(node):
            if parameter.type not in _TYPED_PARAMETER_TYPES:
                continue
            annotation = parameter.child_by_field_name("type")
            if annotation is None or not _is_step_type(source, annotation):
                continue
            pattern = parameter.child_by_field_name("pattern")
            if pattern is None or pattern.type != "identifier":
                continue
            symbol = model.declared_symbol(pattern)
            if symbol is not None:
                symbols.add(symbol)
    return frozenset(symbols)


def _superclass(node):
    for child in node.named_children:
        if child.type != "class_heritage":
            continue
        for clause in named_children(child):
            # TypeScript wraps the superclass in an extends_clause.
            if clause.type == "extends_clause":
                return clause.child_by_field_name("value")
            if clause.type == "implements_clause":
                continue
            return clause
    return None


def _extends_entrypoint(
    node,
    source: bytes,
    model: SemanticModel,
    aliases: ImportAliasMap,
    entrypoint_symbol: Optional[SymbolId],
) -> bool:
    superclass = _superclass(node)
    if superclass is None or superclass.type != "identifier":
        return False
    if aliases.is_alias_for(node_text(source, superclass), WORKFLOW_ENTRYPOINT):
        return True
    if entrypoint_symbol is None:
        return False
    return model.resolve(superclass) == entrypoint_symbol


def _plain_parameter_name(parameter):
    if parameter.type == "identifier":
        return parameter
    if parameter.type in _TYPED_PARAMETER_TYPES:
        if parameter.child_by_field_name("value") is not None:
            return None
        pattern = parameter.child_by_field_name("pattern")
        if pattern is not None and pattern.type == "identifier":
            return pattern
    return None


def _run_method_step_parameter(node, source: bytes, model: SemanticModel) -> Optional[SymbolId]:
    body = node.child_by_field_name("body")
    if body is None:
        return None
    for member in body.named_children:
        if member.type != "method_definition":
            continue
        name = member.child_by_field_name("name")
        if name is None or name.type != "property_identifier" or node_text(source, name) != "run":
            continue
        parameters = function_parameters(member)
        if len(parameters) < 2:
            return None
        binding = _plain_parameter_name(parameters[1])
        return model.declared_symbol(binding) if binding is not None else None
    return None


def find_inferred_step_symbols(
    root,
    source: bytes,
    model: SemanticModel,
    aliases: Optional[ImportAliasMap] = None,
) -> FrozenSet[SymbolId]:
    if aliases is None:
        aliases = collect_import_aliases(root, source, model)
    entrypoint_symbol = aliases.symbol_for(WORKFLOW_ENTRYPOINT)

    symbols = set()
    for node in iter_tree(root):
        if node.type not in CLASS_TYPES:
            continue
        if not _extends_entrypoint(node, source, model, aliases, entrypoint_symbol):
            continue
        symbol = _run_method_step_parameter(node, source, model)
        if symbol is not None:
            symbols.add(symbol)
    return frozenset(symbols)


def classify_step_symbols(root, source: bytes, model: SemanticModel) -> StepIdentitySet:
    step_symbols = StepIdentitySet(
        typed=find_typed_step_symbols(root, source, model),
        inferred=find_inferred_step_symbols(root, source, model),
    )
    logger.debug(
        "Classified %d typed and %d inferred step symbols",
        len(step_symbols.typed),
        len(step_symbols.inferred),
    )
    return step_symbols


__all__ = [
    "ImportAliasMap",
    "StepIdentitySet",
    "classify_step_symbols",
    "collect_import_aliases",
    "find_inferred_step_symbols",
    "find_typed_step_symbols",
]
