from cashmere.parsing import TreeSitterParser, dialect_for_path, iter_tree, node_text
from cashmere.semantic import SemanticModel


def build_model(code: str, file_path: str = "workflow.ts"):
    source = code.encode("utf-8")
    tree = TreeSitterParser(dialect_for_path(file_path)).parse(source)
    root = tree.root_node
    return root, source, SemanticModel(root, source)


def identifiers(root, source: bytes, name: str):
    """Identifier nodes named ``name`` in source order."""
    return [
        node
        for node in iter_tree(root)
        if node.type == "identifier" and node_text(source, node) == name
    ]
