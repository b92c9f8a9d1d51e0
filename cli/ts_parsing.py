from functools import cache
from pathlib import Path
from typing import Generator

import tree_sitter_typescript  # type: ignore
from tree_sitter import Language, Node, Parser, Tree

# Parents that a type reference can sit inside while still being part of one
# larger type expression. Type annotations, type argument lists, object type
# members and function signatures are boundaries and are deliberately absent.
TYPE_EXPRESSION_KINDS = frozenset(
    [
        "union_type",
        "intersection_type",
        "parenthesized_type",
        "array_type",
        "tuple_type",
        "readonly_type",
        "index_type_query",
        "lookup_type",
        "conditional_type",
        "optional_type",
        "rest_type",
    ]
)

# Nodes whose `name` field holds a type_identifier that declares, rather than
# references, a type.
TYPE_DECLARATION_KINDS = frozenset(
    [
        "type_alias_declaration",
        "interface_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "class",
        "type_parameter",
    ]
)

IDENTIFIER_KINDS = frozenset(
    [
        "identifier",
        "type_identifier",
        "property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
        "statement_identifier",
    ]
)


class TypeScriptParseError(ValueError):
    """Raised when tree-sitter reports syntax errors for a source file."""

    def __init__(self, path: Path | str, line: int, column: int, snippet: str):
        self.path = str(path)
        self.line = line
        self.column = column
        super().__init__(f"{path}:{line}:{column}: syntax error near {snippet!r}")


@cache
def typescript_language(dialect: str) -> Language:
    if dialect == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    if dialect == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    raise ValueError(f"Unknown TypeScript dialect: {dialect}")


def dialect_for_path(path: Path | str) -> str:
    return "tsx" if Path(path).suffix == ".tsx" else "typescript"


def parse_typescript(content: bytes, path_for_diagnostics: Path | str) -> Tree:
    """Parse TypeScript source bytes, choosing the grammar from the file suffix.

    Parsers are not shared between calls, so this is safe to use from
    several worker threads at once."""
    parser = Parser(typescript_language(dialect_for_path(path_for_diagnostics)))
    tree = parser.parse(content)
    if tree.root_node.has_error:
        bad = first_error_node(tree.root_node)
        row, column = bad.start_point
        snippet = content[bad.start_byte : bad.start_byte + 40].decode("utf-8", "replace")
        raise TypeScriptParseError(path_for_diagnostics, row + 1, column + 1, snippet)
    return tree


def first_error_node(root: Node) -> Node:
    for node in yield_matching_nodes(root, lambda n: n.type == "ERROR" or n.is_missing):
        return node
    return root


def yield_matching_nodes(root: Node, predicate, skip=None) -> Generator[Node, None, None]:
    """Yield the nodes under `root` (inclusive) satisfying `predicate`, in source order.

    Subtrees rooted at nodes satisfying `skip` are not visited at all."""
    worklist: list[Node] = [root]
    while worklist:
        current = worklist.pop()
        if skip is not None and skip(current):
            continue
        if predicate(current):
            yield current
        worklist.extend(reversed(current.children))


def node_text(node: Node) -> str:
    assert node.text is not None
    return node.text.decode("utf-8")


def named_children_sans_comments(node: Node) -> list[Node]:
    return [c for c in node.named_children if c.type != "comment"]


def is_union_type(node: Node) -> bool:
    return node.type == "union_type"


def is_type_expression(node: Node) -> bool:
    return node.type in TYPE_EXPRESSION_KINDS


def is_import_statement(node: Node) -> bool:
    return node.type == "import_statement"


def is_identifier(node: Node) -> bool:
    return node.type in IDENTIFIER_KINDS


def is_same_node(a: Node | None, b: Node | None) -> bool:
    if a is None or b is None:
        return False
    return a.id == b.id


def type_reference_name(node: Node) -> str | None:
    """The referenced name of a type reference node, or None for other nodes.

    `Store` and `Store<X>` both name `Store`; a qualified `ns.Store` names
    `ns.Store`."""
    if node.type in ("type_identifier", "nested_type_identifier"):
        return node_text(node)
    if node.type == "generic_type":
        name = node.child_by_field_name("name")
        return node_text(name) if name is not None else None
    return None


def enclosing_type_reference(ident: Node) -> Node | None:
    """Map a type_identifier to the type reference it belongs to.

    Returns None when the identifier is the name of a declaration."""
    reference = ident
    parent = ident.parent
    if parent is not None and parent.type == "nested_type_identifier":
        reference = parent
        parent = parent.parent
    if parent is None:
        return reference
    if parent.type == "generic_type" and is_same_node(
        parent.child_by_field_name("name"), reference
    ):
        return parent
    if parent.type in TYPE_DECLARATION_KINDS and is_same_node(
        parent.child_by_field_name("name"), reference
    ):
        return None
    return reference


def union_members(node: Node) -> list[Node]:
    """Flatten the left-nested union_type chain tree-sitter produces for `A | B | C`."""
    members: list[Node] = []
    for child in named_children_sans_comments(node):
        if is_union_type(child):
            members.extend(union_members(child))
        else:
            members.append(child)
    return members
