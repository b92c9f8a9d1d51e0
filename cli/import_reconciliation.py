import os
from pathlib import Path
from typing import Sequence

from tree_sitter import Node, Tree

from batching_rewriter import BatchingRewriter
from constants import IMPORT_QUOTE, LINE_TERMINATOR, TYPESCRIPT_SUFFIXES
from dsa_types import CanonicalName, ModuleSpecifierStr
from ts_parsing import (
    is_identifier,
    is_import_statement,
    node_text,
    parse_typescript,
    yield_matching_nodes,
)


def aliases_module_specifier(file_path: Path, aliases_module: Path) -> ModuleSpecifierStr:
    """The relative module specifier through which `file_path` imports the aliases module.

    Always starts with `./` or `../` and never carries a file extension."""
    rel = os.path.relpath(aliases_module.resolve(), file_path.resolve().parent)
    rel = rel.replace("\\", "/")
    for suffix in TYPESCRIPT_SUFFIXES:
        if rel.endswith(suffix):
            rel = rel[: -len(suffix)]
            break
    else:
        rel = os.path.splitext(rel)[0]
    if not rel.startswith(("./", "../")):
        rel = "./" + rel
    return rel


def import_source(stmt: Node) -> str | None:
    source = stmt.child_by_field_name("source")
    if source is None:
        return None
    return node_text(source)[1:-1]


def child_of_type(node: Node, kind: str) -> Node | None:
    for child in node.children:
        if child.type == kind:
            return child
    return None


def import_statements(root: Node) -> list[Node]:
    return list(yield_matching_nodes(root, is_import_statement))


def named_specifiers(clause: Node | None) -> list[Node]:
    if clause is None:
        return []
    named = child_of_type(clause, "named_imports")
    if named is None:
        return []
    return [c for c in named.named_children if c.type == "import_specifier"]


def imported_name(specifier: Node) -> str:
    name = specifier.child_by_field_name("name")
    assert name is not None
    return node_text(name)


def named_import_list(names: Sequence[str]) -> str:
    return "{ " + ", ".join(names) + " }"


def merge_named_imports(
    stmt: Node, names: Sequence[CanonicalName], rewriter: BatchingRewriter
) -> bool:
    """Queue edits adding the missing `names` to an existing import statement.

    Returns False when the statement cannot take named specifiers (a namespace
    import), in which case nothing is queued."""
    clause = child_of_type(stmt, "import_clause")
    if clause is None:
        # Side-effect import: `import './aliases';`
        source = stmt.child_by_field_name("source")
        assert source is not None
        rewriter.add_insertion(source.start_byte, named_import_list(names) + " from ")
        return True
    if child_of_type(clause, "namespace_import") is not None:
        return False

    # Default specifiers never count as named matches.
    present = {imported_name(s) for s in named_specifiers(clause)}
    to_add = [n for n in names if n not in present]
    if not to_add:
        return True

    named = child_of_type(clause, "named_imports")
    if named is None:
        rewriter.add_insertion(clause.end_byte, ", " + named_import_list(to_add))
        return True
    existing = named_specifiers(clause)
    if existing:
        rewriter.add_insertion(existing[-1].end_byte, "".join(", " + n for n in to_add))
    else:
        rewriter.add_rewrite(
            named.start_byte, named.end_byte - named.start_byte, named_import_list(to_add)
        )
    return True


def reconcile_alias_import(
    tree: Tree,
    rewriter: BatchingRewriter,
    specifier: ModuleSpecifierStr,
    names: Sequence[CanonicalName],
) -> None:
    """Make sure an import from `specifier` brings in every one of `names`.

    Merges into the first existing import of that module that can take named
    specifiers, or else inserts a new import at the top of the file."""
    if not names:
        return
    for stmt in import_statements(tree.root_node):
        if import_source(stmt) == specifier and merge_named_imports(stmt, names, rewriter):
            return

    offset = 0
    first = tree.root_node.children[0] if tree.root_node.children else None
    if first is not None and first.type == "hash_bang_line":
        offset = first.end_byte + 1
        if offset > len(rewriter.content):
            offset = len(rewriter.content)
    quoted = IMPORT_QUOTE + specifier + IMPORT_QUOTE
    rewriter.add_insertion(
        offset, f"import {named_import_list(names)} from {quoted};{LINE_TERMINATOR}"
    )


def collect_used_names(root: Node) -> set[str]:
    """Every identifier spelled anywhere outside of import statements."""
    return {
        node_text(n)
        for n in yield_matching_nodes(root, is_identifier, skip=is_import_statement)
    }


def statement_span_with_newline(content: bytes, stmt: Node) -> tuple[int, int]:
    end = stmt.end_byte
    if content[end : end + 2] == b"\r\n":
        end += 2
    elif content[end : end + 1] == b"\n":
        end += 1
    return stmt.start_byte, end


def queue_import_pruning(
    stmt: Node, used: set[str], content: bytes, rewriter: BatchingRewriter
) -> None:
    clause = child_of_type(stmt, "import_clause")
    if clause is None:
        return

    default = child_of_type(clause, "identifier")
    namespace = child_of_type(clause, "namespace_import")
    named = child_of_type(clause, "named_imports")
    specifiers = named_specifiers(clause)

    keep_default = default is not None and node_text(default) in used
    kept = [s for s in specifiers if imported_name(s) in used]
    removed_any = (default is not None and not keep_default) or len(kept) != len(specifiers)
    if not removed_any:
        return

    if not keep_default and namespace is None and not kept:
        lo, hi = statement_span_with_newline(content, stmt)
        rewriter.add_rewrite(lo, hi - lo, "")
        return

    parts = []
    if keep_default:
        assert default is not None
        parts.append(node_text(default))
    if namespace is not None:
        parts.append(node_text(namespace))
    if kept:
        parts.append(named_import_list([node_text(s) for s in kept]))
    elif named is not None and not specifiers:
        # `{}` was already empty; leave it as written.
        parts.append(node_text(named))
    rewriter.add_rewrite(clause.start_byte, clause.end_byte - clause.start_byte, ", ".join(parts))


def prune_unused_imports(content: bytes, path_for_diagnostics: Path | str) -> bytes:
    """Drop import specifiers (and emptied import statements) for names no longer used.

    Default specifiers are judged by their local name, named specifiers by
    the name they import. Side-effect imports are left alone."""
    tree = parse_typescript(content, path_for_diagnostics)
    used = collect_used_names(tree.root_node)
    rewriter = BatchingRewriter(content)
    for stmt in import_statements(tree.root_node):
        queue_import_pruning(stmt, used, content, rewriter)
    return rewriter.apply_rewrites()
