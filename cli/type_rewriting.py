from typing import Collection, Sequence

from tree_sitter import Node, Tree

from batching_rewriter import BatchingRewriter
from constants import TRIGGER_NAMES
from dsa_types import CanonicalName, TypeName
from shape_classifiers import SHAPE_CLASSIFIERS, ShapeClassifier, classify
from ts_parsing import (
    enclosing_type_reference,
    is_type_expression,
    type_reference_name,
    yield_matching_nodes,
)


def locate_target_expressions(
    root: Node, trigger_names: Collection[TypeName] = TRIGGER_NAMES
) -> list[Node]:
    """Find the maximal type expression around each reference to a trigger name.

    A reference nested in a union (or intersection, parenthesized type, ...)
    resolves to the outermost such expression, so `A | Store | B` yields the
    whole union. Several triggers inside one expression yield it once.
    Results are in source order."""
    targets: dict[int, Node] = {}
    for ident in yield_matching_nodes(root, lambda n: n.type == "type_identifier"):
        reference = enclosing_type_reference(ident)
        if reference is None or type_reference_name(reference) not in trigger_names:
            continue
        target = reference
        while target.parent is not None and is_type_expression(target.parent):
            target = target.parent
        targets.setdefault(target.id, target)
    return sorted(targets.values(), key=lambda n: n.start_byte)


def rewrite_type_expressions(
    tree: Tree,
    rewriter: BatchingRewriter,
    classifiers: Sequence[ShapeClassifier] = SHAPE_CLASSIFIERS,
    trigger_names: Collection[TypeName] = TRIGGER_NAMES,
) -> list[CanonicalName]:
    """Queue a rewrite for every target expression matching a classifier.

    Returns the canonical names introduced, without duplicates, in source order."""

    # Names each queued rewrite puts into the output: its own, then those of
    # the nested rewrites its replacement text carries.
    names_by_span: dict[tuple[int, int], list[CanonicalName]] = {}
    # Innermost first: a target can sit inside the type arguments of a member
    # of a larger target, and the outer replacement must carry the inner one.
    targets = locate_target_expressions(tree.root_node, trigger_names)
    for target in sorted(targets, key=lambda n: n.end_byte - n.start_byte):
        classifier = classify(target, classifiers)
        if classifier is None:
            continue
        carried: list[CanonicalName] = []

        def render(node: Node, carried=carried) -> str:
            for o, n, _ in rewriter.outermost_rewrites_within(node.start_byte, node.end_byte):
                carried.extend(names_by_span.get((o, n), []))
            return rewriter.render_span(node.start_byte, node.end_byte)

        replacement = classifier.from_node(target, render)
        span = (target.start_byte, target.end_byte - target.start_byte)
        rewriter.add_rewrite(*span, replacement)
        names_by_span[span] = [classifier.name, *carried]

    # A rewrite nested in a member the outer shape absorbs never reaches the output.
    kept = rewriter.outermost_rewrites_within(0, len(rewriter.content))
    emitted = [name for o, n, _ in kept for name in names_by_span.get((o, n), [])]
    return list(dict.fromkeys(emitted))
