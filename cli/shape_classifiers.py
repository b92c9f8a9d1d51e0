from dataclasses import dataclass, field
from typing import Callable, Sequence, TypeAlias

import click
from tree_sitter import Node

from dsa_types import TypeName
from ts_parsing import is_union_type, node_text, type_reference_name, union_members

RenderFn: TypeAlias = Callable[[Node], str]


@dataclass
class ClassificationMap:
    """Union members split against one classifier's vocabulary.

    `known` keeps at most one member per required name (the last one seen);
    `unknown` keeps every other member in source order, keyed by its type
    name, or None for members such as literal or object types that have no name.
    """

    known: dict[TypeName, Node] = field(default_factory=dict)
    unknown: list[tuple[TypeName | None, Node]] = field(default_factory=list)


def member_name(member: Node) -> TypeName | None:
    name = type_reference_name(member)
    if name is None and member.type == "predefined_type":
        # `string`, `number`, ... participate by keyword.
        name = node_text(member)
    return name


def decompose_union(node: Node, vocabulary: Sequence[TypeName]) -> ClassificationMap:
    result = ClassificationMap()
    if not is_union_type(node):
        return result
    for member in union_members(node):
        name = member_name(member)
        if name is not None and name in vocabulary:
            result.known[name] = member
        else:
            result.unknown.append((name, member))
    return result


def build_canonical_reference(name: str, type_arguments: str | None = None) -> str:
    return name + (type_arguments or "")


@dataclass(frozen=True)
class ShapeClassifier:
    name: str
    required_fields: tuple[TypeName, ...]
    # Required member whose type arguments the canonical reference inherits.
    type_arguments_from: TypeName | None = None
    # Residual members with these names are implied by the canonical type.
    discarded_unknown_keys: frozenset[TypeName] = frozenset()

    def decompose(self, node: Node) -> ClassificationMap:
        return decompose_union(node, self.required_fields)

    def matches(self, node: Node) -> bool:
        if not is_union_type(node):
            return False
        known = self.decompose(node).known
        return all(f in known for f in self.required_fields)

    def build_replacement(self, cmap: ClassificationMap, render: RenderFn = node_text) -> str:
        type_arguments = None
        if self.type_arguments_from is not None:
            source = cmap.known[self.type_arguments_from]
            args = source.child_by_field_name("type_arguments")
            if args is not None:
                type_arguments = render(args)
        return build_canonical_reference(self.name, type_arguments)

    def from_node(self, node: Node, render: RenderFn = node_text) -> str:
        """Replacement text for a union this classifier matches.

        Members outside the vocabulary survive as a union after the canonical
        reference. `render` supplies member text, so that callers can splice
        in rewrites already made inside a member."""
        cmap = self.decompose(node)
        canonical = self.build_replacement(cmap, render)
        residual = [m for key, m in cmap.unknown if key not in self.discarded_unknown_keys]
        if not residual:
            return canonical
        if self.discarded_unknown_keys:
            click.echo(
                f"WARNING: unexpected residual type members for {self.name}: "
                + ", ".join(node_text(m) for m in residual),
                err=True,
            )
        return " | ".join([canonical, *(render(m) for m in residual)])


SHAPE_CLASSIFIERS: tuple[ShapeClassifier, ...] = (
    # ComplexCollectionDataSource<T>: Array<string | T | any> | DataSourceMixinString
    ShapeClassifier(
        "ComplexCollectionDataSource",
        ("Array", "Store", "DataSource", "DataSourceOptions"),
        type_arguments_from="Array",
        discarded_unknown_keys=frozenset(["string"]),
    ),
    # DataSourceMixinString: string | BaseMixinDataSource
    ShapeClassifier(
        "DataSourceMixinString",
        ("string", "Store", "DataSource", "DataSourceOptions"),
    ),
    # DataSourceMixinArray: Array<any> | Store | DataSourceOptions
    ShapeClassifier(
        "DataSourceMixinArray",
        ("Array", "Store", "DataSourceOptions"),
        type_arguments_from="Array",
    ),
    # BaseMixinDataSource: Store | DataSource | DataSourceOptions
    ShapeClassifier("BaseMixinDataSource", ("Store", "DataSource", "DataSourceOptions")),
)


def classify(
    node: Node, classifiers: Sequence[ShapeClassifier] = SHAPE_CLASSIFIERS
) -> ShapeClassifier | None:
    """The first classifier, in priority order, that matches `node`."""
    for classifier in classifiers:
        if classifier.matches(node):
            return classifier
    return None
