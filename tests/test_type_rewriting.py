from batching_rewriter import BatchingRewriter
from ts_parsing import node_text, parse_typescript
from type_rewriting import locate_target_expressions, rewrite_type_expressions


def rewrite_types(source: str, **kwargs) -> tuple[str, list[str]]:
    content = source.encode()
    tree = parse_typescript(content, "input.ts")
    rewriter = BatchingRewriter(content)
    names = rewrite_type_expressions(tree, rewriter, **kwargs)
    return rewriter.apply_rewrites().decode(), names


def targets_of(source: str, **kwargs) -> list[str]:
    tree = parse_typescript(source.encode(), "input.ts")
    return [node_text(n) for n in locate_target_expressions(tree.root_node, **kwargs)]


def test_base_example_drops_generic_arguments():
    out, names = rewrite_types("type T = Store<X> | DataSource<X> | DataSourceOptions<X>;")
    assert out == "type T = BaseMixinDataSource;"
    assert names == ["BaseMixinDataSource"]


def test_array_example_keeps_element_type():
    out, names = rewrite_types("type T = Array<Y> | Store | DataSourceOptions;")
    assert out == "type T = DataSourceMixinArray<Y>;"
    assert names == ["DataSourceMixinArray"]


def test_locator_expands_to_maximal_union():
    source = "let x: Foo | Store | Bar | DataSource;"
    assert targets_of(source) == ["Foo | Store | Bar | DataSource"]


def test_locator_deduplicates_targets():
    source = "type T = Store | DataSource | DataSourceOptions | Store;"
    assert targets_of(source) == ["Store | DataSource | DataSourceOptions | Store"]
    out, names = rewrite_types(source)
    assert out == "type T = BaseMixinDataSource;"
    assert names == ["BaseMixinDataSource"]


def test_locator_stops_at_annotations_and_type_arguments():
    source = "function f(a: Store, b: Promise<DataSource | X>): Store[] { return []; }"
    assert targets_of(source) == ["Store", "DataSource | X", "Store[]"]


def test_locator_ignores_declaration_names_and_other_types():
    source = "interface Store {}\ntype DataSource = number;\nclass C<Store> {}\nlet y: Foo | Bar;"
    assert targets_of(source) == []


def test_locator_ignores_qualified_names():
    assert targets_of("let z: ns.Store | DataSource;") == ["ns.Store | DataSource"]
    assert targets_of("let z: ns.Store | ns.DataSource;") == []


def test_locator_uses_configured_trigger_names():
    source = "type T = Foo | Bar; type U = Store | DataSource;"
    assert targets_of(source, trigger_names={"Foo"}) == ["Foo | Bar"]


def test_union_inside_larger_annotation_keeps_other_members():
    source = "class C {\n  source: Foo | Store | DataSource | DataSourceOptions;\n}\n"
    out, _ = rewrite_types(source)
    assert out == "class C {\n  source: BaseMixinDataSource | Foo;\n}\n"


def test_parenthesized_target_is_not_a_union():
    source = "type T = (Store | DataSource | DataSourceOptions);"
    assert targets_of(source) == ["(Store | DataSource | DataSourceOptions)"]
    out, names = rewrite_types(source)
    assert out == source
    assert names == []


def test_array_of_union_is_not_a_match():
    source = "type T = (Store | DataSource | DataSourceOptions)[];"
    out, names = rewrite_types(source)
    assert out == source
    assert names == []


def test_leading_pipe_union():
    source = "type T =\n  | Store\n  | DataSource\n  | DataSourceOptions;\n"
    out, _ = rewrite_types(source)
    assert out == "type T =\n  BaseMixinDataSource;\n"


def test_nested_targets_compose():
    source = (
        "type T = Map<string, Store | DataSource | DataSourceOptions>"
        " | Store | DataSource | DataSourceOptions;"
    )
    out, names = rewrite_types(source)
    assert out == "type T = BaseMixinDataSource | Map<string, BaseMixinDataSource>;"
    assert names == ["BaseMixinDataSource"]


def test_nested_target_inside_array_type_arguments():
    source = "type T = Array<Store | DataSource | DataSourceOptions> | Store | DataSourceOptions;"
    out, names = rewrite_types(source)
    assert out == "type T = DataSourceMixinArray<BaseMixinDataSource>;"
    assert names == ["DataSourceMixinArray", "BaseMixinDataSource"]


def test_unmatched_targets_are_left_alone():
    source = "let a: Store | Foo;\nlet b: DataSource;\n"
    out, names = rewrite_types(source)
    assert out == source
    assert names == []


def test_canonical_names_in_source_order():
    source = (
        "let a: Array<A> | Store | DataSourceOptions;\n"
        "let b: Store | DataSource | DataSourceOptions;\n"
        "let c: Array<C> | Store | DataSourceOptions;\n"
    )
    out, names = rewrite_types(source)
    assert names == ["DataSourceMixinArray", "BaseMixinDataSource"]
    assert out == (
        "let a: DataSourceMixinArray<A>;\n"
        "let b: BaseMixinDataSource;\n"
        "let c: DataSourceMixinArray<C>;\n"
    )


def test_rewrite_absorbed_by_outer_shape_is_not_reported():
    source = (
        "type T = Store<Array<Y> | Store | DataSourceOptions>"
        " | DataSource | DataSourceOptions;"
    )
    out, names = rewrite_types(source)
    assert out == "type T = BaseMixinDataSource;"
    assert names == ["BaseMixinDataSource"]


def test_unnamed_members_are_preserved():
    out, names = rewrite_types("let a: Store | DataSource | DataSourceOptions | null;")
    assert out == "let a: BaseMixinDataSource | null;"
    assert names == ["BaseMixinDataSource"]
