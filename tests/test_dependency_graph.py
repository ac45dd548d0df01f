"""Tests for dependency graph construction."""

from yang_schema_api.graph import DependencyGraphBuilder, build_dependency_graph


def test_two_file_import():
    graph = build_dependency_graph({"A.yang": [], "B.yang": ["module-a"]})

    assert graph.node_ids() == ["A.yang", "B.yang", "module-a"]
    assert [e.to_dict() for e in graph.edges] == [
        {"source": "B.yang", "target": "module-a", "kind": "import"}
    ]


def test_edge_count_matches_import_statements():
    imports = {
        "a.yang": ["x", "y"],
        "b.yang": ["x", "x"],
        "c.yang": [],
        "d.yang": ["a.yang"],
    }
    graph = build_dependency_graph(imports)

    assert len(graph.edges) == sum(len(v) for v in imports.values())
    ids = set(graph.node_ids())
    assert all(edge.target in ids and edge.source in ids for edge in graph.edges)
    assert len(ids) == len(graph.nodes)


def test_nodes_are_deduplicated_in_first_seen_order():
    graph = build_dependency_graph({"b.yang": ["mod-a"], "a.yang": ["mod-a"], "mod-a": []})
    assert graph.node_ids() == ["b.yang", "mod-a", "a.yang"]
    assert [n.label for n in graph.nodes] == graph.node_ids()


def test_include_edges():
    graph = DependencyGraphBuilder().build(
        {"p.yang": ["types"]}, {"p.yang": ["p-sub"], "q.yang": ["q-sub"]}
    )
    assert [(e.source, e.target, e.kind) for e in graph.edges] == [
        ("p.yang", "types", "import"),
        ("p.yang", "p-sub", "include"),
        ("q.yang", "q-sub", "include"),
    ]


def test_empty_input():
    graph = build_dependency_graph({})
    assert graph.to_dict() == {"nodes": [], "edges": []}
