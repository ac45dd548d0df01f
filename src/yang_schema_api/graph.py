"""Aggregate per-document imports into a dependency graph.

The graph is a direct, one-hop edge list: every import statement of every
file becomes one ``source → target`` edge. There is no cycle detection, no
transitive closure, and no resolution of module names back to files; callers
that need a resolved order can post-process :class:`DependencyGraph`.

Repeated imports are kept as repeated edges so the edge count always equals
the number of import statements. Include statements (submodules) can be
added as ``include`` edges when requested.

Example::

    from yang_schema_api.graph import DependencyGraphBuilder

    graph = DependencyGraphBuilder().build({"b.yang": ["mod-a"], "a.yang": []})
    [n.id for n in graph.nodes]   # ['b.yang', 'mod-a', 'a.yang']
    graph.edges[0].to_dict()      # {'source': 'b.yang', 'target': 'mod-a', 'kind': 'import'}
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

from .models import DependencyGraph, GraphEdge, GraphNode


class DependencyGraphBuilder:
    def build(
        self,
        per_file_imports: Mapping[str, Sequence[str]],
        per_file_includes: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> DependencyGraph:
        """Build the graph.

        Args:
            per_file_imports: filename → imported module names (declaration order).
            per_file_includes: optional filename → included submodule names;
                produces ``include`` edges after the import edges of each file.

        Returns:
            DependencyGraph with deduplicated nodes (first-seen order) and one
            edge per import/include statement.
        """
        graph = DependencyGraph()
        seen: Dict[str, GraphNode] = {}

        def ensure(node_id: str) -> None:
            if node_id not in seen:
                seen[node_id] = GraphNode(id=node_id, label=node_id)
                graph.nodes.append(seen[node_id])

        filenames = list(per_file_imports)
        for filename in per_file_includes or {}:
            if filename not in per_file_imports:
                filenames.append(filename)

        for filename in filenames:
            ensure(filename)
            for imported in per_file_imports.get(filename, ()):
                ensure(imported)
                graph.edges.append(GraphEdge(source=filename, target=imported, kind="import"))
            if per_file_includes:
                for included in per_file_includes.get(filename, ()):
                    ensure(included)
                    graph.edges.append(GraphEdge(source=filename, target=included, kind="include"))
        return graph


def build_dependency_graph(
    per_file_imports: Mapping[str, Sequence[str]],
    per_file_includes: Optional[Mapping[str, Sequence[str]]] = None,
) -> DependencyGraph:
    return DependencyGraphBuilder().build(per_file_imports, per_file_includes)
