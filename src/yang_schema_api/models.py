"""Core data structures for representing parsed YANG documents.

These lightweight dataclasses are produced by the primary (pyang backed) and
fallback parsers and consumed by higher level layers (dependency graph
building, REST endpoints, CLI output). They intentionally avoid framework
dependencies so they can be serialized, cached, or transported easily.

Overview:
        * ``SchemaNode`` forms a tree mirroring the statement hierarchy of a
            YANG module (module → container → list → leaf ...).
        * ``Diagnostic`` is a single ``{line, message, severity}`` report.
        * ``ModuleMetadata`` captures header information (namespace, prefix)
            and the cross-document references (imports, includes, revisions).
        * ``ParseResult`` bundles all of the above for one document.
        * ``DependencyGraph`` is a flat node/edge list for a batch of documents.

Typical construction (simplified)::

        from yang_schema_api.models import SchemaNode

        hostname = SchemaNode(type="leaf", name="hostname", line=5,
                              properties={"type": "string"})
        system = SchemaNode(type="container", name="system", line=4,
                            children=[hostname])
        module = SchemaNode(type="module", name="example", line=1,
                            children=[system])

        [n.name for n in module.iter_nodes()]   # ['example', 'system', 'hostname']
        module.find("system/hostname").properties["type"]   # 'string'

Design notes:
        * ``SchemaNode`` keeps children in a plain list so output order matches
            declaration order in the source document.
        * ``to_dict`` produces stable keys to simplify client-side caching and
            hashing; ``ParseResult.to_dict`` uses the wire key ``parser`` for
            ``parser_used``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

NODE_TYPES = (
    "module",
    "submodule",
    "container",
    "list",
    "leaf",
    "leaf-list",
    "rpc",
    "notification",
    "choice",
    "case",
    "grouping",
    "input",
    "output",
    "augment",
    "anydata",
    "anyxml",
    "unknown",
)

SEVERITIES = ("error", "warning", "info")

PARSER_PRIMARY = "primary"
PARSER_FALLBACK = "fallback"


@dataclass
class Diagnostic:
    """A single parsing problem.

    Attributes:
        line: 1-based source line; 0 (or 1) for document-level problems.
        message: Human-readable description.
        severity: One of ``error``, ``warning``, ``info``.

    Example:
        >>> Diagnostic(line=3, message="Unexpected keyword").to_dict()
        {'line': 3, 'message': 'Unexpected keyword', 'severity': 'error'}
    """

    line: int
    message: str
    severity: str = "error"

    def to_dict(self) -> dict:
        return {"line": self.line, "message": self.message, "severity": self.severity}


@dataclass
class SchemaNode:
    """A YANG schema statement and its nested statements.

    Attributes:
        type: Statement keyword (see ``NODE_TYPES``); ``unknown`` otherwise.
        name: Statement argument (node identifier).
        line: 1-based line where the statement starts, when known.
        description: Text of the ``description`` substatement.
        mandatory: True when ``mandatory true`` is declared.
        config: False only when ``config false`` is declared.
        properties: Open map of type constraints and header values
            (``type``, ``range``, ``length``, ``pattern``, ``default``,
            ``units``, ``status``; ``namespace``/``prefix`` on modules).
        children: Nested nodes in declaration order.
    """

    type: str
    name: str
    line: Optional[int] = None
    description: Optional[str] = None
    mandatory: bool = False
    config: bool = True
    properties: Dict[str, Any] = field(default_factory=dict)
    children: List["SchemaNode"] = field(default_factory=list)

    def iter_nodes(self) -> "List[SchemaNode]":
        """Return a depth-first list of this node and all descendants.

        Example:
            >>> parent = SchemaNode(type="container", name="a")
            >>> parent.children.append(SchemaNode(type="leaf", name="b"))
            >>> [n.name for n in parent.iter_nodes()]
            ['a', 'b']
        """
        nodes: List[SchemaNode] = [self]
        for child in self.children:
            nodes.extend(child.iter_nodes())
        return nodes

    def find(self, path: str) -> Optional["SchemaNode"]:
        """Locate a descendant by slash separated names relative to this node.

        An empty path (or ``/``) returns the node itself.
        """
        current: Optional[SchemaNode] = self
        for part in [p for p in path.split("/") if p]:
            if current is None:
                return None
            current = next((c for c in current.children if c.name == part), None)
        return current

    def to_dict(self) -> dict:
        """Convert the node (recursively) into a JSON-serializable dictionary."""
        return {
            "type": self.type,
            "name": self.name,
            "line": self.line,
            "description": self.description,
            "mandatory": self.mandatory,
            "config": self.config,
            "properties": dict(self.properties),
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class ModuleMetadata:
    """Header and cross-reference information for one document.

    ``imports`` and ``includes`` keep duplicates and declaration order;
    ``revisions`` keep declaration order (conventionally most recent first).
    """

    filename: str
    imports: List[str] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    revisions: List[str] = field(default_factory=list)
    namespace: Optional[str] = None
    prefix: Optional[str] = None
    module: Optional[str] = None
    yang_version: Optional[str] = None
    organization: Optional[str] = None
    contact: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "imports": list(self.imports),
            "includes": list(self.includes),
            "revisions": list(self.revisions),
            "namespace": self.namespace,
            "prefix": self.prefix,
            "module": self.module,
            "yang_version": self.yang_version,
            "organization": self.organization,
            "contact": self.contact,
        }


@dataclass
class ParseResult:
    """Outcome of parsing a single document.

    A result is built once by a parser. Later stages (reconciliation, metadata
    enrichment) derive new instances with :func:`dataclasses.replace` instead
    of mutating a returned result.
    """

    valid: bool
    metadata: ModuleMetadata
    tree: Dict[str, SchemaNode] = field(default_factory=dict)
    modules: List[SchemaNode] = field(default_factory=list)
    errors: List[Diagnostic] = field(default_factory=list)
    parser_used: str = PARSER_PRIMARY

    @property
    def filename(self) -> str:
        return self.metadata.filename

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "tree": {name: node.to_dict() for name, node in self.tree.items()},
            "modules": [module.to_dict() for module in self.modules],
            "errors": [error.to_dict() for error in self.errors],
            "metadata": self.metadata.to_dict(),
            "parser": self.parser_used,
        }


@dataclass
class GraphNode:
    id: str
    label: str

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label}


@dataclass
class GraphEdge:
    source: str
    target: str
    kind: str = "import"

    def to_dict(self) -> dict:
        return {"source": self.source, "target": self.target, "kind": self.kind}


@dataclass
class DependencyGraph:
    """Direct (one-hop) dependency edges between documents and modules."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


@dataclass
class BatchResult:
    """Aggregate outcome of parsing several documents together."""

    files: List[ParseResult] = field(default_factory=list)
    dependencies: Dict[str, List[str]] = field(default_factory=dict)
    graph: DependencyGraph = field(default_factory=DependencyGraph)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "totalModules": len(self.files),
            "validModules": sum(1 for result in self.files if result.valid),
            "totalErrors": sum(len(result.errors) for result in self.files),
        }

    def to_dict(self) -> dict:
        return {
            "files": [
                {"filename": result.filename, **result.to_dict()}
                for result in self.files
            ],
            "dependencies": {name: list(imports) for name, imports in self.dependencies.items()},
            "graph": self.graph.to_dict(),
            "summary": self.summary,
        }
