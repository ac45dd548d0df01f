"""YANG Schema API
==================

Parsing toolkit and service layer for **YANG** schema documents: navigable
schema trees, line-precise diagnostics, and cross-document dependency graphs,
delivered in-process or through FastAPI endpoints.

Key capabilities
----------------
- Full-grammar parsing through pyang, normalized into
  :class:`~yang_schema_api.models.SchemaNode` trees.
- A tolerant line-oriented fallback parser that still yields a tree (and
  diagnostics) for incomplete or malformed documents.
- Reconciliation of both parsers with merged diagnostics.
- Batch parsing with an import/include dependency graph.
- In-process result caching and performance instrumentation.

Design principles
-----------------
1. **Failures are data** – parsers never raise for document content; every
   problem is a :class:`~yang_schema_api.models.Diagnostic`.
2. **Interchangeable strategies** – the coordinator only relies on
   ``parse(content, filename) -> ParseResult``.
3. **Deterministic results** – identical input and configuration give
   identical results, which makes them safe to cache.

Minimal quick start
-------------------
>>> from yang_schema_api import ParseCoordinator
>>> result = ParseCoordinator().parse_document(open("example.yang").read(), "example.yang")
>>> [node.name for node in result.modules[0].iter_nodes()][:5]

FastAPI application instance (for ASGI servers like uvicorn):
>>> from yang_schema_api.app import app  # noqa: F401

Public surface
--------------
Only a curated subset is exported at the package level to keep the import
surface stable; advanced modules can be imported explicitly.
"""

__version__ = "0.1.0"

from .coordinator import ParseCoordinator, ParserConfig
from .fallback_parser import parse_fallback
from .graph import build_dependency_graph
from .models import Diagnostic, ModuleMetadata, ParseResult, SchemaNode
from .primary_parser import parse_primary

__all__ = [
    "Diagnostic",
    "ModuleMetadata",
    "ParseCoordinator",
    "ParseResult",
    "ParserConfig",
    "SchemaNode",
    "build_dependency_graph",
    "parse_fallback",
    "parse_primary",
]
