"""Extract module header and cross-reference metadata.

Two sources feed :class:`~yang_schema_api.models.ModuleMetadata`:

* pyang statements (primary parser): :meth:`MetadataExtractor.from_statement`
  reads ``import``/``include``/``revision`` substatements and the header
  statements of the module.
* the parsed root :class:`~yang_schema_api.models.SchemaNode` (either parser):
  :meth:`MetadataExtractor.enrich` copies header values recorded in the
  root node's ``properties`` into the metadata where they are still missing.

Grammar engines expose repeated substatements either as one object or as a
sequence depending on cardinality; :func:`as_list` normalizes both shapes
before names and dates are read.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Optional

from .models import ModuleMetadata, ParseResult

HEADER_FIELDS = {
    "namespace": "namespace",
    "prefix": "prefix",
    "yang-version": "yang_version",
    "organization": "organization",
    "contact": "contact",
}


def as_list(value: Any) -> List[Any]:
    """Normalize ``None`` / single object / sequence into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def statement_arg(stmt: Any, keyword: str) -> Optional[str]:
    """Return the argument of the first ``keyword`` substatement, if any."""
    if stmt is None:
        return None
    sub = stmt.search_one(keyword)
    return sub.arg if sub is not None else None


class MetadataExtractor:
    def from_statement(self, module: Any, filename: str) -> ModuleMetadata:
        """Build metadata from a pyang ``module``/``submodule`` statement.

        Submodules have no ``prefix`` of their own; the prefix declared in
        ``belongs-to`` is used instead.
        """
        prefix = statement_arg(module, "prefix")
        if prefix is None:
            prefix = statement_arg(module.search_one("belongs-to"), "prefix")
        return ModuleMetadata(
            filename=filename,
            imports=[imp.arg for imp in as_list(module.search("import"))],
            includes=[inc.arg for inc in as_list(module.search("include"))],
            revisions=[rev.arg for rev in as_list(module.search("revision"))],
            namespace=statement_arg(module, "namespace"),
            prefix=prefix,
            module=module.arg,
            yang_version=statement_arg(module, "yang-version"),
            organization=statement_arg(module, "organization"),
            contact=statement_arg(module, "contact"),
        )

    def enrich(self, result: ParseResult) -> ParseResult:
        """Return ``result`` with metadata gaps filled from its first root node.

        Values already present in the metadata win; the result is returned
        unchanged when there is no root module.
        """
        if not result.modules:
            return result
        root = result.modules[0]
        updates = {}
        if result.metadata.module is None:
            updates["module"] = root.name
        for key, attr in HEADER_FIELDS.items():
            value = root.properties.get(key)
            if value is not None and getattr(result.metadata, attr) is None:
                updates[attr] = value
        if not updates:
            return result
        return replace(result, metadata=replace(result.metadata, **updates))
