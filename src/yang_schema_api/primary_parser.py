"""Full-grammar YANG parsing through pyang, normalized to :class:`SchemaNode`.

pyang does the real work: tokenizing, grammar checks, import resolution and
validation. This module only adapts its output to the tree shape produced by
the fallback parser so that callers never care which parser ran.

Mapping rules (per declared schema substatement):
* ``description`` → ``SchemaNode.description``
* ``mandatory true`` → ``mandatory=True``
* ``config false`` → ``config=False`` (True otherwise)
* ``type`` name and its ``range`` / ``length`` / ``pattern`` plus
  ``default``, ``units``, ``status`` (and ``key`` for lists) → ``properties``
* module header statements (``namespace``, ``prefix``, ``yang-version``,
  ``organization``, ``contact``, ``belongs-to``) → root ``properties``

Engine messages (``ctx.errors``) become diagnostics; pyang's error levels
decide between ``error`` and ``warning``. Messages that concern other files
(for example an imported module found on the search path) keep the file
reference in the message and use line 0.

Example::

    from yang_schema_api.primary_parser import PrimaryParser

    result = PrimaryParser().parse(text, "example.yang")
    result.parser_used   # 'primary'
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pyang import context, error, repository

from .diagnostics import DiagnosticReporter, GrammarError
from .metadata import MetadataExtractor, as_list, statement_arg
from .models import NODE_TYPES, PARSER_PRIMARY, Diagnostic, ModuleMetadata, ParseResult, SchemaNode
from .tokenizer import StructuralTokenizer, split_statement, unquote

logger = logging.getLogger(__name__)

SCHEMA_KEYWORDS = (
    "container",
    "list",
    "leaf",
    "leaf-list",
    "choice",
    "case",
    "grouping",
    "rpc",
    "notification",
    "input",
    "output",
    "augment",
    "anydata",
    "anyxml",
)
TYPE_RESTRICTIONS = ("range", "length", "pattern")
NODE_PROPERTIES = ("default", "units", "status", "key")
HEADER_PROPERTIES = (
    "namespace",
    "prefix",
    "yang-version",
    "organization",
    "contact",
    "belongs-to",
)


DOCUMENT_HANDLE = "document"


@lru_cache(maxsize=256)
def declared_module(content: str) -> Optional[str]:
    """Return the module or submodule name declared by ``content``, if any."""
    for entry in StructuralTokenizer().tokenize(content).lines:
        keyword, argument, _ = split_statement(entry.text)
        if keyword in ("module", "submodule"):
            words = (unquote(argument) or "").split()
            if words:
                return words[0]
    return None


class DocumentRepository(repository.FileRepository):
    """pyang repository serving in-memory documents before the search path.

    Documents of one batch can import and include each other without being
    written to disk. Handles of in-memory documents are
    ``("document", filename)``; everything else is delegated to
    :class:`pyang.repository.FileRepository`. Revisions are reported as
    unknown so pyang reads them from the text when an import asks for one.
    """

    def __init__(
        self,
        documents: Mapping[str, str],
        exclude: Optional[str] = None,
        path: str = "",
        use_env: bool = True,
    ) -> None:
        self.documents: Dict[str, Tuple[str, str]] = {}
        for name, text in documents.items():
            if name == exclude:
                continue
            module = declared_module(text)
            if module:
                self.documents[name] = (module, text)
        super().__init__(path, use_env=use_env)

    def get_modules_and_revisions(self, ctx):
        entries = [
            (module, None, (DOCUMENT_HANDLE, name))
            for name, (module, _) in self.documents.items()
        ]
        return entries + list(super().get_modules_and_revisions(ctx))

    def get_module_from_handle(self, handle):
        if handle[0] == DOCUMENT_HANDLE:
            name = handle[1]
            return name, "yang", self.documents[name][1]
        return super().get_module_from_handle(handle)


class PrimaryParser:
    """Parse documents with pyang and map the result into a :class:`ParseResult`.

    Args:
        search_path: ``os.pathsep`` separated directories searched for
            imported/included modules.
        use_env: Also honour ``YANG_MODPATH`` and the modules installed with
            pyang when resolving imports.

    A fresh pyang context is created per document so results never depend on
    previously parsed documents. ``parse`` never raises.
    """

    def __init__(self, search_path: str = "", use_env: bool = True) -> None:
        self.search_path = search_path
        self.use_env = use_env
        self.reporter = DiagnosticReporter()
        self.extractor = MetadataExtractor()

    def parse(
        self,
        content: str,
        filename: str = "temp.yang",
        documents: Optional[Mapping[str, str]] = None,
    ) -> ParseResult:
        """Parse one document.

        ``documents`` maps filenames to the text of other documents (usually
        the rest of a batch); modules they declare resolve imports and
        includes ahead of the search path.
        """
        try:
            ctx = context.Context(
                DocumentRepository(
                    documents or {}, exclude=filename, path=self.search_path, use_env=self.use_env
                )
            )
            module = ctx.add_module(filename, content)
            if module is None:
                errors = self._engine_diagnostics(ctx.errors, filename)
                if not errors:
                    errors = [
                        self.reporter.from_exception(
                            GrammarError("Failed to parse YANG model - no model returned")
                        )
                    ]
                return self._failed(filename, errors)
            ctx.validate()
            root = self._to_node(module, header=True)
            metadata = self.extractor.from_statement(module, filename)
            errors = self._engine_diagnostics(ctx.errors, filename)
        except Exception as exc:
            logger.debug(f"pyang failed on {filename}: {exc}")
            issue = GrammarError(str(exc) or "Unknown parsing error")
            return self._failed(filename, [self.reporter.from_exception(issue)])

        logger.debug(f"Primary parsed {filename}: {len(errors)} diagnostic(s)")
        return ParseResult(
            valid=not self.reporter.has_errors(errors),
            metadata=metadata,
            tree={root.name: root},
            modules=[root],
            errors=errors,
            parser_used=PARSER_PRIMARY,
        )

    # ---------------- Internal helpers ---------------- #

    def _failed(self, filename: str, errors: List[Diagnostic]) -> ParseResult:
        return ParseResult(
            valid=False,
            metadata=ModuleMetadata(filename=filename),
            errors=errors,
            parser_used=PARSER_PRIMARY,
        )

    def _engine_diagnostics(self, engine_errors: Iterable[Any], filename: str) -> List[Diagnostic]:
        raw = []
        for pos, tag, args in engine_errors:
            message = error.err_to_str(tag, args)
            severity = "error" if error.is_error(error.err_level(tag)) else "warning"
            ref = getattr(pos, "ref", None)
            line = getattr(pos, "line", None) or 0
            if ref and ref != filename:
                message = f"{ref}: {message}"
                line = 0
            raw.append((line, message, severity))
        return self.reporter.merge([], self.reporter.normalize_all(raw))

    def _to_node(self, stmt: Any, header: bool = False) -> SchemaNode:
        keyword = stmt.keyword if isinstance(stmt.keyword, str) else "unknown"
        pos = getattr(stmt, "pos", None)
        node = SchemaNode(
            type=keyword if keyword in NODE_TYPES else "unknown",
            name=stmt.arg or keyword,
            line=getattr(pos, "line", None),
            description=statement_arg(stmt, "description"),
            mandatory=statement_arg(stmt, "mandatory") == "true",
            config=statement_arg(stmt, "config") != "false",
        )

        type_stmt = stmt.search_one("type")
        if type_stmt is not None:
            node.properties["type"] = type_stmt.arg
            for restriction in TYPE_RESTRICTIONS:
                value = statement_arg(type_stmt, restriction)
                if value is not None:
                    node.properties[restriction] = value
        for keyword_name in HEADER_PROPERTIES if header else NODE_PROPERTIES:
            value = statement_arg(stmt, keyword_name)
            if value is not None:
                node.properties[keyword_name] = value
        if header:
            prefix = statement_arg(stmt.search_one("belongs-to"), "prefix")
            if prefix is not None:
                node.properties.setdefault("prefix", prefix)

        for child in self._schema_children(stmt):
            node.children.append(self._to_node(child))
        return node

    @staticmethod
    def _schema_children(stmt: Any) -> List[Any]:
        return [
            sub
            for sub in as_list(getattr(stmt, "substmts", None))
            if isinstance(sub.keyword, str) and sub.keyword in SCHEMA_KEYWORDS
        ]


def parse_primary(
    content: str, filename: str = "temp.yang", search_path: Optional[str] = None
) -> ParseResult:
    """Parse ``content`` with a fresh :class:`PrimaryParser`."""
    return PrimaryParser(search_path or "").parse(content, filename)
