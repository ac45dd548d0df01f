"""Line-oriented recovery parser for YANG documents.

This parser does not implement the YANG grammar. It walks the logical lines
produced by :class:`~yang_schema_api.tokenizer.StructuralTokenizer`, matches a
small set of keywords at statement start, and attaches nodes to the current
parent using a stack. Because it never rejects a document outright, partially
written or malformed modules still yield an inspectable tree plus
diagnostics.

Keyword handling:
* ``module`` / ``submodule`` – new root; registered in ``modules`` and
  ``tree`` and pushed as the first parent.
* ``container``, ``list``, ``rpc``, ``notification``, ``grouping``,
  ``choice``, ``case``, ``input``, ``output``, ``augment`` – child of the
  current parent; pushed when they open a body.
* ``leaf``, ``leaf-list``, ``anydata``, ``anyxml`` – child of the current
  parent; never pushed.
* ``import`` / ``include`` / ``revision`` – recorded in metadata only.
* ``type``, ``range``, ``length``, ``pattern``, ``default``, ``units``,
  ``status``, ``key``, ``description``, ``mandatory``, ``config`` and module
  header statements – stored on the innermost enclosing node.

Brace handling:
Every ``{`` opens a scope. A ``}`` closes the innermost scope and pops the
parent stack only if that scope pushed a node, and never below index 1: the
first module stays in place, which bounds recovery from stray trailing
braces. Bodies of leaves, ``type`` statements, revisions, enums and other
non-structural statements only affect depth.

Validation after the scan:
* non-zero final depth → ``Unmatched braces detected. Depth: N`` at the
  last line
* unterminated string / block comment → error at its start line
* no module → ``No module or submodule declaration found`` at line 1

Typical usage::

    from yang_schema_api.fallback_parser import parse_fallback

    result = parse_fallback(open("example.yang").read(), "example.yang")
    if not result.valid:
        for diag in result.errors:
            print(diag.line, diag.message)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from .diagnostics import DiagnosticReporter, StructuralError
from .models import PARSER_FALLBACK, ModuleMetadata, ParseResult, SchemaNode
from .tokenizer import StructuralTokenizer, TokenizedDocument, split_statement, unquote

logger = logging.getLogger(__name__)

MODULE_KEYWORDS = ("module", "submodule")
SCOPED_KEYWORDS = (
    "container",
    "list",
    "rpc",
    "notification",
    "grouping",
    "choice",
    "case",
    "input",
    "output",
    "augment",
)
TERMINAL_KEYWORDS = ("leaf", "leaf-list", "anydata", "anyxml")
UNNAMED_KEYWORDS = ("input", "output")
METADATA_KEYWORDS = {"import": "imports", "include": "includes", "revision": "revisions"}
TYPE_RESTRICTIONS = ("range", "length", "pattern")
NODE_PROPERTIES = (
    "default",
    "units",
    "status",
    "key",
    "namespace",
    "yang-version",
    "organization",
    "contact",
)
TRANSPARENT_KEYWORDS = ("type", "belongs-to")


@dataclass
class _Scope:
    """An open ``{`` block.

    ``node`` owns the block (None for non-structural statements); ``pushed``
    records whether the node went onto the parent stack; ``through`` names the
    statement of a transparent block whose substatements describe the
    enclosing node (``type`` restrictions, ``belongs-to`` prefix).
    """

    node: Optional[SchemaNode] = None
    pushed: bool = False
    through: Optional[str] = None


class FallbackParser:
    """Tolerant parser producing a partial tree for any input.

    ``parse`` never raises; every failure is reported as a diagnostic with
    ``valid=False``.
    """

    def __init__(self, tokenizer: Optional[StructuralTokenizer] = None) -> None:
        self.tokenizer = tokenizer or StructuralTokenizer()
        self.reporter = DiagnosticReporter()

    def parse(
        self, content: str, filename: str = "unknown", documents: Optional[Mapping[str, str]] = None
    ) -> ParseResult:
        """Parse one document; other ``documents`` are never consulted."""
        result = ParseResult(
            valid=True,
            metadata=ModuleMetadata(filename=filename),
            parser_used=PARSER_FALLBACK,
        )
        try:
            doc = self.tokenizer.tokenize(content)
            self._scan(doc, result)
            for issue in self._structural_issues(doc, result):
                result.errors.append(self.reporter.from_exception(issue))
        except Exception as exc:
            logger.debug(f"Fallback parse of {filename} aborted: {exc}")
            result.errors.append(self.reporter.error(1, f"Parse error: {exc}"))

        result.valid = not self.reporter.has_errors(result.errors)
        logger.debug(
            f"Fallback parsed {filename}: {len(result.modules)} module(s), "
            f"{len(result.errors)} diagnostic(s)"
        )
        return result

    # ---------------- Internal helpers ---------------- #

    def _scan(self, doc: TokenizedDocument, result: ParseResult) -> None:
        stack: List[SchemaNode] = []
        scopes: List[_Scope] = []

        for entry in doc.lines:
            if entry.closes:
                self._close_scope(scopes, stack)
                continue

            keyword, argument, _ = split_statement(entry.text)
            scope = _Scope()

            if keyword in MODULE_KEYWORDS and argument:
                node = SchemaNode(type=keyword, name=_name(argument), line=entry.line)
                result.modules.append(node)
                result.tree[node.name] = node
                stack.append(node)
                scope = _Scope(node=node, pushed=True)

            elif keyword in METADATA_KEYWORDS and argument:
                getattr(result.metadata, METADATA_KEYWORDS[keyword]).append(_name(argument))

            elif keyword in SCOPED_KEYWORDS and (argument or keyword in UNNAMED_KEYWORDS):
                node = SchemaNode(
                    type=keyword,
                    name=_name(argument) if argument else keyword,
                    line=entry.line,
                )
                if stack:
                    stack[-1].children.append(node)
                if entry.opens:
                    stack.append(node)
                    scope = _Scope(node=node, pushed=True)

            elif keyword in TERMINAL_KEYWORDS and argument:
                node = SchemaNode(type=keyword, name=_name(argument), line=entry.line)
                if stack:
                    stack[-1].children.append(node)
                scope = _Scope(node=node)

            elif keyword is not None:
                self._apply_property(keyword, argument, scopes)
                if keyword in TRANSPARENT_KEYWORDS:
                    scope = _Scope(through=keyword)

            if entry.opens:
                scopes.append(scope)

    @staticmethod
    def _close_scope(scopes: List[_Scope], stack: List[SchemaNode]) -> None:
        if not scopes:
            return
        scope = scopes.pop()
        if scope.pushed and len(stack) > 1 and stack[-1] is scope.node:
            stack.pop()

    def _apply_property(
        self, keyword: str, argument: Optional[str], scopes: List[_Scope]
    ) -> None:
        value = unquote(argument)
        if value is None:
            return

        if keyword in TYPE_RESTRICTIONS:
            target = _owner(scopes, through=("type",))
            if target is not None:
                target.properties.setdefault(keyword, value)
            return
        if keyword == "prefix":
            target = _owner(scopes, through=("belongs-to",))
            if target is not None:
                target.properties.setdefault("prefix", value)
            return

        target = _owner(scopes)
        if target is None:
            return
        if keyword == "type":
            target.properties["type"] = _name(argument)
        elif keyword == "description":
            target.description = value
        elif keyword == "mandatory":
            target.mandatory = value == "true"
        elif keyword == "config":
            target.config = value != "false"
        elif keyword == "belongs-to":
            target.properties["belongs-to"] = _name(argument)
        elif keyword in NODE_PROPERTIES:
            target.properties[keyword] = value

    def _structural_issues(
        self, doc: TokenizedDocument, result: ParseResult
    ) -> List[StructuralError]:
        issues: List[StructuralError] = []
        if doc.depth != 0:
            issues.append(
                StructuralError(
                    f"Unmatched braces detected. Depth: {doc.depth}", line=doc.line_count
                )
            )
        if doc.unterminated is not None:
            line, what = doc.unterminated
            issues.append(
                StructuralError(f"Unterminated {what} starting at line {line}", line=line)
            )
        if not result.modules:
            issues.append(StructuralError("No module or submodule declaration found", line=1))
        return issues


def _owner(scopes: List[_Scope], through: Sequence[str] = ()) -> Optional[SchemaNode]:
    """Return the node owning the innermost scope, looking through the
    transparent blocks named in ``through``."""
    for scope in reversed(scopes):
        if scope.through is not None:
            if scope.through in through:
                continue
            return None
        return scope.node
    return None


def _name(argument: Optional[str]) -> str:
    value = unquote(argument) or ""
    parts = value.split()
    return parts[0] if parts else ""


def parse_fallback(content: str, filename: str = "unknown") -> ParseResult:
    """Parse ``content`` with a fresh :class:`FallbackParser`."""
    return FallbackParser().parse(content, filename)
