"""Split raw YANG text into logical statements and track brace depth.

YANG statements end with ``;`` (simple statements) or open a ``{ ... }``
block. Real-world documents put several statements on one physical line
(``leaf l { type string; }``) or spread one statement over several
(``description\\n  "text";``). The tokenizer normalizes both cases into a
flat sequence of :class:`LogicalLine` fragments:

* text up to and including ``{``
* text up to and including ``;``
* a lone ``}``

Quoted strings are copied verbatim (braces and semicolons inside them do not
count), and ``//`` / ``/* */`` comments are dropped. A newline ends a
fragment that has no terminator yet unless the next significant character
continues it (``{``, a quote, or ``+`` for string concatenation); this keeps
the line-oriented recovery behaviour for documents with missing semicolons.

Example::

    doc = StructuralTokenizer().tokenize('module m { leaf l { type string; } }')
    [l.text for l in doc.lines]
    # ['module m {', 'leaf l {', 'type string;', '}', '}']
    doc.depth   # 0
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

STATEMENT_RE = re.compile(
    r"^(?P<keyword>[A-Za-z_][\w\-.]*(?::[A-Za-z_][\w\-.]*)?)"
    r"(?:\s+(?P<arg>.*?))?\s*(?P<term>[{;])?$",
    re.DOTALL,
)
QUOTED_RE = re.compile(r'"((?:[^"\\]|\\.)*)"|\'([^\']*)\'', re.DOTALL)
ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}
CONTINUATION_CHARS = "{\"'+"


@dataclass
class LogicalLine:
    """One statement fragment.

    Attributes:
        text: Fragment text, stripped (``'container c {'``, ``'type string;'``, ``'}'``).
        line: 1-based physical line where the fragment starts.
        depth: Brace depth before the fragment.
        opens: Number of ``{`` in the fragment (0 or 1).
        closes: Number of ``}`` in the fragment (0 or 1).
    """

    text: str
    line: int
    depth: int = 0
    opens: int = 0
    closes: int = 0

    @property
    def keyword(self) -> Optional[str]:
        keyword, _, _ = split_statement(self.text)
        return keyword

    @property
    def argument(self) -> Optional[str]:
        _, argument, _ = split_statement(self.text)
        return argument


@dataclass
class TokenizedDocument:
    lines: List[LogicalLine] = field(default_factory=list)
    depth: int = 0
    line_count: int = 1
    unterminated: Optional[Tuple[int, str]] = None


class StructuralTokenizer:
    """Scan YANG text into :class:`LogicalLine` fragments."""

    def tokenize(self, content: str) -> TokenizedDocument:
        doc = TokenizedDocument(line_count=content.count("\n") + 1)
        buf: List[str] = []
        start = 1
        line = 1
        dangling = False
        i = 0
        n = len(content)

        def emit(opens: int = 0, closes: int = 0) -> None:
            text = "".join(buf).strip()
            buf.clear()
            if not text:
                return
            doc.lines.append(
                LogicalLine(text=text, line=start, depth=doc.depth, opens=opens, closes=closes)
            )
            doc.depth += opens - closes

        while i < n:
            ch = content[i]
            nxt = content[i + 1] if i + 1 < n else ""

            if ch == "\n":
                line += 1
                if buf:
                    dangling = True
                i += 1
                continue
            if ch in " \t\r\f\v":
                if buf and buf[-1] != " ":
                    buf.append(" ")
                i += 1
                continue
            if ch == "/" and nxt == "/":
                end = content.find("\n", i)
                i = n if end == -1 else end
                continue
            if ch == "/" and nxt == "*":
                end = content.find("*/", i + 2)
                if end == -1:
                    doc.unterminated = (line, "block comment")
                    line += content.count("\n", i)
                    break
                line += content.count("\n", i, end)
                i = end + 2
                continue

            if dangling:
                dangling = False
                if ch in CONTINUATION_CHARS:
                    if buf[-1] != " ":
                        buf.append(" ")
                else:
                    emit()
            if not buf:
                start = line

            if ch in "\"'":
                end = _string_end(content, i)
                if end is None:
                    doc.unterminated = (line, "string literal")
                    buf.append(content[i:])
                    line += content.count("\n", i)
                    break
                literal = content[i : end + 1]
                buf.append(literal)
                line += literal.count("\n")
                i = end + 1
                continue
            if ch == "{":
                buf.append("{")
                emit(opens=1)
            elif ch == ";":
                buf.append(";")
                emit()
            elif ch == "}":
                emit()
                start = line
                buf.append("}")
                emit(closes=1)
            else:
                buf.append(ch)
            i += 1

        emit()
        return doc


def _string_end(content: str, start: int) -> Optional[int]:
    """Return the index of the quote closing the literal opened at ``start``."""
    quote = content[start]
    i = start + 1
    n = len(content)
    while i < n:
        ch = content[i]
        if ch == "\\" and quote == '"':
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return None


def split_statement(text: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Split a fragment into ``(keyword, argument, terminator)``.

    ``'leaf mtu {'`` → ``('leaf', 'mtu', '{')``; ``'}'`` → ``(None, None, None)``.
    """
    match = STATEMENT_RE.match(text)
    if not match:
        return None, None, None
    arg = match.group("arg")
    return match.group("keyword"), (arg.strip() if arg else None), match.group("term")


def unquote(value: Optional[str]) -> Optional[str]:
    """Resolve a YANG argument to its string value.

    Quoted segments joined with ``+`` are concatenated; escape sequences in
    double-quoted strings are expanded. Unquoted arguments are returned
    stripped.
    """
    if value is None:
        return None
    value = value.strip()
    if not value or value[0] not in "\"'":
        return value
    parts = []
    for double, single in QUOTED_RE.findall(value):
        if double or not single:
            parts.append(re.sub(r"\\(.)", lambda m: ESCAPES.get(m.group(1), "\\" + m.group(1)), double))
        else:
            parts.append(single)
    return "".join(parts)
