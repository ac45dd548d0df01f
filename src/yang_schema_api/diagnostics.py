"""Normalize parser problems into uniform :class:`Diagnostic` records.

Both parsers report problems in their own shape: the fallback parser knows a
line and a message, pyang hands back ``(position, tag, args)`` tuples, and
unexpected failures surface as exceptions. ``DiagnosticReporter`` turns all
of them into ``{line, message, severity}`` records so callers only ever deal
with one representation.

Error taxonomy:
* ``StructuralError`` – unmatched braces, missing module declaration.
  Recoverable; parsing continues to completion.
* ``GrammarError`` – the grammar engine rejected the document outright.
* ``ValidationWarning`` – reserved for semantic checks (severity ``warning``).

These are exception classes so internal code can raise them at the point of
detection, but no parser lets them escape its ``parse`` method: they are
converted with :meth:`DiagnosticReporter.from_exception`.

Example::

    reporter = DiagnosticReporter()
    diag = reporter.normalize({"line": "4", "message": "oops", "severity": "WARN"})
    diag.severity   # 'warning'
    reporter.merge([diag], [diag])   # duplicates dropped
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .models import SEVERITIES, Diagnostic

SEVERITY_ALIASES = {
    "err": "error",
    "fatal": "error",
    "critical": "error",
    "major": "error",
    "warn": "warning",
    "minor": "warning",
    "information": "info",
    "informational": "info",
    "note": "info",
    "hint": "info",
}


class ParseIssue(Exception):
    """Base class for problems detected while parsing a document."""

    severity = "error"

    def __init__(self, message: str, line: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.line = line


class StructuralError(ParseIssue):
    """Brace imbalance, missing module declaration, unterminated literals."""


class GrammarError(ParseIssue):
    """The grammar engine rejected the document."""


class ValidationWarning(ParseIssue):
    """Semantic observation that does not invalidate the document."""

    severity = "warning"


def normalize_severity(value: Optional[str]) -> str:
    """Map free-form severity labels onto ``error``/``warning``/``info``.

    Unknown labels are treated as errors so nothing is silently downgraded.
    """
    if not value:
        return "error"
    lowered = str(value).strip().lower()
    lowered = SEVERITY_ALIASES.get(lowered, lowered)
    return lowered if lowered in SEVERITIES else "error"


class DiagnosticReporter:
    """Build, normalize and combine diagnostics."""

    def error(self, line: int, message: str) -> Diagnostic:
        return Diagnostic(line=max(int(line), 0), message=message, severity="error")

    def from_exception(
        self, exc: BaseException, line: int = 1, prefix: str = ""
    ) -> Diagnostic:
        """Convert an exception into a diagnostic.

        ``ParseIssue`` subclasses carry their own line and severity; any other
        exception becomes an error at ``line`` with its message (or class name
        when the message is empty).
        """
        if isinstance(exc, ParseIssue):
            return Diagnostic(
                line=max(exc.line, 0),
                message=f"{prefix}{exc.message}",
                severity=exc.severity,
            )
        message = str(exc) or exc.__class__.__name__
        return Diagnostic(line=line, message=f"{prefix}{message}", severity="error")

    def normalize(self, raw: Any) -> Diagnostic:
        """Coerce a loosely shaped problem report into a :class:`Diagnostic`.

        Accepts a ``Diagnostic``, a mapping with ``line``/``message``/
        ``severity`` keys, a ``(line, message[, severity])`` tuple, an
        exception, or any other object (stringified at line 1).
        """
        if isinstance(raw, Diagnostic):
            return Diagnostic(
                line=max(raw.line, 0),
                message=raw.message,
                severity=normalize_severity(raw.severity),
            )
        if isinstance(raw, BaseException):
            return self.from_exception(raw)
        if isinstance(raw, dict):
            return Diagnostic(
                line=_coerce_line(raw.get("line")),
                message=str(raw.get("message") or "Unknown parsing error"),
                severity=normalize_severity(raw.get("severity")),
            )
        if isinstance(raw, (tuple, list)) and len(raw) >= 2:
            severity = raw[2] if len(raw) > 2 else None
            return Diagnostic(
                line=_coerce_line(raw[0]),
                message=str(raw[1]),
                severity=normalize_severity(severity),
            )
        return Diagnostic(line=1, message=str(raw), severity="error")

    def normalize_all(self, items: Iterable[Any]) -> List[Diagnostic]:
        return [self.normalize(item) for item in items]

    def merge(
        self, first: Iterable[Diagnostic], second: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Concatenate two diagnostic lists keeping order and dropping repeats.

        Two diagnostics are the same when line and message match.
        """
        merged: List[Diagnostic] = []
        seen = set()
        for diag in list(first) + list(second):
            key = (diag.line, diag.message)
            if key in seen:
                continue
            seen.add(key)
            merged.append(diag)
        return merged

    @staticmethod
    def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
        return any(diag.severity == "error" for diag in diagnostics)

    @staticmethod
    def summarize(diagnostics: Iterable[Diagnostic]) -> Dict[str, int]:
        counts = {severity: 0 for severity in SEVERITIES}
        for diag in diagnostics:
            counts[normalize_severity(diag.severity)] += 1
        return counts


def _coerce_line(value: Any) -> int:
    try:
        line = int(value)
    except (TypeError, ValueError):
        return 1
    return max(line, 0)
