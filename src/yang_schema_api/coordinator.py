"""Reconcile the primary and fallback parsers and parse document batches.

The coordinator depends only on the :class:`DocumentParser` capability
(``parse(content, filename, documents) -> ParseResult``); the pyang adapter and
the recovery parser are interchangeable strategies.

Reconciliation rule for one document:

1. Run the primary parser (skipped entirely when ``enable_primary`` is off).
2. If the primary result is invalid *and* carries diagnostics, also run the
   fallback parser.
3. If the fallback found at least one module while the primary found none,
   the fallback result supersedes (``parser_used="fallback"``). Otherwise the
   primary result is kept, even when invalid: its diagnostics are usually
   more precise.
4. Diagnostics of both runs are merged, kept result first, duplicates (same
   line and message) dropped.
5. :class:`~yang_schema_api.metadata.MetadataExtractor` fills header fields.

Example::

    from yang_schema_api.coordinator import ParseCoordinator, ParserConfig

    coordinator = ParseCoordinator(ParserConfig(cache_results=False))
    result = coordinator.parse_document("module m { }", "m.yang")
    batch = coordinator.parse_batch([{"name": "m.yang", "content": "..."}])
    batch.summary   # {'totalModules': 1, 'validModules': ..., 'totalErrors': ...}
"""

from __future__ import annotations

import copy
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from .cache import ResultCache
from .diagnostics import DiagnosticReporter
from .fallback_parser import FallbackParser
from .graph import DependencyGraphBuilder
from .metadata import MetadataExtractor
from .models import PARSER_FALLBACK, BatchResult, ParseResult
from .monitoring import PerformanceMonitor, get_monitor
from .primary_parser import PrimaryParser

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "temp.yang"


@dataclass
class ParserConfig:
    """Configuration for document parsing.

    Args:
        enable_primary: Run the pyang backed parser first. When False only the
            fallback parser runs.
        search_path: ``os.pathsep`` separated directories pyang searches for
            imported modules.
        use_env_search_path: Also search ``YANG_MODPATH`` and pyang's bundled
            modules.
        max_workers: Thread pool size for batch parsing; 1 parses sequentially.
        cache_results: Memoize results by content, filename and configuration.
        cache_ttl: Lifetime of memoized results in seconds.
        include_edges: Add ``include`` edges to batch dependency graphs.
    """

    enable_primary: bool = True
    search_path: str = ""
    use_env_search_path: bool = False
    max_workers: int = 1
    cache_results: bool = True
    cache_ttl: float = 300.0
    include_edges: bool = False

    def fingerprint(self) -> str:
        return ",".join(f"{key}={value}" for key, value in sorted(asdict(self).items()))


def load_parser_config(config_str: Optional[str] = None) -> ParserConfig:
    """Build a :class:`ParserConfig` from ``YANG_PARSER_CONFIG``.

    The value is a comma separated ``key=value`` list, for example
    ``enable_primary=false,max_workers=4``. Unknown keys are ignored; values
    are coerced to the type of the field default.
    """
    if config_str is None:
        config_str = os.getenv("YANG_PARSER_CONFIG", "")
    config = ParserConfig()

    if config_str:
        defaults = {f.name: getattr(config, f.name) for f in fields(config)}
        for pair in config_str.split(","):
            if "=" not in pair:
                continue
            key, value = pair.split("=", 1)
            key = key.strip()
            value = value.strip()
            if key not in defaults:
                logger.warning(f"Ignoring unknown parser option: {key}")
                continue
            default = defaults[key]
            if isinstance(default, bool):
                setattr(config, key, value.lower() == "true")
            elif key.startswith("max_") or isinstance(default, int):
                setattr(config, key, int(value))
            elif isinstance(default, float):
                setattr(config, key, float(value))
            else:
                setattr(config, key, value)

    return config


class DocumentParser(Protocol):
    def parse(
        self,
        content: str,
        filename: str = DEFAULT_FILENAME,
        documents: Optional[Mapping[str, str]] = None,
    ) -> ParseResult:
        ...


class ParseCoordinator:
    """Run the parsing strategies for single documents and batches.

    Args:
        config: Parser configuration; defaults to :class:`ParserConfig`.
        primary: Primary strategy; a :class:`PrimaryParser` built from
            ``config`` when omitted.
        fallback: Recovery strategy; :class:`FallbackParser` when omitted.
        cache: Result cache. When omitted and ``config.cache_results`` is set,
            a private :class:`ResultCache` is created.
        monitor: Performance monitor receiving parse statistics.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        primary: Optional[DocumentParser] = None,
        fallback: Optional[DocumentParser] = None,
        cache: Optional[ResultCache] = None,
        monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        self.config = config or ParserConfig()
        self.primary = primary or PrimaryParser(
            self.config.search_path, use_env=self.config.use_env_search_path
        )
        self.fallback = fallback or FallbackParser()
        if cache is None and self.config.cache_results:
            cache = ResultCache(default_ttl=self.config.cache_ttl, monitor=monitor)
        self.cache = cache if self.config.cache_results else None
        self.monitor = monitor or get_monitor()
        self.reporter = DiagnosticReporter()
        self.extractor = MetadataExtractor()
        self.graph_builder = DependencyGraphBuilder()

    def parse_document(
        self,
        content: str,
        filename: Optional[str] = None,
        documents: Optional[Mapping[str, str]] = None,
    ) -> ParseResult:
        """Parse one document; never raises for document content.

        ``documents`` maps names to the text of sibling documents whose
        modules may be imported or included by ``content``. Every call
        returns a result the caller may mutate freely, cached or not.
        """
        filename = filename or DEFAULT_FILENAME
        key = None
        if self.cache is not None:
            siblings = sorted((documents or {}).items())
            key = self.cache.make_key(content, filename, self.config.fingerprint(), siblings)
            cached = self.cache.get(key)
            if cached is not None:
                return copy.deepcopy(cached)

        start_time = time.time()
        result, fallback_attempted = self._reconcile(content, filename, documents)
        result = self.extractor.enrich(result)
        self.monitor.record_parse(
            result.parser_used,
            result.valid,
            time.time() - start_time,
            fallback_attempted=fallback_attempted,
        )

        if key is not None:
            self.cache.set(key, copy.deepcopy(result), ttl=self.config.cache_ttl)
        return result

    def parse_batch(
        self, files: Sequence[Mapping[str, Any]], max_workers: Optional[int] = None
    ) -> BatchResult:
        """Parse ``{name, content}`` entries and build their dependency graph.

        Results keep input order. Each document is parsed with the rest of the
        batch available for import resolution, so modules of one batch need
        not be on the search path. With more than one worker, documents are
        parsed on a thread pool; the dependency map and graph are built on the
        calling thread once all results are in.
        """
        workers = max_workers if max_workers is not None else self.config.max_workers
        entries = [self._entry(item) for item in files]
        documents = dict(entries)

        if workers > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(
                    executor.map(
                        lambda entry: self.parse_document(entry[1], entry[0], documents), entries
                    )
                )
        else:
            results = [self.parse_document(content, name, documents) for name, content in entries]

        dependencies: Dict[str, List[str]] = {}
        includes: Dict[str, List[str]] = {}
        for result in results:
            dependencies[result.filename] = list(result.metadata.imports)
            includes[result.filename] = list(result.metadata.includes)

        graph = self.graph_builder.build(
            dependencies, includes if self.config.include_edges else None
        )
        logger.debug(
            f"Batch parsed {len(results)} document(s): "
            f"{len(graph.nodes)} node(s), {len(graph.edges)} edge(s)"
        )
        return BatchResult(files=results, dependencies=dependencies, graph=graph)

    # ---------------- Internal helpers ---------------- #

    def _reconcile(
        self, content: str, filename: str, documents: Optional[Mapping[str, str]] = None
    ) -> Tuple[ParseResult, bool]:
        if not self.config.enable_primary:
            return self.fallback.parse(content, filename), False

        primary = self.primary.parse(content, filename, documents)
        if primary.valid or not primary.errors:
            return primary, False

        fallback = self.fallback.parse(content, filename)
        if fallback.modules and not primary.modules:
            logger.warning(
                f"Primary parser produced no module for {filename}; "
                f"using fallback result ({len(fallback.modules)} module(s))"
            )
            kept, other = replace(fallback, parser_used=PARSER_FALLBACK), primary
        else:
            kept, other = primary, fallback

        errors = self.reporter.merge(kept.errors, other.errors)
        return replace(kept, errors=errors), True

    @staticmethod
    def _entry(item: Mapping[str, Any]) -> Tuple[str, str]:
        name = item.get("name") or item.get("filename") or DEFAULT_FILENAME
        content = item.get("content")
        return str(name), content if isinstance(content, str) else ""
