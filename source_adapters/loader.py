"""
source_adapters/loader.py

JsonObjectLoader — the Strategy Pattern orchestrator.
──────────────────────────────────────────────────────
Owns one adapter per SourceKind and the ScriptEmitter. For every request:

  1. The request is validated (target path, populated source field).
  2. The adapter selected by `request.source` produces the full payload.
  3. Only then does the emitter write the fragment to the output stream.

Because the payload is complete before the first write, a failing query
or procedural block never leaves a half-written <script> element in the
page. Errors are logged here and propagated to the caller unchanged.
"""

import io
import logging
from typing import Dict, Iterable, Optional

from injection_errors import ConfigurationError, InjectionError
from script_emitter import DEFAULT_CHUNK_SIZE, ScriptEmitter
from script_emitter.chunked_output import TextSink

from .base import InjectionRequest, SourceAdapter, SourceKind
from .json_query import JsonQueryAdapter
from .procedural_json import ProceduralJsonAdapter
from .query_executor import QueryExecutor
from .raw_query import RawQueryAdapter
from .static_json import StaticJsonAdapter

logger = logging.getLogger(__name__)


def default_adapters(executor: Optional[QueryExecutor]) -> Iterable[SourceAdapter]:
    """The four stock adapters. The query adapters need an executor."""
    adapters = [ProceduralJsonAdapter(executor), StaticJsonAdapter()]
    if executor is not None:
        adapters += [RawQueryAdapter(executor), JsonQueryAdapter(executor)]
    return adapters


class JsonObjectLoader:
    """
    Routes injection requests to their source adapter and emits the result.

    Args:
        executor   : QueryExecutor for the query-based sources. Without one,
                     only procedural and static sources are available.
        emitter    : ScriptEmitter to use. Defaults to one rooted at `window`.
        adapters   : Override the adapter set (one per SourceKind; later
                     entries replace earlier ones of the same kind).
        chunk_size : Payload chunk size for the default emitter.

    Usage:
        loader = JsonObjectLoader(executor=SqliteQueryExecutor("app.db"))
        request = InjectionRequest(
            source=SourceKind.RAW_QUERY,
            query="select * from dept",
            target_path="myApp.departments",
        )
        loader.inject(request, response_stream)
    """

    def __init__(
        self,
        executor: Optional[QueryExecutor] = None,
        emitter: Optional[ScriptEmitter] = None,
        adapters: Optional[Iterable[SourceAdapter]] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._emitter = emitter or ScriptEmitter(chunk_size=chunk_size)
        self._adapters: Dict[SourceKind, SourceAdapter] = {}
        for adapter in (adapters if adapters is not None else default_adapters(executor)):
            self._adapters[adapter.kind] = adapter

        logger.debug(
            "JsonObjectLoader initialised | adapters=%s",
            ", ".join(a.name for a in self._adapters.values()),
        )

    def adapter_for(self, source: SourceKind) -> SourceAdapter:
        adapter = self._adapters.get(source)
        if adapter is None:
            raise ConfigurationError(
                f"No adapter is configured for source '{source.value}'"
                + (" (a query executor is required)"
                   if source in (SourceKind.RAW_QUERY, SourceKind.JSON_QUERY) else "")
            )
        return adapter

    def load(self, request: InjectionRequest) -> str:
        """Validate *request* and return its payload."""
        request.validate()
        adapter = self.adapter_for(request.source)

        logger.info(
            "[%s] Loading JSON for '%s' from source '%s' via %s",
            request.name, request.target_path, request.source.value, adapter.name,
        )
        try:
            payload = adapter.produce(request)
        except InjectionError as exc:
            logger.error("[%s] %s failed: %s", request.name, adapter.name, exc)
            raise
        return payload

    def inject(self, request: InjectionRequest, stream: TextSink) -> None:
        """Produce the payload and append the complete fragment to *stream*."""
        payload = self.load(request)
        self._emitter.emit(request.target_path, payload, stream)
        logger.info(
            "[%s] Injected %d chars into '%s'",
            request.name, len(payload), request.target_path,
        )

    def render(self, request: InjectionRequest) -> str:
        """Return the fragment as a string instead of writing it to a stream."""
        buffer = io.StringIO()
        self.inject(request, buffer)
        return buffer.getvalue()
