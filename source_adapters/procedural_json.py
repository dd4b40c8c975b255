"""
source_adapters/procedural_json.py

Concrete Strategy: ProceduralJsonAdapter
────────────────────────────────────────
Runs a trusted code block that builds its payload through a JsonWriter
sink, for structures a single SQL expression cannot produce.

A block is either Python source text, executed with these names in scope:

    json      the JsonWriter capturing the payload
    binds     the page-context values of the request
    executor  the QueryExecutor (may be None), for queries inside the block

    json.open_object()
    json.write("generated_by", "report")
    columns, rows = executor.fetch_rows("select * from dept")
    json.open_array("departments")
    json.write_rows(columns, rows)
    json.close_array()
    json.close_object()

or a callable, called as block(writer).

Whatever the block wrote is the payload. Exceptions raised by the block
are re-raised as ExecutionError; a block that writes nothing or leaves a
container open is an ExecutionError as well. The sink is freed on every
exit path.
"""

import logging
from typing import Optional

from injection_errors import ExecutionError, InjectionError

from .base import InjectionRequest, SourceAdapter, SourceKind
from .json_writer import JsonWriter
from .query_executor import QueryExecutor

logger = logging.getLogger(__name__)


class ProceduralJsonAdapter(SourceAdapter):
    """
    Args:
        executor : Optional QueryExecutor exposed to source-text blocks.
    """

    def __init__(self, executor: Optional[QueryExecutor] = None) -> None:
        self._executor = executor

    @property
    def kind(self) -> SourceKind:
        return SourceKind.PROCEDURAL_JSON

    def produce(self, request: InjectionRequest) -> str:
        writer = JsonWriter()
        try:
            self._run_block(request, writer)

            if writer.depth:
                raise ExecutionError(
                    f"[{request.name}] procedural block left {writer.depth} "
                    "JSON container(s) open"
                )
            if writer.is_empty:
                raise ExecutionError(
                    f"[{request.name}] procedural block did not write any JSON"
                )
            payload = writer.get_output()
        finally:
            writer.free_output()

        logger.debug("[%s] procedural block wrote %d chars", request.name, len(payload))
        return payload

    # ── Private helpers ───────────────────────────────────────────────────────

    def _run_block(self, request: InjectionRequest, writer: JsonWriter) -> None:
        block = request.procedural_block
        try:
            if callable(block):
                block(writer)
            else:
                code = compile(block, f"<{request.name}>", "exec")
                namespace = {
                    "__name__": "__procedural_json__",
                    "json": writer,
                    "binds": dict(request.binds),
                    "executor": self._executor,
                }
                exec(code, namespace)
        except InjectionError:
            raise
        except Exception as exc:
            raise ExecutionError(
                f"[{request.name}] procedural block raised "
                f"{type(exc).__name__}: {exc}"
            ) from exc
