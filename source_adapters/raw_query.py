"""
source_adapters/raw_query.py

Concrete Strategy: RawQueryAdapter
──────────────────────────────────
Runs a plain SQL query and serializes the whole result set as a JSON array
of row objects:

    select empno, ename, comm from emp

becomes

    [{"empno":7369,"ename":"SMITH","comm":null}, ...]

Property names are the column names exactly as the driver reports them.
NULL columns become JSON null (never ""), so consumers can tell a missing
value from an empty string. A query with no rows yields [].

The query context and the JSON sink are released on every exit path.
"""

import logging

from injection_errors import InjectionError, QueryExecutionError

from .base import InjectionRequest, SourceAdapter, SourceKind
from .json_writer import JsonWriter
from .query_executor import QueryExecutor

logger = logging.getLogger(__name__)


class RawQueryAdapter(SourceAdapter):
    """
    Args:
        executor : QueryExecutor used to run the statement.
    """

    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    @property
    def kind(self) -> SourceKind:
        return SourceKind.RAW_QUERY

    def produce(self, request: InjectionRequest) -> str:
        writer = JsonWriter()
        context = None
        try:
            context = self._executor.open_query(request.query, request.binds)
            writer.open_array()
            row_count = writer.write_rows(context.columns, context)
            writer.close_array()
            payload = writer.get_output()
        except InjectionError:
            raise
        except Exception as exc:
            raise QueryExecutionError(
                f"[{request.name}] SQL query failed: {exc}"
            ) from exc
        finally:
            if context is not None:
                context.close()
            writer.free_output()

        logger.debug(
            "[%s] %d row(s) serialized, %d chars", request.name, row_count, len(payload),
        )
        return payload
