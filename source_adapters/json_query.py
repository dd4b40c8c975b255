"""
source_adapters/json_query.py

Concrete Strategy: JsonQueryAdapter
───────────────────────────────────
Runs a SQL query that builds the JSON document itself, e.g.

    select json_group_object(dname, deptno) from dept

and returns that single value as the payload. The statement must return
exactly one column and exactly one row; anything else is a
ContractViolationError. There is no silent fallback to {} when the query
comes back empty: merging nothing would hide an authoring error.

The value itself is not parsed. A column that holds something other than
JSON surfaces as a script error in the page.
"""

import logging

from injection_errors import ContractViolationError, InjectionError, QueryExecutionError

from .base import InjectionRequest, SourceAdapter, SourceKind
from .query_executor import QueryExecutor

logger = logging.getLogger(__name__)


class JsonQueryAdapter(SourceAdapter):
    """
    Args:
        executor : QueryExecutor used to run the statement.
    """

    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    @property
    def kind(self) -> SourceKind:
        return SourceKind.JSON_QUERY

    def produce(self, request: InjectionRequest) -> str:
        try:
            # Two rows are enough to tell "one" from "more than one".
            columns, rows = self._executor.fetch_rows(
                request.json_query, request.binds, max_rows=2,
            )
        except InjectionError:
            raise
        except Exception as exc:
            raise QueryExecutionError(
                f"[{request.name}] JSON query failed: {exc}"
            ) from exc

        if len(columns) != 1:
            raise ContractViolationError(
                f"[{request.name}] JSON query must return exactly 1 column, "
                f"got {len(columns)}"
            )
        if not rows:
            raise ContractViolationError(
                f"[{request.name}] JSON query returned no rows; exactly 1 is required"
            )
        if len(rows) > 1:
            raise ContractViolationError(
                f"[{request.name}] JSON query returned more than 1 row"
            )

        value = rows[0][0]
        if value is None:
            raise ContractViolationError(
                f"[{request.name}] JSON query returned NULL instead of a JSON document"
            )
        if isinstance(value, (bytes, bytearray, memoryview)):
            try:
                value = bytes(value).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ContractViolationError(
                    f"[{request.name}] JSON query returned binary data that is not UTF-8"
                ) from exc
        elif not isinstance(value, str):
            raise ContractViolationError(
                f"[{request.name}] JSON query returned a {type(value).__name__}, "
                "not JSON text"
            )
        if not value.strip():
            raise ContractViolationError(
                f"[{request.name}] JSON query returned an empty value instead of a JSON document"
            )

        logger.debug("[%s] JSON document of %d chars fetched", request.name, len(value))
        return value
