"""
source_adapters/query_executor.py

QueryExecutor — the SQL collaborator behind the query adapters.
───────────────────────────────────────────────────────────────
The adapters never talk to a database driver directly. They receive a
QueryExecutor and use two operations:

    open_query(sql, binds) -> QueryContext   cursor-like, must be closed
    fetch_rows(sql, binds, max_rows)         convenience: columns + rows

Automatic binding:
    Every ":name" placeholder in the statement (outside string literals,
    quoted identifiers and comments) is bound from the page-context
    mapping, matching names case-insensitively. A placeholder with no
    matching entry is bound to NULL, the way the page engine treats an
    item that has no session value.

SqliteQueryExecutor is the stock implementation on top of sqlite3. Any
other backend only has to subclass QueryExecutor and QueryContext.
"""

import logging
import re
import sqlite3
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from injection_errors import QueryExecutionError

logger = logging.getLogger(__name__)

# Rows pulled from the driver per round trip while iterating a context.
_FETCH_BATCH = 500

# String literals, quoted identifiers and comments; placeholders inside
# them are not binds.
_NON_CODE = re.compile(
    r"'(?:[^']|'')*'"
    r'|"(?:[^"]|"")*"'
    r"|--[^\n]*"
    r"|/\*.*?\*/",
    re.DOTALL,
)
_BIND = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")


def find_bind_names(sql: str) -> List[str]:
    """Return the distinct bind names used in *sql*, in order of appearance."""
    code = _NON_CODE.sub(" ", sql)
    names: List[str] = []
    for match in _BIND.finditer(code):
        if match.group(1) not in names:
            names.append(match.group(1))
    return names


def bind_parameters(sql: str, binds: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Build the named-parameter mapping for *sql* from the page context.

    Keys keep the spelling used in the statement; lookups into *binds* are
    case-insensitive; unmatched names map to None.
    """
    lookup = {str(key).upper(): value for key, value in (binds or {}).items()}
    parameters: Dict[str, Any] = {}
    for name in find_bind_names(sql):
        value = lookup.get(name.upper())
        if name.upper() not in lookup:
            logger.debug("Bind :%s has no value in the page context, using NULL", name)
        parameters[name] = value
    return parameters


# ─────────────────────────────────────────────────────────────────────────────
# Interfaces
# ─────────────────────────────────────────────────────────────────────────────

class QueryContext(ABC):
    """
    An open query result. Iterating yields row tuples in column order.
    Always close it (or use it as a context manager).
    """

    @property
    @abstractmethod
    def columns(self) -> List[str]:
        ...

    @abstractmethod
    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> "QueryContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class QueryExecutor(ABC):
    """Executes SQL on behalf of the query adapters."""

    @abstractmethod
    def open_query(self, sql: str, binds: Optional[Mapping[str, Any]] = None) -> QueryContext:
        """
        Execute *sql* with automatic binding and return an open context.

        Raises:
            QueryExecutionError: the statement could not be executed.
        """
        ...

    def fetch_rows(
        self,
        sql: str,
        binds: Optional[Mapping[str, Any]] = None,
        max_rows: Optional[int] = None,
    ) -> Tuple[List[str], List[Tuple[Any, ...]]]:
        """
        Run *sql* and return (columns, rows). With *max_rows* set, at most
        that many rows are fetched.
        """
        with self.open_query(sql, binds) as context:
            rows: List[Tuple[Any, ...]] = []
            for row in context:
                if max_rows is not None and len(rows) >= max_rows:
                    break
                rows.append(tuple(row))
            return context.columns, rows


# ─────────────────────────────────────────────────────────────────────────────
# SQLite implementation
# ─────────────────────────────────────────────────────────────────────────────

class SqliteQueryContext(QueryContext):
    """QueryContext over a sqlite3 cursor."""

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor
        self._columns = [d[0] for d in (cursor.description or ())]
        self._closed = False

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        while not self._closed:
            try:
                batch = self._cursor.fetchmany(_FETCH_BATCH)
            except sqlite3.Error as exc:
                raise QueryExecutionError(f"Fetching rows failed: {exc}") from exc
            if not batch:
                return
            for row in batch:
                yield tuple(row)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()


class SqliteQueryExecutor(QueryExecutor):
    """
    QueryExecutor backed by a sqlite3 connection.

    Args:
        connection : An open sqlite3.Connection, or a database path (the
                     executor then owns and closes the connection).
    """

    def __init__(self, connection: Union[sqlite3.Connection, str]) -> None:
        if isinstance(connection, sqlite3.Connection):
            self._connection = connection
            self._owns_connection = False
        else:
            self._connection = sqlite3.connect(connection, check_same_thread=False)
            self._owns_connection = True
        logger.debug(
            "SqliteQueryExecutor initialised | owns_connection=%s", self._owns_connection,
        )

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def open_query(self, sql: str, binds: Optional[Mapping[str, Any]] = None) -> SqliteQueryContext:
        parameters = bind_parameters(sql, binds)
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, parameters)
        except sqlite3.Error as exc:
            cursor.close()
            raise QueryExecutionError(f"Query failed: {exc}") from exc
        if cursor.description is None:
            cursor.close()
            raise QueryExecutionError("Statement did not return a result set")
        return SqliteQueryContext(cursor)

    def close(self) -> None:
        if self._owns_connection:
            self._connection.close()

    def __enter__(self) -> "SqliteQueryExecutor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
