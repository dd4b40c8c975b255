"""
source_adapters — the pluggable JSON payload sources.

Public API:
    JsonObjectLoader      : Orchestrator — use this from application code.
    InjectionRequest      : One injection's configuration.
    SourceKind            : Enum of the four payload sources.
    SourceAdapter         : Abstract base — subclass this to add a source.
    RawQueryAdapter       : SQL rows → JSON array of row objects.
    JsonQueryAdapter      : SQL returning one JSON document.
    ProceduralJsonAdapter : Code block writing through a JsonWriter.
    StaticJsonAdapter     : Literal JSON text.
    JsonWriter            : Incremental JSON capture sink.
    QueryExecutor         : Abstract SQL collaborator.
    SqliteQueryExecutor   : sqlite3-backed QueryExecutor.
"""

from .base import InjectionRequest, SourceAdapter, SourceKind
from .json_query import JsonQueryAdapter
from .json_writer import JsonWriter
from .loader import JsonObjectLoader
from .procedural_json import ProceduralJsonAdapter
from .query_executor import QueryContext, QueryExecutor, SqliteQueryExecutor
from .raw_query import RawQueryAdapter
from .static_json import StaticJsonAdapter

__all__ = [
    "InjectionRequest",
    "SourceAdapter",
    "SourceKind",
    "JsonObjectLoader",
    "RawQueryAdapter",
    "JsonQueryAdapter",
    "ProceduralJsonAdapter",
    "StaticJsonAdapter",
    "JsonWriter",
    "QueryContext",
    "QueryExecutor",
    "SqliteQueryExecutor",
]
