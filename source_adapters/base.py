"""
source_adapters/base.py

Defines the core abstractions for the JSON payload sources.

Architecture Note:
    This module implements the Strategy Pattern. `SourceAdapter` is the
    abstract "strategy" interface; RawQueryAdapter, JsonQueryAdapter,
    ProceduralJsonAdapter and StaticJsonAdapter are the concrete strategies.
    JsonObjectLoader (loader.py) picks one per request from
    `InjectionRequest.source`. Every strategy honours the same output
    contract: a complete, serialized JSON document as a str.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from injection_errors import ConfigurationError
from script_emitter.emitter import parse_target_path


class SourceKind(Enum):
    """
    Where the JSON payload comes from. The values are the attribute codes
    stored by the page plugin, and are what the CLI and HTTP service
    accept.
    """
    RAW_QUERY = "sql"
    JSON_QUERY = "jsonsql"
    PROCEDURAL_JSON = "plsql"
    STATIC_JSON = "static"

    @classmethod
    def parse(cls, value: Union[str, "SourceKind"]) -> "SourceKind":
        if isinstance(value, cls):
            return value
        normalised = str(value).strip().lower()
        for kind in cls:
            if normalised in (kind.value, kind.name.lower()):
                return kind
        raise ConfigurationError(
            f"Unknown source {value!r}; expected one of "
            + ", ".join(kind.value for kind in cls)
        )


# A procedural block is either Python source text or a callable that
# receives the JSON writer.
ProceduralBlock = Union[str, Callable[..., Any]]

# Which request field carries the source for each kind.
_SOURCE_FIELDS = {
    SourceKind.RAW_QUERY: "query",
    SourceKind.JSON_QUERY: "json_query",
    SourceKind.PROCEDURAL_JSON: "procedural_block",
    SourceKind.STATIC_JSON: "static_text",
}


@dataclass
class InjectionRequest:
    """
    Configuration for one injection, built once per page render.

    Attributes:
        source           : Which adapter produces the payload.
        target_path      : Dotted global variable path, e.g. "myApp.data".
        query            : SQL for RAW_QUERY (rows become an array of objects).
        json_query       : SQL for JSON_QUERY (one row, one column of JSON).
        procedural_block : Code for PROCEDURAL_JSON (writes via the JSON writer).
        static_text      : Literal JSON for STATIC_JSON.
        binds            : Page-context values for automatic bind substitution.
        name             : Component name used in logs and error messages.
    """
    source: SourceKind
    target_path: str
    query: Optional[str] = None
    json_query: Optional[str] = None
    procedural_block: Optional[ProceduralBlock] = None
    static_text: Optional[str] = None
    binds: Mapping[str, Any] = field(default_factory=dict)
    name: str = "Load JSON Object"

    def __post_init__(self) -> None:
        self.source = SourceKind.parse(self.source)

    @property
    def source_field(self) -> str:
        return _SOURCE_FIELDS[self.source]

    @property
    def source_value(self) -> Optional[ProceduralBlock]:
        """The populated field selected by `source`."""
        return getattr(self, self.source_field)

    def validate(self) -> None:
        """
        Raise ConfigurationError unless the target path is valid and the
        field selected by `source` is the only populated source field.
        """
        parse_target_path(self.target_path)

        extra = [
            name for kind, name in _SOURCE_FIELDS.items()
            if kind is not self.source and getattr(self, name) is not None
        ]
        if extra:
            raise ConfigurationError(
                f"[{self.name}] source '{self.source.value}' uses "
                f"'{self.source_field}' only; also set: {', '.join(extra)}"
            )

        value = self.source_value
        if value is None:
            raise ConfigurationError(
                f"[{self.name}] source '{self.source.value}' requires '{self.source_field}'"
            )
        if isinstance(value, str):
            if not value.strip():
                raise ConfigurationError(
                    f"[{self.name}] '{self.source_field}' is blank"
                )
        elif not (self.source is SourceKind.PROCEDURAL_JSON and callable(value)):
            raise ConfigurationError(
                f"[{self.name}] '{self.source_field}' must be text, "
                f"got {type(value).__name__}"
            )


class SourceAdapter(ABC):
    """
    Abstract base class (the Strategy Interface) for all payload sources.

    Every concrete adapter implements `produce()` and exposes `kind` and
    `name` so the loader can route requests and log which adapter ran.
    Any resource an adapter acquires must be released before produce()
    returns or raises.
    """

    @abstractmethod
    def produce(self, request: InjectionRequest) -> str:
        """
        Obtain the JSON payload for *request*.

        Returns:
            Serialized JSON text, embedded verbatim by the emitter.
        """
        ...

    @property
    @abstractmethod
    def kind(self) -> SourceKind:
        """The SourceKind this adapter serves."""
        ...

    @property
    def name(self) -> str:
        return type(self).__name__
