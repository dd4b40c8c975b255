"""
injection_errors.py

Error taxonomy shared by the script emitter and the source adapters.

    InjectionError
      ├── ConfigurationError      bad/missing target path or source field
      ├── QueryExecutionError     a SQL statement failed
      ├── ContractViolationError  a JSON query did not return 1 row × 1 column
      └── ExecutionError          a procedural block failed
            └── JsonWriterError   the JSON sink was misused

None of these are retried. Query and procedure failures are authoring or
environment errors, never transient ones.
"""


class InjectionError(Exception):
    """Base class for every failure raised while building an injection."""


class ConfigurationError(InjectionError):
    """The injection request is incomplete or its target path is invalid."""


class QueryExecutionError(InjectionError):
    """The underlying SQL statement raised an error."""


class ContractViolationError(InjectionError):
    """
    A JSON query broke its cardinality contract (exactly one row holding
    exactly one column).
    """


class ExecutionError(InjectionError):
    """A procedural JSON block raised, or produced no usable output."""


class JsonWriterError(ExecutionError):
    """The incremental JSON writer was driven in an invalid order."""
