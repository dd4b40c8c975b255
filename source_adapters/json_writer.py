"""
source_adapters/json_writer.py

JsonWriter — incremental, compact JSON builder used as a capture sink.
──────────────────────────────────────────────────────────────────────
Procedural blocks build their payload step by step instead of returning a
value:

    json.open_object()
    json.write("count", 3)
    json.open_array("items")
    json.write("a")
    json.close_array()
    json.close_object()

produces {"count":3,"items":["a"]}. The raw-query adapter uses the same
writer for its row array, so both share one mapping of database values to
JSON:

    None              → null
    bool              → true / false
    int, float        → number (NaN/Infinity → null)
    Decimal           → number, as written by the database
    date, datetime    → ISO-8601 string
    bytes             → base64 string
    anything else     → str(value)

Strings are written with '<', '>', '&', U+2028 and U+2029 as \\u escapes,
so a column holding "</script>" cannot close the surrounding element.

Calling a method out of order (a property name inside an array, closing
the wrong container, writing after the root value is complete) raises
JsonWriterError.
"""

import base64
import datetime
import decimal
import json
import math
from typing import Any, Iterable, List, Optional, Sequence

from injection_errors import JsonWriterError

_OBJECT = "object"
_ARRAY = "array"

# Sentinel for write(value) with no property name.
_NO_VALUE = object()

# Same JSON string, but safe inside an inline <script> element.
_SCRIPT_SAFE = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _dump_string(text: str) -> str:
    dumped = json.dumps(text, ensure_ascii=False)
    for char, escape in _SCRIPT_SAFE.items():
        dumped = dumped.replace(char, escape)
    return dumped


def to_json_value(value: Any) -> str:
    """Serialize one scalar database value as compact JSON text."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return "null"
        return json.dumps(value)
    if isinstance(value, decimal.Decimal):
        if not value.is_finite():
            return "null"
        return str(value)
    if isinstance(value, (datetime.date, datetime.time)):
        return _dump_string(value.isoformat())
    if isinstance(value, (bytes, bytearray, memoryview)):
        return json.dumps(base64.b64encode(bytes(value)).decode("ascii"))
    if isinstance(value, str):
        return _dump_string(value)
    return _dump_string(str(value))


class JsonWriter:
    """
    Compact JSON writer with an explicit container stack.

    A writer holds at most one root value. get_output() returns what has
    been written so far; free_output() resets the writer for reuse.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._stack: List[str] = []
        self._needs_comma: List[bool] = []
        self._root_done = False

    # ── Containers ────────────────────────────────────────────────────────────

    def open_object(self, name: Optional[str] = None) -> None:
        self._begin_value(name)
        self._parts.append("{")
        self._stack.append(_OBJECT)
        self._needs_comma.append(False)

    def close_object(self) -> None:
        self._close(_OBJECT, "}")

    def open_array(self, name: Optional[str] = None) -> None:
        self._begin_value(name)
        self._parts.append("[")
        self._stack.append(_ARRAY)
        self._needs_comma.append(False)

    def close_array(self) -> None:
        self._close(_ARRAY, "]")

    def close_all(self) -> None:
        """Close every open container, innermost first."""
        while self._stack:
            if self._stack[-1] == _OBJECT:
                self.close_object()
            else:
                self.close_array()

    # ── Values ────────────────────────────────────────────────────────────────

    def write(self, name_or_value: Any, value: Any = _NO_VALUE) -> None:
        """
        write(name, value) inside an object; write(value) inside an array
        (or as a scalar root).
        """
        if value is _NO_VALUE:
            self._begin_value(None)
            self._parts.append(to_json_value(name_or_value))
        else:
            self._begin_value(name_or_value)
            self._parts.append(to_json_value(value))
        self._after_value()

    def write_raw(self, name: Optional[str], json_text: str) -> None:
        """Embed already-serialized JSON (e.g. a nested document column)."""
        self._begin_value(name)
        self._parts.append(json_text)
        self._after_value()

    def write_rows(self, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> int:
        """
        Write one object per row, keyed by column name, into the currently
        open array (or as a root array when nothing is open).

        Returns:
            Number of rows written.
        """
        opened_here = not self._stack
        if opened_here:
            self.open_array()
        elif self._stack[-1] != _ARRAY:
            raise JsonWriterError("write_rows() must be called inside an array")

        count = 0
        for row in rows:
            self.open_object()
            for column, cell in zip(columns, row):
                self.write(column, cell)
            self.close_object()
            count += 1

        if opened_here:
            self.close_array()
        return count

    # ── Output ────────────────────────────────────────────────────────────────

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def is_empty(self) -> bool:
        return not self._parts

    def get_output(self) -> str:
        return "".join(self._parts)

    def free_output(self) -> None:
        self._parts.clear()
        self._stack.clear()
        self._needs_comma.clear()
        self._root_done = False

    # ── Private helpers ───────────────────────────────────────────────────────

    def _begin_value(self, name: Optional[str]) -> None:
        if not self._stack:
            if self._root_done:
                raise JsonWriterError("The root JSON value is already complete")
            if name is not None:
                raise JsonWriterError(
                    f"Property {name!r} written outside of an object"
                )
            return

        container = self._stack[-1]
        if container == _OBJECT and name is None:
            raise JsonWriterError("Values inside an object need a property name")
        if container == _ARRAY and name is not None:
            raise JsonWriterError(
                f"Property {name!r} written inside an array"
            )

        if self._needs_comma[-1]:
            self._parts.append(",")
        if container == _OBJECT:
            self._parts.append(_dump_string(str(name)))
            self._parts.append(":")

    def _after_value(self) -> None:
        if self._stack:
            self._needs_comma[-1] = True
        else:
            self._root_done = True

    def _close(self, expected: str, token: str) -> None:
        if not self._stack:
            raise JsonWriterError(f"close_{expected}() with nothing open")
        if self._stack[-1] != expected:
            raise JsonWriterError(
                f"close_{expected}() called while an {self._stack[-1]} is open"
            )
        self._stack.pop()
        self._needs_comma.pop()
        self._parts.append(token)
        self._after_value()
