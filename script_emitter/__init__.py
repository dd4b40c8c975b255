"""
script_emitter — builds the inline <script> fragment for a JSON injection.

Public API:
    ScriptEmitter      : Composes the scoped merge-and-inject fragment.
    ChunkedWriter      : Writes payload text to a stream in bounded chunks.
    escape_js_literal  : Script-string-literal escaping for developer input.
    parse_target_path  : Validates and splits a dotted target path.
"""

from .chunked_output import DEFAULT_CHUNK_SIZE, ChunkedWriter, iter_chunks
from .emitter import ScriptEmitter, parse_target_path
from .escaping import escape_js_literal

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "ChunkedWriter",
    "iter_chunks",
    "ScriptEmitter",
    "parse_target_path",
    "escape_js_literal",
]
