"""
script_emitter/emitter.py

ScriptEmitter — builds the <script> fragment that merges a JSON payload
into a (possibly nested) global variable.
────────────────────────────────────────────────────────────────────────
For target path "myApp.data" the emitted fragment reads:

    <script>
    (function(){
    if(typeof createNestedObject!=="function"){var createNestedObject=...;}
    createNestedObject(window,"myApp.data");
    if(window["myApp"]["data"]===undefined||window["myApp"]["data"]===null){window["myApp"]["data"]={};}
    Object.assign(window["myApp"]["data"],{"a":1});
    })();
    </script>

  1. Everything runs inside an immediately-invoked function, so the helper
     name never reaches the page's global scope.
  2. Every fragment carries its own copy of the helper behind a
     no-redefinition guard, so any number of fragments may share one page
     without depending on each other. Because `var` is hoisted to the top
     of the enclosing function, the guard always sees `undefined` and the
     helper is always defined; the guard only matters if the definition is
     ever lifted out of the function scope.
  3. The helper creates each missing (or null) intermediate segment as an
     empty object and returns the container holding the leaf.
  4. The leaf is initialised to {} only when undefined or null, then the
     payload's top-level properties are copied onto it with Object.assign.
     Two injections into the same path accumulate; same-named keys take
     the later value.

Trust boundary:
    The target path is developer input and is escaped everywhere it is
    embedded (see escaping.py). The payload is NOT escaped. It is JSON text
    produced by a trusted serializer or written by the developer, and it is
    copied into the script verbatim. Callers must never hand end-user
    controlled text to the emitter as a payload.
"""

import logging
import re
from typing import List

from injection_errors import ConfigurationError

from .chunked_output import DEFAULT_CHUNK_SIZE, ChunkedWriter, TextSink
from .escaping import escape_js_literal

logger = logging.getLogger(__name__)

HELPER_NAME = "createNestedObject"

_HELPER_DEFINITION = (
    'if(typeof ' + HELPER_NAME + '!=="function"){var ' + HELPER_NAME + '='
    'function(e,t){for(var r=t.split("."),a=0;a<r.length-1;++a){var n=r[a];'
    '(e[n]===undefined||e[n]===null)&&(e[n]={});e=e[n]}return e};}'
)

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def parse_target_path(target_path: str) -> List[str]:
    """
    Split a dotted target path into its segments.

    Raises:
        ConfigurationError: the path is empty or has an empty segment.
    """
    if target_path is None or not target_path.strip():
        raise ConfigurationError("Target path is empty; refusing to assign to the global root")

    segments = target_path.strip().split(".")
    for index, segment in enumerate(segments):
        if not segment.strip():
            raise ConfigurationError(
                f"Target path {target_path!r} has an empty segment at position {index}"
            )
    return segments


class ScriptEmitter:
    """
    Composes the merge-and-inject script fragment.

    Args:
        root       : Script expression of the global object the path is
                     rooted at. Must be a plain identifier.
        chunk_size : Maximum size of one payload write in emit().
    """

    def __init__(self, root: str = "window", chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if not _IDENTIFIER.match(root):
            raise ConfigurationError(f"Global root {root!r} is not a plain identifier")
        if chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be at least 1, got {chunk_size}")
        self._root = root
        self._chunk_size = chunk_size

    # ── Public API ────────────────────────────────────────────────────────────

    def leaf_expression(self, target_path: str) -> str:
        """Bracket-notation reference to the leaf, e.g. window["a"]["b"]."""
        segments = parse_target_path(target_path)
        return self._root + "".join(f"[{escape_js_literal(s)}]" for s in segments)

    def prologue(self, target_path: str) -> str:
        """Everything that precedes the payload."""
        segments = parse_target_path(target_path)
        path_literal = escape_js_literal(".".join(segments))
        leaf = self.leaf_expression(target_path)
        return "\n".join([
            "<script>",
            "(function(){",
            _HELPER_DEFINITION,
            f"{HELPER_NAME}({self._root},{path_literal});",
            f"if({leaf}===undefined||{leaf}===null){{{leaf}={{}};}}",
            f"Object.assign({leaf},",
        ])

    @staticmethod
    def epilogue() -> str:
        """Everything that follows the payload."""
        return ");\n})();\n</script>\n"

    def render(self, target_path: str, payload: str) -> str:
        """Return the complete fragment as one string."""
        self._check_payload(payload)
        return self.prologue(target_path) + payload + self.epilogue()

    def emit(self, target_path: str, payload: str, stream: TextSink) -> None:
        """
        Append the fragment to *stream*. The payload is written in bounded
        chunks; the surrounding control text in single writes.

        The path and payload are checked before the first write, so a bad
        request never leaves a partial fragment behind.
        """
        prologue = self.prologue(target_path)
        self._check_payload(payload)

        writer = ChunkedWriter(stream, self._chunk_size)
        writer.write_control(prologue)
        writer.write_payload(payload)
        writer.write_control(self.epilogue())

        logger.debug(
            "Emitted fragment for %r (%d payload chars)", target_path, len(payload),
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _check_payload(payload: str) -> None:
        if payload is None or not payload.strip():
            raise ConfigurationError("Refusing to emit a fragment with an empty payload")
