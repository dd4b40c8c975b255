"""
script_emitter/escaping.py

Script-string-literal escaping.
───────────────────────────────
Turns arbitrary text into something that can sit between the quotes of a
JavaScript string literal inside an inline <script> element:

  • Backslash and both quote characters are backslash-escaped.
  • Control characters, DEL, U+2028 and U+2029 become \\uXXXX escapes
    (the last two are line terminators inside older script engines).
  • '<', '>', '/' and '&' become \\uXXXX escapes so that neither
    '</script>' nor '<!--' can ever appear in the emitted text, which is
    what would let the HTML parser end the script element early.

The result is still the same string once the script engine evaluates it.
"""

from typing import Optional

_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Characters that are harmless to the script engine but meaningful to the
# HTML tokenizer surrounding it.
_HTML_SENSITIVE = frozenset("<>/&")


def _escape_char(char: str) -> str:
    simple = _SIMPLE_ESCAPES.get(char)
    if simple is not None:
        return simple
    code_point = ord(char)
    if (
        code_point < 0x20
        or code_point == 0x7F
        or code_point in (0x2028, 0x2029)
        or char in _HTML_SENSITIVE
    ):
        return f"\\u{code_point:04x}"
    return char


def escape_js_literal(text: str, quote: Optional[str] = '"') -> str:
    """
    Escape *text* for embedding in a script string literal.

    Args:
        text  : The raw string (e.g. a developer-supplied variable path).
        quote : The quote character to surround the result with, or None
                to return the escaped body only.

    Returns:
        The escaped text, optionally quoted.
    """
    if quote not in (None, '"', "'"):
        raise ValueError(f"Unsupported quote character: {quote!r}")

    body = "".join(_escape_char(char) for char in text)
    if quote is None:
        return body
    return f"{quote}{body}{quote}"
