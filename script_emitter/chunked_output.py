"""
script_emitter/chunked_output.py

Bounded-size sequential writes to the page output stream.

Page output sinks may refuse (or silently truncate) a single write above a
fixed size, while a JSON payload can be arbitrarily large. ChunkedWriter
splits payload text into consecutive slices of at most `chunk_size` code
units and writes them in order. Control text (the short script skeleton
around the payload) is always written in one call.
"""

import logging
from typing import Iterator, Protocol

from injection_errors import ConfigurationError

logger = logging.getLogger(__name__)

# Matches the per-write ceiling of the page buffer the plugin was built for.
DEFAULT_CHUNK_SIZE = 4000


class TextSink(Protocol):
    def write(self, text: str) -> object: ...


def iter_chunks(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Yield consecutive slices of *text*, each at most *chunk_size* long."""
    if chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be at least 1, got {chunk_size}")
    for offset in range(0, len(text), chunk_size):
        yield text[offset:offset + chunk_size]


class ChunkedWriter:
    """
    Writes to a text stream, splitting payload text into bounded chunks.

    Args:
        stream     : Any object with a write(str) method.
        chunk_size : Maximum length of one payload write.
    """

    def __init__(self, stream: TextSink, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be at least 1, got {chunk_size}")
        self._stream = stream
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def write_control(self, text: str) -> None:
        self._stream.write(text)

    def write_payload(self, text: str) -> int:
        """
        Write *text* in order, chunk by chunk.

        Returns:
            The number of writes issued (0 for an empty payload).
        """
        writes = 0
        for chunk in iter_chunks(text, self._chunk_size):
            self._stream.write(chunk)
            writes += 1
        logger.debug(
            "Payload of %d chars written in %d chunk(s) of <= %d",
            len(text), writes, self._chunk_size,
        )
        return writes
