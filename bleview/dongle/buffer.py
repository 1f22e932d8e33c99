"""Line splitter for the dongle byte stream.

Serial reads return arbitrary chunks; event lines may be split across
them. LineBuffer keeps the unterminated tail between reads.
"""
import logging
import threading
from typing import List

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH = 4096  # bytes


class LineBuffer:
    """Thread-safe accumulator that yields complete \\n-terminated lines."""

    def __init__(self, max_line_length: int = MAX_LINE_LENGTH):
        """Initialize buffer.

        Args:
            max_line_length: An unterminated tail longer than this is
                discarded (the dongle never sends such lines)
        """
        self._max_line_length = max_line_length
        self._tail = bytearray()
        self._lock = threading.Lock()

    def feed(self, chunk: bytes) -> List[bytes]:
        """Add a chunk and return the lines it completed, without '\\n'."""
        with self._lock:
            self._tail.extend(chunk)
            *lines, tail = self._tail.split(b"\n")
            if len(tail) > self._max_line_length:
                logger.warning(f"Discarding {len(tail)} bytes with no line terminator")
                tail = bytearray()
            self._tail = bytearray(tail)
        return [bytes(line) for line in lines]

    def clear(self) -> None:
        """Drop any partial line."""
        with self._lock:
            self._tail.clear()
