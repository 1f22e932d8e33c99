"""ASCII line-based protocol implementation.

Wraps ProtocolParser and ProtocolSerializer.
"""
from __future__ import annotations

from typing import Optional

from ..models import DriverEvent
from .base import Protocol
from .commands import Command
from .parser import ProtocolParser
from .serializer import ProtocolSerializer


class ASCIIProtocol(Protocol):
    """ASCII line protocol for the BLE bridge dongle.

    Uses:
    - FOUND / CONNECTED / LOST / SERVICES / BATTERY / MSG event lines
    - ! prefixed commands (e.g., !scanStart)
    """

    def __init__(self):
        self._parser = ProtocolParser()
        self._serializer = ProtocolSerializer()

    def parse_line(self, line: str) -> Optional[DriverEvent]:
        """Parse a single line from the serial stream."""
        return self._parser.parse_line(line)

    def serialize_command(self, command: Command) -> bytes:
        """Serialize command to ASCII bytes with newline."""
        cmd_str = self._serializer.serialize_command(command)
        return (cmd_str + '\n').encode('utf-8')

    @property
    def name(self) -> str:
        return "ascii"
