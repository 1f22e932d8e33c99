"""Abstract base class for dongle communication protocols.

Defines the interface for parsing incoming lines and serializing commands.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..models import DriverEvent
from .commands import Command


class Protocol(ABC):
    """Abstract protocol for dongle communication.

    Protocols handle:
    - Parsing incoming lines into driver events
    - Serializing commands into wire format
    """

    @abstractmethod
    def parse_line(self, line: str) -> Optional[DriverEvent]:
        """Parse incoming line into a driver event.

        Args:
            line: Decoded string from dongle

        Returns:
            DriverEvent if the line carries one, None otherwise
        """
        pass

    @abstractmethod
    def serialize_command(self, command: Command) -> bytes:
        """Serialize command into wire format.

        Args:
            command: Command object to serialize

        Returns:
            Bytes ready to send to the dongle
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Protocol identifier (e.g., 'ascii')."""
        pass
