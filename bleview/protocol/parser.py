"""Parser for BLE bridge dongle event lines.

Parses incoming serial lines into driver events.
Pure functions with no side effects.
"""
from __future__ import annotations

from typing import List, Optional

from ..models import (
    BatteryLevelRead,
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    DriverEvent,
    HardwareMessage,
    ServicesDiscovered,
)


class ProtocolParser:
    """Parser for dongle event lines.

    Handles six frame types:
    - FOUND <name>,<rssi>[,<address>] - Peripheral seen while scanning
    - CONNECTED <name> - Connection succeeded
    - LOST <name> - Disconnected or connection failed
    - SERVICES <name> - Service discovery finished
    - BATTERY <name>,<level> - Battery level read
    - MSG <text> - Free-form message for the user
    """

    @staticmethod
    def parse_line(line: str) -> Optional[DriverEvent]:
        """Parse a single line from the serial stream.

        Args:
            line: Raw line from serial (with or without newline)

        Returns:
            DriverEvent if line was parsed successfully, None otherwise

        Examples:
            >>> ProtocolParser.parse_line("FOUND Lamp-A,-60")
            DeviceDiscovered(name='Lamp-A', rssi=-60, address=None)
            >>> ProtocolParser.parse_line("CONNECTED Lamp-A")
            DeviceConnected(name='Lamp-A')
        """
        line = line.strip()

        if not line:
            return None

        keyword, _, payload = line.partition(" ")
        payload = payload.strip()

        if keyword == "FOUND":
            fields = ProtocolParser._split_fields(payload)
            if len(fields) not in (2, 3) or not fields[0]:
                return None
            rssi = ProtocolParser._parse_int(fields[1])
            if rssi is None:
                return None
            address = fields[2] if len(fields) == 3 and fields[2] else None
            return DeviceDiscovered(name=fields[0], rssi=rssi, address=address)

        if keyword == "BATTERY":
            fields = ProtocolParser._split_fields(payload)
            if len(fields) != 2 or not fields[0]:
                return None
            level = ProtocolParser._parse_int(fields[1])
            if level is None or not 0 <= level <= 100:
                return None
            return BatteryLevelRead(name=fields[0], level=level)

        if not payload:
            return None

        if keyword == "CONNECTED":
            return DeviceConnected(name=payload)
        if keyword == "LOST":
            return DeviceDisconnected(name=payload)
        if keyword == "SERVICES":
            return ServicesDiscovered(name=payload)
        if keyword == "MSG":
            return HardwareMessage(message=payload)

        # Unknown frame type
        return None

    @staticmethod
    def _split_fields(payload: str) -> List[str]:
        return [field.strip() for field in payload.split(",")] if payload else []

    @staticmethod
    def _parse_int(token: str) -> Optional[int]:
        try:
            return int(token)
        except ValueError:
            return None
