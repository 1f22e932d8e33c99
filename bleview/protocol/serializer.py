"""Serializer for BLE bridge dongle commands.

Converts command objects to protocol strings.
Pure functions with no side effects.
"""
from __future__ import annotations

from .commands import (
    Command,
    ConnectCommand,
    DeviceCommand,
    ReadBatteryCommand,
    ScanCommand,
    WriteCommand,
)


class ProtocolSerializer:
    """Serializer for the dongle command protocol.

    Converts command objects into protocol strings that the dongle
    firmware understands.
    """

    @staticmethod
    def serialize_command(command: Command) -> str:
        """Convert a command object to a protocol string.

        Args:
            command: Command object to serialize

        Returns:
            Protocol string (without newline)

        Examples:
            >>> ProtocolSerializer.serialize_command(ConnectCommand("Lamp-A"))
            '!connect -name Lamp-A'
            >>> ProtocolSerializer.serialize_command(WriteCommand("ffe1", b"\\x01"))
            '!write -char ffe1 -data 01'
        """
        if isinstance(command, ScanCommand):
            return "!scanStart" if command.start else "!scanStop"
        elif isinstance(command, ConnectCommand):
            return ProtocolSerializer._serialize_connect(command)
        elif isinstance(command, WriteCommand):
            return f"!write -char {command.characteristic_id} -data {command.data.hex()}"
        elif isinstance(command, DeviceCommand):
            return f"!command -device {command.device_type.value} -data {command.data.hex()}"
        elif isinstance(command, ReadBatteryCommand):
            return "!readBattery"
        else:
            raise ValueError(f"Unknown command type: {type(command)}")

    @staticmethod
    def _serialize_connect(cmd: ConnectCommand) -> str:
        """Serialize ConnectCommand.

        Protocol: !connect -name <name>

        The name runs to the end of the line, so it may contain spaces
        but not newlines.
        """
        name = cmd.name.strip()
        if not name or "\n" in name:
            raise ValueError(f"Invalid device name: {cmd.name!r}")
        return f"!connect -name {name}"
