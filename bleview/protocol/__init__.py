"""Protocol layer for serial communication with the BLE bridge dongle."""

from .base import Protocol
from .ascii_protocol import ASCIIProtocol
from .commands import (
    Command,
    ConnectCommand,
    DeviceCommand,
    ReadBatteryCommand,
    ScanCommand,
    WriteCommand,
)
from .parser import ProtocolParser
from .serializer import ProtocolSerializer

__all__ = [
    "Protocol",
    "ASCIIProtocol",
    "ProtocolParser",
    "ProtocolSerializer",
    "Command",
    "ScanCommand",
    "ConnectCommand",
    "WriteCommand",
    "DeviceCommand",
    "ReadBatteryCommand",
]
