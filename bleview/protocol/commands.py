"""Commands sent from host to the BLE bridge dongle."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..models import DeviceType


@dataclass(frozen=True)
class ScanCommand:
    """Start (start=True) or stop scanning."""
    start: bool = True


@dataclass(frozen=True)
class ConnectCommand:
    """Connect to a discovered peripheral by name."""
    name: str


@dataclass(frozen=True)
class WriteCommand:
    """Write bytes to a characteristic of the connected peripheral."""
    characteristic_id: str
    data: bytes


@dataclass(frozen=True)
class DeviceCommand:
    """Raw command for a given kind of peripheral."""
    device_type: DeviceType
    data: bytes


@dataclass(frozen=True)
class ReadBatteryCommand:
    """Read the battery level of the connected peripheral."""
    pass


Command = Union[ScanCommand, ConnectCommand, WriteCommand, DeviceCommand, ReadBatteryCommand]
