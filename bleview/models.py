"""Immutable data models for connection state, devices and driver events.

All models are frozen dataclasses so they can be handed across threads
(driver threads -> main context) without copying.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# Fixed characteristic the output toggle writes to
OUTPUT_CHARACTERISTIC = "0000ffe1-0000-1000-8000-00805f9b34fb"
# Standard GATT Battery Level characteristic
BATTERY_LEVEL_CHARACTERISTIC = "00002a19-0000-1000-8000-00805f9b34fb"

DISPLAY_FORMAT = "{name} [信号: {rssi}]"


class ConnectionStatus(Enum):
    """Variant tag of a ConnectionState."""
    DISCONNECTED = "disconnected"
    SCANNING = "scanning"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SERVICES_READY = "services_ready"
    FAILED = "failed"


class DeviceType(Enum):
    """Kind of peripheral a raw command is addressed to."""
    LIGHT = "light"    # fill light
    GIMBAL = "gimbal"


@dataclass(frozen=True)
class ConnectionState:
    """Current connection state of a session.

    Exactly one variant is active. The four named variants carry the
    device name; DISCONNECTED and SCANNING do not.

    Attributes:
        status: Active variant
        device_name: Device the variant refers to, or None
    """
    status: ConnectionStatus
    device_name: Optional[str] = None

    @classmethod
    def disconnected(cls) -> ConnectionState:
        return cls(ConnectionStatus.DISCONNECTED)

    @classmethod
    def scanning(cls) -> ConnectionState:
        return cls(ConnectionStatus.SCANNING)

    @classmethod
    def connecting(cls, name: str) -> ConnectionState:
        return cls(ConnectionStatus.CONNECTING, name)

    @classmethod
    def connected(cls, name: str) -> ConnectionState:
        return cls(ConnectionStatus.CONNECTED, name)

    @classmethod
    def services_ready(cls, name: str) -> ConnectionState:
        return cls(ConnectionStatus.SERVICES_READY, name)

    @classmethod
    def failed(cls, name: str) -> ConnectionState:
        return cls(ConnectionStatus.FAILED, name)

    @property
    def is_services_ready(self) -> bool:
        return self.status is ConnectionStatus.SERVICES_READY

    def __str__(self) -> str:
        if self.device_name is None:
            return self.status.value
        return f"{self.status.value}({self.device_name})"


@dataclass(frozen=True)
class DeviceEntry:
    """A discovered peripheral as shown in the device list.

    Attributes:
        name: Advertised device name
        rssi: Signal strength in dBm at discovery time
        address: Backend-specific identifier (MAC / UUID), if known
    """
    name: str
    rssi: int
    address: Optional[str] = None

    @property
    def display(self) -> str:
        """Display string, e.g. 'Lamp-A [信号: -60]'."""
        return DISPLAY_FORMAT.format(name=self.name, rssi=self.rssi)

    def same_device(self, other: DeviceEntry) -> bool:
        """Exact identity: address when both sides have one, else name."""
        if self.address and other.address:
            return self.address == other.address
        return self.name == other.name

    def overlaps(self, other: DeviceEntry) -> bool:
        """Approximate identity: either name contains the other."""
        return self.name in other.name or other.name in self.name

    def __str__(self) -> str:
        return self.display


# Driver events

@dataclass(frozen=True)
class DeviceDiscovered:
    """A peripheral was seen while scanning."""
    name: str
    rssi: int
    address: Optional[str] = None


@dataclass(frozen=True)
class DeviceConnected:
    """Connection to a peripheral succeeded."""
    name: str


@dataclass(frozen=True)
class DeviceDisconnected:
    """Peripheral disconnected, or a connect attempt failed."""
    name: str


@dataclass(frozen=True)
class ServicesDiscovered:
    """Service discovery finished for a connected peripheral."""
    name: str


@dataclass(frozen=True)
class BatteryLevelRead:
    """Battery level characteristic was read.

    Attributes:
        name: Device the level belongs to
        level: Battery level in percent (0-100)
    """
    name: str
    level: int


@dataclass(frozen=True)
class HardwareMessage:
    """Free-form text from the driver or device, shown to the user as-is."""
    message: str


DriverEvent = Union[
    DeviceDiscovered,
    DeviceConnected,
    DeviceDisconnected,
    ServicesDiscovered,
    BatteryLevelRead,
    HardwareMessage,
]
