"""bleview - BLE peripheral scan / connect / write flow with a view-model front."""

from .context import MainContext
from .errors import BLEViewError, ConfigError, DriverError
from .models import (
    BatteryLevelRead,
    ConnectionState,
    ConnectionStatus,
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    DeviceEntry,
    DeviceType,
    DriverEvent,
    HardwareMessage,
    ServicesDiscovered,
)
from .observable import Observable
from .driver import BLEDriver, MockDriver, SimulatedPeripheral, create_driver
from .viewmodel import BluetoothViewModel
from .presenter import DeviceListPresenter, OutputSwitch

__all__ = [
    "MainContext",
    "BLEViewError",
    "ConfigError",
    "DriverError",
    "ConnectionState",
    "ConnectionStatus",
    "DeviceEntry",
    "DeviceType",
    "DriverEvent",
    "DeviceDiscovered",
    "DeviceConnected",
    "DeviceDisconnected",
    "ServicesDiscovered",
    "BatteryLevelRead",
    "HardwareMessage",
    "Observable",
    "BLEDriver",
    "MockDriver",
    "SimulatedPeripheral",
    "create_driver",
    "BluetoothViewModel",
    "DeviceListPresenter",
    "OutputSwitch",
]
