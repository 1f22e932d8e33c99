"""In-process driver with simulated peripherals.

Used by the demo command and by tests. With latency=0 every event is
emitted synchronously from the calling thread; otherwise events are
emitted from timer threads, like a real backend calling back late.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..models import (
    BatteryLevelRead,
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    DeviceType,
    DriverEvent,
    HardwareMessage,
    ServicesDiscovered,
)
from .base import BLEDriver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulatedPeripheral:
    """A fake peripheral known to MockDriver.

    Attributes:
        name: Advertised name
        rssi: Reported signal strength
        address: Fake MAC address
        connectable: If False, connect attempts fail
        has_services: If False, service discovery never completes
        battery_level: Value reported by read_battery_level
    """
    name: str
    rssi: int = -60
    address: Optional[str] = None
    connectable: bool = True
    has_services: bool = True
    battery_level: int = 100


DEMO_PERIPHERALS = (
    SimulatedPeripheral("Lamp-A", rssi=-58, address="C0:FF:EE:00:00:01"),
    SimulatedPeripheral("Lamp-B", rssi=-71, address="C0:FF:EE:00:00:02", battery_level=64),
    SimulatedPeripheral("Gimbal-1", rssi=-66, address="C0:FF:EE:00:00:03", connectable=False),
)


class MockDriver(BLEDriver):
    """Driver backed by a list of SimulatedPeripheral.

    Records every write so tests can assert on them.
    """

    def __init__(self,
                 peripherals: Sequence[SimulatedPeripheral] = DEMO_PERIPHERALS,
                 latency: float = 0.0,
                 device_name: str = "bleview-mock"):
        """Initialize mock driver.

        Args:
            peripherals: Devices reported while scanning
            latency: Seconds between a command and its resulting event
            device_name: Host name used in logs
        """
        super().__init__(device_name=device_name)
        self._peripherals: Dict[str, SimulatedPeripheral] = {p.name: p for p in peripherals}
        self._latency = latency

        self._scanning = False
        self._connected: Optional[SimulatedPeripheral] = None
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()

        self.writes: List[Tuple[bytes, str]] = []
        self.commands: List[Tuple[str, DeviceType]] = []

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    @property
    def connected_name(self) -> Optional[str]:
        return self._connected.name if self._connected else None

    def start_scan(self) -> None:
        logger.info(f"[{self.device_name}] scan started")
        self._scanning = True
        for peripheral in self._peripherals.values():
            self._later(DeviceDiscovered(peripheral.name, peripheral.rssi, peripheral.address),
                        only_while_scanning=True)

    def stop_scan(self) -> None:
        if self._scanning:
            logger.info(f"[{self.device_name}] scan stopped")
        self._scanning = False

    def connect(self, name: str) -> None:
        peripheral = self._peripherals.get(name)
        if peripheral is None or not peripheral.connectable:
            logger.warning(f"[{self.device_name}] cannot connect to {name}")
            self._later(DeviceDisconnected(name))
            return

        def on_connected():
            self._connected = peripheral
            self._emit(DeviceConnected(name))
            if peripheral.has_services:
                self._later(ServicesDiscovered(name))

        self._schedule(on_connected)

    def write(self, data: bytes, characteristic_id: str) -> bool:
        if self._connected is None:
            logger.warning(f"[{self.device_name}] cannot write, not connected")
            return False
        self.writes.append((bytes(data), characteristic_id))
        logger.debug(f"[{self.device_name}] wrote {data.hex()} to {characteristic_id}")
        return True

    def send_command(self, hex_command: str, device_type: DeviceType) -> bool:
        if self._connected is None:
            logger.warning(f"[{self.device_name}] cannot send command, not connected")
            return False
        if self._parse_hex(hex_command) is None:
            return False
        self.commands.append((hex_command, device_type))
        return True

    def read_battery_level(self) -> None:
        peripheral = self._connected
        if peripheral is None:
            logger.warning(f"[{self.device_name}] cannot read battery, not connected")
            return
        self._later(BatteryLevelRead(peripheral.name, peripheral.battery_level))

    def simulate_message(self, message: str) -> None:
        """Push a free-form message as if the device reported one."""
        self._later(HardwareMessage(message))

    def simulate_disconnect(self, name: Optional[str] = None) -> None:
        """Drop the current connection as if the peripheral went away."""
        name = name or self.connected_name
        if name is None:
            return
        if self.connected_name == name:
            self._connected = None
        self._later(DeviceDisconnected(name))

    def close(self) -> None:
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
        self._scanning = False
        self._connected = None

    # Internal methods

    def _later(self, event: DriverEvent, only_while_scanning: bool = False) -> None:
        def fire():
            if only_while_scanning and not self._scanning:
                return
            self._emit(event)

        self._schedule(fire)

    def _schedule(self, action: Callable[[], None]) -> None:
        if self._latency <= 0:
            action()
            return

        timer = threading.Timer(self._latency, action)
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()
