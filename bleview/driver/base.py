"""Abstract base class for BLE driver backends.

A driver is a pure communication channel to peripherals:
- Commands go in as method calls (scan, connect, write, ...)
- Results come out as DriverEvent objects pushed to subscribers

Drivers contain no UI state. They may emit events from any thread;
consumers are responsible for re-dispatching onto their own context.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..models import DeviceType, DriverEvent

logger = logging.getLogger(__name__)


class BLEDriver(ABC):
    """Abstract BLE driver interface.

    Implementations are responsible for:
    1. Scanning and reporting discovered peripherals
    2. Connecting by device name and reporting the outcome
    3. Writing to characteristics of the connected peripheral
    """

    def __init__(self, device_name: str = "bleview"):
        """Initialize driver.

        Args:
            device_name: Name this host uses to identify itself in logs
        """
        self.device_name = device_name
        self._event_callbacks: List[Callable[[DriverEvent], None]] = []
        self._callback_lock = threading.Lock()

    @abstractmethod
    def start_scan(self) -> None:
        """Start scanning. Discoveries arrive as DeviceDiscovered events."""
        pass

    @abstractmethod
    def stop_scan(self) -> None:
        """Stop scanning. Safe to call when not scanning."""
        pass

    @abstractmethod
    def connect(self, name: str) -> None:
        """Connect to a previously discovered device by name.

        Outcome arrives as DeviceConnected (then ServicesDiscovered)
        or DeviceDisconnected. Must not block.
        """
        pass

    @abstractmethod
    def write(self, data: bytes, characteristic_id: str) -> bool:
        """Write bytes to a characteristic of the connected device.

        Returns:
            True if the write was issued, False otherwise
        """
        pass

    @abstractmethod
    def send_command(self, hex_command: str, device_type: DeviceType) -> bool:
        """Send a raw hex command to a device of the given type.

        Returns:
            True if the command was issued, False otherwise (including
            when hex_command is not valid hex)
        """
        pass

    @abstractmethod
    def read_battery_level(self) -> None:
        """Request a battery read. Result arrives as BatteryLevelRead."""
        pass

    def close(self) -> None:
        """Release resources. Should be safe to call multiple times."""
        pass

    def subscribe_events(self,
                         callback: Callable[[DriverEvent], None]
                         ) -> Callable[[], None]:
        """Subscribe to driver events.

        Args:
            callback: Function called with each DriverEvent

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._event_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._event_callbacks:
                    self._event_callbacks.remove(callback)

        return unsubscribe

    @staticmethod
    def _parse_hex(hex_command: str) -> Optional[bytes]:
        """Decode a hex command string, or log and return None."""
        try:
            return bytes.fromhex(hex_command)
        except (TypeError, ValueError):
            logger.error(f"Invalid hex command: {hex_command!r}")
            return None

    def _emit(self, event: DriverEvent) -> None:
        """Notify all event subscribers."""
        with self._callback_lock:
            callbacks = list(self._event_callbacks)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in event callback: {e}")

    def __enter__(self) -> BLEDriver:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
