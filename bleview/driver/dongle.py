"""BLE driver backed by a USB CDC bridge dongle.

Commands are serialized by the protocol layer and written to the dongle;
event lines coming back are parsed into driver events.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..dongle import DongleConnection, LineBuffer
from ..errors import DriverError
from ..models import (
    DeviceConnected,
    DeviceDisconnected,
    DeviceType,
    DriverEvent,
)
from ..protocol import (
    ASCIIProtocol,
    Command,
    ConnectCommand,
    DeviceCommand,
    Protocol,
    ReadBatteryCommand,
    ScanCommand,
    WriteCommand,
)
from .base import BLEDriver

logger = logging.getLogger(__name__)


class DongleDriver(BLEDriver):
    """Driver that delegates BLE work to a serial bridge dongle.

    The serial port is opened on the first command (or explicitly with
    open()). If the dongle goes away while a peripheral is connected, a
    DeviceDisconnected event is emitted for it.
    """

    def __init__(self,
                 connection: Optional[DongleConnection] = None,
                 protocol: Optional[Protocol] = None,
                 port: Optional[str] = None,
                 device_name: str = "bleview-dongle"):
        """Initialize dongle driver.

        Args:
            connection: Existing DongleConnection, or None to create one
            protocol: Protocol implementation (default: ASCIIProtocol)
            port: Serial port for a new connection (if connection is None)
            device_name: Host name used in logs
        """
        super().__init__(device_name=device_name)
        self._connection = connection or DongleConnection(port=port)
        self._protocol = protocol or ASCIIProtocol()
        self._buffer = LineBuffer()
        self._connected_name: Optional[str] = None

        self._unsubscribers = [
            self._connection.subscribe_data(self._on_data_received),
            self._connection.subscribe_connection_lost(self._on_connection_lost),
        ]

    def open(self) -> None:
        """Open the serial connection.

        Raises:
            DriverError: if the dongle cannot be opened
        """
        if self._connection.is_connected():
            return
        if not self._connection.connect():
            raise DriverError(f"Could not open BLE bridge dongle ({self._connection.port or 'auto-detect'})")

    def start_scan(self) -> None:
        self._send(ScanCommand(start=True))

    def stop_scan(self) -> None:
        if self._connection.is_connected():
            self._send(ScanCommand(start=False))

    def connect(self, name: str) -> None:
        if not self._send(ConnectCommand(name)):
            self._emit(DeviceDisconnected(name))

    def write(self, data: bytes, characteristic_id: str) -> bool:
        if self._connected_name is None:
            logger.warning("Cannot write, no peripheral connected")
            return False
        return self._send(WriteCommand(characteristic_id, bytes(data)))

    def send_command(self, hex_command: str, device_type: DeviceType) -> bool:
        data = self._parse_hex(hex_command)
        if data is None:
            return False
        return self._send(DeviceCommand(device_type, data))

    def read_battery_level(self) -> None:
        self._send(ReadBatteryCommand())

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._connection.disconnect()
        self._buffer.clear()
        self._connected_name = None

    # Internal methods

    def _send(self, command: Command) -> bool:
        try:
            self.open()
        except DriverError as e:
            logger.error(str(e))
            return False
        return self._connection.write(self._protocol.serialize_command(command))

    def _on_data_received(self, chunk: bytes) -> None:
        """Runs on the dongle reader thread."""
        for line_bytes in self._buffer.feed(chunk):
            line = line_bytes.decode('utf-8', errors='ignore').strip()
            if not line:
                continue
            event = self._protocol.parse_line(line)
            if event is None:
                logger.debug(f"Ignoring dongle line: {line!r}")
                continue
            self._track(event)
            self._emit(event)

    def _track(self, event: DriverEvent) -> None:
        if isinstance(event, DeviceConnected):
            self._connected_name = event.name
        elif isinstance(event, DeviceDisconnected) and event.name == self._connected_name:
            self._connected_name = None

    def _on_connection_lost(self, error: Exception) -> None:
        name, self._connected_name = self._connected_name, None
        self._buffer.clear()
        if name is not None:
            logger.warning(f"Dongle lost while connected to {name}: {error}")
            self._emit(DeviceDisconnected(name))
