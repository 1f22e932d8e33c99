"""BLE driver backed by bleak.

bleak is asyncio-only, so the driver owns an event loop running on a
daemon thread. Public methods are synchronous and non-blocking: they
submit coroutines to that loop and events are emitted from it.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Dict, Mapping, Optional

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from ..errors import DriverError
from ..models import (
    BATTERY_LEVEL_CHARACTERISTIC,
    OUTPUT_CHARACTERISTIC,
    BatteryLevelRead,
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    DeviceType,
    ServicesDiscovered,
)
from .base import BLEDriver

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds, passed to BleakClient

DEFAULT_COMMAND_CHARACTERISTICS: Dict[DeviceType, str] = {
    DeviceType.LIGHT: OUTPUT_CHARACTERISTIC,
    DeviceType.GIMBAL: "0000ffe2-0000-1000-8000-00805f9b34fb",
}


class BleakDriver(BLEDriver):
    """Driver for real BLE hardware through bleak.

    Devices are addressed by advertised name; the BLEDevice seen during
    the scan is cached so connect() can use it directly.
    """

    def __init__(self,
                 device_name: str = "bleview",
                 connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
                 command_characteristics: Optional[Mapping[DeviceType, str]] = None):
        """Initialize bleak driver.

        Args:
            device_name: Host name used in logs
            connect_timeout: Timeout handed to BleakClient.connect
            command_characteristics: Characteristic per DeviceType for send_command
        """
        super().__init__(device_name=device_name)
        self._connect_timeout = connect_timeout
        self._command_characteristics = dict(command_characteristics or DEFAULT_COMMAND_CHARACTERISTICS)

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[threading.Thread] = None

        self._scanner: Optional[BleakScanner] = None
        self._client: Optional[BleakClient] = None
        self._client_name: Optional[str] = None
        self._seen: Dict[str, BLEDevice] = {}

    # --- Commands ---

    def start_scan(self) -> None:
        self._submit(self._start_scan())

    def stop_scan(self) -> None:
        if self._loop is None:
            return
        self._submit(self._stop_scan())

    def connect(self, name: str) -> None:
        self._submit(self._connect(name))

    def write(self, data: bytes, characteristic_id: str) -> bool:
        if self._client is None or not self._client.is_connected:
            logger.warning("Cannot write, not connected")
            return False
        self._submit(self._write(bytes(data), characteristic_id))
        return True

    def send_command(self, hex_command: str, device_type: DeviceType) -> bool:
        characteristic = self._command_characteristics.get(device_type)
        if characteristic is None:
            logger.error(f"No command characteristic configured for {device_type.value}")
            return False
        data = self._parse_hex(hex_command)
        if data is None:
            return False
        return self.write(data, characteristic)

    def read_battery_level(self) -> None:
        if self._client is None or not self._client.is_connected:
            logger.warning("Cannot read battery, not connected")
            return
        self._submit(self._read_battery())

    def close(self) -> None:
        if self._loop is None:
            return

        try:
            self._submit(self._shutdown()).result(timeout=5.0)
        except Exception as e:
            logger.error(f"Error shutting down bleak driver: {e}")

        self._loop.call_soon_threadsafe(self._loop.stop)
        if self._loop_thread and self._loop_thread.is_alive():
            self._loop_thread.join(timeout=1.0)
        self._loop = None
        self._loop_thread = None

    # --- Coroutines (run on driver loop) ---

    async def _start_scan(self) -> None:
        if self._scanner is not None:
            return
        self._scanner = BleakScanner(detection_callback=self._on_detection)
        try:
            await self._scanner.start()
            logger.info("BLE scan started")
        except BleakError as e:
            logger.error(f"Failed to start scan: {e}")
            self._scanner = None

    async def _stop_scan(self) -> None:
        scanner, self._scanner = self._scanner, None
        if scanner is None:
            return
        try:
            await scanner.stop()
            logger.info("BLE scan stopped")
        except BleakError as e:
            logger.error(f"Failed to stop scan: {e}")

    async def _connect(self, name: str) -> None:
        device = self._seen.get(name)
        if device is None:
            logger.error(f"Device {name} has not been discovered")
            self._emit(DeviceDisconnected(name))
            return

        await self._disconnect_client()

        client = BleakClient(
            device,
            disconnected_callback=lambda _: self._on_disconnected(name),
            timeout=self._connect_timeout,
        )
        try:
            await client.connect()
        except (BleakError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Failed to connect to {name}: {e}")
            self._emit(DeviceDisconnected(name))
            return

        self._client = client
        self._client_name = name
        self._emit(DeviceConnected(name))

        # bleak resolves services as part of connect()
        services = client.services
        if services is not None:
            logger.debug(f"{name}: {len(list(services))} service(s)")
            self._emit(ServicesDiscovered(name))

    async def _write(self, data: bytes, characteristic_id: str) -> None:
        client = self._client
        if client is None:
            return
        try:
            await client.write_gatt_char(characteristic_id, data, response=True)
            logger.debug(f"Wrote {data.hex()} to {characteristic_id}")
        except BleakError as e:
            logger.error(f"Write to {characteristic_id} failed: {e}")

    async def _read_battery(self) -> None:
        client, name = self._client, self._client_name
        if client is None or name is None:
            return
        try:
            value = await client.read_gatt_char(BATTERY_LEVEL_CHARACTERISTIC)
        except BleakError as e:
            logger.error(f"Battery read failed: {e}")
            return
        if value:
            self._emit(BatteryLevelRead(name, int(value[0])))

    async def _disconnect_client(self) -> None:
        client, self._client = self._client, None
        self._client_name = None
        if client is not None and client.is_connected:
            try:
                await client.disconnect()
            except BleakError as e:
                logger.error(f"Disconnect failed: {e}")

    async def _shutdown(self) -> None:
        await self._stop_scan()
        await self._disconnect_client()

    # --- Callbacks ---

    def _on_detection(self, device: BLEDevice, advertisement: AdvertisementData) -> None:
        name = advertisement.local_name or device.name
        if not name:
            return
        self._seen[name] = device
        self._emit(DeviceDiscovered(name, advertisement.rssi, device.address))

    def _on_disconnected(self, name: str) -> None:
        if self._client_name != name:
            return
        logger.info(f"{name} disconnected")
        self._client = None
        self._client_name = None
        self._emit(DeviceDisconnected(name))

    # --- Loop management ---

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop

        loop = asyncio.new_event_loop()
        ready = threading.Event()

        def run():
            asyncio.set_event_loop(loop)
            loop.call_soon(ready.set)
            loop.run_forever()
            loop.close()

        self._loop_thread = threading.Thread(target=run, daemon=True, name="BleakDriverLoop")
        self._loop_thread.start()
        if not ready.wait(timeout=2.0):
            raise DriverError("BLE event loop failed to start")
        self._loop = loop
        return loop

    def _submit(self, coro) -> Future:
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"BLE operation failed: {error}")
