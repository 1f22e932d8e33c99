"""View-model for the scan / connect / write flow.

Owns the observable device list and connection state. Commands are
forwarded to the driver; driver events are re-posted onto the main
context and applied there, so every observable changes on one thread.

Driver events are accepted unconditionally: there is no transition
validation, the most recent event decides the state.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from .config import ViewModelConfig
from .context import MainContext, TimerHandle
from .driver.base import BLEDriver
from .models import (
    BatteryLevelRead,
    ConnectionState,
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

logger = logging.getLogger(__name__)

OUTPUT_ON = b"\x01"
OUTPUT_OFF = b"\x00"


class BluetoothViewModel:
    """Connection-state holder between a BLE driver and the presentation layer.

    Observables:
        device_list: tuple of DeviceEntry, in discovery order
        connection_state: current ConnectionState
        battery_level: last battery level read, or None
        hardware_message: last HardwareMessage from the driver, or None

    Example:
        >>> context = MainContext()
        >>> vm = BluetoothViewModel(MockDriver(), context)
        >>> vm.connection_state.subscribe(print)
        disconnected
        >>> vm.start_scan()
        scanning
        >>> context.run_until(lambda: bool(vm.device_list.value), timeout=5)
        True
    """

    def __init__(self,
                 driver: BLEDriver,
                 context: Optional[MainContext] = None,
                 config: Optional[ViewModelConfig] = None):
        """Initialize view-model and subscribe to driver events.

        Args:
            driver: Driver backend to command
            context: Main context events are applied on (default: new one)
            config: Flow configuration (default: ViewModelConfig())
        """
        self._driver = driver
        self._context = context or MainContext()
        self._config = config or ViewModelConfig()

        self.device_list: Observable[Tuple[DeviceEntry, ...]] = Observable((), name="device_list")
        self.connection_state: Observable[ConnectionState] = Observable(
            ConnectionState.disconnected(), name="connection_state")
        self.battery_level: Observable[Optional[int]] = Observable(None, name="battery_level")
        self.hardware_message: Observable[Optional[HardwareMessage]] = Observable(None, name="hardware_message")

        self._deadline: Optional[TimerHandle] = None
        self._scan_start: Optional[TimerHandle] = None
        self._closed = False
        self._unsubscribe = self._driver.subscribe_events(self._on_driver_event)

    @property
    def context(self) -> MainContext:
        return self._context

    @property
    def driver(self) -> BLEDriver:
        return self._driver

    @property
    def output_enabled(self) -> bool:
        """True only when the connected device's services are ready."""
        return self.connection_state.value.is_services_ready

    # --- Commands ---

    def start_scan(self) -> None:
        """Enter scanning state, then start the driver scan after scan_delay."""
        logger.info("Start scan requested")
        state = self._set_state(ConnectionState.scanning())
        if self._scan_start is not None:
            self._scan_start.cancel()
        self._scan_start = self._context.call_later(self._config.scan_delay, self._start_driver_scan)

        if self._config.scan_timeout is not None:
            self._arm_deadline(self._config.scan_delay + self._config.scan_timeout,
                               state, self._on_scan_timeout)

    def connect(self, name: str) -> None:
        """Enter connecting state and ask the driver to connect."""
        logger.info(f"Connect requested: {name}")
        state = self._set_state(ConnectionState.connecting(name))
        self._driver.connect(name)

        if self._config.connect_timeout is not None:
            self._arm_deadline(self._config.connect_timeout, state, self._on_connect_timeout)

    def toggle_output(self, is_on: bool) -> bool:
        """Write the output value to the fixed output characteristic.

        Performs no state check; callers gate on output_enabled.

        Returns:
            True if the driver issued the write
        """
        data = OUTPUT_ON if is_on else OUTPUT_OFF
        logger.info(f"Output -> {'on' if is_on else 'off'}")
        return self._driver.write(data, self._config.output_characteristic)

    def send_command(self, hex_command: str, device_type: DeviceType) -> bool:
        """Forward a raw hex command for a device type to the driver."""
        return self._driver.send_command(hex_command, device_type)

    def read_battery_level(self) -> None:
        """Ask the driver for the battery level; result lands in battery_level."""
        self._driver.read_battery_level()

    def close(self) -> None:
        """Stop listening to the driver and drop all pending work.

        Cancels a delayed scan start and any deadline. Events already
        posted to the main context are discarded when they run.
        """
        self._closed = True
        self._unsubscribe()
        self._cancel_deadline()
        if self._scan_start is not None:
            self._scan_start.cancel()
            self._scan_start = None

    # --- Driver events ---

    def _start_driver_scan(self) -> None:
        self._scan_start = None
        self._driver.start_scan()

    def _on_driver_event(self, event: DriverEvent) -> None:
        """Runs on a driver thread; hand the event over to the main context."""
        self._context.post(lambda: self._apply_posted(event))

    def _apply_posted(self, event: DriverEvent) -> None:
        if self._closed:
            logger.debug(f"Dropping {event!r} after close")
            return
        self.handle_event(event)

    def handle_event(self, event: DriverEvent) -> None:
        """Apply one driver event. Must run on the main context."""
        if isinstance(event, DeviceDiscovered):
            self._add_device(DeviceEntry(event.name, event.rssi, event.address))
        elif isinstance(event, DeviceConnected):
            logger.info(f"✅ {event.name} connected")
            self._set_state(ConnectionState.connected(event.name))
            self._driver.stop_scan()
            self.device_list.value = ()
        elif isinstance(event, DeviceDisconnected):
            logger.info(f"🔴 {event.name} disconnected or failed to connect")
            self._set_state(ConnectionState.failed(event.name))
        elif isinstance(event, ServicesDiscovered):
            logger.info(f"{event.name} services ready")
            self._set_state(ConnectionState.services_ready(event.name))
        elif isinstance(event, BatteryLevelRead):
            logger.info(f"{event.name} battery {event.level}%")
            self.battery_level.value = event.level
        elif isinstance(event, HardwareMessage):
            logger.info(f"Hardware message: {event.message}")
            self.hardware_message.value = event
        else:
            logger.warning(f"Unhandled driver event: {event!r}")

    def _add_device(self, entry: DeviceEntry) -> None:
        entries = self.device_list.value
        if self._config.dedup == "substring":
            duplicate = any(existing.overlaps(entry) for existing in entries)
        else:
            duplicate = any(existing.same_device(entry) for existing in entries)

        if duplicate:
            return

        logger.debug(f"📡 found {entry.display}")
        self.device_list.value = entries + (entry,)

    # --- State & deadlines ---

    def _set_state(self, state: ConnectionState) -> ConnectionState:
        self._cancel_deadline()
        self.connection_state.value = state
        return state

    def _arm_deadline(self, delay: float, state: ConnectionState, on_timeout) -> None:
        def check():
            self._deadline = None
            # Only fire if nothing has replaced the state we armed for
            if self.connection_state.value is state:
                on_timeout(state)

        self._deadline = self._context.call_later(delay, check)

    def _cancel_deadline(self) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None

    def _on_scan_timeout(self, state: ConnectionState) -> None:
        logger.warning("Scan timed out")
        self._driver.stop_scan()
        self._set_state(ConnectionState.disconnected())

    def _on_connect_timeout(self, state: ConnectionState) -> None:
        logger.warning(f"Connect to {state.device_name} timed out")
        self._set_state(ConnectionState.failed(state.device_name))
