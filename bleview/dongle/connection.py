"""Low-level USB CDC connection to a BLE bridge dongle.

The dongle is a USB serial device that:
- Scans for and connects to BLE peripherals on the host's behalf
- Accepts line commands from the host (see bleview.protocol)
- Reports scan results and connection changes as event lines

This module handles:
- USB CDC serial connection management
- Raw byte stream forwarding with callbacks

Note: This is a RAW BYTE STREAM layer. It does not interpret
      messages. DongleDriver splits the stream into lines and parses them.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import serial

from .dongle_finder import (
    DEFAULT_BRIDGE,
    BridgeIdentity,
    DongleNotFoundError,
    MultipleDonglesError,
    find_single_dongle,
)

logger = logging.getLogger(__name__)

CONNECTION_BAUD = 115_200
READ_TIMEOUT = 0.1  # seconds
READ_CHUNK_SIZE = 1024  # bytes


class DongleConnection:
    """Low-level USB CDC connection to a BLE bridge dongle.

    Responsibilities:
    - Open/close serial connection to dongle
    - Forward raw byte chunks to subscribers
    - Send raw bytes to dongle
    - Report unexpected connection loss

    Example:
        >>> dongle = DongleConnection(port="/dev/ttyACM0")
        >>> dongle.subscribe_data(lambda chunk: print(f"Data: {chunk}"))
        >>> dongle.connect()
        True
        >>> dongle.write(b"!scanStart\\n")
        >>> dongle.disconnect()
    """

    def __init__(self,
                 port: Optional[str] = None,
                 baudrate: int = CONNECTION_BAUD,
                 timeout: float = READ_TIMEOUT,
                 chunk_size: int = READ_CHUNK_SIZE,
                 identity: BridgeIdentity = DEFAULT_BRIDGE):
        """Initialize dongle connection.

        Args:
            port: Serial port path (e.g., '/dev/ttyACM0'), or None to auto-detect
            baudrate: Serial baud rate
            timeout: Read timeout in seconds
            chunk_size: Maximum bytes to read per chunk
            identity: USB identity used for auto-detection
        """
        self._port = port
        self._baudrate = baudrate
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._identity = identity

        self._serial: Optional[serial.Serial] = None
        self._connected = False

        self._active = False
        self._reader_thread: Optional[threading.Thread] = None

        self._data_callbacks: List[Callable[[bytes], None]] = []
        self._lost_callbacks: List[Callable[[Exception], None]] = []
        self._callback_lock = threading.Lock()
        self._write_lock = threading.Lock()

    @property
    def port(self) -> Optional[str]:
        return self._port

    def connect(self) -> bool:
        """Open USB CDC connection to dongle.

        If port is None, attempts to auto-detect the dongle.

        Returns:
            True if connection successful, False otherwise
        """
        if self._connected:
            logger.warning("Already connected")
            return True

        if self._port is None:
            try:
                info = find_single_dongle(self._identity)
                self._port = info.port
                logger.info(f"Auto-detected dongle {info}")
            except (DongleNotFoundError, MultipleDonglesError) as e:
                logger.error(f"Dongle not found: {e}")
                return False

        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baudrate,
                timeout=self._timeout,
            )
            self._serial.reset_input_buffer()
            self._serial.reset_output_buffer()
            logger.info(f"Connected to dongle on {self._port} @ {self._baudrate} baud")
        except serial.SerialException as e:
            logger.error(f"Failed to open {self._port}: {e}")
            self._serial = None
            return False

        self._active = True
        self._connected = True
        self._start_reader_thread()

        return True

    def disconnect(self) -> None:
        """Close dongle connection and cleanup resources."""
        if not self._connected:
            return

        self._active = False
        self._connected = False

        if self._reader_thread and self._reader_thread.is_alive():
            self._reader_thread.join(timeout=1.0)

        self._close_serial()
        logger.info("Disconnected from dongle")

    def is_connected(self) -> bool:
        """Check if dongle USB connection is active."""
        return self._connected and self._serial is not None

    def write(self, data: bytes) -> bool:
        """Send raw bytes to dongle.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.is_connected() or self._serial is None:
            logger.warning("Cannot send, not connected")
            return False

        try:
            with self._write_lock:
                self._serial.write(data)
                self._serial.flush()
            return True
        except serial.SerialException as e:
            logger.error(f"Send error: {e}")
            self._handle_error(e)
            return False

    def subscribe_data(self,
                       callback: Callable[[bytes], None]
                       ) -> Callable[[], None]:
        """Subscribe to raw byte stream from dongle.

        Args:
            callback: Function to call with byte chunks

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._data_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._data_callbacks:
                    self._data_callbacks.remove(callback)

        return unsubscribe

    def subscribe_connection_lost(self,
                                  callback: Callable[[Exception], None]
                                  ) -> Callable[[], None]:
        """Subscribe to unexpected connection loss (e.g. dongle unplugged).

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._lost_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._lost_callbacks:
                    self._lost_callbacks.remove(callback)

        return unsubscribe

    # Internal methods

    def _start_reader_thread(self) -> None:
        self._reader_thread = threading.Thread(
            target=self._reader_loop,
            daemon=True,
            name="DongleReader"
        )
        self._reader_thread.start()

    def _reader_loop(self) -> None:
        """Read raw bytes from dongle and dispatch to callbacks."""
        logger.debug("Reader thread started")

        while self._active and self._serial:
            try:
                chunk = self._serial.read(self._chunk_size)
                if chunk:
                    self._notify(self._data_callbacks, chunk)
            except serial.SerialException as e:
                if self._active:
                    logger.error(f"Serial read error: {e}")
                    self._handle_error(e)
                break

        logger.debug("Reader thread exiting")

    def _notify(self, callbacks: list, value) -> None:
        with self._callback_lock:
            callbacks = list(callbacks)

        for callback in callbacks:
            try:
                callback(value)
            except Exception as e:
                logger.error(f"Error in dongle callback: {e}")

    def _close_serial(self) -> None:
        if self._serial:
            try:
                self._serial.close()
            except serial.SerialException as e:
                logger.error(f"Error closing serial port: {e}")
            finally:
                self._serial = None

    def _handle_error(self, error: Exception) -> None:
        """Handle fatal connection error by closing resources.

        Does not join threads to avoid deadlock if called from reader thread.
        """
        logger.warning(f"Handling connection error: {error}")
        self._active = False
        self._connected = False
        self._close_serial()
        logger.info("Connection closed due to error")
        self._notify(self._lost_callbacks, error)
