"""Locate the BLE bridge dongle among the serial ports pyserial reports."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from serial.tools import list_ports

from .errors import DongleNotFoundError, MultipleDonglesError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DongleInfo:
    """A serial port that looks like a bridge dongle.

    Attributes:
        port: Port name to open with pyserial (e.g. 'COM3', '/dev/ttyACM0')
        vid: USB vendor id, or None for non-USB ports
        pid: USB product id, or None for non-USB ports
        product: USB product string, if reported
        serial_number: USB serial string, if reported
    """
    port: str
    vid: Optional[int] = None
    pid: Optional[int] = None
    product: Optional[str] = None
    serial_number: Optional[str] = None

    def __str__(self) -> str:
        label = self.product or "unknown product"
        if self.serial_number:
            label += f" #{self.serial_number}"
        return f"{self.port} ({label})"


@dataclass(frozen=True)
class BridgeIdentity:
    """How the bridge dongle identifies itself over USB.

    A field left as None is not checked. The product check is a
    case-insensitive substring match, so firmware revisions that append
    to the product string still match.
    """
    product: Optional[str] = "BLE Bridge"
    vid: Optional[int] = None
    pid: Optional[int] = None

    def matches(self, info: DongleInfo) -> bool:
        if self.vid is not None and info.vid != self.vid:
            return False
        if self.pid is not None and info.pid != self.pid:
            return False
        if self.product is not None:
            return bool(info.product) and self.product.lower() in info.product.lower()
        return True


DEFAULT_BRIDGE = BridgeIdentity()


def find_dongles(identity: BridgeIdentity = DEFAULT_BRIDGE) -> List[DongleInfo]:
    """Return every serial port whose USB identity matches `identity`."""
    found = []
    for port in list_ports.comports():
        info = DongleInfo(
            port=port.device,
            vid=port.vid,
            pid=port.pid,
            product=port.product,
            serial_number=port.serial_number,
        )
        if identity.matches(info):
            found.append(info)
    logger.debug(f"Bridge dongle scan: {len(found)} match(es)")
    return found


def find_single_dongle(identity: BridgeIdentity = DEFAULT_BRIDGE) -> DongleInfo:
    """Return the one connected bridge dongle.

    Raises:
        DongleNotFoundError: if no port matches
        MultipleDonglesError: if more than one port matches; the caller
            has to pick a port explicitly
    """
    found = find_dongles(identity)
    if not found:
        raise DongleNotFoundError(f"No bridge dongle matching {identity} found")
    if len(found) > 1:
        ports = ", ".join(str(info) for info in found)
        raise MultipleDonglesError(f"{len(found)} bridge dongles found: {ports}", devices=found)
    return found[0]
