"""Driver backends for BLE peripherals."""

from .base import BLEDriver
from .mock import DEMO_PERIPHERALS, MockDriver, SimulatedPeripheral

__all__ = [
    "BLEDriver",
    "MockDriver",
    "SimulatedPeripheral",
    "DEMO_PERIPHERALS",
    "create_driver",
]


def create_driver(backend: str = "mock", **kwargs) -> BLEDriver:
    """Create a driver by backend name.

    The bleak and dongle backends are imported lazily so their
    libraries are only needed when used.

    Args:
        backend: "mock", "bleak" or "dongle"
        **kwargs: Passed to the driver constructor

    Raises:
        ValueError: for an unknown backend name
    """
    if backend == "mock":
        return MockDriver(**kwargs)
    if backend == "bleak":
        from .bleak_driver import BleakDriver
        return BleakDriver(**kwargs)
    if backend == "dongle":
        from .dongle import DongleDriver
        return DongleDriver(**kwargs)
    raise ValueError(f"Unknown driver backend: {backend}")
