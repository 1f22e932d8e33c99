from .core import (
    DEFAULT_BRIDGE,
    BridgeIdentity,
    DongleInfo,
    find_dongles,
    find_single_dongle,
)
from .errors import DongleNotFoundError, MultipleDonglesError

__all__ = [
    "DEFAULT_BRIDGE",
    "BridgeIdentity",
    "DongleInfo",
    "find_dongles",
    "find_single_dongle",
    "DongleNotFoundError",
    "MultipleDonglesError",
]
