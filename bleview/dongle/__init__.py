"""Dongle layer for USB CDC BLE bridge dongles.

This module provides:
- Low-level USB CDC connection management (DongleConnection) - Raw byte stream
- Line splitting of the byte stream (LineBuffer)
- Device discovery utilities (find_single_dongle, find_dongles)
"""

from .connection import DongleConnection
from .buffer import LineBuffer
from .dongle_finder import (
    DEFAULT_BRIDGE,
    BridgeIdentity,
    DongleInfo,
    DongleNotFoundError,
    MultipleDonglesError,
    find_dongles,
    find_single_dongle,
)

__all__ = [
    'DongleConnection',
    'LineBuffer',
    'DEFAULT_BRIDGE',
    'BridgeIdentity',
    'DongleInfo',
    'DongleNotFoundError',
    'MultipleDonglesError',
    'find_dongles',
    'find_single_dongle',
]
