"""Unit tests for data models."""

import dataclasses
import unittest

from bleview.models import (
    ConnectionState,
    ConnectionStatus,
    DeviceConnected,
    DeviceDiscovered,
    DeviceEntry,
)


class TestConnectionState(unittest.TestCase):
    """Test ConnectionState variants."""

    def test_initial_variants_carry_no_name(self):
        self.assertEqual(ConnectionState.disconnected().status, ConnectionStatus.DISCONNECTED)
        self.assertIsNone(ConnectionState.disconnected().device_name)
        self.assertIsNone(ConnectionState.scanning().device_name)

    def test_named_variants(self):
        cases = {
            ConnectionState.connecting: ConnectionStatus.CONNECTING,
            ConnectionState.connected: ConnectionStatus.CONNECTED,
            ConnectionState.services_ready: ConnectionStatus.SERVICES_READY,
            ConnectionState.failed: ConnectionStatus.FAILED,
        }
        for factory, status in cases.items():
            state = factory("Lamp-A")
            self.assertEqual(state.status, status)
            self.assertEqual(state.device_name, "Lamp-A")

    def test_equality_by_value(self):
        self.assertEqual(ConnectionState.connected("A"), ConnectionState.connected("A"))
        self.assertNotEqual(ConnectionState.connected("A"), ConnectionState.connected("B"))
        self.assertNotEqual(ConnectionState.connected("A"), ConnectionState.failed("A"))

    def test_is_services_ready(self):
        self.assertTrue(ConnectionState.services_ready("A").is_services_ready)
        self.assertFalse(ConnectionState.connected("A").is_services_ready)
        self.assertFalse(ConnectionState.disconnected().is_services_ready)

    def test_str(self):
        self.assertEqual(str(ConnectionState.scanning()), "scanning")
        self.assertEqual(str(ConnectionState.failed("Lamp-A")), "failed(Lamp-A)")

    def test_immutable(self):
        state = ConnectionState.connected("A")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            state.device_name = "B"


class TestDeviceEntry(unittest.TestCase):
    """Test DeviceEntry display and identity rules."""

    def test_display(self):
        entry = DeviceEntry("Lamp-A", -60)
        self.assertEqual(entry.display, "Lamp-A [信号: -60]")
        self.assertEqual(str(entry), entry.display)

    def test_same_device_by_name(self):
        self.assertTrue(DeviceEntry("Lamp-A", -60).same_device(DeviceEntry("Lamp-A", -80)))
        self.assertFalse(DeviceEntry("Lamp-A", -60).same_device(DeviceEntry("Lamp-A-2", -60)))

    def test_same_device_by_address(self):
        a = DeviceEntry("Lamp", -60, address="AA")
        b = DeviceEntry("Lamp", -60, address="BB")
        self.assertFalse(a.same_device(b))
        self.assertTrue(a.same_device(DeviceEntry("Renamed", -50, address="AA")))

    def test_same_device_falls_back_to_name_when_address_missing(self):
        self.assertTrue(DeviceEntry("Lamp", -60, address="AA").same_device(DeviceEntry("Lamp", -60)))

    def test_overlaps_both_directions(self):
        existing = DeviceEntry("Lamp-A", -60)
        self.assertTrue(existing.overlaps(DeviceEntry("Lamp-A-2", -70)))
        self.assertTrue(existing.overlaps(DeviceEntry("Lamp", -70)))
        self.assertFalse(existing.overlaps(DeviceEntry("Fan", -70)))


class TestEvents(unittest.TestCase):

    def test_events_are_values(self):
        self.assertEqual(DeviceConnected("A"), DeviceConnected("A"))
        self.assertEqual(DeviceDiscovered("A", -60).address, None)


if __name__ == '__main__':
    unittest.main()
