"""Unit tests for BleakDriver with bleak's scanner and client mocked out."""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from bleak.exc import BleakError

from bleview.driver.bleak_driver import BleakDriver
from bleview.models import (
    BATTERY_LEVEL_CHARACTERISTIC,
    BatteryLevelRead,
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    DeviceType,
    ServicesDiscovered,
)


def make_device(name="Lamp-A", address="AA:BB"):
    device = MagicMock()
    device.name = name
    device.address = address
    return device


def make_advertisement(local_name="Lamp-A", rssi=-60):
    advertisement = MagicMock()
    advertisement.local_name = local_name
    advertisement.rssi = rssi
    return advertisement


def make_client():
    client = MagicMock()
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.write_gatt_char = AsyncMock()
    client.read_gatt_char = AsyncMock(return_value=bytearray([73]))
    client.is_connected = True
    return client


class BleakDriverTestCase(unittest.TestCase):

    def setUp(self):
        scanner_patch = patch('bleview.driver.bleak_driver.BleakScanner')
        client_patch = patch('bleview.driver.bleak_driver.BleakClient')
        self.scanner_class = scanner_patch.start()
        self.client_class = client_patch.start()
        self.addCleanup(scanner_patch.stop)
        self.addCleanup(client_patch.stop)

        self.scanner = MagicMock()
        self.scanner.start = AsyncMock()
        self.scanner.stop = AsyncMock()
        self.scanner_class.return_value = self.scanner

        self.client = make_client()
        self.client_class.return_value = self.client

        self.driver = BleakDriver(connect_timeout=3.0)
        self.addCleanup(self.driver.close)
        self.events = []
        self.driver.subscribe_events(self.events.append)

    def run_on_loop(self, coro):
        return self.driver._submit(coro).result(timeout=2.0)

    def discover(self, name="Lamp-A", rssi=-60, address="AA:BB"):
        self.driver._on_detection(make_device(name, address), make_advertisement(name, rssi))


class TestScanning(BleakDriverTestCase):

    def test_start_and_stop_scan(self):
        self.run_on_loop(self.driver._start_scan())
        self.scanner_class.assert_called_once_with(detection_callback=self.driver._on_detection)
        self.scanner.start.assert_awaited_once()

        self.run_on_loop(self.driver._stop_scan())
        self.scanner.stop.assert_awaited_once()

    def test_scan_start_failure(self):
        self.scanner.start.side_effect = BleakError("adapter off")
        self.run_on_loop(self.driver._start_scan())
        self.assertIsNone(self.driver._scanner)

    def test_detection_emits_discovered(self):
        self.discover()
        self.assertEqual(self.events, [DeviceDiscovered("Lamp-A", -60, "AA:BB")])

    def test_detection_falls_back_to_device_name(self):
        self.driver._on_detection(make_device("Lamp-B"), make_advertisement(local_name=None, rssi=-70))
        self.assertEqual(self.events, [DeviceDiscovered("Lamp-B", -70, "AA:BB")])

    def test_nameless_devices_ignored(self):
        self.driver._on_detection(make_device(None), make_advertisement(local_name=None))
        self.assertEqual(self.events, [])


class TestConnecting(BleakDriverTestCase):

    def test_connect_unknown_device(self):
        self.run_on_loop(self.driver._connect("Ghost"))
        self.assertEqual(self.events, [DeviceDisconnected("Ghost")])
        self.client_class.assert_not_called()

    def test_connect_success(self):
        self.discover()
        self.events.clear()

        self.run_on_loop(self.driver._connect("Lamp-A"))
        self.client.connect.assert_awaited_once()
        self.assertEqual(self.client_class.call_args.kwargs["timeout"], 3.0)
        self.assertEqual(self.events, [DeviceConnected("Lamp-A"), ServicesDiscovered("Lamp-A")])

    def test_connect_failure(self):
        self.discover()
        self.events.clear()
        self.client.connect.side_effect = BleakError("refused")

        self.run_on_loop(self.driver._connect("Lamp-A"))
        self.assertEqual(self.events, [DeviceDisconnected("Lamp-A")])
        self.assertFalse(self.driver.write(b"\x01", "ffe1"))

    def test_peripheral_drops_link(self):
        self.discover()
        self.run_on_loop(self.driver._connect("Lamp-A"))
        on_disconnect = self.client_class.call_args.kwargs["disconnected_callback"]

        on_disconnect(self.client)
        self.assertEqual(self.events[-1], DeviceDisconnected("Lamp-A"))


class TestConnectedOperations(BleakDriverTestCase):

    def setUp(self):
        super().setUp()
        self.discover()
        self.run_on_loop(self.driver._connect("Lamp-A"))
        self.events.clear()

    def test_write(self):
        self.assertTrue(self.driver.write(b"\x01", "ffe1"))
        self.run_on_loop(self.driver._write(b"\x00", "ffe1"))
        self.client.write_gatt_char.assert_any_await("ffe1", b"\x00", response=True)

    def test_send_command_uses_device_characteristic(self):
        with patch.object(self.driver, 'write', return_value=True) as write:
            self.assertTrue(self.driver.send_command("a55a", DeviceType.GIMBAL))
        write.assert_called_once_with(b"\xa5\x5a", "0000ffe2-0000-1000-8000-00805f9b34fb")

    def test_send_command_rejects_invalid_hex(self):
        with patch.object(self.driver, 'write', return_value=True) as write:
            self.assertFalse(self.driver.send_command("0g", DeviceType.LIGHT))
        write.assert_not_called()

    def test_read_battery(self):
        self.run_on_loop(self.driver._read_battery())
        self.client.read_gatt_char.assert_awaited_with(BATTERY_LEVEL_CHARACTERISTIC)
        self.assertEqual(self.events, [BatteryLevelRead("Lamp-A", 73)])

    def test_close_disconnects(self):
        self.driver.close()
        self.client.disconnect.assert_awaited_once()


if __name__ == '__main__':
    unittest.main()
