"""Unit tests for DongleDriver (protocol over a mocked DongleConnection)."""

import unittest
from unittest.mock import MagicMock

from bleview.dongle.connection import DongleConnection
from bleview.driver.dongle import DongleDriver
from bleview.errors import DriverError
from bleview.models import (
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    DeviceType,
    HardwareMessage,
    ServicesDiscovered,
)


class DongleDriverTestCase(unittest.TestCase):

    def setUp(self):
        self.connection = MagicMock(spec=DongleConnection)
        self.connection.is_connected.return_value = True
        self.connection.connect.return_value = True
        self.connection.write.return_value = True
        self.connection.port = "/dev/ttyACM0"

        self.driver = DongleDriver(connection=self.connection)
        self.on_data = self.connection.subscribe_data.call_args[0][0]
        self.on_lost = self.connection.subscribe_connection_lost.call_args[0][0]

        self.events = []
        self.driver.subscribe_events(self.events.append)

    def written(self):
        return [c[0][0] for c in self.connection.write.call_args_list]


class TestDongleDriverCommands(DongleDriverTestCase):

    def test_scan_commands(self):
        self.driver.start_scan()
        self.driver.stop_scan()
        self.assertEqual(self.written(), [b"!scanStart\n", b"!scanStop\n"])

    def test_stop_scan_skipped_when_port_closed(self):
        self.connection.is_connected.return_value = False
        self.driver.stop_scan()
        self.connection.write.assert_not_called()

    def test_connect(self):
        self.driver.connect("Lamp-A")
        self.assertEqual(self.written(), [b"!connect -name Lamp-A\n"])
        self.assertEqual(self.events, [])

    def test_connect_send_failure_emits_disconnect(self):
        self.connection.write.return_value = False
        self.driver.connect("Lamp-A")
        self.assertEqual(self.events, [DeviceDisconnected("Lamp-A")])

    def test_opens_lazily(self):
        self.connection.is_connected.return_value = False
        self.driver.start_scan()
        self.connection.connect.assert_called_once()

    def test_open_failure(self):
        self.connection.is_connected.return_value = False
        self.connection.connect.return_value = False
        with self.assertRaises(DriverError):
            self.driver.open()
        self.driver.connect("Lamp-A")
        self.assertEqual(self.events, [DeviceDisconnected("Lamp-A")])

    def test_write_requires_connected_peripheral(self):
        self.assertFalse(self.driver.write(b"\x01", "ffe1"))
        self.on_data(b"CONNECTED Lamp-A\n")
        self.assertTrue(self.driver.write(b"\x01", "ffe1"))
        self.assertEqual(self.written()[-1], b"!write -char ffe1 -data 01\n")

    def test_send_command_and_battery(self):
        self.assertTrue(self.driver.send_command("a55a", DeviceType.LIGHT))
        self.driver.read_battery_level()
        self.assertEqual(self.written(), [b"!command -device light -data a55a\n", b"!readBattery\n"])

    def test_send_command_rejects_invalid_hex(self):
        self.assertFalse(self.driver.send_command("not hex", DeviceType.GIMBAL))
        self.connection.write.assert_not_called()

    def test_close(self):
        self.driver.close()
        self.connection.disconnect.assert_called_once()


class TestDongleDriverEvents(DongleDriverTestCase):

    def test_lines_split_across_chunks(self):
        self.on_data(b"FOUND Lamp-A,-6")
        self.assertEqual(self.events, [])
        self.on_data(b"0,AA\nFOUND Lamp-B,-70\n")
        self.assertEqual(self.events, [
            DeviceDiscovered("Lamp-A", -60, "AA"),
            DeviceDiscovered("Lamp-B", -70),
        ])

    def test_garbage_lines_ignored(self):
        self.on_data(b"\n?? noise\r\nSERVICES Lamp-A\r\n")
        self.assertEqual(self.events, [ServicesDiscovered("Lamp-A")])

    def test_lost_line_clears_connected_peripheral(self):
        self.on_data(b"CONNECTED Lamp-A\nLOST Lamp-A\n")
        self.assertEqual(self.events, [DeviceConnected("Lamp-A"), DeviceDisconnected("Lamp-A")])
        self.assertFalse(self.driver.write(b"\x01", "ffe1"))

    def test_message_line(self):
        self.on_data(b"MSG Lamp-A: overheating\n")
        self.assertEqual(self.events, [HardwareMessage("Lamp-A: overheating")])

    def test_dongle_unplugged_while_connected(self):
        self.on_data(b"CONNECTED Lamp-A\n")
        self.on_lost(OSError("unplugged"))
        self.assertEqual(self.events[-1], DeviceDisconnected("Lamp-A"))

    def test_dongle_unplugged_while_idle(self):
        self.on_lost(OSError("unplugged"))
        self.assertEqual(self.events, [])


if __name__ == '__main__':
    unittest.main()
