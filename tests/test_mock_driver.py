"""Unit tests for MockDriver and the driver base class."""

import threading
import unittest

from bleview.driver import DEMO_PERIPHERALS, MockDriver, SimulatedPeripheral, create_driver
from bleview.models import (
    BatteryLevelRead,
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    DeviceType,
    HardwareMessage,
    ServicesDiscovered,
)


class TestMockDriver(unittest.TestCase):

    def setUp(self):
        self.driver = MockDriver([
            SimulatedPeripheral("Lamp-A", rssi=-60, address="AA", battery_level=90),
            SimulatedPeripheral("Gimbal", rssi=-75, connectable=False),
            SimulatedPeripheral("Mute", has_services=False),
        ])
        self.events = []
        self.unsubscribe = self.driver.subscribe_events(self.events.append)

    def tearDown(self):
        self.driver.close()

    def test_scan_reports_all_peripherals(self):
        self.driver.start_scan()
        self.assertTrue(self.driver.is_scanning)
        self.assertEqual(self.events[0], DeviceDiscovered("Lamp-A", -60, "AA"))
        self.assertEqual(len(self.events), 3)

        self.driver.stop_scan()
        self.assertFalse(self.driver.is_scanning)

    def test_connect_success_then_services(self):
        self.driver.connect("Lamp-A")
        self.assertEqual(self.events, [DeviceConnected("Lamp-A"), ServicesDiscovered("Lamp-A")])
        self.assertEqual(self.driver.connected_name, "Lamp-A")

    def test_connect_without_services(self):
        self.driver.connect("Mute")
        self.assertEqual(self.events, [DeviceConnected("Mute")])

    def test_connect_refused_and_unknown(self):
        self.driver.connect("Gimbal")
        self.driver.connect("Nobody")
        self.assertEqual(self.events, [DeviceDisconnected("Gimbal"), DeviceDisconnected("Nobody")])
        self.assertIsNone(self.driver.connected_name)

    def test_write_requires_connection(self):
        self.assertFalse(self.driver.write(b"\x01", "ffe1"))
        self.driver.connect("Lamp-A")
        self.assertTrue(self.driver.write(b"\x01", "ffe1"))
        self.assertEqual(self.driver.writes, [(b"\x01", "ffe1")])

    def test_send_command(self):
        self.assertFalse(self.driver.send_command("01", DeviceType.LIGHT))
        self.driver.connect("Lamp-A")
        self.assertTrue(self.driver.send_command("a501", DeviceType.LIGHT))
        self.assertFalse(self.driver.send_command("zz", DeviceType.LIGHT))
        self.assertEqual(self.driver.commands, [("a501", DeviceType.LIGHT)])

    def test_battery(self):
        self.driver.read_battery_level()
        self.assertEqual(self.events, [])
        self.driver.connect("Lamp-A")
        self.driver.read_battery_level()
        self.assertEqual(self.events[-1], BatteryLevelRead("Lamp-A", 90))

    def test_simulate_message(self):
        self.driver.simulate_message("firmware v1.2")
        self.assertEqual(self.events, [HardwareMessage("firmware v1.2")])

    def test_simulate_disconnect(self):
        self.driver.connect("Lamp-A")
        self.driver.simulate_disconnect()
        self.assertEqual(self.events[-1], DeviceDisconnected("Lamp-A"))
        self.assertIsNone(self.driver.connected_name)

    def test_unsubscribe(self):
        self.unsubscribe()
        self.driver.start_scan()
        self.assertEqual(self.events, [])

    def test_failing_subscriber_does_not_block_others(self):
        def broken(_):
            raise RuntimeError("boom")

        self.driver.subscribe_events(broken)
        other = []
        self.driver.subscribe_events(other.append)
        self.driver.connect("Gimbal")
        self.assertEqual(other, [DeviceDisconnected("Gimbal")])


class TestMockDriverLatency(unittest.TestCase):

    def test_events_arrive_from_timer_thread(self):
        driver = MockDriver([SimulatedPeripheral("Lamp-A")], latency=0.01)
        done = threading.Event()
        threads = []

        def on_event(event):
            threads.append(threading.current_thread())
            if isinstance(event, ServicesDiscovered):
                done.set()

        driver.subscribe_events(on_event)
        driver.connect("Lamp-A")
        self.assertTrue(done.wait(timeout=2.0))
        self.assertTrue(all(t is not threading.current_thread() for t in threads))
        driver.close()

    def test_stop_scan_suppresses_late_discoveries(self):
        driver = MockDriver([SimulatedPeripheral("Lamp-A")], latency=0.05)
        events = []
        driver.subscribe_events(events.append)
        driver.start_scan()
        driver.stop_scan()
        threading.Event().wait(0.2)
        self.assertEqual(events, [])
        driver.close()


class TestCreateDriver(unittest.TestCase):

    def test_mock(self):
        driver = create_driver("mock", latency=0)
        self.assertIsInstance(driver, MockDriver)
        driver.start_scan()
        self.assertTrue(driver.is_scanning)
        self.assertEqual(len(DEMO_PERIPHERALS), 3)

    def test_unknown(self):
        with self.assertRaises(ValueError):
            create_driver("carrier-pigeon")


if __name__ == '__main__':
    unittest.main()
