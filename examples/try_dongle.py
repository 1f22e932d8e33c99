#!/usr/bin/env python3
"""
Interactive Dongle Test Script.

Drives a BLE bridge dongle through the view-model: scans, connects to
the strongest peripheral, switches its output on and off, reads the
battery. Pass --mock to run against simulated peripherals instead.
"""

import sys
import logging
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bleview import BluetoothViewModel, MainContext, MockDriver
from bleview.config import ViewModelConfig
from bleview.driver.dongle import DongleDriver
from bleview.errors import DriverError
from bleview.models import ConnectionStatus

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def main():
    use_mock = "--mock" in sys.argv
    print("Initializing driver...")
    driver = MockDriver(latency=0.2) if use_mock else DongleDriver()

    if not use_mock:
        try:
            driver.open()
        except DriverError as e:
            print(f"Failed to open dongle: {e}")
            return
    print("Driver ready!")

    context = MainContext()
    vm = BluetoothViewModel(driver, context, ViewModelConfig(scan_delay=0.5))
    vm.connection_state.subscribe(lambda state: print(f"State: {state}"))

    try:
        print("\nScanning for 5 seconds (Ctrl+C to stop)...")
        vm.start_scan()
        context.run_until(lambda: False, timeout=5.5)
        driver.stop_scan()

        entries = sorted(vm.device_list.value, key=lambda e: e.rssi, reverse=True)
        for entry in entries:
            print(f"  {entry.display}")
        if not entries:
            print("No peripherals found.")
            return

        target = entries[0].name
        print(f"\nConnecting to {target}...")
        vm.connect(target)
        context.run_until(
            lambda: vm.connection_state.value.status in (ConnectionStatus.SERVICES_READY, ConnectionStatus.FAILED),
            timeout=15.0,
        )
        if not vm.output_enabled:
            print("Connection failed.")
            return

        print("\nOutput on, then off...")
        vm.toggle_output(True)
        context.run_until(lambda: False, timeout=1.0)
        vm.toggle_output(False)

        print("\nReading battery (2s timeout)...")
        vm.read_battery_level()
        context.run_until(lambda: vm.battery_level.value is not None, timeout=2.0)
        print(f"Battery: {vm.battery_level.value}")

    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        print("\nDisconnecting...")
        vm.close()
        driver.close()
        print("Done.")


if __name__ == "__main__":
    main()
