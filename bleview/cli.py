"""bleview CLI - scan, connect and drive a BLE peripheral from a terminal."""

from __future__ import annotations

import json

import click

from .config import DRIVER_BACKENDS, Config
from .context import MainContext
from .driver import DEMO_PERIPHERALS, BLEDriver, create_driver
from .errors import ConfigError, DriverError
from .logging_setup import setup_logging
from .models import ConnectionStatus
from .presenter import DeviceListPresenter, OutputSwitch, parse_device_name, render_state
from .viewmodel import BluetoothViewModel

DEFAULT_WAIT = 15.0  # seconds


def _build_driver(config: Config) -> BLEDriver:
    cfg = config.driver
    if cfg.backend == "mock":
        return create_driver("mock", latency=cfg.mock_latency, device_name=cfg.host_name)
    if cfg.backend == "dongle":
        from .dongle import BridgeIdentity, DongleConnection
        identity = BridgeIdentity(product=cfg.dongle_product, vid=cfg.dongle_vid, pid=cfg.dongle_pid)
        connection = DongleConnection(port=cfg.port, baudrate=cfg.baudrate, identity=identity)
        return create_driver("dongle", connection=connection, device_name=cfg.host_name)
    return create_driver(cfg.backend, device_name=cfg.host_name)


def _echo_state(state) -> None:
    title, colour = render_state(state)
    click.echo(f"== {title} [{colour}]")


def _echo_alert(title: str, message: str) -> None:
    click.echo(f"!! {title}: {message}")


class Session:
    """Driver + view-model + presenter wired to one main context."""

    def __init__(self, config: Config, echo_state: bool = True):
        self.config = config
        self.context = MainContext()
        self.driver = _build_driver(config)
        self.viewmodel = BluetoothViewModel(self.driver, self.context, config.viewmodel)
        self.presenter = DeviceListPresenter(
            self.viewmodel,
            on_state=_echo_state if echo_state else None,
            alert=_echo_alert,
        )
        self.switch = OutputSwitch(self.viewmodel, alert=_echo_alert)

    @property
    def status(self) -> ConnectionStatus:
        return self.viewmodel.connection_state.value.status

    def wait(self, predicate, timeout: float) -> bool:
        return self.context.run_until(predicate, timeout=timeout)

    def wait_for_device(self, name: str, timeout: float) -> bool:
        return self.wait(lambda: any(e.name == name for e in self.viewmodel.device_list.value), timeout)

    def wait_for_connection(self, timeout: float) -> bool:
        ok = self.wait(lambda: self.status in (ConnectionStatus.SERVICES_READY, ConnectionStatus.FAILED), timeout)
        return ok and self.status is ConnectionStatus.SERVICES_READY

    def read_battery(self, timeout: float):
        self.viewmodel.read_battery_level()
        self.wait(lambda: self.viewmodel.battery_level.value is not None, timeout)
        return self.viewmodel.battery_level.value

    def close(self) -> None:
        self.presenter.unbind()
        self.viewmodel.close()
        self.driver.close()


def _open_session(ctx: click.Context) -> Session:
    try:
        return Session(ctx.obj["config"])
    except DriverError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Path to JSON config (or set BLEVIEW_CONFIG)")
@click.option("--driver", type=click.Choice(DRIVER_BACKENDS), default=None, help="Driver backend")
@click.option("--port", default=None, help="Serial port for the dongle backend")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, driver: str | None, port: str | None, verbose: bool) -> None:
    """bleview - BLE peripheral scan / connect / output tool."""
    ctx.ensure_object(dict)
    try:
        config = Config.load(config_path)
        if driver:
            config.driver.backend = driver
        if port:
            config.driver.port = port
        config.validate()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    setup_logging(verbose=verbose, log_file=config.log_file)
    ctx.obj["config"] = config


@cli.command()
@click.option("--duration", type=float, default=5.0, help="Seconds to scan for")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.pass_context
def scan(ctx: click.Context, duration: float, json_output: bool) -> None:
    """Scan for peripherals and list them."""
    session = _open_session(ctx)
    try:
        session.viewmodel.start_scan()
        session.wait(lambda: False, session.config.viewmodel.scan_delay + duration)
        session.driver.stop_scan()
        entries = session.viewmodel.device_list.value
    finally:
        session.close()

    if json_output:
        click.echo(json.dumps(
            [{"name": e.name, "rssi": e.rssi, "address": e.address} for e in entries],
            indent=2, ensure_ascii=False))
        return

    if not entries:
        click.echo("No devices found.")
        return
    click.echo(f"Found {len(entries)} device(s):")
    for i, entry in enumerate(entries):
        click.echo(f"  [{i}] {entry.display}" + (f"  ({entry.address})" if entry.address else ""))


@cli.command()
@click.argument("name")
@click.option("--output", type=click.Choice(["on", "off"]), default=None, help="Set the output after connecting")
@click.option("--battery", is_flag=True, help="Read the battery level after connecting")
@click.option("--timeout", type=float, default=DEFAULT_WAIT, help="Seconds to wait for each step")
@click.pass_context
def connect(ctx: click.Context, name: str, output: str | None, battery: bool, timeout: float) -> None:
    """Scan until NAME shows up, connect to it and optionally set the output."""
    session = _open_session(ctx)
    try:
        session.viewmodel.start_scan()
        if not session.wait_for_device(name, session.config.viewmodel.scan_delay + timeout):
            raise click.ClickException(f"{name} not found")

        session.viewmodel.connect(name)
        if not session.wait_for_connection(timeout):
            raise click.ClickException(f"Could not connect to {name} ({session.viewmodel.connection_state.value})")

        if output is not None and not session.switch.set(output == "on"):
            raise click.ClickException("Output write failed")

        if battery:
            level = session.read_battery(timeout)
            click.echo(f"Battery: {level}%" if level is not None else "Battery: unknown")
    finally:
        session.close()


@cli.command()
@click.pass_context
def demo(ctx: click.Context) -> None:
    """Run the full flow against simulated peripherals."""
    config: Config = ctx.obj["config"]
    config.driver.backend = "mock"
    session = _open_session(ctx)
    try:
        click.echo("-- toggling output before connecting")
        session.switch.set(True)

        session.viewmodel.start_scan()
        session.wait(lambda: len(session.presenter.rows) >= 3, config.viewmodel.scan_delay + DEFAULT_WAIT)
        for text, subtitle in session.presenter.rows:
            click.echo(f"   {text}  ({subtitle})")

        names = [parse_device_name(text) for text, _ in session.presenter.rows]
        refusing = [p.name for p in DEMO_PERIPHERALS if not p.connectable]

        click.echo("-- selecting a peripheral that refuses connections")
        session.presenter.select_row(names.index(refusing[0]))
        session.wait_for_connection(DEFAULT_WAIT)

        click.echo("-- selecting a working peripheral")
        session.presenter.select_row(names.index(DEMO_PERIPHERALS[0].name))
        if session.wait_for_connection(DEFAULT_WAIT):
            session.switch.set(True)
            click.echo(f"   output on, writes: {len(session.driver.writes)}")
            click.echo(f"   battery: {session.read_battery(DEFAULT_WAIT)}%")
            session.driver.simulate_message(f"{DEMO_PERIPHERALS[0].name}: 固件 v1.2")
            session.wait(lambda: session.presenter.last_message is not None, DEFAULT_WAIT)
    finally:
        session.close()


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
