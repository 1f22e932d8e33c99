"""Presentation layer: turns view-model state into display state.

DeviceListPresenter keeps a title, a bar colour and the rows of the
device list in sync with the view-model and forwards row taps.
OutputSwitch gates the output toggle on the services-ready state.
No widgets live here; a front end renders these values.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from .models import ConnectionState, ConnectionStatus, DeviceEntry, HardwareMessage
from .viewmodel import BluetoothViewModel

logger = logging.getLogger(__name__)

ROW_SUBTITLE = "点击连接"

ALERT_TITLE = "无法切换"
ALERT_MESSAGE = "请先连接设备并等待服务就绪。"
MESSAGE_TITLE = "设备消息"

# (title template, bar colour) per variant
STATE_STYLES = {
    ConnectionStatus.DISCONNECTED: ("蓝牙设备 (未连接)", "background"),
    ConnectionStatus.SCANNING: ("正在扫描...", "yellow"),
    ConnectionStatus.CONNECTING: ("连接中: {name}", "orange"),
    ConnectionStatus.CONNECTED: ("已连接: {name}", "green"),
    ConnectionStatus.SERVICES_READY: ("服务就绪: {name}", "blue"),
    ConnectionStatus.FAILED: ("连接失败/断开: {name}", "red"),
}

AlertHook = Callable[[str, str], None]


def render_state(state: ConnectionState) -> Tuple[str, str]:
    """Return (title, colour) for a connection state."""
    template, colour = STATE_STYLES[state.status]
    return template.format(name=state.device_name), colour


def parse_device_name(display: str) -> Optional[str]:
    """Extract the device name from a row's display text.

    The name is everything before the first space.
    """
    name = display.split(" ", 1)[0]
    return name or None


class DeviceListPresenter:
    """Display state for the device list screen.

    Attributes:
        title: Screen title for the current connection state
        bar_color: Colour name for the current connection state
        rows: (text, subtitle) per device entry
        last_message: Text of the last hardware message shown, or None
    """

    def __init__(self,
                 viewmodel: BluetoothViewModel,
                 on_reload: Optional[Callable[[], None]] = None,
                 on_state: Optional[Callable[[ConnectionState], None]] = None,
                 alert: Optional[AlertHook] = None):
        """Bind to a view-model.

        Args:
            viewmodel: View-model to observe and command
            on_reload: Called after rows are refreshed
            on_state: Called after title and colour are refreshed
            alert: Called with (title, message) for each new hardware message
        """
        self._viewmodel = viewmodel
        self._on_reload = on_reload
        self._on_state = on_state
        self._alert = alert

        self.title = ""
        self.bar_color = ""
        self.rows: List[Tuple[str, str]] = []
        self.last_message: Optional[str] = None

        # subscribe replays the current value; only later messages alert
        self._replayed = viewmodel.hardware_message.value
        self._unsubscribers = [
            viewmodel.device_list.subscribe(self._reload),
            viewmodel.connection_state.subscribe(self._update_state),
            viewmodel.hardware_message.subscribe(self._show_message),
        ]

    def select_row(self, index: int) -> Optional[str]:
        """Connect to the device shown in row `index`.

        Returns:
            Device name a connect was issued for, or None
        """
        if not 0 <= index < len(self.rows):
            logger.warning(f"Row {index} out of range (0..{len(self.rows) - 1})")
            return None

        text, _ = self.rows[index]
        name = parse_device_name(text)
        if name is None:
            logger.warning(f"Could not parse device name from {text!r}")
            return None

        self._viewmodel.connect(name)
        return name

    def unbind(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _reload(self, entries: Tuple[DeviceEntry, ...]) -> None:
        self.rows = [(entry.display, ROW_SUBTITLE) for entry in entries]
        if self._on_reload:
            self._on_reload()

    def _update_state(self, state: ConnectionState) -> None:
        self.title, self.bar_color = render_state(state)
        if self._on_state:
            self._on_state(state)

    def _show_message(self, message: Optional[HardwareMessage]) -> None:
        if message is None or message is self._replayed:
            return
        self.last_message = message.message
        if self._alert:
            self._alert(MESSAGE_TITLE, message.message)


class OutputSwitch:
    """On/off control for the device output.

    A change is only forwarded while the view-model reports
    output_enabled; otherwise the switch snaps back and an alert is shown.
    """

    def __init__(self,
                 viewmodel: BluetoothViewModel,
                 alert: Optional[AlertHook] = None,
                 is_on: bool = False):
        self._viewmodel = viewmodel
        self._alert = alert
        self.is_on = is_on

    def set(self, is_on: bool) -> bool:
        """User flipped the switch to `is_on`.

        Returns:
            True if the write was issued
        """
        previous = self.is_on
        self.is_on = is_on

        if not self._viewmodel.output_enabled:
            self.is_on = previous
            logger.warning(f"Output toggle rejected in state {self._viewmodel.connection_state.value}")
            if self._alert:
                self._alert(ALERT_TITLE, ALERT_MESSAGE)
            return False

        if not self._viewmodel.toggle_output(is_on):
            self.is_on = previous
            return False
        return True
