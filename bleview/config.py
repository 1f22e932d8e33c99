"""
Centralized configuration for bleview.

Dataclass-based configuration with defaults and validation.
Values come from a JSON file with BLEVIEW_* environment overrides.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigError
from .models import OUTPUT_CHARACTERISTIC

logger = logging.getLogger(__name__)

DRIVER_BACKENDS = ("mock", "bleak", "dongle")
DEDUP_MODES = ("exact", "substring")


@dataclass
class DriverConfig:
    """Driver backend configuration."""

    backend: str = "mock"             # "mock" | "bleak" | "dongle"
    host_name: str = "ViewModel_Managed"
    port: Optional[str] = None        # dongle serial port, None = auto-detect
    baudrate: int = 115_200
    dongle_product: Optional[str] = "BLE Bridge"  # USB product substring for auto-detect
    dongle_vid: Optional[int] = None
    dongle_pid: Optional[int] = None
    mock_latency: float = 0.2         # seconds between mock command and event


@dataclass
class ViewModelConfig:
    """Scan / connect flow configuration."""

    scan_delay: float = 1.0                  # seconds before the driver scan starts
    scan_timeout: Optional[float] = None     # None = scan until a callback arrives
    connect_timeout: Optional[float] = None  # None = wait forever
    dedup: str = "exact"                     # "exact" | "substring"
    output_characteristic: str = OUTPUT_CHARACTERISTIC


@dataclass
class Config:
    """Main bleview configuration."""

    driver: DriverConfig = field(default_factory=DriverConfig)
    viewmodel: ViewModelConfig = field(default_factory=ViewModelConfig)
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigError: if any value is invalid
        """
        if self.driver.backend not in DRIVER_BACKENDS:
            raise ConfigError(f"Unknown driver backend {self.driver.backend!r}, expected one of {DRIVER_BACKENDS}")
        if self.viewmodel.dedup not in DEDUP_MODES:
            raise ConfigError(f"Unknown dedup mode {self.viewmodel.dedup!r}, expected one of {DEDUP_MODES}")
        if self.viewmodel.scan_delay < 0:
            raise ConfigError("scan_delay must not be negative")
        for name in ("scan_timeout", "connect_timeout"):
            value = getattr(self.viewmodel, name)
            if value is not None and value <= 0:
                raise ConfigError(f"{name} must be positive or null")
        if self.driver.baudrate <= 0:
            raise ConfigError("baudrate must be positive")

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Config":
        """
        Load configuration from file.

        Args:
            path: Path to config file. If None, uses BLEVIEW_CONFIG or the
                  per-user default.

        Returns:
            Config instance with loaded values.
        """
        if path is None:
            path = cls._get_default_path()

        path = Path(path)

        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", path)
            return cls._from_dict({})

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

        logger.info("Loaded config from %s", path)
        return cls._from_dict(data)

    @staticmethod
    def _get_default_path() -> Path:
        env_path = os.getenv("BLEVIEW_CONFIG")
        if env_path:
            return Path(env_path)
        return Path.home() / ".config" / "bleview" / "config.json"

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary (JSON data) plus environment overrides."""
        try:
            driver = DriverConfig(
                backend=os.getenv("BLEVIEW_DRIVER", data.get("DRIVER", "mock")),
                host_name=data.get("HOST_NAME", "ViewModel_Managed"),
                port=os.getenv("BLEVIEW_PORT", data.get("PORT")),
                baudrate=int(data.get("BAUDRATE", 115_200)),
                dongle_product=data.get("DONGLE_PRODUCT", "BLE Bridge"),
                dongle_vid=_optional_int(data.get("DONGLE_VID")),
                dongle_pid=_optional_int(data.get("DONGLE_PID")),
                mock_latency=float(data.get("MOCK_LATENCY", 0.2)),
            )

            viewmodel = ViewModelConfig(
                scan_delay=float(os.getenv("BLEVIEW_SCAN_DELAY", data.get("SCAN_DELAY", 1.0))),
                scan_timeout=_optional_float(data.get("SCAN_TIMEOUT")),
                connect_timeout=_optional_float(data.get("CONNECT_TIMEOUT")),
                dedup=os.getenv("BLEVIEW_DEDUP", data.get("DEDUP", "exact")),
                output_characteristic=data.get("OUTPUT_CHARACTERISTIC", OUTPUT_CHARACTERISTIC),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}") from e

        return cls(
            driver=driver,
            viewmodel=viewmodel,
            log_file=data.get("LOG_FILE"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export config to dictionary for saving."""
        return {
            "DRIVER": self.driver.backend,
            "HOST_NAME": self.driver.host_name,
            "PORT": self.driver.port,
            "BAUDRATE": self.driver.baudrate,
            "DONGLE_PRODUCT": self.driver.dongle_product,
            "DONGLE_VID": self.driver.dongle_vid,
            "DONGLE_PID": self.driver.dongle_pid,
            "MOCK_LATENCY": self.driver.mock_latency,
            "SCAN_DELAY": self.viewmodel.scan_delay,
            "SCAN_TIMEOUT": self.viewmodel.scan_timeout,
            "CONNECT_TIMEOUT": self.viewmodel.connect_timeout,
            "DEDUP": self.viewmodel.dedup,
            "OUTPUT_CHARACTERISTIC": self.viewmodel.output_characteristic,
            "LOG_FILE": self.log_file,
        }

    def save(self, path: str | Path) -> None:
        """Save config to file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info("Saved config to %s", path)


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value: Any) -> Optional[int]:
    """Accept ints and strings such as "0x2FE3"."""
    if value is None:
        return None
    if isinstance(value, str):
        return int(value, 0)
    return int(value)
