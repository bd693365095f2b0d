"""Tunables, read from SWIVEL_* environment variables.

The angle thresholds, debounce count and poll interval were tuned on a single
device; expect to adjust them for another accelerometer.
"""

from dataclasses import dataclass, fields
from typing import *

from orientation import Thresholds
from xtools import DEFAULT_PATTERNS

ENV_PREFIX = "SWIVEL_"


def _flag(value):
    value = value.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"expected a boolean, got {value!r}")


def _patterns(value):
    return tuple(p.strip() for p in value.split(",") if p.strip())


@dataclass
class Config:
    interval: float = 0.5
    debounce: int = 3
    sector_width: float = 60.0
    magnitude_tolerance: float = 0.3
    flat_angle: float = 60.0
    iio_path: str = "/sys/bus/iio/devices"
    device: Optional[str] = None
    mount_matrix: Optional[str] = None
    output: Optional[str] = None
    input_backend: str = "xinput"
    input_path: str = "/sys/class/input"
    command_timeout: float = 2.0
    read_timeout: float = 1.0
    dry_run: bool = False
    touchscreen_patterns: Tuple[str, ...] = DEFAULT_PATTERNS["touchscreen"]
    touchpad_patterns: Tuple[str, ...] = DEFAULT_PATTERNS["touchpad"]
    keyboard_patterns: Tuple[str, ...] = DEFAULT_PATTERNS["keyboard"]

    PARSERS: ClassVar[Dict[str, Callable]] = {
        "interval": float,
        "debounce": int,
        "sector_width": float,
        "magnitude_tolerance": float,
        "flat_angle": float,
        "command_timeout": float,
        "read_timeout": float,
        "dry_run": _flag,
        "touchscreen_patterns": _patterns,
        "touchpad_patterns": _patterns,
        "keyboard_patterns": _patterns,
    }

    @staticmethod
    def from_env(environ):
        values = {}
        for f in fields(Config):
            key = ENV_PREFIX + f.name.upper()
            if key not in environ:
                continue
            parse = Config.PARSERS.get(f.name, str)
            try:
                values[f.name] = parse(environ[key])
            except ValueError as e:
                raise ValueError(f"{key}: {e}")
        return Config(**values)

    @property
    def thresholds(self):
        return Thresholds(
            sector_width=self.sector_width,
            magnitude_tolerance=self.magnitude_tolerance,
            flat_angle=self.flat_angle,
        )

    @property
    def patterns(self):
        return {
            "touchscreen": self.touchscreen_patterns,
            "touchpad": self.touchpad_patterns,
            "keyboard": self.keyboard_patterns,
        }

    def validate(self):
        if self.interval <= 0:
            raise ValueError("poll interval should be positive")
        if self.debounce < 1:
            raise ValueError("debounce count should be at least 1")
        if self.command_timeout <= 0 or self.read_timeout <= 0:
            raise ValueError("timeouts should be positive")
        if self.input_backend not in ("xinput", "inhibit"):
            raise ValueError(f"unknown input backend {self.input_backend!r}")
        # Raises on inconsistent angles.
        self.thresholds
