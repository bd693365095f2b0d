import logging
from dataclasses import dataclass, field
from os import listdir
from os.path import join, isfile
from threading import Thread
from typing import Any

import numpy as np
from pyquaternion import Quaternion

from orientation import AccelSample

logger = logging.getLogger(__name__)

STANDARD_GRAVITY = 9.80665

MOUNT_MATRIX_ATTRS = ["in_accel_mount_matrix", "mount_matrix"]


class SensorReadError(Exception):
    pass


class SensorUnavailableError(Exception):
    pass


class MatrixMount:
    """Mount matrix applied as is, for reflections or rounded entries that a
    quaternion can't represent."""

    def __init__(self, matrix):
        self.matrix = matrix

    def rotate(self, vec):
        return list(self.matrix @ np.asarray(vec, dtype=float))


def parse_mount_matrix(text):
    """Parse an IIO mount matrix, "a, b, c; d, e, f; g, h, i".

    Proper rotations become a Quaternion, anything else a MatrixMount.
    """
    try:
        rows = [[float(v) for v in row.split(',')] for row in text.split(';')]
        matrix = np.array(rows)
    except ValueError:
        raise SensorUnavailableError(f"Unable to parse mount matrix {text!r}")
    if matrix.shape != (3, 3):
        raise SensorUnavailableError(f"Mount matrix {text!r} should be 3x3")
    try:
        return Quaternion(matrix=matrix)
    except ValueError:
        logger.info("Mount matrix %r is not a proper rotation, applying it "
                    "as a plain matrix", text)
        return MatrixMount(matrix)


@dataclass
class IIO:
    iio_path: str = "/sys/bus/iio/devices"

    def device_fs_names(self):
        try:
            names = listdir(self.iio_path)
        except OSError as e:
            raise SensorUnavailableError(f"Unable to list {self.iio_path}: {e}")
        return sorted(name for name in names if name.startswith("iio:"))

    def devices(self):
        return [IIODevice(self, fs_name) for fs_name in self.device_fs_names()]

    def accelerometer(self, name=None, mount_matrix=None):
        """First device with accelerometer channels, or the one called `name`."""
        for device in self.devices():
            if not device.has_attr("in_accel_x_raw"):
                continue
            if name is not None and device.name() != name:
                continue
            return Accelerometer.open(device, mount_matrix)
        which = f" named {name!r}" if name else ""
        raise SensorUnavailableError(
            f"No accelerometer{which} found in {self.iio_path}")


@dataclass
class IIODevice:
    ctxt: IIO = field(repr=False, hash=False, compare=False)
    fs_name: str

    @property
    def path(self):
        return join(self.ctxt.iio_path, self.fs_name)

    def has_attr(self, attr):
        return isfile(join(self.path, attr))

    def read_attr(self, attr):
        try:
            with open(join(self.path, attr), 'r') as f:
                return f.read().strip()
        except OSError as e:
            raise SensorReadError(f"Unable to read {attr} of {self.fs_name}: {e}")

    def read_number(self, attr):
        raw = self.read_attr(attr)
        try:
            return float(raw)
        except ValueError:
            raise SensorReadError(
                f"Malformed {attr} of {self.fs_name}: {raw!r}")

    def name(self):
        if not self.has_attr("name"):
            return None
        return self.read_attr("name")


@dataclass
class Accelerometer:
    dev: IIODevice
    mount: Any = field(default_factory=Quaternion)

    @staticmethod
    def open(dev, mount_matrix=None):
        if mount_matrix is None:
            for attr in MOUNT_MATRIX_ATTRS:
                if dev.has_attr(attr):
                    mount_matrix = dev.read_attr(attr)
                    break
        mount = parse_mount_matrix(mount_matrix) if mount_matrix else Quaternion()
        logger.info("Using accelerometer %s (%s)", dev.path, dev.name() or "unnamed")
        return Accelerometer(dev, mount)

    def read_raw(self):
        return [self.dev.read_number(f"in_accel_{axis}_raw") for axis in "xyz"]

    def read(self):
        scale = self.dev.read_number("in_accel_scale")
        offset = (self.dev.read_number("in_accel_offset")
                  if self.dev.has_attr("in_accel_offset") else 0.0)
        vec = [(v + offset) * scale / STANDARD_GRAVITY for v in self.read_raw()]
        x, y, z = self.mount.rotate(vec)
        return AccelSample(float(x), float(y), float(z))


class Poller:
    """Reads the accelerometer in a daemon thread so a hung read is bounded.

    While a timed out read is still stuck further reads fail straight away
    rather than piling up behind it, and the stuck thread never holds up
    interpreter exit.
    """

    def __init__(self, accel, timeout=1.0):
        self.accel = accel
        self.timeout = timeout
        self._worker = None

    def read(self):
        if self._worker is not None and self._worker.is_alive():
            raise SensorReadError("Previous sensor read still hasn't returned")
        result = {}

        def work():
            try:
                result["sample"] = self.accel.read()
            except Exception as e:
                result["error"] = e

        self._worker = Thread(target=work, name="iio-read", daemon=True)
        self._worker.start()
        self._worker.join(self.timeout)
        if self._worker.is_alive():
            raise SensorReadError(f"Sensor read timed out after {self.timeout}s")
        if "error" in result:
            raise result["error"]
        return result["sample"]
