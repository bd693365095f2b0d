"""Translate a target configuration into xrandr/xinput/sysfs invocations.

Every sub-action is attempted and reported on its own, a failing one never
prevents the others from running.
"""

import logging
from dataclasses import dataclass
from os import listdir
from os.path import join, isfile
from shlex import join as shjoin
from subprocess import run, TimeoutExpired
from typing import *

logger = logging.getLogger(__name__)

# Keyed by clockwise rotation in degrees.
XRANDR_ORIENTATIONS = {
    0: "normal",
    90: "right",
    180: "inverted",
    270: "left",
}

COORDINATE_MATRICES = {
    0: [1, 0, 0, 0, 1, 0, 0, 0, 1],
    90: [0, 1, 0, -1, 0, 1, 0, 0, 1],
    180: [-1, 0, 1, 0, -1, 1, 0, 0, 1],
    270: [0, -1, 1, 1, 0, 0, 0, 0, 1],
}

DEFAULT_PATTERNS = {
    "touchscreen": ("touchscreen", "wacom"),
    "touchpad": ("touchpad", "trackpoint"),
    "keyboard": ("AT Translated Set 2 keyboard",),
}

INPUT_ACTIONS = ("touchscreen", "touchpad", "keyboard")


class ReconfigurationCommandError(Exception):
    def __init__(self, action, message):
        super().__init__(f"{action}: {message}")
        self.action = action
        self.message = message


@dataclass
class Outcome:
    action: str
    error: Optional[ReconfigurationCommandError] = None

    @property
    def ok(self):
        return self.error is None


def find_inputs(names, patterns):
    """Names containing any of the patterns, case insensitive."""
    patterns = [p.lower() for p in patterns]
    return [name for name in names
            if any(p in name.lower() for p in patterns)]


@dataclass
class Commands:
    timeout: float = 2.0
    dry_run: bool = False

    def __call__(self, action, args, readonly=False):
        if self.dry_run and not readonly:
            logger.info("Dry run, %s: %s", action, shjoin(args))
            return ""
        logger.debug("Running %s", shjoin(args))
        try:
            proc = run(args, capture_output=True, text=True, errors="replace",
                       timeout=self.timeout)
        except TimeoutExpired:
            raise ReconfigurationCommandError(
                action, f"{args[0]} timed out after {self.timeout}s")
        except OSError as e:
            raise ReconfigurationCommandError(
                action, f"unable to run {args[0]}: {e}")
        if proc.returncode != 0:
            raise ReconfigurationCommandError(
                action,
                f"{shjoin(args)} exited with status {proc.returncode}"
                + (f": {proc.stderr.strip()}" if proc.stderr.strip() else ""))
        return proc.stdout


class XInput:
    def __init__(self, commands):
        self.commands = commands

    def devices(self):
        out = self.commands("list-inputs", ["xinput", "list", "--name-only"],
                            readonly=True)
        return [line.strip() for line in out.splitlines() if line.strip()]

    def enable(self, action, device, en):
        self.commands(action, ["xinput", "enable" if en else "disable", device])

    def map_to_rotation(self, action, device, degrees):
        matrix = COORDINATE_MATRICES[degrees]
        self.commands(action, [
            "xinput", "set-prop", device, "Coordinate Transformation Matrix",
            *map(str, matrix)
        ])


class Inhibit:
    """Enable and disable evdev inputs through their sysfs inhibited switch."""
    def __init__(self, input_path="/sys/class/input", dry_run=False):
        self.input_path = input_path
        self.dry_run = dry_run
        self._paths = {}

    def devices(self):
        self._paths = {}
        try:
            for entry in sorted(listdir(self.input_path)):
                name_path = join(self.input_path, entry, "name")
                if not entry.startswith("input") or not isfile(name_path):
                    continue
                with open(name_path, errors="replace") as f:
                    self._paths.setdefault(f.read().strip(),
                                           join(self.input_path, entry))
        except OSError as e:
            raise ReconfigurationCommandError(
                "list-inputs", f"unable to list {self.input_path}: {e}")
        return list(self._paths)

    def enable(self, action, device, en):
        path = join(self._paths[device], "inhibited")
        if self.dry_run:
            logger.info("Dry run, %s: write %d to %s", action, int(not en), path)
            return
        try:
            with open(path, 'w') as f:
                f.write(str(int(not en)))
        except OSError as e:
            raise ReconfigurationCommandError(
                action, f"unable to write {path}: {e}")


class Reconfigurator:
    """Applies a TargetConfig; returns one Outcome per sub-action."""

    def __init__(self, backend="xinput", output=None, timeout=2.0,
                 patterns=None, dry_run=False, input_path="/sys/class/input"):
        self.commands = Commands(timeout, dry_run)
        self.output = output
        self.patterns = {**DEFAULT_PATTERNS, **(patterns or {})}
        # Touch coordinates are an X concept whichever backend toggles inputs.
        self.xinput = XInput(self.commands)
        if backend == "xinput":
            self.inputs = self.xinput
        elif backend == "inhibit":
            self.inputs = Inhibit(input_path, dry_run)
        else:
            raise ValueError(f"unknown input backend {backend!r}")

    def rotate_display(self, degrees):
        args = ["xrandr"]
        if self.output:
            args += ["--output", self.output]
        args += ["--orientation", XRANDR_ORIENTATIONS[degrees]]
        self.commands("rotate-display", args)

    def _matching(self, action, names):
        found = find_inputs(names, self.patterns[action])
        if not found:
            raise ReconfigurationCommandError(action, f"no {action} found")
        return found

    def map_touchscreen(self, names, degrees):
        for device in self._matching("touchscreen", names):
            self.xinput.map_to_rotation("map-touchscreen", device, degrees)

    def toggle(self, action, names, en):
        for device in self._matching(action, names):
            self.inputs.enable(action, device, en)

    def _attempt(self, action, fn, *args):
        try:
            fn(*args)
            return Outcome(action)
        except ReconfigurationCommandError as e:
            return Outcome(action, e)

    def _input_names(self, source=None):
        try:
            return (source or self.inputs).devices(), None
        except ReconfigurationCommandError as e:
            return None, e

    def _toggle_all(self, names, list_error, enabled):
        outcomes = []
        for action in INPUT_ACTIONS:
            if names is None:
                outcomes.append(Outcome(action, ReconfigurationCommandError(
                    action, list_error.message)))
            else:
                outcomes.append(self._attempt(
                    action, self.toggle, action, names, enabled[action]))
        return outcomes

    def __call__(self, target):
        degrees = target.rotation.value
        outcomes = [self._attempt("rotate-display", self.rotate_display, degrees)]
        names, list_error = self._input_names()
        x_names, x_error = (names, list_error) if self.inputs is self.xinput \
            else self._input_names(self.xinput)
        if x_names is None:
            outcomes.append(Outcome("map-touchscreen", ReconfigurationCommandError(
                "map-touchscreen", x_error.message)))
        else:
            outcomes.append(self._attempt(
                "map-touchscreen", self.map_touchscreen, x_names, degrees))
        outcomes += self._toggle_all(names, list_error, {
            "touchscreen": target.touchscreen_enabled,
            "touchpad": target.touchpad_enabled,
            "keyboard": target.keyboard_enabled,
        })
        return outcomes

    def restore(self):
        """Re-enable every input, leaves the display alone."""
        names, list_error = self._input_names()
        return self._toggle_all(names, list_error,
                                {action: True for action in INPUT_ACTIONS})
