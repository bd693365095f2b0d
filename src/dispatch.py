import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from orientation import Orientation
from xtools import ReconfigurationCommandError

logger = logging.getLogger(__name__)


class Rotation(Enum):
    """Display rotation, clockwise degrees."""
    NONE = 0
    CW90 = 90
    CW180 = 180
    CW270 = 270


@dataclass(frozen=True)
class TargetConfig:
    rotation: Rotation
    touchscreen_enabled: bool
    touchpad_enabled: bool
    keyboard_enabled: bool


def _tablet(rotation):
    return TargetConfig(rotation, touchscreen_enabled=True,
                        touchpad_enabled=False, keyboard_enabled=False)


TARGETS = {
    Orientation.NORMAL: TargetConfig(Rotation.NONE, True, True, True),
    Orientation.INVERTED: _tablet(Rotation.CW180),
    Orientation.LEFT_UP: _tablet(Rotation.CW90),
    Orientation.RIGHT_UP: _tablet(Rotation.CW270),
    Orientation.TENT_OR_STAND: _tablet(Rotation.NONE),
}


def target_config(orientation):
    return TARGETS.get(orientation)


class Dispatcher:
    """Hands target configurations to `reconfigure` when they change.

    `reconfigure` takes a TargetConfig and returns a list of xtools.Outcome.
    Whatever the outcome the target is remembered as applied, so a failing
    sub-action is reported once instead of being retried on every tick.
    """

    def __init__(self, reconfigure):
        self.reconfigure = reconfigure
        self.last_applied: Optional[TargetConfig] = None

    def dispatch(self, orientation):
        target = target_config(orientation)
        if target is None or target == self.last_applied:
            return False
        logger.info("Applying %s for %s", target, orientation.value)
        try:
            outcomes = self.reconfigure(target)
        except ReconfigurationCommandError as e:
            logger.warning("Reconfiguration failed at %s: %s", e.action, e.message)
        else:
            self._report(outcomes)
        self.last_applied = target
        return True

    def restore(self):
        """Re-enable all inputs, used on shutdown."""
        restore = getattr(self.reconfigure, "restore", None)
        if restore is None:
            return
        logger.info("Re-enabling inputs")
        self._report(restore())

    def _report(self, outcomes):
        for outcome in outcomes:
            if outcome.ok:
                logger.debug("%s succeeded", outcome.action)
            else:
                logger.warning("%s failed: %s",
                               outcome.action, outcome.error.message)
