from dataclasses import dataclass
from enum import Enum
from math import atan2, degrees, hypot, sqrt


class Orientation(Enum):
    NORMAL = "normal"
    INVERTED = "inverted"
    LEFT_UP = "left-up"
    RIGHT_UP = "right-up"
    TENT_OR_STAND = "tent-or-stand"
    INDETERMINATE = "indeterminate"


# Screen-plane angle at which each upright pose sits, see screen_angle().
NOMINAL_ANGLES = {
    Orientation.NORMAL: 0.0,
    Orientation.RIGHT_UP: 90.0,
    Orientation.INVERTED: 180.0,
    Orientation.LEFT_UP: 270.0,
}

# Smallest in-plane component, in g, from which the screen angle is usable.
MIN_IN_PLANE = 0.1


@dataclass(frozen=True)
class AccelSample:
    """Acceleration measured in the screen frame, in g.

    With the screen upright in front of the user gravity pulls along -y;
    rotated left it pulls along -x, and lying flat facing the sky along -z.
    """
    x: float
    y: float
    z: float

    @property
    def magnitude(self):
        return sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def __iter__(self):
        yield from (self.x, self.y, self.z)


@dataclass(frozen=True)
class Thresholds:
    sector_width: float = 60.0
    magnitude_tolerance: float = 0.3
    flat_angle: float = 60.0

    def __post_init__(self):
        if not 0 < self.sector_width <= 90:
            raise ValueError("sector width should be within (0, 90] degrees")
        if self.magnitude_tolerance <= 0:
            raise ValueError("magnitude tolerance should be positive")
        if not 0 < self.flat_angle <= 90:
            raise ValueError("flat angle should be within (0, 90] degrees")


def screen_angle(sample):
    """Clockwise angle of the screen's rotation in its own plane, in [0, 360)."""
    return degrees(atan2(sample.x, -sample.y)) % 360.0


def tilt_angle(sample):
    """Angle between gravity and the screen plane, in [0, 90]."""
    return degrees(atan2(abs(sample.z), hypot(sample.x, sample.y)))


def angle_distance(a, b):
    delta = abs(a - b) % 360.0
    return min(delta, 360.0 - delta)


def classify(sample, thresholds=Thresholds()):
    if abs(sample.magnitude - 1.0) > thresholds.magnitude_tolerance:
        # Shaken or carried around, gravity is not the only force.
        return Orientation.INDETERMINATE

    tilt = tilt_angle(sample)
    if sample.z < 0 and tilt >= thresholds.flat_angle:
        return Orientation.TENT_OR_STAND
    if hypot(sample.x, sample.y) < MIN_IN_PLANE:
        # Lying face down, the screen angle is noise.
        return Orientation.INDETERMINATE

    angle = screen_angle(sample)
    half = thresholds.sector_width / 2
    for orientation, nominal in NOMINAL_ANGLES.items():
        if angle_distance(angle, nominal) < half:
            return orientation
    return Orientation.INDETERMINATE
