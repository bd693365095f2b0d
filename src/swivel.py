#!/usr/bin/env python3

import logging
import signal
import sys
from argparse import ArgumentParser
from dataclasses import replace
from os import environ
from threading import Event

from config import Config
from debounce import debounced
from dispatch import Dispatcher
from iio import IIO, Poller, SensorReadError, SensorUnavailableError
from orientation import classify, screen_angle, tilt_angle
from xtools import Reconfigurator

logger = logging.getLogger("swivel")


class GracefulKiller:
    """Turns SIGINT/SIGTERM into a stop event checked between ticks."""

    def __init__(self, stop=None):
        self.stop = stop if stop is not None else Event()
        signal.signal(signal.SIGINT, self.exit_gracefully)
        signal.signal(signal.SIGTERM, self.exit_gracefully)

    def exit_gracefully(self, signum, frame):
        logger.info("Received %s, stopping", signal.Signals(signum).name)
        self.stop.set()


def samples(poller, interval, stop):
    failures = 0
    while not stop.is_set():
        try:
            sample = poller.read()
        except SensorReadError as e:
            failures += 1
            level = logging.WARNING if failures == 1 or failures % 50 == 0 \
                else logging.DEBUG
            logger.log(level, "Skipping tick (%d consecutive failures): %s",
                       failures, e)
        else:
            failures = 0
            yield sample
        stop.wait(interval)


def labels(vals, thresholds):
    for sample in vals:
        label = classify(sample, thresholds)
        logger.debug("x=%6.3f y=%6.3f z=%6.3f |a|=%5.3f angle=%5.1f tilt=%4.1f -> %s",
                     sample.x, sample.y, sample.z, sample.magnitude,
                     screen_angle(sample), tilt_angle(sample), label.value)
        yield label


def run_service(config, poller, dispatcher, stop):
    vals = samples(poller, config.interval, stop)
    try:
        for orientation in debounced(labels(vals, config.thresholds),
                                     config.debounce):
            logger.info("Orientation: %s", orientation.value)
            dispatcher.dispatch(orientation)
    finally:
        dispatcher.restore()


def parse_args(argv, defaults):
    parser = ArgumentParser(
        description="Rotate the display and toggle inputs of a convertible "
                    "laptop from its accelerometer")
    parser.add_argument("--interval", type=float, default=defaults.interval,
                        metavar="SECONDS", help="Time between sensor polls")
    parser.add_argument("--debounce", type=int, default=defaults.debounce,
                        metavar="N",
                        help="Consecutive agreeing polls before rotating")
    tunables = parser.add_argument_group(title="Classification")
    tunables.add_argument("--sector-width", type=float,
                          default=defaults.sector_width, metavar="DEGREES",
                          help="Width of each orientation's sector, the rest "
                               "of the circle is dead zone")
    tunables.add_argument("--magnitude-tolerance", type=float,
                          default=defaults.magnitude_tolerance, metavar="G",
                          help="Largest accepted deviation from 1g")
    tunables.add_argument("--flat-angle", type=float,
                          default=defaults.flat_angle, metavar="DEGREES",
                          help="Tilt out of the screen plane from which a "
                               "face up screen is a tent or stand")
    hwconfig = parser.add_argument_group(title="Hardware")
    hwconfig.add_argument("--iio-path", default=defaults.iio_path)
    hwconfig.add_argument("--device", default=defaults.device, metavar="NAME",
                          help="Name of the IIO accelerometer to use")
    hwconfig.add_argument("--mount-matrix", default=defaults.mount_matrix,
                          metavar="MATRIX",
                          help='Override the sensor mount matrix, '
                               'e.g. "0, 1, 0; -1, 0, 0; 0, 0, 1"')
    hwconfig.add_argument("--output", default=defaults.output,
                          help="xrandr output to rotate")
    hwconfig.add_argument("--input-backend", choices=["xinput", "inhibit"],
                          default=defaults.input_backend)
    hwconfig.add_argument("--command-timeout", type=float,
                          default=defaults.command_timeout, metavar="SECONDS")
    hwconfig.add_argument("--read-timeout", type=float,
                          default=defaults.read_timeout, metavar="SECONDS")
    parser.add_argument("--dry-run", action="store_true",
                        default=defaults.dry_run,
                        help="Log commands instead of running them")
    parser.add_argument("--debug", action="store_true")

    ns = parser.parse_args(argv)
    config = replace(defaults, **{
        k: v for k, v in vars(ns).items() if k != "debug"
    })
    try:
        config.validate()
    except ValueError as e:
        parser.error(str(e))
    return config, ns.debug


def main(argv=None):
    try:
        defaults = Config.from_env(environ)
    except ValueError as e:
        print(f"swivel: {e}", file=sys.stderr)
        return 2
    config, debug = parse_args(argv, defaults)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        accel = IIO(config.iio_path).accelerometer(config.device,
                                                   config.mount_matrix)
        poller = Poller(accel, config.read_timeout)
        # Fail at startup rather than on every tick if the sensor is unreadable.
        poller.read()
    except (SensorUnavailableError, SensorReadError) as e:
        logger.error("No usable accelerometer: %s", e)
        return 1

    dispatcher = Dispatcher(Reconfigurator(
        backend=config.input_backend,
        output=config.output,
        timeout=config.command_timeout,
        patterns=config.patterns,
        dry_run=config.dry_run,
        input_path=config.input_path,
    ))
    killer = GracefulKiller()
    run_service(config, poller, dispatcher, killer.stop)
    logger.info("Stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
