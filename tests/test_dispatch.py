import unittest

from dispatch import Dispatcher, Rotation, TARGETS, TargetConfig, target_config
from orientation import Orientation
from xtools import Outcome, ReconfigurationCommandError


class Recorder:
    def __init__(self, failing=(), raises=None):
        self.applied = []
        self.restored = 0
        self.failing = failing
        self.raises = raises

    def __call__(self, target):
        self.applied.append(target)
        if self.raises:
            raise self.raises
        return [
            Outcome(action, ReconfigurationCommandError(action, "exit status 1")
                    if action in self.failing else None)
            for action in ["rotate-display", "touchscreen", "touchpad", "keyboard"]
        ]

    def restore(self):
        self.restored += 1
        return [Outcome("touchpad"), Outcome("keyboard")]


class Targets(unittest.TestCase):
    def test_table(self):
        self.assertEqual(target_config(Orientation.NORMAL),
                         TargetConfig(Rotation.NONE, True, True, True))
        self.assertEqual(target_config(Orientation.INVERTED),
                         TargetConfig(Rotation.CW180, True, False, False))
        self.assertEqual(target_config(Orientation.LEFT_UP),
                         TargetConfig(Rotation.CW90, True, False, False))
        self.assertEqual(target_config(Orientation.RIGHT_UP),
                         TargetConfig(Rotation.CW270, True, False, False))
        self.assertEqual(target_config(Orientation.TENT_OR_STAND),
                         TargetConfig(Rotation.NONE, True, False, False))

    def test_indeterminate_has_no_target(self):
        self.assertIsNone(target_config(Orientation.INDETERMINATE))

    def test_every_pose_covered(self):
        poses = set(Orientation) - {Orientation.INDETERMINATE}
        self.assertEqual(set(TARGETS), poses)

    def test_pure(self):
        self.assertEqual(target_config(Orientation.LEFT_UP),
                         target_config(Orientation.LEFT_UP))


class Dispatch(unittest.TestCase):
    def test_emits_once_per_change(self):
        rec = Recorder()
        d = Dispatcher(rec)
        self.assertTrue(d.dispatch(Orientation.INVERTED))
        self.assertFalse(d.dispatch(Orientation.INVERTED))
        self.assertEqual(rec.applied, [TARGETS[Orientation.INVERTED]])
        self.assertEqual(d.last_applied, TARGETS[Orientation.INVERTED])

    def test_same_target_from_different_orientation(self):
        rec = Recorder()
        d = Dispatcher(rec)
        d.dispatch(Orientation.NORMAL)
        d.dispatch(Orientation.TENT_OR_STAND)
        d.dispatch(Orientation.NORMAL)
        self.assertEqual(len(rec.applied), 3)

    def test_ignores_indeterminate(self):
        rec = Recorder()
        d = Dispatcher(rec)
        self.assertFalse(d.dispatch(Orientation.INDETERMINATE))
        self.assertEqual(rec.applied, [])
        self.assertIsNone(d.last_applied)

    def test_partial_failure_is_logged_and_recorded(self):
        rec = Recorder(failing=["touchpad"])
        d = Dispatcher(rec)
        with self.assertLogs("dispatch", level="WARNING") as logs:
            self.assertTrue(d.dispatch(Orientation.LEFT_UP))
        self.assertEqual(len(logs.output), 1)
        self.assertIn("touchpad failed", logs.output[0])
        self.assertEqual(d.last_applied, TARGETS[Orientation.LEFT_UP])
        self.assertFalse(d.dispatch(Orientation.LEFT_UP))
        self.assertEqual(len(rec.applied), 1)

    def test_raised_failure_is_recorded(self):
        rec = Recorder(raises=ReconfigurationCommandError("rotate-display", "boom"))
        d = Dispatcher(rec)
        with self.assertLogs("dispatch", level="WARNING") as logs:
            d.dispatch(Orientation.RIGHT_UP)
        self.assertIn("rotate-display", logs.output[0])
        self.assertEqual(d.last_applied, TARGETS[Orientation.RIGHT_UP])

    def test_restore(self):
        rec = Recorder()
        d = Dispatcher(rec)
        d.restore()
        self.assertEqual(rec.restored, 1)

    def test_restore_without_support(self):
        d = Dispatcher(lambda target: [])
        d.restore()
