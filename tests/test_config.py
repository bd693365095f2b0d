import unittest

from config import Config
from orientation import Thresholds


class FromEnv(unittest.TestCase):
    def test_defaults(self):
        config = Config.from_env({})
        self.assertEqual(config, Config())
        self.assertEqual(config.interval, 0.5)
        self.assertEqual(config.debounce, 3)

    def test_parses_values(self):
        config = Config.from_env({
            "SWIVEL_INTERVAL": "0.25",
            "SWIVEL_DEBOUNCE": "5",
            "SWIVEL_SECTOR_WIDTH": "70",
            "SWIVEL_DRY_RUN": "yes",
            "SWIVEL_OUTPUT": "eDP-1",
            "SWIVEL_INPUT_BACKEND": "inhibit",
            "SWIVEL_TOUCHPAD_PATTERNS": "touchpad, glidepoint ,",
            "UNRELATED": "1",
        })
        self.assertEqual(config.interval, 0.25)
        self.assertEqual(config.debounce, 5)
        self.assertEqual(config.sector_width, 70)
        self.assertTrue(config.dry_run)
        self.assertEqual(config.output, "eDP-1")
        self.assertEqual(config.input_backend, "inhibit")
        self.assertEqual(config.touchpad_patterns, ("touchpad", "glidepoint"))
        self.assertEqual(config.patterns["touchpad"], ("touchpad", "glidepoint"))

    def test_bad_values(self):
        for env in [{"SWIVEL_DEBOUNCE": "3.5"}, {"SWIVEL_DRY_RUN": "maybe"}]:
            with self.subTest(env=env):
                with self.assertRaises(ValueError):
                    Config.from_env(env)


class Validate(unittest.TestCase):
    def test_thresholds(self):
        config = Config(sector_width=80, flat_angle=70)
        self.assertEqual(config.thresholds,
                         Thresholds(sector_width=80, flat_angle=70))

    def test_valid(self):
        Config().validate()

    def test_invalid(self):
        for kwargs in [
            dict(interval=0),
            dict(debounce=0),
            dict(read_timeout=0),
            dict(input_backend="udev"),
            dict(sector_width=100),
            dict(flat_angle=95),
        ]:
            with self.subTest(**kwargs):
                with self.assertRaises(ValueError):
                    Config(**kwargs).validate()
