import os
import tempfile
import unittest
from pathlib import Path

from guessgame import config
from guessgame.levels import HARD, MEDIUM
from shared import settings


class TestKeyValueSettings(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / "nested" / "guess_settings.properties"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_parse_skips_comments_and_blank_lines(self) -> None:
        text = "#header\n! bang comment\n\nmuted = true\nlast_level:HARD\nflag\n"
        self.assertEqual(settings.parse_settings(text), {"muted": "true", "last_level": "HARD", "flag": ""})

    def test_missing_file_returns_defaults(self) -> None:
        self.assertEqual(settings.load_settings(self.path, {"muted": "false"}), {"muted": "false"})

    def test_save_then_load(self) -> None:
        settings.save_settings(self.path, {"muted": True, "last_level": "EASY"}, comment="Test")
        text = self.path.read_text(encoding="utf-8")
        self.assertTrue(text.startswith("#Test\n"))
        self.assertIn("muted=true\n", text)
        loaded = settings.load_settings(self.path, {"muted": "false", "extra": "x"})
        self.assertEqual(loaded, {"muted": "true", "last_level": "EASY", "extra": "x"})

    def test_parse_bool(self) -> None:
        self.assertTrue(settings.parse_bool("TRUE"))
        self.assertFalse(settings.parse_bool("off", default=True))
        self.assertTrue(settings.parse_bool("maybe", default=True))


class TestGameSettings(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / "guess_settings.properties"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_defaults_when_absent(self) -> None:
        loaded = config.load_game_settings(self.path)
        self.assertEqual(loaded, {"muted": False, "level": MEDIUM, "theme": "default"})

    def test_bad_values_fall_back(self) -> None:
        self.path.write_text("muted=perhaps\nlast_level=IMPOSSIBLE\ntheme=neon\n", encoding="utf-8")
        loaded = config.load_game_settings(self.path)
        self.assertEqual(loaded, {"muted": False, "level": MEDIUM, "theme": "default"})

    def test_round_trip(self) -> None:
        config.save_game_settings({"muted": True, "level": HARD, "theme": "light"}, self.path)
        self.assertEqual(config.load_game_settings(self.path), {"muted": True, "level": HARD, "theme": "light"})

    def test_env_override_for_path(self) -> None:
        os.environ["GUESS_SETTINGS_PATH"] = str(self.path)
        try:
            self.assertEqual(config.settings_path(), self.path)
        finally:
            del os.environ["GUESS_SETTINGS_PATH"]


if __name__ == "__main__":
    unittest.main()
