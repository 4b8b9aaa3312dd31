import logging
import os
import unittest
from unittest.mock import mock_open, patch

from chess_explorer import config


class ConfigTests(unittest.TestCase):
    def test_yaml_value_wins_over_env(self):
        with patch.dict(config._cfg, {"EXPLORER_TEST_KEY": "5"}), patch.dict(os.environ, {"EXPLORER_TEST_KEY": "7"}):
            self.assertEqual(config._get("EXPLORER_TEST_KEY", 1, cast=int), 5)

    def test_env_then_default(self):
        with patch.dict(os.environ, {"EXPLORER_TEST_KEY": "7"}):
            self.assertEqual(config._get("EXPLORER_TEST_KEY", 1, cast=int), 7)
        self.assertEqual(config._get("EXPLORER_MISSING_KEY", 3), 3)

    def test_load_yaml_ignores_non_mapping(self):
        with patch("os.path.isfile", return_value=True), patch("builtins.open", mock_open(read_data="- a\n- b\n")):
            self.assertEqual(config._load_yaml("settings.yml"), {})

    def test_settings_types(self):
        s = config.SETTINGS
        self.assertIsInstance(s.pgn_preview_chars, int)
        self.assertIsInstance(s.session_ttl_s, float)
        self.assertIsInstance(s.port, int)

    def test_configure_logging_accepts_level_names(self):
        with patch("logging.basicConfig") as basic:
            config.configure_logging("debug")
        self.assertEqual(basic.call_args.kwargs["level"], logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
