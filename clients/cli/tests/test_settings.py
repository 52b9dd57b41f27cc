import json
import tempfile
import unittest
from pathlib import Path

from chat_app.settings import build_default_settings, load_settings, resolve_settings


class SettingsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.path = Path(self.tmpdir.name) / "settings.json"

    def test_missing_file_yields_defaults(self):
        self.assertEqual(load_settings(self.path), {})
        self.assertEqual(resolve_settings(self.path), build_default_settings())

    def test_corrupt_or_non_object_file_is_ignored(self):
        self.path.write_text("{not json", encoding="utf-8")
        self.assertEqual(load_settings(self.path), {})
        self.path.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(load_settings(self.path), {})

    def test_file_values_override_defaults(self):
        self.path.write_text(
            json.dumps({"gateway_base_url": "https://chat.example", "history_page_size": 20}),
            encoding="utf-8",
        )
        settings = resolve_settings(self.path)
        self.assertEqual(settings["gateway_base_url"], "https://chat.example")
        self.assertEqual(settings["history_page_size"], 20)
        self.assertEqual(settings["render_interval_ms"], 50)

    def test_bad_numbers_fall_back_or_clamp(self):
        self.path.write_text(
            json.dumps({"history_page_size": "lots", "render_interval_ms": -5}),
            encoding="utf-8",
        )
        settings = resolve_settings(self.path)
        self.assertEqual(settings["history_page_size"], 50)
        self.assertEqual(settings["render_interval_ms"], 1)


if __name__ == "__main__":
    unittest.main()
