import unittest

from career_core.config import Settings, load_settings


class LoadSettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = load_settings({})
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.max_upload_bytes, 10 * 1024 * 1024)
        self.assertIn("http://localhost:3000", settings.cors_origins)

    def test_overrides(self):
        settings = load_settings(
            {
                "CAREER_MAX_UPLOAD_BYTES": "2048",
                "CAREER_CORS_ORIGINS": "https://a.example, https://b.example,",
                "CAREER_PAGE_SIZE": "50",
                "CAREER_LOG_LEVEL": " debug ",
            }
        )
        self.assertEqual(settings.max_upload_bytes, 2048)
        self.assertEqual(settings.cors_origins, ["https://a.example", "https://b.example"])
        self.assertEqual(settings.page_size, 50)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_default_top_n_never_exceeds_max(self):
        settings = load_settings({"CAREER_MAX_TOP_N": "25", "CAREER_DEFAULT_TOP_N": "100"})
        self.assertEqual((settings.default_top_n, settings.max_top_n), (25, 25))

    def test_bad_integer_falls_back(self):
        with self.assertLogs("career_core.config", level="WARNING"):
            settings = load_settings({"CAREER_PAGE_SIZE": "lots"})
        self.assertEqual(settings.page_size, 20)


if __name__ == "__main__":
    unittest.main()
