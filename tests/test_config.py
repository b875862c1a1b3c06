import unittest

from cpauth.config import Settings
from cpauth.constants import CHALLENGE_TTL, DEFAULT_GROUP
from cpauth.errors import ConfigurationError


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        self.assertEqual(settings.group, DEFAULT_GROUP)
        self.assertEqual(settings.challenge_ttl, CHALLENGE_TTL)
        self.assertIsNone(settings.store_path)
        self.assertEqual(settings.log_level, "INFO")

    def test_overrides(self) -> None:
        settings = Settings.from_env(
            {
                "CPAUTH_GROUP": "rfc5114-2048",
                "CPAUTH_CHALLENGE_TTL": "30",
                "CPAUTH_SESSION_TTL": "90.5",
                "CPAUTH_STORE": "/tmp/users.json",
                "CPAUTH_LOG_LEVEL": "debug",
            }
        )
        self.assertEqual(settings.group, "rfc5114-2048")
        self.assertEqual(settings.challenge_ttl, 30.0)
        self.assertEqual(settings.session_ttl, 90.5)
        self.assertEqual(settings.store_path, "/tmp/users.json")
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_values(self) -> None:
        with self.assertRaises(ConfigurationError):
            Settings.from_env({"CPAUTH_CHALLENGE_TTL": "soon"})
        with self.assertRaises(ConfigurationError):
            Settings.from_env({"CPAUTH_SESSION_TTL": "-1"})
        with self.assertRaises(ConfigurationError):
            Settings.from_env({"CPAUTH_LOG_LEVEL": "LOUD"})

    def test_non_finite_lifetimes_rejected(self) -> None:
        for key in ("CPAUTH_CHALLENGE_TTL", "CPAUTH_SESSION_TTL"):
            for raw in ("nan", "inf", "-inf", "NaN"):
                with self.assertRaises(ConfigurationError):
                    Settings.from_env({key: raw})


if __name__ == "__main__":
    unittest.main()
