from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from chorus.core import config as cfg
from chorus.core.engine import SeedingEngine
from chorus.core.errors import ConfigurationError
from chorus.core.pool_store import DEFAULT_LEXICON_PATH, DEFAULT_POOLS_PATH

ZERO_SECRET = "00" * 32


class LoadConfigTests(unittest.TestCase):
    def test_defaults_with_env_secret(self) -> None:
        config = cfg.load_config({cfg.ENV_SECRET: f" {ZERO_SECRET} "})
        self.assertEqual(config.secret, ZERO_SECRET)
        self.assertEqual(config.pools_path, DEFAULT_POOLS_PATH)
        self.assertEqual(config.lexicon_path, DEFAULT_LEXICON_PATH)
        self.assertTrue(config.strict_lexicon)
        self.assertFalse(config.debug)
        self.assertEqual(config.user_id_pepper, "")

    def test_secret_is_hidden_from_repr(self) -> None:
        config = cfg.load_config({cfg.ENV_SECRET: ZERO_SECRET, cfg.ENV_USER_ID_PEPPER: "q" * 32})
        self.assertNotIn(ZERO_SECRET, repr(config))
        self.assertNotIn("q" * 32, repr(config))

    def test_secret_required(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "is required"):
            cfg.load_config({})

    def test_non_hex_secret_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            cfg.load_config({cfg.ENV_SECRET: "not-a-hex-secret"})

    def test_secret_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "seed.secret"
            path.write_text(ZERO_SECRET + "\n", encoding="utf-8")
            config = cfg.load_config({cfg.ENV_SECRET_FILE: str(path)})
            self.assertEqual(config.secret, ZERO_SECRET)

            with self.assertRaisesRegex(ConfigurationError, "not both"):
                cfg.load_config({cfg.ENV_SECRET_FILE: str(path), cfg.ENV_SECRET: ZERO_SECRET})

            empty = Path(tmp) / "empty.secret"
            empty.write_text("  \n", encoding="utf-8")
            with self.assertRaisesRegex(ConfigurationError, "empty"):
                cfg.load_config({cfg.ENV_SECRET_FILE: str(empty)})

            with self.assertRaisesRegex(ConfigurationError, "not found"):
                cfg.load_config({cfg.ENV_SECRET_FILE: str(Path(tmp) / "missing")})

    def test_flags_and_paths(self) -> None:
        config = cfg.load_config(
            {
                cfg.ENV_SECRET: ZERO_SECRET,
                cfg.ENV_STRICT_LEXICON: "off",
                cfg.ENV_DEBUG_SEEDING: "YES",
                cfg.ENV_POOLS_PATH: "/srv/chorus/pools.json",
                cfg.ENV_LEXICON_PATH: " ",
            }
        )
        self.assertFalse(config.strict_lexicon)
        self.assertTrue(config.debug)
        self.assertEqual(config.pools_path, Path("/srv/chorus/pools.json"))
        self.assertEqual(config.lexicon_path, DEFAULT_LEXICON_PATH)

    def test_bad_bool_rejected(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, cfg.ENV_DEBUG_SEEDING):
            cfg.load_config({cfg.ENV_SECRET: ZERO_SECRET, cfg.ENV_DEBUG_SEEDING: "maybe"})

    def test_short_pepper_rejected(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "at least 32"):
            cfg.load_config({cfg.ENV_SECRET: ZERO_SECRET, cfg.ENV_USER_ID_PEPPER: "short"})

    def test_missing_pool_file_fails_engine_startup(self) -> None:
        config = cfg.EngineConfig(secret=ZERO_SECRET, pools_path=Path("/nonexistent/pools.json"))
        with self.assertRaisesRegex(ConfigurationError, "word pool file not found"):
            SeedingEngine.from_config(config)

    def test_short_secret_warns_once_per_engine(self) -> None:
        config = cfg.load_config({cfg.ENV_SECRET: "abcd"})
        with self.assertLogs("chorus.daily_seed", level="WARNING") as logs:
            SeedingEngine.from_config(config)
        self.assertEqual(len(logs.records), 1)
        self.assertIn("only 2 bytes", logs.output[0])

    def test_debug_flag_raises_package_log_level(self) -> None:
        logger = logging.getLogger("chorus")
        previous = logger.level
        try:
            SeedingEngine.from_config(cfg.EngineConfig(secret=ZERO_SECRET, debug=True))
            self.assertEqual(logger.level, logging.DEBUG)
        finally:
            logger.setLevel(previous)


if __name__ == "__main__":
    unittest.main()
