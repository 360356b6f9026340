from __future__ import annotations

import subprocess
import sys
import unittest

import chorus
from chorus import core
from chorus.core.config import EngineConfig


class CoreSmokeTests(unittest.TestCase):
    def test_core_package_import_is_lightweight(self) -> None:
        probe = (
            "import sys; import chorus.core; "
            "print(int('chorus.core.engine' in sys.modules)); "
            "print(int('chorus.core.word_sampler' in sys.modules))"
        )
        proc = subprocess.run(
            [sys.executable, "-c", probe],
            check=True,
            capture_output=True,
            text=True,
        )
        lines = [line.strip() for line in proc.stdout.splitlines() if line.strip()]
        self.assertEqual(lines, ["0", "0"])

    def test_facade_builds_working_engine(self) -> None:
        config = core.load_config({"CHORUS_DAILY_SEED_SECRET": "00" * 32})
        self.assertIsInstance(config, EngineConfig)
        engine = core.build_engine(config)
        words = engine.sample_words("user-abc", "2025-10-15")
        self.assertEqual(len(words), 12)
        self.assertTrue(chorus.__version__)


if __name__ == "__main__":
    unittest.main()
