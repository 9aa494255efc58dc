import unittest
from veilvault.config import VaultConfig

class TestVaultConfig(unittest.TestCase):

    def test_defaults(self):
        """Default configuration reuses proofs until stale"""
        config = VaultConfig()

        self.assertEqual(config.freshness_window_seconds, 600)
        self.assertEqual(config.max_clock_skew_seconds, 30)
        self.assertFalse(config.single_use_proofs)
        self.assertTrue(config.check_conservation)

    def test_strict_preset(self):
        """Strict preset uses short single-use proofs"""
        config = VaultConfig.strict()

        self.assertEqual(config.freshness_window_seconds, 60)
        self.assertTrue(config.single_use_proofs)

    def test_permissive_preset(self):
        """Permissive preset allows day-old proofs"""
        config = VaultConfig.permissive()

        self.assertEqual(config.freshness_window_seconds, 86_400)
        self.assertFalse(config.single_use_proofs)

    def test_invalid_values(self):
        """Non-positive window and negative skew are rejected"""
        with self.assertRaises(ValueError):
            VaultConfig(freshness_window_seconds=0)
        with self.assertRaises(ValueError):
            VaultConfig(max_clock_skew_seconds=-1)
        with self.assertRaises(ValueError):
            VaultConfig(program_id="")

    def test_from_env(self):
        """Environment variables override defaults"""
        config = VaultConfig.from_env({
            'VEILVAULT_FRESHNESS_WINDOW': '120',
            'VEILVAULT_CLOCK_SKEW': '0',
            'VEILVAULT_SINGLE_USE_PROOFS': 'true',
            'VEILVAULT_PROGRAM_ID': 'test-program'
        })

        self.assertEqual(config.freshness_window_seconds, 120)
        self.assertEqual(config.max_clock_skew_seconds, 0)
        self.assertTrue(config.single_use_proofs)
        self.assertTrue(config.check_conservation)
        self.assertEqual(config.program_id, 'test-program')

    def test_from_env_empty(self):
        """Missing variables fall back to defaults"""
        self.assertEqual(VaultConfig.from_env({}), VaultConfig())

if __name__ == '__main__':
    unittest.main()
