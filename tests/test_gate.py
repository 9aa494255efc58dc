import hashlib
import unittest
from veilvault.config import VaultConfig
from veilvault.gate import OracleProof, OracleProofGate, RejectReason

NOW = 1_700_000_000

class TestOracleProofGate(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.config = VaultConfig(freshness_window_seconds=600, max_clock_skew_seconds=30)
        self.gate = OracleProofGate(self.config)
        self.rwa_hash = hashlib.sha256(b"warehouse-receipt").digest()

    def test_accepts_fresh_proof(self):
        """Well-formed proof within the window is accepted"""
        decision = self.gate.validate(OracleProof(self.rwa_hash, NOW), NOW)
        self.assertTrue(decision.accepted)
        self.assertIsNone(decision.reason)

    def test_accepts_proof_at_window_edge(self):
        """Proof exactly as old as the window is still fresh"""
        decision = self.gate.validate(OracleProof(self.rwa_hash, NOW - 600), NOW)
        self.assertTrue(decision.accepted)

    def test_rejects_wrong_hash_length(self):
        """31- and 33-byte hashes are malformed"""
        for size in (31, 33, 0):
            decision = self.gate.validate(OracleProof(b"\x01" * size, NOW), NOW)
            self.assertFalse(decision.accepted)
            self.assertEqual(decision.reason, RejectReason.MALFORMED_PROOF)
            self.assertIn("32 bytes", decision.detail)

    def test_rejects_zero_hash(self):
        """All-zero hash is malformed"""
        decision = self.gate.validate(OracleProof(bytes(32), NOW), NOW)
        self.assertFalse(decision.accepted)
        self.assertEqual(decision.reason, RejectReason.MALFORMED_PROOF)

    def test_rejects_non_positive_timestamp(self):
        """Zero and negative timestamps are malformed"""
        for timestamp in (0, -1, -NOW):
            decision = self.gate.validate(OracleProof(self.rwa_hash, timestamp), NOW)
            self.assertFalse(decision.accepted)
            self.assertEqual(decision.reason, RejectReason.MALFORMED_PROOF)

    def test_rejects_stale_proof(self):
        """Proof older than the window is stale"""
        decision = self.gate.validate(OracleProof(self.rwa_hash, NOW - 601), NOW)
        self.assertFalse(decision.accepted)
        self.assertEqual(decision.reason, RejectReason.STALE_PROOF)
        self.assertIn("freshness window", decision.detail)

    def test_future_timestamp(self):
        """Small clock skew is tolerated, larger is malformed"""
        self.assertTrue(self.gate.validate(OracleProof(self.rwa_hash, NOW + 30), NOW).accepted)

        decision = self.gate.validate(OracleProof(self.rwa_hash, NOW + 31), NOW)
        self.assertFalse(decision.accepted)
        self.assertEqual(decision.reason, RejectReason.MALFORMED_PROOF)

    def test_checks_short_circuit_in_order(self):
        """Hash shape is reported before timestamp problems"""
        decision = self.gate.validate(OracleProof(b"\x01" * 31, 0), NOW)
        self.assertIn("32 bytes", decision.detail)

    def test_window_comes_from_config(self):
        """A wider configured window accepts older proofs"""
        gate = OracleProofGate(VaultConfig.permissive())
        self.assertTrue(gate.validate(OracleProof(self.rwa_hash, NOW - 3600), NOW).accepted)

    def test_proof_serialization(self):
        """Proof survives dict serialization"""
        proof = OracleProof(self.rwa_hash, NOW, b"\x05\x06")
        self.assertEqual(OracleProof.from_dict(proof.to_dict()), proof)

    def test_malformed_proof_dict(self):
        """Wrongly shaped proof data is a ValueError"""
        for data in ("abc", [1, 2], None, {'hash': 5, 'timestamp': NOW}, {'hash': "00" * 32, 'timestamp': None}):
            with self.assertRaises(ValueError):
                OracleProof.from_dict(data)

if __name__ == '__main__':
    unittest.main()
