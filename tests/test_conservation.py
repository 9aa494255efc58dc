import hashlib
import random
import threading
import unittest
from veilvault import (
    VaultLedger,
    VaultConfig,
    InitializeRequest,
    MintRequest,
    BurnRequest,
    InsufficientShares,
    ConservationViolation,
    check_conservation,
    assert_conserved,
)
from veilvault.external import InMemoryTokenLedger
from veilvault.gate import OracleProof
from veilvault.keys import OwnerKey

NOW = 1_700_000_000

class TestConservation(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.owner = OwnerKey().identity
        self.token_ledger = InMemoryTokenLedger()
        self.token_ledger.fund(self.owner, 10**15)
        self.ledger = VaultLedger(self.token_ledger, clock=lambda: NOW)
        self.proof = OracleProof(hashlib.sha256(b"rwa").digest(), NOW)

    def test_random_sequences_conserve(self):
        """Total shares track initial + mints - burns and the ledger supply"""
        rng = random.Random(7)
        initial = 1000
        vault = self.ledger.initialize(InitializeRequest(self.owner, initial, self.proof))
        expected = initial

        for _ in range(200):
            amount = rng.randint(1, 5000)
            if rng.random() < 0.5:
                vault = self.ledger.mint_shares(MintRequest(self.owner, vault.vault_id, amount, self.proof))
                expected += amount
            else:
                try:
                    vault = self.ledger.burn_shares(BurnRequest(self.owner, vault.vault_id, amount))
                    expected -= amount
                except InsufficientShares:
                    self.assertGreater(amount, expected)

            self.assertEqual(vault.total_shares, expected)
            self.assertEqual(self.token_ledger.share_supply(vault.vault_id), expected)
            holders_total = sum(held for _, held in self.token_ledger.holders(vault.vault_id))
            self.assertEqual(holders_total, expected)

    def test_report(self):
        """Report compares shares, supply and custody"""
        vault = self.ledger.initialize(InitializeRequest(self.owner, 500, self.proof))
        record = self.ledger.store.get_vault(vault.vault_id)

        report = check_conservation(record, self.token_ledger)

        self.assertTrue(report.conserved)
        self.assertTrue(report.fully_backed)
        self.assertEqual(report.to_dict()['share_supply'], 500)

    def test_violation_detected(self):
        """Shares minted outside the vault ledger break conservation"""
        vault = self.ledger.initialize(InitializeRequest(self.owner, 500, self.proof))
        self.token_ledger.mint_share_token(self.owner, vault.vault_id, 1)
        record = self.ledger.store.get_vault(vault.vault_id)

        self.assertFalse(check_conservation(record, self.token_ledger).conserved)
        with self.assertRaises(ConservationViolation) as ctx:
            assert_conserved(record, self.token_ledger)
        self.assertEqual(ctx.exception.report.share_supply, 501)

    def test_transition_checks_conservation(self):
        """Ledger refuses to report success over a drifted token ledger"""
        vault = self.ledger.initialize(InitializeRequest(self.owner, 500, self.proof))
        self.token_ledger.mint_share_token(self.owner, vault.vault_id, 1)

        with self.assertRaises(ConservationViolation):
            self.ledger.burn_shares(BurnRequest(self.owner, vault.vault_id, 10))

    def test_check_can_be_disabled(self):
        ledger = VaultLedger(self.token_ledger, config=VaultConfig(check_conservation=False), clock=lambda: NOW)
        vault = ledger.initialize(InitializeRequest(self.owner, 500, self.proof))
        self.token_ledger.mint_share_token(self.owner, vault.vault_id, 1)

        vault = ledger.burn_shares(BurnRequest(self.owner, vault.vault_id, 10))
        self.assertEqual(vault.total_shares, 490)

    def test_audit_all_vaults(self):
        """Audit reports every stored vault"""
        owners = [OwnerKey().identity for _ in range(3)]
        for owner in owners:
            self.token_ledger.fund(owner, 100)
            self.ledger.initialize(InitializeRequest(owner, 100, self.proof))

        reports = self.ledger.audit()

        self.assertEqual(len(reports), 3)
        self.assertTrue(all(r.conserved for r in reports))

    def test_concurrent_transitions_conserve(self):
        """Concurrent mints and burns on one vault serialize without losing updates"""
        initial = 1000
        vault = self.ledger.initialize(InitializeRequest(self.owner, initial, self.proof))
        threads_count, rounds, mint_amount, burn_amount = 8, 25, 3, 2
        errors = []

        def worker():
            try:
                for _ in range(rounds):
                    self.ledger.mint_shares(MintRequest(self.owner, vault.vault_id, mint_amount, self.proof))
                    self.ledger.burn_shares(BurnRequest(self.owner, vault.vault_id, burn_amount))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        expected = initial + threads_count * rounds * (mint_amount - burn_amount)
        stored = self.ledger.store.get_vault(vault.vault_id)
        self.assertEqual(stored.total_shares, expected)
        self.assertEqual(self.token_ledger.share_supply(vault.vault_id), expected)
        assert_conserved(stored, self.token_ledger)

if __name__ == '__main__':
    unittest.main()
