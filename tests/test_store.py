import hashlib
import json
import os
import tempfile
import unittest
from unittest import mock
from veilvault import Vault, VaultLedger, VaultStore, JsonVaultStore, InitializeRequest, MintRequest
from veilvault.external import InMemoryTokenLedger
from veilvault.gate import OracleProof

NOW = 1_700_000_000

class TestVaultStore(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.vault = Vault("aa" * 32, "owner", 10, hashlib.sha256(b"rwa").digest(), NOW)
        self.proof = OracleProof(self.vault.rwa_hash, NOW)

    def test_create_once(self):
        """Vault and proof are stored together, once"""
        store = VaultStore()

        self.assertTrue(store.create(self.vault, self.proof))
        self.assertFalse(store.create(self.vault, self.proof))
        self.assertEqual(store.get_vault(self.vault.vault_id), self.vault)
        self.assertEqual(store.get_proof(self.vault.vault_id), self.proof)
        self.assertEqual(len(store), 1)

    def test_put_requires_existing(self):
        with self.assertRaises(KeyError):
            VaultStore().put_vault(self.vault)

    def test_vault_serialization(self):
        self.assertEqual(Vault.from_dict(self.vault.to_dict()), self.vault)


class TestJsonVaultStore(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, 'vaults.json')
        self.proof = OracleProof(hashlib.sha256(b"rwa").digest(), NOW)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_persists_across_instances(self):
        """Records written by one store are read by the next"""
        token_ledger = InMemoryTokenLedger()
        token_ledger.fund("owner", 1000)
        ledger = VaultLedger(token_ledger, store=JsonVaultStore(self.path), clock=lambda: NOW)

        vault = ledger.initialize(InitializeRequest("owner", 100, self.proof))
        ledger.mint_shares(MintRequest("owner", vault.vault_id, 50, self.proof))

        reopened = JsonVaultStore(self.path)
        self.assertEqual(reopened.get_vault(vault.vault_id).total_shares, 150)
        self.assertEqual(reopened.get_proof(vault.vault_id), self.proof)

        with open(self.path, encoding='utf-8') as fh:
            data = json.load(fh)
        self.assertEqual(set(data), {'vaults', 'proofs'})
        self.assertIn(vault.vault_id, data['vaults'])

    def test_failed_write_rolls_back(self):
        """Store keeps its previous state when persisting fails"""
        token_ledger = InMemoryTokenLedger()
        token_ledger.fund("owner", 1000)
        store = JsonVaultStore(self.path)
        ledger = VaultLedger(token_ledger, store=store, clock=lambda: NOW)
        vault = ledger.initialize(InitializeRequest("owner", 100, self.proof))

        with mock.patch('veilvault.store.os.replace', side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                ledger.mint_shares(MintRequest("owner", vault.vault_id, 50, self.proof))

        self.assertEqual(store.get_vault(vault.vault_id).total_shares, 100)
        self.assertEqual(token_ledger.share_supply(vault.vault_id), 100)
        self.assertEqual(token_ledger.balance_of("owner"), 900)
        self.assertEqual(os.listdir(self.tmpdir.name), ['vaults.json'])

if __name__ == '__main__':
    unittest.main()
