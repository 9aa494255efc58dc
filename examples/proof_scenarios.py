#!/usr/bin/env python3
"""
Example: Minting against various oracle proofs
"""

import time

from veilvault import VaultConfig, VaultLedger, InitializeRequest, MintRequest, InvalidProof
from veilvault.external import InMemoryTokenLedger, OracleAttestor, SignedProofVerifier
from veilvault.gate import OracleProof, OracleProofGate
from veilvault.keys import OwnerKey

def main():
    print("=== Testing Oracle Proof Scenarios ===")
    print()

    config = VaultConfig.strict()
    attestor = OracleAttestor()
    rogue = OracleAttestor()
    token_ledger = InMemoryTokenLedger()
    verifier = SignedProofVerifier(OracleProofGate(config), attestor.public_key_der())
    ledger = VaultLedger(token_ledger, config=config, verifier=verifier)

    owner = OwnerKey()
    token_ledger.fund(owner.identity, 1_000_000)

    now = int(time.time())
    init_proof = attestor.attest_metadata(b"bond-series-7", timestamp=now - 10)
    vault = ledger.initialize(InitializeRequest(owner.identity, 0, init_proof))
    rwa_hash = init_proof.hash

    print(f"   Vault: {vault.vault_id[:16]}...")
    print(f"   Freshness window: {config.freshness_window_seconds}s, single-use proofs: {config.single_use_proofs}")
    print()

    scenarios = [
        {
            'name': 'Fresh signed proof',
            'proof': attestor.attest(rwa_hash, timestamp=now - 5),
            'should_pass': True
        },
        {
            'name': 'Same proof again (consumed)',
            'proof': None,
            'should_pass': False
        },
        {
            'name': 'Stale proof',
            'proof': attestor.attest(rwa_hash, timestamp=now - 3600),
            'should_pass': False
        },
        {
            'name': 'All-zero hash',
            'proof': OracleProof(hash=bytes(32), timestamp=now),
            'should_pass': False
        },
        {
            'name': 'Different RWA',
            'proof': attestor.attest_metadata(b"bond-series-8", timestamp=now),
            'should_pass': False
        },
        {
            'name': 'Signed by unknown oracle',
            'proof': rogue.attest(rwa_hash, timestamp=now),
            'should_pass': False
        },
    ]
    scenarios[1]['proof'] = scenarios[0]['proof']

    for i, scenario in enumerate(scenarios, 1):
        print(f"📝 Test {i}: {scenario['name']}")

        try:
            vault = ledger.mint_shares(MintRequest(owner.identity, vault.vault_id, 10_000, scenario['proof']))
            print(f"   ✅ Minted, total shares {vault.total_shares:,}")
            if not scenario['should_pass']:
                print("   ❌ Unexpected result: Should have failed")
        except InvalidProof as e:
            print(f"   ❌ Rejected ({e.reason.value}): {e}")
            if not scenario['should_pass']:
                print("   ✅ Expected result: FAIL")
            else:
                print("   ❌ Unexpected result: Should have passed")

        print()

    print("🎯 Proof testing complete!")

if __name__ == "__main__":
    main()
