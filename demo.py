#!/usr/bin/env python3
"""
Complete demo of the VeilVault share accounting system
"""

from veilvault import (
    VaultConfig,
    VaultLedger,
    InitializeRequest,
    MintRequest,
    BurnRequest,
    InsufficientShares,
)
from veilvault.external import InMemoryTokenLedger, OracleAttestor, SignedProofVerifier
from veilvault.gate import OracleProofGate
from veilvault.keys import OwnerKey


def main():
    print("=" * 60)
    print("🏦 VEILVAULT - RWA SHARE VAULT DEMO")
    print("=" * 60)
    print()

    # Step 1: Setup
    print("🔧 STEP 1: Owner, oracle and token ledger")
    print("-" * 40)

    owner = OwnerKey()
    attestor = OracleAttestor()
    token_ledger = InMemoryTokenLedger()
    token_ledger.fund(owner.identity, 2_000_000_000)

    config = VaultConfig()
    verifier = SignedProofVerifier(OracleProofGate(config), attestor.public_key_der())
    ledger = VaultLedger(token_ledger, config=config, verifier=verifier)

    print(f"✅ Owner: {owner.identity[:16]}...")
    print(f"✅ Underlying balance: {token_ledger.balance_of(owner.identity):,}")
    print(f"✅ Freshness window: {config.freshness_window_seconds}s")
    print()

    # Step 2: Initialize vault
    print("🏗️  STEP 2: Initializing vault with oracle proof")
    print("-" * 40)

    proof = attestor.attest_metadata(b'{"asset": "warehouse-receipt-0042", "grade": "A"}')
    # 1000 whole units at 6 decimals
    vault = ledger.initialize(InitializeRequest(owner.identity, 1_000_000_000, proof))

    print(f"✅ Vault ID: {vault.vault_id}")
    print(f"✅ RWA hash: {vault.rwa_hash[:16]}...")
    print(f"✅ Total shares: {vault.total_shares:,}")
    print()

    # Step 3: Mint
    print("🪙 STEP 3: Minting shares with a fresh proof")
    print("-" * 40)

    before = token_ledger.share_balance(owner.identity, vault.vault_id)
    fresh = attestor.attest(proof.hash)
    vault = ledger.mint_shares(MintRequest(owner.identity, vault.vault_id, 100_000_000, fresh))
    after = token_ledger.share_balance(owner.identity, vault.vault_id)

    print(f"✅ Total shares: {vault.total_shares:,}")
    print(f"✅ Share tokens received: {after - before:,}")
    print()

    # Step 4: Burn
    print("🔥 STEP 4: Burning shares")
    print("-" * 40)

    vault = ledger.burn_shares(BurnRequest(owner.identity, vault.vault_id, 50_000_000))
    print(f"✅ Total shares: {vault.total_shares:,}")

    try:
        ledger.burn_shares(BurnRequest(owner.identity, vault.vault_id, 2_000_000_000))
        print("   ❌ UNEXPECTED: Should have failed")
    except InsufficientShares as e:
        print(f"   ✅ EXPECTED FAILURE: {e}")

    print(f"✅ Total shares unchanged: {ledger.fetch_vault(vault.vault_id).total_shares:,}")
    print()

    # Step 5: Audit
    print("📈 STEP 5: Conservation audit")
    print("-" * 40)

    for report in ledger.audit():
        status = '✅' if report.conserved else '❌'
        print(f"{status} {report.vault_id[:16]}... shares {report.total_shares:,} "
              f"supply {report.share_supply:,} custody {report.custody_balance:,}")

    print()
    print("🎯 Demo completed successfully!")


if __name__ == "__main__":
    main()
