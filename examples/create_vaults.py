#!/usr/bin/env python3
"""
Example: Creating vaults for several owners
"""

from veilvault import VaultLedger, InitializeRequest, AlreadyInitialized, derive_vault_id
from veilvault.external import InMemoryTokenLedger, OracleAttestor
from veilvault.keys import OwnerKey

def main():
    print("=== Creating VeilVault Vaults ===")
    print()

    attestor = OracleAttestor()
    token_ledger = InMemoryTokenLedger()
    ledger = VaultLedger(token_ledger)

    # Generate keys for 3 owners
    print("🔑 Generating owner keys...")
    owners = []
    for name, deposit in [("Alice", 1_000), ("Bob", 25_000), ("Carol", 0)]:
        key = OwnerKey()
        if deposit:
            token_ledger.fund(key.identity, deposit)
        owners.append({'name': name, 'key': key, 'deposit': deposit})
        print(f"   {name}: {key.identity[:16]}...")

    print()

    # Vault ids are recomputable from the owner alone
    print("🏗️  Initializing vaults...")
    for owner in owners:
        identity = owner['key'].identity
        proof = attestor.attest_metadata(f"rwa-deed-{owner['name'].lower()}".encode())
        vault = ledger.initialize(InitializeRequest(identity, owner['deposit'], proof))

        assert vault.vault_id == derive_vault_id(identity)
        print(f"   {owner['name']}: vault {vault.vault_id[:16]}... with {vault.total_shares:,} shares")

    print()

    # Second initialization is rejected
    print("🔁 Re-initializing Alice's vault...")
    alice = owners[0]['key'].identity
    try:
        ledger.initialize(InitializeRequest(alice, 0, attestor.attest_metadata(b"rwa-deed-alice")))
        print("   ❌ Unexpected: second initialization succeeded")
    except AlreadyInitialized as e:
        print(f"   ✅ Rejected: {e}")

    print()
    print("💰 Share balances:")
    for owner in owners:
        identity = owner['key'].identity
        vault_id = ledger.vault_id_for(identity)
        print(f"   {owner['name']}: {token_ledger.share_balance(identity, vault_id):,} shares")

    print()
    print("✅ Vault setup complete!")

if __name__ == "__main__":
    main()
