"""
External collaborators - attestation source and token ledger
"""

from .attestation import OracleAttestor, SignedProofVerifier, hash_metadata
from .token_ledger import TokenLedger, InMemoryTokenLedger, TokenLedgerError

__all__ = [
    "OracleAttestor",
    "SignedProofVerifier",
    "hash_metadata",
    "TokenLedger",
    "InMemoryTokenLedger",
    "TokenLedgerError"
]
