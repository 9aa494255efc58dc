"""
VeilVault - oracle-gated RWA share vaults
Deterministic vault addressing, oracle proof gating and conserved share accounting
"""

from .address import AddressDeriver, derive_vault_id
from .config import VaultConfig
from .conservation import ConservationReport, check_conservation, assert_conserved, audit
from .errors import (
    VaultError,
    AlreadyInitialized,
    NotFound,
    VaultNotFound,
    ProofNotFound,
    Unauthorized,
    InvalidProof,
    MalformedProof,
    StaleProof,
    InsufficientShares,
    MathOverflow,
    ExternalLedgerFailure,
    ConservationViolation,
)
from .gate import OracleProof, OracleProofGate, GateDecision, RejectReason
from .messages import InitializeRequest, MintRequest, BurnRequest, VaultSnapshot
from .store import VaultStore, JsonVaultStore
from .vault import Vault, VaultLedger

__version__ = "0.1.0"
__all__ = [
    "AddressDeriver",
    "derive_vault_id",
    "VaultConfig",
    "ConservationReport",
    "check_conservation",
    "assert_conserved",
    "audit",
    "VaultError",
    "AlreadyInitialized",
    "NotFound",
    "VaultNotFound",
    "ProofNotFound",
    "Unauthorized",
    "InvalidProof",
    "MalformedProof",
    "StaleProof",
    "InsufficientShares",
    "MathOverflow",
    "ExternalLedgerFailure",
    "ConservationViolation",
    "OracleProof",
    "OracleProofGate",
    "GateDecision",
    "RejectReason",
    "InitializeRequest",
    "MintRequest",
    "BurnRequest",
    "VaultSnapshot",
    "VaultStore",
    "JsonVaultStore",
    "Vault",
    "VaultLedger"
]
