"""
Typed requests and responses for vault operations
"""

from dataclasses import dataclass, asdict

from .gate import OracleProof

MAX_SHARES = 2**64 - 1


def _check_amount(amount, field: str, allow_zero: bool = False) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"{field} must be an integer, got {type(amount).__name__}")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValueError(f"{field} must be {'non-negative' if allow_zero else 'positive'}, got {amount}")
    if amount > MAX_SHARES:
        raise ValueError(f"{field} exceeds maximum {MAX_SHARES}")


def _check_identity(value, field: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{field} must be a non-empty string")


def _check_proof(proof) -> None:
    if not isinstance(proof, OracleProof):
        raise ValueError("proof must be an OracleProof")


@dataclass(frozen=True)
class InitializeRequest:
    """Create the vault for owner with initial shares backed by proof"""
    owner: str
    initial_shares: int
    proof: OracleProof

    def __post_init__(self):
        _check_identity(self.owner, "owner")
        _check_amount(self.initial_shares, "initial_shares", allow_zero=True)
        _check_proof(self.proof)

    @classmethod
    def from_dict(cls, data: dict) -> 'InitializeRequest':
        return cls(
            owner=data['owner'],
            initial_shares=data['initial_shares'],
            proof=OracleProof.from_dict(data['proof'])
        )


@dataclass(frozen=True)
class MintRequest:
    """Mint shares against a fresh oracle proof"""
    caller: str
    vault_id: str
    amount: int
    proof: OracleProof

    def __post_init__(self):
        _check_identity(self.caller, "caller")
        _check_identity(self.vault_id, "vault_id")
        _check_amount(self.amount, "amount")
        _check_proof(self.proof)

    @classmethod
    def from_dict(cls, data: dict) -> 'MintRequest':
        return cls(
            caller=data['caller'],
            vault_id=data['vault_id'],
            amount=data['amount'],
            proof=OracleProof.from_dict(data['proof'])
        )


@dataclass(frozen=True)
class BurnRequest:
    """Burn shares and release underlying tokens"""
    caller: str
    vault_id: str
    amount: int

    def __post_init__(self):
        _check_identity(self.caller, "caller")
        _check_identity(self.vault_id, "vault_id")
        _check_amount(self.amount, "amount")

    @classmethod
    def from_dict(cls, data: dict) -> 'BurnRequest':
        return cls(
            caller=data['caller'],
            vault_id=data['vault_id'],
            amount=data['amount']
        )


@dataclass(frozen=True)
class VaultSnapshot:
    """Read-only view of a vault returned by every operation"""
    vault_id: str
    authority: str
    total_shares: int
    rwa_hash: str

    def to_dict(self) -> dict:
        return asdict(self)
