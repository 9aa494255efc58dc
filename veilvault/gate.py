from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from .config import VaultConfig

HASH_SIZE = 32


class RejectReason(Enum):
    MALFORMED_PROOF = "malformed_proof"
    STALE_PROOF = "stale_proof"
    HASH_MISMATCH = "hash_mismatch"
    CONSUMED_PROOF = "consumed_proof"
    BAD_SIGNATURE = "bad_signature"


@dataclass(frozen=True)
class OracleProof:
    """Attestation binding an RWA metadata hash to a point in time"""
    hash: bytes
    timestamp: int  # unix seconds
    signature: bytes = b""

    def to_dict(self) -> dict:
        """Serialize proof for storage/transmission"""
        return {
            'hash': self.hash.hex(),
            'timestamp': self.timestamp,
            'signature': self.signature.hex()
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'OracleProof':
        """Deserialize proof from storage"""
        if not isinstance(data, dict):
            raise ValueError(f"proof must be an object, got {type(data).__name__}")

        try:
            return cls(
                hash=bytes.fromhex(data['hash']),
                timestamp=int(data['timestamp']),
                signature=bytes.fromhex(data.get('signature', ''))
            )
        except TypeError as e:
            raise ValueError(f"Malformed proof fields: {e}") from e


@dataclass(frozen=True)
class GateDecision:
    """Outcome of proof validation"""
    accepted: bool
    reason: Optional[RejectReason] = None
    detail: str = "Proof accepted"

    @classmethod
    def accept(cls) -> 'GateDecision':
        return cls(True)

    @classmethod
    def reject(cls, reason: RejectReason, detail: str) -> 'GateDecision':
        return cls(False, reason, detail)


class ProofVerifier(Protocol):
    """Anything that can stand in for the oracle proof gate"""

    def validate(self, proof: OracleProof, now: int) -> GateDecision:
        ...


class OracleProofGate:
    """Structural and freshness checks for oracle proofs"""

    def __init__(self, config: VaultConfig):
        self.config = config

    def validate(self, proof: OracleProof, now: int) -> GateDecision:
        """
        Checks run in order and stop at the first failure:
        hash shape, timestamp sign, then freshness against `now`.
        """

        if not isinstance(proof.hash, (bytes, bytearray)) or len(proof.hash) != HASH_SIZE:
            size = len(proof.hash) if isinstance(proof.hash, (bytes, bytearray)) else None
            return GateDecision.reject(
                RejectReason.MALFORMED_PROOF,
                f"Proof hash must be {HASH_SIZE} bytes, got {size}"
            )

        if not any(proof.hash):
            return GateDecision.reject(RejectReason.MALFORMED_PROOF, "Proof hash is all zero")

        if proof.timestamp <= 0:
            return GateDecision.reject(
                RejectReason.MALFORMED_PROOF,
                f"Proof timestamp must be positive, got {proof.timestamp}"
            )

        age = now - proof.timestamp
        if age < -self.config.max_clock_skew_seconds:
            return GateDecision.reject(
                RejectReason.MALFORMED_PROOF,
                f"Proof timestamp is {-age}s in the future"
            )

        if age > self.config.freshness_window_seconds:
            return GateDecision.reject(
                RejectReason.STALE_PROOF,
                f"Proof is {age}s old, freshness window is {self.config.freshness_window_seconds}s"
            )

        return GateDecision.accept()
