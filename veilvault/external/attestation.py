"""
Oracle attestation source and signature-checking proof verifier
"""

import hashlib
import logging
import time
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa, padding

from ..gate import GateDecision, OracleProof, OracleProofGate, RejectReason

logger = logging.getLogger(__name__)

ATTESTATION_DOMAIN = b"VEILVAULT_ORACLE_ATTESTATION_V1"

_PSS = padding.PSS(
    mgf=padding.MGF1(hashes.SHA256()),
    salt_length=padding.PSS.MAX_LENGTH
)


def hash_metadata(metadata: bytes) -> bytes:
    """32-byte content identifier for RWA metadata"""
    return hashlib.sha256(metadata).digest()


def attestation_message(rwa_hash: bytes, timestamp: int) -> bytes:
    """Bytes covered by an attestation signature"""
    return ATTESTATION_DOMAIN + rwa_hash + timestamp.to_bytes(8, 'big', signed=True)


class OracleAttestor:
    """Issues signed oracle proofs for RWA metadata hashes"""

    def __init__(self, private_key: Optional[rsa.RSAPrivateKey] = None):
        self.private_key = private_key or rsa.generate_private_key(
            public_exponent=65537,
            key_size=2048
        )

    @classmethod
    def from_pem(cls, pem: bytes, password: Optional[bytes] = None) -> 'OracleAttestor':
        """Load attestor key from PEM"""
        key = serialization.load_pem_private_key(pem, password=password)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise ValueError("Oracle attestor requires an RSA private key")
        return cls(key)

    def public_key_der(self) -> bytes:
        """Verification key handed to proof verifiers"""
        return self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )

    def attest(self, rwa_hash: bytes, timestamp: Optional[int] = None) -> OracleProof:
        """Sign an attestation over an RWA hash and timestamp"""
        if timestamp is None:
            timestamp = int(time.time())

        signature = self.private_key.sign(
            attestation_message(rwa_hash, timestamp),
            _PSS,
            hashes.SHA256()
        )
        return OracleProof(hash=rwa_hash, timestamp=timestamp, signature=signature)

    def attest_metadata(self, metadata: bytes, timestamp: Optional[int] = None) -> OracleProof:
        """Hash metadata and attest to it; metadata never leaves this call"""
        return self.attest(hash_metadata(metadata), timestamp)


class SignedProofVerifier:
    """Gate checks followed by attestor signature verification"""

    def __init__(self, gate: OracleProofGate, verification_key: bytes):
        self.gate = gate
        self.public_key = serialization.load_der_public_key(verification_key)

    def validate(self, proof: OracleProof, now: int) -> GateDecision:
        decision = self.gate.validate(proof, now)
        if not decision.accepted:
            return decision

        if not proof.signature:
            return GateDecision.reject(RejectReason.BAD_SIGNATURE, "Proof carries no attestor signature")

        try:
            self.public_key.verify(
                proof.signature,
                attestation_message(proof.hash, proof.timestamp),
                _PSS,
                hashes.SHA256()
            )
        except InvalidSignature:
            logger.warning("Attestation signature rejected for proof at %d", proof.timestamp)
            return GateDecision.reject(RejectReason.BAD_SIGNATURE, "Attestor signature does not match proof")

        return decision
