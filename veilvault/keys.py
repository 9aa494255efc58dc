"""
Owner identities and request signatures
"""

import hashlib
import json
import threading
from typing import Dict, Optional, Tuple

from ecdsa import SigningKey, SECP256k1, VerifyingKey, BadSignatureError
from ecdsa.keys import MalformedPointError


class OwnerKey:
    """secp256k1 key pair; the compressed public key is the owner identity"""

    def __init__(self, private_key: Optional[bytes] = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    @property
    def identity(self) -> str:
        """Compressed public key in hex format"""
        return self.public_key.to_string("compressed").hex()

    def sign_message(self, message: bytes) -> str:
        """Sign message and return signature in hex"""
        return self.private_key.sign(message, hashfunc=hashlib.sha256).hex()

    def sign_payload(self, payload: dict) -> str:
        """Sign the canonical encoding of a request payload"""
        return self.sign_message(canonical_payload(payload))

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key pair and return (private_key_hex, identity)"""
        key = OwnerKey()
        return key.private_key.to_string().hex(), key.identity


def canonical_payload(payload: dict) -> bytes:
    """Deterministic JSON encoding used for request signatures"""
    return json.dumps(payload, sort_keys=True, separators=(',', ':')).encode()


def verify_signature(message: bytes, signature_hex: str, identity: str) -> bool:
    """Verify signature against message and owner identity"""
    try:
        vk = VerifyingKey.from_string(bytes.fromhex(identity), curve=SECP256k1)
        return vk.verify(bytes.fromhex(signature_hex), message, hashfunc=hashlib.sha256)
    except (BadSignatureError, MalformedPointError, ValueError):
        return False


def verify_payload(payload: dict, signature_hex: str, identity: str) -> bool:
    """Verify a request payload signed with OwnerKey.sign_payload"""
    return verify_signature(canonical_payload(payload), signature_hex, identity)


class NonceRegistry:
    """Signed request nonces seen within a sliding time window"""

    def __init__(self, window_seconds: int = 300):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.window_seconds = window_seconds
        self._seen: Dict[Tuple[str, str], int] = {}  # (signer, nonce) -> issued_at
        self._lock = threading.Lock()

    def check_and_record(self, signer: str, nonce: str, issued_at: int, now: int) -> Tuple[bool, str]:
        """Accept each (signer, nonce) once, only while issued_at is within the window"""
        if abs(now - issued_at) > self.window_seconds:
            return False, f"Request issued at {issued_at} is outside the {self.window_seconds}s window"

        with self._lock:
            self._expire(now)
            key = (signer, nonce)
            if key in self._seen:
                return False, "Request nonce already used"
            self._seen[key] = issued_at

        return True, "Request accepted"

    def __len__(self) -> int:
        return len(self._seen)

    def _expire(self, now: int) -> None:
        # Expired entries are outside the window and cannot be accepted again
        cutoff = now - self.window_seconds
        for key in [k for k, issued_at in self._seen.items() if issued_at < cutoff]:
            del self._seen[key]
