"""
Deterministic vault addressing
"""

import hashlib
import hmac

from .config import DEFAULT_PROGRAM_ID

VAULT_SEED = b"vault"


class AddressDeriver:
    """Derives vault identities from owner identities"""

    def __init__(self, program_id: str = DEFAULT_PROGRAM_ID):
        self._key = program_id.encode()

    def derive(self, owner: str) -> str:
        """Derive vault id for owner as a hex digest"""
        owner_bytes = owner.encode()

        # Length prefixes keep ("vault", owner) unambiguous
        mac = hmac.new(self._key, digestmod=hashlib.sha256)
        mac.update(len(VAULT_SEED).to_bytes(4, 'big'))
        mac.update(VAULT_SEED)
        mac.update(len(owner_bytes).to_bytes(4, 'big'))
        mac.update(owner_bytes)

        return mac.hexdigest()


def derive_vault_id(owner: str, program_id: str = DEFAULT_PROGRAM_ID) -> str:
    """Derive vault id without keeping a deriver around"""
    return AddressDeriver(program_id).derive(owner)
