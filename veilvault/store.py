"""
Vault record storage addressed only by vault identity
"""

import json
import logging
import os
import tempfile
import threading
from typing import Dict, Iterator, Optional

from .gate import OracleProof
from .vault import Vault

logger = logging.getLogger(__name__)


class VaultStore:
    """In-memory store: one vault and at most one proof per vault id"""

    def __init__(self):
        self._vaults: Dict[str, Vault] = {}
        self._proofs: Dict[str, OracleProof] = {}
        self._lock = threading.Lock()

    def get_vault(self, vault_id: str) -> Optional[Vault]:
        return self._vaults.get(vault_id)

    def get_proof(self, vault_id: str) -> Optional[OracleProof]:
        return self._proofs.get(vault_id)

    def contains(self, vault_id: str) -> bool:
        return vault_id in self._vaults

    def create(self, vault: Vault, proof: OracleProof) -> bool:
        """Insert vault and proof together; False if the vault exists"""
        with self._lock:
            if vault.vault_id in self._vaults:
                return False

            self._vaults[vault.vault_id] = vault
            self._proofs[vault.vault_id] = proof
            try:
                self._flush()
            except OSError:
                del self._vaults[vault.vault_id]
                del self._proofs[vault.vault_id]
                raise
        return True

    def put_vault(self, vault: Vault) -> None:
        """Replace an existing vault record"""
        with self._lock:
            previous = self._vaults.get(vault.vault_id)
            if previous is None:
                raise KeyError(vault.vault_id)

            self._vaults[vault.vault_id] = vault
            try:
                self._flush()
            except OSError:
                self._vaults[vault.vault_id] = previous
                raise

    def vault_ids(self) -> Iterator[str]:
        return iter(list(self._vaults))

    def __len__(self) -> int:
        return len(self._vaults)

    def _flush(self) -> None:
        """Persist after a write; no-op in memory"""

    def to_dict(self) -> dict:
        """Serialize store contents"""
        return {
            'vaults': {vid: v.to_dict() for vid, v in self._vaults.items()},
            'proofs': {vid: p.to_dict() for vid, p in self._proofs.items()}
        }

    def _load_dict(self, data: dict) -> None:
        self._vaults = {vid: Vault.from_dict(v) for vid, v in data.get('vaults', {}).items()}
        self._proofs = {vid: OracleProof.from_dict(p) for vid, p in data.get('proofs', {}).items()}


class JsonVaultStore(VaultStore):
    """Store persisted to a JSON file, rewritten atomically on every write"""

    def __init__(self, path: str):
        super().__init__()
        self.path = path

        if os.path.exists(path):
            with open(path, 'r', encoding='utf-8') as fh:
                self._load_dict(json.load(fh))
            logger.info("Loaded %d vaults from %s", len(self._vaults), path)

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.veilvault-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(self.to_dict(), fh, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
