"""
External token ledger - underlying RWA token custody and vault share tokens
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Tuple

logger = logging.getLogger(__name__)


class TokenLedgerError(Exception):
    """Raised by a token ledger that cannot complete an operation"""


class TokenLedger(ABC):
    """Operations the vault ledger composes into mint/burn transitions"""

    @abstractmethod
    def transfer_in(self, owner: str, vault_id: str, amount: int) -> bool:
        """Move underlying tokens from owner into vault custody"""

    @abstractmethod
    def mint_share_token(self, owner: str, vault_id: str, amount: int) -> bool:
        """Mint vault share tokens to owner"""

    @abstractmethod
    def burn_share_token(self, owner: str, vault_id: str, amount: int) -> bool:
        """Burn vault share tokens held by owner"""

    @abstractmethod
    def release_out(self, owner: str, vault_id: str, amount: int) -> bool:
        """Move underlying tokens from vault custody back to owner"""

    @abstractmethod
    def share_supply(self, vault_id: str) -> int:
        """Outstanding share tokens for a vault"""

    @abstractmethod
    def share_balance(self, owner: str, vault_id: str) -> int:
        """Share tokens of a vault held by owner"""

    @abstractmethod
    def custody_balance(self, vault_id: str) -> int:
        """Underlying tokens held in vault custody"""


class InMemoryTokenLedger(TokenLedger):
    """Reference ledger keeping every balance in process memory"""

    def __init__(self):
        self._balances = {}  # owner -> underlying balance
        self._custody = {}  # vault_id -> underlying balance
        self._shares = {}  # (vault_id, owner) -> share balance
        self._supply = {}  # vault_id -> share supply
        self._history = []
        self._lock = threading.Lock()

    def fund(self, owner: str, amount: int) -> None:
        """Credit owner with underlying tokens"""
        if amount <= 0:
            raise ValueError("Funding amount must be positive")

        with self._lock:
            self._balances[owner] = self._balances.get(owner, 0) + amount
            self._record('fund', owner, '', amount)

    def balance_of(self, owner: str) -> int:
        """Underlying token balance for owner"""
        return self._balances.get(owner, 0)

    def transfer_in(self, owner: str, vault_id: str, amount: int) -> bool:
        if amount <= 0:
            return False

        with self._lock:
            balance = self._balances.get(owner, 0)
            if balance < amount:
                logger.debug("transfer_in rejected: %s holds %d, needs %d", owner[:16], balance, amount)
                return False

            self._balances[owner] = balance - amount
            self._custody[vault_id] = self._custody.get(vault_id, 0) + amount
            self._record('transfer_in', owner, vault_id, amount)

        return True

    def mint_share_token(self, owner: str, vault_id: str, amount: int) -> bool:
        if amount <= 0:
            return False

        with self._lock:
            key = (vault_id, owner)
            self._shares[key] = self._shares.get(key, 0) + amount
            self._supply[vault_id] = self._supply.get(vault_id, 0) + amount
            self._record('mint_share_token', owner, vault_id, amount)

        return True

    def burn_share_token(self, owner: str, vault_id: str, amount: int) -> bool:
        if amount <= 0:
            return False

        with self._lock:
            key = (vault_id, owner)
            held = self._shares.get(key, 0)
            if held < amount:
                return False

            self._shares[key] = held - amount
            self._supply[vault_id] = self._supply.get(vault_id, 0) - amount
            self._record('burn_share_token', owner, vault_id, amount)

        return True

    def release_out(self, owner: str, vault_id: str, amount: int) -> bool:
        if amount <= 0:
            return False

        with self._lock:
            custody = self._custody.get(vault_id, 0)
            if custody < amount:
                return False

            self._custody[vault_id] = custody - amount
            self._balances[owner] = self._balances.get(owner, 0) + amount
            self._record('release_out', owner, vault_id, amount)

        return True

    def transfer_shares(self, from_owner: str, to_owner: str, vault_id: str, amount: int) -> bool:
        """Move share tokens between holders; supply is unchanged"""
        if amount <= 0:
            return False

        with self._lock:
            from_key = (vault_id, from_owner)
            held = self._shares.get(from_key, 0)
            if held < amount:
                return False

            to_key = (vault_id, to_owner)
            self._shares[from_key] = held - amount
            self._shares[to_key] = self._shares.get(to_key, 0) + amount
            self._record('transfer_shares', from_owner, vault_id, amount)

        return True

    def share_supply(self, vault_id: str) -> int:
        return self._supply.get(vault_id, 0)

    def share_balance(self, owner: str, vault_id: str) -> int:
        return self._shares.get((vault_id, owner), 0)

    def custody_balance(self, vault_id: str) -> int:
        return self._custody.get(vault_id, 0)

    def holders(self, vault_id: str) -> List[Tuple[str, int]]:
        """Share holders of a vault with non-zero balances"""
        return [
            (owner, amount)
            for (vid, owner), amount in self._shares.items()
            if vid == vault_id and amount > 0
        ]

    def get_history(self) -> List[Dict[str, Any]]:
        """Get ledger operation history"""
        return self._history.copy()

    def _record(self, operation: str, owner: str, vault_id: str, amount: int) -> None:
        self._history.append({
            'operation': operation,
            'owner': owner,
            'vault_id': vault_id,
            'amount': amount,
            'sequence': len(self._history)
        })
