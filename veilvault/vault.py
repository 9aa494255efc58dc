import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .address import AddressDeriver
from .config import VaultConfig
from .errors import (
    AlreadyInitialized,
    ExternalLedgerFailure,
    InsufficientShares,
    InvalidProof,
    MathOverflow,
    ProofNotFound,
    Unauthorized,
    VaultNotFound,
)
from .external.token_ledger import TokenLedger, TokenLedgerError
from .gate import OracleProof, OracleProofGate, ProofVerifier, RejectReason
from .messages import MAX_SHARES, BurnRequest, InitializeRequest, MintRequest, VaultSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vault:
    """One owner's RWA-backed share pool"""
    vault_id: str
    authority: str
    total_shares: int
    rwa_hash: bytes
    last_proof_timestamp: int = 0

    def snapshot(self) -> VaultSnapshot:
        return VaultSnapshot(
            vault_id=self.vault_id,
            authority=self.authority,
            total_shares=self.total_shares,
            rwa_hash=self.rwa_hash.hex()
        )

    def to_dict(self) -> dict:
        """Serialize vault to dictionary"""
        return {
            'vault_id': self.vault_id,
            'authority': self.authority,
            'total_shares': self.total_shares,
            'rwa_hash': self.rwa_hash.hex(),
            'last_proof_timestamp': self.last_proof_timestamp
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Vault':
        """Deserialize vault from dictionary"""
        return cls(
            vault_id=data['vault_id'],
            authority=data['authority'],
            total_shares=int(data['total_shares']),
            rwa_hash=bytes.fromhex(data['rwa_hash']),
            last_proof_timestamp=int(data.get('last_proof_timestamp', 0))
        )


class VaultLedger:
    """State machine for vault initialization, share minting and burning"""

    def __init__(
        self,
        token_ledger: TokenLedger,
        config: Optional[VaultConfig] = None,
        store=None,
        verifier: Optional[ProofVerifier] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        from .store import VaultStore

        self.config = config or VaultConfig()
        self.token_ledger = token_ledger
        self.store = store if store is not None else VaultStore()
        self.verifier = verifier or OracleProofGate(self.config)
        self.deriver = AddressDeriver(self.config.program_id)
        self._clock = clock or time.time
        self._locks = {}  # vault_id -> Lock
        self._locks_guard = threading.Lock()

    def now(self) -> int:
        return int(self._clock())

    def vault_id_for(self, owner: str) -> str:
        """Deterministic vault id for an owner"""
        return self.deriver.derive(owner)

    def initialize(self, request: InitializeRequest) -> VaultSnapshot:
        """Create the owner's vault and register its oracle proof"""
        vault_id = self.vault_id_for(request.owner)

        with self._vault_lock(vault_id, create=True):
            if self.store.contains(vault_id):
                raise AlreadyInitialized(vault_id)

            self._check_proof(request.proof)

            vault = Vault(
                vault_id=vault_id,
                authority=request.owner,
                total_shares=request.initial_shares,
                rwa_hash=request.proof.hash,
                last_proof_timestamp=request.proof.timestamp
            )

            # Initial shares are deposited like any mint
            if request.initial_shares > 0:
                self._deposit(request.owner, vault_id, request.initial_shares)

            try:
                created = self.store.create(vault, request.proof)
            except OSError:
                if request.initial_shares > 0:
                    self._withdraw_deposit(request.owner, vault_id, request.initial_shares)
                raise

            if not created:
                if request.initial_shares > 0:
                    self._withdraw_deposit(request.owner, vault_id, request.initial_shares)
                raise AlreadyInitialized(vault_id)

            self._verify_conservation(vault)

        logger.info("Vault %s initialized with %d shares", vault_id[:16], vault.total_shares)
        return vault.snapshot()

    def mint_shares(self, request: MintRequest) -> VaultSnapshot:
        """Deposit underlying tokens and mint shares against a fresh proof"""

        with self._vault_lock(request.vault_id):
            vault = self._load(request.vault_id)

            if request.caller != vault.authority:
                raise Unauthorized(request.caller, vault.vault_id)

            proof = request.proof
            self._check_proof(proof)

            # Proof must attest to the RWA this vault was created for
            if proof.hash != vault.rwa_hash:
                logger.warning("Proof hash mismatch for vault %s", vault.vault_id[:16])
                raise InvalidProof(RejectReason.HASH_MISMATCH, "Proof hash does not match vault RWA hash")

            if self.config.single_use_proofs and proof.timestamp <= vault.last_proof_timestamp:
                raise InvalidProof(
                    RejectReason.CONSUMED_PROOF,
                    f"Proof at {proof.timestamp} already consumed; latest used proof is at {vault.last_proof_timestamp}"
                )

            new_total = vault.total_shares + request.amount
            if new_total > MAX_SHARES:
                raise MathOverflow(f"Minting {request.amount} would overflow total shares {vault.total_shares}")

            self._deposit(request.caller, vault.vault_id, request.amount)

            updated = replace(
                vault,
                total_shares=new_total,
                last_proof_timestamp=max(vault.last_proof_timestamp, proof.timestamp)
            )
            try:
                self.store.put_vault(updated)
            except OSError:
                self._withdraw_deposit(request.caller, vault.vault_id, request.amount)
                raise

            self._verify_conservation(updated)

        logger.info("Minted %d shares in vault %s, total %d", request.amount, updated.vault_id[:16], updated.total_shares)
        return updated.snapshot()

    def burn_shares(self, request: BurnRequest) -> VaultSnapshot:
        """Burn shares and release underlying tokens; no proof required"""

        with self._vault_lock(request.vault_id):
            vault = self._load(request.vault_id)

            if request.caller != vault.authority:
                raise Unauthorized(request.caller, vault.vault_id)

            if request.amount > vault.total_shares:
                raise InsufficientShares(request.amount, vault.total_shares)

            held = self.token_ledger.share_balance(request.caller, vault.vault_id)
            if held < request.amount:
                raise InsufficientShares(
                    request.amount,
                    held,
                    f"Caller holds {held} share tokens, cannot burn {request.amount}"
                )

            self._redeem(request.caller, vault.vault_id, request.amount)

            updated = replace(vault, total_shares=vault.total_shares - request.amount)
            try:
                self.store.put_vault(updated)
            except OSError:
                self._undo_redeem(request.caller, vault.vault_id, request.amount)
                raise

            self._verify_conservation(updated)

        logger.info("Burned %d shares in vault %s, total %d", request.amount, updated.vault_id[:16], updated.total_shares)
        return updated.snapshot()

    def fetch_vault(self, vault_id: str) -> VaultSnapshot:
        return self._load(vault_id).snapshot()

    def fetch_proof(self, vault_id: str) -> OracleProof:
        """Oracle proof registered when the vault was initialized"""
        proof = self.store.get_proof(vault_id)
        if proof is None:
            raise ProofNotFound(vault_id)
        return proof

    def vault_for_owner(self, owner: str) -> VaultSnapshot:
        return self.fetch_vault(self.vault_id_for(owner))

    def audit(self) -> list:
        """Conservation reports for every stored vault"""
        from .conservation import audit
        return audit(self.store, self.token_ledger)

    def _load(self, vault_id: str) -> Vault:
        vault = self.store.get_vault(vault_id)
        if vault is None:
            raise VaultNotFound(vault_id)
        return vault

    def _check_proof(self, proof: OracleProof) -> None:
        decision = self.verifier.validate(proof, self.now())
        if not decision.accepted:
            logger.warning("Oracle proof rejected: %s", decision.detail)
            raise InvalidProof.from_decision(decision)

    def _verify_conservation(self, vault: Vault) -> None:
        if self.config.check_conservation:
            from .conservation import assert_conserved
            assert_conserved(vault, self.token_ledger)

    @contextmanager
    def _vault_lock(self, vault_id: str, create: bool = False):
        with self._locks_guard:
            lock = self._locks.get(vault_id)
            if lock is None:
                # Only initialize adds locks for vault ids not in the store
                if not create and not self.store.contains(vault_id):
                    raise VaultNotFound(vault_id)
                lock = self._locks[vault_id] = threading.Lock()
        with lock:
            yield

    # Token ledger composition

    def _deposit(self, owner: str, vault_id: str, amount: int) -> None:
        self._call('transfer_in', self.token_ledger.transfer_in, owner, vault_id, amount)
        try:
            self._call('mint_share_token', self.token_ledger.mint_share_token, owner, vault_id, amount)
        except ExternalLedgerFailure:
            self._compensate('release_out', self.token_ledger.release_out, owner, vault_id, amount)
            raise

    def _withdraw_deposit(self, owner: str, vault_id: str, amount: int) -> None:
        self._compensate('burn_share_token', self.token_ledger.burn_share_token, owner, vault_id, amount)
        self._compensate('release_out', self.token_ledger.release_out, owner, vault_id, amount)

    def _redeem(self, owner: str, vault_id: str, amount: int) -> None:
        self._call('burn_share_token', self.token_ledger.burn_share_token, owner, vault_id, amount)
        try:
            self._call('release_out', self.token_ledger.release_out, owner, vault_id, amount)
        except ExternalLedgerFailure:
            self._compensate('mint_share_token', self.token_ledger.mint_share_token, owner, vault_id, amount)
            raise

    def _undo_redeem(self, owner: str, vault_id: str, amount: int) -> None:
        self._compensate('transfer_in', self.token_ledger.transfer_in, owner, vault_id, amount)
        self._compensate('mint_share_token', self.token_ledger.mint_share_token, owner, vault_id, amount)

    def _call(self, operation: str, fn, owner: str, vault_id: str, amount: int) -> None:
        try:
            ok = fn(owner, vault_id, amount)
        except (TokenLedgerError, OSError) as e:
            logger.warning("Token ledger %s failed for vault %s: %s", operation, vault_id[:16], e)
            raise ExternalLedgerFailure(operation, vault_id) from e

        if not ok:
            logger.warning("Token ledger rejected %s of %d for vault %s", operation, amount, vault_id[:16])
            raise ExternalLedgerFailure(operation, vault_id)

    def _compensate(self, operation: str, fn, owner: str, vault_id: str, amount: int) -> None:
        try:
            self._call(operation, fn, owner, vault_id, amount)
        except ExternalLedgerFailure:
            # Original failure still propagates to the caller
            logger.error("Compensating %s of %d failed for vault %s", operation, amount, vault_id[:16])
        else:
            logger.warning("Compensated %s of %d for vault %s", operation, amount, vault_id[:16])
