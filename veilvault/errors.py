"""
Typed failures raised by the vault state machine
"""

from typing import Optional


class VaultError(Exception):
    """Base class for every vault failure"""

    code = "vault_error"

    def to_dict(self) -> dict:
        """Serialize error for API responses"""
        return {'error': self.code, 'message': str(self)}


class AlreadyInitialized(VaultError):
    code = "already_initialized"

    def __init__(self, vault_id: str):
        super().__init__(f"Vault {vault_id[:16]}... is already initialized")
        self.vault_id = vault_id


class NotFound(VaultError):
    code = "not_found"


class VaultNotFound(NotFound):
    code = "vault_not_found"

    def __init__(self, vault_id: str):
        super().__init__(f"Vault {vault_id[:16]}... not found")
        self.vault_id = vault_id


class ProofNotFound(NotFound):
    code = "proof_not_found"

    def __init__(self, vault_id: str):
        super().__init__(f"No oracle proof registered for vault {vault_id[:16]}...")
        self.vault_id = vault_id


class Unauthorized(VaultError):
    code = "unauthorized"

    def __init__(self, caller: str, vault_id: str):
        super().__init__(f"Caller {caller[:16]}... is not the authority of vault {vault_id[:16]}...")
        self.caller = caller
        self.vault_id = vault_id


class InvalidProof(VaultError):
    """Oracle proof rejected; `reason` names the failed check"""

    code = "invalid_proof"

    def __init__(self, reason, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['reason'] = self.reason.value
        return data

    @classmethod
    def from_decision(cls, decision) -> 'InvalidProof':
        """Build the most specific proof error for a rejected gate decision"""
        from .gate import RejectReason

        if decision.reason == RejectReason.MALFORMED_PROOF:
            return MalformedProof(decision.detail)
        if decision.reason == RejectReason.STALE_PROOF:
            return StaleProof(decision.detail)
        return cls(decision.reason, decision.detail)


class MalformedProof(InvalidProof):
    code = "malformed_proof"

    def __init__(self, detail: str):
        from .gate import RejectReason
        super().__init__(RejectReason.MALFORMED_PROOF, detail)


class StaleProof(InvalidProof):
    code = "stale_proof"

    def __init__(self, detail: str):
        from .gate import RejectReason
        super().__init__(RejectReason.STALE_PROOF, detail)


class InsufficientShares(VaultError):
    code = "insufficient_shares"

    def __init__(self, requested: int, available: int, detail: Optional[str] = None):
        super().__init__(detail or f"Cannot burn {requested} shares, only {available} available")
        self.requested = requested
        self.available = available


class MathOverflow(VaultError):
    code = "math_overflow"


class ExternalLedgerFailure(VaultError):
    """Token ledger step failed; the underlying error is kept as __cause__"""

    code = "external_ledger_failure"

    def __init__(self, operation: str, vault_id: str):
        super().__init__(f"Token ledger rejected {operation} for vault {vault_id[:16]}...")
        self.operation = operation
        self.vault_id = vault_id


class ConservationViolation(VaultError):
    code = "conservation_violation"

    def __init__(self, report):
        super().__init__(
            f"Vault {report.vault_id[:16]}... records {report.total_shares} shares "
            f"but token ledger reports supply {report.share_supply}"
        )
        self.report = report
