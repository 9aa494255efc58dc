"""
Conservation checks: vault share totals against the token ledger
"""

import logging
from dataclasses import dataclass, asdict
from typing import List

from .errors import ConservationViolation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConservationReport:
    """Vault totals next to what the token ledger reports"""
    vault_id: str
    total_shares: int
    share_supply: int
    custody_balance: int

    @property
    def conserved(self) -> bool:
        """Recorded shares equal outstanding share tokens"""
        return self.total_shares == self.share_supply

    @property
    def fully_backed(self) -> bool:
        """Custody holds one underlying unit per share"""
        return self.custody_balance == self.total_shares

    def to_dict(self) -> dict:
        data = asdict(self)
        data['conserved'] = self.conserved
        data['fully_backed'] = self.fully_backed
        return data


def check_conservation(vault, token_ledger) -> ConservationReport:
    """Compare a vault's total shares with the ledger's share supply"""
    return ConservationReport(
        vault_id=vault.vault_id,
        total_shares=vault.total_shares,
        share_supply=token_ledger.share_supply(vault.vault_id),
        custody_balance=token_ledger.custody_balance(vault.vault_id)
    )


def assert_conserved(vault, token_ledger) -> ConservationReport:
    """Raise ConservationViolation unless the vault is conserved"""
    report = check_conservation(vault, token_ledger)
    if not report.conserved:
        logger.error(
            "Conservation violated for vault %s: total %d, supply %d",
            vault.vault_id[:16], report.total_shares, report.share_supply
        )
        raise ConservationViolation(report)
    return report


def audit(store, token_ledger) -> List[ConservationReport]:
    """Check every vault in the store"""
    reports = []

    for vault_id in store.vault_ids():
        vault = store.get_vault(vault_id)
        report = check_conservation(vault, token_ledger)
        if not report.conserved:
            logger.warning("Audit: vault %s is not conserved", vault_id[:16])
        reports.append(report)

    return reports
