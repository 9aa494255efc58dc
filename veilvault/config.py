import os
from dataclasses import dataclass

DEFAULT_PROGRAM_ID = "veilvault"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class VaultConfig:
    """Configuration passed into the gate and vault ledger"""

    # Oracle proof freshness
    freshness_window_seconds: int = 600
    max_clock_skew_seconds: int = 30

    # Proof reuse: False means reusable until stale
    single_use_proofs: bool = False

    # Run the conservation check after every transition
    check_conservation: bool = True

    # Key for vault address derivation
    program_id: str = DEFAULT_PROGRAM_ID

    def __post_init__(self):
        if self.freshness_window_seconds <= 0:
            raise ValueError("Freshness window must be positive")
        if self.max_clock_skew_seconds < 0:
            raise ValueError("Clock skew tolerance cannot be negative")
        if not self.program_id:
            raise ValueError("Program id must not be empty")

    @classmethod
    def strict(cls) -> 'VaultConfig':
        """Short-lived, single-use proofs"""
        return cls(
            freshness_window_seconds=60,
            max_clock_skew_seconds=5,
            single_use_proofs=True,
        )

    @classmethod
    def permissive(cls) -> 'VaultConfig':
        """Day-long reusable proofs"""
        return cls(
            freshness_window_seconds=86_400,
            max_clock_skew_seconds=300,
            single_use_proofs=False,
        )

    @classmethod
    def from_env(cls, environ=None) -> 'VaultConfig':
        """Build config from VEILVAULT_* environment variables"""
        environ = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            freshness_window_seconds=int(environ.get('VEILVAULT_FRESHNESS_WINDOW', defaults.freshness_window_seconds)),
            max_clock_skew_seconds=int(environ.get('VEILVAULT_CLOCK_SKEW', defaults.max_clock_skew_seconds)),
            single_use_proofs=_env_bool(environ.get('VEILVAULT_SINGLE_USE_PROOFS', 'false')),
            check_conservation=_env_bool(environ.get('VEILVAULT_CHECK_CONSERVATION', 'true')),
            program_id=environ.get('VEILVAULT_PROGRAM_ID', defaults.program_id),
        )
