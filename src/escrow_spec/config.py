"""Escrow spec configuration constants.

Keep this file aligned with the on-chain program constants (`ESCROW_PDA_SEED`,
`EscrowAccount::LEN`) and the token/runtime limits it relies on.
"""

import os
from dataclasses import dataclass

# Program identity (32-byte account key)
ESCROW_PROGRAM_ID = bytes.fromhex(
    "b0a1e76f2c3e8b4d9a6f51c7e2d4830a6b9c1f5e7d2a4c8b3e6f9a1d5c7b2e40"
)

# Derived authority
ESCROW_PDA_SEED = b"escrow"
PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEEDS = 16
MAX_SEED_LEN = 32
MAX_BUMP_SEED = 255

# Persisted record layout
ACCOUNT_DISCRIMINATOR_LEN = 8
PUBKEY_LEN = 32
ESCROW_RECORD_LEN = ACCOUNT_DISCRIMINATOR_LEN + 3 * PUBKEY_LEN + 8 + 8  # 120

# Storage deposit (rent-exempt minimum)
ACCOUNT_STORAGE_OVERHEAD = 128
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2

# Units
U64_MAX = (1 << 64) - 1
LAMPORTS_PER_SOL = 1_000_000_000


def rent_exempt_minimum(data_len: int) -> int:
    """Lamports an account of `data_len` bytes must hold to be rent exempt."""
    return (
        (ACCOUNT_STORAGE_OVERHEAD + data_len)
        * LAMPORTS_PER_BYTE_YEAR
        * EXEMPTION_THRESHOLD_YEARS
    )


ESCROW_RECORD_RENT = rent_exempt_minimum(ESCROW_RECORD_LEN)


@dataclass
class ToolConfig:
    """Settings for the fixture tools (fill / consume / vectors)."""
    fixture_dir: str = "fixtures"
    vector_dir: str = "vectors"
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "ToolConfig":
        """Load configuration from environment variables."""
        config = cls()
        config.fixture_dir = os.environ.get("FIXTURE_DIR", config.fixture_dir)
        config.vector_dir = os.environ.get("VECTOR_DIR", config.vector_dir)
        config.verbose = os.environ.get("VERBOSE", "").lower() in ("true", "1", "yes")
        return config
