"""Core types for the escrow Python spec.

The ledger is modelled as three registries keyed by 32-byte address:
lamport-holding system accounts, token accounts, and escrow records. The
escrow program only ever touches these through the instructions below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List

from .config import ESCROW_PROGRAM_ID


class TransactionType(Enum):
    INITIALIZE = "initialize"
    EXCHANGE = "exchange"
    CANCEL = "cancel"
    TOKEN_TRANSFER = "token_transfer"


# Account roles each instruction expects, in wire order.
INSTRUCTION_ACCOUNTS: dict[TransactionType, tuple[str, ...]] = {
    TransactionType.INITIALIZE: (
        "initializer",
        "initializer_deposit_token_account",
        "initializer_receive_token_account",
        "escrow_account",
    ),
    TransactionType.EXCHANGE: (
        "taker",
        "taker_deposit_token_account",
        "taker_receive_token_account",
        "pda_deposit_token_account",
        "initializer_receive_token_account",
        "initializer_main_account",
        "escrow_account",
        "pda_account",
    ),
    TransactionType.CANCEL: (
        "initializer",
        "pda_deposit_token_account",
        "pda_account",
        "escrow_account",
    ),
    TransactionType.TOKEN_TRANSFER: (
        "source",
        "destination",
        "authority",
    ),
}


@dataclass
class Transaction:
    tx_type: TransactionType
    accounts: dict[str, bytes]
    signers: List[bytes] = field(default_factory=list)
    payload: object = None


@dataclass
class AccountState:
    address: bytes
    lamports: int = 0


@dataclass
class TokenAccount:
    address: bytes
    mint: bytes
    owner: bytes
    amount: int = 0


class EscrowStatus(IntEnum):
    UNINITIALIZED = 0
    ACTIVE = 1
    TERMINATED = 2


@dataclass
class EscrowRecord:
    address: bytes
    status: EscrowStatus = EscrowStatus.UNINITIALIZED
    initializer_key: bytes = bytes(32)
    initializer_deposit_token_account: bytes = bytes(32)
    initializer_receive_token_account: bytes = bytes(32)
    initialize_amount: int = 0
    taker_amount: int = 0
    # Storage deposit paid by the initializer, refunded on termination.
    rent_lamports: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == EscrowStatus.ACTIVE


@dataclass
class ChainState:
    program_id: bytes = ESCROW_PROGRAM_ID
    accounts: dict[bytes, AccountState] = field(default_factory=dict)
    token_accounts: dict[bytes, TokenAccount] = field(default_factory=dict)
    escrows: dict[bytes, EscrowRecord] = field(default_factory=dict)
