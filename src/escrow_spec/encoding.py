"""Account and instruction encoding (little-endian, Borsh-compatible)."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from .config import (
    ACCOUNT_DISCRIMINATOR_LEN,
    ESCROW_RECORD_LEN,
    PUBKEY_LEN,
    U64_MAX,
)
from .errors import ErrorCode, SpecError
from .types import (
    INSTRUCTION_ACCOUNTS,
    EscrowRecord,
    EscrowStatus,
    Transaction,
    TransactionType,
)


def _discriminator(namespace: str, name: str) -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode()).digest()[:ACCOUNT_DISCRIMINATOR_LEN]


ESCROW_ACCOUNT_DISCRIMINATOR = _discriminator("account", "EscrowAccount")

INSTRUCTION_DISCRIMINATORS = {
    TransactionType.INITIALIZE: _discriminator("global", "initialize"),
    TransactionType.EXCHANGE: _discriminator("global", "exchange"),
    TransactionType.CANCEL: _discriminator("global", "cancel_escrow"),
    TransactionType.TOKEN_TRANSFER: _discriminator("global", "transfer"),
}


@dataclass
class Writer:
    buf: bytearray

    def write_u8(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(1, "little", signed=False))

    def write_u16(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(2, "little", signed=False))

    def write_u64(self, v: int) -> None:
        if v < 0 or v > U64_MAX:
            raise SpecError(ErrorCode.OVERFLOW, "value does not fit in u64")
        self.buf.extend(int(v).to_bytes(8, "little", signed=False))

    def write_bytes(self, b: bytes) -> None:
        self.buf.extend(b)

    def write_pubkey(self, b: bytes) -> None:
        _expect_len("pubkey", b, PUBKEY_LEN)
        self.write_bytes(b)


@dataclass
class Reader:
    data: bytes
    pos: int = 0

    def read_bytes(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise SpecError(ErrorCode.INVALID_FORMAT, "unexpected end of data")
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def read_u64(self) -> int:
        return int.from_bytes(self.read_bytes(8), "little")

    def read_pubkey(self) -> bytes:
        return self.read_bytes(PUBKEY_LEN)

    def expect_end(self) -> None:
        if self.pos != len(self.data):
            raise SpecError(ErrorCode.INVALID_FORMAT, "trailing bytes")


def _expect_len(name: str, value: bytes, size: int) -> None:
    if len(value) != size:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"{name} must be {size} bytes")


# --- Escrow record ---


def encode_escrow_record(record: EscrowRecord) -> bytes:
    """Persisted form of an escrow record.

    Only ACTIVE records carry data; any other status is stored zeroed,
    matching a closed account on chain.
    """
    if record.status != EscrowStatus.ACTIVE:
        return bytes(ESCROW_RECORD_LEN)
    w = Writer(bytearray())
    w.write_bytes(ESCROW_ACCOUNT_DISCRIMINATOR)
    w.write_pubkey(record.initializer_key)
    w.write_pubkey(record.initializer_deposit_token_account)
    w.write_pubkey(record.initializer_receive_token_account)
    w.write_u64(record.initialize_amount)
    w.write_u64(record.taker_amount)
    return bytes(w.buf)


def decode_escrow_record(address: bytes, data: bytes) -> EscrowRecord:
    _expect_len("escrow record", data, ESCROW_RECORD_LEN)
    if data == bytes(ESCROW_RECORD_LEN):
        return EscrowRecord(address=address)
    r = Reader(data)
    if r.read_bytes(ACCOUNT_DISCRIMINATOR_LEN) != ESCROW_ACCOUNT_DISCRIMINATOR:
        raise SpecError(ErrorCode.INVALID_FORMAT, "account discriminator mismatch")
    record = EscrowRecord(
        address=address,
        status=EscrowStatus.ACTIVE,
        initializer_key=r.read_pubkey(),
        initializer_deposit_token_account=r.read_pubkey(),
        initializer_receive_token_account=r.read_pubkey(),
        initialize_amount=r.read_u64(),
        taker_amount=r.read_u64(),
    )
    r.expect_end()
    return record


# --- Instructions ---


def encode_instruction_data(tx: Transaction) -> bytes:
    w = Writer(bytearray())
    w.write_bytes(INSTRUCTION_DISCRIMINATORS[tx.tx_type])
    p = tx.payload if isinstance(tx.payload, dict) else {}
    if tx.tx_type == TransactionType.INITIALIZE:
        w.write_u64(p.get("initialize_amount", 0))
        w.write_u64(p.get("taker_amount", 0))
    elif tx.tx_type == TransactionType.TOKEN_TRANSFER:
        w.write_u64(p.get("amount", 0))
    return bytes(w.buf)


def decode_instruction_data(data: bytes) -> tuple[TransactionType, dict]:
    r = Reader(data)
    disc = r.read_bytes(ACCOUNT_DISCRIMINATOR_LEN)
    for tx_type, known in INSTRUCTION_DISCRIMINATORS.items():
        if known == disc:
            break
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, "unknown instruction discriminator")

    payload: dict = {}
    if tx_type == TransactionType.INITIALIZE:
        payload["initialize_amount"] = r.read_u64()
        payload["taker_amount"] = r.read_u64()
    elif tx_type == TransactionType.TOKEN_TRANSFER:
        payload["amount"] = r.read_u64()
    r.expect_end()
    return tx_type, payload


def encode_transaction(tx: Transaction) -> bytes:
    """Account metas (key, is_signer) in wire order followed by instruction data."""
    roles = INSTRUCTION_ACCOUNTS[tx.tx_type]
    signers = set(tx.signers)
    w = Writer(bytearray())
    w.write_u8(len(roles))
    for role in roles:
        key = tx.accounts.get(role)
        if key is None:
            raise SpecError(ErrorCode.INVALID_PAYLOAD, f"missing account: {role}")
        w.write_pubkey(key)
        w.write_u8(1 if key in signers else 0)
    data = encode_instruction_data(tx)
    w.write_u16(len(data))
    w.write_bytes(data)
    return bytes(w.buf)
