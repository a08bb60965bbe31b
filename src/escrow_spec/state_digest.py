"""Canonical state digest implementation (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _address(entry: dict[str, Any]) -> bytes:
    addr = _hex_to_bytes(entry.get("address", ""))
    if len(addr) != 32:
        raise ValueError(f"address must be 32 bytes, got {len(addr)}")
    return addr


def _sorted(entries: list[dict[str, Any]]) -> list[tuple[bytes, dict[str, Any]]]:
    return sorted(((_address(e), e) for e in entries), key=lambda x: x[0])


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v1 from post_state JSON.

    Sections are hashed in a fixed order (program id, lamport accounts, token
    accounts, escrow records), entries sorted by address, with BLAKE3-256.
    """
    if not isinstance(post_state, dict):
        post_state = {}
    buf = bytearray()
    buf += _hex_to_bytes(post_state.get("program_id", ""))

    for addr, acc in _sorted(post_state.get("accounts", [])):
        buf += addr
        buf += _u64_be(int(acc.get("lamports", 0)))

    for addr, ta in _sorted(post_state.get("token_accounts", [])):
        buf += addr
        buf += _hex_to_bytes(ta.get("mint", ""))
        buf += _hex_to_bytes(ta.get("owner", ""))
        buf += _u64_be(int(ta.get("amount", 0)))

    for addr, esc in _sorted(post_state.get("escrows", [])):
        buf += addr
        buf += _u64_be(int(esc.get("status", 0)))
        for field in (
            "initializer_key",
            "initializer_deposit_token_account",
            "initializer_receive_token_account",
        ):
            buf += _hex_to_bytes(esc.get(field, ""))
        for field in ("initialize_amount", "taker_amount", "rent_lamports"):
            buf += _u64_be(int(esc.get(field, 0)))

    return blake3(buf).hexdigest()
