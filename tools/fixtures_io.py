"""JSON (de)serialisation of ledger state and transactions for fixtures."""

from __future__ import annotations

from typing import Any

from escrow_spec.types import (
    AccountState,
    ChainState,
    EscrowRecord,
    EscrowStatus,
    TokenAccount,
    Transaction,
    TransactionType,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


_ESCROW_KEY_FIELDS = (
    "initializer_key",
    "initializer_deposit_token_account",
    "initializer_receive_token_account",
)


def state_to_json(state: ChainState) -> dict[str, Any]:
    result: dict[str, Any] = {
        "program_id": _bytes_to_hex(state.program_id),
        "accounts": [
            {"address": _bytes_to_hex(a.address), "lamports": a.lamports}
            for a in state.accounts.values()
        ],
        "token_accounts": [
            {
                "address": _bytes_to_hex(t.address),
                "mint": _bytes_to_hex(t.mint),
                "owner": _bytes_to_hex(t.owner),
                "amount": t.amount,
            }
            for t in state.token_accounts.values()
        ],
    }

    if state.escrows:
        escrows_out: list[dict[str, Any]] = []
        for e in state.escrows.values():
            entry: dict[str, Any] = {
                "address": _bytes_to_hex(e.address),
                "status": int(e.status),
            }
            for name in _ESCROW_KEY_FIELDS:
                entry[name] = _bytes_to_hex(getattr(e, name))
            entry["initialize_amount"] = e.initialize_amount
            entry["taker_amount"] = e.taker_amount
            entry["rent_lamports"] = e.rent_lamports
            escrows_out.append(entry)
        result["escrows"] = escrows_out

    return result


def state_from_json(data: dict[str, Any]) -> ChainState:
    state = ChainState(program_id=_hex_to_bytes(data["program_id"]))

    for a in data.get("accounts", []):
        acct = AccountState(address=_hex_to_bytes(a["address"]), lamports=a.get("lamports", 0))
        state.accounts[acct.address] = acct

    for t in data.get("token_accounts", []):
        ta = TokenAccount(
            address=_hex_to_bytes(t["address"]),
            mint=_hex_to_bytes(t["mint"]),
            owner=_hex_to_bytes(t["owner"]),
            amount=t.get("amount", 0),
        )
        state.token_accounts[ta.address] = ta

    for e in data.get("escrows", []):
        record = EscrowRecord(
            address=_hex_to_bytes(e["address"]),
            status=EscrowStatus(e.get("status", 0)),
            initialize_amount=e.get("initialize_amount", 0),
            taker_amount=e.get("taker_amount", 0),
            rent_lamports=e.get("rent_lamports", 0),
        )
        for name in _ESCROW_KEY_FIELDS:
            if e.get(name):
                setattr(record, name, _hex_to_bytes(e[name]))
        state.escrows[record.address] = record

    return state


def tx_to_json(tx: Transaction) -> dict[str, Any]:
    return {
        "tx_type": tx.tx_type.value,
        "accounts": {role: _bytes_to_hex(key) for role, key in tx.accounts.items()},
        "signers": [_bytes_to_hex(s) for s in tx.signers],
        "payload": dict(tx.payload) if isinstance(tx.payload, dict) else tx.payload,
    }


def tx_from_json(data: dict[str, Any]) -> Transaction:
    return Transaction(
        tx_type=TransactionType(data["tx_type"]),
        accounts={role: _hex_to_bytes(key) for role, key in data.get("accounts", {}).items()},
        signers=[_hex_to_bytes(s) for s in data.get("signers", [])],
        payload=data.get("payload"),
    )
