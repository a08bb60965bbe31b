"""Escrow instruction specs (initialize / exchange / cancel).

Exchange deliberately binds no taker identity: whoever first presents the
recorded `taker_amount` fulfils the escrow. Adding a taker check here would
change the contract, not fix it.
"""

from __future__ import annotations

from copy import deepcopy

from ..authority import escrow_authority, escrow_authority_seeds
from ..config import ESCROW_RECORD_RENT, U64_MAX
from ..errors import ErrorCode, SpecError
from ..types import (
    AccountState,
    ChainState,
    EscrowRecord,
    EscrowStatus,
    Transaction,
    TransactionType,
)
from . import token


def load_escrow(state: ChainState, address: bytes) -> EscrowRecord:
    """Escrow record at `address`; slots never written are UNINITIALIZED."""
    record = state.escrows.get(address)
    if record is None:
        return EscrowRecord(address=address)
    return record


def _require_signer(tx: Transaction, role: str) -> bytes:
    key = tx.accounts[role]
    if key not in tx.signers:
        raise SpecError(ErrorCode.MISSING_SIGNATURE, f"{role} must sign")
    return key


def _require_active(state: ChainState, address: bytes) -> EscrowRecord:
    record = load_escrow(state, address)
    if record.status != EscrowStatus.ACTIVE:
        raise SpecError(ErrorCode.ALREADY_TERMINATED, f"escrow is {record.status.name.lower()}")
    return record


def _require_match(name: str, supplied: bytes, recorded: bytes) -> None:
    if supplied != recorded:
        raise SpecError(ErrorCode.ACCOUNT_MISMATCH, f"{name} does not match escrow record")


def _check_amount(name: str, amount: object) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, f"{name} must be > 0")
    if amount > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, f"{name} exceeds u64 max")
    return amount


def _verify_custody(state: ChainState, tx: Transaction, record: EscrowRecord) -> bytes:
    pda, _ = escrow_authority(state.program_id)
    _require_match("pda_account", tx.accounts["pda_account"], pda)
    _require_match(
        "pda_deposit_token_account",
        tx.accounts["pda_deposit_token_account"],
        record.initializer_deposit_token_account,
    )
    custody = token.load_token_account(state, record.initializer_deposit_token_account)
    if custody.owner != pda:
        raise SpecError(ErrorCode.INVALID_ACCOUNT_OWNER, "custody account not held by escrow authority")
    return pda


def _terminate(state: ChainState, record: EscrowRecord, refund_to: bytes) -> None:
    """Close the record: zero its terms and return the storage deposit."""
    payee = state.accounts.get(refund_to)
    if payee is None:
        payee = AccountState(address=refund_to)
        state.accounts[refund_to] = payee
    payee.lamports += record.rent_lamports
    state.escrows[record.address] = EscrowRecord(
        address=record.address, status=EscrowStatus.TERMINATED
    )


def verify(state: ChainState, tx: Transaction) -> None:
    tt = tx.tx_type
    if tt == TransactionType.INITIALIZE:
        _verify_initialize(state, tx)
    elif tt == TransactionType.EXCHANGE:
        _verify_exchange(state, tx)
    elif tt == TransactionType.CANCEL:
        _verify_cancel(state, tx)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow tx type: {tt}")


def apply(state: ChainState, tx: Transaction) -> ChainState:
    tt = tx.tx_type
    if tt == TransactionType.INITIALIZE:
        return _apply_initialize(state, tx)
    elif tt == TransactionType.EXCHANGE:
        return _apply_exchange(state, tx)
    elif tt == TransactionType.CANCEL:
        return _apply_cancel(state, tx)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow tx type: {tt}")


# --- INITIALIZE ---

def _verify_initialize(state: ChainState, tx: Transaction) -> None:
    p = tx.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "initialize payload must be dict")
    initialize_amount = _check_amount("initialize_amount", p.get("initialize_amount", 0))
    _check_amount("taker_amount", p.get("taker_amount", 0))

    initializer = _require_signer(tx, "initializer")
    slot = _require_signer(tx, "escrow_account")

    if load_escrow(state, slot).status != EscrowStatus.UNINITIALIZED:
        raise SpecError(ErrorCode.ACCOUNT_ALREADY_INITIALIZED, "escrow slot already used")

    deposit = token.load_token_account(state, tx.accounts["initializer_deposit_token_account"])
    if deposit.owner != initializer:
        raise SpecError(ErrorCode.INVALID_ACCOUNT_OWNER, "deposit account not owned by initializer")
    if deposit.amount < initialize_amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient deposit balance")
    token.load_token_account(state, tx.accounts["initializer_receive_token_account"])

    payer = state.accounts.get(initializer)
    if payer is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "initializer account not found")
    if payer.lamports < ESCROW_RECORD_RENT:
        raise SpecError(ErrorCode.INSUFFICIENT_LAMPORTS, "cannot fund escrow record storage")


def _apply_initialize(state: ChainState, tx: Transaction) -> ChainState:
    ns = deepcopy(state)
    p = tx.payload
    initializer = tx.accounts["initializer"]
    slot = tx.accounts["escrow_account"]

    ns.accounts[initializer].lamports -= ESCROW_RECORD_RENT
    ns.escrows[slot] = EscrowRecord(
        address=slot,
        status=EscrowStatus.ACTIVE,
        initializer_key=initializer,
        initializer_deposit_token_account=tx.accounts["initializer_deposit_token_account"],
        initializer_receive_token_account=tx.accounts["initializer_receive_token_account"],
        initialize_amount=p["initialize_amount"],
        taker_amount=p["taker_amount"],
        rent_lamports=ESCROW_RECORD_RENT,
    )

    pda, _ = escrow_authority(ns.program_id)
    token.set_authority(
        ns,
        tx.accounts["initializer_deposit_token_account"],
        initializer,
        pda,
        signers=tx.signers,
    )
    return ns


# --- EXCHANGE ---

def _verify_exchange(state: ChainState, tx: Transaction) -> None:
    taker = _require_signer(tx, "taker")
    record = _require_active(state, tx.accounts["escrow_account"])

    _verify_custody(state, tx, record)
    _require_match(
        "initializer_receive_token_account",
        tx.accounts["initializer_receive_token_account"],
        record.initializer_receive_token_account,
    )
    _require_match(
        "initializer_main_account",
        tx.accounts["initializer_main_account"],
        record.initializer_key,
    )

    payment = token.load_token_account(state, tx.accounts["taker_deposit_token_account"])
    receive = token.load_token_account(state, tx.accounts["taker_receive_token_account"])
    custody = token.load_token_account(state, record.initializer_deposit_token_account)
    counter = token.load_token_account(state, record.initializer_receive_token_account)
    if payment.mint != counter.mint or receive.mint != custody.mint:
        raise SpecError(ErrorCode.MINT_MISMATCH, "exchange legs use mismatched mints")
    if payment.owner != taker:
        raise SpecError(ErrorCode.UNAUTHORIZED, "taker does not own payment account")
    if payment.amount < record.taker_amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient taker balance")


def _apply_exchange(state: ChainState, tx: Transaction) -> ChainState:
    ns = deepcopy(state)
    record = load_escrow(ns, tx.accounts["escrow_account"])
    seeds = [escrow_authority_seeds(ns.program_id)]
    pda = tx.accounts["pda_account"]

    token.transfer(
        ns,
        record.initializer_deposit_token_account,
        tx.accounts["taker_receive_token_account"],
        pda,
        record.initialize_amount,
        program_id=ns.program_id,
        signer_seeds=seeds,
    )
    token.transfer(
        ns,
        tx.accounts["taker_deposit_token_account"],
        record.initializer_receive_token_account,
        tx.accounts["taker"],
        record.taker_amount,
        signers=tx.signers,
    )
    token.set_authority(
        ns,
        record.initializer_deposit_token_account,
        pda,
        record.initializer_key,
        program_id=ns.program_id,
        signer_seeds=seeds,
    )
    _terminate(ns, record, refund_to=tx.accounts["initializer_main_account"])
    return ns


# --- CANCEL ---

def _verify_cancel(state: ChainState, tx: Transaction) -> None:
    initializer = _require_signer(tx, "initializer")
    record = _require_active(state, tx.accounts["escrow_account"])
    if initializer != record.initializer_key:
        raise SpecError(ErrorCode.UNAUTHORIZED, "only the initializer may cancel")
    _verify_custody(state, tx, record)


def _apply_cancel(state: ChainState, tx: Transaction) -> ChainState:
    ns = deepcopy(state)
    record = load_escrow(ns, tx.accounts["escrow_account"])

    # The deposit never left the custody account; handing ownership back
    # returns the full balance to the initializer.
    token.set_authority(
        ns,
        record.initializer_deposit_token_account,
        tx.accounts["pda_account"],
        record.initializer_key,
        program_id=ns.program_id,
        signer_seeds=[escrow_authority_seeds(ns.program_id)],
    )
    _terminate(ns, record, refund_to=record.initializer_key)
    return ns
