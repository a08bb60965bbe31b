"""Token program primitives (transfer / set_authority) used by the escrow program."""

from __future__ import annotations

from copy import deepcopy
from typing import Iterable, Optional, Sequence

from ..authority import create_program_address
from ..config import U64_MAX
from ..errors import ErrorCode, SpecError
from ..types import ChainState, TokenAccount, Transaction, TransactionType


def load_token_account(state: ChainState, address: bytes) -> TokenAccount:
    acct = state.token_accounts.get(address)
    if acct is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "token account not found")
    return acct


def supply(state: ChainState, mint: bytes) -> int:
    """Total balance of `mint` across every token account."""
    return sum(a.amount for a in state.token_accounts.values() if a.mint == mint)


def _check_authority(
    owner: bytes,
    authority: bytes,
    signers: Iterable[bytes],
    program_id: Optional[bytes],
    signer_seeds: Sequence[Sequence[bytes]],
) -> None:
    if authority != owner:
        raise SpecError(ErrorCode.UNAUTHORIZED, "authority does not own account")
    if authority in set(signers):
        return
    # Derived authorities sign structurally: the invoking program must
    # present seeds that derive exactly this address.
    if program_id is not None:
        for seeds in signer_seeds:
            try:
                derived = create_program_address(seeds, program_id)
            except SpecError:
                continue
            if derived == authority:
                return
    raise SpecError(ErrorCode.MISSING_SIGNATURE, "authority did not sign")


def transfer(
    state: ChainState,
    source: bytes,
    destination: bytes,
    authority: bytes,
    amount: int,
    *,
    signers: Iterable[bytes] = (),
    program_id: Optional[bytes] = None,
    signer_seeds: Sequence[Sequence[bytes]] = (),
) -> None:
    """Move `amount` between two token accounts of the same mint, in place."""
    if amount < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "transfer amount negative")
    src = load_token_account(state, source)
    dst = load_token_account(state, destination)
    if src.mint != dst.mint:
        raise SpecError(ErrorCode.MINT_MISMATCH, "source and destination mints differ")
    _check_authority(src.owner, authority, signers, program_id, signer_seeds)
    if src.amount < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient token balance")
    if source == destination:
        return
    if dst.amount + amount > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "destination balance overflow")
    src.amount -= amount
    dst.amount += amount


def set_authority(
    state: ChainState,
    account: bytes,
    current_authority: bytes,
    new_authority: bytes,
    *,
    signers: Iterable[bytes] = (),
    program_id: Optional[bytes] = None,
    signer_seeds: Sequence[Sequence[bytes]] = (),
) -> None:
    """Reassign the owner of a token account, in place. The balance is untouched."""
    acct = load_token_account(state, account)
    _check_authority(acct.owner, current_authority, signers, program_id, signer_seeds)
    acct.owner = new_authority


# --- TOKEN_TRANSFER ---


def verify(state: ChainState, tx: Transaction) -> None:
    if tx.tx_type != TransactionType.TOKEN_TRANSFER:
        raise SpecError(ErrorCode.INVALID_TYPE, "unsupported token tx type")
    p = tx.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "token transfer payload must be dict")
    amount = p.get("amount", 0)
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "transfer amount must be > 0")
    if amount > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "transfer amount exceeds u64 max")

    authority = tx.accounts["authority"]
    src = load_token_account(state, tx.accounts["source"])
    _check_authority(src.owner, authority, tx.signers, None, ())
    if src.amount < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient token balance")


def apply(state: ChainState, tx: Transaction) -> ChainState:
    ns = deepcopy(state)
    transfer(
        ns,
        tx.accounts["source"],
        tx.accounts["destination"],
        tx.accounts["authority"],
        tx.payload["amount"],
        signers=tx.signers,
    )
    return ns
