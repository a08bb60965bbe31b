"""State transition entrypoints for the escrow Python spec."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Optional

from .authority import escrow_authority
from .config import PUBKEY_LEN
from .errors import ErrorCode, SpecError
from .types import INSTRUCTION_ACCOUNTS, ChainState, Transaction, TransactionType
from .tx import escrow as tx_escrow
from .tx import token as tx_token

logger = logging.getLogger(__name__)

_ESCROW_TYPES = frozenset({
    TransactionType.INITIALIZE,
    TransactionType.EXCHANGE,
    TransactionType.CANCEL,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[SpecError] = None):
        self.ok = ok
        self.error = error

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)

    def __repr__(self) -> str:
        if self.ok:
            return "TransitionResult(ok)"
        return f"TransitionResult({self.error})"


def _dispatch_verify(state: ChainState, tx: Transaction) -> None:
    tt = tx.tx_type
    if tt in _ESCROW_TYPES:
        return tx_escrow.verify(state, tx)
    if tt == TransactionType.TOKEN_TRANSFER:
        return tx_token.verify(state, tx)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {tx.tx_type}")


def _dispatch_apply(state: ChainState, tx: Transaction) -> ChainState:
    tt = tx.tx_type
    if tt in _ESCROW_TYPES:
        return tx_escrow.apply(state, tx)
    if tt == TransactionType.TOKEN_TRANSFER:
        return tx_token.apply(state, tx)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {tx.tx_type}")


def _verify_common(state: ChainState, tx: Transaction) -> None:
    if not isinstance(tx.tx_type, TransactionType):
        raise SpecError(ErrorCode.INVALID_TYPE, "unknown transaction type")

    if not tx.signers:
        raise SpecError(ErrorCode.MISSING_SIGNATURE, "transaction has no signers")
    # The derived authority has no private key; it only signs through seeds.
    pda, _ = escrow_authority(state.program_id)
    if pda in tx.signers:
        raise SpecError(ErrorCode.MISSING_SIGNATURE, "derived authority cannot sign a transaction")

    for role in INSTRUCTION_ACCOUNTS[tx.tx_type]:
        key = tx.accounts.get(role)
        if key is None:
            raise SpecError(ErrorCode.INVALID_PAYLOAD, f"missing account: {role}")
        if not isinstance(key, bytes) or len(key) != PUBKEY_LEN:
            raise SpecError(ErrorCode.INVALID_ADDRESS, f"{role} must be {PUBKEY_LEN} bytes")


def verify_tx(state: ChainState, tx: Transaction) -> TransitionResult:
    """Stateless + stateful verification for a single tx."""
    try:
        _verify_common(state, tx)
        _dispatch_verify(state, tx)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def apply_tx(state: ChainState, tx: Transaction) -> tuple[ChainState, TransitionResult]:
    """Apply tx to state after verification.

    All mutations happen on a working copy; the input state is returned
    unchanged on any failure, so a tx either fully commits or has no effect.
    """
    try:
        _verify_common(state, tx)
        _dispatch_verify(state, tx)
    except SpecError as exc:
        logger.debug("rejected %s: %s", tx.tx_type, exc)
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    try:
        working = _dispatch_apply(working, tx)
    except SpecError as exc:
        logger.debug("execution failed %s: %s", tx.tx_type, exc)
        return state, TransitionResult.failure(exc)

    logger.debug("committed %s", tx.tx_type)
    return working, TransitionResult.success()


def apply_block(state: ChainState, txs: list[Transaction]) -> tuple[ChainState, TransitionResult]:
    """Apply a block worth of transactions in order (block-atomic semantics).

    If any transaction fails, the entire block is rejected and the state is
    unchanged.
    """
    working = state
    for tx in txs:
        working, result = apply_tx(working, tx)
        if not result.ok:
            return state, result
    return working, TransitionResult.success()
