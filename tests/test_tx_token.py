"""Token transfer fixtures and token-program primitive checks."""

from __future__ import annotations

import pytest

from escrow_spec.authority import escrow_authority, escrow_authority_seeds
from escrow_spec.config import ESCROW_PROGRAM_ID, U64_MAX
from escrow_spec.errors import ErrorCode, SpecError
from escrow_spec.test_accounts import ALICE, BOB, MINT_A, MINT_B, token_account_address
from escrow_spec.tx import token
from escrow_spec.types import ChainState, TokenAccount, Transaction, TransactionType

ALICE_A = token_account_address("Alice", "A")
BOB_A = token_account_address("Bob", "A")
BOB_B = token_account_address("Bob", "B")

FIXTURE = "transactions/token/transfer.json"


def _base_state() -> ChainState:
    state = ChainState()
    state.token_accounts[ALICE_A] = TokenAccount(ALICE_A, MINT_A, ALICE, 1_000)
    state.token_accounts[BOB_A] = TokenAccount(BOB_A, MINT_A, BOB, 0)
    state.token_accounts[BOB_B] = TokenAccount(BOB_B, MINT_B, BOB, 0)
    return state


def _mk_transfer(
    source: bytes = ALICE_A,
    destination: bytes = BOB_A,
    amount: int = 250,
    authority: bytes = ALICE,
    signers: tuple[bytes, ...] = (ALICE,),
) -> Transaction:
    return Transaction(
        tx_type=TransactionType.TOKEN_TRANSFER,
        accounts={"source": source, "destination": destination, "authority": authority},
        signers=list(signers),
        payload={"amount": amount},
    )


def test_transfer_success(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(FIXTURE, "transfer_success", state, _mk_transfer())
    assert result.ok
    assert post.token_accounts[ALICE_A].amount == 750
    assert post.token_accounts[BOB_A].amount == 250
    assert token.supply(post, MINT_A) == token.supply(state, MINT_A)


def test_transfer_insufficient_balance(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        FIXTURE, "transfer_insufficient_balance", state, _mk_transfer(amount=1_001)
    )
    assert result.error.code == ErrorCode.INSUFFICIENT_BALANCE
    assert post is state


def test_transfer_zero_amount(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(FIXTURE, "transfer_zero_amount", state, _mk_transfer(amount=0))
    assert result.error.code == ErrorCode.INVALID_AMOUNT


def test_transfer_boolean_amount(state_test_group) -> None:
    state = _base_state()
    tx = _mk_transfer()
    tx.payload = {"amount": True}
    post, result = state_test_group(FIXTURE, "transfer_boolean_amount", state, tx)
    assert result.error.code == ErrorCode.INVALID_AMOUNT
    assert post is state


def test_transfer_mint_mismatch(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        FIXTURE, "transfer_mint_mismatch", state, _mk_transfer(destination=BOB_B)
    )
    assert result.error.code == ErrorCode.MINT_MISMATCH
    assert post is state


def test_transfer_not_owner(state_test_group) -> None:
    state = _base_state()
    tx = _mk_transfer(authority=BOB, signers=(BOB,))
    post, result = state_test_group(FIXTURE, "transfer_not_owner", state, tx)
    assert result.error.code == ErrorCode.UNAUTHORIZED


def test_transfer_owner_did_not_sign(state_test_group) -> None:
    state = _base_state()
    tx = _mk_transfer(signers=(BOB,))
    post, result = state_test_group(FIXTURE, "transfer_unsigned", state, tx)
    assert result.error.code == ErrorCode.MISSING_SIGNATURE


def test_transfer_without_signers(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(FIXTURE, "transfer_no_signers", state, _mk_transfer(signers=()))
    assert result.error.code == ErrorCode.MISSING_SIGNATURE


def test_transfer_missing_account_role(state_test_group) -> None:
    state = _base_state()
    tx = _mk_transfer()
    del tx.accounts["destination"]
    post, result = state_test_group(FIXTURE, "transfer_missing_destination_role", state, tx)
    assert result.error.code == ErrorCode.INVALID_PAYLOAD


def test_transfer_unknown_destination(state_test_group) -> None:
    state = _base_state()
    tx = _mk_transfer(destination=token_account_address("Nobody", "A"))
    post, result = state_test_group(FIXTURE, "transfer_unknown_destination", state, tx)
    assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND
    assert post is state


def test_transfer_destination_overflow(state_test_group) -> None:
    state = _base_state()
    state.token_accounts[BOB_A].amount = U64_MAX
    post, result = state_test_group(
        FIXTURE, "transfer_destination_overflow", state, _mk_transfer(amount=1)
    )
    assert result.error.code == ErrorCode.OVERFLOW
    assert post is state


# --- derived-authority signing ---


def _custody_state() -> ChainState:
    state = _base_state()
    pda, _ = escrow_authority()
    state.token_accounts[ALICE_A].owner = pda
    return state


def test_program_signs_with_seeds() -> None:
    state = _custody_state()
    pda, _ = escrow_authority()
    token.transfer(
        state,
        ALICE_A,
        BOB_A,
        pda,
        400,
        program_id=ESCROW_PROGRAM_ID,
        signer_seeds=[escrow_authority_seeds()],
    )
    assert state.token_accounts[BOB_A].amount == 400


@pytest.mark.parametrize(
    "seeds",
    [
        [b"escrow"],
        [b"other", b"\x01"],
        [b"escrow", b"\x00" * 33],
    ],
)
def test_program_signing_rejects_wrong_seeds(seeds) -> None:
    state = _custody_state()
    pda, _ = escrow_authority()
    with pytest.raises(SpecError) as exc:
        token.transfer(
            state, ALICE_A, BOB_A, pda, 1, program_id=ESCROW_PROGRAM_ID, signer_seeds=[seeds]
        )
    assert exc.value.code == ErrorCode.MISSING_SIGNATURE


def test_set_authority_returns_ownership() -> None:
    state = _custody_state()
    pda, _ = escrow_authority()
    token.set_authority(
        state,
        ALICE_A,
        pda,
        ALICE,
        program_id=ESCROW_PROGRAM_ID,
        signer_seeds=[escrow_authority_seeds()],
    )
    assert state.token_accounts[ALICE_A].owner == ALICE
    assert state.token_accounts[ALICE_A].amount == 1_000
