"""Fixture tools run as plain scripts from any working directory."""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from escrow_spec.state_transition import apply_tx
from escrow_spec.test_accounts import ALICE, BOB, MINT_A, token_account_address
from escrow_spec.types import ChainState, TokenAccount, Transaction, TransactionType
from tools.fixtures_io import state_to_json, tx_to_json

ROOT = Path(__file__).resolve().parent.parent
TOOLS = ROOT / "tools"

ALICE_A = token_account_address("Alice", "A")
BOB_A = token_account_address("Bob", "A")


def _run(script: str, *args: str, cwd: Path) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env.pop("PYTHONPATH", None)
    return subprocess.run(
        [sys.executable, str(TOOLS / script), *args],
        cwd=str(cwd),
        env=env,
        capture_output=True,
        text=True,
    )


def _write_fixture(path: Path) -> None:
    state = ChainState()
    state.token_accounts[ALICE_A] = TokenAccount(ALICE_A, MINT_A, ALICE, 10)
    state.token_accounts[BOB_A] = TokenAccount(BOB_A, MINT_A, BOB, 0)
    tx = Transaction(
        tx_type=TransactionType.TOKEN_TRANSFER,
        accounts={"source": ALICE_A, "destination": BOB_A, "authority": ALICE},
        signers=[ALICE],
        payload={"amount": 4},
    )
    post, result = apply_tx(state, tx)
    case = {
        "name": "script_transfer",
        "pre_state": state_to_json(state),
        "tx": tx_to_json(tx),
        "expected": {"ok": result.ok, "error": None, "post_state": state_to_json(post)},
    }
    path.write_text(json.dumps({"cases": [case]}))


@pytest.mark.parametrize("script", ["consume.py", "fixtures_to_vectors.py", "fill.py"])
def test_script_help(script, tmp_path) -> None:
    proc = _run(script, "--help", cwd=tmp_path)
    assert proc.returncode == 0, proc.stderr
    assert "Usage" in proc.stdout


def test_consume_script_replays_fixture(tmp_path) -> None:
    fixture = tmp_path / "transfer.json"
    _write_fixture(fixture)
    proc = _run("consume.py", "--fixtures", str(fixture), cwd=tmp_path)
    assert proc.returncode == 0, proc.stderr


def test_vectors_script_writes_yaml(tmp_path) -> None:
    fixtures = tmp_path / "fixtures"
    fixtures.mkdir()
    _write_fixture(fixtures / "transfer.json")
    vectors = tmp_path / "vectors"
    proc = _run(
        "fixtures_to_vectors.py", "--fixtures", str(fixtures), "--vectors", str(vectors),
        cwd=tmp_path,
    )
    assert proc.returncode == 0, proc.stderr
    assert (vectors / "transfer.yaml").is_file()
