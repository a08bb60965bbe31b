"""Replay recorded escrow fixtures and check their outcomes."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.config import ToolConfig  # noqa: E402
from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from escrow_spec.state_transition import apply_block, apply_tx  # noqa: E402
from fixtures_io import state_from_json, state_to_json, tx_from_json  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def check_case(case: dict) -> Optional[str]:
    """Replay one fixture case; return a failure reason or None."""
    pre_state = state_from_json(case["pre_state"])
    if "txs" in case:
        post_state, result = apply_block(pre_state, [tx_from_json(t) for t in case["txs"]])
    else:
        post_state, result = apply_tx(pre_state, tx_from_json(case["tx"]))

    expected = case["expected"]
    if result.ok != expected["ok"]:
        return "ok_mismatch"

    actual_err = result.error.code.name if result.error else None
    if actual_err != expected["error"]:
        return "error_mismatch"

    actual_digest = compute_state_digest(state_to_json(post_state))
    if actual_digest != compute_state_digest(expected["post_state"]):
        return "state_mismatch"
    return None


def check_file(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())
    for case in data.get("cases", []):
        reason = check_case(case)
        status = "PASS" if reason is None else "FAIL"
        logger.debug(f"  [{status}] {case['name']}")
        if reason is not None:
            failures.append(f"{case['name']}: {reason}")
    return failures


@click.command()
@click.option(
    "--fixtures",
    default=None,
    help="Fixture directory or a single fixture JSON file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
def main(fixtures: Optional[str], verbose: bool) -> None:
    """Replay generated fixtures through apply_tx and compare outcomes."""
    config = ToolConfig.from_env()
    if verbose or config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    target = Path(fixtures or config.fixture_dir)
    files = [target] if target.is_file() else sorted(target.rglob("*.json"))
    if not files:
        logger.error(f"No fixture files found in {target}")
        sys.exit(1)

    failures: list[str] = []
    for path in files:
        logger.info(f"Checking {path}")
        failures.extend(check_file(path))

    if failures:
        for f in failures:
            logger.error(f"FAIL {f}")
        sys.exit(1)

    logger.info("All fixtures passed")


if __name__ == "__main__":
    main()
