#!/usr/bin/env python3
"""Convert generated escrow fixtures into client-consumable YAML vectors.

Each fixture case becomes a vector carrying the pre-state, the encoded
transaction(s), the expected error code and the post-state digest.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.config import ToolConfig  # noqa: E402
from escrow_spec.encoding import encode_transaction  # noqa: E402
from escrow_spec.errors import ErrorCode, SpecError  # noqa: E402
from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from fixtures_io import tx_from_json  # noqa: E402
from yaml_dump import write_yaml  # noqa: E402

logger = logging.getLogger(__name__)


def _map_error_code(name: Optional[str]) -> int:
    if not name:
        return int(ErrorCode.SUCCESS)
    try:
        return int(ErrorCode[name])
    except KeyError:
        return int(ErrorCode.UNKNOWN)


def _encode_tx_if_possible(tx: dict[str, Any]) -> str:
    try:
        return encode_transaction(tx_from_json(tx)).hex()
    except SpecError:
        # Intentionally malformed txs in negative cases have no wire form.
        return ""


def case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case.get("expected", {})
    post_state = expected.get("post_state")
    txs = case["txs"] if "txs" in case else [case["tx"]]
    wire = [_encode_tx_if_possible(t) for t in txs]

    vector: dict[str, Any] = {
        "name": case.get("name", ""),
        "pre_state": case.get("pre_state"),
    }
    if not all(wire):
        vector["runnable"] = False
    vector["input"] = {
        "kind": "block" if "txs" in case else "tx",
        "wire_hex": wire,
    }
    vector["expected"] = {
        "success": bool(expected.get("ok", False)),
        "error_code": _map_error_code(expected.get("error")),
        "state_digest": compute_state_digest(post_state) if post_state else "",
    }
    return vector


@click.command()
@click.option("--fixtures", default=None, help="Fixture directory")
@click.option("--vectors", default=None, help="Output vector directory")
def main(fixtures: Optional[str], vectors: Optional[str]) -> None:
    """Convert fixture JSON files into YAML vectors."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    config = ToolConfig.from_env()
    src = Path(fixtures or config.fixture_dir).resolve()
    out = Path(vectors or config.vector_dir).resolve()
    if not src.exists():
        raise SystemExit(f"fixtures dir not found: {src}")

    count = 0
    for path in sorted(src.rglob("*.json")):
        data = json.loads(path.read_text())
        if isinstance(data, dict) and "cases" in data:
            payload = {"test_vectors": [case_to_vector(c) for c in data["cases"]]}
        elif isinstance(data, dict) and "test_vectors" in data:
            payload = data
        else:
            logger.warning(f"Skipping unrecognised fixture {path}")
            continue
        dest = (out / path.relative_to(src)).with_suffix(".yaml")
        write_yaml(dest, payload)
        count += 1

    logger.info(f"Written {count} vector files into {out}")


if __name__ == "__main__":
    main()
