"""Run the escrow test suite and write every recorded case as fixture JSON."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

import click

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

from escrow_spec.config import ToolConfig  # noqa: E402

logger = logging.getLogger(__name__)


@click.command(context_settings={"ignore_unknown_options": True})
@click.option("--output", default=None, help="Fixture output directory")
@click.argument("pytest_args", nargs=-1, type=click.UNPROCESSED)
def main(output: Optional[str], pytest_args: tuple[str, ...]) -> None:
    """Fill fixtures; extra arguments are passed through to pytest."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    config = ToolConfig.from_env()
    out = Path(output or config.fixture_dir)
    if not out.is_absolute():
        out = ROOT / out

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = [sys.executable, "-m", "pytest", str(ROOT / "tests"), "-q", "--output", str(out)]
    cmd.extend(pytest_args)
    logger.info(f"Running: {' '.join(cmd)}")
    sys.exit(subprocess.call(cmd, env=env, cwd=str(ROOT)))


if __name__ == "__main__":
    main()
