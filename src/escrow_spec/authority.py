"""Program-derived (keyless) authority addresses.

A derived address is a BLAKE3 digest of the seeds, the owning program id and
a fixed marker. Digests that decode to a point on the ed25519 curve are
rejected, since such an address could have a matching private key; the bump
seed is searched downward from 255 until an off-curve digest is found.
"""

from __future__ import annotations

from typing import Sequence

from blake3 import blake3

from .config import (
    ESCROW_PDA_SEED,
    ESCROW_PROGRAM_ID,
    MAX_BUMP_SEED,
    MAX_SEED_LEN,
    MAX_SEEDS,
    PDA_MARKER,
)
from .errors import ErrorCode, SpecError

# ed25519 field prime and curve constant d = -121665/121666
_P = 2**255 - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P


def is_on_curve(candidate: bytes) -> bool:
    """True if a 32-byte compressed Edwards-y encoding decompresses to a point."""
    if len(candidate) != 32:
        return False
    y = (int.from_bytes(candidate, "little") & ((1 << 255) - 1)) % _P
    y2 = y * y % _P
    u = (y2 - 1) % _P
    v = (_D * y2 + 1) % _P
    if u == 0:
        return True
    x2 = u * pow(v, _P - 2, _P) % _P
    # Euler's criterion: x^2 must be a quadratic residue mod p.
    return pow(x2, (_P - 1) // 2, _P) == 1


def _check_seeds(seeds: Sequence[bytes]) -> None:
    if len(seeds) > MAX_SEEDS:
        raise SpecError(ErrorCode.INVALID_SEEDS, "too many seeds")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise SpecError(ErrorCode.INVALID_SEEDS, "seed too long")


def _hash_seeds(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    hasher = blake3()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(program_id)
    hasher.update(PDA_MARKER)
    return hasher.digest()


def create_program_address(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    _check_seeds(seeds)
    address = _hash_seeds(seeds, program_id)
    if is_on_curve(address):
        raise SpecError(ErrorCode.INVALID_SEEDS, "derived address is on the ed25519 curve")
    return address


def find_program_address(seeds: Sequence[bytes], program_id: bytes) -> tuple[bytes, int]:
    """Return the first off-curve address and its bump, trying 255 down to 0."""
    _check_seeds(list(seeds) + [b"\x00"])
    for bump in range(MAX_BUMP_SEED, -1, -1):
        address = _hash_seeds(list(seeds) + [bytes([bump])], program_id)
        if not is_on_curve(address):
            return address, bump
    raise SpecError(ErrorCode.INVALID_SEEDS, "unable to find a viable bump seed")


def escrow_authority(program_id: bytes = ESCROW_PROGRAM_ID) -> tuple[bytes, int]:
    """Custody authority of every escrow deposit held by `program_id`."""
    return find_program_address([ESCROW_PDA_SEED], program_id)


def escrow_authority_seeds(program_id: bytes = ESCROW_PROGRAM_ID) -> list[bytes]:
    _, bump = escrow_authority(program_id)
    return [ESCROW_PDA_SEED, bytes([bump])]
