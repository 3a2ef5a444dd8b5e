"""Elliptic-curve public key recovery backed by python-ecdsa."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

from ecdsa import NIST256p, SECP256k1
from ecdsa.curves import Curve
from ecdsa.ellipticcurve import INFINITY, PointJacobi
from ecdsa.numbertheory import SquareRootError, inverse_mod, square_root_mod_prime

LOGGER = logging.getLogger(__name__)

CURVES: Dict[str, Curve] = {
    "k1": SECP256k1,
    "r1": NIST256p,
}


class CurveMath(Protocol):
    def recover_point(
        self, curve: str, r: int, s: int, digest: bytes, recovery_id: int
    ) -> Optional[bytes]:
        """Return the compressed point recovered for ``recovery_id`` or ``None``."""
        ...


def compress_point(x: int, y: int) -> bytes:
    return bytes([2 + (y & 1)]) + x.to_bytes(32, "big")


def _digest_to_int(digest: bytes, order: int) -> int:
    value = int.from_bytes(digest, "big")
    excess = len(digest) * 8 - order.bit_length()
    if excess > 0:
        value >>= excess
    return value


class EcdsaCurveMath:
    """Standard ECDSA public key recovery (SEC 1, section 4.1.6)."""

    def recover_point(
        self, curve: str, r: int, s: int, digest: bytes, recovery_id: int
    ) -> Optional[bytes]:
        try:
            params = CURVES[curve]
        except KeyError as exc:
            raise ValueError(f"Unsupported curve: {curve}") from exc
        if recovery_id not in range(4):
            raise ValueError(f"Recovery id must be 0..3, got {recovery_id}")

        generator = params.generator
        field = generator.curve()
        p = field.p()
        n = generator.order()
        if not (0 < r < n and 0 < s < n):
            return None

        x = r + n if recovery_id >> 1 else r
        if x >= p:
            return None
        alpha = (pow(x, 3, p) + field.a() * x + field.b()) % p
        try:
            beta = square_root_mod_prime(alpha, p)
        except SquareRootError:
            LOGGER.debug("x=%x is not on curve %s", x, curve)
            return None
        if (beta & 1) != (recovery_id & 1):
            beta = p - beta
        point_r = PointJacobi(field, x, beta, 1, n)

        e = _digest_to_int(digest, n)
        r_inv = inverse_mod(r, n)
        q = point_r * (s * r_inv % n) + generator * (-e * r_inv % n)
        if q == INFINITY:
            return None
        return compress_point(q.x(), q.y())
