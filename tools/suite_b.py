"""
Curve parameters, point encoding and digests for the NIST P-256 and P-384
curves, on top of ecpy.

Point arithmetic is delegated to ecpy; the only things done by hand here are
x-coordinate decompression (so the y-parity convention is fixed) and the SEC 1
uncompressed encoding.
"""

import hashlib
from typing import Optional

from ecpy.curves import Curve, Point

# Test file curve names -> ecpy curve names
CURVES = {
    "P-256": "secp256r1",
    "P-384": "secp384r1",
}

DIGESTS = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA384": hashlib.sha384,
    "SHA512": hashlib.sha512,
}


class GenerationError(Exception):
    """Base class for anything that stops a vector from being generated."""


class ArithmeticFailure(GenerationError):
    """A scalar or point operation had no valid result."""


class EncodingFailure(GenerationError):
    """A point or signature could not be serialized."""


# ─── Curves ──────────────────────────────────────────────────────────────────

def get_curve(curve_name: str) -> Curve:
    try:
        ecpy_name = CURVES[curve_name]
    except KeyError:
        raise ValueError(f"unsupported curve: {curve_name}")
    curve = Curve.get_curve(ecpy_name)
    if curve is None:
        raise ValueError(f"ecpy does not know curve {ecpy_name}")
    return curve


def element_len(curve: Curve) -> int:
    return (curve.size + 7) // 8


def mod_sqrt(n: int, p: int) -> Optional[int]:
    """Modular square root via Tonelli-Shanks. Returns None for a non-residue."""
    n = n % p
    if n == 0:
        return 0
    if pow(n, (p - 1) // 2, p) != 1:
        return None

    if p % 4 == 3:
        return pow(n, (p + 1) // 4, p)

    q_val = p - 1
    s = 0
    while q_val % 2 == 0:
        q_val //= 2
        s += 1
    z = 2
    while pow(z, (p - 1) // 2, p) != p - 1:
        z += 1
    m, c, t, r = s, pow(z, q_val, p), pow(n, q_val, p), pow(n, (q_val + 1) // 2, p)
    while True:
        if t == 1:
            return r
        i = 1
        tmp = (t * t) % p
        while tmp != 1:
            tmp = (tmp * tmp) % p
            i += 1
        b = pow(c, 1 << (m - i - 1), p)
        m, c, t, r = i, (b * b) % p, (t * b * b) % p, (r * b) % p


def lift_x(curve: Curve, x: int) -> Optional[Point]:
    """Point with x-coordinate x (mod q) and even y, or None."""
    p = curve.field
    x = x % p
    y = mod_sqrt((pow(x, 3, p) + curve.a * x + curve.b) % p, p)
    if y is None:
        return None
    if y & 1:
        y = p - y
    return Point(x, y, curve)


def is_valid_x(curve: Curve, x: int) -> bool:
    return lift_x(curve, x) is not None


def decompress_x(curve: Curve, x: int) -> Point:
    pt = lift_x(curve, x)
    if pt is None:
        raise ArithmeticFailure(f"0x{x % curve.field:x} is not an x-coordinate on {curve.name}")
    return pt


def negate_point(curve: Curve, pt: Point) -> Point:
    if pt.is_infinity:
        return pt
    return Point(pt.x, (-pt.y) % curve.field, curve)


def sub_point(curve: Curve, a: Point, b: Point) -> Point:
    return curve.add_point(a, negate_point(curve, b))


# ─── Encoding ────────────────────────────────────────────────────────────────

def encode_uncompressed(curve: Curve, pt: Point) -> bytes:
    """SEC 1 uncompressed encoding: 04 || X || Y."""
    if pt.is_infinity:
        raise EncodingFailure("the point at infinity has no uncompressed encoding")
    size = element_len(curve)
    return b"\x04" + pt.x.to_bytes(size, "big") + pt.y.to_bytes(size, "big")


def decode_uncompressed(curve: Curve, data: bytes) -> Point:
    size = element_len(curve)
    if len(data) != 1 + 2 * size:
        raise ValueError(f"expected {1 + 2 * size} bytes, got {len(data)}")
    if data[0] != 0x04:
        raise ValueError(f"not an uncompressed point (prefix 0x{data[0]:02x})")
    x = int.from_bytes(data[1:1 + size], "big")
    y = int.from_bytes(data[1 + size:], "big")
    if x >= curve.field or y >= curve.field:
        raise ValueError("coordinate not reduced modulo q")
    if not curve.is_on_curve(Point(x, y, curve, check=False)):
        raise ValueError("point is not on the curve")
    return Point(x, y, curve)


# ─── Digests ─────────────────────────────────────────────────────────────────

def digest_to_scalar(digest: bytes, n: int) -> int:
    """Leftmost bit_length(n) bits of the digest, as an integer."""
    z = int.from_bytes(digest, "big")
    excess = len(digest) * 8 - n.bit_length()
    if excess > 0:
        z >>= excess
    return z


def message_digest(digest_name: str, msg: bytes) -> bytes:
    try:
        return DIGESTS[digest_name](msg).digest()
    except KeyError:
        raise ValueError(f"unsupported digest: {digest_name}")
