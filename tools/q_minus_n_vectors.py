#!/usr/bin/env python3
"""
Generate ECDSA verification test vectors around the q - n boundary.

For P-256 and P-384 the field prime q is larger than the group order n, so an
x-coordinate in [n, q) reduces to a different value modulo n. A verifier must
compare the recomputed x-coordinate against r after reducing it modulo n, and
may only use the "also try r + n" shortcut when r < q - n. These vectors catch
verifiers that get either detail wrong.

Every vector is made by public key recovery: pick the x-coordinate of the
point the verifier will recompute, fix s = 4, and solve for the public key
that makes the signature valid over the empty message.

Usage:
    python q_minus_n_vectors.py > ecdsa_verify_q_minus_n_tests.txt

Exit code 0 = corpus written, 1 = generation failed (nothing written).
"""

import sys
from collections import namedtuple
from typing import Iterable, List, Optional, Tuple

from ecpy.formatters import encode_sig

from suite_b import (
    ArithmeticFailure,
    EncodingFailure,
    GenerationError,
    decompress_x,
    digest_to_scalar,
    encode_uncompressed,
    get_curve,
    message_digest,
    sub_point,
)

__all__ = [
    "ArithmeticFailure",
    "EncodingFailure",
    "GenerationError",
    "TestVector",
    "CURVE_CASES",
    "vector_for_candidate",
    "boundary_case_vectors",
    "generate_corpus",
    "main",
]

DIGEST = "SHA256"
S_VALUE = 4
MSG = b""

RESULT_PASS = "P (0 )"
RESULT_FAIL = "F"

# (curve name, r seed, offset). Found by hand: each seed and seed + n, and
# q - n + offset and offset itself, are all valid x-coordinates on the curve.
CURVE_CASES = [
    ("P-256", 6, 0),
    ("P-384", 3, 2),
]

HEADER = """\
# ECDSA verification test vectors for the q - n boundary.
#
# Generated by tools/q_minus_n_vectors.py. Each public key was recovered from
# a chosen signature rather than derived from a private key, so that the
# point a verifier recomputes has a known x-coordinate.
#
# s = 4 in every signature. Its value is arbitrary; it only has to be fixed
# and non-zero.
#
# Msg is always empty and Digest is always SHA256."""


class TestVector(namedtuple("TestVector",
                            "curve_name digest msg q sig result comment")):
    """One Curve/Digest/Msg/Q/Sig/Result block."""

    __slots__ = ()
    __test__ = False

    def to_text(self) -> str:
        lines = [""]
        lines.extend(f"# {line}" if line else "#" for line in self.comment.split("\n"))
        lines.append(f"Curve = {self.curve_name}")
        lines.append(f"Digest = {self.digest}")
        lines.append(f"Msg = {format_msg(self.msg)}")
        lines.append(f"Q = {self.q.hex()}")
        lines.append(f"Sig = {self.sig.hex()}")
        lines.append(f"Result = {self.result}")
        return "\n".join(lines) + "\n"


def format_msg(msg: bytes) -> str:
    if not msg:
        return '""'
    return msg.hex()


# ─── Public key recovery ─────────────────────────────────────────────────────

def encode_der_sig(r: int, s: int) -> bytes:
    if r <= 0 or s <= 0:
        raise EncodingFailure(f"cannot DER-encode r=0x{r:x} s=0x{s:x}")
    return bytes(encode_sig(r, s, "DER"))


def vector_for_candidate(curve_name: str, r: int, r_override: Optional[int] = None,
                         msg: bytes = MSG, comment: str = "") -> TestVector:
    """
    Build the vector whose recomputed point R has x-coordinate r.

    With r_override, R is taken from r_override instead while the signature
    and the recovery still use r, so a correct verifier must reject it.
    """
    curve = get_curve(curve_name)
    n = curve.order
    G = curve.generator

    R = decompress_x(curve, r if r_override is None else r_override)

    r_sig = r % n
    s_sig = S_VALUE

    z = digest_to_scalar(message_digest(DIGEST, msg), n)

    # s*R - z*G, so that u1*G + u2*Q == R when verifying with (r_sig, s_sig)
    intermediate = sub_point(curve, curve.mul_point(s_sig, R), curve.mul_point(z, G))
    if intermediate.is_infinity:
        raise ArithmeticFailure(f"s*R == z*G for r=0x{r:x}")

    try:
        r_inv = pow(r, -1, n)
    except ValueError:
        raise ArithmeticFailure(f"r=0x{r:x} is not invertible modulo n")

    Q = curve.mul_point(r_inv, intermediate)

    return TestVector(
        curve_name=curve_name,
        digest=DIGEST,
        msg=msg,
        q=encode_uncompressed(curve, Q),
        sig=encode_der_sig(r_sig, s_sig),
        result=RESULT_PASS if r_override is None else RESULT_FAIL,
        comment=comment,
    )


# ─── Boundary cases ──────────────────────────────────────────────────────────

def boundary_values(curve_name: str, r_seed: int, offset: int) -> Tuple[int, int, int]:
    """Returns (r_seed + n, q - n + offset, (q - n + offset + n) mod q)."""
    curve = get_curve(curve_name)
    q = curve.field
    n = curve.order

    q_minus_n = q - n
    if not 0 < r_seed < q_minus_n:
        raise GenerationError(f"{curve_name}: r seed 0x{r_seed:x} is not in (0, q - n)")
    q_minus_n_ish = q_minus_n + offset
    if not q_minus_n <= q_minus_n_ish < n:
        raise GenerationError(f"{curve_name}: offset {offset} does not land in [q - n, n)")
    wrong_r = (q_minus_n_ish + n) % q
    return r_seed + n, q_minus_n_ish, wrong_r


def boundary_case_vectors(curve_name: str, r_seed: int, offset: int) -> List[TestVector]:
    """The four q - n boundary vectors for one curve, in corpus order."""
    seed_plus_n, q_minus_n_ish, wrong_r = boundary_values(curve_name, r_seed, offset)

    return [
        vector_for_candidate(
            curve_name, r_seed,
            comment=(f"Public key recovered from r = {r_seed}, s = {S_VALUE}.\n"
                     "r < q - n, so the recomputed x-coordinate needs no reduction."),
        ),
        vector_for_candidate(
            curve_name, seed_plus_n,
            comment=(f"Public key recovered from r = {r_seed} + n, s = {S_VALUE}.\n"
                     "The signature is identical to the previous vector's but the\n"
                     "public key differs: when r < q - n, two public keys are valid\n"
                     "for the same signature. The recomputed x-coordinate is r + n,\n"
                     "which verifies only if it is reduced modulo n."),
        ),
        vector_for_candidate(
            curve_name, q_minus_n_ish,
            comment=(f"Public key recovered from r = q - n + {offset}, s = {S_VALUE}.\n"
                     "r >= q - n, so r + n is not a field element and only one\n"
                     "public key is valid for this signature."),
        ),
        vector_for_candidate(
            curve_name, q_minus_n_ish, r_override=wrong_r,
            comment=(f"Same signature as the previous vector, r = q - n + {offset}, but the\n"
                     f"recomputed x-coordinate is (r + n) mod q = {wrong_r}.\n"
                     "A verifier that tries r + n without checking r < q - n\n"
                     "accepts this; it must be rejected."),
        ),
    ]


# ─── Main ────────────────────────────────────────────────────────────────────

def generate_corpus(cases: Optional[Iterable[Tuple[str, int, int]]] = None) -> str:
    """The whole corpus, or an exception before anything is returned."""
    if cases is None:
        cases = CURVE_CASES
    blocks = [HEADER + "\n"]
    for curve_name, r_seed, offset in cases:
        for vector in boundary_case_vectors(curve_name, r_seed, offset):
            blocks.append(vector.to_text())
    return "".join(blocks)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if argv:
        print(f"Usage: {sys.argv[0]}", file=sys.stderr)
        return 2

    try:
        corpus = generate_corpus()
    except (GenerationError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    sys.stdout.write(corpus)
    return 0


if __name__ == "__main__":
    sys.exit(main())
