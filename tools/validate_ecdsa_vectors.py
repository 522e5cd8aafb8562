#!/usr/bin/env python3
"""
Independent check of an ECDSA verification test file using pure Python + ecpy.

Reads Curve/Digest/Msg/Q/Sig/Result blocks, verifies each signature and
compares the outcome with Result. The signature must be a DER SEQUENCE of two
INTEGERs that re-encodes to the same bytes.

--mode selects how the recomputed x-coordinate is compared with r:
  reduced    x mod n == r                      (correct)
  unreduced  x == r                            (missing reduction)
  unguarded  x == r or x == (r + n) mod q      (r + n tried without r < q - n)

With a buggy mode a FAIL line means the file caught that bug.

Usage:
    pip install ecpy
    python validate_ecdsa_vectors.py ecdsa_verify_q_minus_n_tests.txt [--mode M]

Exit code 0 = all vectors agree, 1 = disagreements found, 2 = usage error.
"""

import sys
from collections import OrderedDict, namedtuple
from typing import List, Optional, Tuple

from ecpy.curves import Point
from ecpy.formatters import decode_sig, encode_sig

from suite_b import (
    decode_uncompressed,
    digest_to_scalar,
    encode_uncompressed,
    get_curve,
    lift_x,
    message_digest,
    sub_point,
)

MODES = ("reduced", "unreduced", "unguarded")

RESULTS = {
    "P (0 )": True,
    "F": False,
}

REQUIRED_KEYS = ("Curve", "Digest", "Msg", "Q", "Sig", "Result")

CorpusEntry = namedtuple("CorpusEntry", "line comment attrs")


# ─── Parsing ─────────────────────────────────────────────────────────────────

def parse_corpus(text: str) -> List[CorpusEntry]:
    """Split a test file into blocks of Key = Value lines."""
    entries = []
    comment = []
    attrs = OrderedDict()
    start = 0

    def flush():
        if attrs:
            entries.append(CorpusEntry(start, "\n".join(comment), OrderedDict(attrs)))
        comment.clear()
        attrs.clear()

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.rstrip()
        if not line:
            flush()
            continue
        if line.startswith("#"):
            comment.append(line[1:].strip())
            continue
        key, sep, value = line.partition(" = ")
        if not sep or not key:
            raise ValueError(f"line {lineno}: expected 'Key = Value', got {line!r}")
        if key in attrs:
            raise ValueError(f"line {lineno}: duplicate key {key!r}")
        if not attrs:
            start = lineno
        attrs[key] = value
    flush()

    return entries


def decode_msg(value: str) -> bytes:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1].encode("utf-8")
    return bytes.fromhex(value)


def decode_der_sig(sig: bytes) -> Optional[Tuple[int, int]]:
    """(r, s) from a DER signature, or None unless it re-encodes identically."""
    if len(sig) < 8 or sig[0] != 0x30 or sig[1] != len(sig) - 2:
        return None
    try:
        r, s = decode_sig(sig, "DER")
    except (IndexError, ValueError, TypeError):
        return None
    if r is None or s is None or r <= 0 or s <= 0:
        return None
    if bytes(encode_sig(r, s, "DER")) != sig:
        return None
    return r, s


# ─── Verification ────────────────────────────────────────────────────────────

def x_matches(x: int, r: int, n: int, q: int, mode: str) -> bool:
    if mode == "reduced":
        return x % n == r
    if mode == "unreduced":
        return x == r
    if mode == "unguarded":
        return x == r or x == (r + n) % q
    raise ValueError(f"unknown mode: {mode}")


def verify(curve_name: str, digest_name: str, msg: bytes, q_bytes: bytes,
           sig: bytes, mode: str = "reduced") -> bool:
    curve = get_curve(curve_name)
    n = curve.order
    G = curve.generator

    try:
        Q = decode_uncompressed(curve, q_bytes)
    except ValueError:
        return False

    rs = decode_der_sig(sig)
    if rs is None:
        return False
    r, s = rs
    if not (1 <= r < n and 1 <= s < n):
        return False

    z = digest_to_scalar(message_digest(digest_name, msg), n)
    w = pow(s, -1, n)
    u1 = (z * w) % n
    u2 = (r * w) % n

    X = Point.infinity()
    if u1:
        X = curve.add_point(X, curve.mul_point(u1, G))
    X = curve.add_point(X, curve.mul_point(u2, Q))
    if X.is_infinity:
        return False

    return x_matches(X.x, r, n, curve.field, mode)


def recover_public_keys(curve_name: str, r: int, s: int, msg: bytes = b"",
                        digest_name: str = "SHA256") -> List[bytes]:
    """
    Uncompressed public keys for which (r, s) is valid over msg.

    Candidate x-coordinates are r and, when r < q - n, r + n. Only the
    even-y point is used for each, so this returns at most two keys.
    """
    curve = get_curve(curve_name)
    n = curve.order
    G = curve.generator

    z = digest_to_scalar(message_digest(digest_name, msg), n)
    r_inv = pow(r, -1, n)

    keys = []
    for x in (r, r + n):
        if x >= curve.field:
            continue
        R = lift_x(curve, x)
        if R is None:
            continue
        intermediate = sub_point(curve, curve.mul_point(s, R), curve.mul_point(z, G))
        if intermediate.is_infinity:
            continue
        keys.append(encode_uncompressed(curve, curve.mul_point(r_inv, intermediate)))
    return keys


# ─── Test runner ─────────────────────────────────────────────────────────────

class TestRunner:
    __test__ = False

    def __init__(self):
        self.passed = 0
        self.failed = 0
        self.skipped = 0

    def ok(self, label: str):
        self.passed += 1
        print(f"  PASS: {label}")

    def fail(self, label: str, msg: str):
        self.failed += 1
        print(f"  FAIL: {label}")
        print(f"    {msg}")

    def skip(self, label: str, reason: str):
        self.skipped += 1
        print(f"  SKIP: {label} ({reason})")

    def begin_section(self, name: str):
        print(f"\n=== {name} ===")

    def summary(self) -> int:
        print(f"\n{'='*60}")
        total = self.passed + self.failed + self.skipped
        print(f"Total: {total}  Passed: {self.passed}  Failed: {self.failed}  Skipped: {self.skipped}")
        if self.failed == 0:
            print("ALL TESTS PASSED")
        else:
            print(f"*** {self.failed} FAILURE(S) ***")
        return 0 if self.failed == 0 else 1


def validate_entries(t: TestRunner, entries: List[CorpusEntry], mode: str = "reduced"):
    t.begin_section(f"ECDSA verify ({mode})")

    for entry in entries:
        attrs = entry.attrs
        label = f"line {entry.line}"
        missing = [k for k in REQUIRED_KEYS if k not in attrs]
        if missing:
            t.fail(label, f"missing {', '.join(missing)}")
            continue
        label = f"{label} {attrs['Curve']}"

        if attrs["Result"] not in RESULTS:
            t.fail(label, f"unknown Result {attrs['Result']!r}")
            continue
        expected = RESULTS[attrs["Result"]]

        try:
            get_curve(attrs["Curve"])
            message_digest(attrs["Digest"], b"")
        except ValueError as e:
            t.skip(label, str(e))
            continue

        try:
            msg = decode_msg(attrs["Msg"])
            q_bytes = bytes.fromhex(attrs["Q"])
            sig = bytes.fromhex(attrs["Sig"])
        except ValueError as e:
            t.fail(label, f"bad hex: {e}")
            continue

        if decode_der_sig(sig) is None:
            t.fail(label, "Sig is not a well-formed DER (r, s) pair")
            continue

        actual = verify(attrs["Curve"], attrs["Digest"], msg, q_bytes, sig, mode)
        if actual == expected:
            t.ok(label)
        else:
            t.fail(label, f"expected {'valid' if expected else 'invalid'}, "
                          f"got {'valid' if actual else 'invalid'}")


# ─── Main ────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    mode = "reduced"
    if len(argv) == 3 and argv[1] == "--mode":
        mode = argv[2]
        argv = argv[:1]
    if len(argv) != 1 or mode not in MODES:
        print(f"Usage: {sys.argv[0]} <test_file.txt> [--mode {'|'.join(MODES)}]", file=sys.stderr)
        return 2

    try:
        with open(argv[0], encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    try:
        entries = parse_corpus(text)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"{argv[0]}: {len(entries)} vectors")

    t = TestRunner()
    validate_entries(t, entries, mode)
    return t.summary()


if __name__ == "__main__":
    sys.exit(main())
