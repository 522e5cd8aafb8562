#!/usr/bin/env python3
"""
ECDSA test vector tools.

Usage:
  ecdsa-vectors generate-q-minus-n > ecdsa_verify_q_minus_n_tests.txt
  ecdsa-vectors validate <test_file.txt> [--mode reduced|unreduced|unguarded]
"""

import sys
from typing import List, Optional

import q_minus_n_vectors
import validate_ecdsa_vectors

COMMANDS = {
    "generate-q-minus-n": q_minus_n_vectors.main,
    "validate": validate_ecdsa_vectors.main,
}


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in COMMANDS:
        print(__doc__.strip(), file=sys.stderr)
        return 2
    return COMMANDS[argv[0]](argv[1:])


if __name__ == "__main__":
    sys.exit(main())
