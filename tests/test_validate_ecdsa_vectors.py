import pytest

import validate_ecdsa_vectors
from validate_ecdsa_vectors import (
    TestRunner,
    decode_der_sig,
    decode_msg,
    parse_corpus,
    validate_entries,
    verify,
    x_matches,
)

SAMPLE = """\
# header comment

# first vector
# second line
Curve = P-256
Digest = SHA256
Msg = ""
Q = 04aa
Sig = 3006020101020104
Result = P (0 )

Curve = P-384
Digest = SHA1
Msg = 616263
Q = 04bb
Sig = 3006020102020104
Result = F
"""


def test_parse_corpus():
    entries = parse_corpus(SAMPLE)
    assert len(entries) == 2

    first, second = entries
    assert first.line == 5
    assert first.comment == "first vector\nsecond line"
    assert list(first.attrs) == ["Curve", "Digest", "Msg", "Q", "Sig", "Result"]
    assert first.attrs["Result"] == "P (0 )"

    assert second.line == 12
    assert second.comment == ""
    assert second.attrs["Digest"] == "SHA1"


def test_parse_corpus_header_only():
    assert parse_corpus("# nothing here\n#\n") == []


@pytest.mark.parametrize("text", [
    "Curve P-256\n",
    "Curve = P-256\nCurve = P-384\n",
    " = value\n",
])
def test_parse_corpus_malformed(text):
    with pytest.raises(ValueError):
        parse_corpus(text)


def test_decode_msg():
    assert decode_msg('""') == b""
    assert decode_msg('"abc"') == b"abc"
    assert decode_msg("616263") == b"abc"
    with pytest.raises(ValueError):
        decode_msg("xyz")


def test_decode_der_sig():
    assert decode_der_sig(bytes.fromhex("3006020106020104")) == (6, 4)
    # high bit set needs a leading zero
    assert decode_der_sig(bytes.fromhex("300702020080020104")) == (0x80, 4)


@pytest.mark.parametrize("sig_hex", [
    "",
    "3006020106020104" + "00",
    "30060201060201",
    "3007020200060201" + "04",
    "3006020100020104",
])
def test_decode_der_sig_rejects(sig_hex):
    assert decode_der_sig(bytes.fromhex(sig_hex)) is None


def test_malformed_signature_is_a_failure_not_a_crash(capsys):
    entries = parse_corpus("Curve = P-256\nDigest = SHA256\nMsg = \"\"\n"
                           "Q = 04aa\nSig = 300602010602010400\nResult = F\n"
                           "\nCurve = P-256\nDigest = SHA256\nMsg = \"\"\n"
                           "Q = 04aa\nSig = 30060201060201\nResult = F\n")
    t = TestRunner()
    validate_entries(t, entries)
    assert (t.passed, t.failed, t.skipped) == (0, 2, 0)
    assert capsys.readouterr().out.count("not a well-formed DER") == 2


def test_x_matches():
    n, q = 7, 11
    assert x_matches(9, 2, n, q, "reduced")
    assert not x_matches(9, 2, n, q, "unreduced")
    assert x_matches(9, 2, n, q, "unguarded")
    # r + n wraps past q
    assert not x_matches(1, 5, n, q, "reduced")
    assert x_matches(1, 5, n, q, "unguarded")
    with pytest.raises(ValueError):
        x_matches(1, 1, n, q, "mod-q")


def test_verify_rejects_bad_inputs(vectors_by_curve):
    v = vectors_by_curve["P-256"][0]
    assert verify("P-256", "SHA256", b"", v.q, v.sig)
    # wrong message
    assert not verify("P-256", "SHA256", b"x", v.q, v.sig)
    # key for another curve
    assert not verify("P-256", "SHA256", b"", vectors_by_curve["P-384"][0].q, v.sig)
    # malformed signature
    assert not verify("P-256", "SHA256", b"", v.q, v.sig + b"\x00")
    # r out of range
    assert not verify("P-256", "SHA256", b"", v.q, bytes.fromhex("3006020100020104"))


def test_validate_entries_counts(corpus, capsys):
    t = TestRunner()
    validate_entries(t, parse_corpus(corpus))
    assert (t.passed, t.failed, t.skipped) == (8, 0, 0)
    assert t.summary() == 0
    assert "ALL TESTS PASSED" in capsys.readouterr().out


def test_validate_entries_flags_problems(capsys):
    entries = parse_corpus(SAMPLE + "\nCurve = P-521\nDigest = SHA256\nMsg = \"\"\n"
                           "Q = 04\nSig = 3006020101020104\nResult = F\n"
                           "\nCurve = P-256\nResult = F\n")
    t = TestRunner()
    validate_entries(t, entries)
    # undecodable key on a Pass vector and the incomplete block fail, P-521 is skipped
    assert (t.passed, t.failed, t.skipped) == (1, 2, 1)
    assert t.summary() == 1


@pytest.fixture
def corpus_file(tmp_path, corpus):
    path = tmp_path / "ecdsa_verify_q_minus_n_tests.txt"
    path.write_text(corpus, encoding="utf-8")
    return path


def test_main_reduced(corpus_file, capsys):
    assert validate_ecdsa_vectors.main([str(corpus_file)]) == 0
    out = capsys.readouterr().out
    assert "8 vectors" in out
    assert "FAIL" not in out


@pytest.mark.parametrize("mode, caught", [
    ("unreduced", 2),
    ("unguarded", 2),
])
def test_main_catches_buggy_verifiers(corpus_file, capsys, mode, caught):
    assert validate_ecdsa_vectors.main([str(corpus_file), "--mode", mode]) == 1
    out = capsys.readouterr().out
    assert out.count("  FAIL: ") == caught


@pytest.mark.parametrize("argv", [
    [],
    ["a.txt", "b.txt"],
    ["a.txt", "--mode", "mod-q"],
])
def test_main_usage(argv, capsys):
    assert validate_ecdsa_vectors.main(argv) == 2
    assert "Usage" in capsys.readouterr().err


def test_main_missing_file(tmp_path, capsys):
    assert validate_ecdsa_vectors.main([str(tmp_path / "missing.txt")]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert err.startswith("ERROR: ")
