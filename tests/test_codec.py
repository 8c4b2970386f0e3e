import os
import random

import pytest

from sealbox_core.codec import (
    decode_batch,
    decode_blob,
    encode_blob,
    from_text,
    parse_batch,
    to_text,
)
from sealbox_core.crypto import SUITE
from sealbox_core.errors import InvalidEncoding, MalformedBlob


def test_blob_split_at_fixed_offset():
    enc, ct = os.urandom(32), os.urandom(17)
    assert decode_blob(encode_blob(enc, ct), 32) == (enc, ct)
    # one byte of ciphertext is enough
    assert decode_blob(b"e" * 32 + b"c", 32) == (b"e" * 32, b"c")


_rng = random.Random(1729)


@pytest.mark.parametrize(
    "enc_len,ct_len",
    [(SUITE.encapsulation_length, 1), (SUITE.encapsulation_length, 17), (1, 1)]
    + [(_rng.randint(1, 2048), _rng.randint(1, 4096)) for _ in range(12)],
)
def test_blob_split_inverts_concat(enc_len, ct_len):
    enc, ct = os.urandom(enc_len), os.urandom(ct_len)
    blob = encode_blob(enc, ct)
    assert len(blob) == enc_len + ct_len
    assert decode_blob(blob, enc_len) == (enc, ct)


@pytest.mark.parametrize("size", [0, 1, 31, 32])
def test_blob_not_longer_than_encapsulation_is_malformed(size):
    with pytest.raises(MalformedBlob):
        decode_blob(b"\x00" * size, 32)


def test_text_roundtrip():
    data = os.urandom(100)
    assert from_text(to_text(data)) == data


@pytest.mark.parametrize("bad", ["not base64!", "abc", "****", "ü"])
def test_from_text_rejects_non_base64(bad):
    with pytest.raises(InvalidEncoding):
        from_text(bad)


def test_from_text_does_not_check_length():
    assert from_text("AAAA") == b"\x00\x00\x00"
    assert from_text("") == b""


def test_parse_batch_drops_empty_lines_and_keeps_order():
    body = "\nAAAA\r\n\n  \nAQID\nBAUG\n\n"
    assert parse_batch(body) == ["AAAA", "AQID", "BAUG"]
    assert parse_batch("") == []
    assert parse_batch("  \n \n") == []


def test_decode_batch_marks_bad_lines():
    body = "AQID\n%%%\nBAUG\n"
    assert list(decode_batch(body)) == [b"\x01\x02\x03", None, b"\x04\x05\x06"]
