"""
sealbox_core.codec
------------------
Wire format for sealed blobs and mailbox pull responses.

A sealed blob is the KEM encapsulation followed directly by the AEAD
ciphertext. There is no length prefix: the encapsulation length is fixed
by the suite and known to both sides.

A pull response is newline-delimited base64, one blob per line, in
arrival order.
"""

from __future__ import annotations
from typing import Iterator, List, Optional, Tuple
from .errors import InvalidEncoding, MalformedBlob
from .logger import get_logger
from .utils import b64d, b64e

log = get_logger("Sealbox.Codec")


def encode_blob(encapsulation: bytes, ciphertext: bytes) -> bytes:
    return bytes(encapsulation) + bytes(ciphertext)


def decode_blob(data: bytes, encapsulation_length: int) -> Tuple[bytes, bytes]:
    if len(data) <= encapsulation_length:
        raise MalformedBlob(
            f"blob has {len(data)} bytes, need more than {encapsulation_length}"
        )
    return data[:encapsulation_length], data[encapsulation_length:]


def to_text(data: bytes) -> str:
    return b64e(data)


def from_text(text: str) -> bytes:
    """Decode base64. Length is not checked here; that is the caller's job."""
    return b64d(text)


def parse_batch(body: str) -> List[str]:
    return [line.strip() for line in body.split("\n") if line.strip()]


def decode_batch(body: str) -> Iterator[Optional[bytes]]:
    """
    Decode each line of a pull response independently.

    A line that is not valid base64 yields ``None`` so the consumer can
    skip it without losing the entries around it.
    """
    for idx, line in enumerate(parse_batch(body)):
        try:
            yield from_text(line)
        except InvalidEncoding:
            log.debug(f"[BATCH] entry {idx} is not base64, skipping")
            yield None
