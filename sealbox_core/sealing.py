"""
sealbox_core.sealing
--------------------
Sealer and Opener for mailbox entries.

``seal`` produces one sealed blob per message using a fresh sender
context, so no two messages share key material.

``open_batch`` decrypts a pulled mailbox. Each entry is handled on its
own: an entry that is corrupt, truncated, or sealed to another key is
skipped and the rest of the batch is still returned. Rejection of
foreign entries by the AEAD tag is normal operation, so skips are logged
at DEBUG rather than as errors.
"""

from __future__ import annotations
from typing import Iterable, Iterator, Optional

from .codec import decode_blob, encode_blob
from .crypto import SUITE, HybridPrivateKey, HybridPublicKey, Suite
from .errors import DecryptionFailed, MalformedBlob
from .logger import get_logger

log = get_logger("Sealbox.Sealing")


def seal(plaintext: bytes, recipient_public_key: HybridPublicKey, suite: Suite = SUITE) -> bytes:
    sender = suite.new_sender(recipient_public_key)
    ciphertext = sender.seal(plaintext)
    return encode_blob(sender.encapsulation, ciphertext)


def open_one(blob: bytes, recipient_private_key: HybridPrivateKey, suite: Suite = SUITE) -> bytes:
    """Open a single sealed blob. Raises MalformedBlob or DecryptionFailed."""
    enc, ciphertext = decode_blob(blob, suite.encapsulation_length)
    recipient = suite.new_recipient(recipient_private_key, enc)
    return recipient.open(ciphertext)


def open_batch(
    blobs: Iterable[Optional[bytes]],
    recipient_private_key: HybridPrivateKey,
    suite: Suite = SUITE,
) -> Iterator[bytes]:
    """
    Lazily yield the plaintext of every entry that opens under the key.

    ``None`` entries (lines that failed base64 decoding upstream) are
    skipped like any other undecryptable entry. This generator never
    raises because of entry content; an empty result is a valid outcome.
    """
    opened = skipped = 0
    for idx, blob in enumerate(blobs):
        if blob is None:
            skipped += 1
            continue
        try:
            plaintext = open_one(blob, recipient_private_key, suite)
        except MalformedBlob as e:
            skipped += 1
            log.debug(f"[OPEN] entry {idx} malformed: {e}")
            continue
        except DecryptionFailed as e:
            skipped += 1
            log.debug(f"[OPEN] entry {idx} not for this key: {e}")
            continue
        opened += 1
        yield plaintext
    log.debug(f"[OPEN] batch done opened={opened} skipped={skipped}")
