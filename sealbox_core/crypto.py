"""
sealbox_core.crypto
-------------------
The fixed Sealbox cipher suite:

- KEM:  X25519 + ML-KEM-768 hybrid (classical || post-quantum)
- KDF:  HKDF-SHA256
- AEAD: AES-128-GCM

The key schedule follows HPKE base mode (RFC 9180): labeled
extract/expand with the suite id bound into every label, one key and
base nonce per context, nonce = base_nonce XOR sequence number.

The suite is not negotiated. Changing any algorithm is a protocol
version bump, so there is exactly one process-wide ``SUITE`` value.

The hybrid KEM here is FIPS 203 ML-KEM-768 with its own combiner, not
the X25519Kyber768Draft00 KEM (HPKE id 0x0030). It carries an
unregistered KEM id and does not interoperate with HPKE libraries.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple
import hashlib

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand
from kyber_py.ml_kem import ML_KEM_768

from .errors import DecryptionFailed, EncryptionFailed, InvalidKey

# --------- Sizes ----------
X25519_KEY_SIZE = 32
MLKEM768_PUBLIC_KEY_SIZE = 1184
MLKEM768_PRIVATE_KEY_SIZE = 2400
MLKEM768_CIPHERTEXT_SIZE = 1088
# ML-KEM decapsulation key layout: dk_pke || ek || H(ek) || z
_MLKEM768_EK_OFFSET = 1152
_MLKEM768_HEK_OFFSET = _MLKEM768_EK_OFFSET + MLKEM768_PUBLIC_KEY_SIZE

PUBLIC_KEY_SIZE = X25519_KEY_SIZE + MLKEM768_PUBLIC_KEY_SIZE
PRIVATE_KEY_SIZE = X25519_KEY_SIZE + MLKEM768_PRIVATE_KEY_SIZE
ENCAPSULATION_SIZE = X25519_KEY_SIZE + MLKEM768_CIPHERTEXT_SIZE

AEAD_KEY_SIZE = 16
AEAD_NONCE_SIZE = 12
AEAD_TAG_SIZE = 16
HASH_SIZE = 32

# --------- Algorithm identifiers ----------
KEM_ID = 0xFE30  # unregistered: X25519 + ML-KEM-768, sealbox combiner
KDF_ID = 0x0001  # HKDF-SHA256
AEAD_ID = 0x0001  # AES-128-GCM
MODE_BASE = 0x00

_VERSION_LABEL = b"HPKE-v1"


def _i2osp(n: int, w: int) -> bytes:
    return n.to_bytes(w, "big")


# --------- HKDF helpers ----------
def _extract(salt: bytes, ikm: bytes) -> bytes:
    h = hmac.HMAC(salt or b"\x00" * HASH_SIZE, hashes.SHA256())
    h.update(ikm)
    return h.finalize()


def _expand(prk: bytes, info: bytes, length: int) -> bytes:
    return HKDFExpand(algorithm=hashes.SHA256(), length=length, info=info).derive(prk)


def labeled_extract(suite_id: bytes, salt: bytes, label: bytes, ikm: bytes) -> bytes:
    return _extract(salt, _VERSION_LABEL + suite_id + label + ikm)


def labeled_expand(suite_id: bytes, prk: bytes, label: bytes, info: bytes, length: int) -> bytes:
    labeled_info = _i2osp(length, 2) + _VERSION_LABEL + suite_id + label + info
    return _expand(prk, labeled_info, length)


# --------- Keys ----------
@dataclass(frozen=True)
class HybridPublicKey:
    x25519: x25519.X25519PublicKey
    mlkem: bytes

    def to_bytes(self) -> bytes:
        return self.x25519.public_bytes_raw() + self.mlkem


@dataclass(frozen=True)
class HybridPrivateKey:
    x25519: x25519.X25519PrivateKey
    mlkem: bytes

    def to_bytes(self) -> bytes:
        return self.x25519.private_bytes_raw() + self.mlkem

    def public_key(self) -> HybridPublicKey:
        ek = self.mlkem[_MLKEM768_EK_OFFSET:_MLKEM768_EK_OFFSET + MLKEM768_PUBLIC_KEY_SIZE]
        return HybridPublicKey(self.x25519.public_key(), ek)


# --------- Contexts ----------
class _Context:
    def __init__(self, key: bytes, base_nonce: bytes):
        self._aead = AESGCM(key)
        self._base_nonce = base_nonce
        self.seq = 0

    def _next_nonce(self) -> bytes:
        seq = _i2osp(self.seq, AEAD_NONCE_SIZE)
        self.seq += 1
        return bytes(a ^ b for a, b in zip(self._base_nonce, seq))


class SenderContext(_Context):
    def __init__(self, key: bytes, base_nonce: bytes, encapsulation: bytes):
        super().__init__(key, base_nonce)
        self.encapsulation = encapsulation

    def seal(self, plaintext: bytes, aad: bytes = b"") -> bytes:
        try:
            return self._aead.encrypt(self._next_nonce(), plaintext, aad)
        except (OverflowError, ValueError) as e:
            raise EncryptionFailed(str(e)) from e


class RecipientContext(_Context):
    def open(self, ciphertext: bytes, aad: bytes = b"") -> bytes:
        try:
            return self._aead.decrypt(self._next_nonce(), ciphertext, aad)
        except InvalidTag as e:
            raise DecryptionFailed("authentication tag mismatch") from e


# --------- Suite ----------
@dataclass(frozen=True)
class Suite:
    kem_id: int = KEM_ID
    kdf_id: int = KDF_ID
    aead_id: int = AEAD_ID
    encapsulation_length: int = ENCAPSULATION_SIZE
    public_key_length: int = PUBLIC_KEY_SIZE
    private_key_length: int = PRIVATE_KEY_SIZE
    info: bytes = field(default=b"sealbox-v1")

    @property
    def kem_suite_id(self) -> bytes:
        return b"KEM" + _i2osp(self.kem_id, 2)

    @property
    def suite_id(self) -> bytes:
        return b"HPKE" + _i2osp(self.kem_id, 2) + _i2osp(self.kdf_id, 2) + _i2osp(self.aead_id, 2)

    # ---- key pairs ----
    def generate_key_pair(self) -> Tuple[HybridPublicKey, HybridPrivateKey]:
        sk = x25519.X25519PrivateKey.generate()
        _ek, dk = ML_KEM_768.keygen()
        priv = HybridPrivateKey(sk, dk)
        return priv.public_key(), priv

    def serialize_public_key(self, pub: HybridPublicKey) -> bytes:
        return pub.to_bytes()

    def deserialize_public_key(self, data: bytes) -> HybridPublicKey:
        if len(data) != self.public_key_length:
            raise InvalidKey(f"public key must be {self.public_key_length} bytes, got {len(data)}")
        try:
            pk = x25519.X25519PublicKey.from_public_bytes(data[:X25519_KEY_SIZE])
        except ValueError as e:
            raise InvalidKey(str(e)) from e
        return HybridPublicKey(pk, bytes(data[X25519_KEY_SIZE:]))

    def serialize_private_key(self, priv: HybridPrivateKey) -> bytes:
        return priv.to_bytes()

    def deserialize_private_key(self, data: bytes) -> HybridPrivateKey:
        if len(data) != self.private_key_length:
            raise InvalidKey(f"private key must be {self.private_key_length} bytes, got {len(data)}")
        try:
            sk = x25519.X25519PrivateKey.from_private_bytes(data[:X25519_KEY_SIZE])
        except ValueError as e:
            raise InvalidKey(str(e)) from e
        dk = bytes(data[X25519_KEY_SIZE:])
        ek = dk[_MLKEM768_EK_OFFSET:_MLKEM768_HEK_OFFSET]
        if hashlib.sha3_256(ek).digest() != dk[_MLKEM768_HEK_OFFSET:_MLKEM768_HEK_OFFSET + HASH_SIZE]:
            raise InvalidKey("ML-KEM private key is corrupt: H(ek) mismatch")
        return HybridPrivateKey(sk, dk)

    # ---- KEM ----
    def _combine(self, ss_dh: bytes, ss_pq: bytes, enc: bytes, pk_bytes: bytes) -> bytes:
        eae_prk = labeled_extract(self.kem_suite_id, b"", b"eae_prk", ss_dh + ss_pq)
        return labeled_expand(self.kem_suite_id, eae_prk, b"shared_secret", enc + pk_bytes, HASH_SIZE)

    def _encap(self, pub: HybridPublicKey) -> Tuple[bytes, bytes]:
        eph = x25519.X25519PrivateKey.generate()
        try:
            ss_dh = eph.exchange(pub.x25519)
            ss_pq, ct_pq = ML_KEM_768.encaps(pub.mlkem)
        except ValueError as e:
            raise InvalidKey(f"encapsulation failed: {e}") from e
        enc = eph.public_key().public_bytes_raw() + ct_pq
        return self._combine(ss_dh, ss_pq, enc, pub.to_bytes()), enc

    def _decap(self, priv: HybridPrivateKey, enc: bytes) -> bytes:
        if len(enc) != self.encapsulation_length:
            raise DecryptionFailed(f"encapsulation must be {self.encapsulation_length} bytes")
        try:
            peer = x25519.X25519PublicKey.from_public_bytes(enc[:X25519_KEY_SIZE])
            ss_dh = priv.x25519.exchange(peer)
            ss_pq = ML_KEM_768.decaps(priv.mlkem, enc[X25519_KEY_SIZE:])
        except ValueError as e:
            raise DecryptionFailed(f"decapsulation failed: {e}") from e
        return self._combine(ss_dh, ss_pq, enc, priv.public_key().to_bytes())

    # ---- key schedule ----
    def _key_schedule(self, shared_secret: bytes) -> Tuple[bytes, bytes]:
        sid = self.suite_id
        psk_id_hash = labeled_extract(sid, b"", b"psk_id_hash", b"")
        info_hash = labeled_extract(sid, b"", b"info_hash", self.info)
        ks_context = _i2osp(MODE_BASE, 1) + psk_id_hash + info_hash
        secret = labeled_extract(sid, shared_secret, b"secret", b"")
        key = labeled_expand(sid, secret, b"key", ks_context, AEAD_KEY_SIZE)
        base_nonce = labeled_expand(sid, secret, b"base_nonce", ks_context, AEAD_NONCE_SIZE)
        return key, base_nonce

    def new_sender(self, pub: HybridPublicKey) -> SenderContext:
        shared_secret, enc = self._encap(pub)
        key, base_nonce = self._key_schedule(shared_secret)
        return SenderContext(key, base_nonce, enc)

    def new_recipient(self, priv: HybridPrivateKey, encapsulation: bytes) -> RecipientContext:
        shared_secret = self._decap(priv, encapsulation)
        key, base_nonce = self._key_schedule(shared_secret)
        return RecipientContext(key, base_nonce)


SUITE = Suite()


def compute_pubkey_fingerprint(public_key: bytes) -> str:
    """
    Stable short fingerprint of a serialized public key.

    Hex SHA256 truncated to 32 chars. Safe to log and display; key
    material itself is never logged.
    """
    return hashlib.sha256(public_key).hexdigest()[:32]
