"""Envelope encryption for secrets stored at rest

Each call derives a fresh AES-256-GCM key from the caller's token and a new
random salt (PBKDF2-HMAC-SHA256). The output is one base64 string holding
``salt || iv || tag || ciphertext``; the component lengths are fixed, so
decoding is positional.
"""

import base64
import binascii
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_LENGTH = 64
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
ITERATIONS = 100_000

HEADER_LENGTH = SALT_LENGTH + IV_LENGTH + TAG_LENGTH


class DecryptionError(Exception):
    """Raised when a sealed blob cannot be opened.

    Wrong token, tampering and truncation all produce the same error.
    """

    def __init__(self, message: str = "Decryption failed"):
        super().__init__(message)


@dataclass(frozen=True)
class SealedBlob:
    salt: bytes
    iv: bytes
    tag: bytes
    ciphertext: bytes

    def to_bytes(self) -> bytes:
        return self.salt + self.iv + self.tag + self.ciphertext

    def to_text(self) -> str:
        return base64.b64encode(self.to_bytes()).decode("ascii")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "SealedBlob":
        if len(raw) < HEADER_LENGTH:
            raise DecryptionError()
        return cls(
            salt=raw[:SALT_LENGTH],
            iv=raw[SALT_LENGTH:SALT_LENGTH + IV_LENGTH],
            tag=raw[SALT_LENGTH + IV_LENGTH:HEADER_LENGTH],
            ciphertext=raw[HEADER_LENGTH:],
        )

    @classmethod
    def from_text(cls, text: str) -> "SealedBlob":
        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            raise DecryptionError() from None
        return cls.from_bytes(raw)


def derive_key(token: str, salt: bytes) -> bytes:
    """Derive the AES key for ``token`` and ``salt`` (CPU bound, blocking)"""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=ITERATIONS,
    )
    return kdf.derive(token.encode("utf-8"))


def seal(plaintext: str, token: str) -> str:
    """Encrypt ``plaintext`` under ``token``

    Returns:
        Base64 text of salt + iv + tag + ciphertext
    """
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    key = derive_key(token, salt)

    # AESGCM appends the tag to the ciphertext
    encrypted = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = encrypted[:-TAG_LENGTH], encrypted[-TAG_LENGTH:]

    return SealedBlob(salt=salt, iv=iv, tag=tag, ciphertext=ciphertext).to_text()


def open_sealed(blob: str, token: str) -> str:
    """Decrypt a blob produced by :func:`seal`

    Raises:
        DecryptionError: Wrong token or corrupted blob
    """
    sealed = SealedBlob.from_text(blob)
    key = derive_key(token, sealed.salt)

    try:
        plaintext = AESGCM(key).decrypt(sealed.iv, sealed.ciphertext + sealed.tag, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError):
        raise DecryptionError() from None
