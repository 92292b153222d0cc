"""PII encryption and password hashing primitives."""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os

import bcrypt
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

NONCE_SIZE = 12  # 96-bit nonce for AES-GCM


class CipherError(Exception):
    """Raised when a ciphertext cannot be decrypted."""


class PIICipher:
    """Deterministic hash index and reversible encryption for PII fields.

    Emails are stored both as a hash (for equality checks without
    decryption) and as ciphertext (for display to their owner).
    Birthdates are only stored encrypted.
    """

    def __init__(self, encryption_key: bytes) -> None:
        if len(encryption_key) != 32:
            raise ValueError("Encryption key must be 32 bytes (256-bit)")
        self._aesgcm = AESGCM(encryption_key)

    @classmethod
    def from_hex(cls, hex_key: str) -> PIICipher:
        """Create a cipher from a 64-character hex string."""
        return cls(bytes.fromhex(hex_key))

    @staticmethod
    def hash_index(plaintext: str) -> str:
        """SHA3-256 hex digest used as the indexable representation."""
        return hashlib.sha3_256(plaintext.encode("utf-8")).hexdigest()

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a value into URL-safe base64 text (nonce || ciphertext || tag)."""
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.urlsafe_b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt text produced by encrypt().

        Raises:
            CipherError: If the input is malformed or fails authentication.
        """
        try:
            raw = base64.urlsafe_b64decode(ciphertext.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError) as e:
            raise CipherError("Ciphertext is not valid base64") from e

        if len(raw) <= NONCE_SIZE:
            raise CipherError("Ciphertext is too short")

        try:
            plaintext = self._aesgcm.decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)
        except InvalidTag as e:
            raise CipherError("Ciphertext failed authentication") from e

        return plaintext.decode("utf-8")


class CredentialVerifier:
    """bcrypt password hashing and comparison."""

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password with a fresh salt."""
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, digest: str, candidate: str) -> bool:
        """Check a candidate password against a stored digest."""
        try:
            return bcrypt.checkpw(candidate.encode("utf-8"), digest.encode("utf-8"))
        except ValueError:
            # Malformed or legacy digest
            logger.warning("Stored password digest could not be parsed")
            return False
