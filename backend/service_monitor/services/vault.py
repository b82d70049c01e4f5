"""Credential vault - reversible encryption for channel secrets at rest.

AES-256-CBC with a fresh random IV per value, rendered as
``<ivHex>:<cipherHex>``. The key is generated once per process unless one is
supplied, so values encrypted before a restart cannot be decrypted after it
when no ENCRYPTION_KEY is configured.
"""
import logging
import os
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 16  # For AES, this is always 16
DELIMITER = ":"


class CredentialVault:
    """Encrypts and decrypts short secrets with a process-held key."""

    def __init__(self, key: Optional[bytes] = None):
        if key is None:
            key = os.urandom(KEY_LENGTH)
            self.ephemeral = True
        else:
            if len(key) != KEY_LENGTH:
                raise ValueError(f"Encryption key must be {KEY_LENGTH} bytes, got {len(key)}")
            self.ephemeral = False
        self._key = key

    @classmethod
    def from_hex(cls, key_hex: Optional[str]) -> "CredentialVault":
        """Build a vault from a hex key, or with a per-process key when unset."""
        if not key_hex:
            logger.warning(
                "No ENCRYPTION_KEY configured - using a per-process key; "
                "stored notification secrets will not decrypt after a restart"
            )
            return cls()
        return cls(bytes.fromhex(key_hex))

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return plaintext

        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        data = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        encrypted = encryptor.update(data) + encryptor.finalize()
        return f"{iv.hex()}{DELIMITER}{encrypted.hex()}"

    def decrypt(self, text: str) -> str:
        """Decrypt a vault value.

        Text without the delimiter is treated as plaintext and returned
        unchanged. A value that cannot be decrypted yields an empty string.
        """
        if not text or DELIMITER not in text:
            return text

        iv_hex, encrypted_hex = text.split(DELIMITER, 1)
        try:
            iv = bytes.fromhex(iv_hex)
            encrypted = bytes.fromhex(encrypted_hex)

            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            data = decryptor.update(encrypted) + decryptor.finalize()

            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(data) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except ValueError as e:
            # Covers bad hex, wrong IV length, bad padding and non-UTF-8 output
            logger.warning(f"Could not decrypt stored secret: {type(e).__name__}")
            return ""
