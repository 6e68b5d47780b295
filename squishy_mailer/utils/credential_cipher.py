"""
Envelope encryption for stored transport credentials.

Responsibilities:
- Encrypt secrets with AES-128-GCM under a long-lived key and a fresh random
  96-bit nonce per call (no associated data)
- Decrypt and fail closed on any integrity check failure
- Encode the pair as ``hex(nonce) || hex(ciphertext)`` for the
  ``encrypted_password`` column, splitting at a fixed 24 character offset
"""
from __future__ import annotations

import binascii
import secrets
from enum import Enum
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from squishy_mailer.errors import CipherError, ErrorCode

KEY_SIZE = 16
NONCE_SIZE = 12
# Protocol constant: the text envelope is split positionally at this offset.
NONCE_HEX_LENGTH = NONCE_SIZE * 2


class CipherMode(Enum):
    AES_GCM_RANDOM_NONCE = "aes-gcm-random-nonce"


class CredentialCipher:
    """Authenticated encryption of secret strings.

    Instances hold only the key and are safe to share between threads.
    """

    def __init__(self, key: bytes, mode: CipherMode = CipherMode.AES_GCM_RANDOM_NONCE):
        if mode is not CipherMode.AES_GCM_RANDOM_NONCE:
            raise CipherError(
                ErrorCode.ENCRYPTION_CONFIG_INVALID,
                "AES-GCM with a random nonce is the only supported mode",
            )
        if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
            raise CipherError(
                ErrorCode.ENCRYPTION_CONFIG_INVALID,
                f"key must be exactly {KEY_SIZE} bytes",
            )
        self.mode = mode
        self._aead = AESGCM(bytes(key))

    @classmethod
    def from_hex_key(cls, hex_key: str) -> "CredentialCipher":
        """Build a cipher from the 32 character hex form of the key."""
        try:
            key = bytes.fromhex(hex_key or "")
        except ValueError as exc:
            raise CipherError(
                ErrorCode.ENCRYPTION_CONFIG_INVALID,
                f"hex encoded key is invalid, must be {KEY_SIZE * 2} characters [0-9a-f]",
            ) from exc
        return cls(key)

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        """Return ``(nonce, ciphertext)``; the ciphertext includes the GCM tag."""
        nonce = secrets.token_bytes(NONCE_SIZE)
        return nonce, self._aead.encrypt(nonce, plaintext, None)

    def decrypt(self, nonce: bytes, ciphertext: bytes) -> bytes:
        if len(nonce) != NONCE_SIZE:
            raise CipherError(ErrorCode.AUTHENTICATION_FAILURE, "nonce has the wrong length")
        try:
            return self._aead.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise CipherError(ErrorCode.AUTHENTICATION_FAILURE) from exc

    def encrypt_to_text(self, plaintext: str) -> str:
        nonce, ciphertext = self.encrypt(plaintext.encode("utf-8"))
        return nonce.hex() + ciphertext.hex()

    def decrypt_from_text(self, envelope: str) -> str:
        nonce_hex, ciphertext_hex = envelope[:NONCE_HEX_LENGTH], envelope[NONCE_HEX_LENGTH:]
        if len(nonce_hex) != NONCE_HEX_LENGTH:
            raise CipherError(ErrorCode.AUTHENTICATION_FAILURE, "envelope is too short")
        try:
            nonce = binascii.unhexlify(nonce_hex)
            ciphertext = binascii.unhexlify(ciphertext_hex)
        except (binascii.Error, ValueError) as exc:
            raise CipherError(ErrorCode.AUTHENTICATION_FAILURE, "envelope is not valid hex") from exc
        plaintext = self.decrypt(nonce, ciphertext)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CipherError(ErrorCode.AUTHENTICATION_FAILURE, "plaintext is not utf-8") from exc
