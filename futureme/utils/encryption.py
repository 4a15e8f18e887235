"""
Symmetric encryption for message subjects and bodies.

Content is stored as URL-safe base64 of ``nonce (12) + ciphertext + tag (16)``
produced by AES-256-GCM. The AES key is derived from APP_ENCRYPTION_KEY
with HKDF-SHA256, so any configured secret string works as key material.
"""

import base64
import binascii
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from futureme.errors import DecryptionError
from futureme.utils.logging import crypto_logger as logger

NONCE_LENGTH = 12
TAG_LENGTH = 16
KEY_INFO = b"futureme-message-v1"


def derive_key(secret: str) -> bytes:
    """HKDF-SHA256 → 32-byte AES-256 key."""
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=KEY_INFO,
    ).derive(secret.encode("utf-8"))


class PayloadCodec:
    """Encrypts message content at creation and decrypts it right before dispatch."""

    def __init__(self, secret: Optional[str]):
        self._aesgcm = AESGCM(derive_key(secret)) if secret else None

    @property
    def configured(self) -> bool:
        return self._aesgcm is not None

    def encrypt(self, plaintext: str) -> str:
        """Raises ValueError when no key is configured."""
        if self._aesgcm is None:
            raise ValueError("APP_ENCRYPTION_KEY is not configured")
        nonce = os.urandom(NONCE_LENGTH)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.urlsafe_b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        aesgcm = self._aesgcm
        if aesgcm is None:
            raise DecryptionError("APP_ENCRYPTION_KEY is not configured")
        try:
            payload = base64.urlsafe_b64decode(ciphertext.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError, ValueError) as e:
            raise DecryptionError(f"Ciphertext is not valid base64: {e}") from e

        if len(payload) < NONCE_LENGTH + TAG_LENGTH:
            raise DecryptionError("Ciphertext is too short")

        nonce, sealed = payload[:NONCE_LENGTH], payload[NONCE_LENGTH:]
        try:
            plaintext = aesgcm.decrypt(nonce, sealed, None)
        except InvalidTag as e:
            raise DecryptionError("Ciphertext failed authentication (wrong key or corrupted data)") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted content is not valid UTF-8") from e


_codec: Optional[PayloadCodec] = None


def get_codec() -> PayloadCodec:
    """Codec built from the global config, created on first use."""
    global _codec

    if _codec is None:
        from futureme.config import config
        _codec = PayloadCodec(config.APP_ENCRYPTION_KEY)
        if not _codec.configured:
            logger.warning("APP_ENCRYPTION_KEY is not set; encrypt and decrypt will fail")
    return _codec

