"""
Symmetric encryption for sensitive fields stored in the database.

Tokens look like ``enc:<nonce hex>:<ciphertext hex>`` (AES-256-GCM, 96-bit nonce).
Values without the ``enc:`` prefix are treated as legacy plaintext and returned
unchanged by ``decrypt_value``, so rows written before encryption was enabled
keep working without a data migration.
"""
import hashlib
import logging
import os
from typing import List, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.config import settings

logger = logging.getLogger(__name__)

PREFIX = "enc"
NONCE_SIZE = 12


def _derive_key() -> bytes:
    """Derive a 256-bit AES key from field_encryption_key via SHA-256."""
    return hashlib.sha256(settings.field_encryption_key.encode()).digest()


def is_encrypted(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(PREFIX + ":")


def encrypt_value(plaintext: str) -> str:
    """Encrypt a plaintext string into a tagged hex token."""
    if not plaintext:
        return plaintext
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = AESGCM(_derive_key()).encrypt(nonce, plaintext.encode("utf-8"), None)
    return f"{PREFIX}:{nonce.hex()}:{ciphertext.hex()}"


def decrypt_value(token: str) -> str:
    """
    Decrypt a token produced by encrypt_value.

    Untagged input and malformed tokens (wrong number of ':' parts) come back
    verbatim. A well-formed token that fails authentication raises InvalidTag.
    """
    if not is_encrypted(token):
        return token
    parts = token.split(":")
    if len(parts) != 3:
        return token
    try:
        nonce = bytes.fromhex(parts[1])
        ciphertext = bytes.fromhex(parts[2])
    except ValueError:
        logger.warning("Encrypted value has non-hex segments; returning as-is")
        return token
    try:
        return AESGCM(_derive_key()).decrypt(nonce, ciphertext, None).decode("utf-8")
    except InvalidTag:
        logger.error("Failed to decrypt field value: authentication tag mismatch")
        raise


def encrypt_values(values: List[Optional[str]]) -> List[Optional[str]]:
    """Encrypt a batch, keeping order; None and empty entries pass through."""
    return [encrypt_value(v) if v else v for v in values]


def decrypt_values(values: List[Optional[str]]) -> List[Optional[str]]:
    """Decrypt a batch, keeping order; None and empty entries pass through."""
    return [decrypt_value(v) if v else v for v in values]
