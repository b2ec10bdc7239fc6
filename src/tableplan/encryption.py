# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Field-level encryption for customer contact data.

Columns declared with ``encrypted=True`` (customer email and phone) are
stored as ``ENC:<base64(nonce + ciphertext)>`` using AES-256-GCM. When no key
is configured the values are stored in plaintext.

Key sources, in priority order:
1. ``TABLEPLAN_ENCRYPTION_KEY`` environment variable (base64, 32 bytes)
2. ``/run/secrets/encryption_key`` file (Docker/Kubernetes secrets)
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import secrets
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32

ENCRYPTED_PREFIX = "ENC:"
SECRETS_PATH = Path("/run/secrets/encryption_key")


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class EncryptionKeyNotConfigured(EncryptionError):
    """Raised when an operation needs a key and none is loaded."""


def generate_key() -> str:
    """Return a new random key, base64-encoded for TABLEPLAN_ENCRYPTION_KEY."""
    return base64.b64encode(secrets.token_bytes(KEY_SIZE)).decode()


def is_encrypted(value: object) -> bool:
    return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)


def _check_key(key: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise EncryptionError(f"Key must be {KEY_SIZE} bytes")


def encrypt_value_with_key(plaintext: str, key: bytes) -> str:
    """Encrypt ``plaintext``; empty and already-encrypted values pass through."""
    if not plaintext or is_encrypted(plaintext):
        return plaintext
    _check_key(key)

    nonce = secrets.token_bytes(NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return ENCRYPTED_PREFIX + base64.b64encode(nonce + ciphertext).decode("ascii")


def decrypt_value_with_key(encrypted: str, key: bytes) -> str:
    """Decrypt a value produced by encrypt_value_with_key().

    Raises:
        EncryptionError: Malformed payload or wrong key.
    """
    if not encrypted or not is_encrypted(encrypted):
        return encrypted
    _check_key(key)

    try:
        data = base64.b64decode(encrypted[len(ENCRYPTED_PREFIX) :], validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionError(f"Invalid encrypted data format: {e}") from e

    if len(data) < NONCE_SIZE + TAG_SIZE:
        raise EncryptionError("Encrypted data too short")

    nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None).decode("utf-8")
    except InvalidTag as e:
        raise EncryptionError("Decryption failed: authentication tag mismatch") from e


class EncryptionManager:
    """Loads the service encryption key and encrypts/decrypts single values.

    Attributes:
        service: Owning service instance.
        key: Loaded 32-byte key, or None when encryption is disabled.
    """

    def __init__(self, parent: object, env_var: str = "TABLEPLAN_ENCRYPTION_KEY"):
        self.service = parent
        self._env_var = env_var
        self._key: bytes | None = None
        self._load_key()

    def _load_key(self) -> None:
        key_b64 = os.environ.get(self._env_var)
        if key_b64:
            try:
                key = base64.b64decode(key_b64, validate=True)
            except (binascii.Error, ValueError):
                logger.warning("%s is not valid base64, encryption disabled", self._env_var)
                return
            if len(key) != KEY_SIZE:
                logger.warning("%s must decode to %d bytes", self._env_var, KEY_SIZE)
                return
            self._key = key
            return

        if SECRETS_PATH.exists():
            key = SECRETS_PATH.read_bytes().strip()
            if len(key) == KEY_SIZE:
                self._key = key
            else:
                logger.warning("Ignoring %s: key must be %d bytes", SECRETS_PATH, KEY_SIZE)

    @property
    def key(self) -> bytes | None:
        return self._key

    @property
    def is_configured(self) -> bool:
        return self._key is not None

    def set_key(self, key: bytes) -> None:
        """Set the key programmatically (tests, key rotation tooling)."""
        if len(key) != KEY_SIZE:
            raise ValueError(f"Encryption key must be {KEY_SIZE} bytes")
        self._key = key

    def encrypt(self, plaintext: str) -> str:
        if self._key is None:
            raise EncryptionKeyNotConfigured("Encryption key not configured")
        return encrypt_value_with_key(plaintext, self._key)

    def decrypt(self, encrypted: str) -> str:
        if self._key is None:
            raise EncryptionKeyNotConfigured("Encryption key not configured")
        return decrypt_value_with_key(encrypted, self._key)


__all__ = [
    "ENCRYPTED_PREFIX",
    "EncryptionError",
    "EncryptionKeyNotConfigured",
    "EncryptionManager",
    "decrypt_value_with_key",
    "encrypt_value_with_key",
    "generate_key",
    "is_encrypted",
]
