"""
credential_service.py — Encrypted storage for per-client integration configs.

Configs are encrypted at rest with AES-256-GCM. The 32-byte key comes from
INTEGRATION_ENCRYPTION_KEY (64 hex chars). A stored token is
base64(nonce[12] | tag[16] | ciphertext).

Business Rules:
- Plaintext configs never touch the database and never leave via the API
- A missing or malformed key fails at call time with KeyConfigurationError
- Any tampering (or a different key) fails with AuthenticationError
- Masked values show the first and last 4 chars of long secrets only

Called by: services/integration_service.py, routers/integrations.py
Depends on: config.py (integration_encryption_key), cryptography
"""

import base64
import binascii
import json
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..config import settings

NONCE_LENGTH = 12
TAG_LENGTH = 16
KEY_HEX_LENGTH = 64
MASK = "••••"
SECRET_KEY_MARKERS = ("token", "secret", "key", "password")


class CredentialError(Exception):
    """Base for credential store failures."""


class KeyConfigurationError(CredentialError):
    """Encryption key missing or not 32 bytes of hex."""


class DecryptionError(CredentialError):
    """Stored token could not be decrypted."""


class AuthenticationError(DecryptionError):
    """GCM tag did not verify: wrong key or tampered ciphertext."""


def _load_key(hex_key: str | None = None) -> bytes:
    raw = settings.integration_encryption_key if hex_key is None else hex_key
    if not raw or len(raw) != KEY_HEX_LENGTH:
        raise KeyConfigurationError(
            "INTEGRATION_ENCRYPTION_KEY must be a 64-character hex string (32 bytes)"
        )
    try:
        return bytes.fromhex(raw)
    except ValueError as e:
        raise KeyConfigurationError("INTEGRATION_ENCRYPTION_KEY is not valid hex") from e


def encrypt_value(plaintext: str, *, key: str | None = None) -> str:
    """Encrypt a string. Returns base64(nonce | tag | ciphertext)."""
    aes = AESGCM(_load_key(key))
    nonce = os.urandom(NONCE_LENGTH)
    # AESGCM appends the tag to the ciphertext; store it up front instead
    sealed = aes.encrypt(nonce, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return base64.b64encode(nonce + tag + ciphertext).decode("ascii")


def decrypt_value(token: str, *, key: str | None = None) -> str:
    """Decrypt a token produced by encrypt_value."""
    aes = AESGCM(_load_key(key))
    try:
        packed = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AuthenticationError("Encrypted config is not valid base64") from e
    if len(packed) < NONCE_LENGTH + TAG_LENGTH:
        raise AuthenticationError("Encrypted config is truncated")

    nonce = packed[:NONCE_LENGTH]
    tag = packed[NONCE_LENGTH:NONCE_LENGTH + TAG_LENGTH]
    ciphertext = packed[NONCE_LENGTH + TAG_LENGTH:]
    try:
        plaintext = aes.decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as e:
        raise AuthenticationError("Encrypted config failed authentication") from e
    return plaintext.decode("utf-8")


def encrypt_config(config: dict, *, key: str | None = None) -> str:
    """Serialize a provider config to JSON and encrypt it."""
    return encrypt_value(json.dumps(config), key=key)


def decrypt_config(token: str, *, key: str | None = None) -> dict:
    """Decrypt and parse a provider config."""
    raw = decrypt_value(token, key=key)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise DecryptionError("Decrypted config is not valid JSON") from e


def mask_value(plaintext: str) -> str:
    """Mask a secret for display: first 4 + •••• + last 4 when long enough."""
    if not plaintext:
        return ""
    if len(plaintext) > 8:
        return f"{plaintext[:4]}{MASK}{plaintext[-4:]}"
    return MASK * 2


def mask_config(config: dict) -> dict:
    """Mask every value whose key looks like a secret. Other values pass through."""
    masked = {}
    for k, v in config.items():
        if any(marker in k.lower() for marker in SECRET_KEY_MARKERS) and isinstance(v, str):
            masked[k] = mask_value(v)
        else:
            masked[k] = v
    return masked
