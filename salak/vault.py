"""AES-256-GCM encryption of user supplied API keys.

The operator's master secret is hashed with SHA-256 to get the 32 byte cipher
key, so any non-empty secret works. Every encryption uses a fresh 12 byte
nonce. The ciphertext, nonce and tag are returned as three separate base64
strings; all three are needed to decrypt.

Nothing here logs plaintext, the master secret or the derived key.
"""
import base64
import binascii
import hashlib
import logging
import secrets
from typing import Any, Mapping, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .domain import EncryptedSecret
from .exceptions import ConfigurationError, CryptographicError, ValidationError

log = logging.getLogger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 12
TAG_LENGTH = 16


def derive_key(master_secret: Optional[str]) -> bytes:
    """Derive the cipher key from the master secret."""
    if not isinstance(master_secret, str) or not master_secret.strip():
        raise ConfigurationError("API_KEY_ENCRYPTION_SECRET is not set")
    return hashlib.sha256(master_secret.encode("utf-8")).digest()


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(field: str, value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as ex:
        raise ValidationError(f"{field} is not valid base64") from ex


def encrypt(plaintext: str, master_secret: Optional[str]) -> EncryptedSecret:
    """Encrypt ``plaintext``.

    Raises :class:`ValidationError` for empty input, before touching the
    cipher, and :class:`ConfigurationError` if the master secret is unset.
    """
    if not isinstance(plaintext, str) or not plaintext.strip():
        raise ValidationError("Plaintext must be a non-empty string")

    key = derive_key(master_secret)
    nonce = secrets.token_bytes(IV_LENGTH)
    try:
        sealed = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    except Exception as ex:
        log.error("encryption failed: %s", type(ex).__name__)
        raise CryptographicError("Encryption failed") from ex

    # AESGCM appends the tag to the ciphertext.
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return EncryptedSecret(
        encrypted_key=_b64(ciphertext),
        iv=_b64(nonce),
        auth_tag=_b64(tag),
    )


def _field(sealed: Any, name: str) -> Any:
    if isinstance(sealed, Mapping):
        return sealed.get(name)
    return getattr(sealed, name, None)


def decrypt(sealed: Union[EncryptedSecret, Mapping[str, str]],
            master_secret: Optional[str]) -> str:
    """Decrypt an :class:`EncryptedSecret` (or a row holding the same three
    fields) back to the original string.

    Every field is checked before the cipher runs. A wrong master secret and
    tampered data both raise the same :class:`CryptographicError`.
    """
    fields = {}
    for field in ("encrypted_key", "iv", "auth_tag"):
        value = _field(sealed, field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{field} is required and must be a non-empty string")
        fields[field] = value

    key = derive_key(master_secret)

    ciphertext = _unb64("encrypted_key", fields["encrypted_key"])
    nonce = _unb64("iv", fields["iv"])
    tag = _unb64("auth_tag", fields["auth_tag"])
    if not ciphertext:
        raise ValidationError("encrypted_key is empty")
    if len(nonce) != IV_LENGTH:
        raise ValidationError(f"Invalid IV length: expected {IV_LENGTH} bytes, got {len(nonce)}")
    if len(tag) != TAG_LENGTH:
        raise ValidationError(f"Invalid auth tag length: expected {TAG_LENGTH} bytes, got {len(tag)}")

    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
        return plaintext.decode("utf-8")
    except InvalidTag as ex:
        log.warning("decryption failed: authentication tag did not verify")
        raise CryptographicError("Decryption failed") from ex
    except Exception as ex:
        log.error("decryption failed: %s", type(ex).__name__)
        raise CryptographicError("Decryption failed") from ex
