"""AES-256-GCM encryption for OAuth tokens and other stored secrets.

This module provides authenticated encryption of credential strings using
AESGCM from the cryptography library. The master key is validated against
the deployment environment's key policy when the service is constructed, so
an unsafe key stops the process at startup rather than on first use.

Envelope format (stable, stored in the database):
    base64( nonce[16] || tag[16] || ciphertext )

Usage:
    from tokenvault.utils.encryption import get_encryption_service

    service = get_encryption_service()
    envelope = service.encrypt("ya29.a0...")
    token = service.decrypt(envelope)

Security Notes:
    - NEVER log the master key, plaintext tokens or envelopes
    - A fresh random nonce is drawn for every encrypt call
    - Changing the envelope layout requires re-encrypting stored credentials
"""

import base64
import binascii
import os
from functools import lru_cache

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from tokenvault import config
from tokenvault.exceptions import DecryptionError
from tokenvault.utils.key_policy import KEY_LENGTH, DeploymentEnvironment, validate_master_key

log = structlog.get_logger(__name__)

NONCE_LENGTH = 16
TAG_LENGTH = 16
MIN_ENVELOPE_LENGTH = NONCE_LENGTH + TAG_LENGTH


class EncryptionService:
    """Authenticated encryption of secret strings under a single master key.

    The service holds only the validated key (inside an AESGCM cipher) and
    keeps no per-call state, so one instance can be shared by any number of
    threads or tasks.

    Args:
        master_key: 64 hex character key. Whitespace and case are ignored.
        environment: Deployment environment selecting the key policy. It is
            always supplied by the caller; use from_env() to read it from
            APP_ENV.

    Raises:
        EncryptionKeyMissingError: If master_key is empty.
        MalformedKeyError: If master_key is not 64 hex characters.
        WeakKeyError: If master_key is denylisted and environment is production.

    Example:
        >>> service = EncryptionService(key_hex, DeploymentEnvironment.PRODUCTION)
        >>> envelope = service.encrypt("my-oauth-token")
        >>> service.decrypt(envelope)
        'my-oauth-token'
    """

    def __init__(self, master_key: str, environment: DeploymentEnvironment) -> None:
        self.environment = environment
        self._cipher = AESGCM(validate_master_key(master_key, environment))
        log.info("encryption_service_initialized", environment=environment.value)

    def __repr__(self) -> str:
        return f"EncryptionService(environment={self.environment.value!r})"

    @classmethod
    def from_env(cls) -> "EncryptionService":
        """Build a service from ENCRYPTION_KEY and APP_ENV.

        Raises:
            EncryptionKeyMissingError: If ENCRYPTION_KEY is not set.
            MalformedKeyError: If ENCRYPTION_KEY is malformed.
            WeakKeyError: If ENCRYPTION_KEY is weak and APP_ENV resolves to production.
        """
        return cls(config.get_encryption_key(), config.get_deployment_environment())

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a secret string into a base64 envelope.

        Args:
            plaintext: The sensitive string to encrypt (e.g., OAuth token).

        Returns:
            Base64 envelope suitable for text column storage.

        Raises:
            TypeError: If plaintext is not a string.
            ValueError: If plaintext cannot be encoded as UTF-8 (lone surrogates).
        """
        if not isinstance(plaintext, str):
            raise TypeError(f"plaintext must be str, not {type(plaintext).__name__}")

        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError("plaintext is not valid UTF-8 text") from e

        nonce = os.urandom(NONCE_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._cipher.encrypt(nonce, data, None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, envelope: str, context: str | None = None) -> str:
        """Decrypt an envelope produced by encrypt().

        Args:
            envelope: Base64 envelope from storage.
            context: Optional non-secret identifier for error messages.

        Returns:
            The original plaintext string.

        Raises:
            DecryptionError: If the envelope is malformed or truncated, was
                modified, or was produced under a different key.
        """
        if not isinstance(envelope, str):
            raise self._failure("not_a_string", "envelope must be a base64 string", context)

        try:
            raw = base64.b64decode(envelope, validate=True)
        except (binascii.Error, ValueError) as e:
            raise self._failure("invalid_base64", "envelope is not valid base64", context) from e

        # Reject encodings that decode to the same bytes (e.g. altered padding bits)
        if base64.b64encode(raw).decode("ascii") != envelope:
            raise self._failure("non_canonical", "envelope is not canonical base64", context)

        if len(raw) < MIN_ENVELOPE_LENGTH:
            raise self._failure("truncated", "envelope is truncated", context)

        nonce = raw[:NONCE_LENGTH]
        tag = raw[NONCE_LENGTH:MIN_ENVELOPE_LENGTH]
        ciphertext = raw[MIN_ENVELOPE_LENGTH:]

        try:
            plaintext = self._cipher.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            raise self._failure(
                "authentication_failed",
                "invalid encryption key or corrupted data",
                context,
            ) from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise self._failure("invalid_utf8", "plaintext is not valid UTF-8", context) from e

    @staticmethod
    def _failure(reason: str, detail: str, context: str | None) -> DecryptionError:
        log.warning("decryption_failed", reason=reason, context=context)
        return DecryptionError(f"Decryption failed: {detail}", context=context)


def generate_master_key() -> str:
    """Generate a random 256-bit master key as 64 lowercase hex characters."""
    return AESGCM.generate_key(bit_length=KEY_LENGTH * 8).hex()


@lru_cache(maxsize=1)
def get_encryption_service() -> EncryptionService:
    """Get the process-wide EncryptionService built from the environment.

    The first call validates ENCRYPTION_KEY against APP_ENV; call it during
    startup so configuration errors abort the process immediately.

    Returns:
        The cached EncryptionService instance.

    Raises:
        EncryptionKeyError: If the configured key is missing, malformed or weak.
    """
    return EncryptionService.from_env()


def reset_encryption_service() -> None:
    """Drop the cached service (for testing only)."""
    get_encryption_service.cache_clear()
