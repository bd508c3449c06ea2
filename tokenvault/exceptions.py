"""Shared exceptions for the credential encryption service.

This module contains exception classes used across the encryption utilities
and the credential store so that neither depends on the other for its errors.

Hierarchy:
    ConfigurationError
        EncryptionKeyError
            EncryptionKeyMissingError
            MalformedKeyError
            WeakKeyError
    DecryptionError
    CredentialNotFoundError
"""


class ConfigurationError(Exception):
    """Raised when required configuration is missing or unusable.

    Configuration errors are raised at startup and are never retried: the
    hosting process is expected to abort.
    """

    pass


class EncryptionKeyError(ConfigurationError):
    """Base class for master encryption key problems detected at construction."""

    pass


class EncryptionKeyMissingError(EncryptionKeyError):
    """Raised when no master key was supplied (ENCRYPTION_KEY unset or empty)."""

    pass


class MalformedKeyError(EncryptionKeyError):
    """Raised when the master key is not exactly 64 hexadecimal characters.

    Malformed keys are rejected in every deployment environment.
    """

    pass


class WeakKeyError(EncryptionKeyError):
    """Raised when a denylisted key is supplied in production.

    Attributes:
        check: Name of the weak-key check that matched (e.g. "short_period").
            Never contains key material.
    """

    def __init__(self, message: str, check: str) -> None:
        self.check = check
        super().__init__(message)

    def __str__(self) -> str:
        return f"{super().__str__()} (check={self.check})"


class DecryptionError(Exception):
    """Raised when an envelope cannot be decrypted.

    Covers malformed or truncated envelopes, failed authentication tags
    (tampering) and envelopes produced under a different key. The message
    never includes ciphertext or plaintext.

    Attributes:
        context: Optional non-secret identifier of the credential being
            decrypted (e.g. an OAuth connection id).

    Example:
        >>> raise DecryptionError("Authentication tag mismatch", context="conn-42")
    """

    def __init__(self, message: str, context: str | None = None) -> None:
        """Initialize DecryptionError with message and optional context.

        Args:
            message: Human-readable error description.
            context: Optional identifier for debugging.
        """
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with context if available."""
        if self.context:
            return f"{super().__str__()} (context={self.context})"
        return super().__str__()


class CredentialNotFoundError(Exception):
    """Raised when an OAuth connection referenced by id does not exist."""

    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        super().__init__(f"OAuth connection not found: {connection_id}")
