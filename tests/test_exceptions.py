"""Tests for custom exception classes.

Tests cover:
- The key error hierarchy under ConfigurationError (P1)
- WeakKeyError check reporting (P2)
- DecryptionError context handling (P2)
- CredentialNotFoundError message (P2)
"""

import pytest

from tokenvault.exceptions import (
    ConfigurationError,
    CredentialNotFoundError,
    DecryptionError,
    EncryptionKeyError,
    EncryptionKeyMissingError,
    MalformedKeyError,
    WeakKeyError,
)


class TestKeyErrorHierarchy:
    """Tests for the master key error hierarchy (P1)."""

    @pytest.mark.parametrize(
        "error",
        [
            EncryptionKeyMissingError("missing"),
            MalformedKeyError("malformed"),
            WeakKeyError("weak", check="all_zero"),
        ],
    )
    def test_key_errors_are_configuration_errors(self, error: Exception) -> None:
        """[P1] Test key errors can be caught as startup configuration errors.

        GIVEN: Any master key error
        WHEN: Caught as EncryptionKeyError or ConfigurationError
        THEN: The handler receives it
        """
        with pytest.raises(EncryptionKeyError):
            raise error
        with pytest.raises(ConfigurationError):
            raise error

    def test_decryption_error_is_not_a_configuration_error(self) -> None:
        """[P1] Test decryption failures are reported separately from startup errors."""
        assert not issubclass(DecryptionError, ConfigurationError)


class TestWeakKeyError:
    """Tests for WeakKeyError (P2)."""

    def test_check_is_preserved(self) -> None:
        """[P2] Test WeakKeyError exposes the matched check."""
        error = WeakKeyError("Cannot use example or weak encryption keys", check="short_period")

        assert error.check == "short_period"
        assert str(error) == "Cannot use example or weak encryption keys (check=short_period)"


class TestDecryptionError:
    """Tests for DecryptionError (P2)."""

    def test_message_without_context(self) -> None:
        """[P2] Test message is unchanged when no context is given."""
        error = DecryptionError("Decryption failed: envelope is truncated")

        assert error.context is None
        assert str(error) == "Decryption failed: envelope is truncated"

    def test_message_with_context(self) -> None:
        """[P2] Test context is appended to the message."""
        error = DecryptionError("Decryption failed", context="conn-1")

        assert str(error) == "Decryption failed (context=conn-1)"


class TestCredentialNotFoundError:
    """Tests for CredentialNotFoundError (P2)."""

    def test_message_names_connection(self) -> None:
        """[P2] Test the connection id is kept and reported."""
        error = CredentialNotFoundError("abc")

        assert error.connection_id == "abc"
        assert str(error) == "OAuth connection not found: abc"
