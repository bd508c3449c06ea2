"""Credential encryption service for stored OAuth tokens.

This package validates the master encryption key at startup, encrypts and
decrypts credential strings with AES-256-GCM, and persists encrypted OAuth
tokens through the credential store in tokenvault.services.
"""

from tokenvault.exceptions import (
    ConfigurationError,
    DecryptionError,
    EncryptionKeyError,
    EncryptionKeyMissingError,
    MalformedKeyError,
    WeakKeyError,
)
from tokenvault.utils.encryption import EncryptionService, get_encryption_service
from tokenvault.utils.key_policy import DeploymentEnvironment

__all__ = [
    "ConfigurationError",
    "DecryptionError",
    "DeploymentEnvironment",
    "EncryptionKeyError",
    "EncryptionKeyMissingError",
    "EncryptionService",
    "MalformedKeyError",
    "WeakKeyError",
    "get_encryption_service",
]
