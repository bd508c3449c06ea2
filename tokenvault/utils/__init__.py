"""Cross-cutting utilities for the credential encryption service.

Modules:
    key_policy: Master key parsing and the environment-dependent weak-key policy.
    encryption: AES-256-GCM encryption for OAuth tokens and API keys.
    hashing: Email lookup hashes, session identifiers and password hashing.
"""

from tokenvault.utils.encryption import (
    EncryptionService,
    generate_master_key,
    get_encryption_service,
    reset_encryption_service,
)
from tokenvault.utils.key_policy import DeploymentEnvironment, validate_master_key

__all__ = [
    "DeploymentEnvironment",
    "EncryptionService",
    "generate_master_key",
    "get_encryption_service",
    "reset_encryption_service",
    "validate_master_key",
]
