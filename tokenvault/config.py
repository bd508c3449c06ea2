"""Configuration management for the credential encryption service.

Configuration values are read from environment variables through small
accessor functions. The encryption service itself never reads the environment;
the bootstrap code passes these values in explicitly.

Environment Variables:
    APP_ENV: Deployment environment (development, test, production).
        Missing or unrecognized values are treated as production.
    ENCRYPTION_KEY: 64 hex character master key (required)
    DATABASE_URL: PostgreSQL connection URL (required for the credential store)

Usage:
    from tokenvault.config import get_deployment_environment, get_encryption_key

    environment = get_deployment_environment()
    key = get_encryption_key()  # Raises if ENCRYPTION_KEY not set
"""

import os

from tokenvault.exceptions import EncryptionKeyMissingError
from tokenvault.utils.key_policy import DeploymentEnvironment

ENVIRONMENT_VARIABLE = "APP_ENV"
ENCRYPTION_KEY_VARIABLE = "ENCRYPTION_KEY"


def get_deployment_environment() -> DeploymentEnvironment:
    """Get the deployment environment from APP_ENV.

    Environment Variable:
        APP_ENV: "development", "test" or "production" (aliases accepted)

    Returns:
        Parsed DeploymentEnvironment. PRODUCTION when unset or unrecognized.
    """
    return DeploymentEnvironment.parse(os.getenv(ENVIRONMENT_VARIABLE))


def get_encryption_key() -> str:
    """Get the master encryption key from environment.

    Environment Variable:
        ENCRYPTION_KEY: 64 hex characters (32 bytes). Generate one with
            `python scripts/generate_encryption_key.py`.

    Returns:
        Raw key string as configured. Format is validated by EncryptionService.

    Raises:
        EncryptionKeyMissingError: If ENCRYPTION_KEY not set or empty.
    """
    key = os.getenv(ENCRYPTION_KEY_VARIABLE)
    if not key or not key.strip():
        raise EncryptionKeyMissingError(
            "ENCRYPTION_KEY environment variable is required. "
            "Generate a key using: python scripts/generate_encryption_key.py"
        )
    return key


def get_database_url() -> str:
    """Get database URL from environment.

    Converts postgresql:// to postgresql+asyncpg:// for async SQLAlchemy.

    Environment Variable:
        DATABASE_URL: PostgreSQL connection URL

    Returns:
        Database URL with asyncpg driver.

    Raises:
        ValueError: If DATABASE_URL not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise ValueError("DATABASE_URL environment variable is required")

    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url
