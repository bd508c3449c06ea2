#!/usr/bin/env python3
"""Validate the encryption settings in a .env file.

Checks that ENCRYPTION_KEY is present and well-formed, and reports weak or
example keys. A weak key is an error when APP_ENV resolves to production and
a warning otherwise.

Usage:
    python scripts/validate_env.py [path/to/.env]

Exit status is 1 when any error is found.
"""

import argparse
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tokenvault.config import ENCRYPTION_KEY_VARIABLE, ENVIRONMENT_VARIABLE
from tokenvault.exceptions import EncryptionKeyError
from tokenvault.utils.key_policy import (
    DeploymentEnvironment,
    find_weak_key_check,
    parse_master_key,
)


def validate_env_values(values: Mapping[str, str | None]) -> tuple[list[str], list[str]]:
    """Validate encryption settings.

    Args:
        values: Environment variable values (e.g. a parsed .env merged over os.environ).

    Returns:
        Tuple of (errors, warnings) messages.
    """
    errors: list[str] = []
    warnings: list[str] = []

    environment = DeploymentEnvironment.parse(values.get(ENVIRONMENT_VARIABLE))

    try:
        key = parse_master_key(values.get(ENCRYPTION_KEY_VARIABLE))
    except EncryptionKeyError as e:
        errors.append(str(e))
        return errors, warnings

    check = find_weak_key_check(key)
    if check is not None:
        message = f"ENCRYPTION_KEY is an example or weak key ({check})"
        if environment.enforces_strong_keys:
            errors.append(f"{message}; not allowed in {environment.value}")
        else:
            warnings.append(f"{message}; generate a secure key before deploying to production")

    return errors, warnings


def main(argv: list[str] | None = None) -> int:
    """Validate a .env file and print the result."""
    parser = argparse.ArgumentParser(description="Validate encryption settings in a .env file")
    parser.add_argument("env_file", nargs="?", default=".env", help="Path to .env file")
    args = parser.parse_args(argv)

    env_path = Path(args.env_file)
    if not env_path.exists():
        print(f"❌ {env_path} not found")
        return 1

    values: dict[str, str | None] = {**os.environ, **dotenv_values(env_path)}
    errors, warnings = validate_env_values(values)

    for warning in warnings:
        print(f"⚠️  Warning: {warning}")
    for error in errors:
        print(f"❌ {error}")

    if errors:
        return 1

    print(f"✅ {env_path}: encryption settings are valid")
    return 0


if __name__ == "__main__":
    sys.exit(main())
