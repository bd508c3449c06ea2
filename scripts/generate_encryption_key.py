#!/usr/bin/env python3
"""Generate a master encryption key for credential storage.

This script generates a cryptographically secure 256-bit key for use with
the credential encryption service. The generated key should be stored as the
ENCRYPTION_KEY environment variable of the deployment.

Usage:
    python scripts/generate_encryption_key.py

Security Notes:
    - Generate a unique key per environment (staging, production)
    - Store only in deployment environment variables, never in code
    - Replacing the key requires re-encrypting all stored credentials
    - Keep a secure backup of production keys
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tokenvault.utils.encryption import generate_master_key


def main() -> None:
    """Generate and display a new master encryption key."""
    key = generate_master_key()

    print("=" * 60)
    print("Generated Encryption Key (AES-256)")
    print("=" * 60)
    print()
    print("Add this to your environment variables:")
    print()
    print(f"ENCRYPTION_KEY={key}")
    print()
    print("IMPORTANT:")
    print("  - Never commit this key to version control")
    print("  - Keep a secure backup of production keys")
    print("  - Use different keys for development and production")
    print("  - Replacing the key requires re-encrypting all credentials")
    print("=" * 60)


if __name__ == "__main__":
    main()
