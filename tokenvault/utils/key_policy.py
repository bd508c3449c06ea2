"""Master key parsing and the environment-dependent weak-key policy.

The master key is supplied as 64 hexadecimal characters. Format problems are
fatal in every environment. Keys that are trivially guessable or copied from
documentation are rejected only in production, so example keys keep working
for local development and test runs.

Weak-key checks are evaluated on the decoded key bytes, which makes them
case-insensitive: "DEADBEEF..." and "deadbeef..." decode to the same bytes.

Usage:
    from tokenvault.utils.key_policy import DeploymentEnvironment, validate_master_key

    key_bytes = validate_master_key(raw_key, DeploymentEnvironment.PRODUCTION)
"""

import enum
import re
from collections.abc import Callable

import structlog

from tokenvault.exceptions import EncryptionKeyMissingError, MalformedKeyError, WeakKeyError

log = structlog.get_logger(__name__)

KEY_LENGTH = 32  # bytes (AES-256)
KEY_HEX_LENGTH = KEY_LENGTH * 2
_HEX_KEY_PATTERN = re.compile(r"[0-9a-f]+")

# Longest repeating block (in bytes) treated as a low-entropy pattern,
# e.g. "deadbeef" repeated is a 4-byte period.
MAX_WEAK_PERIOD = 4


class DeploymentEnvironment(enum.Enum):
    """Deployment environment that selects the key validation policy.

    Only PRODUCTION enforces the weak-key denylist.
    """

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"

    @property
    def enforces_strong_keys(self) -> bool:
        return self is DeploymentEnvironment.PRODUCTION

    @classmethod
    def parse(cls, value: str | None) -> "DeploymentEnvironment":
        """Parse an environment identifier such as the APP_ENV value.

        Matching is case-insensitive and ignores surrounding whitespace.
        Missing or unrecognized identifiers resolve to PRODUCTION so that a
        misconfigured deployment gets the strict policy.

        Args:
            value: Raw identifier, or None if not configured.

        Returns:
            The matching DeploymentEnvironment.
        """
        normalized = (value or "").strip().lower()
        environment = _ENVIRONMENT_ALIASES.get(normalized)
        if environment is None:
            log.warning(
                "deployment_environment_unrecognized",
                value=value,
                resolved_to=cls.PRODUCTION.value,
            )
            return cls.PRODUCTION
        return environment


_ENVIRONMENT_ALIASES: dict[str, DeploymentEnvironment] = {
    "development": DeploymentEnvironment.DEVELOPMENT,
    "dev": DeploymentEnvironment.DEVELOPMENT,
    "local": DeploymentEnvironment.DEVELOPMENT,
    "test": DeploymentEnvironment.TEST,
    "testing": DeploymentEnvironment.TEST,
    "production": DeploymentEnvironment.PRODUCTION,
    "prod": DeploymentEnvironment.PRODUCTION,
}


# Example keys that appear in documentation and .env templates.
KNOWN_PLACEHOLDER_KEYS: frozenset[bytes] = frozenset(
    bytes.fromhex(value)
    for value in (
        "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef",
        "deadbeefdeadbeefdeadbeefdeadbeefdeadbeefdeadbeefdeadbeefdeadbeef",
        "0000000000000000000000000000000000000000000000000000000000000000",
        "1111111111111111111111111111111111111111111111111111111111111111",
    )
)


def _is_all_zero(key: bytes) -> bool:
    return not any(key)


def _is_constant_byte(key: bytes) -> bool:
    return len(set(key)) == 1


def _steps_by_one(values: list[int], modulus: int) -> bool:
    """Return True if values consistently ascend or descend by one (wrapping)."""
    steps = {(b - a) % modulus for a, b in zip(values, values[1:])}
    return steps == {1} or steps == {modulus - 1}


def _is_sequential_nibbles(key: bytes) -> bool:
    nibbles = [n for byte in key for n in (byte >> 4, byte & 0x0F)]
    return _steps_by_one(nibbles, 16)


def _is_sequential_bytes(key: bytes) -> bool:
    return _steps_by_one(list(key), 256)


def _has_short_period(key: bytes) -> bool:
    for period in range(1, MAX_WEAK_PERIOD + 1):
        block = key[:period]
        repeated = block * (len(key) // period + 1)
        if repeated[: len(key)] == key:
            return True
    return False


def _is_known_placeholder(key: bytes) -> bool:
    return key in KNOWN_PLACEHOLDER_KEYS


# Evaluated in order; the first match names the rejection.
WEAK_KEY_CHECKS: tuple[tuple[str, Callable[[bytes], bool]], ...] = (
    ("all_zero", _is_all_zero),
    ("constant_byte", _is_constant_byte),
    ("sequential_nibbles", _is_sequential_nibbles),
    ("sequential_bytes", _is_sequential_bytes),
    ("short_period", _has_short_period),
    ("known_placeholder", _is_known_placeholder),
)


def parse_master_key(candidate: str | None) -> bytes:
    """Normalize and decode a hexadecimal master key.

    Args:
        candidate: Key as supplied by configuration. Surrounding whitespace
            is ignored and hex digits may use either case.

    Returns:
        The 32 raw key bytes.

    Raises:
        EncryptionKeyMissingError: If the key is None or blank.
        MalformedKeyError: If the key is not a string of exactly 64 hex characters.
    """
    if candidate is None or (isinstance(candidate, str) and not candidate.strip()):
        raise EncryptionKeyMissingError("ENCRYPTION_KEY environment variable is required")
    if not isinstance(candidate, str):
        log.error("malformed_encryption_key", reason="type", type=type(candidate).__name__)
        raise MalformedKeyError(
            f"ENCRYPTION_KEY must be a string of hex characters, not {type(candidate).__name__}"
        )

    normalized = candidate.strip().lower()
    if len(normalized) != KEY_HEX_LENGTH:
        log.error("malformed_encryption_key", reason="length", length=len(normalized))
        raise MalformedKeyError(
            f"ENCRYPTION_KEY must be {KEY_HEX_LENGTH} hex characters ({KEY_LENGTH} bytes), "
            f"got {len(normalized)} characters"
        )
    if not _HEX_KEY_PATTERN.fullmatch(normalized):
        log.error("malformed_encryption_key", reason="not_hex")
        raise MalformedKeyError("ENCRYPTION_KEY must contain only hexadecimal characters")

    return bytes.fromhex(normalized)


def find_weak_key_check(key: bytes) -> str | None:
    """Return the name of the first weak-key check matching key, if any."""
    for name, predicate in WEAK_KEY_CHECKS:
        if predicate(key):
            return name
    return None


def validate_master_key(candidate: str | None, environment: DeploymentEnvironment) -> bytes:
    """Parse a master key and apply the weak-key policy for environment.

    Args:
        candidate: Hexadecimal key string from configuration.
        environment: Deployment environment supplied by the caller.

    Returns:
        The 32 raw key bytes.

    Raises:
        EncryptionKeyMissingError: If no key was supplied.
        MalformedKeyError: If the key is not 64 hex characters (any environment).
        WeakKeyError: If the key is denylisted and environment is production.
    """
    key = parse_master_key(candidate)

    check = find_weak_key_check(key)
    if check is None:
        return key

    if environment.enforces_strong_keys:
        log.error("weak_encryption_key_rejected", check=check, environment=environment.value)
        raise WeakKeyError(
            "Cannot use example or weak encryption keys in production. "
            "Please generate a secure key using: python scripts/generate_encryption_key.py",
            check=check,
        )

    log.warning("weak_encryption_key_accepted", check=check, environment=environment.value)
    return key
