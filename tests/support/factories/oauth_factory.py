"""OAuth token data factories for test data generation.

Generates StoreOAuthTokens payloads and OAuthConnection rows with
deterministic defaults and override support for specific test scenarios.
"""

import uuid
from datetime import datetime, timedelta, timezone

from tokenvault.models import OAuthConnection
from tokenvault.services.credential_service import StoreOAuthTokens


def create_token_payload(
    user_id: str = "user-1",
    provider: str = "google",
    email: str | None = None,
    access_token: str = "ya29.a0AfH6SMB-access",
    refresh_token: str | None = "1//0g-refresh",
    expires_in: timedelta = timedelta(hours=1),
    scopes: list[str] | None = None,
) -> StoreOAuthTokens:
    """Create a StoreOAuthTokens payload with sensible defaults.

    Args:
        user_id: Owning user (default: "user-1").
        provider: Provider name (default: "google").
        email: Account email (default: auto-generated "user_xxx@example.com").
        access_token: Plaintext access token.
        refresh_token: Plaintext refresh token, or None.
        expires_in: Offset from now for expires_at (default: one hour).
        scopes: Granted scopes (default: calendar scope).

    Example:
        >>> payload = create_token_payload(provider="github", refresh_token=None)
        >>> await service.store_tokens(payload, db)
    """
    if email is None:
        email = f"user_{uuid.uuid4().hex[:8]}@example.com"

    return StoreOAuthTokens(
        user_id=user_id,
        provider=provider,
        email=email,
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=datetime.now(timezone.utc) + expires_in,
        scopes=scopes if scopes is not None else ["https://www.googleapis.com/auth/calendar"],
    )


def create_connection(
    expires_at: datetime | None = None,
    **kwargs,
) -> OAuthConnection:
    """Create an OAuthConnection instance with placeholder envelopes.

    The encrypted columns hold opaque strings, so rows built here are for
    tests that never decrypt them.

    Returns:
        OAuthConnection model instance (not yet added to session).
    """
    values = {
        "user_id": "user-1",
        "provider": "google",
        "email": "someone@example.com",
        "scopes": [],
        "access_token_encrypted": "encrypted_access_token",
        "refresh_token_encrypted": None,
        "expires_at": expires_at or datetime.now(timezone.utc) + timedelta(hours=1),
        "refresh_failure_count": 0,
        "is_healthy": True,
    }
    values.update(kwargs)
    return OAuthConnection(**values)
