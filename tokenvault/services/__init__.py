"""Services that persist credentials through the encryption service."""

from tokenvault.services.credential_service import (
    OAuthCredentialService,
    OAuthTokens,
    StoreOAuthTokens,
)

__all__ = [
    "OAuthCredentialService",
    "OAuthTokens",
    "StoreOAuthTokens",
]
