"""OAuth credential store backed by encrypted database columns.

This service persists OAuth access and refresh tokens per linked account,
encrypting them with EncryptionService before they reach the database. All
credential access is logged for audit purposes.

Usage:
    from tokenvault.services.credential_service import OAuthCredentialService, StoreOAuthTokens

    service = OAuthCredentialService()
    await service.store_tokens(StoreOAuthTokens(...), db)
    tokens = await service.get_tokens("user-1", "google", db)

Security Notes:
    - Tokens are encrypted before database storage
    - Access events are logged with structlog (user_id, provider, operation)
    - NEVER log or expose plaintext tokens or envelopes
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokenvault.exceptions import CredentialNotFoundError, DecryptionError
from tokenvault.models import MAX_REFRESH_FAILURES, OAuthConnection, as_utc, utcnow
from tokenvault.utils.encryption import EncryptionService, get_encryption_service

log = structlog.get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class StoreOAuthTokens:
    """Tokens returned by a provider after the OAuth callback."""

    user_id: str
    provider: str
    email: str
    access_token: str
    expires_at: datetime
    refresh_token: str | None = None
    scopes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OAuthTokens:
    """Decrypted tokens for one connection."""

    access_token: str
    refresh_token: str | None
    expires_at: datetime

    def __repr__(self) -> str:
        return f"OAuthTokens(expires_at={self.expires_at!r})"


class OAuthCredentialService:
    """Service for storing and retrieving encrypted OAuth tokens.

    Args:
        encryption_service: Service used to encrypt and decrypt tokens.
            Defaults to the process-wide instance from get_encryption_service().

    Example:
        >>> service = OAuthCredentialService()
        >>> await service.store_tokens(StoreOAuthTokens("u1", "google", "a@b.c", "ya29...", exp), db)
        >>> tokens = await service.get_tokens("u1", "google", db)
    """

    def __init__(self, encryption_service: EncryptionService | None = None) -> None:
        self._encryption_service = encryption_service

    @property
    def encryption_service(self) -> EncryptionService:
        if self._encryption_service is None:
            self._encryption_service = get_encryption_service()
        return self._encryption_service

    async def get_connection(
        self, user_id: str, provider: str, email: str, db: AsyncSession
    ) -> OAuthConnection | None:
        """Get the connection for one linked provider account."""
        result = await db.execute(
            select(OAuthConnection).where(
                OAuthConnection.user_id == user_id,
                OAuthConnection.provider == provider,
                OAuthConnection.email == normalize_email(email),
            )
        )
        return result.scalar_one_or_none()

    async def get_user_connections(self, user_id: str, db: AsyncSession) -> list[OAuthConnection]:
        """Get all connections for a user, grouped by provider, newest first."""
        result = await db.execute(
            select(OAuthConnection)
            .where(OAuthConnection.user_id == user_id)
            .order_by(OAuthConnection.provider.asc(), OAuthConnection.connected_at.desc())
        )
        return list(result.scalars().all())

    async def _get_by_id(
        self, connection_id: uuid.UUID | str, db: AsyncSession
    ) -> OAuthConnection:
        if isinstance(connection_id, str):
            try:
                connection_id = uuid.UUID(connection_id)
            except ValueError as e:
                raise CredentialNotFoundError(connection_id) from e

        connection = await db.get(OAuthConnection, connection_id)
        if connection is None:
            raise CredentialNotFoundError(str(connection_id))
        return connection

    async def store_tokens(self, tokens: StoreOAuthTokens, db: AsyncSession) -> OAuthConnection:
        """Encrypt and upsert tokens for a linked account.

        An existing connection for (user_id, provider, email) is updated; its
        refresh token is kept when the provider did not issue a new one.

        Args:
            tokens: Plaintext tokens and account details.
            db: Async database session.

        Returns:
            The stored OAuthConnection.
        """
        encryption = self.encryption_service
        access_encrypted = encryption.encrypt(tokens.access_token)
        refresh_encrypted = (
            encryption.encrypt(tokens.refresh_token) if tokens.refresh_token else None
        )

        connection = await self.get_connection(tokens.user_id, tokens.provider, tokens.email, db)
        created = connection is None
        now = utcnow()
        if connection is None:
            connection = OAuthConnection(
                user_id=tokens.user_id,
                provider=tokens.provider,
                email=normalize_email(tokens.email),
                scopes=list(tokens.scopes),
                access_token_encrypted=access_encrypted,
                refresh_token_encrypted=refresh_encrypted,
                expires_at=tokens.expires_at,
                connected_at=now,
                last_used_at=now,
                refresh_failure_count=0,
                is_healthy=True,
            )
            db.add(connection)
        else:
            connection.scopes = list(tokens.scopes)
            connection.access_token_encrypted = access_encrypted
            if refresh_encrypted is not None:
                connection.refresh_token_encrypted = refresh_encrypted
            connection.expires_at = tokens.expires_at
            connection.last_used_at = now

        await db.commit()

        log.info(
            "credential_stored",
            user_id=tokens.user_id,
            provider=tokens.provider,
            created=created,
            has_refresh_token=connection.refresh_token_encrypted is not None,
        )
        return connection

    async def get_tokens(self, user_id: str, provider: str, db: AsyncSession) -> OAuthTokens | None:
        """Retrieve and decrypt the most recently used tokens for a provider.

        Args:
            user_id: Owning user identifier.
            provider: OAuth provider name.
            db: Async database session.

        Returns:
            Decrypted tokens, or None if the user has no connection.

        Raises:
            DecryptionError: If decryption fails (wrong key or corrupted data).
        """
        result = await db.execute(
            select(OAuthConnection)
            .where(OAuthConnection.user_id == user_id, OAuthConnection.provider == provider)
            .order_by(OAuthConnection.last_used_at.desc())
            .limit(1)
        )
        connection = result.scalar_one_or_none()
        if connection is None:
            log.info(
                "credential_get",
                user_id=user_id,
                provider=provider,
                success=True,
                has_credential=False,
            )
            return None

        connection.last_used_at = utcnow()
        await db.commit()

        encryption = self.encryption_service
        context = str(connection.id)
        try:
            access_token = encryption.decrypt(connection.access_token_encrypted, context=context)
            refresh_token = (
                encryption.decrypt(connection.refresh_token_encrypted, context=context)
                if connection.refresh_token_encrypted
                else None
            )
        except DecryptionError:
            log.error(
                "credential_decrypt_failed",
                user_id=user_id,
                provider=provider,
                connection_id=context,
            )
            raise

        log.info(
            "credential_get",
            user_id=user_id,
            provider=provider,
            success=True,
            has_credential=True,
        )
        return OAuthTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=as_utc(connection.expires_at),
        )

    async def update_tokens(
        self,
        connection_id: uuid.UUID | str,
        access_token: str,
        db: AsyncSession,
        refresh_token: str | None = None,
        expires_at: datetime | None = None,
    ) -> OAuthConnection:
        """Store refreshed tokens and reset refresh failure tracking.

        Raises:
            CredentialNotFoundError: If the connection does not exist.
        """
        connection = await self._get_by_id(connection_id, db)
        encryption = self.encryption_service

        connection.access_token_encrypted = encryption.encrypt(access_token)
        if refresh_token:
            connection.refresh_token_encrypted = encryption.encrypt(refresh_token)
        if expires_at is not None:
            connection.expires_at = expires_at
        connection.last_used_at = utcnow()
        connection.refresh_failure_count = 0
        connection.last_refresh_error = None
        connection.is_healthy = True
        await db.commit()

        log.info(
            "credential_refreshed",
            connection_id=str(connection.id),
            provider=connection.provider,
        )
        return connection

    async def track_refresh_failure(
        self, connection_id: uuid.UUID | str, error: str, db: AsyncSession
    ) -> OAuthConnection:
        """Record a failed token refresh.

        The connection is marked unhealthy once MAX_REFRESH_FAILURES
        consecutive failures have been recorded.

        Raises:
            CredentialNotFoundError: If the connection does not exist.
        """
        connection = await self._get_by_id(connection_id, db)

        connection.refresh_failure_count = (connection.refresh_failure_count or 0) + 1
        connection.last_refresh_attempt = utcnow()
        connection.last_refresh_error = error
        connection.is_healthy = connection.refresh_failure_count < MAX_REFRESH_FAILURES
        await db.commit()

        log.warning(
            "credential_refresh_failed",
            connection_id=str(connection.id),
            provider=connection.provider,
            failure_count=connection.refresh_failure_count,
            is_healthy=connection.is_healthy,
        )
        return connection

    async def disconnect(
        self, user_id: str, provider: str, db: AsyncSession, email: str | None = None
    ) -> int:
        """Delete one linked account, or every account for the provider.

        Returns:
            Number of connections removed.
        """
        statement = delete(OAuthConnection).where(
            OAuthConnection.user_id == user_id,
            OAuthConnection.provider == provider,
        )
        if email is not None:
            statement = statement.where(OAuthConnection.email == normalize_email(email))

        result = await db.execute(statement)
        await db.commit()

        log.info(
            "credential_disconnected",
            user_id=user_id,
            provider=provider,
            removed=result.rowcount,
        )
        return result.rowcount

    @staticmethod
    def is_token_expired(connection: OAuthConnection, now: datetime | None = None) -> bool:
        """Return True if the connection's access token has expired."""
        now = now or utcnow()
        return as_utc(connection.expires_at) <= now
