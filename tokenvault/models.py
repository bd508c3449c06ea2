"""SQLAlchemy 2.0 ORM models.

Encrypted Fields Pattern:
    OAuth tokens are stored as AES-256-GCM envelopes produced by
    EncryptionService. Encrypted columns follow the naming convention
    `{field}_encrypted` and use Text since envelopes are base64 strings.

    NEVER expose encrypted fields in __repr__ or log statements.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Connections are marked unhealthy after this many consecutive refresh failures
MAX_REFRESH_FAILURES = 3


def utcnow() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without timezone support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class OAuthConnection(Base):
    """OAuth tokens a user granted for one provider account.

    A user may link several accounts of the same provider; each
    (user_id, provider, email) triple is one connection.

    Attributes:
        id: Internal UUID primary key.
        user_id: Owning user identifier.
        provider: OAuth provider name (e.g., "google").
        email: Provider account email, trimmed and lower-cased.
        scopes: Granted OAuth scopes.
        access_token_encrypted: Encrypted access token envelope.
        refresh_token_encrypted: Encrypted refresh token envelope, if granted.
        expires_at: Access token expiry.
        connected_at: When the account was first linked.
        last_used_at: Last time tokens were stored or read.
        last_refresh_attempt: Last failed refresh attempt.
        refresh_failure_count: Consecutive refresh failures since last success.
        last_refresh_error: Error message from the last failed refresh.
        is_healthy: False once refresh_failure_count reaches MAX_REFRESH_FAILURES.

    Note:
        Use OAuthCredentialService to encrypt/decrypt tokens - NEVER access
        encrypted fields directly.
    """

    __tablename__ = "oauth_connections"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
    )
    scopes: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    # Encrypted credentials (AES-256-GCM envelopes)
    access_token_encrypted: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    refresh_token_encrypted: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    connected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    last_used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    # Refresh tracking
    last_refresh_attempt: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    refresh_failure_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )
    last_refresh_error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    is_healthy: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="1",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "provider", "email", name="uq_oauth_connections_account"),
        Index("ix_oauth_connections_user_provider", "user_id", "provider"),
        CheckConstraint(
            "refresh_failure_count >= 0", name="ck_oauth_connections_failures_non_negative"
        ),
    )

    def __repr__(self) -> str:
        """Return string representation for debugging.

        Note:
            NEVER expose encrypted fields in repr - security risk.
        """
        refresh_info = "set" if self.refresh_token_encrypted else "not_set"
        return (
            f"<OAuthConnection(user_id={self.user_id!r}, provider={self.provider!r}, "
            f"email={self.email!r}, refresh_token={refresh_info}, healthy={self.is_healthy})>"
        )
