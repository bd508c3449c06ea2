"""001 create oauth_connections table

Revision ID: 001_oauth_connections
Revises:
Create Date: 2026-10-17

Creates the oauth_connections table holding encrypted OAuth tokens per
linked provider account.

Encrypted columns (AES-256-GCM base64 envelopes, Text):
    - access_token_encrypted: required
    - refresh_token_encrypted: nullable, providers may not issue one

Use OAuthCredentialService for encrypt/decrypt operations.
"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_oauth_connections"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create oauth_connections table with indexes and constraints."""
    op.create_table(
        "oauth_connections",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("scopes", sa.JSON(), nullable=False),
        sa.Column("access_token_encrypted", sa.Text(), nullable=False),
        sa.Column("refresh_token_encrypted", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("connected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_refresh_attempt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refresh_failure_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_refresh_error", sa.Text(), nullable=True),
        sa.Column("is_healthy", sa.Boolean(), nullable=False, server_default="1"),
        sa.UniqueConstraint(
            "user_id", "provider", "email", name="uq_oauth_connections_account"
        ),
        sa.CheckConstraint(
            "refresh_failure_count >= 0", name="ck_oauth_connections_failures_non_negative"
        ),
    )
    op.create_index("ix_oauth_connections_user_id", "oauth_connections", ["user_id"])
    op.create_index(
        "ix_oauth_connections_user_provider", "oauth_connections", ["user_id", "provider"]
    )


def downgrade() -> None:
    """Drop oauth_connections table."""
    op.drop_index("ix_oauth_connections_user_provider", table_name="oauth_connections")
    op.drop_index("ix_oauth_connections_user_id", table_name="oauth_connections")
    op.drop_table("oauth_connections")
