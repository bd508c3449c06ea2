# Data factories for test data generation

from tests.support.factories.oauth_factory import (
    create_connection,
    create_token_payload,
)

__all__ = [
    # OAuth factories
    "create_connection",
    "create_token_payload",
]
