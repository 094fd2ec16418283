"""Service-account authentication for Drive Sentinel.

Usage:
    from auth import TokenBroker, ServiceIdentity

    identity = ServiceIdentity.from_env(os.environ.get("GOOGLE_SERVICE_ACCOUNT_JSON", ""))
    broker = TokenBroker()
    token = broker.get_token(identity)
"""

from .token_broker import (
    TokenBroker,
    TokenCache,
    ServiceIdentity,
    CredentialError,
    DRIVE_SCOPES,
)


__all__ = [
    'TokenBroker',
    'TokenCache',
    'ServiceIdentity',
    'CredentialError',
    'DRIVE_SCOPES',
]
