"""Document store access for Drive Sentinel.

Provides a typed gateway over the Google Drive API for the operations the
approval workflow needs: list the inbox, read/patch the workflow marker,
find or create category folders, rename and relocate documents.

Usage:
    from storage import create_gateway

    gateway = create_gateway(settings)
    docs = gateway.list_children(settings.inbox_folder_id)
"""

from typing import TYPE_CHECKING, Optional

from .base import (
    StorageGateway,
    StorageError,
    DocumentSummary,
    DocumentMetadata,
    sanitize_folder_name,
)
from .gdrive import DriveGateway

if TYPE_CHECKING:
    from auth import TokenBroker
    from sentinel.config import Settings


def create_gateway(settings: "Settings",
                   broker: Optional["TokenBroker"] = None) -> StorageGateway:
    """Create the Drive gateway from settings.

    Args:
        settings: Application settings (service account source is read from it)
        broker: Token broker to share between gateways (a new one if omitted)

    Raises:
        CredentialError: If no service account credentials can be loaded
    """
    from auth import TokenBroker, ServiceIdentity

    identity = ServiceIdentity.from_env(
        inline_json=settings.google_service_account_json,
        path=settings.service_account_file,
    )
    return DriveGateway(broker or TokenBroker(), identity)


__all__ = [
    'StorageGateway',
    'StorageError',
    'DocumentSummary',
    'DocumentMetadata',
    'DriveGateway',
    'sanitize_folder_name',
    'create_gateway',
]
