"""Discord notification relay.

Renders approval requests into Discord messages and turns the human's
decision into a call to the commit worker. The relay keeps no state of its
own: commit inputs round-trip through the rendered message.
"""

from typing import TYPE_CHECKING

from .schemas import (
    NotificationRequest,
    NotificationResponse,
    CommitRequest,
    CommitResult,
    RejectRequest,
)
from .discord import DiscordClient, NotificationError, COMMANDS
from .commit_client import CommitClient, normalize_commit_response
from .interactions import (
    Ping,
    Command,
    ComponentAction,
    MalformedInteraction,
    parse_interaction,
)
from .signature import InteractionVerifier, SIGNATURE_HEADER, TIMESTAMP_HEADER
from .relay import NotificationRelay, InteractionOutcome

if TYPE_CHECKING:
    from sentinel.config import Settings


def create_relay(settings: "Settings") -> NotificationRelay:
    """Wire a NotificationRelay from settings.

    Raises:
        ConfigError: If Discord or commit settings are missing
    """
    settings.require("discord_bot_token", "discord_application_id",
                     "discord_channel_id", "commit_url", "commit_api_key")
    return NotificationRelay(
        discord=DiscordClient(settings.discord_bot_token, settings.discord_application_id),
        worker=CommitClient(settings.commit_url, settings.commit_api_key,
                            scan_url=settings.scan_url, reject_url=settings.reject_url),
        channel_id=settings.discord_channel_id,
        reject_policy=settings.reject_policy,
    )


__all__ = [
    'NotificationRequest',
    'NotificationResponse',
    'CommitRequest',
    'CommitResult',
    'RejectRequest',
    'DiscordClient',
    'NotificationError',
    'COMMANDS',
    'CommitClient',
    'normalize_commit_response',
    'Ping',
    'Command',
    'ComponentAction',
    'MalformedInteraction',
    'parse_interaction',
    'InteractionVerifier',
    'SIGNATURE_HEADER',
    'TIMESTAMP_HEADER',
    'NotificationRelay',
    'InteractionOutcome',
    'create_relay',
]
