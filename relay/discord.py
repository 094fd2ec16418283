"""Minimal Discord REST client for posting and editing approval messages."""

from typing import Dict, List, Optional

import httpx


API_BASE = "https://discord.com/api/v10"
DISCORD_TIMEOUT = 10.0


class NotificationError(Exception):
    """Discord rejected a message post or edit."""
    pass


# Slash commands registered by `main.py --register-commands`
COMMANDS: List[Dict] = [
    {
        "name": "approve",
        "description": "Move a file to a category folder under a new name.",
        "options": [
            {"name": "fileid", "type": 3, "description": "Drive file ID", "required": True},
            {"name": "folder", "type": 3, "description": "Destination folder name", "required": True},
            {"name": "name", "type": 3, "description": "New file name", "required": True},
        ],
    },
    {
        "name": "exec",
        "description": "Run an inbox check now.",
    },
]


class DiscordClient:
    """Talks to the Discord REST API.

    Channel posts use the bot token; edits of an interaction's original
    message go through the interaction webhook, which needs no bot auth.
    """

    def __init__(self, bot_token: str, application_id: str,
                 http: Optional[httpx.Client] = None) -> None:
        self.bot_token = bot_token
        self.application_id = application_id
        self._http = http or httpx.Client(base_url=API_BASE, timeout=DISCORD_TIMEOUT)

    def _bot_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bot {self.bot_token}"}

    def _check(self, response: httpx.Response, what: str) -> httpx.Response:
        if not response.is_success:
            raise NotificationError(
                f"{what} failed (HTTP {response.status_code}): {response.text[:500]}"
            )
        return response

    def post_message(self, channel_id: str, payload: Dict) -> str:
        """Post a message to a channel and return its id.

        Raises:
            NotificationError: On transport failure or non-2xx response
        """
        try:
            response = self._http.post(f"/channels/{channel_id}/messages",
                                       json=payload, headers=self._bot_headers())
        except httpx.HTTPError as e:
            raise NotificationError(f"Posting message failed: {e}")
        return str(self._check(response, "Posting message").json().get("id", ""))

    def edit_original(self, interaction_token: str, payload: Dict) -> None:
        """Edit the message an interaction belongs to (or its deferred reply)."""
        path = f"/webhooks/{self.application_id}/{interaction_token}/messages/@original"
        try:
            response = self._http.patch(path, json=payload)
        except httpx.HTTPError as e:
            raise NotificationError(f"Editing message failed: {e}")
        self._check(response, "Editing message")

    def register_commands(self, commands: List[Dict] = COMMANDS) -> List[Dict]:
        """Replace the application's global slash commands."""
        try:
            response = self._http.put(f"/applications/{self.application_id}/commands",
                                      json=commands, headers=self._bot_headers())
        except httpx.HTTPError as e:
            raise NotificationError(f"Registering commands failed: {e}")
        return self._check(response, "Registering commands").json()
