"""Client used by the scanner to hand notifications to the relay."""

from typing import Optional

import httpx

from relay.schemas import NotificationRequest


NOTIFY_TIMEOUT = 10.0


class NotifyError(Exception):
    """The relay did not accept a notification."""
    pass


class RelayClient:
    """POSTs NotificationRequests to the relay's /notify endpoint."""

    def __init__(self, relay_url: str, api_key: str,
                 http: Optional[httpx.Client] = None) -> None:
        self.notify_url = relay_url.rstrip("/") + "/notify"
        self.api_key = api_key
        self._http = http or httpx.Client(timeout=NOTIFY_TIMEOUT)

    def notify(self, request: NotificationRequest) -> Optional[str]:
        """Send a notification and return the chat message id.

        Raises:
            NotifyError: On transport failure or a non-2xx response
        """
        try:
            response = self._http.post(
                self.notify_url,
                json=request.to_wire(),
                headers={"X-API-Key": self.api_key},
            )
        except httpx.HTTPError as e:
            raise NotifyError(f"Relay request failed: {e}")

        if not response.is_success:
            raise NotifyError(f"Relay rejected notification (HTTP {response.status_code}): "
                              f"{response.text[:300]}")
        try:
            return response.json().get("messageId")
        except ValueError:
            return None
