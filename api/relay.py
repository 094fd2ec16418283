"""HTTP surface of the notification relay.

POST /notify       scanner → Discord, guarded by RELAY_API_KEY
POST /interactions Discord → relay, Ed25519-signed (also served at POST /)
"""

import json
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from relay import (
    InteractionVerifier,
    MalformedInteraction,
    NotificationError,
    NotificationRelay,
    NotificationRequest,
    NotificationResponse,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    create_relay,
    parse_interaction,
)
from sentinel import Sentinel, __version__
from sentinel.config import ConfigError, Settings
from .common import api_key_guard, install_error_handlers


def create_relay_app(settings: Settings,
                     relay: Optional[NotificationRelay] = None,
                     verifier: Optional[InteractionVerifier] = None) -> FastAPI:
    """Build the relay app.

    Raises:
        ConfigError: If Discord or commit settings are missing and no relay is given
    """
    relay = relay or create_relay(settings)
    if verifier is None and settings.discord_public_key:
        verifier = InteractionVerifier(settings.discord_public_key)

    app = FastAPI(title="Drive Sentinel Relay", version=__version__)
    install_error_handlers(app)
    require_key = api_key_guard(settings.relay_api_key)

    @app.get("/")
    def health():
        return {
            "status": "ok",
            "service": "relay",
            "endpoints": ["POST /notify", "POST /interactions"],
        }

    @app.post("/notify", response_model=NotificationResponse,
              dependencies=[Depends(require_key)])
    def notify(request: NotificationRequest):
        try:
            message_id = relay.notify(request)
        except NotificationError as e:
            Sentinel.print_right(f"[red]Discord notification failed: {e}[/red]")
            return JSONResponse(status_code=502, content={
                "error": "Failed to send Discord notification",
                "details": str(e),
            })
        return NotificationResponse(success=True, messageId=message_id)

    async def interactions(request: Request, background_tasks: BackgroundTasks):
        if verifier is None:
            raise ConfigError("Missing required settings: DISCORD_PUBLIC_KEY")
        body = await request.body()
        if not verifier.verify(request.headers.get(SIGNATURE_HEADER),
                               request.headers.get(TIMESTAMP_HEADER), body):
            raise HTTPException(status_code=401, detail="Bad request signature")

        try:
            interaction = parse_interaction(json.loads(body))
        except (ValueError, MalformedInteraction) as e:
            raise HTTPException(status_code=400, detail=str(e))

        outcome = relay.handle_interaction(interaction)
        if outcome.followup is not None:
            background_tasks.add_task(outcome.followup)
        return JSONResponse(content=outcome.response)

    app.add_api_route("/interactions", interactions, methods=["POST"])
    app.add_api_route("/", interactions, methods=["POST"])

    return app
