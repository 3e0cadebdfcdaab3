"""
Discord interactions endpoint.

WHAT: Receive button clicks and modal submissions from Discord
WHY: Sellers submit offers through the deal message's Offer button
HOW: Verify the request signature, dispatch to InteractionHandler, run deferred
     work as a background task after the acknowledgement is sent
"""

import json

from fastapi import APIRouter, BackgroundTasks, Request, status
from fastapi.responses import JSONResponse

from ....chat.signature import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify_signature
from ....core.config import settings
from ....services.interaction_handler import get_interaction_handler
from ....utils.exceptions import ValidationException
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/discord/interactions")
async def discord_interactions(request: Request, background_tasks: BackgroundTasks):
    """
    Discord interactions webhook.

    Returns:
        Interaction response JSON (PONG, modal, or ephemeral message)
    """
    body = await request.body()

    if settings.DISCORD_VERIFY_SIGNATURES and not verify_signature(
        settings.DISCORD_PUBLIC_KEY,
        request.headers.get(SIGNATURE_HEADER),
        request.headers.get(TIMESTAMP_HEADER),
        body,
    ):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "INVALID_SIGNATURE", "message": "Invalid request signature"},
        )

    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationException("Interaction body is not valid JSON")
    if not isinstance(payload, dict):
        raise ValidationException("Interaction body must be a JSON object")

    reply = await get_interaction_handler().handle(payload)
    if reply.followup is not None:
        background_tasks.add_task(reply.followup)
    return reply.response
