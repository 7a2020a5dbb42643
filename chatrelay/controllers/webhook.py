"""Chat webhook endpoint.

Twilio posts inbound messages as URL-encoded forms. The controller only
maps form fields to an :class:`IncomingMessage`, hands it to the
responder and wraps the reply in TwiML. Which HTTP status accompanies a
degraded reply is a deployment policy (``WEBHOOK_*`` settings).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Form
from fastapi.responses import Response

from chatrelay.config.settings import settings
from chatrelay.controllers.dependencies import ResponderDep
from chatrelay.pipelines.audio import IncomingMessage, ReplyOutcome
from chatrelay.views import TWIML_MEDIA_TYPE, render_message

router = APIRouter(prefix="/webhook", tags=["webhook"])

logger = logging.getLogger(__name__)

_SENDER_FORM = Form("Unknown", alias="From")
_BODY_FORM = Form("", alias="Body")
_NUM_MEDIA_FORM = Form(0, alias="NumMedia")
_MEDIA_URL_FORM = Form(None, alias="MediaUrl0")
_MEDIA_TYPE_FORM = Form(None, alias="MediaContentType0")


def status_for(outcome: ReplyOutcome) -> int:
    """Map a reply outcome to the configured HTTP status code."""

    if outcome is ReplyOutcome.AUDIO_FAILED:
        return settings.webhook.audio_failure_status_code
    if outcome is ReplyOutcome.KEY_UNAVAILABLE:
        return settings.webhook.key_unavailable_status_code
    return 200


@router.post("", response_class=Response)
async def receive_message(
    responder: ResponderDep,
    sender: str = _SENDER_FORM,
    body: str = _BODY_FORM,
    num_media: int = _NUM_MEDIA_FORM,
    media_url: Optional[str] = _MEDIA_URL_FORM,
    media_content_type: Optional[str] = _MEDIA_TYPE_FORM,
) -> Response:
    """Answer one inbound chat message with a TwiML reply."""

    message = IncomingMessage(
        sender=sender,
        body=body,
        media_url=media_url if num_media > 0 else None,
        media_content_type=media_content_type if num_media > 0 else None,
    )
    reply = await responder.respond(message)
    logger.info("Replying to %s outcome=%s", sender, reply.outcome.value)

    return Response(
        content=render_message(reply.text),
        status_code=status_for(reply.outcome),
        media_type=TWIML_MEDIA_TYPE,
    )


__all__ = ["router", "status_for"]
