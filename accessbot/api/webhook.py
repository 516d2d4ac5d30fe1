"""
accessbot/api/webhook.py

Purpose: Telegram webhook endpoint

- Receives updates pushed by Telegram
- Verifies the webhook secret token header when configured
- Passes control to the flow dispatcher
"""

from fastapi import APIRouter, Request, Header
from typing import Optional
import secrets

from accessbot.core.exceptions import AuthenticationError, ValidationError
from accessbot.core.logging import get_logger
from accessbot.flow.dispatcher import Dispatcher
from accessbot.schemas.response import WebhookResponse

logger = get_logger(__name__)
router = APIRouter()

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


@router.post("/telegram/webhook", response_model=WebhookResponse)
async def telegram_webhook(
    request: Request,
    secret_token: Optional[str] = Header(None, alias=SECRET_HEADER),
):
    """
    Telegram webhook endpoint.

    Telegram retries deliveries answered with a non-2xx status, so handler
    failures are reported to the user by the dispatcher and still return 200.
    """
    dispatcher = get_dispatcher(request)
    expected = dispatcher.ctx.config.WEBHOOK_SECRET

    if expected and not secrets.compare_digest(secret_token or "", expected):
        logger.warning("Webhook call with invalid secret token")
        raise AuthenticationError("Invalid webhook secret token")

    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationError("Webhook body is not valid JSON") from e

    if not isinstance(payload, dict):
        raise ValidationError("Webhook body must be a JSON object")

    update = await dispatcher.feed_raw_update(payload)
    logger.debug(f"📱 Webhook update {update.update_id} processed")

    return WebhookResponse(update_id=update.update_id)
