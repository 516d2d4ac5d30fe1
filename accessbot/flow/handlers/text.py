"""
accessbot/flow/handlers/text.py

Handles: STEP 3 – Free-text answer and submission

- Validates the answer length
- Completes the session and forwards it to the reviewer
- Re-attempts delivery for completed sessions the reviewer never received
"""

from accessbot.flow.context import BotContext
from accessbot.flow.handlers.common import advance_session, is_accepted, send_rejection
from accessbot.flow.machine import FlowEvent
from accessbot.models.session import Session, utcnow
from accessbot.schemas.telegram import Message, is_command
from accessbot.services.telegram_service import PARSE_MODE_HTML
from accessbot.core.exceptions import TelegramAPIError
from accessbot.utils.constants import (
    START_REQUIRED_MESSAGE,
    SUBMISSION_FAILED_MESSAGE,
    SUBMISSION_RECEIVED_MESSAGE,
    SUBMISSION_RETRY_MESSAGE,
)
from accessbot.utils.formatting import format_submission
from accessbot.utils.telegram_utils import create_decision_keyboard
from accessbot.core.logging import get_logger, LogContext

logger = get_logger(__name__)


async def forward_submission(ctx: BotContext, session: Session) -> bool:
    """
    Sends a completed session to the reviewer with approve/reject buttons.

    Returns:
        True if the reviewer message was delivered
    """
    try:
        await ctx.bot.send_message(
            ctx.reviewer_chat_id,
            format_submission(session),
            reply_markup=create_decision_keyboard(session.user_id),
            parse_mode=PARSE_MODE_HTML
        )
    except TelegramAPIError as e:
        logger.error(f"Error sending application to reviewer: {e.message}", extra={"user_id": session.user_id})
        return False

    ctx.store.mutate(session.user_id, lambda record: setattr(record, "submitted_at", utcnow()))
    logger.info(f"Sent application for user {session.user_id} to reviewer")
    return True


async def handle_text(ctx: BotContext, message: Message):
    # Commands are routed separately and never reach the questionnaire
    if message.from_user is None or is_command(message.text):
        return

    user_id = message.from_user.id
    session = ctx.store.get(user_id)
    if session is None:
        await ctx.bot.send_message(message.chat.id, START_REQUIRED_MESSAGE)
        return

    with LogContext(user_id=user_id, step=session.step.value):
        if session.awaiting_delivery:
            logger.info("Retrying delivery of completed application")
            await ctx.bot.send_message(message.chat.id, SUBMISSION_RETRY_MESSAGE)
            await _submit(ctx, message.chat.id, session)
            return

        result, session = advance_session(ctx, session, FlowEvent.text_message(user_id, message.text or ""))

        if not is_accepted(result):
            await send_rejection(ctx, message.chat.id, result)
            return

        logger.info("Text response saved, application completed")
        await _submit(ctx, message.chat.id, session)


async def _submit(ctx: BotContext, chat_id: int, session: Session):
    if await forward_submission(ctx, session):
        await ctx.bot.send_message(chat_id, SUBMISSION_RECEIVED_MESSAGE)
    else:
        await ctx.bot.send_message(chat_id, SUBMISSION_FAILED_MESSAGE)
