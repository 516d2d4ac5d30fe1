"""
accessbot/flow/handlers/review.py

Handles: reviewer decisions

- Approve / reject inline buttons on forwarded applications
- /approve <user_id> and /deny <user_id> reviewer commands
- Issues the invite link or notifies the user, then clears the session
"""

from typing import List, Optional

from accessbot.flow.context import BotContext
from accessbot.flow.reviewer import CallbackKind, ReviewAction, parse_callback_data, parse_user_id
from accessbot.schemas.telegram import CallbackQuery, Message
from accessbot.services.telegram_service import PARSE_MODE_HTML
from accessbot.core.exceptions import TelegramAPIError
from accessbot.utils.constants import (
    APPROVED_MARK,
    APPROVED_USER_MESSAGE,
    CALLBACK_APPROVED,
    CALLBACK_INVALID,
    CALLBACK_NOT_COMPLETED,
    CALLBACK_PROCESSING_ERROR,
    CALLBACK_REJECTED,
    CALLBACK_SESSION_NOT_FOUND,
    CALLBACK_UNAUTHORIZED,
    CALLBACK_UNKNOWN_ACTION,
    COMMAND_APPROVED_MESSAGE,
    COMMAND_FAILED_MESSAGE,
    COMMAND_REJECTED_MESSAGE,
    COMMAND_UNAUTHORIZED_MESSAGE,
    COMMAND_USAGE_MESSAGE,
    REJECTED_MARK,
    REJECTED_USER_MESSAGE,
)
from accessbot.utils.formatting import annotate_decision, format_duration
from accessbot.utils.telegram_utils import empty_inline_keyboard
from accessbot.core.logging import get_logger, LogContext

logger = get_logger(__name__)

DECISION_LABELS = {ReviewAction.APPROVE: "approved", ReviewAction.REJECT: "rejected"}


async def execute_decision(ctx: BotContext, action: ReviewAction, user_id: int):
    """
    Performs the user-facing side effect of a decision.

    Approve creates a single-use, time-limited invite link and sends it;
    reject sends the rejection notice.

    Raises:
        TelegramAPIError: If any platform call fails
    """
    if action == ReviewAction.APPROVE:
        invite_link = await ctx.bot.create_chat_invite_link(
            ctx.config.CHANNEL_ID,
            expire_seconds=ctx.config.INVITE_EXPIRE_SECONDS,
            member_limit=ctx.config.INVITE_MEMBER_LIMIT
        )
        await ctx.bot.send_message(
            user_id,
            APPROVED_USER_MESSAGE.format(
                invite_link=invite_link,
                expires_in=format_duration(ctx.config.INVITE_EXPIRE_SECONDS)
            )
        )
    else:
        await ctx.bot.send_message(user_id, REJECTED_USER_MESSAGE)


async def handle_callback_query(ctx: BotContext, query: CallbackQuery):
    """
    Processes a click on an approve/reject button.

    Checks run in order: reviewer identity, payload shape, session presence,
    action, session completeness. Any failed check is answered with an alert
    and changes nothing.
    """
    sender_id = query.from_user.id

    with LogContext(reviewer_id=sender_id):
        if not ctx.gate.is_reviewer(sender_id):
            logger.warning(f"Unauthorized decision attempt by {sender_id}")
            await ctx.bot.answer_callback_query(query.id, CALLBACK_UNAUTHORIZED, show_alert=True)
            return

        payload = parse_callback_data(query.data)
        if not payload.is_valid:
            await ctx.bot.answer_callback_query(query.id, CALLBACK_INVALID, show_alert=True)
            return

        session = ctx.store.get(payload.user_id)
        if session is None:
            await ctx.bot.answer_callback_query(query.id, CALLBACK_SESSION_NOT_FOUND, show_alert=True)
            return

        if payload.kind == CallbackKind.UNKNOWN:
            logger.warning(f"Unknown callback action: {payload.action}")
            await ctx.bot.answer_callback_query(query.id, CALLBACK_UNKNOWN_ACTION, show_alert=True)
            return

        if not session.is_completed:
            await ctx.bot.answer_callback_query(query.id, CALLBACK_NOT_COMPLETED, show_alert=True)
            return

        if payload.kind == CallbackKind.APPROVE:
            action, mark, answer = ReviewAction.APPROVE, APPROVED_MARK, CALLBACK_APPROVED
        else:
            action, mark, answer = ReviewAction.REJECT, REJECTED_MARK, CALLBACK_REJECTED

        try:
            await execute_decision(ctx, action, session.user_id)
            if query.message is not None:
                await _mark_decided(ctx, query, mark)
        except TelegramAPIError as e:
            logger.error(f"Error processing reviewer action: {e.message}", exc_info=True)
            await ctx.bot.answer_callback_query(query.id, CALLBACK_PROCESSING_ERROR, show_alert=True)
            return

        ctx.store.delete(session.user_id)
        logger.info(f"User {session.user_id} {DECISION_LABELS[action]} by reviewer")

        # Decision is final past this point
        try:
            await ctx.bot.answer_callback_query(query.id, answer)
        except TelegramAPIError as e:
            logger.warning(f"Could not answer callback {query.id}: {e.message}")


async def _mark_decided(ctx: BotContext, query: CallbackQuery, mark: str):
    """Removes the buttons and appends the decision to the reviewer's message."""
    chat_id = query.message.chat.id
    message_id = query.message.message_id

    await ctx.bot.edit_message_reply_markup(chat_id, message_id, empty_inline_keyboard())
    await ctx.bot.edit_message_text(
        chat_id,
        message_id,
        annotate_decision(query.message.text, mark),
        parse_mode=PARSE_MODE_HTML
    )


async def handle_review_command(
    ctx: BotContext,
    message: Message,
    args: Optional[List[str]] = None,
    action: ReviewAction = ReviewAction.APPROVE
):
    """
    /approve <user_id> or /deny <user_id>, reviewer only.

    Works with or without a questionnaire session (users may come from
    /request); an existing session is cleared after the decision.
    """
    user = message.from_user
    command = "approve" if action == ReviewAction.APPROVE else "deny"

    if user is None or not ctx.gate.is_reviewer(user.id):
        await ctx.bot.send_message(message.chat.id, COMMAND_UNAUTHORIZED_MESSAGE)
        return

    user_id = parse_user_id(args[0]) if args else None
    if user_id is None:
        await ctx.bot.send_message(message.chat.id, COMMAND_USAGE_MESSAGE.format(command=command))
        return

    with LogContext(reviewer_id=user.id, user_id=user_id):
        try:
            await execute_decision(ctx, action, user_id)
        except TelegramAPIError as e:
            logger.error(f"Error processing /{command} for {user_id}: {e.message}")
            await ctx.bot.send_message(message.chat.id, COMMAND_FAILED_MESSAGE.format(user_id=user_id))
            return

        ctx.store.delete(user_id)
        logger.info(f"User {user_id} {DECISION_LABELS[action]} via /{command}")

        template = COMMAND_APPROVED_MESSAGE if action == ReviewAction.APPROVE else COMMAND_REJECTED_MESSAGE
        await ctx.bot.send_message(message.chat.id, template.format(user_id=user_id))
