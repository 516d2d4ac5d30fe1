"""
accessbot/flow/handlers/poll.py

Handles: STEP 2 – Poll answer

- Maps the selected option index to its label
- Prompts for the free-text answer
"""

from accessbot.flow.context import BotContext
from accessbot.flow.handlers.common import advance_session, is_accepted, send_rejection
from accessbot.flow.machine import FlowEvent
from accessbot.flow.states import SessionStep, get_progress_message
from accessbot.schemas.telegram import PollAnswer
from accessbot.utils.constants import ASK_TEXT_MESSAGE, POLL_RECEIVED_MESSAGE, START_REQUIRED_MESSAGE
from accessbot.core.logging import get_logger, LogContext

logger = get_logger(__name__)


async def handle_poll_answer(ctx: BotContext, answer: PollAnswer):
    """
    Poll answers carry no chat; replies go to the voter's private chat,
    whose id equals the user id.
    """
    if answer.user is None:
        logger.debug(f"Ignoring poll answer without user (poll {answer.poll_id})")
        return

    user_id = answer.user.id
    session = ctx.store.get(user_id)
    if session is None:
        await ctx.bot.send_message(user_id, START_REQUIRED_MESSAGE)
        return

    with LogContext(user_id=user_id, step=session.step.value):
        result, session = advance_session(ctx, session, FlowEvent.poll_answer(user_id, answer.option_ids))

        if not is_accepted(result):
            await send_rejection(ctx, user_id, result)
            return

        logger.info(f"Poll choice saved: {session.poll_choice}")

        await ctx.bot.send_message(user_id, POLL_RECEIVED_MESSAGE)
        await ctx.bot.send_message(
            user_id,
            ASK_TEXT_MESSAGE.format(progress=get_progress_message(SessionStep.AWAITING_TEXT))
        )
