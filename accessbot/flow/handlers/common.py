"""
accessbot/flow/handlers/common.py

Shared helpers for questionnaire handlers:

- Applies a state machine decision to the stored session
- Sends the corrective prompt for a rejected event
"""

from typing import Any, Tuple

from accessbot.flow.context import BotContext
from accessbot.flow.machine import Accept, FlowEvent, Reject, RejectReason, TransitionResult, transition
from accessbot.flow.states import SessionStep, get_step_metadata
from accessbot.models.session import Session
from accessbot.utils.constants import (
    EMPTY_POLL_SELECTION_MESSAGE,
    FOREIGN_CONTACT_MESSAGE,
    INVALID_POLL_OPTION_MESSAGE,
    TEXT_TOO_LONG_MESSAGE,
    TEXT_TOO_SHORT_MESSAGE,
)
from accessbot.utils.telegram_utils import create_contact_keyboard
from accessbot.core.logging import get_logger

logger = get_logger(__name__)


def advance_session(ctx: BotContext, session: Session, event: FlowEvent) -> Tuple[TransitionResult, Session]:
    """
    Runs the event through the state machine and stores accepted changes.

    Returns:
        (result, session) where session is the updated record on Accept
        and the untouched one on Reject
    """
    result = transition(session.step, event, ctx.limits)

    if isinstance(result, Reject):
        logger.info(
            f"Event {event.kind.value} rejected: {result.reason.value}",
            extra={"user_id": session.user_id, "step": session.step.value}
        )
        return result, session

    def apply(record: Session):
        for name, value in result.mutation.items():
            setattr(record, name, value)
        record.step = result.next_step

    return result, ctx.store.mutate(session.user_id, apply)


async def send_rejection(ctx: BotContext, chat_id: Any, reject: Reject):
    """
    Sends the step-appropriate corrective message for a rejected event.
    """
    reply_markup = None

    if reject.reason == RejectReason.FOREIGN_CONTACT:
        text = FOREIGN_CONTACT_MESSAGE
        reply_markup = create_contact_keyboard()
    elif reject.reason == RejectReason.EMPTY_SELECTION:
        text = EMPTY_POLL_SELECTION_MESSAGE
    elif reject.reason == RejectReason.OPTION_OUT_OF_RANGE:
        text = INVALID_POLL_OPTION_MESSAGE
    elif reject.reason == RejectReason.TEXT_TOO_SHORT:
        text = TEXT_TOO_SHORT_MESSAGE.format(min_length=ctx.limits.text_min_length)
    elif reject.reason == RejectReason.TEXT_TOO_LONG:
        text = TEXT_TOO_LONG_MESSAGE.format(max_length=ctx.limits.text_max_length)
    else:
        text = get_step_metadata(reject.step).reminder
        if reject.step == SessionStep.AWAITING_PHONE:
            reply_markup = create_contact_keyboard()

    await ctx.bot.send_message(chat_id, text, reply_markup=reply_markup)


def is_accepted(result: TransitionResult) -> bool:
    return isinstance(result, Accept)
