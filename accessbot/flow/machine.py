"""
accessbot/flow/machine.py

Purpose: Pure questionnaire transition logic

- Decides, for a (step, event) pair, whether the event is accepted
- Produces the next step and the session fields to set
- No I/O, no session store access: independently testable
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from accessbot.flow.states import SessionStep


class EventKind(str, Enum):
    """Inbound user events that can advance the questionnaire."""
    CONTACT = "contact"
    POLL_ANSWER = "poll_answer"
    TEXT = "text"


class RejectReason(str, Enum):
    WRONG_STEP = "WRONG_STEP"
    FOREIGN_CONTACT = "FOREIGN_CONTACT"
    EMPTY_SELECTION = "EMPTY_SELECTION"
    OPTION_OUT_OF_RANGE = "OPTION_OUT_OF_RANGE"
    TEXT_TOO_SHORT = "TEXT_TOO_SHORT"
    TEXT_TOO_LONG = "TEXT_TOO_LONG"


# Event kind expected by each step
EXPECTED_EVENT: Dict[SessionStep, EventKind] = {
    SessionStep.AWAITING_PHONE: EventKind.CONTACT,
    SessionStep.AWAITING_POLL: EventKind.POLL_ANSWER,
    SessionStep.AWAITING_TEXT: EventKind.TEXT,
}


@dataclass(frozen=True)
class FlowEvent:
    """
    Normalized questionnaire input.

    Only the fields relevant to ``kind`` are read.
    """
    kind: EventKind
    sender_id: int
    phone_number: Optional[str] = None
    contact_user_id: Optional[int] = None
    option_ids: Tuple[int, ...] = ()
    text: Optional[str] = None

    @classmethod
    def contact(cls, sender_id: int, phone_number: str, contact_user_id: Optional[int]) -> "FlowEvent":
        return cls(EventKind.CONTACT, sender_id, phone_number=phone_number, contact_user_id=contact_user_id)

    @classmethod
    def poll_answer(cls, sender_id: int, option_ids: Sequence[int]) -> "FlowEvent":
        return cls(EventKind.POLL_ANSWER, sender_id, option_ids=tuple(option_ids))

    @classmethod
    def text_message(cls, sender_id: int, text: str) -> "FlowEvent":
        return cls(EventKind.TEXT, sender_id, text=text)


@dataclass(frozen=True)
class FlowLimits:
    """Validation bounds for the questionnaire answers."""
    text_min_length: int = 10
    text_max_length: int = 500
    poll_options: Tuple[str, ...] = ("Option A", "Option B")


@dataclass(frozen=True)
class Accept:
    next_step: SessionStep
    mutation: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Reject:
    step: SessionStep
    reason: RejectReason


TransitionResult = Union[Accept, Reject]


def transition(step: SessionStep, event: FlowEvent, limits: FlowLimits) -> TransitionResult:
    """
    Applies an event to the current step.

    Args:
        step: Current session step
        event: Normalized inbound event
        limits: Answer validation bounds

    Returns:
        Accept with the next step and fields to store, or Reject carrying
        the unchanged step so the caller can send a step-specific reminder
    """
    if EXPECTED_EVENT.get(step) != event.kind:
        return Reject(step, RejectReason.WRONG_STEP)

    if event.kind == EventKind.CONTACT:
        # Only the sender's own contact is accepted
        if event.contact_user_id != event.sender_id:
            return Reject(step, RejectReason.FOREIGN_CONTACT)
        return Accept(SessionStep.AWAITING_POLL, {"phone_number": event.phone_number})

    if event.kind == EventKind.POLL_ANSWER:
        if not event.option_ids:
            return Reject(step, RejectReason.EMPTY_SELECTION)
        index = event.option_ids[0]
        if not 0 <= index < len(limits.poll_options):
            return Reject(step, RejectReason.OPTION_OUT_OF_RANGE)
        return Accept(SessionStep.AWAITING_TEXT, {"poll_choice": limits.poll_options[index]})

    text = (event.text or "").strip()
    if len(text) < limits.text_min_length:
        return Reject(step, RejectReason.TEXT_TOO_SHORT)
    if len(text) > limits.text_max_length:
        return Reject(step, RejectReason.TEXT_TOO_LONG)
    return Accept(SessionStep.COMPLETED, {"text_response": text})
