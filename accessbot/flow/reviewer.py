"""
accessbot/flow/reviewer.py

Purpose: Reviewer authorization and decision payloads

- ReviewerGate: only the configured reviewer may act on submissions
- Builds and parses the "action:user_id" inline button payload
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from accessbot.core.logging import get_logger

logger = get_logger(__name__)

CALLBACK_SEPARATOR = ":"
USER_ID_PATTERN = re.compile(r"-?[0-9]+")


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class CallbackKind(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    UNKNOWN = "UNKNOWN"  # well-formed, but the action is not one we handle
    INVALID = "INVALID"  # missing action or bad user id


@dataclass(frozen=True)
class CallbackPayload:
    kind: CallbackKind
    user_id: Optional[int] = None
    action: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.kind != CallbackKind.INVALID


class ReviewerGate:
    """
    Authorization predicate for reviewer-only actions. Stateless.
    """

    def __init__(self, reviewer_id: Union[str, int]):
        self.reviewer_id = str(reviewer_id).strip()

    def is_reviewer(self, sender_id: Optional[Union[str, int]]) -> bool:
        if sender_id is None:
            return False
        return str(sender_id) == self.reviewer_id


def build_callback_data(action: ReviewAction, user_id: int) -> str:
    return f"{action.value}{CALLBACK_SEPARATOR}{user_id}"


def parse_user_id(raw: Optional[str]) -> Optional[int]:
    """
    Parses a Telegram user id.

    Returns:
        The id, or None if raw is empty, non-numeric or zero
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not USER_ID_PATTERN.fullmatch(raw):
        return None
    user_id = int(raw)
    return user_id or None


def parse_callback_data(data: Optional[str]) -> CallbackPayload:
    """
    Parses an inline button payload of the form "action:user_id".

    Args:
        data: Raw callback_data string

    Returns:
        CallbackPayload tagged APPROVE / REJECT / UNKNOWN, or INVALID
        when the payload does not have exactly two usable fields
    """
    if not data:
        return CallbackPayload(CallbackKind.INVALID)

    parts = data.split(CALLBACK_SEPARATOR)
    if len(parts) != 2:
        logger.warning(f"Malformed callback data: {data!r}")
        return CallbackPayload(CallbackKind.INVALID)

    action, raw_user_id = parts[0].strip(), parts[1]
    user_id = parse_user_id(raw_user_id)

    if not action or user_id is None:
        logger.warning(f"Malformed callback data: {data!r}")
        return CallbackPayload(CallbackKind.INVALID)

    if action == ReviewAction.APPROVE.value:
        return CallbackPayload(CallbackKind.APPROVE, user_id, action)
    if action == ReviewAction.REJECT.value:
        return CallbackPayload(CallbackKind.REJECT, user_id, action)
    return CallbackPayload(CallbackKind.UNKNOWN, user_id, action)
