"""
accessbot/utils/formatting.py

Purpose: Message formatting helpers

- Reviewer submission card (HTML)
- Plain-text user info for /request
- Decision annotation of the reviewer's message
"""

from html import escape
from typing import Optional

from accessbot.models.session import Session
from accessbot.schemas.telegram import TelegramUser
from accessbot.utils.constants import NOT_AVAILABLE, REVIEWER_SUBMISSION_TEMPLATE


def _code(value: Optional[str]) -> str:
    return escape(value) if value else NOT_AVAILABLE


def format_submission(session: Session) -> str:
    """
    Builds the HTML message the reviewer receives for a completed session.
    All user-provided values are escaped.
    """
    return REVIEWER_SUBMISSION_TEMPLATE.format(
        display_name=escape(session.display_name),
        username=escape(f"@{session.username}") if session.username else NOT_AVAILABLE,
        user_id=session.user_id,
        phone=_code(session.phone_number),
        poll_choice=_code(session.poll_choice),
        text_response=_code(session.text_response),
        started_at=session.started_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
    )


def format_user_info(user: Optional[TelegramUser]) -> str:
    if user is None:
        return "Unknown user"

    full_name = user.first_name
    if user.last_name:
        full_name = f"{full_name} {user.last_name}"

    parts = [
        f"User ID: {user.id}",
        f"Username: {'@' + user.username if user.username else NOT_AVAILABLE}",
        f"Name: {full_name}",
    ]
    return "\n".join(parts)


def annotate_decision(original_text: Optional[str], mark: str) -> str:
    """
    Appends a decision mark to the reviewer's message.

    original_text arrives without formatting, so it is escaped before the
    HTML mark is appended.
    """
    if not original_text:
        return mark
    return f"{escape(original_text)}\n\n{mark}"


def format_duration(seconds: int) -> str:
    """3600 -> "1 hour", 5400 -> "90 minutes", 45 -> "45 seconds"."""
    if seconds % 3600 == 0:
        hours = seconds // 3600
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} second" if seconds == 1 else f"{seconds} seconds"
