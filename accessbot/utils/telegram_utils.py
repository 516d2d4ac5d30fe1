"""
accessbot/utils/telegram_utils.py

Purpose: Telegram reply_markup builders

- Contact-request reply keyboard
- Keyboard removal
- Inline keyboards (reviewer decision buttons)
"""

from typing import Any, Dict, List

from accessbot.flow.reviewer import ReviewAction, build_callback_data
from accessbot.utils.constants import APPROVE_BUTTON, REJECT_BUTTON, SHARE_PHONE_BUTTON


def create_contact_keyboard(button_text: str = SHARE_PHONE_BUTTON) -> Dict[str, Any]:
    """
    Creates a one-time reply keyboard with a single "share contact" button.
    """
    return {
        "keyboard": [[{"text": button_text, "request_contact": True}]],
        "one_time_keyboard": True,
        "resize_keyboard": True,
    }


def remove_keyboard() -> Dict[str, Any]:
    return {"remove_keyboard": True}


def create_inline_keyboard(buttons: List[List[Dict[str, str]]]) -> Dict[str, Any]:
    """
    Creates an inline keyboard.

    Args:
        buttons: Rows of button dicts with 'text' and 'callback_data' keys

    Example:
        create_inline_keyboard([[{"text": "Yes", "callback_data": "yes"}]])
    """
    return {
        "inline_keyboard": [
            [{"text": btn["text"], "callback_data": btn["callback_data"]} for btn in row]
            for row in buttons
        ]
    }


def create_decision_keyboard(user_id: int) -> Dict[str, Any]:
    """Approve / reject buttons attached to a forwarded submission."""
    return create_inline_keyboard([[
        {"text": APPROVE_BUTTON, "callback_data": build_callback_data(ReviewAction.APPROVE, user_id)},
        {"text": REJECT_BUTTON, "callback_data": build_callback_data(ReviewAction.REJECT, user_id)},
    ]])


def empty_inline_keyboard() -> Dict[str, Any]:
    return {"inline_keyboard": []}
