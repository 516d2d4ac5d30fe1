"""
accessbot/schemas/telegram.py

Purpose: Telegram update schemas and parsers

- Validates incoming updates (webhook body or getUpdates item)
- Keeps only the fields the bot reads
- Classifies an update into the event kinds the dispatcher routes
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Tuple

COMMAND_PREFIX = "/"


class TelegramModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TelegramUser(TelegramModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None


class Chat(TelegramModel):
    id: int
    type: str = "private"


class Contact(TelegramModel):
    phone_number: str
    first_name: str = ""
    last_name: Optional[str] = None
    user_id: Optional[int] = None  # Absent when the contact is not a Telegram user


class Message(TelegramModel):
    message_id: int
    date: int = 0
    chat: Chat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None
    contact: Optional[Contact] = None


class PollAnswer(TelegramModel):
    poll_id: str
    user: Optional[TelegramUser] = None
    option_ids: List[int] = Field(default_factory=list)


class CallbackQuery(TelegramModel):
    id: str
    from_user: TelegramUser = Field(alias="from")
    message: Optional[Message] = None
    data: Optional[str] = None


class Update(TelegramModel):
    """
    Incoming Telegram update.

    Example:
        {"update_id": 1, "message": {"message_id": 5, "chat": {"id": 42},
         "from": {"id": 42, "first_name": "Ann"}, "text": "/start"}}
    """
    update_id: int
    message: Optional[Message] = None
    poll_answer: Optional[PollAnswer] = None
    callback_query: Optional[CallbackQuery] = None


class UpdateKind(str, Enum):
    COMMAND = "command"
    CONTACT = "contact"
    TEXT = "text"
    POLL_ANSWER = "poll_answer"
    CALLBACK_QUERY = "callback_query"
    UNSUPPORTED = "unsupported"


def is_command(text: Optional[str]) -> bool:
    return bool(text) and text.startswith(COMMAND_PREFIX)


def parse_command(text: Optional[str]) -> Optional[Tuple[str, List[str]]]:
    """
    Splits a command message into name and arguments.

    "/approve@MyBot 42" -> ("approve", ["42"])

    Returns:
        (command, args) or None if the text is not a command
    """
    if not is_command(text):
        return None
    head, *args = text.split()
    command = head[len(COMMAND_PREFIX):].split("@", 1)[0].lower()
    if not command:
        return None
    return command, args


def classify_update(update: Update) -> UpdateKind:
    """
    Detects which kind of event an update carries.
    """
    if update.callback_query is not None:
        return UpdateKind.CALLBACK_QUERY
    if update.poll_answer is not None:
        return UpdateKind.POLL_ANSWER

    message = update.message
    if message is None or message.from_user is None:
        return UpdateKind.UNSUPPORTED
    if message.contact is not None:
        return UpdateKind.CONTACT
    if message.text is None:
        return UpdateKind.UNSUPPORTED
    if parse_command(message.text) is not None:
        return UpdateKind.COMMAND
    return UpdateKind.TEXT
