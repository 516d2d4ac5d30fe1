"""
accessbot/models/session.py

Purpose: Questionnaire session record

- Telegram user id and display metadata
- Current step and collected answers
- Start / submission timestamps
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from accessbot.flow.states import SessionStep


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """
    One in-progress access request, keyed by Telegram user id.
    """
    user_id: int
    step: SessionStep = SessionStep.AWAITING_PHONE
    phone_number: Optional[str] = None
    poll_choice: Optional[str] = None
    text_response: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    started_at: datetime = field(default_factory=utcnow)
    submitted_at: Optional[datetime] = None  # Set once the reviewer received it

    @property
    def display_name(self) -> str:
        """Username if known, otherwise the full name."""
        if self.username:
            return self.username

        first_name = self.first_name or ""
        last_name = self.last_name or ""

        if first_name and last_name:
            return f"{first_name} {last_name}"

        return first_name or last_name or "Unknown user"

    @property
    def is_completed(self) -> bool:
        return self.step == SessionStep.COMPLETED

    @property
    def awaiting_delivery(self) -> bool:
        """Completed but the reviewer never received the submission."""
        return self.is_completed and self.submitted_at is None
