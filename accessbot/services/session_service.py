"""
accessbot/services/session_service.py

Purpose: Session storage and lifecycle

- Creates / reads / mutates / deletes per-user sessions
- Enforces forward-only step transitions on mutation
- In-memory only: sessions live as long as the process
"""

from dataclasses import replace
from typing import Callable, Dict, Optional

from accessbot.models.session import Session, utcnow
from accessbot.flow.states import is_valid_transition
from accessbot.core.exceptions import SessionNotFoundError, ValidationError
from accessbot.core.logging import get_logger, LogContext

logger = get_logger(__name__)


class SessionStore:
    """
    In-memory mapping of Telegram user id to Session.

    Owned by the dispatcher; every operation is synchronous.
    """

    def __init__(self):
        self._sessions: Dict[int, Session] = {}

    def create(
        self,
        user_id: int,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Session:
        """
        Starts a fresh session, overwriting any existing one for the user.

        Returns:
            The new session at AWAITING_PHONE
        """
        replaced = user_id in self._sessions
        session = Session(
            user_id=user_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            started_at=utcnow(),
        )
        self._sessions[user_id] = session

        with LogContext(user_id=user_id, step=session.step.value):
            if replaced:
                logger.info("Session restarted, previous answers discarded")
            else:
                logger.info("Session created")

        return session

    def get(self, user_id: int) -> Optional[Session]:
        return self._sessions.get(user_id)

    def mutate(self, user_id: int, fn: Callable[[Session], None]) -> Session:
        """
        Applies an in-place update to a session.

        Args:
            user_id: Telegram user id
            fn: Callable that modifies the session

        Returns:
            The updated session

        Raises:
            SessionNotFoundError: If the user has no session
            ValidationError: If fn moved the step anywhere but one step forward
        """
        session = self._sessions.get(user_id)
        if session is None:
            raise SessionNotFoundError(f"No session for user {user_id}", details={"user_id": user_id})

        previous_step = session.step
        # Changes are made on a copy and only committed if the step move is valid
        updated = replace(session)
        fn(updated)

        if updated.step != previous_step and not is_valid_transition(previous_step, updated.step):
            raise ValidationError(
                f"Invalid step transition: {previous_step.value} -> {updated.step.value}",
                details={"user_id": user_id}
            )

        self._sessions[user_id] = updated
        session = updated

        if session.step != previous_step:
            with LogContext(user_id=user_id, step=session.step.value):
                logger.info(f"Step updated: {previous_step.value} -> {session.step.value}")

        return session

    def delete(self, user_id: int) -> bool:
        """
        Removes a session.

        Returns:
            True if a session existed
        """
        deleted = self._sessions.pop(user_id, None) is not None

        if deleted:
            logger.info(f"Cleared session for user {user_id}", extra={"user_id": user_id})
        else:
            logger.debug(f"No session found for user {user_id}", extra={"user_id": user_id})

        return deleted

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
