"""
accessbot/flow/states.py

Purpose: Defines all questionnaire steps

- Enum for each step in the flow
  (AWAITING_PHONE, AWAITING_POLL, AWAITING_TEXT, COMPLETED)
- Single source of truth for flow stages
- Forward-only transition table
- Metadata for each step (display name, step number, reminder)
"""

from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass


class SessionStep(str, Enum):
    """
    Possible positions of a session in the access-request questionnaire.
    """

    AWAITING_PHONE = "AWAITING_PHONE"
    AWAITING_POLL = "AWAITING_POLL"
    AWAITING_TEXT = "AWAITING_TEXT"
    COMPLETED = "COMPLETED"


@dataclass
class StepMetadata:
    """
    Metadata associated with each step.
    """
    name: SessionStep
    step_number: Optional[int] = None  # For progress tracking
    total_steps: int = 3  # Questions in the happy path
    reminder: str = ""  # Corrective prompt when the wrong kind of input arrives


STEP_METADATA: Dict[SessionStep, StepMetadata] = {
    SessionStep.AWAITING_PHONE: StepMetadata(
        name=SessionStep.AWAITING_PHONE,
        step_number=1,
        reminder="Please share your phone number using the button provided."
    ),
    SessionStep.AWAITING_POLL: StepMetadata(
        name=SessionStep.AWAITING_POLL,
        step_number=2,
        reminder="Please answer the poll first."
    ),
    SessionStep.AWAITING_TEXT: StepMetadata(
        name=SessionStep.AWAITING_TEXT,
        step_number=3,
        reminder="Please provide your text response."
    ),
    SessionStep.COMPLETED: StepMetadata(
        name=SessionStep.COMPLETED,
        reminder="You have already completed the authorization process."
    ),
}


# Valid step transitions - a session never skips or goes back a step
STEP_TRANSITIONS: Dict[SessionStep, List[SessionStep]] = {
    SessionStep.AWAITING_PHONE: [SessionStep.AWAITING_POLL],
    SessionStep.AWAITING_POLL: [SessionStep.AWAITING_TEXT],
    SessionStep.AWAITING_TEXT: [SessionStep.COMPLETED],
    SessionStep.COMPLETED: [],
}


def is_valid_transition(from_step: SessionStep, to_step: SessionStep) -> bool:
    """
    Checks if a step transition is valid.

    Args:
        from_step: Current step
        to_step: Target step

    Returns:
        True if transition is allowed, False otherwise
    """
    return to_step in STEP_TRANSITIONS.get(from_step, [])


def get_step_metadata(step: SessionStep) -> StepMetadata:
    """Retrieves metadata for a given step."""
    return STEP_METADATA[step]


def get_progress_message(step: SessionStep) -> str:
    """
    Generates a progress prefix for the current step.

    Returns:
        Progress label (e.g., "Step 2/3"), empty for non-question steps
    """
    metadata = get_step_metadata(step)
    if metadata.step_number:
        return f"Step {metadata.step_number}/{metadata.total_steps}"
    return ""
