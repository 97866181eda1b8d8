"""
Driver tracking state machine.

Two states (Idle, Active) and two commands (Start, Stop). Raw action strings
from clients are parsed into a command at the boundary; anything that is not
exactly the start sentinel is a Stop, so a malformed action can never leave a
driver Active.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

START_ACTION = "start_tracking"


class TrackingState(str, enum.Enum):
    """Tracking state of a driver."""
    IDLE = "IDLE"
    ACTIVE = "ACTIVE"


class TrackingCommand(str, enum.Enum):
    START = "START"
    STOP = "STOP"


def parse_action(action: Any) -> TrackingCommand:
    if isinstance(action, str) and action == START_ACTION:
        return TrackingCommand.START
    return TrackingCommand.STOP


@dataclass(frozen=True)
class TrackingTransition:
    """Field values written by a tracking command."""
    state: TrackingState
    consent_given: bool
    consent_timestamp: Optional[datetime]

    @property
    def is_tracking(self) -> bool:
        return self.state is TrackingState.ACTIVE


def transition_for(command: TrackingCommand, received_at: datetime) -> TrackingTransition:
    """
    Target fields for a command. Both commands are idempotent and the result
    does not depend on the current state, so it can be written blindly in one
    atomic update.
    """
    if command is TrackingCommand.START:
        return TrackingTransition(TrackingState.ACTIVE, consent_given=True, consent_timestamp=received_at)
    return TrackingTransition(TrackingState.IDLE, consent_given=False, consent_timestamp=None)
