"""Meeting lifecycle: the voting_open state machine.

    Open --close--> Closed --reopen--> Open

Resolved is not a stored state; it is the side effect of Open -> Closed.
Only the caller whose compare-and-set actually flipped the flag may resolve.
"""

from enum import Enum
from typing import Optional


class Transition(str, Enum):
    NONE = "none"
    CLOSE = "close"
    REOPEN = "reopen"


def plan_transition(currently_open: bool, requested_open: Optional[bool]) -> Transition:
    """Which transition a requested voting_open value implies.

    requested_open=None means the update does not touch voting_open.
    """
    if requested_open is None or bool(requested_open) == bool(currently_open):
        return Transition.NONE
    return Transition.REOPEN if requested_open else Transition.CLOSE


def should_resolve(transition: Transition, flipped: bool) -> bool:
    """Resolution runs once per Open -> Closed, for the winner of the flip"""
    return transition is Transition.CLOSE and flipped
