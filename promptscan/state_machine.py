"""
Scan State Machine
==================
Lifecycle of a single scan:

    IDLE → METADATA_FETCHED → BOUNDARIES_COMPUTED → TEXT_RESOLVED → DONE

with early exits to DONE for the "no headings" and "no directives" results
and a transition to FAILED from any non-terminal state. A new machine is
created for every scan; nothing carries over between scans.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ScanState(Enum):
    IDLE = "IDLE"
    METADATA_FETCHED = "METADATA_FETCHED"
    BOUNDARIES_COMPUTED = "BOUNDARIES_COMPUTED"
    TEXT_RESOLVED = "TEXT_RESOLVED"
    DONE = "DONE"
    FAILED = "FAILED"


TERMINAL_STATES = {ScanState.DONE, ScanState.FAILED}

TRANSITIONS: dict[ScanState, set[ScanState]] = {
    ScanState.IDLE: {ScanState.METADATA_FETCHED},
    # DONE directly: no headings
    ScanState.METADATA_FETCHED: {ScanState.BOUNDARIES_COMPUTED, ScanState.DONE},
    # DONE directly: no directives
    ScanState.BOUNDARIES_COMPUTED: {ScanState.TEXT_RESOLVED, ScanState.DONE},
    ScanState.TEXT_RESOLVED: {ScanState.DONE},
    ScanState.DONE: set(),
    ScanState.FAILED: set(),
}


class InvalidTransition(RuntimeError):
    """Raised when a scan skips or repeats a phase."""


class ScanStateMachine:

    def __init__(self):
        self.state = ScanState.IDLE
        self.history: list[ScanState] = [ScanState.IDLE]
        self.failure_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: ScanState):
        if target == ScanState.FAILED:
            raise InvalidTransition("Use fail() to enter FAILED")
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(
                f"Cannot move from {self.state.value} to {target.value}"
            )
        logger.debug(f"Scan state {self.state.value} → {target.value}")
        self.state = target
        self.history.append(target)

    def fail(self, reason: str):
        if self.is_terminal:
            raise InvalidTransition(
                f"Cannot fail a scan in terminal state {self.state.value}"
            )
        logger.debug(f"Scan state {self.state.value} → FAILED: {reason}")
        self.state = ScanState.FAILED
        self.failure_reason = reason
        self.history.append(ScanState.FAILED)
