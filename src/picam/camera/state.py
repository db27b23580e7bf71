"""
Exclusive-access state guard for the camera.

Every operation must win a transition here before touching hardware.
The legal transitions live in TRANSITION_TABLE so they can be checked
exhaustively; the guard only looks them up under its lock.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Type

from picam.camera.errors import (
    GuardRejection,
    CameraBusyCapturing,
    CameraBusyRecording,
    CameraBusyProcessing,
    NotRecording,
    UnexpectedState,
)

logger = logging.getLogger(__name__)


class CameraState(Enum):
    """What the camera is currently doing."""
    FREE = "free"
    RECORDING = "recording"
    STOPPING = "stopping"
    CAPTURING = "capturing"


@dataclass(frozen=True)
class Transition:
    """Outcome of requesting one state from another."""
    next_state: Optional[CameraState] = None
    rejection: Optional[Type[GuardRejection]] = None

    @property
    def allowed(self) -> bool:
        return self.rejection is None


def _allow(state: CameraState) -> Transition:
    return Transition(next_state=state)


def _deny(rejection: Type[GuardRejection]) -> Transition:
    return Transition(rejection=rejection)


# Requests for FREE never reach the table: freeing always succeeds.
TRANSITION_TABLE: Dict[Tuple[CameraState, CameraState], Transition] = {
    (CameraState.FREE, CameraState.CAPTURING): _allow(CameraState.CAPTURING),
    (CameraState.FREE, CameraState.RECORDING): _allow(CameraState.RECORDING),
    (CameraState.FREE, CameraState.STOPPING): _deny(NotRecording),

    (CameraState.CAPTURING, CameraState.CAPTURING): _deny(CameraBusyCapturing),
    (CameraState.CAPTURING, CameraState.RECORDING): _deny(CameraBusyCapturing),
    (CameraState.CAPTURING, CameraState.STOPPING): _deny(CameraBusyCapturing),

    (CameraState.RECORDING, CameraState.CAPTURING): _deny(CameraBusyRecording),
    (CameraState.RECORDING, CameraState.RECORDING): _deny(CameraBusyRecording),
    (CameraState.RECORDING, CameraState.STOPPING): _allow(CameraState.STOPPING),

    (CameraState.STOPPING, CameraState.CAPTURING): _deny(CameraBusyProcessing),
    (CameraState.STOPPING, CameraState.RECORDING): _deny(CameraBusyProcessing),
    (CameraState.STOPPING, CameraState.STOPPING): _deny(CameraBusyProcessing),
}


class StateGuard:
    """
    Mutex-protected camera state.

    The whole check-and-set in request_transition() runs under one lock,
    so no caller can act on a stale state.
    """

    def __init__(self, table: Optional[Dict[Tuple[CameraState, CameraState], Transition]] = None):
        self._state = CameraState.FREE
        self._table = TRANSITION_TABLE if table is None else table
        self._lock = threading.Lock()

    @property
    def state(self) -> CameraState:
        with self._lock:
            return self._state

    def request_transition(self, desired: CameraState) -> None:
        """
        Move to the desired state or raise the matching GuardRejection.

        Args:
            desired: State the caller wants to enter

        Raises:
            GuardRejection: If the transition is illegal from the current state
        """
        with self._lock:
            current = self._state

            if desired is CameraState.FREE:
                self._state = CameraState.FREE
                if current is not CameraState.FREE:
                    logger.debug(f"Camera state {current.value} -> free")
                return

            transition = self._table.get((current, desired))
            if transition is None:
                raise UnexpectedState(current, desired)
            if not transition.allowed:
                raise transition.rejection(current, desired)

            self._state = transition.next_state
            logger.debug(f"Camera state {current.value} -> {self._state.value}")

    def release(self) -> None:
        """Return to FREE. Never fails."""
        self.request_transition(CameraState.FREE)

    @contextmanager
    def hold(self, desired: CameraState) -> Iterator[None]:
        """
        Enter a state for the duration of a block, then release to FREE.

        The transition is requested before the block runs; a rejection
        propagates without touching the state.
        """
        self.request_transition(desired)
        try:
            yield
        finally:
            self.release()
