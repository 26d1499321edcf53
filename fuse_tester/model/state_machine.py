"""Sequence state machine."""

import logging
from enum import Enum, auto
from typing import Callable

logger = logging.getLogger(__name__)


class SequenceState(Enum):
    """Lifecycle states of a test sequence."""

    IDLE = auto()
    RUNNING = auto()
    COMPLETED = auto()
    CANCELLED = auto()
    FAILED = auto()


TERMINAL_STATES = frozenset(
    {SequenceState.COMPLETED, SequenceState.CANCELLED, SequenceState.FAILED}
)

# Valid transitions: from_state -> set of allowed to_states
_TRANSITIONS: dict[SequenceState, set[SequenceState]] = {
    SequenceState.IDLE: {SequenceState.RUNNING},
    SequenceState.RUNNING: set(TERMINAL_STATES),
    SequenceState.COMPLETED: {SequenceState.IDLE},
    SequenceState.CANCELLED: {SequenceState.IDLE},
    SequenceState.FAILED: {SequenceState.IDLE},
}

StateCallback = Callable[[SequenceState, SequenceState], None]


class StateMachine:
    """
    Tracks the sequence state and validates transitions.

    Callbacks receive (old_state, new_state) after every change.
    """

    def __init__(self, initial_state: SequenceState = SequenceState.IDLE):
        self._state = initial_state
        self._callbacks: list[StateCallback] = []

    @property
    def state(self) -> SequenceState:
        return self._state

    def can_transition_to(self, new_state: SequenceState) -> bool:
        return new_state in _TRANSITIONS[self._state]

    def transition_to(self, new_state: SequenceState) -> bool:
        """
        Transition to a new state.

        Args:
            new_state: Target state

        Returns:
            True once the machine is in new_state

        Raises:
            ValueError: If the transition is not allowed
        """
        if new_state == self._state:
            return True

        if not self.can_transition_to(new_state):
            raise ValueError(
                f"Invalid state transition: {self._state.name} -> {new_state.name}"
            )

        old_state = self._state
        self._state = new_state
        logger.debug("State: %s -> %s", old_state.name, new_state.name)

        for callback in list(self._callbacks):
            try:
                callback(old_state, new_state)
            except Exception as e:
                logger.error("Error in state callback: %s", e)

        return True

    def register_callback(self, callback: StateCallback) -> None:
        self._callbacks.append(callback)

    def unregister_callback(self, callback: StateCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # Convenience methods

    def to_running(self) -> None:
        self.transition_to(SequenceState.RUNNING)

    def to_completed(self) -> None:
        self.transition_to(SequenceState.COMPLETED)

    def to_cancelled(self) -> None:
        self.transition_to(SequenceState.CANCELLED)

    def to_failed(self) -> None:
        self.transition_to(SequenceState.FAILED)

    def to_idle(self) -> None:
        self.transition_to(SequenceState.IDLE)
