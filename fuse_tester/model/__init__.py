"""Business logic: circuit model, test cases and the sequence orchestrator."""

from .circuit import (
    DEFAULT_NETWORK,
    DEFAULT_TOLERANCE,
    NetworkParameters,
    TolerancePolicy,
    expected_voltage,
    tolerance_window,
)
from .test_case import FuseStates, TestCase, TestResult, build_test_cases
from .cancellation import CancellationToken, SequenceCancelled
from .state_machine import SequenceState, StateMachine
from .sequencer import SequenceOrchestrator, SequenceSettings, select_range

__all__ = [
    "DEFAULT_NETWORK",
    "DEFAULT_TOLERANCE",
    "NetworkParameters",
    "TolerancePolicy",
    "expected_voltage",
    "tolerance_window",
    "FuseStates",
    "TestCase",
    "TestResult",
    "build_test_cases",
    "CancellationToken",
    "SequenceCancelled",
    "SequenceState",
    "StateMachine",
    "SequenceOrchestrator",
    "SequenceSettings",
    "select_range",
]
