"""Sequence orchestrator - runs the fuse network test sequence."""

import asyncio
import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Callable

from ..instruments import VALID_RANGES, InstrumentSet, Integration
from .cancellation import CancellationToken, SequenceCancelled
from .state_machine import SequenceState, StateCallback, StateMachine
from .test_case import TestCase, TestResult, build_test_cases

logger = logging.getLogger(__name__)

# Type aliases
StatusCallback = Callable[[str], None]
ResultCallback = Callable[[TestResult], None]

# Integration setting used for every measurement (one line cycle)
MEASUREMENT_INTEGRATION = Integration.NPLC_1

STATUS_INITIALIZING = "Initializing instruments..."
STATUS_STARTING = "Starting test sequence..."
STATUS_COMPLETED = "All tests completed!"
STATUS_CANCELLED = "Tests cancelled"


@dataclass(frozen=True)
class SequenceSettings:
    """Drive levels and fixed delays of the test sequence."""

    drive_voltage_v: float = 24.0
    current_limit_a: float | None = None
    stabilization_delay_ms: int = 100
    inter_case_delay_ms: int = 300

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.drive_voltage_v < 0:
            raise ValueError(f"drive_voltage_v must be >= 0, got {self.drive_voltage_v}")
        if self.current_limit_a is not None and self.current_limit_a < 0:
            raise ValueError(
                f"current_limit_a must be >= 0, got {self.current_limit_a}"
            )
        if self.stabilization_delay_ms < 0:
            raise ValueError(
                f"stabilization_delay_ms must be >= 0, got {self.stabilization_delay_ms}"
            )
        if self.inter_case_delay_ms < 0:
            raise ValueError(
                f"inter_case_delay_ms must be >= 0, got {self.inter_case_delay_ms}"
            )

    @property
    def stabilization_delay_s(self) -> float:
        return self.stabilization_delay_ms / 1000

    @property
    def inter_case_delay_s(self) -> float:
        return self.inter_case_delay_ms / 1000


def select_range(expected: float) -> float:
    """Pick the meter range for an expected voltage (static decade lookup)."""
    if expected < 1.0:
        return 1.0
    if expected < 10.0:
        return 10.0
    return max(VALID_RANGES)


class SequenceOrchestrator:
    """
    Runs every test case against the instrument set, one at a time.

    Emits status text and test results to registered callbacks and
    guarantees that all sources are powered down after every case and
    at the end of every run, whatever the outcome.

    Only one run may be active at a time. cancel() is cooperative: it is
    observed at the top of each case, around every instrument call and
    inside every delay. A case interrupted by cancellation produces no
    result.
    """

    def __init__(
        self,
        instruments: InstrumentSet,
        test_cases: Iterable[TestCase] | None = None,
        settings: SequenceSettings | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            instruments: Sources and meter, owned exclusively for each run
            test_cases: Cases to execute; defaults to build_test_cases()
            settings: Drive levels and delays; defaults to SequenceSettings()
        """
        self._instruments = instruments
        self._test_cases: tuple[TestCase, ...] = (
            tuple(test_cases) if test_cases is not None else build_test_cases()
        )
        self._settings = settings or SequenceSettings()
        self._state_machine = StateMachine()
        self._token: CancellationToken | None = None
        self._last_outcome: SequenceState | None = None

        self._status_callbacks: list[StatusCallback] = []
        self._result_callbacks: list[ResultCallback] = []

    @property
    def test_cases(self) -> tuple[TestCase, ...]:
        return self._test_cases

    @property
    def state(self) -> SequenceState:
        return self._state_machine.state

    @property
    def is_running(self) -> bool:
        return self._state_machine.state == SequenceState.RUNNING

    @property
    def last_outcome(self) -> SequenceState | None:
        """Terminal state of the most recent run, or None before the first run."""
        return self._last_outcome

    @property
    def settings(self) -> SequenceSettings:
        return self._settings

    def register_state_callback(self, callback: StateCallback) -> None:
        self._state_machine.register_callback(callback)

    def register_status_callback(self, callback: StatusCallback) -> None:
        """Register callback for status text updates."""
        self._status_callbacks.append(callback)

    def register_result_callback(self, callback: ResultCallback) -> None:
        """Register callback for completed test results."""
        self._result_callbacks.append(callback)

    # Control surface

    def start(self) -> "asyncio.Task[SequenceState]":
        """
        Schedule a run on the running event loop.

        The orchestrator is RUNNING as soon as this returns, so cancel()
        called right after start() stops the run before the first case.

        Returns:
            Task resolving to the terminal state of the run

        Raises:
            RuntimeError: If called outside an event loop or a run is active
        """
        loop = asyncio.get_running_loop()
        token = self._begin_run()
        return loop.create_task(self._execute(token))

    async def run(self) -> SequenceState:
        """
        Execute a full run and wait for it to finish.

        Returns:
            Terminal state of the run (COMPLETED, CANCELLED or FAILED)

        Raises:
            RuntimeError: If a run is already active
        """
        token = self._begin_run()
        return await self._execute(token)

    def cancel(self) -> None:
        """Request cancellation of the active run. Safe to call from any thread."""
        token = self._token
        if token is None:
            logger.info("Cancel requested with no sequence running")
            return
        logger.info("Cancel requested")
        token.cancel()

    # Run lifecycle

    def _begin_run(self) -> CancellationToken:
        if self._state_machine.state != SequenceState.IDLE:
            raise RuntimeError(
                f"Cannot start sequence in {self._state_machine.state.name} state"
            )
        token = CancellationToken()
        self._token = token
        self._state_machine.to_running()
        return token

    async def _execute(self, token: CancellationToken) -> SequenceState:
        outcome = SequenceState.FAILED
        try:
            async with self._powered_down_on_exit():
                outcome = await self._run_cases(token)
        except asyncio.CancelledError:
            logger.warning("Sequence task was cancelled")
            self._notify_status(STATUS_CANCELLED)
            outcome = SequenceState.CANCELLED
            raise
        finally:
            self._finish_run(outcome)
        return outcome

    async def _run_cases(self, token: CancellationToken) -> SequenceState:
        """Iterate the case list. Returns the terminal state of the run."""
        total = len(self._test_cases)
        try:
            self._notify_status(STATUS_INITIALIZING)
            self._notify_status(STATUS_STARTING)

            for number, test_case in enumerate(self._test_cases, start=1):
                token.raise_if_cancelled()
                logger.info("Running %s (%d/%d): %s", test_case.name, number, total, test_case)
                self._notify_status(f"Test {number}/{total}: {test_case}")

                result = await self._run_single_case(test_case, token)
                logger.info(
                    "%s: %s (measured=%s)",
                    test_case.name,
                    result.message,
                    "n/a" if result.measured_voltage is None
                    else f"{result.measured_voltage:.4f}V",
                )
                self._notify_result(result)

                if number < total:
                    await token.sleep(self._settings.inter_case_delay_s)

        except SequenceCancelled:
            logger.info("Sequence cancelled")
            self._notify_status(STATUS_CANCELLED)
            return SequenceState.CANCELLED
        except Exception as e:
            logger.exception("Sequence failed: %s", e)
            self._notify_status(f"Error: {e}")
            return SequenceState.FAILED

        if token.is_cancelled:
            self._notify_status(STATUS_CANCELLED)
            return SequenceState.CANCELLED

        self._notify_status(STATUS_COMPLETED)
        return SequenceState.COMPLETED

    def _finish_run(self, outcome: SequenceState) -> None:
        self._token = None
        self._last_outcome = outcome
        if outcome == SequenceState.COMPLETED:
            self._state_machine.to_completed()
        elif outcome == SequenceState.CANCELLED:
            self._state_machine.to_cancelled()
        else:
            self._state_machine.to_failed()
        self._state_machine.to_idle()
        logger.info("Sequence finished: %s", outcome.name)

    # Single case protocol

    async def _run_single_case(
        self, test_case: TestCase, token: CancellationToken
    ) -> TestResult:
        """
        Program, settle, measure and judge one case.

        Instrument and argument errors become a failed result. Cancellation
        propagates to the caller. The sources are powered down on every path.
        """
        async with self._powered_down_on_exit():
            try:
                await self._apply_fuse_states(test_case, token)
                await token.sleep(self._settings.stabilization_delay_s)

                measured = await self._call(
                    token,
                    self._instruments.meter.read_voltage,
                    select_range(test_case.expected_voltage),
                    MEASUREMENT_INTEGRATION,
                    test_case,
                )
            except SequenceCancelled:
                raise
            except Exception as e:
                logger.error("%s: %s", test_case.name, e)
                return TestResult.error(test_case, e)

            return TestResult.evaluate(test_case, measured)

    async def _apply_fuse_states(
        self, test_case: TestCase, token: CancellationToken
    ) -> None:
        """Drive each source per its fuse state, then enable all outputs."""
        sources = self._instruments.sources
        for source, active in zip(sources, test_case.fuse_states):
            voltage = self._settings.drive_voltage_v if active else 0.0
            await self._call(token, source.set_voltage, voltage)
            if self._settings.current_limit_a is not None:
                await self._call(
                    token, source.set_current_limit, self._settings.current_limit_a
                )

        for source in sources:
            await self._call(token, source.enable_output)

    async def _call(
        self, token: CancellationToken, func: Callable[..., Any], *args: Any
    ) -> Any:
        """Run a blocking instrument call in a worker thread."""
        token.raise_if_cancelled()
        result = await self._in_thread(func, *args)
        token.raise_if_cancelled()
        return result

    async def _in_thread(self, func: Callable[..., Any], *args: Any) -> Any:
        """
        Await a worker-thread call without ever abandoning it.

        If the awaiting task is cancelled, the call is still awaited to
        completion before CancelledError propagates, so no later instrument
        call (power-down included) can overlap it.
        """
        future = asyncio.ensure_future(asyncio.to_thread(func, *args))
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            try:
                await future
            except Exception as e:
                logger.warning("Instrument call in flight at cancellation failed: %s", e)
            raise

    # Power-down

    @asynccontextmanager
    async def _powered_down_on_exit(self):
        try:
            yield
        finally:
            await self._in_thread(self._power_down)

    def _power_down(self) -> None:
        """
        Disable every output, then zero every set-point.

        Each step is attempted independently. Failures are logged as
        warnings and never raised.
        """
        sources = self._instruments.sources
        for source in sources:
            try:
                source.disable_output()
            except Exception as e:
                logger.warning("%s: Failed to disable output: %s", source.name, e)
        for source in sources:
            try:
                source.set_voltage(0.0)
            except Exception as e:
                logger.warning("%s: Failed to zero voltage: %s", source.name, e)

    # Notification

    def _notify_status(self, text: str) -> None:
        """Notify status callbacks."""
        for callback in self._status_callbacks:
            try:
                callback(text)
            except Exception as e:
                logger.error("Error in status callback: %s", e)

    def _notify_result(self, result: TestResult) -> None:
        """Notify result callbacks."""
        for callback in self._result_callbacks:
            try:
                callback(result)
            except Exception as e:
                logger.error("Error in result callback: %s", e)
