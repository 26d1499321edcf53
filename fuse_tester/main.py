#!/usr/bin/env python3
"""Fuse Tester - Main entry point."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from .config import DRIVER_SIMULATED, DRIVER_VISA, AppConfig, load_config
from .instruments import (
    InstrumentSet,
    VISAConnection,
    create_simulated_instrument_set,
    create_visa_instrument_set,
    disconnect_instrument_set,
)
from .logging_config import setup_logging
from .model import SequenceOrchestrator, SequenceState, TestResult, build_test_cases

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_TEST_FAILURE = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Fuse Tester - three-fuse resistor network test sequence"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file (default: fuse_tester/config/default_config.json)",
    )
    parser.add_argument(
        "--simulation",
        action="store_true",
        help="Use the PyVISA-sim backend for the VISA driver (overrides config)",
    )
    parser.add_argument(
        "--driver",
        choices=[DRIVER_SIMULATED, DRIVER_VISA],
        help="Instrument driver (overrides config)",
    )
    return parser.parse_args(argv)


def validate_visa_backend(backend: str) -> str | None:
    """Validate that a VISA backend is installed.

    Args:
        backend: Backend name (e.g. "ivi", "py")

    Returns:
        Error message if invalid, None if valid.
    """
    from pyvisa.highlevel import get_wrapper_class, list_backends

    try:
        get_wrapper_class(backend)
        return None
    except ValueError:
        available = list_backends()
        return (
            f"Invalid VISA backend '{backend}'. "
            f"Available backends: {available}"
        )


def resolve_simulation_file(simulation_file: str) -> Path:
    """Resolve a relative simulation file path against the package directory."""
    path = Path(simulation_file)
    if path.is_absolute():
        return path
    return PACKAGE_DIR / path


def create_instruments(
    config: AppConfig,
) -> tuple[InstrumentSet, VISAConnection | None]:
    """Build the instrument set selected by the configuration."""
    if config.instrument_driver == DRIVER_SIMULATED:
        return create_simulated_instrument_set(), None

    connection = VISAConnection(
        simulation_mode=config.simulation_mode,
        simulation_file=resolve_simulation_file(config.simulation_file),
        visa_backend=config.visa_backend,
    )
    logger.info("VISA backend: %s", connection.active_backend)
    try:
        instruments = create_visa_instrument_set(
            connection,
            config.instruments.sources,
            config.instruments.meter,
            config.instruments.timeout_ms,
        )
    except Exception:
        connection.close()
        raise
    return instruments, connection


class ConsoleReporter:
    """Writes orchestrator events to the log and tallies results."""

    def __init__(self) -> None:
        self.results: list[TestResult] = []

    def on_status(self, text: str) -> None:
        logger.info("Status: %s", text)

    def on_result(self, result: TestResult) -> None:
        self.results.append(result)
        measured = (
            "-" if result.measured_voltage is None
            else f"{result.measured_voltage:.4f} V"
        )
        case = result.test_case
        logger.info(
            "%s [%s] expected %.4f V (%.4f..%.4f), measured %s: %s",
            case.name,
            case,
            case.expected_voltage,
            case.min_voltage,
            case.max_voltage,
            measured,
            result.message,
        )

    @property
    def all_passed(self) -> bool:
        return bool(self.results) and all(r.passed for r in self.results)


async def run_sequence(orchestrator: SequenceOrchestrator) -> SequenceState:
    """Run the sequence, cancelling it cooperatively on SIGINT where supported."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers not supported on this platform")

    try:
        return await orchestrator.run()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    config, errors = load_config(args.config)

    if errors:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if config is None:
        print("Failed to load configuration", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # Command line overrides
    if args.simulation:
        config.simulation_mode = True
    if args.driver:
        config.instrument_driver = args.driver

    # Validate VISA backend if specified and not in simulation mode
    if (
        config.instrument_driver == DRIVER_VISA
        and config.visa_backend
        and not config.simulation_mode
    ):
        backend_error = validate_visa_backend(config.visa_backend)
        if backend_error:
            print(f"Configuration error: {backend_error}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

    setup_logging(log_file=config.log_file, log_level=config.log_level)

    logger.info("Starting Fuse Tester")
    logger.info("Instrument driver: %s", config.instrument_driver)

    try:
        instruments, connection = create_instruments(config)
    except Exception as e:
        logger.error("Failed to set up instruments: %s", e)
        return EXIT_TEST_FAILURE

    orchestrator = SequenceOrchestrator(
        instruments,
        build_test_cases(config.network, config.tolerance),
        config.sequence,
    )
    reporter = ConsoleReporter()
    orchestrator.register_status_callback(reporter.on_status)
    orchestrator.register_result_callback(reporter.on_result)

    try:
        outcome = asyncio.run(run_sequence(orchestrator))
    finally:
        disconnect_instrument_set(instruments)
        if connection is not None:
            connection.close()

    passed = sum(1 for r in reporter.results if r.passed)
    logger.info(
        "Sequence %s: %d/%d passed",
        outcome.name.lower(),
        passed,
        len(orchestrator.test_cases),
    )

    if outcome == SequenceState.COMPLETED and reporter.all_passed:
        return EXIT_OK
    return EXIT_TEST_FAILURE


if __name__ == "__main__":
    sys.exit(main())
