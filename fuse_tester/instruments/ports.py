"""Instrument capability contracts used by the sequencer.

The sequencer only ever talks to the VoltageSource and VoltMeter
abstractions. Simulated and VISA-backed instruments implement them and can
be swapped freely.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .errors import InvalidArgumentError, RangeError

if TYPE_CHECKING:
    from fuse_tester.model.test_case import TestCase

# Full-scale DC voltage ranges in volts
VALID_RANGES: tuple[float, ...] = (0.1, 1.0, 10.0, 100.0, 1000.0)

# Two ranges closer than this are considered the same
_RANGE_MATCH_TOLERANCE = 0.001


class Integration(Enum):
    """Integration time expressed in number of power line cycles (50 Hz)."""

    NPLC_0P002 = 0.002
    NPLC_0P06 = 0.06
    NPLC_1 = 1.0
    NPLC_10 = 10.0

    @property
    def cycles(self) -> float:
        return self.value

    @property
    def seconds(self) -> float:
        """Integration time in seconds, 20 ms per line cycle."""
        return self.value * 0.02


def match_range(measurement_range: float) -> float:
    """
    Resolve a requested range to an entry of VALID_RANGES.

    Args:
        measurement_range: Requested full-scale range in volts

    Returns:
        The matching valid range

    Raises:
        InvalidArgumentError: If the range is not supported
    """
    for valid in VALID_RANGES:
        if abs(measurement_range - valid) < _RANGE_MATCH_TOLERANCE:
            return valid
    valid_text = ", ".join(f"{r:g}" for r in VALID_RANGES)
    raise InvalidArgumentError(
        f"Invalid measurement range {measurement_range:g} V. Valid ranges: {valid_text} V"
    )


class VoltageSource(ABC):
    """
    Controllable DC voltage source.

    Mutating calls may block while the output settles. Set-points are checked
    against the declared limits before anything reaches the hardware.
    """

    voltage_min: float = 0.0
    voltage_max: float = 120.0
    current_min: float = 0.0
    current_max: float = 0.75

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable instrument name."""

    @abstractmethod
    def enable_output(self) -> None:
        """Enable the output."""

    @abstractmethod
    def disable_output(self) -> None:
        """Disable the output."""

    @abstractmethod
    def set_voltage(self, voltage: float) -> None:
        """
        Program the output voltage.

        Raises:
            RangeError: If voltage is outside [voltage_min, voltage_max]
        """

    @abstractmethod
    def set_current_limit(self, current: float) -> None:
        """
        Program the current limit.

        Raises:
            RangeError: If current is outside [current_min, current_max]
        """

    @abstractmethod
    def read_back_voltage(self) -> float:
        """Read back the actual output voltage."""

    def _check_voltage(self, voltage: float) -> None:
        if not self.voltage_min <= voltage <= self.voltage_max:
            raise RangeError(
                f"Voltage must be between {self.voltage_min:g} and "
                f"{self.voltage_max:g} V, got {voltage:g} V"
            )

    def _check_current(self, current: float) -> None:
        if not self.current_min <= current <= self.current_max:
            raise RangeError(
                f"Current must be between {self.current_min:g} and "
                f"{self.current_max:g} A, got {current:g} A"
            )


class VoltMeter(ABC):
    """DC voltmeter with fixed ranges and selectable integration time."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable instrument name."""

    @abstractmethod
    def read_voltage(
        self,
        measurement_range: float,
        integration: Integration,
        context: TestCase | None = None,
    ) -> float:
        """
        Take a single DC voltage reading.

        Args:
            measurement_range: Full-scale range, one of VALID_RANGES
            integration: Integration time setting
            context: Optional test case; only simulated meters use it

        Returns:
            Measured voltage in volts

        Raises:
            InvalidArgumentError: If measurement_range is not supported
        """


@dataclass(frozen=True)
class InstrumentSet:
    """The three fuse drive sources (F1, F2, F3 in order) and the meter."""

    sources: tuple[VoltageSource, VoltageSource, VoltageSource]
    meter: VoltMeter

    def __post_init__(self) -> None:
        """Validate source count."""
        if len(self.sources) != 3:
            raise ValueError(f"Expected 3 voltage sources, got {len(self.sources)}")
