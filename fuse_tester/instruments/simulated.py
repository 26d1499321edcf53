"""In-process simulated instruments."""

from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING

from .ports import Integration, VoltageSource, VoltMeter, match_range

if TYPE_CHECKING:
    from fuse_tester.model.test_case import TestCase

logger = logging.getLogger(__name__)

# Simulated switching and settling times in seconds
ENABLE_DELAY_S = 0.1
DISABLE_DELAY_S = 0.1
VOLTAGE_SETTLE_S = 0.05

# Simulated measurement time per integration setting in seconds
_INTEGRATION_DELAY_S: dict[Integration, float] = {
    Integration.NPLC_0P002: 0.001,
    Integration.NPLC_0P06: 0.002,
    Integration.NPLC_1: 0.02,
    Integration.NPLC_10: 0.2,
}

# Peak-to-peak reading error as a fraction of the selected range
READING_ERROR_FRACTION = 0.01


class SimulatedPowerSupply(VoltageSource):
    """
    Simulated DC power supply.

    Limits default to 0-120 V and 0-0.75 A. Every mutating call sleeps for a
    fixed switching time multiplied by delay_scale (use 0 in tests).
    """

    def __init__(self, name: str, delay_scale: float = 1.0):
        self._name = name
        self._delay_scale = delay_scale
        self._voltage = 0.0
        self._current_limit = 0.0
        self._output_enabled = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def output_enabled(self) -> bool:
        return self._output_enabled

    @property
    def voltage(self) -> float:
        """Programmed voltage set-point."""
        return self._voltage

    @property
    def current_limit(self) -> float:
        return self._current_limit

    def enable_output(self) -> None:
        logger.debug("%s: Enabling output", self._name)
        self._sleep(ENABLE_DELAY_S)
        self._output_enabled = True

    def disable_output(self) -> None:
        logger.debug("%s: Disabling output", self._name)
        self._sleep(DISABLE_DELAY_S)
        self._output_enabled = False

    def set_voltage(self, voltage: float) -> None:
        self._check_voltage(voltage)
        logger.debug("%s: Setting voltage to %.3f V", self._name, voltage)
        self._voltage = voltage
        self._sleep(VOLTAGE_SETTLE_S)

    def set_current_limit(self, current: float) -> None:
        self._check_current(current)
        logger.debug("%s: Setting current limit to %.3f A", self._name, current)
        self._current_limit = current

    def read_back_voltage(self) -> float:
        return self._voltage

    def _sleep(self, seconds: float) -> None:
        if self._delay_scale > 0:
            time.sleep(seconds * self._delay_scale)


class SimulatedMultimeter(VoltMeter):
    """
    Simulated digital multimeter.

    Readings are the context's expected voltage plus uniform noise of
    +/-0.5 % of the selected range, clamped to [0, range].
    """

    def __init__(
        self,
        name: str = "Simulated DMM",
        delay_scale: float = 1.0,
        seed: int | None = None,
    ):
        self._name = name
        self._delay_scale = delay_scale
        self._random = random.Random(seed)

    @property
    def name(self) -> str:
        return self._name

    def read_voltage(
        self,
        measurement_range: float,
        integration: Integration,
        context: TestCase | None = None,
    ) -> float:
        full_scale = match_range(measurement_range)

        if self._delay_scale > 0:
            time.sleep(_INTEGRATION_DELAY_S[integration] * self._delay_scale)

        error = (self._random.random() - 0.5) * READING_ERROR_FRACTION * full_scale
        nominal = context.expected_voltage if context is not None else 0.0
        voltage = min(max(nominal + error, 0.0), full_scale)

        logger.debug(
            "%s: Read %.6f V (range %g V, NPLC %g)",
            self._name,
            voltage,
            full_scale,
            integration.cycles,
        )
        return voltage
