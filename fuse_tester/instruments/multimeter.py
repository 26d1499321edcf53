"""SCPI digital multimeter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base_instrument import BaseInstrument
from .ports import Integration, VoltMeter, match_range

if TYPE_CHECKING:
    from fuse_tester.model.test_case import TestCase

logger = logging.getLogger(__name__)


class VisaMultimeter(BaseInstrument, VoltMeter):
    """
    Digital multimeter taking single DC voltage readings.

    The range is validated locally; the context argument is ignored since a
    real meter measures the circuit itself.
    """

    def read_voltage(
        self,
        measurement_range: float,
        integration: Integration,
        context: TestCase | None = None,
    ) -> float:
        full_scale = match_range(measurement_range)
        self._check_connected()

        self.configure_dc_voltage(full_scale, integration)
        voltage = self.query_float("READ?")
        logger.info(
            "%s: Read %.6f V (range %g V, NPLC %g)",
            self._name,
            voltage,
            full_scale,
            integration.cycles,
        )
        return voltage

    def configure_dc_voltage(
        self, measurement_range: float, integration: Integration
    ) -> None:
        """Select DC voltage function, fixed range and integration time."""
        self.write(f"CONF:VOLT:DC {measurement_range:.3f}")
        self.write(f"VOLT:DC:NPLC {integration.cycles:.3f}")
