"""SCPI DC power supply."""

import logging

from .base_instrument import BaseInstrument
from .ports import VoltageSource

logger = logging.getLogger(__name__)


class VisaPowerSupply(BaseInstrument, VoltageSource):
    """
    DC power supply driven with common SCPI commands.

    Set-points are checked against the declared limits before any command
    is sent, so an out-of-range request never reaches the hardware.
    """

    def __init__(
        self,
        name: str,
        resource_address: str,
        timeout_ms: int = 5000,
        read_termination: str | None = "\n",
        write_termination: str | None = "\n",
        voltage_max: float = 120.0,
        current_max: float = 0.75,
    ):
        super().__init__(
            name, resource_address, timeout_ms, read_termination, write_termination
        )
        self.voltage_max = voltage_max
        self.current_max = current_max

    def get_status(self) -> dict:
        """
        Get power supply status.

        Returns:
            Dictionary with voltage, current and output state
        """
        return {
            "voltage": self.get_voltage(),
            "current": self.get_current_limit(),
            "output_enabled": self.is_output_enabled(),
        }

    # Voltage control

    def set_voltage(self, voltage: float) -> None:
        self._check_voltage(voltage)
        self._check_connected()
        logger.info("%s: Setting voltage to %.3f V", self._name, voltage)
        self.write(f"VOLT {voltage:.3f}")

    def get_voltage(self) -> float:
        """Programmed voltage set-point."""
        return self.query_float("VOLT?")

    def read_back_voltage(self) -> float:
        return self.query_float("MEAS:VOLT?")

    # Current control

    def set_current_limit(self, current: float) -> None:
        self._check_current(current)
        self._check_connected()
        logger.info("%s: Setting current limit to %.3f A", self._name, current)
        self.write(f"CURR {current:.3f}")

    def get_current_limit(self) -> float:
        return self.query_float("CURR?")

    # Output control

    def enable_output(self) -> None:
        self._check_connected()
        logger.info("%s: Enabling output", self._name)
        self.write("OUTP ON")

    def disable_output(self) -> None:
        self._check_connected()
        logger.info("%s: Disabling output", self._name)
        self.write("OUTP OFF")

    def is_output_enabled(self) -> bool:
        return self.query("OUTP?") in ("1", "ON")
