"""Instrument contracts, simulated instruments and VISA instruments."""

from .errors import InstrumentError, InstrumentFault, InvalidArgumentError, RangeError
from .ports import (
    VALID_RANGES,
    Integration,
    InstrumentSet,
    VoltageSource,
    VoltMeter,
    match_range,
)
from .simulated import SimulatedMultimeter, SimulatedPowerSupply
from .visa_connection import VISAConnection
from .base_instrument import BaseInstrument
from .power_supply import VisaPowerSupply
from .multimeter import VisaMultimeter
from .factory import (
    create_simulated_instrument_set,
    create_visa_instrument_set,
    disconnect_instrument_set,
)

__all__ = [
    "InstrumentError",
    "InstrumentFault",
    "InvalidArgumentError",
    "RangeError",
    "VALID_RANGES",
    "Integration",
    "InstrumentSet",
    "VoltageSource",
    "VoltMeter",
    "match_range",
    "SimulatedMultimeter",
    "SimulatedPowerSupply",
    "VISAConnection",
    "BaseInstrument",
    "VisaPowerSupply",
    "VisaMultimeter",
    "create_simulated_instrument_set",
    "create_visa_instrument_set",
    "disconnect_instrument_set",
]
