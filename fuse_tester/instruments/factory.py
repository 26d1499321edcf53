"""Construction of instrument sets for the sequencer."""

import logging
from collections.abc import Sequence

from .base_instrument import BaseInstrument
from .multimeter import VisaMultimeter
from .ports import InstrumentSet
from .power_supply import VisaPowerSupply
from .simulated import SimulatedMultimeter, SimulatedPowerSupply
from .visa_connection import VISAConnection

logger = logging.getLogger(__name__)

SOURCE_NAMES = ("PSU F1", "PSU F2", "PSU F3")
METER_NAME = "DMM"


def create_simulated_instrument_set(
    delay_scale: float = 1.0, seed: int | None = None
) -> InstrumentSet:
    """
    Create an instrument set backed by in-process simulations.

    Args:
        delay_scale: Multiplier for simulated settling times (0 disables them)
        seed: Optional seed for the meter's noise generator

    Returns:
        InstrumentSet with three simulated supplies and a simulated meter
    """
    sources = tuple(
        SimulatedPowerSupply(name, delay_scale=delay_scale) for name in SOURCE_NAMES
    )
    meter = SimulatedMultimeter(METER_NAME, delay_scale=delay_scale, seed=seed)
    logger.info("Created simulated instrument set")
    return InstrumentSet(sources=sources, meter=meter)


def create_visa_instrument_set(
    connection: VISAConnection,
    source_addresses: Sequence[str],
    meter_address: str,
    timeout_ms: int = 5000,
) -> InstrumentSet:
    """
    Open and identify the VISA instruments of the test bench.

    Instruments already connected are disconnected again if a later one
    fails, so a partial bench is never left open.

    Args:
        connection: VISA connection (opened if needed)
        source_addresses: Addresses of the F1, F2 and F3 supplies
        meter_address: Address of the multimeter
        timeout_ms: Communication timeout for every instrument

    Returns:
        InstrumentSet with connected VISA instruments

    Raises:
        ValueError: If the number of source addresses is not 3
    """
    if len(source_addresses) != len(SOURCE_NAMES):
        raise ValueError(
            f"Expected {len(SOURCE_NAMES)} source addresses, got {len(source_addresses)}"
        )

    if not connection.is_open:
        connection.open()

    sources = [
        VisaPowerSupply(name, address, timeout_ms)
        for name, address in zip(SOURCE_NAMES, source_addresses)
    ]
    meter = VisaMultimeter(METER_NAME, meter_address, timeout_ms)

    connected: list[BaseInstrument] = []
    try:
        for instrument in (*sources, meter):
            resource = connection.open_resource(
                instrument.resource_address,
                instrument.timeout_ms,
                instrument.read_termination,
                instrument.write_termination,
            )
            instrument.connect(resource)
            connected.append(instrument)
    except Exception as e:
        logger.error("Connection failed: %s", e)
        for instrument in connected:
            instrument.disconnect()
        raise

    logger.info("All instruments connected")
    return InstrumentSet(sources=tuple(sources), meter=meter)


def disconnect_instrument_set(instruments: InstrumentSet) -> None:
    """Disconnect every VISA instrument in the set. Simulated ones are skipped."""
    for instrument in (*instruments.sources, instruments.meter):
        if isinstance(instrument, BaseInstrument) and instrument.is_connected:
            instrument.disconnect()
