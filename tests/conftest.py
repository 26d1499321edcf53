"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from fuse_tester.instruments import (
    InstrumentSet,
    SimulatedMultimeter,
    SimulatedPowerSupply,
    create_simulated_instrument_set,
)
from fuse_tester.model import SequenceSettings


# === Path Fixtures ===


@pytest.fixture
def fixtures_path() -> Path:
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def config_fixtures_path(fixtures_path: Path) -> Path:
    """Path to config fixtures."""
    return fixtures_path / "config"


# === Mock Fixtures ===


@pytest.fixture
def mock_visa_resource() -> Mock:
    """Mock PyVISA resource."""
    resource = Mock()
    resource.query.return_value = "Manufacturer,Model,Serial,1.0.0"
    resource.read.return_value = "response"
    resource.timeout = 5000
    return resource


@pytest.fixture
def mock_visa_connection() -> Mock:
    """Mock VISAConnection."""
    conn = Mock()
    conn.is_open = False

    def open_side_effect() -> None:
        conn.is_open = True

    def close_side_effect() -> None:
        conn.is_open = False

    conn.open.side_effect = open_side_effect
    conn.close.side_effect = close_side_effect
    conn.list_resources.return_value = ("TCPIP::192.168.1.101::INSTR",)

    def open_resource_side_effect(address: str, *args, **kwargs) -> Mock:
        resource = Mock()
        resource.query.return_value = "MockMfg,MockModel,12345,1.0"
        resource.timeout = 5000
        return resource

    conn.open_resource.side_effect = open_resource_side_effect

    return conn


# === Instrument Fixtures ===


class ExactMeter(SimulatedMultimeter):
    """Simulated meter that returns the expected voltage with no noise."""

    def __init__(self) -> None:
        super().__init__("Exact DMM", delay_scale=0)
        self.calls: list[tuple[float, object]] = []

    def read_voltage(self, measurement_range, integration, context=None) -> float:
        super().read_voltage(measurement_range, integration, context)
        self.calls.append((measurement_range, integration))
        return context.expected_voltage if context is not None else 0.0


@pytest.fixture
def fast_sources() -> tuple[SimulatedPowerSupply, ...]:
    """Three simulated supplies with no settling delays."""
    return tuple(
        SimulatedPowerSupply(name, delay_scale=0)
        for name in ("PSU F1", "PSU F2", "PSU F3")
    )


@pytest.fixture
def exact_meter() -> ExactMeter:
    """Noise-free simulated meter."""
    return ExactMeter()


@pytest.fixture
def exact_instruments(fast_sources, exact_meter: ExactMeter) -> InstrumentSet:
    """Instrument set whose meter always reads the expected voltage."""
    return InstrumentSet(sources=fast_sources, meter=exact_meter)


@pytest.fixture
def simulated_instruments() -> InstrumentSet:
    """Noisy simulated instrument set with delays disabled."""
    return create_simulated_instrument_set(delay_scale=0, seed=1234)


@pytest.fixture
def fast_settings() -> SequenceSettings:
    """Sequence settings with all delays set to zero."""
    return SequenceSettings(stabilization_delay_ms=0, inter_case_delay_ms=0)


# === Integration Test Fixtures ===


@pytest.fixture
def simulation_yaml_path() -> Path:
    """Path to simulation YAML file."""
    return Path(__file__).parent.parent / "fuse_tester" / "simulation" / "instruments.yaml"


@pytest.fixture
def visa_connection_sim(simulation_yaml_path: Path):
    """Real VISAConnection with simulation backend."""
    from fuse_tester.instruments import VISAConnection

    conn = VISAConnection(simulation_mode=True, simulation_file=simulation_yaml_path)
    yield conn
    if conn.is_open:
        conn.close()
