"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    AppConfig,
    InstrumentAddresses,
    DRIVER_SIMULATED,
    DRIVER_VISA,
    validate_config,
)

__all__ = [
    "load_config",
    "AppConfig",
    "InstrumentAddresses",
    "DRIVER_SIMULATED",
    "DRIVER_VISA",
    "validate_config",
]
