"""Configuration schema and validation."""

from dataclasses import dataclass, field
from typing import Any

from ..model.circuit import NetworkParameters, TolerancePolicy
from ..model.sequencer import SequenceSettings

DRIVER_SIMULATED = "simulated"
DRIVER_VISA = "visa"
_VALID_DRIVERS = [DRIVER_SIMULATED, DRIVER_VISA]


@dataclass
class InstrumentAddresses:
    """VISA addresses of the test bench instruments."""

    source_f1: str = "TCPIP::192.168.1.101::INSTR"
    source_f2: str = "TCPIP::192.168.1.102::INSTR"
    source_f3: str = "TCPIP::192.168.1.103::INSTR"
    meter: str = "TCPIP::192.168.1.110::INSTR"
    timeout_ms: int = 5000

    @property
    def sources(self) -> tuple[str, str, str]:
        return (self.source_f1, self.source_f2, self.source_f3)


@dataclass
class AppConfig:
    """Application configuration."""

    simulation_mode: bool = False
    simulation_file: str = "simulation/instruments.yaml"
    instrument_driver: str = DRIVER_SIMULATED
    visa_backend: str = ""
    log_file: str = "fuse_tester.log"
    log_level: str = "INFO"
    instruments: InstrumentAddresses = field(default_factory=InstrumentAddresses)
    network: NetworkParameters = field(default_factory=NetworkParameters)
    tolerance: TolerancePolicy = field(default_factory=TolerancePolicy)
    sequence: SequenceSettings = field(default_factory=SequenceSettings)


def _validate_str_field(
    config_dict: dict[str, Any],
    key: str,
    default: str,
    errors: list[str],
    prefix: str = "",
) -> str:
    """Validate a string configuration field."""
    value = config_dict.get(key, default)
    if not isinstance(value, str):
        errors.append(f"{prefix}{key} must be string, got {type(value).__name__}")
        return default
    return value


def _validate_int_min_field(
    config_dict: dict[str, Any],
    key: str,
    default: int,
    minimum: int,
    errors: list[str],
    prefix: str = "",
) -> int:
    """Validate an integer configuration field with a minimum value."""
    value = config_dict.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        errors.append(f"{prefix}{key} must be integer >= {minimum}, got {value}")
        return default
    return value


def _validate_numeric_field(
    source: dict[str, Any],
    key: str,
    default: float,
    errors: list[str],
    prefix: str,
    *,
    min_value: float | None = None,
    min_exclusive: bool = False,
) -> float:
    """Validate a numeric field within a nested configuration section."""
    value = source.get(key, default)

    if min_value is not None:
        op = ">" if min_exclusive else ">="
        constraint = f"numeric {op} {min_value:g}"
    else:
        constraint = "numeric"

    if not isinstance(value, (int, float)) or isinstance(value, bool):
        if min_value is not None:
            errors.append(f"{prefix}.{key} must be {constraint}, got {value}")
        else:
            errors.append(
                f"{prefix}.{key} must be {constraint}, got {type(value).__name__}"
            )
        return default

    if min_value is not None:
        out_of_range = value <= min_value if min_exclusive else value < min_value
        if out_of_range:
            errors.append(f"{prefix}.{key} must be {constraint}, got {value}")
            return default

    return float(value)


def _get_section(
    config_dict: dict[str, Any], key: str, errors: list[str]
) -> dict[str, Any]:
    """Return a nested section, or an empty dict if missing or malformed."""
    section = config_dict.get(key, {})
    if not isinstance(section, dict):
        errors.append(f"{key} must be an object, got {type(section).__name__}")
        return {}
    return section


def validate_config(config_dict: dict[str, Any]) -> tuple[AppConfig | None, list[str]]:
    """
    Validate configuration dictionary and return AppConfig or list of errors.

    Returns:
        Tuple of (AppConfig or None, list of error messages)
    """
    errors: list[str] = []

    # Validate simulation_mode
    simulation_mode = config_dict.get("simulation_mode", False)
    if not isinstance(simulation_mode, bool):
        errors.append(
            f"simulation_mode must be boolean, got {type(simulation_mode).__name__}"
        )
        simulation_mode = False

    # Validate string fields
    simulation_file = _validate_str_field(
        config_dict, "simulation_file", "simulation/instruments.yaml", errors
    )
    log_file = _validate_str_field(config_dict, "log_file", "fuse_tester.log", errors)
    visa_backend = _validate_str_field(config_dict, "visa_backend", "", errors)

    # Validate log_level (unique enum logic)
    log_level = config_dict.get("log_level", "INFO")
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if not isinstance(log_level, str):
        errors.append(f"log_level must be string, got {type(log_level).__name__}")
        log_level = "INFO"
    elif log_level.upper() not in valid_levels:
        errors.append(f"log_level must be one of {valid_levels}, got '{log_level}'")
        log_level = "INFO"
    else:
        log_level = log_level.upper()

    # Validate instrument_driver
    instrument_driver = _validate_str_field(
        config_dict, "instrument_driver", DRIVER_SIMULATED, errors
    )
    if instrument_driver not in _VALID_DRIVERS:
        errors.append(
            f"instrument_driver must be one of {_VALID_DRIVERS}, got '{instrument_driver}'"
        )
        instrument_driver = DRIVER_SIMULATED

    # Validate nested sections
    instruments = _validate_instruments(
        _get_section(config_dict, "instruments", errors), errors
    )
    network = _validate_network(_get_section(config_dict, "network", errors), errors)
    tolerance = _validate_tolerance(
        _get_section(config_dict, "tolerance", errors), errors
    )
    sequence = _validate_sequence(_get_section(config_dict, "sequence", errors), errors)

    if errors:
        return None, errors

    return (
        AppConfig(
            simulation_mode=simulation_mode,
            simulation_file=simulation_file,
            instrument_driver=instrument_driver,
            visa_backend=visa_backend,
            log_file=log_file,
            log_level=log_level,
            instruments=instruments,
            network=network,
            tolerance=tolerance,
            sequence=sequence,
        ),
        [],
    )


def _validate_instruments(
    instruments_dict: dict[str, Any], errors: list[str]
) -> InstrumentAddresses:
    """Validate instrument addresses."""
    defaults = InstrumentAddresses()
    prefix = "instruments."

    return InstrumentAddresses(
        source_f1=_validate_str_field(
            instruments_dict, "source_f1", defaults.source_f1, errors, prefix
        ),
        source_f2=_validate_str_field(
            instruments_dict, "source_f2", defaults.source_f2, errors, prefix
        ),
        source_f3=_validate_str_field(
            instruments_dict, "source_f3", defaults.source_f3, errors, prefix
        ),
        meter=_validate_str_field(
            instruments_dict, "meter", defaults.meter, errors, prefix
        ),
        timeout_ms=_validate_int_min_field(
            instruments_dict, "timeout_ms", defaults.timeout_ms, 100, errors, prefix
        ),
    )


def _validate_network(
    network_dict: dict[str, Any], errors: list[str]
) -> NetworkParameters:
    """Validate resistor network component values."""
    defaults = NetworkParameters()
    prefix = "network"

    def resistance(key: str, default: float) -> float:
        return _validate_numeric_field(
            network_dict, key, default, errors, prefix, min_value=0, min_exclusive=True
        )

    return NetworkParameters(
        r_f1=resistance("r_f1", defaults.r_f1),
        r_f2=resistance("r_f2", defaults.r_f2),
        r_f3=resistance("r_f3", defaults.r_f3),
        r_pullup=resistance("r_pullup", defaults.r_pullup),
        vcc=_validate_numeric_field(
            network_dict, "vcc", defaults.vcc, errors, prefix, min_value=0
        ),
    )


def _validate_tolerance(
    tolerance_dict: dict[str, Any], errors: list[str]
) -> TolerancePolicy:
    """Validate tolerance policy."""
    defaults = TolerancePolicy()
    prefix = "tolerance"

    return TolerancePolicy(
        percent=_validate_numeric_field(
            tolerance_dict, "percent", defaults.percent, errors, prefix, min_value=0
        ),
        absolute=_validate_numeric_field(
            tolerance_dict, "absolute", defaults.absolute, errors, prefix, min_value=0
        ),
    )


def _validate_sequence(
    sequence_dict: dict[str, Any], errors: list[str]
) -> SequenceSettings:
    """Validate sequence drive levels and delays."""
    defaults = SequenceSettings()
    prefix = "sequence"

    current_limit_a = sequence_dict.get("current_limit_a", defaults.current_limit_a)
    if current_limit_a is not None:
        current_limit_a = _validate_numeric_field(
            sequence_dict, "current_limit_a", 0.0, errors, prefix, min_value=0
        )

    return SequenceSettings(
        drive_voltage_v=_validate_numeric_field(
            sequence_dict,
            "drive_voltage_v",
            defaults.drive_voltage_v,
            errors,
            prefix,
            min_value=0,
        ),
        current_limit_a=current_limit_a,
        stabilization_delay_ms=_validate_int_min_field(
            sequence_dict,
            "stabilization_delay_ms",
            defaults.stabilization_delay_ms,
            0,
            errors,
            prefix + ".",
        ),
        inter_case_delay_ms=_validate_int_min_field(
            sequence_dict,
            "inter_case_delay_ms",
            defaults.inter_case_delay_ms,
            0,
            errors,
            prefix + ".",
        ),
    )
