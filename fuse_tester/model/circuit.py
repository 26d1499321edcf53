"""Resistor network model and tolerance window math."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkParameters:
    """
    Component values of the fuse network.

    Each active fuse path pulls the output node down through its resistor;
    a single pull-up resistor ties the node to the supply.
    """

    r_f1: float = 12_000.0  # ohms
    r_f2: float = 24_000.0
    r_f3: float = 47_000.0
    r_pullup: float = 4_700.0
    vcc: float = 3.3  # volts


@dataclass(frozen=True)
class TolerancePolicy:
    """Relative and absolute acceptance margins shared by all test cases."""

    percent: float = 2.0
    absolute: float = 0.005  # volts


DEFAULT_NETWORK = NetworkParameters()
DEFAULT_TOLERANCE = TolerancePolicy()


def expected_voltage(
    f1: bool,
    f2: bool,
    f3: bool,
    params: NetworkParameters = DEFAULT_NETWORK,
) -> float:
    """
    Calculate the output voltage for a set of fuse states.

    Args:
        f1: Fuse 1 path driven
        f2: Fuse 2 path driven
        f3: Fuse 3 path driven
        params: Network component values

    Returns:
        Expected output voltage in volts
    """
    conductance = 0.0
    if f1:
        conductance += 1.0 / params.r_f1
    if f2:
        conductance += 1.0 / params.r_f2
    if f3:
        conductance += 1.0 / params.r_f3

    # No pull-down path: the node floats up to the supply
    if conductance == 0:
        return params.vcc

    r_parallel = 1.0 / conductance
    return params.vcc * r_parallel / (params.r_pullup + r_parallel)


def tolerance_window(
    expected: float, percent: float, absolute: float
) -> tuple[float, float]:
    """
    Compute the acceptance interval around an expected voltage.

    The lower bound is not clamped and may be negative.

    Returns:
        Tuple of (min_voltage, max_voltage)
    """
    min_voltage = expected * (1 - percent / 100) - absolute
    max_voltage = expected * (1 + percent / 100) + absolute
    return min_voltage, max_voltage
